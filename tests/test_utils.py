import re
import warnings

import pytest

from gojunit.utils import *

def test_ansi_regex_compiles_cleanly():
    re.purge()
    with warnings.catch_warnings():
        warnings.simplefilter('error')
        re.compile(ansi_escape_regex.pattern)

@pytest.mark.parametrize("text,expected", [
    ("\x1b[31mred\x1b[0m text", "red text"),
    ("\x1b[1;32mok\x1b[m", "ok"),
    ("\x1b]0;title\x07plain", "plain"),
    ("no escapes [here]", "no escapes [here]"),
])
def test_strip_ansi(text, expected):
    assert strip_ansi(text) == expected

def test_xml_safe():
    assert xml_safe("tab\tok\x00\x1f") == "tab\tok"

def test_decode_line():
    assert decode_line(b"caf\xc3\xa9\r\n") == "café"
    assert decode_line("text  \n") == "text"
