# gojunit internal utilities
# Copyright (C) 2019-2021 Red Hat Inc.
#
# This file is part of gojunit, and is free software. You can
# redistribute it and/or modify it under the terms of the GNU Lesser General
# Public License (LGPL); either version 3, or (at your option) any
# later version.

import os
import re
import sys
import subprocess

class ReportError(Exception):
    def __init__(self, msg):
        super().__init__(msg)
        self.msg = msg

def err_print(*args, **kwargs):
    """
    Print an error message to standard error.

    Supports the same arguments as 'print'.

    Args:
        prefix (optional): custom prefix to use instead of '<script> ERROR:'.
    """
    prefix = "{} ERROR:".format(os.path.basename(sys.argv[0]))
    if 'prefix' in kwargs:
        prefix = kwargs['prefix']
        del kwargs['prefix']
    print(prefix, file=sys.stderr, end=('' if prefix == '' else ' '))
    print(file=sys.stderr, flush=True, *args, **kwargs)

def warn_print(*args, **kwargs):
    """
    Print a warning message to standard error.

    Supports the same arguments as 'print'.

    Args:
        prefix (optional): custom prefix to use instead of '<script> WARNING:'.
    """
    prefix = "{} WARNING:".format(os.path.basename(sys.argv[0]))
    if 'prefix' in kwargs:
        prefix = kwargs['prefix']
        del kwargs['prefix']
    print(prefix, file=sys.stderr, end=('' if prefix == '' else ' '))
    print(file=sys.stderr, flush=True, *args, **kwargs)

def decode_line(line):
    """Decode a line of input and strip the trailing newline and whitespace.

    Byte strings are decoded as UTF-8; malformed sequences are replaced
    rather than raising, since test output may contain arbitrary bytes.
    """
    if isinstance(line, bytes):
        line = line.decode('utf-8', errors='replace')
    return line.rstrip()

def iter_lines_decode(data_stream):
    """Yield decoded lines from a data_stream (or any iterable of lines).

    Raises ReportError if reading from the stream fails.
    """
    iterator = iter(data_stream)
    while True:
        try:
            line = next(iterator)
        except StopIteration:
            return
        except OSError as e:
            raise ReportError("error reading input: {}".format(e)) from e
        yield decode_line(line)

# Based on the expression used by the stripansi Go package:
ansi_escape_regex = re.compile(
    "[\u001B\u009B][\\[\\]()#;?]*"
    "(?:(?:(?:[a-zA-Z\\d]*(?:;[a-zA-Z\\d]*)*)?\u0007)"
    "|(?:(?:\\d{1,4}(?:;\\d{0,4})*)?[\\dA-PRZcf-ntqry=><~]))")

def strip_ansi(text):
    """Remove ANSI escape sequences (terminal colors etc.) from text."""
    return ansi_escape_regex.sub('', text)

xml_invalid_regex = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f]")

def xml_safe(text):
    """Remove control characters that are invalid in XML 1.0."""
    return xml_invalid_regex.sub('', text)

def go_version():
    """Return the version of the Go toolchain on the PATH, or None.

    Obtains the version reported by 'go env GOVERSION'."""
    try:
        rc = subprocess.run(["go", "env", "GOVERSION"],
                            capture_output=True, text=True, timeout=30)
    except (OSError, subprocess.TimeoutExpired):
        return None
    version = rc.stdout.strip()
    if rc.returncode != 0 or version == "":
        return None
    return version
