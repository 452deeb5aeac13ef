"""gojunit: convert 'go test -v' output to JUnit XML.

gojunit reads the verbose output of 'go test', recovers the packages,
tests, subtests and benchmarks it describes, and writes them as a
JUnit XML report that CI systems can display.

This module provides the parser, the report data model and the
formatters used by the go-junit-report command.
"""

from .model import Report, Package, Test, Benchmark
from .model import PASS, FAIL, SKIP, ERROR
from .parser import GoTestParser, parse, classify_line
from .formatter import JUnitFormatter, JSONFormatter, get_formatter
from .config import ReportOptions
from .utils import ReportError
from .version import __version__
