# gojunit parser for 'go test -v' output
# Copyright (C) 2019-2021 Red Hat Inc.
#
# This file is part of gojunit, and is free software. You can
# redistribute it and/or modify it under the terms of the GNU Lesser General
# Public License (LGPL); either version 3, or (at your option) any
# later version.
"""Parser for the verbose output of 'go test'.

The output of 'go test -v' is a sequence of heterogeneous lines printed
by one or more test binaries. Most lines are free-form test output;
a few are markers ('=== RUN', '--- PASS', 'ok <pkg> <time>', ...)
that delimit tests and packages. Parallel tests interleave their output,
so each line is attributed to the test named by the most recent marker.
"""

import re
from collections import OrderedDict

from gojunit.model import *
from gojunit.utils import *

# Line kinds, in the order classify_line() tries them:
RUN = 'RUN'
PAUSE = 'PAUSE'
CONT = 'CONT'
RESULT = 'RESULT'
SUMMARY = 'SUMMARY'
BUILD_FAILED = 'BUILD_FAILED'
SETUP_FAILED = 'SETUP_FAILED'
STATUS = 'STATUS'
COVERAGE = 'COVERAGE'
BENCHMARK = 'BENCHMARK'
BUILD_HEADER = 'BUILD_HEADER'
PANIC = 'PANIC'
PLAIN = 'PLAIN'

run_regex = re.compile(r"^=== RUN\s+(.+)$")
pause_regex = re.compile(r"^=== PAUSE\s+(.+)$")
# XXX go1.20 prints '=== NAME' where older versions print '=== CONT'.
cont_regex = re.compile(r"^=== (?:CONT|NAME)\s+(.+)$")
# go1.4 and earlier print '(0.06 seconds)' instead of '(0.06s)':
result_regex = re.compile(r"^\s*--- (PASS|FAIL|SKIP): (.+) \((\d+(?:\.\d+)?)(?:s| seconds)\)$")
summary_regex = re.compile(r"^(ok|FAIL)\s+(\S+)\s+(?:(\d+(?:\.\d+)?)s|\(cached\))"
                           r"(?:\s+\[no tests to run\])?"
                           r"(?:\s+coverage:\s+(\d+(?:\.\d+)?)%\s+of\s+statements(?:\s+in\s+.+)?)?$")
failed_regex = re.compile(r"^FAIL\s+(\S+)\s+\[(build|setup) failed\]$")
status_regex = re.compile(r"^(PASS|FAIL)$")
coverage_regex = re.compile(r"^coverage:\s+(\d+(?:\.\d+)?)%\s+of\s+statements(?:\s+in\s+.+)?$")
benchmark_regex = re.compile(r"^(Benchmark[^\s-]+)(?:-\d+\s+|\s+)(\d+)\s+(\d+|\d+\.\d+)\sns/op"
                             r"(?:\s+(\d+)\sB/op)?(?:\s+(\d+)\sallocs/op)?")
build_header_regex = re.compile(r"^# ([^\s\[\]]+)(?:\s+\[[^\]]+\])?$")
panic_regex = re.compile(r"^panic: ")

# go1.14+ prefixes t.Log() output with the source location, indented
# by 4 spaces per subtest level:
log_header_regex = re.compile(r"^((?:    )+)(\S+\.go:\d+: .*)$")
# Before go1.14, t.Log() output was printed after the result line,
# indented with a tab:
log_tab_regex = re.compile(r"^(?:    )*\t(.*)$")

line_kinds = [
    (RUN, run_regex),
    (PAUSE, pause_regex),
    (CONT, cont_regex),
    (RESULT, result_regex),
    (SUMMARY, summary_regex),
    (BUILD_FAILED, failed_regex), # or SETUP_FAILED, see classify_line()
    (STATUS, status_regex),
    (COVERAGE, coverage_regex),
    (BENCHMARK, benchmark_regex),
    (BUILD_HEADER, build_header_regex),
    (PANIC, panic_regex),
]

def classify_line(line):
    """Decide which kind of line this is.

    Args:
        line (str): A line of 'go test' output, with trailing
            whitespace already removed.

    Returns:
        (kind, match): One of the line kind constants, and the regex
            match object for the line (None for PLAIN lines).
    """
    for kind, regex in line_kinds:
        m = regex.match(line)
        if m is None:
            continue
        if kind == BUILD_FAILED and m.group(2) == 'setup':
            kind = SETUP_FAILED
        return kind, m
    return PLAIN, None

class GoTestParser:
    """Builds a Report from the lines of one 'go test' output stream.

    Args:
        package_name (str, optional): Name to use for every package in
            the report, instead of the names found in the output. Needed
            for the output of a compiled test binary, which does not
            print an 'ok <pkg>' summary.
        verbose (bool, optional): Warn about inconsistent markers that
            the parser had to work around.
    """

    def __init__(self, package_name=None, verbose=False):
        self.package_name = package_name
        self.verbose = verbose
        self.report = Report()

        # Build diagnostics, kept across packages since 'go test'
        # prints them before running anything:
        self.captures = OrderedDict() # package name -> list of lines
        self.captured_package = None

        self._reset_package()

    def _reset_package(self):
        self.tests = []
        self.open_tests = {} # name -> list of open Test, oldest first
        self.context = None # Test receiving plain output
        self.context_done = False # context already printed its result
        self.log_indent = None # indentation of a go1.14+ log block
        self.benchmarks = []
        self.coverage_pct = None
        self.package_output = [] # lines not attributed to any test
        self.panic_test = None

    def _open_test(self, name):
        test = Test(name=name)
        self.tests.append(test)
        if name not in self.open_tests:
            self.open_tests[name] = []
        self.open_tests[name].append(test)
        return test

    def _close_test(self, name, result, duration):
        if name in self.open_tests:
            test = self.open_tests[name].pop(0)
            if len(self.open_tests[name]) == 0:
                del self.open_tests[name]
        else:
            if self.verbose:
                warn_print("result for test '{}' which was never started" \
                           .format(name))
            test = Test(name=name)
            self.tests.append(test)
        test.result = result
        test.duration = duration
        return test

    def _find_test(self, name):
        if name in self.open_tests:
            return self.open_tests[name][0]
        for test in reversed(self.tests):
            if test.name == name:
                return test
        if self.verbose:
            warn_print("output for test '{}' which was never started" \
                       .format(name))
        return self._open_test(name)

    def _close_package(self, name, duration=None):
        for name_tests in self.open_tests.values():
            for test in name_tests:
                # XXX Test never reported a result, e.g. due to a panic
                # or a timeout in a parallel test.
                test.result = ERROR
        if self.package_name is not None:
            name = self.package_name
        package = self.report.add_package(name, duration, tests=self.tests,
                                          benchmarks=self.benchmarks,
                                          coverage_pct=self.coverage_pct)
        if duration is None:
            package.duration = package.test_duration()
        self._reset_package()

    def _add_failed_package(self, name, test_name):
        output = self.captures.pop(name, [])
        test = Test(name=test_name, result=ERROR, duration=0, output=output)
        if self.package_name is not None:
            name = self.package_name
        self.report.add_package(name, 0, tests=[test])

    def _output_line(self, line):
        """Strip the indentation that 'go test' adds to test log output."""
        if self.log_indent is not None \
           and line.startswith(self.log_indent + "    "):
            return line[len(self.log_indent):]
        m = log_header_regex.match(line)
        if m is not None:
            self.log_indent = m.group(1)
            return m.group(2)
        self.log_indent = None
        m = log_tab_regex.match(line)
        if m is not None:
            return m.group(1)
        return line

    def _add_plain_line(self, line):
        if self.captured_package is not None:
            if line == "":
                self.captured_package = None
            else:
                self.captures[self.captured_package].append(line)
        elif self.panic_test is not None:
            self.panic_test.output.append(line)
        elif self.context is not None \
             and (not self.context_done or self._is_log_line(line)):
            self.context.output.append(self._output_line(line))
        else:
            self.context = None
            self.package_output.append(line)

    def _is_log_line(self, line):
        """Check for the indented log output printed after a test result."""
        if self.log_indent is not None \
           and line.startswith(self.log_indent + "    "):
            return True
        return log_tab_regex.match(line) is not None \
            or log_header_regex.match(line) is not None

    def parse_line(self, line):
        """Update the parser state with one decoded line of output."""
        kind, m = classify_line(line)
        if kind == BUILD_HEADER and len(self.open_tests) > 0:
            # Test output that happens to look like '# <pkg>':
            kind = PLAIN
        if kind == PLAIN:
            self._add_plain_line(line)
            return

        # Any marker ends the diagnostics for a build failure:
        self.captured_package = None

        if kind == RUN:
            self.context = self._open_test(m.group(1))
            self.context_done = False
            self.log_indent = None
        elif kind == PAUSE:
            pass
        elif kind == CONT:
            self.context = self._find_test(m.group(1))
            self.context_done = False
            self.log_indent = None
        elif kind == RESULT:
            result, name = m.group(1), m.group(2)
            self.context = self._close_test(name, result,
                                            parse_seconds(m.group(3)))
            self.context_done = True
            self.log_indent = None
        elif kind == SUMMARY:
            package, seconds, coverage = m.group(2), m.group(3), m.group(4)
            if coverage is not None:
                self.coverage_pct = coverage
            duration = 0 if seconds is None else parse_seconds(seconds) # (cached)
            # The package compiled, so any diagnostics were only warnings:
            self.captures.pop(package, None)
            self._close_package(package, duration)
        elif kind == BUILD_FAILED:
            self._add_failed_package(m.group(1), '[build failed]')
        elif kind == SETUP_FAILED:
            self._add_failed_package(m.group(1), '[setup failed]')
        elif kind == STATUS:
            self.context = None
            self.log_indent = None
        elif kind == COVERAGE:
            self.coverage_pct = m.group(1)
        elif kind == BENCHMARK:
            bytes_per_op, allocs_per_op = m.group(4), m.group(5)
            self.benchmarks.append(Benchmark(
                name=m.group(1),
                duration=parse_nanoseconds(m.group(3)),
                iterations=int(m.group(2)),
                bytes_per_op=None if bytes_per_op is None else int(bytes_per_op),
                allocs_per_op=None if allocs_per_op is None else int(allocs_per_op),
                output=[line]))
        elif kind == BUILD_HEADER:
            package = m.group(1)
            if package not in self.captures:
                self.captures[package] = []
            self.captured_package = package
        elif kind == PANIC:
            if self.panic_test is None:
                self.panic_test = Test(name='Error', result=ERROR,
                                       output=self.package_output)
                self.tests.append(self.panic_test)
                self.package_output = []
            self.panic_test.output.append(line)

    def finish(self):
        """Finalize any package still in progress at the end of input.

        Returns:
            The completed Report.
        """
        if len(self.tests) > 0 or len(self.benchmarks) > 0 \
           or self.coverage_pct is not None:
            # XXX A compiled test binary prints no 'ok <pkg>' summary.
            self._close_package("")
        self.captured_package = None
        # Diagnostics never confirmed by a '[build failed]' line:
        if self.verbose:
            for package in self.captures:
                warn_print("discarding output captured for package '{}'" \
                           .format(package))
        self.captures = OrderedDict()
        return self.report

    def parse(self, data_stream):
        """Parse an entire stream of 'go test' output.

        Args:
            data_stream: Any iterable of str or UTF-8 encoded bytes lines,
                e.g. an open file.

        Returns:
            Report

        Raises:
            ReportError: Reading from data_stream failed.
        """
        for line in iter_lines_decode(data_stream):
            self.parse_line(line)
        return self.finish()

def parse(input_stream, package_name=None, verbose=False):
    """Parse 'go test -v' output into a Report.

    See GoTestParser for a description of the arguments.
    """
    parser = GoTestParser(package_name=package_name, verbose=verbose)
    return parser.parse(input_stream)
