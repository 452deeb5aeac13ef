# gojunit data model
# Copyright (C) 2019-2021 Red Hat Inc.
#
# This file is part of gojunit, and is free software. You can
# redistribute it and/or modify it under the terms of the GNU Lesser General
# Public License (LGPL); either version 3, or (at your option) any
# later version.
"""gojunit data model.

Provides classes representing the packages, tests and benchmarks
recovered from the output of 'go test'.

All durations are stored as integer nanoseconds.
"""

import json
from decimal import Decimal, InvalidOperation

from gojunit.utils import *

##################
# result codes   #
##################

PASS = 'PASS'
FAIL = 'FAIL'
SKIP = 'SKIP'
ERROR = 'ERROR'

valid_results = {PASS, FAIL, SKIP, ERROR}
"""set: Result codes a Test can carry."""

fail_results = {FAIL, ERROR}
"""set: Result codes counted as failures by Report.failures()."""

NANOSECONDS_PER_SECOND = 10**9

def parse_seconds(text):
    """Convert a decimal number of seconds (e.g. '0.160') to nanoseconds."""
    try:
        return int(Decimal(text) * NANOSECONDS_PER_SECOND)
    except InvalidOperation:
        raise ReportError("malformed duration '{}'".format(text))

def parse_nanoseconds(text):
    """Convert a decimal number of nanoseconds (e.g. '45.7') to an int.

    Fractional nanoseconds are truncated.
    """
    try:
        return int(Decimal(text))
    except InvalidOperation:
        raise ReportError("malformed duration '{}'".format(text))

def format_seconds(duration):
    """Format a duration in nanoseconds as seconds with 9 decimals."""
    return "{}.{:09d}".format(duration // NANOSECONDS_PER_SECOND,
                              duration % NANOSECONDS_PER_SECOND)

###################################
# Report, Package, Test, Benchmark #
###################################

class ReportItem(dict):
    """Base class for the report data model.

    Subclasses dict to support reading and writing fields as dict
    fields or as attributes. All fields are serialized by to_json().
    """

    field_defaults = {}
    """dict: Fields populated when an item is created, with default values.

    Mutable defaults (lists) are copied for each new item."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        for field, default in self.field_defaults.items():
            if field in self:
                continue
            if isinstance(default, list):
                default = list(default)
            self[field] = default

    def _serialize_field(self, field, value):
        if isinstance(value, list):
            return [v.to_json(as_dict=True) if isinstance(v, ReportItem) else v
                    for v in value]
        return value

    def to_json(self, pretty=False, as_dict=False):
        """Serialize the item to a JSON string or dict.

        Args:
            pretty (bool or int, optional): Output the JSON as a properly
                indented string instead of as a compact string. Passing an
                int configures the indentation level (default 4).
            as_dict (bool, optional): Return a dict instead of a string.
        """
        serialized = {}
        for field, value in self.items():
            serialized[field] = self._serialize_field(field, value)
        if as_dict:
            return serialized
        elif pretty:
            indent = pretty if isinstance(pretty, int) \
                and not isinstance(pretty, bool) else 4
            return json.dumps(serialized, indent=indent)
        else:
            return json.dumps(serialized)

    # XXX: Protocol to support reading/writing arbitrary JSON fields as attrs:

    def __getattr__(self, field):
        # XXX Called if attribute is not found -- look in JSON dict.
        try:
            return self[field]
        except KeyError:
            raise AttributeError(field)

    def __setattr__(self, field, value):
        self[field] = value

    def __delattr__(self, field):
        try:
            del self[field]
        except KeyError:
            raise AttributeError(field)

class Test(ReportItem):
    """Represents a single test or subtest within a Package.

    Attributes:
        name (str): The name of the test. Subtest names include the names
            of their parents, separated by '/'.
        duration (int): Duration of the test in nanoseconds.
        result (str): Result code (PASS, FAIL, SKIP or ERROR), or None while
            the test is still running.
        output (list of str): Lines of output captured for this test.
        problems (str, optional): After running validate(), will contain a
            description of any problems that make this Test unsuitable
            for output.
    """

    field_defaults = {'name': None, 'duration': 0, 'result': None,
                      'output': []}

    def validate(self):
        """Verify that this Test includes the fields required for output.

        If there are problems, store an explanation in self.problems.

        Returns:
            bool
        """
        valid, problems = True, ""
        if not isinstance(self.name, str):
            valid = False
            problems += "missing/incorrect name, "
        if self.result not in valid_results:
            valid = False
            problems += "missing/incorrect result, "
        if not isinstance(self.duration, int) or self.duration < 0:
            valid = False
            problems += "incorrect duration, "
        if problems.endswith(", "):
            problems = problems[:-2]
        if not valid:
            self.problems = problems
        return valid

class Benchmark(ReportItem):
    """Represents a single benchmark sample within a Package.

    Attributes:
        name (str): Name of the benchmark, without the GOMAXPROCS suffix.
        duration (int): Time per operation, in nanoseconds.
        iterations (int): Number of iterations the sample ran.
        bytes_per_op (int or None): Bytes allocated per operation,
            if reported (-benchmem).
        allocs_per_op (int or None): Allocations per operation,
            if reported (-benchmem).
        output (list of str): The benchmark line(s) as printed.
    """

    field_defaults = {'name': None, 'duration': 0, 'iterations': 0,
                      'bytes_per_op': None, 'allocs_per_op': None,
                      'output': []}

class Package(ReportItem):
    """Represents the results of one compiled test binary.

    Attributes:
        name (str): Import path of the package.
        duration (int): Time reported for the whole package, in nanoseconds.
        tests (list of Test): Tests in the order they were started.
        benchmarks (list of Benchmark): Benchmark samples in the order
            they were reported.
        coverage_pct (str or None): Statement coverage percentage, if any.
    """

    field_defaults = {'name': None, 'duration': 0, 'tests': [],
                      'benchmarks': [], 'coverage_pct': None}

    def failures(self):
        """Number of tests in this package that failed or errored."""
        return sum(1 for test in self.tests if test.result in fail_results)

    def test_duration(self):
        """Sum of the durations of all tests in this package."""
        return sum(test.duration for test in self.tests)

class Report(ReportItem):
    """The result of parsing one 'go test' output stream.

    Attributes:
        packages (list of Package): Packages in the order they completed.
    """

    field_defaults = {'packages': []}

    def add_package(self, name, duration=0, **kwargs):
        """Append a new Package object to the Report.

        Any additional keyword arguments (e.g. tests) will be added to the
        Package object.

        Returns:
            The newly created Package object.
        """
        package = Package(name=name, duration=duration, **kwargs)
        self.packages.append(package)
        return package

    def failures(self):
        """Number of tests in all packages that failed or errored."""
        return sum(package.failures() for package in self.packages)

    def tests(self):
        """Iterate all tests in all packages."""
        for package in self.packages:
            for test in package.tests:
                yield test
