# gojunit report formatters
# Copyright (C) 2019-2021 Red Hat Inc.
#
# This file is part of gojunit, and is free software. You can
# redistribute it and/or modify it under the terms of the GNU Lesser General
# Public License (LGPL); either version 3, or (at your option) any
# later version.
"""Formatters for writing a Report as JUnit XML or JSON."""

import xml.etree.ElementTree as ET

from gojunit.model import *
from gojunit.utils import *

xml_header = '<?xml version="1.0" encoding="UTF-8"?>\n'

# Formatter options and their values if not otherwise specified:
formatter_defaults = {
    'no_xml_header': False,
    'full_package_classname': False,
    'strip_ansi_escape_codes': False,
    'go_version': None,
}

def package_classname(package_name, full_package_classname=False):
    """Return the JUnit classname for tests in the named package.

    By default, only the last component of the import path is used.
    """
    if full_package_classname:
        return package_name
    idx = package_name.rfind('/')
    if idx > -1:
        return package_name[idx+1:]
    return package_name

def comment_safe(text):
    # '--' may not appear in an XML comment, nor may it end in '-':
    while '--' in text:
        text = text.replace('--', '- -')
    if text.endswith('-'):
        text += ' '
    return text

def mean_benchmarks(benchmarks):
    """Combine repeated samples (go test -count=N) of each benchmark.

    Returns:
        list of (name, mean duration) in order of first occurrence.
    """
    samples = {}
    for bench in benchmarks:
        if bench.name not in samples:
            samples[bench.name] = []
        samples[bench.name].append(bench.duration)
    return [(name, sum(durations) // len(durations))
            for name, durations in samples.items()]

class JUnitFormatter:
    """Writes a Report as a JUnit XML document.

    Args:
        opts: Options object (e.g. ReportOptions). Fields missing from
            opts are set to the values in formatter_defaults.
    """

    def __init__(self, opts):
        self.opts = opts
        for k, v in formatter_defaults.items():
            if k not in self.opts.__dict__:
                self.opts.__dict__[k] = v

    def go_version(self):
        if self.opts.go_version:
            return self.opts.go_version
        version = go_version()
        if version is None:
            return "unknown"
        return version

    def format_output(self, lines):
        text = "\n".join(lines)
        if self.opts.strip_ansi_escape_codes:
            text = strip_ansi(text)
        return xml_safe(text)

    def _add_testcase(self, testsuite, classname, test):
        testcase = ET.SubElement(testsuite, 'testcase')
        testcase.set('classname', classname)
        testcase.set('name', xml_safe(test.name))
        testcase.set('time', format_seconds(test.duration))

        output = self.format_output(test.output)
        if test.result == SKIP:
            skipped = ET.SubElement(testcase, 'skipped')
            skipped.set('message', output)
        elif test.result == ERROR:
            error = ET.SubElement(testcase, 'error')
            error.set('message', 'Error')
            error.set('type', '')
            error.text = output
        elif test.result == FAIL:
            failure = ET.SubElement(testcase, 'failure')
            failure.set('message', 'Failed')
            failure.set('type', '')
            failure.text = output
        elif output != "":
            testcase.append(ET.Comment(comment_safe(output)))

    def build_tree(self, report):
        """Build the <testsuites> element for a Report.

        Raises:
            ReportError: The report contains an invalid Test.
        """
        go_version = self.go_version()
        testsuites = ET.Element('testsuites')
        for package in report.packages:
            for test in package.tests:
                if not test.validate():
                    raise ReportError("invalid test '{}' in package '{}': {}" \
                                      .format(test.name, package.name,
                                              test.problems))
            benchmarks = mean_benchmarks(package.benchmarks)

            testsuite = ET.SubElement(testsuites, 'testsuite')
            testsuite.set('tests', str(len(package.tests) + len(benchmarks)))
            testsuite.set('failures', str(sum(1 for test in package.tests
                                              if test.result == FAIL)))
            testsuite.set('errors', str(sum(1 for test in package.tests
                                            if test.result == ERROR)))
            testsuite.set('skipped', str(sum(1 for test in package.tests
                                             if test.result == SKIP)))
            testsuite.set('time', format_seconds(package.duration))
            testsuite.set('name', xml_safe(package.name))

            properties = ET.SubElement(testsuite, 'properties')
            prop = ET.SubElement(properties, 'property')
            prop.set('name', 'go.version')
            prop.set('value', go_version)
            if package.coverage_pct is not None:
                prop = ET.SubElement(properties, 'property')
                prop.set('name', 'coverage.statements.pct')
                prop.set('value', package.coverage_pct)

            classname = xml_safe(package_classname(
                package.name, self.opts.full_package_classname))
            for test in package.tests:
                self._add_testcase(testsuite, classname, test)
            for name, duration in benchmarks:
                testcase = ET.SubElement(testsuite, 'testcase')
                testcase.set('classname', classname)
                testcase.set('name', name)
                testcase.set('time', format_seconds(duration))
        return testsuites

    def write_report(self, report, stream):
        """Write report to stream (a text file object)."""
        testsuites = self.build_tree(report)
        ET.indent(testsuites, space="\t")
        if not self.opts.no_xml_header:
            stream.write(xml_header)
        stream.write(ET.tostring(testsuites, encoding='unicode'))
        stream.write("\n")

class JSONFormatter:
    """Writes a Report as an indented JSON document."""

    def __init__(self, opts):
        self.opts = opts

    def write_report(self, report, stream):
        for test in report.tests():
            if not test.validate():
                raise ReportError("invalid test '{}': {}" \
                                  .format(test.name, test.problems))
        stream.write(report.to_json(pretty=True))
        stream.write("\n")

formatters = {
    'xml': JUnitFormatter,
    'json': JSONFormatter,
}

def get_formatter(opts):
    """Return a formatter for opts.output_format ('xml' or 'json')."""
    output_format = opts.__dict__.get('output_format', 'xml')
    if output_format not in formatters:
        raise ReportError("unknown output format '{}'".format(output_format))
    return formatters[output_format](opts)
