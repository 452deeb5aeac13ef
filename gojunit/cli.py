# gojunit command line interface
# Copyright (C) 2019-2021 Red Hat Inc.
#
# This file is part of gojunit, and is free software. You can
# redistribute it and/or modify it under the terms of the GNU Lesser General
# Public License (LGPL); either version 3, or (at your option) any
# later version.

import io
import os
import sys
from tqdm import tqdm

from gojunit.config import ReportOptions
from gojunit.formatter import get_formatter
from gojunit.parser import GoTestParser
from gojunit.utils import *

info = '''Reads the output of 'go test -v' and writes a JUnit XML report.

Example: go test -v ./... 2>&1 | go-junit-report --set-exit-code > report.xml'''

def read_report(opts):
    """Parse the input selected by opts.input_path (default stdin).

    Raises:
        ReportError: The input could not be read.
    """
    parser = GoTestParser(package_name=opts.package_name,
                          verbose=opts.verbose)
    show_progress = opts.progress and sys.stderr.isatty()
    if opts.input_path is None or opts.input_path == '-':
        # XXX read bytes where possible, invalid UTF-8 is replaced later
        stream = getattr(sys.stdin, 'buffer', sys.stdin)
        return parser.parse(tqdm(iterable=stream, desc="Reading input",
                                 leave=False, unit=' lines',
                                 disable=not show_progress))
    try:
        f = open(opts.input_path, 'rb')
    except OSError as e:
        raise ReportError("error reading input: {}".format(e)) from e
    with f:
        return parser.parse(tqdm(iterable=f, desc="Reading input",
                                 leave=False, unit=' lines',
                                 disable=not show_progress))

def write_report(opts, report):
    """Format report and write it to opts.output_path (default stdout).

    Raises:
        ReportError: The report could not be formatted or written.
    """
    formatter = get_formatter(opts)
    # No partial output on failure:
    buf = io.StringIO()
    try:
        formatter.write_report(report, buf)
    except ReportError as err:
        raise ReportError("error writing output: {}".format(err.msg)) from err
    try:
        if opts.output_path is None or opts.output_path == '-':
            sys.stdout.write(buf.getvalue())
            sys.stdout.flush()
        else:
            with open(opts.output_path, 'w', encoding='utf-8') as f:
                f.write(buf.getvalue())
    except OSError as e:
        raise ReportError("error writing output: {}".format(e)) from e

def main(argv=None):
    """Run go-junit-report.

    Args:
        argv (list of str, optional): Command line, including the
            program name. Defaults to sys.argv.

    Returns:
        int: The exit status.
    """
    if argv is None:
        argv = sys.argv
    opts = ReportOptions(usage_str=info)
    opts.parse_cmdline(argv, optional_args=['input_path'])
    opts.parse_environment(os.environ)
    if opts.should_print_help:
        opts.print_help()
        return 0
    try:
        if opts.config_path is not None:
            opts.parse_config(opts.config_path)
        get_formatter(opts) # check output_format before reading input
    except ReportError as err:
        err_print(err.msg)
        return 1

    try:
        report = read_report(opts)
    except ReportError as err:
        err_print(err.msg)
        return 1

    try:
        write_report(opts, report)
    except ReportError as err:
        err_print(err.msg)
        return 1

    if opts.set_exit_code and report.failures() > 0:
        return 1
    return 0
