#! /usr/bin/env python3
# Convert 'go test -v' output to a JUnit XML report.
# Example: go test -v ./... 2>&1 | ./go-junit-report.py > report.xml

import sys

# Requires Python 3.
assert sys.version_info[0] >= 3

from gojunit.cli import main

if __name__=="__main__":
    sys.exit(main())
