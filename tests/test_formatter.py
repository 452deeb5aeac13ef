import io
import json
import os
import xml.etree.ElementTree as ET

import pytest

import gojunit.formatter
from gojunit.config import ReportOptions
from gojunit.formatter import *
from gojunit.model import *
from gojunit.parser import parse

testdata_dir = os.path.join(os.path.dirname(__file__), 'testdata')

def make_opts(**kwargs):
    opts = ReportOptions()
    opts.go_version = '1.21.0'
    for k, v in kwargs.items():
        setattr(opts, k, v)
    return opts

def format_fixture(name, package_name=None, **kwargs):
    with open(os.path.join(testdata_dir, name), 'rb') as f:
        report = parse(f, package_name=package_name)
    return format_report(report, **kwargs)

def format_report(report, **kwargs):
    out = io.StringIO()
    JUnitFormatter(make_opts(**kwargs)).write_report(report, out)
    return out.getvalue()

def suites(xml):
    return ET.fromstring(xml.encode('utf-8')).findall('testsuite')

def test_pass_document():
    xml = format_fixture('pass.txt')
    assert xml == '''<?xml version="1.0" encoding="UTF-8"?>
<testsuites>
\t<testsuite tests="2" failures="0" errors="0" skipped="0" time="0.160000000" name="package/name">
\t\t<properties>
\t\t\t<property name="go.version" value="1.21.0" />
\t\t</properties>
\t\t<testcase classname="name" name="TestZ" time="0.060000000" />
\t\t<testcase classname="name" name="TestA" time="0.100000000" />
\t</testsuite>
</testsuites>
'''

def test_no_xml_header():
    xml = format_fixture('pass.txt', no_xml_header=True)
    assert xml.startswith('<testsuites>\n')

def test_failure_document():
    xml = format_fixture('fail.txt')
    assert '''\t\t<testcase classname="name" name="TestOne" time="0.020000000">
\t\t\t<failure message="Failed" type="">file_test.go:11: Error message
file_test.go:11: Longer
\terror
\tmessage.</failure>
\t\t</testcase>
''' in xml
    suite = suites(xml)[0]
    assert suite.get('tests') == '2'
    assert suite.get('failures') == '1'
    assert suite.get('errors') == '0'
    assert suite.get('time') == '0.151000000'

def test_skipped_message():
    suite = suites(format_fixture('skip.txt'))[0]
    assert suite.get('skipped') == '1'
    skipped = suite.find('testcase/skipped')
    assert skipped.get('message') == "file_test.go:11: Skip message"

def test_errors_counted():
    suite_list = suites(format_fixture('syntax_error.txt'))
    assert [s.get('name') for s in suite_list] == [
        'package/name/passing1', 'package/name/passing2',
        'package/name/failing1', 'package/name/failing2',
        'package/name/setupfailing1']
    failing1 = suite_list[2]
    assert failing1.get('errors') == '1'
    assert failing1.get('failures') == '0'
    testcase = failing1.find('testcase')
    assert testcase.get('name') == '[build failed]'
    assert testcase.get('classname') == 'failing1'
    error = testcase.find('error')
    assert error.get('message') == 'Error'
    assert error.get('type') == ''
    assert error.text == "failing1/failing_test.go:15: undefined: x"

def test_pass_output_in_comment():
    report = Report()
    report.add_package('package/name', tests=[
        Test(name='TestA', result=PASS, output=["hello", "world"])])
    xml = format_report(report)
    assert "<!--hello\nworld-->" in xml

def test_comment_safe():
    assert comment_safe("a -- b") == "a - - b"
    assert comment_safe("---") == "- - - "
    assert comment_safe("trailing-") == "trailing- "

def test_coverage_property():
    suite = suites(format_fixture('coverage.txt'))[0]
    props = [(p.get('name'), p.get('value')) for p in suite.findall('properties/property')]
    assert props == [('go.version', '1.21.0'), ('coverage.statements.pct', '13.37')]

def test_go_version_fallback(monkeypatch):
    monkeypatch.setattr(gojunit.formatter, 'go_version', lambda: None)
    suite = suites(format_fixture('pass.txt', go_version=None))[0]
    assert suite.find('properties/property').get('value') == 'unknown'

def test_go_version_detected(monkeypatch):
    monkeypatch.setattr(gojunit.formatter, 'go_version', lambda: 'go1.22.1')
    suite = suites(format_fixture('pass.txt', go_version=None))[0]
    assert suite.find('properties/property').get('value') == 'go1.22.1'

def test_full_package_classname():
    suite = suites(format_fixture('pass.txt', full_package_classname=True))[0]
    assert suite.find('testcase').get('classname') == 'package/name'

@pytest.mark.parametrize("name,expected", [
    ('package/name', 'name'),
    ('name', 'name'),
    ('', ''),
    ('github.com/a/b', 'b'),
])
def test_package_classname(name, expected):
    assert package_classname(name) == expected

def test_benchmarks():
    suite = suites(format_fixture('bench.txt'))[0]
    assert suite.get('tests') == '2'
    assert [(t.get('name'), t.get('time')) for t in suite.findall('testcase')] == [
        ('BenchmarkParse', '0.000000604'),
        ('BenchmarkReadingList', '0.000001425'),
    ]

def test_benchmark_samples_averaged():
    suite = suites(format_fixture('benchcount.txt'))[0]
    assert suite.get('tests') == '2'
    assert [(t.get('name'), t.get('time')) for t in suite.findall('testcase')] == [
        ('BenchmarkNew', '0.000000352'),
        ('BenchmarkFew', '0.000000102'),
    ]

def test_mean_benchmarks():
    benchmarks = [Benchmark(name='B', duration=3), Benchmark(name='A', duration=1),
                  Benchmark(name='B', duration=4)]
    assert mean_benchmarks(benchmarks) == [('B', 3), ('A', 1)]

def test_strip_ansi_escape_codes():
    report = Report()
    report.add_package('p', tests=[
        Test(name='TestA', result=FAIL, output=["\x1b[31mred\x1b[0m text"])])
    plain = suites(format_report(report, strip_ansi_escape_codes=True))[0]
    assert plain.find('testcase/failure').text == "red text"
    colored = suites(format_report(report))[0]
    assert colored.find('testcase/failure').text == "[31mred[0m text"

def test_invalid_xml_characters_removed():
    report = Report()
    report.add_package('p', tests=[
        Test(name='TestA', result=FAIL, output=["bad\x00char\x07s"])])
    suite = suites(format_report(report))[0]
    assert suite.find('testcase/failure').text == "badchars"

def test_output_is_deterministic():
    with open(os.path.join(testdata_dir, 'go_1_7.txt'), 'rb') as f:
        report = parse(f)
    assert format_report(report) == format_report(report)

def test_invalid_test_rejected():
    report = Report()
    report.add_package('p', tests=[Test(name='TestA')])
    with pytest.raises(ReportError) as excinfo:
        format_report(report)
    assert "TestA" in excinfo.value.msg

def test_json_formatter():
    with open(os.path.join(testdata_dir, 'mixed.txt'), 'rb') as f:
        report = parse(f)
    out = io.StringIO()
    JSONFormatter(make_opts()).write_report(report, out)
    data = json.loads(out.getvalue())
    assert [p['name'] for p in data['packages']] == ['package/name1', 'package/name2']
    assert data['packages'][1]['tests'][0]['result'] == 'FAIL'

def test_get_formatter():
    assert isinstance(get_formatter(make_opts()), JUnitFormatter)
    assert isinstance(get_formatter(make_opts(output_format='json')), JSONFormatter)
    with pytest.raises(ReportError):
        get_formatter(make_opts(output_format='yaml'))
