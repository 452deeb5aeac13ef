import json

import pytest

from gojunit.model import *

def test_attribute_protocol():
    test = Test(name='TestOne')
    assert test.name == 'TestOne'
    assert test['name'] == 'TestOne'
    assert test.result is None
    assert test.duration == 0
    test.result = PASS
    assert test['result'] == PASS
    del test.result
    assert 'result' not in test
    with pytest.raises(AttributeError):
        test.result
    with pytest.raises(AttributeError):
        del test.missing

def test_defaults_not_shared():
    first, second = Test(name='A'), Test(name='B')
    first.output.append("line")
    assert second.output == []

def test_add_package():
    report = Report()
    package = report.add_package('package/name', 160*10**6,
                                 tests=[Test(name='TestA', result=FAIL)])
    assert report.packages == [package]
    assert package.benchmarks == []
    assert package.coverage_pct is None
    assert package.failures() == 1

def test_failures_counts_fail_and_error():
    report = Report()
    report.add_package('a', tests=[Test(name='T1', result=PASS),
                                   Test(name='T2', result=FAIL)])
    report.add_package('b', tests=[Test(name='T3', result=ERROR),
                                   Test(name='T4', result=SKIP)])
    assert report.failures() == 2
    assert [test.name for test in report.tests()] == ['T1', 'T2', 'T3', 'T4']

def test_test_duration():
    package = Package(name='p', tests=[Test(name='A', duration=5),
                                       Test(name='B', duration=7)])
    assert package.test_duration() == 12

def test_to_json():
    report = Report()
    report.add_package('package/name', 1000, coverage_pct='50.0',
                       tests=[Test(name='TestA', result=PASS, duration=10,
                                   output=["hello"])],
                       benchmarks=[Benchmark(name='BenchmarkA', duration=604,
                                             iterations=100)])
    data = json.loads(report.to_json())
    assert data == report.to_json(as_dict=True)
    package = data['packages'][0]
    assert package['name'] == 'package/name'
    assert package['coverage_pct'] == '50.0'
    assert package['tests'] == [{'name': 'TestA', 'duration': 10,
                                 'result': 'PASS', 'output': ["hello"]}]
    assert package['benchmarks'][0]['bytes_per_op'] is None
    assert report.to_json(pretty=True).startswith('{\n    "packages"')
    assert report.to_json(pretty=2).startswith('{\n  "packages"')

def test_validate():
    assert Test(name='TestA', result=PASS).validate()
    test = Test(name='TestA')
    assert not test.validate()
    assert test.problems == "missing/incorrect result"
    test = Test(result='MAYBE', duration=-1)
    assert not test.validate()
    assert test.problems == \
        "missing/incorrect name, missing/incorrect result, incorrect duration"

@pytest.mark.parametrize("text,expected", [
    ("0.160", 160000000),
    ("0.06", 60000000),
    ("4.2", 4200000000),
    ("12", 12000000000),
    ("0.000000001", 1),
])
def test_parse_seconds(text, expected):
    assert parse_seconds(text) == expected

@pytest.mark.parametrize("text,expected", [
    ("604", 604),
    ("45.7", 45),
    ("0.26", 0),
])
def test_parse_nanoseconds(text, expected):
    assert parse_nanoseconds(text) == expected

def test_parse_seconds_malformed():
    with pytest.raises(ReportError):
        parse_seconds("fast")

@pytest.mark.parametrize("duration,expected", [
    (0, "0.000000000"),
    (160000000, "0.160000000"),
    (4200000000, "4.200000000"),
    (1, "0.000000001"),
])
def test_format_seconds(duration, expected):
    assert format_seconds(duration) == expected
