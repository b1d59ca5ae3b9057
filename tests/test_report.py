import json

import pytest

from sitecheck.model import AssertionResult, CheckOutcome, Summary
from sitecheck.report import (
    ReportWriteError,
    format_status,
    format_summary,
    format_table_header,
    report_entry,
    report_filename,
    truncate_url,
    write_report,
)

FAILED_ASSERTION = AssertionResult(
    expected_header="content-type",
    expected_value="text/html",
    passed=False,
    actual_value="application/json",
    failure_detail="Header 'content-type' assertion failed: expected 'text/html', got 'application/json'",
)


def make_outcome(index=0, status=200, error=None, assertion=None):
    return CheckOutcome(
        sequence_index=index,
        url=f"http://site{index}.test/",
        status_code=None if error else status,
        error=error,
        response_time_ms=42,
        timestamp=1700000000,
        header_assertion=assertion,
    )


@pytest.mark.parametrize(
    "url,expected",
    [
        ("http://short.test/", "http://short.test/"),
        ("http://www.twenty-nine.test/x", "http://www.twenty-nine.te..."),
        ("http://a.test/" + "x" * 14, "http://a.test/" + "x" * 14),
        ("http://a.test/" + "x" * 15, "http://a.test/" + "x" * 11 + "..."),
    ],
)
def test_truncate_url(url, expected):
    assert truncate_url(url) == expected
    assert len(truncate_url(url)) <= 28


def test_format_status():
    assert format_status(make_outcome(status=404)) == "404"
    assert format_status(make_outcome(error="timed out")) == "ERR: timed out"
    assert format_status(make_outcome(error="dns error: failed to lookup address")) == "ERR: dns error: failed..."
    assert format_status(make_outcome(status=200, assertion=FAILED_ASSERTION)) == "200 (assert failed)"


def test_table_header():
    heading, rule = format_table_header().splitlines()
    assert heading.split(" | ")[0].strip() == "URL"
    assert "Timestamp (EpochS)" in heading
    assert set(rule) == {"-"}


def test_report_entries():
    passed = AssertionResult("content-type", "text/html", passed=True, actual_value="text/html")

    assert report_entry(make_outcome(status=200)) == {
        "url": "http://site0.test/",
        "status": 200,
        "responseTimeMs": 42,
        "timestampEpochS": 1700000000,
    }
    assert report_entry(make_outcome(status=503, assertion=passed))["status"] == 503
    assert report_entry(make_outcome(error="[Errno 111] Connection refused"))["status"] == (
        "[Errno 111] Connection refused"
    )


def test_failed_assertion_entry_keeps_http_status():
    entry = report_entry(make_outcome(status=404, assertion=FAILED_ASSERTION))

    assert entry["status"] == (
        "Header 'content-type' assertion failed: expected 'text/html', got 'application/json' (HTTP 404)"
    )
    assert entry["httpStatus"] == 404


def test_write_report(tmp_path):
    path = tmp_path / "status.json"
    outcomes = [make_outcome(0), make_outcome(1, error="timed out"), make_outcome(2, assertion=FAILED_ASSERTION)]

    write_report(outcomes, str(path))

    written = json.loads(path.read_text(encoding="utf-8"))
    assert [entry["url"] for entry in written] == ["http://site0.test/", "http://site1.test/", "http://site2.test/"]
    assert [entry["status"] for entry in written][:2] == [200, "timed out"]
    assert "httpStatus" not in written[0]
    assert written[2]["httpStatus"] == 200


def test_report_filename():
    assert report_filename(1, periodic=False) == "status.json"
    assert report_filename(3, periodic=True) == "status_round_3.json"


def test_format_summary():
    table = format_summary(Summary(3, 2, 1, 50, 100, 75.0))

    assert "Total URLs Attempted" in table
    assert "75.00" in table
    assert "Header Assertion Failures" not in table


def test_format_summary_without_successes():
    table = format_summary(Summary(2, 0, 2, None, None, None))

    assert "Min Response Time" not in table
    assert table.endswith("No successful checks to calculate response time statistics.")


def test_write_report_to_missing_directory(tmp_path):
    with pytest.raises(ReportWriteError, match="Unable to write report"):
        write_report([make_outcome(0)], str(tmp_path / "missing" / "status.json"))
