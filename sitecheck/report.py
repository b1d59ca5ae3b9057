"""
Formatting of check outcomes: live console lines, the round summary table and the
JSON report written at the end of each round.
"""
import json
import os

from tabulate import tabulate

URL_COLUMN_WIDTH = 30
STATUS_COLUMN_WIDTH = 8
TIME_COLUMN_WIDTH = 12
URL_DISPLAY_LENGTH = URL_COLUMN_WIDTH - 2
ERROR_DISPLAY_LENGTH = 20

LINE_FORMAT = "{:<%d} | {:<%d} | {:<%d} | {}" % (URL_COLUMN_WIDTH, STATUS_COLUMN_WIDTH, TIME_COLUMN_WIDTH)


def truncate_url(url, max_len=URL_DISPLAY_LENGTH):
    if len(url) > max_len and max_len > 3:
        return url[: max_len - 3] + "..."
    return url


def format_status(outcome):
    if not outcome.succeeded:
        error = outcome.error
        if len(error) > ERROR_DISPLAY_LENGTH:
            error = error[: ERROR_DISPLAY_LENGTH - 3] + "..."
        return f"ERR: {error}"
    if outcome.assertion_failed:
        return f"{outcome.status_code} (assert failed)"
    return str(outcome.status_code)


def format_table_header():
    return "\n".join(
        [
            LINE_FORMAT.format("URL", "Status", "Time (ms)", "Timestamp (EpochS)"),
            "-" * 75,
        ]
    )


def format_outcome_line(outcome):
    return LINE_FORMAT.format(
        truncate_url(outcome.url), format_status(outcome), outcome.response_time_ms, outcome.timestamp
    )


def report_entry(outcome):
    """
    Convert an outcome to its JSON report form. A failed header assertion is reported as
    a status string carrying both the failure detail and the HTTP code, with the numeric
    code repeated in httpStatus so it isn't lost.
    """
    if not outcome.succeeded:
        status = outcome.error
    elif outcome.assertion_failed:
        status = f"{outcome.header_assertion.failure_detail} (HTTP {outcome.status_code})"
    else:
        status = outcome.status_code

    entry = {
        "url": outcome.url,
        "status": status,
        "responseTimeMs": outcome.response_time_ms,
        "timestampEpochS": outcome.timestamp,
    }
    if outcome.assertion_failed:
        entry["httpStatus"] = outcome.status_code
    return entry


class ReportWriteError(Exception):
    """
    A round's JSON report could not be written.
    """


def write_report(outcomes, path):
    try:
        with open(path, "w", encoding="utf-8") as report_file:
            json.dump([report_entry(outcome) for outcome in outcomes], report_file, indent=2)
            report_file.write("\n")
    except OSError as exc:
        raise ReportWriteError(f"Unable to write report {path}: {exc}") from exc


def report_filename(round_number, periodic):
    if periodic:
        return f"status_round_{round_number}.json"
    return "status.json"


def report_path(output_dir, round_number, periodic):
    return os.path.join(output_dir, report_filename(round_number, periodic))


def format_summary(summary):
    rows = [
        ("Total URLs Attempted", summary.total_attempted),
        ("Successful Checks", summary.success_count),
        ("Failed Checks", summary.failure_count),
    ]
    if summary.assertion_failure_count:
        rows.append(("Header Assertion Failures", summary.assertion_failure_count))
    if summary.success_count:
        rows.extend(
            [
                ("Min Response Time (ms)", summary.min_response_time_ms),
                ("Max Response Time (ms)", summary.max_response_time_ms),
                ("Average Response Time (ms)", f"{summary.mean_response_time_ms:.2f}"),
            ]
        )
    table = tabulate(rows, headers=["Round Summary", ""], tablefmt="psql", disable_numparse=True)
    if summary.total_attempted and not summary.success_count:
        table += "\nNo successful checks to calculate response time statistics."
    return table
