"""
sitecheck: checks the availability of websites concurrently, printing each result as it
arrives and writing a JSON report per round. Lines of a URL file from '#' onwards are
comments, and blank lines are ignored.
"""
import argparse
import http.client
import logging
import logging.config
import os
import signal
import socket
import sys
import threading
import time
import urllib.parse

from . import __version__, get_logging_config
from .aggregator import ResultAggregator
from .config import (
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_RETRIES,
    DEFAULT_RETRY_DELAY,
    DEFAULT_TIMEOUT,
    CheckerConfig,
    ConfigurationError,
)
from .model import AssertionResult, AttemptResult, CheckOutcome
from .pool import JobQueue, WorkerPool
from .report import ReportWriteError, format_summary, format_table_header, report_path, write_report

USER_AGENT = f"sitecheck/{__version__}"
REDIRECT_CODES = (301, 302, 303, 307, 308)


def describe_error(exc):
    return str(exc) or exc.__class__.__name__


def request_target(split):
    target = split.path
    if not target.startswith("/"):
        target = "/" + target
    if split.query:
        target += f"?{split.query}"
    return target


class Checker(object):
    """
    Makes single request attempts. Retrying is left to the caller.
    """

    def __init__(self, timeout=DEFAULT_TIMEOUT, header_assertion=None, max_redirects=DEFAULT_MAX_REDIRECTS):
        self.logger = logging.getLogger(__name__ + ".Checker")
        self.timeout = timeout
        self.header_assertion = header_assertion
        self.max_redirects = max_redirects

    def attempt(self, url) -> AttemptResult:
        """
        Runs one attempt at a URL. If the connection or request causes an exception,
        it'll be converted to an AttemptResult with error describing the exception,
        rather than being raised out of this method.
        """
        start_time = time.perf_counter()
        try:
            status, headers = self.do_request(url)
        except Exception as exc:
            elapsed = time.perf_counter() - start_time
            # It's expected that sometimes there will be connect errors, so we only log at DEBUG level to avoid noise:
            self.logger.debug("Exception checking %s", url, exc_info=True)
            return AttemptResult(
                url=url,
                status_code=None,
                error=describe_error(exc),
                response_time_ms=int(elapsed * 1000.0),
                timestamp=int(time.time()),
            )
        elapsed = time.perf_counter() - start_time

        self.logger.debug("Check for %s returned %d in %f secs", url, status, elapsed)

        return AttemptResult(
            url=url,
            status_code=status,
            error=None,
            response_time_ms=int(elapsed * 1000.0),
            timestamp=int(time.time()),
            header_assertion=self.check_header(headers),
        )

    def do_request(self, url):
        """
        Do the work of connecting and requesting a URL, following redirects. Returns the
        final status code and response headers. This method is allowed to raise an exception
        on connection errors, to be caught and reported.

        The timeout covers the whole attempt, redirects included: each hop only gets
        whatever time the earlier hops left over.
        """
        deadline = time.monotonic() + self.timeout
        for hop in range(self.max_redirects + 1):
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise socket.timeout("timed out")
            split = urllib.parse.urlsplit(url)
            if split.scheme == "http":
                client = http.client.HTTPConnection(split.netloc, timeout=remaining)
            elif split.scheme == "https":
                client = http.client.HTTPSConnection(split.netloc, timeout=remaining)
            else:
                raise ValueError(f"URL {url} is unsupported - only http and https schemes are supported")
            if not split.hostname:
                raise ValueError(f"URL {url} has no host")

            try:
                client.request("GET", request_target(split), headers={"User-Agent": USER_AGENT})
                resp = client.getresponse()
                # Socket timeouts apply per operation, not to the whole response
                if time.monotonic() > deadline:
                    raise socket.timeout("timed out")
                location = resp.getheader("Location")
                if resp.status in REDIRECT_CODES and location and hop < self.max_redirects:
                    self.logger.debug("%s redirected with %d to %s", url, resp.status, location)
                    url = urllib.parse.urljoin(url, location)
                    continue
                return resp.status, resp.msg
            finally:
                client.close()

    def check_header(self, headers):
        if self.header_assertion is None:
            return None
        name, expected = self.header_assertion
        # Header lookup on the parsed message is case-insensitive
        actual = headers.get(name)
        if actual is None:
            detail = f"Header '{name}' assertion failed: header not found"
        elif actual != expected:
            detail = f"Header '{name}' assertion failed: expected '{expected}', got '{actual}'"
        else:
            detail = None
        return AssertionResult(
            expected_header=name,
            expected_value=expected,
            passed=detail is None,
            actual_value=actual,
            failure_detail=detail,
        )


class RetryPolicy(object):
    def __init__(self, max_additional_attempts=DEFAULT_RETRIES, delay=DEFAULT_RETRY_DELAY, sleep=time.sleep):
        self.logger = logging.getLogger(__name__ + ".RetryPolicy")
        self.max_additional_attempts = max(0, max_additional_attempts)
        self.delay = delay
        self.sleep = sleep

    def execute_with_retries(self, job, checker) -> CheckOutcome:
        """
        Attempt a job until an HTTP status is obtained or the attempts run out. Any status
        code, 404 and 500 included, ends the job; only attempts that got no response at all
        are retried. The outcome describes the final attempt.
        """
        max_attempts = 1 + self.max_additional_attempts
        attempt_number = 0
        while True:
            attempt_number += 1
            result = checker.attempt(job.url)
            if result.succeeded or attempt_number >= max_attempts:
                break
            self.logger.debug(
                "Attempt %d/%d for %s failed: %s", attempt_number, max_attempts, job.url, result.error
            )
            self.sleep(self.delay)
        return CheckOutcome.from_attempt(job, result, attempts=attempt_number)


class WebsiteChecker(object):
    def __init__(self, config, stream=None):
        self.logger = logging.getLogger(__name__ + ".WebsiteChecker")
        self.config = config
        self.stream = stream if stream is not None else sys.stdout
        self.checker = Checker(
            timeout=config.timeout,
            header_assertion=config.header_assertion,
            max_redirects=config.max_redirects,
        )
        self.retry_policy = RetryPolicy(max_additional_attempts=config.retries, delay=config.retry_delay)
        self.stopping = threading.Event()

    @property
    def periodic(self):
        return self.config.period is not None

    def emit(self, text):
        self.stream.write(text + "\n")
        self.stream.flush()

    def check_job(self, job) -> CheckOutcome:
        return self.retry_policy.execute_with_retries(job, self.checker)

    def run_round(self, round_number=1):
        """
        Check every configured URL once, with a fresh queue, pool and aggregator, then write
        the round's report and print its summary.
        """
        if self.periodic:
            self.emit(f"--- Starting Round {round_number} ---")
        self.emit(format_table_header())

        queue = JobQueue.enqueue_all(self.config.urls)
        aggregator = ResultAggregator(expected_count=len(self.config.urls), stream=self.stream)
        WorkerPool(self.config.worker_count).run(queue, self.check_job, aggregator.on_outcome)
        report = aggregator.finalize()

        path = report_path(self.config.output_dir, round_number, self.periodic)
        write_report(report.outcomes, path)
        self.emit(f"\nResults for this round written to {path}")
        self.emit(format_summary(report.summary) + "\n")
        return report

    def run_checker(self):
        """
        Run a single round, or in periodic mode a round every period seconds until stopped.
        Returns the number of rounds run.
        """
        round_number = 0
        while not self.stopping.is_set():
            round_number += 1
            last_check = time.monotonic()
            self.run_round(round_number)
            if not self.periodic:
                break
            time_to_sleep = (last_check + self.config.period) - time.monotonic()
            if time_to_sleep > 0 and not self.stopping.is_set():
                self.emit(f"Waiting {time_to_sleep:.1f} seconds before next round...\n")
                self.stopping.wait(time_to_sleep)
        return round_number

    def stop(self):
        self.stopping.set()
        self.logger.info("Shutting down checker...")


def build_arg_parser():
    parser = argparse.ArgumentParser(prog="sitecheck", description=__doc__)
    parser.add_argument("urls", nargs="*", metavar="URL", help="URL to check")
    parser.add_argument("--file", help="Path to a text file containing URLs, one per line")
    parser.add_argument(
        "--workers", type=int, help="Number of worker threads (default: number of logical CPU cores)"
    )
    parser.add_argument(
        "--timeout", type=float, default=DEFAULT_TIMEOUT, help="Per-attempt timeout in seconds (default: %(default)s)"
    )
    parser.add_argument(
        "--retries",
        type=int,
        default=DEFAULT_RETRIES,
        help="Number of additional attempts after a failed attempt (default: %(default)s)",
    )
    parser.add_argument(
        "--retry-delay",
        type=float,
        default=DEFAULT_RETRY_DELAY,
        help="Seconds to wait between attempts (default: %(default)s)",
    )
    parser.add_argument(
        "--period",
        type=int,
        help="Check the URLs every PERIOD seconds until interrupted, writing status_round_N.json each round",
    )
    parser.add_argument(
        "--assert-header",
        metavar="'NAME: VALUE'",
        help="Check each response has this header (name case-insensitive) with exactly this value",
    )
    parser.add_argument(
        "--max-redirects",
        type=int,
        default=DEFAULT_MAX_REDIRECTS,
        help="Maximum redirects to follow per attempt (default: %(default)s)",
    )
    parser.add_argument("--output-dir", default=".", help="Directory to write JSON reports into")
    return parser


def run_checker_app(argv=None):
    logging.config.dictConfig(get_logging_config(os.environ.get("SITECHECK_LOGLEVEL", "WARNING")))
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    try:
        config = CheckerConfig.from_args(args)
    except ConfigurationError as exc:
        parser.print_usage(sys.stderr)
        print(f"\nError: {exc}", file=sys.stderr)
        return 2

    checker = WebsiteChecker(config)

    def shutdown(signum, frame):
        checker.stop()

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    try:
        checker.run_checker()
    except ReportWriteError as exc:
        logging.getLogger(__name__).error("%s", exc)
        return 1
    return 0
