import os
from typing import Iterable, List, NamedTuple, Optional

DEFAULT_TIMEOUT = 5.0
DEFAULT_RETRIES = 0
# Fixed pause between attempts at the same URL, in seconds
DEFAULT_RETRY_DELAY = 0.1
DEFAULT_MAX_REDIRECTS = 10


class ConfigurationError(Exception):
    """
    This exception indicates the app has been configured wrongly or a problem
    has been detected in parsing configuration.
    """


class NoUrlsError(ConfigurationError):
    """
    Neither a URL file nor any URL arguments supplied anything to check.
    """


class HeaderAssertion(NamedTuple):
    # Header name, matched case-insensitively
    name: str
    # Expected header value, matched exactly
    expected_value: str


def parse_header_assertion(spec):
    """
    Parse a "Header-Name: Expected Value" string. Only the first colon separates name
    from value, so values may contain colons themselves.
    """
    name, sep, value = spec.partition(":")
    if not sep:
        raise ConfigurationError("Invalid format for header assertion. Use 'Header-Name: Expected Value'")
    name = name.strip()
    value = value.strip()
    if not name or not value:
        raise ConfigurationError(
            "Invalid format for header assertion: Name and Value cannot be empty. Use 'Header-Name: Expected Value'"
        )
    return HeaderAssertion(name=name, expected_value=value)


def parse_url_lines(lines: Iterable[str]) -> List[str]:
    """
    Everything from a '#' to the end of a line is a comment; blank lines are skipped.
    """
    urls = []
    for line in lines:
        url = line.split("#", 1)[0].strip()
        if url:
            urls.append(url)
    return urls


def read_url_file(path) -> List[str]:
    try:
        with open(path, encoding="utf-8") as url_file:
            return parse_url_lines(url_file)
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(f"Failed to read URL file {path}: {exc}") from exc


def dedupe_urls(urls):
    seen = set()
    unique = []
    for url in urls:
        if url not in seen:
            seen.add(url)
            unique.append(url)
    return unique


def default_worker_count():
    return os.cpu_count() or 2


class CheckerConfig(NamedTuple):
    """
    Wraps the configuration for the website checker
    """

    # URLs to check, in the order they'll be reported
    urls: List[str]
    # Number of concurrent worker threads
    worker_count: int
    # Per-attempt timeout in seconds
    timeout: float
    # Additional attempts after a failed attempt
    retries: int
    # Pause between attempts in seconds
    retry_delay: float
    # Seconds between the starts of rounds, or None to run a single round
    period: Optional[int]
    header_assertion: Optional[HeaderAssertion]
    max_redirects: int
    # Directory that JSON reports are written into
    output_dir: str

    @classmethod
    def from_args(cls, args):
        """
        Build and validate the config from parsed command line arguments.
        """
        urls = list(args.urls or [])
        if args.file:
            urls.extend(read_url_file(args.file))
        urls = dedupe_urls(urls)
        if not urls:
            raise NoUrlsError("No URLs provided via --file or positional arguments.")

        worker_count = default_worker_count() if args.workers is None else args.workers
        if worker_count < 1:
            raise ConfigurationError("--workers must be at least 1")

        if not args.timeout > 0:
            raise ConfigurationError("--timeout must be a positive number of seconds")

        if args.retries < 0:
            raise ConfigurationError("--retries must not be negative")

        if args.retry_delay < 0:
            raise ConfigurationError("--retry-delay must not be negative")

        if args.period is not None and args.period < 1:
            raise ConfigurationError("--period must be at least 1 second")

        if args.max_redirects < 0:
            raise ConfigurationError("--max-redirects must not be negative")

        header_assertion = parse_header_assertion(args.assert_header) if args.assert_header else None

        return cls(
            urls=urls,
            worker_count=worker_count,
            timeout=args.timeout,
            retries=args.retries,
            retry_delay=args.retry_delay,
            period=args.period,
            header_assertion=header_assertion,
            max_redirects=args.max_redirects,
            output_dir=args.output_dir,
        )
