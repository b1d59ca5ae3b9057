import threading

import pytest

from sitecheck.model import AttemptResult


class ScriptedChecker(object):
    """
    Stands in for a Checker, answering attempts from a script per URL and counting them.
    A script entry is an int status code or an error string; the last entry repeats.
    """

    def __init__(self, scripts=None, default=200, response_time_ms=10):
        self.scripts = scripts or {}
        self.default = default
        self.response_time_ms = response_time_ms
        self.calls = {}
        self._lock = threading.Lock()

    def attempt(self, url):
        with self._lock:
            count = self.calls.get(url, 0)
            self.calls[url] = count + 1
        script = self.scripts.get(url, [self.default])
        result = script[min(count, len(script) - 1)]
        if isinstance(result, int):
            return AttemptResult(
                url=url, status_code=result, error=None, response_time_ms=self.response_time_ms, timestamp=count
            )
        return AttemptResult(
            url=url, status_code=None, error=result, response_time_ms=self.response_time_ms, timestamp=count
        )


@pytest.fixture
def scripted_checker():
    return ScriptedChecker


@pytest.fixture
def recorded_sleeps():
    return []
