import pytest

from sitecheck.checker import RetryPolicy
from sitecheck.model import CheckJob

URL = "http://example.test/"


@pytest.mark.parametrize("retries", [0, 1, 3])
@pytest.mark.parametrize("status", [200, 404, 500])
def test_status_on_first_attempt_is_not_retried(scripted_checker, recorded_sleeps, retries, status):
    checker = scripted_checker({URL: [status]})
    policy = RetryPolicy(max_additional_attempts=retries, delay=0.1, sleep=recorded_sleeps.append)

    outcome = policy.execute_with_retries(CheckJob(0, URL), checker)

    assert checker.calls[URL] == 1
    assert recorded_sleeps == []
    assert outcome.status_code == status
    assert outcome.attempts == 1


@pytest.mark.parametrize("retries", [0, 1, 2, 5])
def test_persistent_error_uses_every_attempt(scripted_checker, recorded_sleeps, retries):
    checker = scripted_checker({URL: ["connection refused"]})
    policy = RetryPolicy(max_additional_attempts=retries, delay=0.25, sleep=recorded_sleeps.append)

    outcome = policy.execute_with_retries(CheckJob(7, URL), checker)

    assert checker.calls[URL] == retries + 1
    assert recorded_sleeps == [0.25] * retries
    assert outcome.error == "connection refused"
    assert outcome.status_code is None
    assert outcome.attempts == retries + 1
    assert outcome.sequence_index == 7


def test_success_after_errors_stops_retrying(scripted_checker, recorded_sleeps):
    checker = scripted_checker({URL: ["timed out", "timed out", 503, 200]})
    policy = RetryPolicy(max_additional_attempts=5, sleep=recorded_sleeps.append)

    outcome = policy.execute_with_retries(CheckJob(0, URL), checker)

    assert checker.calls[URL] == 3
    assert len(recorded_sleeps) == 2
    assert outcome.status_code == 503
    assert outcome.error is None
    assert outcome.attempts == 3


def test_outcome_describes_final_attempt(scripted_checker, recorded_sleeps):
    checker = scripted_checker({URL: ["first failure", "second failure"]})
    policy = RetryPolicy(max_additional_attempts=1, sleep=recorded_sleeps.append)

    outcome = policy.execute_with_retries(CheckJob(0, URL), checker)

    assert outcome.error == "second failure"
    # The scripted checker stamps each attempt with its attempt number
    assert outcome.timestamp == 1


def test_negative_retries_make_one_attempt(scripted_checker, recorded_sleeps):
    checker = scripted_checker({URL: ["refused"]})
    policy = RetryPolicy(max_additional_attempts=-2, sleep=recorded_sleeps.append)

    outcome = policy.execute_with_retries(CheckJob(0, URL), checker)

    assert checker.calls[URL] == 1
    assert recorded_sleeps == []
    assert outcome.attempts == 1
