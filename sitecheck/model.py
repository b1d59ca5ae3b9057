from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class CheckJob:
    """
    One URL to check, tagged with its position in the input so results can be put
    back into input order after concurrent processing.
    """

    sequence_index: int
    url: str


@dataclass(frozen=True)
class AssertionResult:
    expected_header: str
    expected_value: str
    passed: bool
    actual_value: Optional[str] = None
    failure_detail: Optional[str] = None


@dataclass(frozen=True)
class AttemptResult:
    """
    The result of a single request attempt. Exactly one of status_code and error is set:
    status_code when any HTTP response was received (including 4xx and 5xx codes),
    error when no response could be obtained at all.
    """

    url: str
    status_code: Optional[int]
    error: Optional[str]
    response_time_ms: int
    timestamp: int
    header_assertion: Optional[AssertionResult] = None

    @property
    def succeeded(self):
        return self.status_code is not None


@dataclass(frozen=True)
class CheckOutcome:
    """
    The terminal result of a job after all its attempts. Response time and timestamp
    describe the final attempt only.
    """

    sequence_index: int
    url: str
    status_code: Optional[int]
    error: Optional[str]
    response_time_ms: int
    timestamp: int
    header_assertion: Optional[AssertionResult] = None
    attempts: int = 1

    @classmethod
    def from_attempt(cls, job: CheckJob, attempt: AttemptResult, attempts: int = 1) -> "CheckOutcome":
        return cls(
            sequence_index=job.sequence_index,
            url=job.url,
            status_code=attempt.status_code,
            error=attempt.error,
            response_time_ms=attempt.response_time_ms,
            timestamp=attempt.timestamp,
            header_assertion=attempt.header_assertion,
            attempts=attempts,
        )

    @property
    def succeeded(self):
        return self.status_code is not None

    @property
    def assertion_failed(self):
        return self.header_assertion is not None and not self.header_assertion.passed


@dataclass(frozen=True)
class Summary:
    """
    Round statistics. A check counts as successful when an HTTP status code was obtained,
    whatever the code and whatever the header assertion said; response time statistics
    only cover successful checks.
    """

    total_attempted: int
    success_count: int
    failure_count: int
    min_response_time_ms: Optional[int]
    max_response_time_ms: Optional[int]
    mean_response_time_ms: Optional[float]
    assertion_failure_count: int = 0

    @classmethod
    def from_outcomes(cls, outcomes: List[CheckOutcome]) -> "Summary":
        times = [outcome.response_time_ms for outcome in outcomes if outcome.succeeded]
        return cls(
            total_attempted=len(outcomes),
            success_count=len(times),
            failure_count=len(outcomes) - len(times),
            min_response_time_ms=min(times) if times else None,
            max_response_time_ms=max(times) if times else None,
            mean_response_time_ms=sum(times) / len(times) if times else None,
            assertion_failure_count=sum(1 for outcome in outcomes if outcome.assertion_failed),
        )


@dataclass(frozen=True)
class RoundReport:
    outcomes: List[CheckOutcome]
    summary: Summary
