import logging
import sys
import threading

from .model import RoundReport, Summary
from .report import format_outcome_line


class DuplicateOutcomeError(RuntimeError):
    """
    Two outcomes were reported for the same job, which means a job was delivered twice.
    """


class MissingOutcomeError(RuntimeError):
    """
    A round finished without an outcome for every job it was given.
    """


class ResultAggregator(object):
    """
    Collects outcomes from all workers of one round. Each outcome is printed to the live
    output stream as it arrives and kept for the final, input-ordered report.
    """

    def __init__(self, expected_count=None, stream=None):
        self.logger = logging.getLogger(__name__ + ".ResultAggregator")
        self.expected_count = expected_count
        self.stream = stream if stream is not None else sys.stdout
        self._outcomes = {}
        self._finalized = False
        self._lock = threading.Lock()

    def on_outcome(self, outcome):
        """
        Record an outcome. Safe to call from any worker thread; storing and printing happen
        under one lock and each line is a single write, so lines never interleave.
        """
        line = format_outcome_line(outcome) + "\n"
        with self._lock:
            if self._finalized:
                raise RuntimeError(f"Outcome for {outcome.url} arrived after the round was finalized")
            if outcome.sequence_index in self._outcomes:
                raise DuplicateOutcomeError(
                    f"Duplicate outcome for job {outcome.sequence_index} ({outcome.url})"
                )
            self._outcomes[outcome.sequence_index] = outcome
            self.stream.write(line)
            self.stream.flush()

    def finalize(self) -> RoundReport:
        with self._lock:
            if self._finalized:
                raise RuntimeError("Round has already been finalized")
            self._finalized = True
            outcomes = [self._outcomes[index] for index in sorted(self._outcomes)]

        if self.expected_count is not None and len(outcomes) != self.expected_count:
            missing = sorted(set(range(self.expected_count)) - {outcome.sequence_index for outcome in outcomes})
            raise MissingOutcomeError(f"No outcome recorded for jobs {missing}")

        summary = Summary.from_outcomes(outcomes)
        self.logger.debug("Finalized round with %d outcomes: %s", len(outcomes), summary)
        return RoundReport(outcomes=outcomes, summary=summary)
