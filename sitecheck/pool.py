"""
The job queue and the pool of worker threads which drain it.
"""
from collections import deque
from concurrent.futures import ThreadPoolExecutor
import logging
import threading
from typing import Optional

from .model import CheckJob


class JobQueue(object):
    """
    URLs waiting to be checked. Any number of workers may claim from it concurrently;
    each job is handed out exactly once, and once the queue is exhausted claim() returns
    None immediately rather than waiting for more work.
    """

    def __init__(self, jobs=()):
        self._jobs = deque(jobs)
        self._lock = threading.Lock()

    @classmethod
    def enqueue_all(cls, urls):
        return cls(CheckJob(sequence_index=index, url=url) for index, url in enumerate(urls))

    def claim(self) -> Optional[CheckJob]:
        with self._lock:
            if self._jobs:
                return self._jobs.popleft()
            return None

    def __len__(self):
        with self._lock:
            return len(self._jobs)


class WorkerPool(object):
    def __init__(self, worker_count):
        self.logger = logging.getLogger(__name__ + ".WorkerPool")
        if worker_count < 1:
            self.logger.warning("Worker count %s is not positive, using a single worker", worker_count)
            worker_count = 1
        self.worker_count = worker_count

    def run(self, queue, per_job_fn, on_outcome):
        """
        Run worker_count workers until the queue is exhausted, passing each job's outcome to
        on_outcome as soon as it's known. Returns the number of jobs processed once every
        worker has finished. An exception escaping a worker is re-raised here, after the
        other workers have drained the queue.
        """
        with ThreadPoolExecutor(max_workers=self.worker_count, thread_name_prefix="worker-") as executor:
            futures = [
                executor.submit(self.work, worker_id, queue, per_job_fn, on_outcome)
                for worker_id in range(self.worker_count)
            ]
        # Leaving the executor context joins all the workers
        return sum(future.result() for future in futures)

    def work(self, worker_id, queue, per_job_fn, on_outcome):
        processed = 0
        while True:
            job = queue.claim()
            if job is None:
                self.logger.debug("Worker %d finished after %d jobs", worker_id, processed)
                return processed
            try:
                on_outcome(per_job_fn(job))
            except Exception:
                self.logger.exception("Worker %d failed processing %s", worker_id, job)
                raise
            processed += 1
