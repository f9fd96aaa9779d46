# services/job_store.py

"""
Job store - owns the in-memory record of every build job

One lock guards the whole map. Each operation holds it only for the length of
a single dictionary access or field write, so jobs never wait on each other
for longer than that. Readers get deep copies, never the live record.

Records live until clear() is called at application shutdown; nothing evicts
finished jobs while the process runs.
"""

import logging
import threading
from typing import Dict

from buildserver.core.exceptions import (
    InvalidJobTransitionError,
    JobAlreadyExistsError,
    JobNotFoundError,
)
from buildserver.models.job import Job, JobState, STATE_RANK

logger = logging.getLogger(__name__)


class JobStore:
    def __init__(self):
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def __contains__(self, job_id: str) -> bool:
        with self._lock:
            return job_id in self._jobs

    def create(self, job_id: str) -> Job:
        """Register a new job in the initializing state"""
        with self._lock:
            if job_id in self._jobs:
                raise JobAlreadyExistsError(job_id)
            job = Job(id=job_id)
            self._jobs[job_id] = job
            logger.debug(f"Job {job_id} created")
            return job.model_copy(deep=True)

    def get(self, job_id: str) -> Job:
        """Return a snapshot of the job"""
        with self._lock:
            return self._require(job_id).model_copy(deep=True)

    def set_status(self, job_id: str, status: JobState):
        with self._lock:
            job = self._require_mutable(job_id)
            if STATE_RANK[status] < STATE_RANK[job.status]:
                raise InvalidJobTransitionError(
                    f"Job {job_id} cannot move from {job.status.value} to {status.value}"
                )
            if status == JobState.COMPLETED:
                raise InvalidJobTransitionError("Use complete() to finish a job with its artifact")
            job.status = status

    def set_progress(self, job_id: str, progress: int):
        if not 0 <= progress <= 100:
            raise ValueError(f"Progress must be within 0..100, got {progress}")
        with self._lock:
            job = self._require_mutable(job_id)
            if progress < job.progress:
                raise InvalidJobTransitionError(
                    f"Job {job_id} progress cannot go back from {job.progress} to {progress}"
                )
            job.progress = progress

    def append_log(self, job_id: str, line: str):
        with self._lock:
            self._require_mutable(job_id).logs.append(line)

    def complete(self, job_id: str, file_path: str):
        """Mark job as completed with its artifact"""
        if not file_path:
            raise ValueError("A completed job needs an artifact path")
        with self._lock:
            job = self._require_mutable(job_id)
            if job.status != JobState.BUILDING:
                raise InvalidJobTransitionError(
                    f"Job {job_id} cannot complete from {job.status.value}"
                )
            job.file_path = file_path
            job.progress = 100
            job.status = JobState.COMPLETED
        logger.info(f"Job {job_id} completed: {file_path}")

    def fail(self, job_id: str, message: str):
        """Mark job as failed, keeping the message as the last log line"""
        with self._lock:
            job = self._require_mutable(job_id)
            job.logs.append(f"> BUILD FAILED: {message}")
            job.status = JobState.ERROR
        logger.info(f"Job {job_id} failed: {message}")

    def is_terminal(self, job_id: str) -> bool:
        with self._lock:
            return self._require(job_id).status.is_terminal

    def clear(self) -> int:
        """Drop every job and return how many were held"""
        with self._lock:
            count = len(self._jobs)
            self._jobs.clear()
        logger.info(f"Cleared {count} jobs from the store")
        return count

    def _require(self, job_id: str) -> Job:
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def _require_mutable(self, job_id: str) -> Job:
        job = self._require(job_id)
        if job.status.is_terminal:
            raise InvalidJobTransitionError(
                f"Job {job_id} is already {job.status.value}"
            )
        return job
