from __future__ import annotations

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Protocol, Union

from .embeddings import EmbeddingProvider
from .errors import CancellationError, JobError
from .repository import AtomizerRepository
from .schemas import EmbeddingJob, FailedEmbeddingJob

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_NAME = "atom_embedding_jobs"
WALL_CLOCK_REASON = "wall clock limit reached"

JobId = Union[int, str]

ContentFunction = Callable[[Mapping[str, Any]], Any]

DEFAULT_CONTENT_FUNCTIONS: Dict[str, ContentFunction] = {
    "embedding_input": lambda row: row.get("content"),
}


class JobQueue(Protocol):
    def send(self, job: EmbeddingJob) -> None:
        ...

    def read(self, limit: int) -> List[EmbeddingJob]:
        ...

    def delete(self, queue_name: str, job_id: JobId) -> bool:
        ...


class CancellationToken:
    """
    Cooperative cancellation flag passed into the drain loop. It can be
    cancelled explicitly (e.g. on worker shutdown) or expire after
    ``max_seconds`` of wall clock time.
    """

    def __init__(self, max_seconds: Optional[float] = None):
        self._event = threading.Event()
        self._reason: Optional[str] = None
        self._deadline = time.monotonic() + max_seconds if max_seconds is not None else None

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        if not self._event.is_set() and self._deadline is not None and time.monotonic() >= self._deadline:
            self.cancel(WALL_CLOCK_REASON)
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason


@dataclass
class DrainResult:
    completed: List[EmbeddingJob] = field(default_factory=list)
    failed: List[FailedEmbeddingJob] = field(default_factory=list)

    @property
    def summary(self) -> Dict[str, int]:
        return {"completedJobs": len(self.completed), "failedJobs": len(self.failed)}

    def to_payload(self) -> dict:
        return {
            "completedJobs": [job.to_payload() for job in self.completed],
            "failedJobs": [job.to_payload() for job in self.failed],
        }


def _failed(job: EmbeddingJob, error: str) -> FailedEmbeddingJob:
    return FailedEmbeddingJob(**job.model_dump(), error=error)


class EmbeddingWorker:
    """
    Drains embedding jobs one at a time, in order: fetch the row's content,
    embed it, store the vector, then delete the job from the queue. A failing
    job is recorded and the loop moves on. Cancellation is checked before each
    job; the job in flight always finishes and only unstarted jobs are failed.
    """

    def __init__(
        self,
        repository: AtomizerRepository,
        provider: EmbeddingProvider,
        queue: JobQueue,
        queue_name: str = DEFAULT_QUEUE_NAME,
        content_functions: Optional[Mapping[str, ContentFunction]] = None,
    ):
        self.repo = repository
        self.provider = provider
        self.queue = queue
        self.queue_name = queue_name
        self.content_functions = dict(content_functions or DEFAULT_CONTENT_FUNCTIONS)

    def drain(self, jobs: Iterable[EmbeddingJob], token: Optional[CancellationToken] = None) -> DrainResult:
        token = token or CancellationToken()
        if token.cancelled:
            raise CancellationError(token.reason or "cancelled")

        pending = deque(jobs)
        result = DrainResult()
        logger.info("Received %d job(s) to process", len(pending))

        while pending:
            if token.cancelled:
                self._cancel_remaining(pending, result, token.reason or "cancelled")
                break

            job = pending.popleft()
            logger.info("Starting processing for jobId=%s, id=%s", job.job_id, job.id)
            try:
                self.process_job(job)
            except CancellationError as exc:
                result.failed.append(_failed(job, str(exc)))
                self._cancel_remaining(pending, result, str(exc))
                break
            except Exception as exc:  # noqa: BLE001
                logger.warning("Job failed: jobId=%s: %s", job.job_id, exc)
                result.failed.append(_failed(job, str(exc)))
            else:
                logger.info("Job processed successfully: jobId=%s", job.job_id)
                result.completed.append(job)

        logger.info("Finished processing jobs: %s", result.summary)
        return result

    def _cancel_remaining(self, pending: deque, result: DrainResult, reason: str) -> None:
        logger.warning("Drain cancelled (%s), failing %d remaining job(s)", reason, len(pending))
        while pending:
            result.failed.append(_failed(pending.popleft(), reason))

    def process_job(self, job: EmbeddingJob) -> None:
        location = f"{job.schema_name}.{job.table}/{job.id}"
        row = self.repo.get_by_id(job.table, job.id)
        if not row:
            raise JobError(f"row not found: {location}")

        content_function = self.content_functions.get(job.content_function)
        if content_function is None:
            raise JobError(f"unknown content function {job.content_function}: {location}")
        content = content_function(row)
        if not isinstance(content, str):
            raise JobError(f"invalid content - expected string: {location}")

        embedding = self.provider.embed(content)
        self.repo.update_column(job.table, job.id, job.embedding_column, embedding)
        logger.debug("Stored embedding for jobId=%s in %s", job.job_id, job.embedding_column)

        self.queue.delete(self.queue_name, job.job_id)
        logger.debug("Job deleted from queue for jobId=%s", job.job_id)
