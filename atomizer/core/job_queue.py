from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from redis import Redis
from rq import Queue, Worker

from .aggregation import EmbeddingAggregator
from .embeddings import OpenAIEmbeddingProvider
from .repository import SqlAlchemyAtomizerRepository
from .schemas import EmbeddingJob
from .worker import DEFAULT_QUEUE_NAME, CancellationToken, DrainResult, EmbeddingWorker, JobId

logger = logging.getLogger(__name__)


class InMemoryJobQueue:
    """
    Process-local queue keyed by queue name. Jobs are read in job id order
    and stay queued until deleted.
    """

    def __init__(self, queue_name: str = DEFAULT_QUEUE_NAME):
        self.queue_name = queue_name
        self.messages: Dict[str, Dict[JobId, EmbeddingJob]] = {}

    def send(self, job: EmbeddingJob) -> None:
        self.messages.setdefault(self.queue_name, {})[job.job_id] = job

    def read(self, limit: int) -> List[EmbeddingJob]:
        jobs = sorted(self.messages.get(self.queue_name, {}).values(), key=lambda j: j.job_id)
        return jobs[:limit]

    def delete(self, queue_name: str, job_id: JobId) -> bool:
        return self.messages.get(queue_name, {}).pop(job_id, None) is not None


class RedisJobQueue:
    """
    Redis-backed job queue. Descriptors live in one hash per queue name,
    keyed by job id, until the drainer deletes them after a successful run.
    Failed jobs are left in place for whatever retry policy reads the hash.
    """

    def __init__(self, redis_url: str = "redis://localhost:6379/0", queue_name: str = DEFAULT_QUEUE_NAME):
        self.redis = Redis.from_url(redis_url)
        self.queue_name = queue_name

    def _key(self, queue_name: str) -> str:
        return f"atomizer:queue:{queue_name}"

    def send(self, job: EmbeddingJob) -> None:
        self.redis.hset(self._key(self.queue_name), str(job.job_id), json.dumps(job.to_payload()))

    def read(self, limit: int) -> List[EmbeddingJob]:
        raw = self.redis.hgetall(self._key(self.queue_name))
        jobs = [EmbeddingJob.model_validate(json.loads(value)) for value in raw.values()]
        jobs.sort(key=lambda j: j.job_id)
        return jobs[:limit]

    def delete(self, queue_name: str, job_id: JobId) -> bool:
        return bool(self.redis.hdel(self._key(queue_name), str(job_id)))


@dataclass
class WorkerConfig:
    database_url: str
    redis_url: str = "redis://localhost:6379/0"
    queue_name: str = DEFAULT_QUEUE_NAME
    embedding_model: str = "text-embedding-3-small"
    embedding_dim: Optional[int] = None
    batch_size: int = 50
    max_seconds: Optional[float] = None


def run_embedding_batch(config: WorkerConfig) -> dict:
    """
    RQ task entrypoint. Reads up to ``batch_size`` pending descriptors and
    drains them, giving up on unstarted jobs after ``max_seconds``.
    """
    repo = SqlAlchemyAtomizerRepository(config.database_url)
    queue = RedisJobQueue(config.redis_url, config.queue_name)
    provider = OpenAIEmbeddingProvider(model=config.embedding_model, expected_dim=config.embedding_dim)
    worker = EmbeddingWorker(repository=repo, provider=provider, queue=queue, queue_name=config.queue_name)

    jobs = queue.read(config.batch_size)
    logger.info("Read %d job(s) from queue %s", len(jobs), config.queue_name)
    result: DrainResult = worker.drain(jobs, CancellationToken(max_seconds=config.max_seconds))
    return result.summary


def run_context_embedding(context_ids: Sequence[str], config: WorkerConfig) -> List[dict]:
    """RQ task entrypoint. Recomputes and stores aggregate embeddings for the given contexts."""
    repo = SqlAlchemyAtomizerRepository(config.database_url)
    logger.info("Aggregating embeddings for %d context(s)", len(context_ids))
    return EmbeddingAggregator(repo).aggregate_batch(context_ids)


class RQTaskQueue:
    """
    Schedules embedding work on RQ. Workers are started by calling `work()`
    in a dedicated process.
    """

    def __init__(self, redis_url: str = "redis://localhost:6379/0", queue_name: str = "atomizer-tasks"):
        self.redis = Redis.from_url(redis_url)
        self.queue = Queue(queue_name, connection=self.redis)

    def enqueue_embedding_batch(self, config: WorkerConfig):
        return self.queue.enqueue(run_embedding_batch, config, retry=None)

    def enqueue_context_embedding(self, context_ids: Sequence[str], config: WorkerConfig):
        return self.queue.enqueue(run_context_embedding, list(context_ids), config, retry=None)

    def work(self):
        worker = Worker([self.queue], connection=self.redis)
        worker.work(with_scheduler=True)
