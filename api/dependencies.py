from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from atomizer.core import (
    AtomizerPipeline,
    AtomizerRepository,
    EmbeddingAggregator,
    EmbeddingWorker,
    OpenAIEmbeddingProvider,
    RedisJobQueue,
    SqlAlchemyAtomizerRepository,
)


def _queue_name() -> str:
    return os.getenv("EMBEDDING_QUEUE", "atom_embedding_jobs")


@lru_cache(maxsize=1)
def get_repo() -> AtomizerRepository:
    db_url = os.getenv("DATABASE_URL", "sqlite+pysqlite:///./data/atomizer.db")
    return SqlAlchemyAtomizerRepository(db_url)


@lru_cache(maxsize=1)
def get_queue() -> RedisJobQueue:
    redis_url = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    return RedisJobQueue(redis_url, _queue_name())


@lru_cache(maxsize=1)
def get_provider() -> OpenAIEmbeddingProvider:
    dim: Optional[str] = os.getenv("EMBEDDING_DIM")
    return OpenAIEmbeddingProvider(
        model=os.getenv("EMBEDDING_MODEL", "text-embedding-3-small"),
        api_key=os.getenv("OPENAI_API_KEY"),
        expected_dim=int(dim) if dim else None,
    )


def get_worker() -> EmbeddingWorker:
    return EmbeddingWorker(
        repository=get_repo(),
        provider=get_provider(),
        queue=get_queue(),
        queue_name=_queue_name(),
    )


def get_aggregator() -> EmbeddingAggregator:
    return EmbeddingAggregator(get_repo())


def get_pipeline() -> AtomizerPipeline:
    return AtomizerPipeline(get_repo())
