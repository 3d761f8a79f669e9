from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from atomizer.core import (
    ContextEmbeddingRequest,
    EmbeddingAggregator,
    EmbeddingJob,
    EmbeddingWorker,
)

from api.dependencies import get_aggregator, get_worker

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/embeddings", tags=["embeddings"])


@router.post("/atoms")
def embed_atoms(jobs: List[EmbeddingJob], worker: EmbeddingWorker = Depends(get_worker)):
    logger.info("Draining %d embedding job(s) from request", len(jobs))
    result = worker.drain(jobs)
    return JSONResponse(
        content=result.to_payload(),
        headers={
            "X-Completed-Jobs": str(len(result.completed)),
            "X-Failed-Jobs": str(len(result.failed)),
        },
    )


@router.post("/contexts")
def embed_contexts(
    requests: List[ContextEmbeddingRequest],
    aggregator: EmbeddingAggregator = Depends(get_aggregator),
):
    results = aggregator.aggregate_batch([request.id for request in requests])
    failed = sum(1 for result in results if "error" in result)
    if failed:
        logger.warning("%d of %d context aggregation(s) failed", failed, len(results))
    return results
