from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .errors import CycleDetectedError, DimensionMismatchError, NotFoundError, StoreLookupError
from .models import ATOMS_TABLE, CONTEXTS_TABLE
from .repository import AtomizerRepository, context_from_row

logger = logging.getLogger(__name__)


def add_vectors(total: np.ndarray, vector: Sequence[float]) -> np.ndarray:
    other = np.asarray(vector, dtype=float)
    if total.shape != other.shape:
        raise DimensionMismatchError(total.shape[0], other.shape[0])
    return total + other


class EmbeddingAggregator:
    """
    Computes a context's aggregate embedding: the mean of its own atom
    embedding and the embeddings of its direct children, where a child that
    is itself a context contributes its (recursively computed) aggregate.

    Traversal is depth-first and strictly sequential; nothing is cached
    between calls. Each aggregate is persisted onto the context row once it
    is complete, so a failure never writes a partial sum.
    """

    def __init__(self, repository: AtomizerRepository):
        self.repo = repository

    def aggregate(self, context_id: str) -> List[float]:
        return self._merged_embedding(context_id, ())

    def aggregate_batch(self, context_ids: Iterable[str]) -> List[Dict[str, Any]]:
        results: List[Dict[str, Any]] = []
        for context_id in context_ids:
            try:
                results.append({"id": context_id, "embedding": self.aggregate(context_id)})
            except Exception as exc:  # noqa: BLE001
                logger.warning("Aggregation failed for context %s: %s", context_id, exc)
                results.append({"id": context_id, "error": str(exc)})
        return results

    def _fetch(self, table: str, row_id: str) -> Optional[Dict[str, Any]]:
        try:
            return self.repo.get_by_id(table, row_id)
        except Exception as exc:
            logger.error("Error fetching %s/%s: %s", table, row_id, exc)
            raise StoreLookupError(f"Failed to fetch {table}/{row_id}") from exc

    def _store(self, context_id: str, embedding: List[float]) -> None:
        try:
            self.repo.update_column(CONTEXTS_TABLE, context_id, "embedding", embedding)
        except Exception as exc:
            logger.error("Error storing embedding for context %s: %s", context_id, exc)
            raise StoreLookupError(f"Failed to store embedding for context {context_id}") from exc

    def _atom_embedding(self, atom_id: str, missing_message: str) -> List[float]:
        row = self._fetch(ATOMS_TABLE, atom_id)
        if not row or row.get("embedding") is None:
            raise NotFoundError(missing_message)
        return row["embedding"]

    def _merged_embedding(self, context_id: str, ancestors: Tuple[str, ...]) -> List[float]:
        if context_id in ancestors:
            raise CycleDetectedError(context_id, ancestors)

        row = self._fetch(CONTEXTS_TABLE, context_id)
        if not row:
            raise NotFoundError(f"Context not found: {context_id}")
        context = context_from_row(row)

        total = np.asarray(
            self._atom_embedding(context_id, f"Atom (metadata) not found for context: {context_id}"),
            dtype=float,
        )
        count = 1
        path = ancestors + (context_id,)

        for child in context.children:
            if self._fetch(CONTEXTS_TABLE, child.id):
                child_embedding = self._merged_embedding(child.id, path)
            else:
                child_embedding = self._atom_embedding(child.id, f"Atom not found for child id: {child.id}")
            total = add_vectors(total, child_embedding)
            count += 1

        averaged = (total / count).tolist()
        self._store(context_id, averaged)
        logger.debug("Persisted aggregate embedding for %s from %d vector(s)", context_id, count)
        return averaged
