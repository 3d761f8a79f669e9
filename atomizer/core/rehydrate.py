from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from .errors import StoreLookupError
from .models import Context, StructureNode

logger = logging.getLogger(__name__)


def rehydrate_contexts(records: Iterable[Context], root_id: str) -> Optional[StructureNode]:
    """
    Rebuild the nested tree rooted at ``root_id`` from flat context records.

    Every record is cloned into a fresh node, then each child reference is
    resolved against those clones. A reference with no record of its own
    (normally a leaf atom) becomes a terminal stub. Returns None when there
    are no records or the root id is unknown.
    """
    records = list(records)
    if not records:
        return None

    node_map: Dict[str, StructureNode] = {
        record.id: StructureNode(id=record.id, owner=record.owner) for record in records
    }
    for record in records:
        current = node_map[record.id]
        for child_ref in record.children:
            child = node_map.get(child_ref.id)
            if child is None:
                child = StructureNode(id=child_ref.id, owner=None)
            current.children.append(child)

    return node_map.get(root_id)


class ContextRetriever:
    """
    Fetches a flattened subtree through the repository's structural query in a
    single call and rehydrates it.
    """

    def __init__(self, repository):
        self.repo = repository

    def retrieve(self, root_id: str) -> Optional[StructureNode]:
        try:
            records = self.repo.get_subtree(root_id)
        except Exception as exc:
            logger.error("Error retrieving subtree for %s: %s", root_id, exc)
            raise StoreLookupError(f"Failed to retrieve subtree for {root_id}") from exc
        logger.debug("Retrieved %d context record(s) for root %s", len(records), root_id)
        return rehydrate_contexts(records, root_id)
