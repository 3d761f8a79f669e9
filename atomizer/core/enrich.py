from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from .errors import CycleDetectedError, StoreLookupError
from .models import ATOMS_TABLE, ContentNode, TreeNode

logger = logging.getLogger(__name__)

AtomFetcher = Callable[[List[str]], Iterable[Mapping]]


def collect_ids(tree: TreeNode) -> List[str]:
    """Ids of every node in the tree, deduplicated, in first-seen preorder."""
    seen: Dict[str, None] = {}
    stack = [tree]
    while stack:
        node = stack.pop()
        if node.id in seen:
            continue
        seen[node.id] = None
        stack.extend(reversed(node.children))
    return list(seen)


def to_content_node(
    node: TreeNode, atoms: Mapping[str, Mapping], ancestors: Tuple[str, ...] = ()
) -> ContentNode:
    """
    Convert a structure-only (or already enriched) tree into a content-bearing
    one. Nodes without a matching atom keep whatever type/content they had.
    A node reappearing below itself raises ``CycleDetectedError``.
    """
    if node.id in ancestors:
        raise CycleDetectedError(node.id, ancestors)
    path = ancestors + (node.id,)
    atom = atoms.get(node.id)
    return ContentNode(
        id=node.id,
        owner=node.owner,
        type=atom["type"] if atom else getattr(node, "type", None),
        content=atom["content"] if atom else getattr(node, "content", None),
        children=[to_content_node(child, atoms, path) for child in node.children],
    )


def enrich_tree(tree: TreeNode, fetch_atoms: AtomFetcher) -> ContentNode:
    """
    Merge atom type/content into every node of a rehydrated tree using one
    batch lookup. A failed lookup aborts enrichment entirely.
    """
    ids = collect_ids(tree)
    try:
        rows = list(fetch_atoms(ids))
    except Exception as exc:
        logger.error("Error retrieving atoms: %s", exc)
        raise StoreLookupError(f"Failed to retrieve {len(ids)} atom(s)") from exc

    atoms_map = {row["id"]: row for row in rows}
    return to_content_node(tree, atoms_map)


class ContentEnricher:
    def __init__(self, repository):
        self.repo = repository

    def enrich(self, tree: Optional[TreeNode]) -> Optional[ContentNode]:
        if tree is None:
            return None
        return enrich_tree(tree, lambda ids: self.repo.get_by_ids(ATOMS_TABLE, ids))
