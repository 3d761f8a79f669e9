from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from .engine import MarkdownParsingEngine, ParsingEngine
from .enrich import ContentEnricher
from .models import Atom, Context, Node, TreeNode
from .reducers import reduce_to_atoms, reduce_to_contexts
from .rehydrate import ContextRetriever
from .repository import AtomizerRepository

logger = logging.getLogger(__name__)


@dataclass
class DecomposedDocument:
    nodes: List[Node]
    atoms: List[Atom]
    contexts: List[Context]

    @property
    def root_ids(self) -> List[str]:
        return [node.id for node in self.nodes]


class AtomizerPipeline:
    """
    Forward direction: text -> node forest -> atoms + contexts -> repository.
    Backward direction: root id -> subtree -> nested tree -> enriched tree.
    """

    def __init__(self, repository: AtomizerRepository, engine: Optional[ParsingEngine] = None):
        self.repo = repository
        self.engine = engine or MarkdownParsingEngine()
        self.retriever = ContextRetriever(repository)
        self.enricher = ContentEnricher(repository)

    def decompose(self, text: str, owner: Optional[str] = None) -> DecomposedDocument:
        nodes = self.engine.parse(text)
        document = DecomposedDocument(
            nodes=nodes,
            atoms=reduce_to_atoms(nodes),
            contexts=reduce_to_contexts(nodes, owner=owner),
        )
        logger.info(
            "Decomposed text into %d root(s), %d atom(s), %d context(s)",
            len(nodes),
            len(document.atoms),
            len(document.contexts),
        )
        return document

    def persist(self, document: DecomposedDocument) -> None:
        """
        Write atoms, then contexts, as two separate inserts. A failure part way
        leaves only atoms behind, which no context references and retrieval
        never reaches.
        """
        self.repo.insert_atoms(document.atoms)
        self.repo.insert_contexts(document.contexts)

    def decompose_and_persist(self, text: str, owner: Optional[str] = None) -> DecomposedDocument:
        document = self.decompose(text, owner=owner)
        self.persist(document)
        return document

    def retrieve(self, root_id: str, enrich: bool = True) -> Optional[TreeNode]:
        tree = self.retriever.retrieve(root_id)
        if tree is None or not enrich:
            return tree
        return self.enricher.enrich(tree)
