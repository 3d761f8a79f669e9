from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Union


class NodeType(str, Enum):
    H1 = "h1"
    H2 = "h2"
    H3 = "h3"
    H4 = "h4"
    H5 = "h5"
    H6 = "h6"
    PARAGRAPH = "p"
    LIST = "ul"
    LIST_ITEM = "li"

    @classmethod
    def heading(cls, level: int) -> "NodeType":
        return cls(f"h{level}")


@dataclass
class Node:
    """
    Parser output. Children are owned by their parent and kept in document order.
    """

    id: str
    type: NodeType
    content: str
    children: List["Node"] = field(default_factory=list)


@dataclass
class Atom:
    id: str
    type: str
    content: str
    embedding: Optional[List[float]] = None
    created_at: Optional[datetime] = None


@dataclass
class ContextRef:
    id: str


@dataclass
class Context:
    """
    Structural record: the ids of a node's immediate children. Only nodes that
    have at least one child get one.
    """

    id: str
    children: List[ContextRef] = field(default_factory=list)
    owner: Optional[str] = None
    embedding: Optional[List[float]] = None


@dataclass
class StructureNode:
    id: str
    owner: Optional[str] = None
    children: List["TreeNode"] = field(default_factory=list)


@dataclass
class ContentNode(StructureNode):
    type: Optional[str] = None
    content: Optional[str] = None


TreeNode = Union[StructureNode, ContentNode]


ATOMS_TABLE = "atoms"
CONTEXTS_TABLE = "contexts"
