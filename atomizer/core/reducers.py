from __future__ import annotations

from typing import Iterator, List, Optional, Sequence

from .models import Atom, Context, ContextRef, Node


def iter_preorder(nodes: Sequence[Node]) -> Iterator[Node]:
    """Yield every node of the forest, parents before children, roots in order."""
    stack = list(reversed(nodes))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def reduce_to_atoms(nodes: Sequence[Node]) -> List[Atom]:
    """
    Flatten the forest into one content record per node, in preorder.
    """
    return [Atom(id=node.id, type=node.type.value, content=node.content) for node in iter_preorder(nodes)]


def reduce_to_contexts(nodes: Sequence[Node], owner: Optional[str] = None) -> List[Context]:
    """
    Flatten the forest into structural records holding immediate child ids.
    Leaves are dropped: a node only gets a context when it has children.
    """
    contexts = [
        Context(id=node.id, children=[ContextRef(id=child.id) for child in node.children], owner=owner)
        for node in iter_preorder(nodes)
    ]
    return [context for context in contexts if context.children]
