from __future__ import annotations

import re
import uuid
from typing import Callable, Iterable, List, Optional, Tuple

from .models import Node, NodeType

HEADING_RE = re.compile(r"^(#+) ")
LIST_ITEM_RE = re.compile(r"^(\s*)[-*] ")

IdFactory = Callable[[], str]


def _uuid_id() -> str:
    return str(uuid.uuid4())


class ParsingEngine:
    """
    Abstract text -> node forest engine. Implementations should be stateless
    and reusable: any bookkeeping lives inside a single parse call.
    """

    def parse(self, text: str) -> List[Node]:
        return self.parse_lines(text.split("\n"))

    def parse_lines(self, lines: Iterable[str]) -> List[Node]:
        raise NotImplementedError


class MarkdownParsingEngine(ParsingEngine):
    """
    Parses the heading / list / paragraph subset of markdown into an ordered
    forest. Headings nest by level; list items nest by indentation width.
    Headings and lists are tracked on separate stacks and only interact in
    that a heading or paragraph ends the list in progress.
    """

    def __init__(self, id_factory: Optional[IdFactory] = None):
        self.id_factory = id_factory or _uuid_id

    def _create_node(self, node_type: NodeType, content: str) -> Node:
        return Node(id=self.id_factory(), type=node_type, content=content)

    def parse_lines(self, lines: Iterable[str]) -> List[Node]:
        roots: List[Node] = []
        heading_stack: List[Tuple[Node, int]] = []
        list_stack: List[Tuple[Node, int]] = []

        def attach(node: Node) -> None:
            if heading_stack:
                heading_stack[-1][0].children.append(node)
            else:
                roots.append(node)

        def start_list(item: Node, indent: int) -> None:
            ul_node = self._create_node(NodeType.LIST, "")
            ul_node.children.append(item)
            attach(ul_node)
            list_stack.append((ul_node, indent))

        def nest_list(parent_list: Node, item: Node, indent: int) -> None:
            ul_node = self._create_node(NodeType.LIST, "")
            if parent_list.children:
                parent_list.children[-1].children.append(ul_node)
            else:
                parent_list.children.append(ul_node)
            ul_node.children.append(item)
            list_stack.append((ul_node, indent))

        for line in lines:
            if not line.strip():
                continue

            heading = HEADING_RE.match(line)
            if heading:
                list_stack.clear()
                level = len(heading.group(1))
                node = self._create_node(NodeType.heading(min(level, 6)), line[heading.end():].strip())
                while heading_stack and heading_stack[-1][1] >= level:
                    heading_stack.pop()
                attach(node)
                heading_stack.append((node, level))
                continue

            list_item = LIST_ITEM_RE.match(line)
            if list_item:
                indent = len(list_item.group(1))
                item = self._create_node(NodeType.LIST_ITEM, line[list_item.end():].strip())

                if not list_stack:
                    start_list(item, indent)
                    continue

                current, current_indent = list_stack[-1]
                if indent > current_indent:
                    nest_list(current, item, indent)
                elif indent == current_indent:
                    current.children.append(item)
                else:
                    while list_stack and indent < list_stack[-1][1]:
                        list_stack.pop()
                    if not list_stack:
                        start_list(item, indent)
                    else:
                        current, current_indent = list_stack[-1]
                        if indent == current_indent:
                            current.children.append(item)
                        else:
                            nest_list(current, item, indent)
                continue

            list_stack.clear()
            attach(self._create_node(NodeType.PARAGRAPH, line.strip()))

        return roots


def parse_markdown(text: str, id_factory: Optional[IdFactory] = None) -> List[Node]:
    return MarkdownParsingEngine(id_factory=id_factory).parse(text)
