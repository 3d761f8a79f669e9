from atomizer.core import MarkdownParsingEngine, NodeType, parse_markdown
from atomizer.core.reducers import iter_preorder


def _summary(node):
    return (node.type.value, node.content, [_summary(child) for child in node.children])


def test_nested_headings_with_paragraph():
    nodes = parse_markdown("# Heading 1\n## Heading 2\nSome text")
    assert [_summary(n) for n in nodes] == [
        ("h1", "Heading 1", [("h2", "Heading 2", [("p", "Some text", [])])]),
    ]


def test_nested_list_attaches_to_last_item():
    nodes = parse_markdown("- Item 1\n- Item 2\n  - Item 2.1\n  - Item 2.2\n- Item 3")
    assert [_summary(n) for n in nodes] == [
        (
            "ul",
            "",
            [
                ("li", "Item 1", []),
                ("li", "Item 2", [("ul", "", [("li", "Item 2.1", []), ("li", "Item 2.2", [])])]),
                ("li", "Item 3", []),
            ],
        )
    ]


def test_single_elements_become_roots():
    assert [_summary(n) for n in parse_markdown("## Heading 2")] == [("h2", "Heading 2", [])]
    assert [_summary(n) for n in parse_markdown("This is a paragraph.")] == [("p", "This is a paragraph.", [])]


def test_same_level_heading_closes_previous_section():
    nodes = parse_markdown("# A\n## B\ntext\n## C\n# D")
    assert [_summary(n) for n in nodes] == [
        ("h1", "A", [("h2", "B", [("p", "text", [])]), ("h2", "C", [])]),
        ("h1", "D", []),
    ]


def test_skipped_heading_levels_still_nest():
    nodes = parse_markdown("# A\n### B\n## C")
    assert [_summary(n) for n in nodes] == [("h1", "A", [("h3", "B", []), ("h2", "C", [])])]


def test_blank_lines_are_skipped():
    nodes = parse_markdown("# H\n\n   \n\ntext\n")
    assert [_summary(n) for n in nodes] == [("h1", "H", [("p", "text", [])])]
    assert len(list(iter_preorder(nodes))) == 2


def test_paragraph_ends_list_and_next_item_starts_new_list():
    nodes = parse_markdown("# H\n- a\n* b\nmiddle\n- c")
    assert [_summary(n) for n in nodes] == [
        (
            "h1",
            "H",
            [
                ("ul", "", [("li", "a", []), ("li", "b", [])]),
                ("p", "middle", []),
                ("ul", "", [("li", "c", [])]),
            ],
        )
    ]


def test_heading_ends_list():
    nodes = parse_markdown("- a\n# H\n- b")
    assert [_summary(n) for n in nodes] == [
        ("ul", "", [("li", "a", [])]),
        ("h1", "H", [("ul", "", [("li", "b", [])])]),
    ]


def test_dedent_past_every_open_list_starts_new_root_list():
    nodes = parse_markdown("  - a\n    - b\n- c")
    assert [_summary(n) for n in nodes] == [
        ("ul", "", [("li", "a", [("ul", "", [("li", "b", [])])])]),
        ("ul", "", [("li", "c", [])]),
    ]


def test_dedent_between_levels_nests_under_last_item():
    nodes = parse_markdown("- a\n    - b\n  - c")
    outer = nodes[0]
    item_a = outer.children[0]
    assert [child.type for child in item_a.children] == [NodeType.LIST, NodeType.LIST]
    assert item_a.children[1].children[0].content == "c"


def test_marker_without_space_is_a_paragraph():
    nodes = parse_markdown("#hashtag\n-dash")
    assert [_summary(n) for n in nodes] == [("p", "#hashtag", []), ("p", "-dash", [])]


def test_ids_are_unique_and_injectable(id_factory):
    nodes = MarkdownParsingEngine(id_factory=id_factory).parse("# A\n- x\n- y\ntext")
    ids = [node.id for node in iter_preorder(nodes)]
    assert sorted(ids) == ["n1", "n2", "n3", "n4", "n5"]

    default_ids = [node.id for node in iter_preorder(parse_markdown("# A\n- x\n- y\ntext"))]
    assert len(set(default_ids)) == len(default_ids)


def test_parse_lines_accepts_an_iterable():
    engine = MarkdownParsingEngine()
    nodes = engine.parse_lines(iter(["# Title", "body"]))
    assert [_summary(n) for n in nodes] == [("h1", "Title", [("p", "body", [])])]


def test_list_children_are_only_items_or_lists():
    nodes = parse_markdown("- a\n  - b\n    - c\n  - d\n- e")
    for node in iter_preorder(nodes):
        if node.type == NodeType.LIST:
            assert all(child.type in (NodeType.LIST_ITEM, NodeType.LIST) for child in node.children)
