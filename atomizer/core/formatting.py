from __future__ import annotations

from typing import Any, Mapping, Sequence


def record_to_markdown(record: Mapping[str, Any], title_keys: Sequence[str] = ("firstname", "lastname")) -> str:
    """
    Render a flat record as a two-level markdown list: one item titled by the
    joined ``title_keys`` values, with a nested ``key: value`` item for every
    other field. Missing values render as ``null``.
    """
    title = " ".join(str(record.get(key, "")) for key in title_keys).strip()
    lines = [f"- {title}"]
    for key, value in record.items():
        if key in title_keys:
            continue
        lines.append(f"  - {key}: {'null' if value is None else value}")
    return "\n".join(lines) + "\n"
