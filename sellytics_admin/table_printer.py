from __future__ import annotations

from typing import Any, Callable

EMPTY_VALUE = "—"


def normalize_value(value: Any) -> str:
    if value is None or value == "":
        return EMPTY_VALUE
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(value)


def render_table(rows: list[dict[str, Any]], columns: list[tuple[str, str]], *, empty_message: str = "No records found.") -> list[str]:
    if not rows:
        return [empty_message]

    widths = []
    for key, header in columns:
        max_cell = max(len(normalize_value(row.get(key))) for row in rows)
        widths.append(max(len(header), max_cell))

    lines = [
        " | ".join(header.ljust(widths[idx]) for idx, (_, header) in enumerate(columns)),
        "-+-".join("-" * width for width in widths),
    ]
    for row in rows:
        lines.append(" | ".join(normalize_value(row.get(key)).ljust(widths[idx]) for idx, (key, _) in enumerate(columns)))
    return lines


def print_table(
    title: str,
    rows: list[dict[str, Any]],
    columns: list[tuple[str, str]],
    *,
    empty_message: str = "No records found.",
    echo: Callable[[str], None] = print,
) -> None:
    echo(f"\n{title}")
    for line in render_table(rows, columns, empty_message=empty_message):
        echo(line)
