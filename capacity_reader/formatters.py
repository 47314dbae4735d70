"""
Output formatters: render capacity records and summaries as JSON or Markdown.
"""

import dataclasses
import json
from collections.abc import Mapping
from typing import Any


def _plain(data: Any) -> Any:
    """Convert dataclasses (recursively) into JSON-friendly containers."""
    if dataclasses.is_dataclass(data) and not isinstance(data, type):
        return {f.name: _plain(getattr(data, f.name)) for f in dataclasses.fields(data)}
    if isinstance(data, Mapping):
        return {str(k): _plain(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [_plain(v) for v in data]
    return data


def _num(value: float) -> str:
    return f"{value:g}"


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------

def to_json(data: Any, pretty: bool = True) -> str:
    """Serialise a record, summary, role map or structure dict to JSON."""
    indent = 2 if pretty else None
    return json.dumps(_plain(data), indent=indent, default=str)


# ---------------------------------------------------------------------------
# Markdown
# ---------------------------------------------------------------------------

def _md_table(headers: list[str], rows: list[list[Any]]) -> str:
    lines = ["| " + " | ".join(headers) + " |"]
    lines.append("| " + " | ".join(["---"] * len(headers)) + " |")
    for row in rows:
        vals = [_num(v) if isinstance(v, float) else str(v) for v in row]
        lines.append("| " + " | ".join(vals) + " |")
    return "\n".join(lines) + "\n"


def record_to_markdown(record) -> str:
    """Render one team's capacity."""
    parts = [f"## {record.identifier}" + (f" ({record.group})" if record.group else "") + "\n"]
    parts.append(f"- Total allocation: {_num(record.total)}")
    parts.append(f"- Product capacity: {_num(record.derived_total)}")
    parts.append(f"- Base capacity before FF: {_num(record.summary_before_cutoff)}")
    parts.append(f"- Base capacity after FF: {_num(record.summary_after_cutoff)}\n")

    if record.per_period_values:
        categories = list(record.category_values)
        periods = list(record.per_period_values)
        headers = ["Category"] + [f"It. {p}" for p in periods] + ["Total"]
        rows = [
            [c] + [record.per_period_values[p].get(c, 0.0) for p in periods]
            + [record.category_values[c]]
            for c in categories
        ]
        parts.append(_md_table(headers, rows))
    return "\n".join(parts)


def aggregate_to_markdown(result) -> str:
    """Render a value stream summary: one row per team plus totals."""
    categories = list(result.by_category)
    headers = ["Team"] + categories + ["Total"]
    rows = [
        [key] + [g.summary_values.get(c, 0.0) for c in categories] + [g.total]
        for key, g in result.by_group.items()
    ]
    rows.append(["**Total**"] + [result.by_category[c] for c in categories] + [result.total])
    return _md_table(headers, rows)


def roles_to_markdown(roles: dict) -> str:
    headers = ["Role", "Before FF", "After FF", "Total"]
    rows = [[key, r.before_cutoff, r.after_cutoff, r.total] for key, r in roles.items()]
    return _md_table(headers, rows)


def structure_to_markdown(structure: dict) -> str:
    """Render the output of ``describe_structure``."""
    parts = [f"## Sheet: {structure.get('sheet', '(none)')}\n"]
    parts.append(f"_Format: {structure.get('format')}, "
                 f"template {structure.get('template_version', '-')}_\n")
    for group, teams in structure.get("groups", {}).items():
        parts.append(f"### {group}\n")
        parts.extend(f"- {team}" for team in teams)
        if not teams:
            parts.append("_no teams_")
        parts.append("")
    return "\n".join(parts)
