"""
Tolerant team-name matching.

Team names are typed by hand in several places (planning sheet, issue
tracker, report requests), so comparisons go through :func:`normalize` and
a tiered search:

  1. exact match of the normalised names;
  2. the candidate contains the query ("Core" finds "Team-Core-API");
  3. the query contains the candidate ("Team Core API v2" finds "Team-Core-API").

Within a tier the first candidate in scan order wins.
"""

import logging
import re
from typing import Callable, Iterable, Optional, TypeVar

from .scanner import LocatedBlock

logger = logging.getLogger(__name__)

T = TypeVar("T")

_IGNORED_CHARS = re.compile(r"[\s\-_]")


def normalize(identifier) -> str:
    """Uppercase and drop whitespace, ``-`` and ``_``."""
    if identifier is None:
        return ""
    return _IGNORED_CHARS.sub("", str(identifier).upper())


def group_matches(group_label: str, group_filter: Optional[str]) -> bool:
    """Case-insensitive containment of *group_filter* in *group_label*.

    A missing or blank filter matches every group.
    """
    if group_filter is None or not str(group_filter).strip():
        return True
    return str(group_filter).strip().upper() in group_label.upper()


def filter_by_group(blocks: Iterable[LocatedBlock],
                    group_filter: Optional[str]) -> list[LocatedBlock]:
    return [b for b in blocks if group_matches(b.group_label, group_filter)]


def tiered_match(query: str, candidates: Iterable[T],
                 key: Callable[[T], str] = str) -> tuple[Optional[T], Optional[str]]:
    """Return ``(candidate, tier)`` for the best match of *query*.

    *tier* is ``'exact'``, ``'superset'`` or ``'subset'``; ``(None, None)``
    when nothing matches or the query normalises to an empty string.
    """
    target = normalize(query)
    if not target:
        return None, None

    keyed = []
    for candidate in candidates:
        name = normalize(key(candidate))
        if name:
            keyed.append((name, candidate))

    for name, candidate in keyed:
        if name == target:
            return candidate, "exact"
    for name, candidate in keyed:
        if target in name:
            return candidate, "superset"
    for name, candidate in keyed:
        if name in target:
            return candidate, "subset"
    return None, None


def resolve_identifier(blocks: Iterable[LocatedBlock], query: str,
                       group_filter: Optional[str] = None) -> Optional[LocatedBlock]:
    """Find the block for team *query*, optionally within one value stream.

    Returns ``None`` when no block matches.
    """
    candidates = filter_by_group(blocks, group_filter)
    block, tier = tiered_match(query, candidates, key=lambda b: b.record_label)
    if block is None:
        logger.info(f"Team '{query}' not found in capacity sheet")
        return None
    row, col = block.sheet_coordinates
    logger.info(f"Found team '{query}' -> '{block.record_label}' ({tier} match) "
                f"in {block.group_label} at row {row}, col {col}")
    return block


def match_allowed_identifier(label: str, allowed: Iterable[str]) -> Optional[str]:
    """Return the entry of *allowed* that *label* corresponds to, if any."""
    match, _tier = tiered_match(label, allowed)
    return match
