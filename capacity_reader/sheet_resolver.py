"""
Pick the worksheet that holds the consolidated capacity data.

Resolution order, first hit wins:

  1. the pattern with the dynamic parameter substituted (e.g. ``PI14 - Capacity``);
  2. any sheet whose name matches a relaxed, case-insensitive regex built
     from the pattern (e.g. ``pi 15-capacity``), capturing the parameter;
  3. each fallback name, exactly;

otherwise ``None``.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{[A-Za-z_][A-Za-z0-9_]*\}")


@dataclass(frozen=True)
class ResolvedSheet:
    """The sheet chosen as data source and how it was found."""
    name: str
    strategy: str                       # 'dynamic' | 'pattern' | 'fallback'
    dynamic_param: Optional[str] = None


def _relax_literal(text: str) -> str:
    words = text.split()
    return r"\s*".join(re.escape(w) for w in words)


def relaxed_pattern(name_pattern: str) -> re.Pattern:
    """Compile *name_pattern* into a tolerant, anchored regex.

    Whitespace runs, and the boundaries around the ``{PARAM}`` placeholder,
    accept any amount of whitespace; the placeholder captures a word into
    the ``param`` group.
    """
    match = _PLACEHOLDER.search(name_pattern)
    if match is None:
        body = _relax_literal(name_pattern)
    else:
        head = _relax_literal(name_pattern[:match.start()])
        tail = _relax_literal(name_pattern[match.end():])
        parts = [p for p in (head, r"(?P<param>\w+?)", tail) if p]
        body = r"\s*".join(parts)
    return re.compile(rf"^\s*{body}\s*$", re.IGNORECASE)


def substitute(name_pattern: str, dynamic_param) -> str:
    """Replace the single placeholder in *name_pattern* with *dynamic_param*."""
    return _PLACEHOLDER.sub(str(dynamic_param), name_pattern, count=1)


def resolve_sheet(sheet_names: list[str], name_pattern: str,
                  dynamic_param=None,
                  fallback_names: Optional[list[str]] = None) -> Optional[ResolvedSheet]:
    """Return the :class:`ResolvedSheet` to read from, or ``None`` if absent."""
    names = list(sheet_names)

    if dynamic_param is not None and str(dynamic_param).strip():
        wanted = substitute(name_pattern, dynamic_param)
        if wanted in names:
            logger.info(f"Found capacity sheet: '{wanted}'")
            return ResolvedSheet(wanted, "dynamic", str(dynamic_param))
        logger.info(f"Sheet '{wanted}' not found, trying pattern and alternatives")

    regex = relaxed_pattern(name_pattern)
    for name in names:
        m = regex.match(name)
        if m:
            param = m.groupdict().get("param")
            logger.info(f"Found capacity sheet by pattern: '{name}' (parameter {param})")
            return ResolvedSheet(name, "pattern", param)

    for alt in fallback_names or []:
        if alt in names:
            logger.info(f"Found capacity sheet using alternative name: '{alt}'")
            return ResolvedSheet(alt, "fallback")

    logger.info("No consolidated capacity sheet found")
    return None
