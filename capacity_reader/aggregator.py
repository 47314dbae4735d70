"""
Fold team records into a value-stream capacity summary.

Records are keyed by the allowed identifier they match (the team names
used by the caller, e.g. from the issue tracker) or by their own label
when no allowlist is given.  Accumulation is done with :func:`math.fsum`
over the collected records, so the result does not depend on the order
the blocks were processed in.
"""

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .extractor import ExtractedRecord, extract_record
from .grid import Grid
from .matching import filter_by_group, match_allowed_identifier
from .scanner import LocatedBlock
from .template import BlockTemplate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GroupTotals:
    """Capacity of the team(s) filed under one identifier."""
    identifier: str
    record_labels: tuple
    summary_values: dict
    total: float
    derived_total: float
    summary_before_cutoff: float
    summary_after_cutoff: float
    per_period_values: dict


@dataclass(frozen=True)
class AggregateResult:
    by_group: dict = field(default_factory=dict)      # identifier -> GroupTotals
    by_category: dict = field(default_factory=dict)   # summary category -> value
    total: float = 0.0


def _sum_periods(records: list[ExtractedRecord]) -> dict:
    periods = sorted({p for r in records for p in r.per_period_values})
    merged = {}
    for period in periods:
        categories = sorted({c for r in records for c in r.per_period_values.get(period, {})})
        merged[period] = {
            c: math.fsum(r.per_period_values.get(period, {}).get(c, 0.0) for r in records)
            for c in categories
        }
    return merged


def _group_totals(identifier: str, records: list[ExtractedRecord],
                  categories: list[str]) -> GroupTotals:
    return GroupTotals(
        identifier=identifier,
        record_labels=tuple(sorted((r.identifier for r in records), key=str)),
        summary_values={
            c: math.fsum(r.summary_values.get(c, 0.0) for r in records) for c in categories
        },
        total=math.fsum(r.total for r in records),
        derived_total=math.fsum(r.derived_total for r in records),
        summary_before_cutoff=math.fsum(r.summary_before_cutoff for r in records),
        summary_after_cutoff=math.fsum(r.summary_after_cutoff for r in records),
        per_period_values=_sum_periods(records),
    )


def aggregate_records(records: Iterable[ExtractedRecord],
                      allowed_identifiers: Optional[list[str]] = None,
                      categories: Optional[list[str]] = None) -> AggregateResult:
    """Aggregate already extracted *records*.

    With a non-empty *allowed_identifiers* only records matching one of them
    are kept; the rest are dropped silently.  *categories* fixes the keys of
    ``by_category`` (defaults to those seen on the records).
    """
    allowed = [a for a in (allowed_identifiers or []) if a is not None]
    accepted = defaultdict(list)
    seen_categories = []

    for record in records:
        for c in record.summary_values:
            if c not in seen_categories:
                seen_categories.append(c)
        if allowed:
            key = match_allowed_identifier(record.identifier, allowed)
            if key is None:
                logger.debug(f"  Team '{record.identifier}': not in requested teams, skipping")
                continue
        else:
            key = record.identifier
        accepted[key].append(record)

    categories = list(categories) if categories is not None else seen_categories
    by_group = {
        key: _group_totals(key, accepted[key], categories)
        for key in sorted(accepted, key=str)
    }
    all_records = [r for key in sorted(accepted, key=str) for r in accepted[key]]
    by_category = {
        c: math.fsum(r.summary_values.get(c, 0.0) for r in all_records) for c in categories
    }
    result = AggregateResult(
        by_group=by_group,
        by_category=by_category,
        total=math.fsum(r.total for r in all_records),
    )
    logger.info(f"Capacity summary: {result.total} points across "
                f"{len(by_group)} team(s): {', '.join(str(k) for k in by_group)}")
    return result


def aggregate(grid: Grid, blocks: Iterable[LocatedBlock], template: BlockTemplate,
              group_filter: Optional[str] = None,
              allowed_identifiers: Optional[list[str]] = None) -> AggregateResult:
    """Extract every block in *group_filter* and aggregate the records."""
    relevant = filter_by_group(blocks, group_filter)
    if group_filter:
        logger.info(f"Filtered to {len(relevant)} teams for value stream '{group_filter}'")
    records = [extract_record(grid, block, template) for block in relevant]
    return aggregate_records(records, allowed_identifiers,
                             categories=list(template.summary_categories))
