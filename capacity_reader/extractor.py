"""
Project the block template onto a located block to read a team's capacity.

Every read goes through :func:`~capacity_reader.grid.coerce_number`, so
placeholders and malformed cells count as zero and extraction never fails
on cell content.  All reads stay inside the block's own rows and columns.
"""

import logging
import math
from dataclasses import dataclass, field

from .grid import Grid, cell_text, coerce_number
from .scanner import LocatedBlock
from .template import BlockTemplate, read_only

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractedRecord:
    """Capacity of one team, as planned in the sheet."""
    identifier: str
    group: str
    category_values: dict = field(default_factory=dict)
    per_period_values: dict = field(default_factory=dict)   # period -> {category: value}
    summary_before_cutoff: float = 0.0
    summary_after_cutoff: float = 0.0
    total: float = 0.0
    derived_total: float = 0.0
    summary_values: dict = field(default_factory=dict)      # e.g. {'Features': 12.0, ...}

    def __post_init__(self):
        object.__setattr__(self, "category_values", read_only(self.category_values))
        object.__setattr__(self, "summary_values", read_only(self.summary_values))
        object.__setattr__(self, "per_period_values", read_only(
            {p: read_only(v) for p, v in self.per_period_values.items()}))


@dataclass(frozen=True)
class RoleCapacity:
    """Base capacity of one role within a team."""
    display_name: str
    before_cutoff: float
    after_cutoff: float
    total: float
    by_period: dict


class _BlockReader:
    """Reads cells relative to a block's origin."""

    def __init__(self, grid: Grid, block: LocatedBlock, template: BlockTemplate):
        self.grid = grid
        self.row0 = block.anchor_row
        self.col0 = block.anchor_col - template.label_col

    def raw(self, row_offset: int, col_offset: int):
        return self.grid.at(self.row0 + row_offset, self.col0 + col_offset)

    def number(self, row_offset: int, col_offset: int) -> float:
        return coerce_number(self.raw(row_offset, col_offset))


def summarise_categories(category_values: dict, template: BlockTemplate) -> dict:
    """Fold category values into the template's summary categories."""
    return {
        label: math.fsum(category_values.get(c, 0.0) for c in cats)
        for label, cats in template.summary_categories.items()
    }


def extract_record(grid: Grid, block: LocatedBlock, template: BlockTemplate) -> ExtractedRecord:
    """Read the allocation, per-iteration and base capacity values of *block*."""
    cells = _BlockReader(grid, block, template)

    categories = {
        name: cells.number(row, template.total_col)
        for name, row in template.category_rows.items()
    }
    per_period = {
        period: {
            name: cells.number(row, template.period_col(period))
            for name, row in template.category_rows.items()
        }
        for period in template.periods
    }

    record = ExtractedRecord(
        identifier=block.record_label,
        group=block.group_label,
        category_values=categories,
        per_period_values=per_period,
        summary_before_cutoff=cells.number(template.before_cutoff_total_row, template.total_col),
        summary_after_cutoff=cells.number(template.after_cutoff_total_row, template.total_col),
        total=math.fsum(categories.values()),
        derived_total=math.fsum(categories[c] for c in template.derived_categories),
        summary_values=summarise_categories(categories, template),
    )
    logger.debug(f"Capacity for '{record.identifier}' ({record.group}): total {record.total}, "
                 f"product {record.derived_total}, before FF {record.summary_before_cutoff}, "
                 f"after FF {record.summary_after_cutoff}")
    return record


# ---------------------------------------------------------------------------
# Role breakdown
# ---------------------------------------------------------------------------

def _role_key(label: str, template: BlockTemplate) -> str:
    key = label.strip().upper()
    return template.role_aliases.get(key, key)


def _is_role_label(label: str, template: BlockTemplate) -> bool:
    lowered = label.lower()
    return bool(label) and not any(s in lowered for s in template.role_skip_substrings)


def extract_roles(grid: Grid, block: LocatedBlock, template: BlockTemplate) -> dict:
    """Return ``{role: RoleCapacity}`` for roles with non-zero base capacity.

    Before- and after-cutoff sections are combined per role; per-iteration
    figures come from the before-cutoff section.
    """
    cells = _BlockReader(grid, block, template)
    found = {}

    for before in (True, False):
        for row in template.role_rows(before):
            label = cell_text(cells.raw(row, template.label_col))
            if not _is_role_label(label, template):
                continue
            key = _role_key(label, template)
            entry = found.setdefault(key, {
                "display_name": label,
                "before": 0.0,
                "after": 0.0,
                "by_period": {p: 0.0 for p in template.periods},
            })
            value = cells.number(row, template.total_col)
            if before:
                entry["before"] = value
                for period in template.periods:
                    entry["by_period"][period] = cells.number(row, template.period_col(period))
            else:
                entry["after"] = value

    roles = {}
    for key, entry in found.items():
        total = entry["before"] + entry["after"]
        if total > 0:
            roles[key] = RoleCapacity(
                display_name=entry["display_name"],
                before_cutoff=entry["before"],
                after_cutoff=entry["after"],
                total=total,
                by_period=entry["by_period"],
            )
    logger.debug(f"Found {len(roles)} active roles for '{block.record_label}': "
                 + ", ".join(f"{k}: {r.total}" for k, r in roles.items()))
    return roles
