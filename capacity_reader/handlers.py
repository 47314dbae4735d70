"""
Capacity sheet formats.

Each format is a :class:`FormatHandler`; :class:`~capacity_reader.reader.CapacityReader`
holds an ordered list of them (consolidated first, legacy second) and uses
the first one whose sheet is present in the workbook.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

from .aggregator import AggregateResult, aggregate, aggregate_records
from .extractor import ExtractedRecord, extract_record, extract_roles
from .grid import Grid, GridSource, cell_text, coerce_number
from .matching import resolve_identifier
from .scanner import LocatedBlock, scan_blocks, scan_groups
from .sheet_resolver import ResolvedSheet, resolve_sheet
from .template import CAPACITY_TEMPLATE_V1, BlockTemplate

logger = logging.getLogger(__name__)

DEFAULT_SHEET_NAME_PATTERN = "PI{PI_NUMBER} - Capacity"
DEFAULT_FALLBACK_SHEET_NAMES = ("Capacity Planning", "Consolidated Capacity")
DEFAULT_LEGACY_SHEET_NAME = "Capacity"


class FormatHandler(ABC):
    """Interface every capacity sheet format implements."""

    name = "format"

    @abstractmethod
    def is_available(self, source: GridSource) -> bool:
        """True if the workbook contains a sheet in this format."""
        ...

    @abstractmethod
    def get_record(self, source: GridSource, identifier: str,
                   group_filter: Optional[str] = None) -> Optional[ExtractedRecord]:
        """Capacity of one team, or ``None`` if the team is not in the sheet."""
        ...

    @abstractmethod
    def get_aggregate(self, source: GridSource, allowed_identifiers: list[str],
                      group_filter: Optional[str] = None) -> Optional[AggregateResult]:
        """Summary over the teams of *group_filter*, or ``None`` without a sheet."""
        ...

    def get_roles(self, source: GridSource, identifier: str,
                  group_filter: Optional[str] = None) -> Optional[dict]:
        """Per-role capacity of one team; formats without roles return ``None``."""
        return None

    def describe(self, source: GridSource) -> Optional[dict]:
        """Structural overview of the sheet for diagnostics."""
        return None


# ---------------------------------------------------------------------------
# Consolidated format (one sheet, periodic team blocks)
# ---------------------------------------------------------------------------

class ConsolidatedFormatHandler(FormatHandler):
    """Reads the consolidated capacity planning sheet through a block template."""

    name = "consolidated"

    def __init__(self, template: BlockTemplate = CAPACITY_TEMPLATE_V1,
                 sheet_name_pattern: str = DEFAULT_SHEET_NAME_PATTERN,
                 fallback_sheet_names=DEFAULT_FALLBACK_SHEET_NAMES,
                 dynamic_param=None):
        self.template = template
        self.sheet_name_pattern = sheet_name_pattern
        self.fallback_sheet_names = list(fallback_sheet_names)
        self.dynamic_param = dynamic_param

    def resolve(self, source: GridSource) -> Optional[ResolvedSheet]:
        return resolve_sheet(source.list_sheet_names(), self.sheet_name_pattern,
                             self.dynamic_param, self.fallback_sheet_names)

    def is_available(self, source: GridSource) -> bool:
        return self.resolve(source) is not None

    def _load(self, source: GridSource) -> Optional[tuple[Grid, list[LocatedBlock]]]:
        # Re-scanned on every call; sheets are edited by hand between reads.
        sheet = self.resolve(source)
        if sheet is None:
            return None
        grid = source.get_sheet_grid(sheet.name)
        logger.info(f"Scanning capacity sheet '{sheet.name}': "
                    f"{grid.height} rows x {grid.width} columns")
        return grid, scan_blocks(grid, self.template)

    def _locate(self, source: GridSource, identifier: str,
                group_filter: Optional[str]) -> Optional[tuple[Grid, LocatedBlock]]:
        loaded = self._load(source)
        if loaded is None:
            return None
        grid, blocks = loaded
        block = resolve_identifier(blocks, identifier, group_filter)
        if block is None:
            return None
        return grid, block

    def get_record(self, source, identifier, group_filter=None):
        located = self._locate(source, identifier, group_filter)
        if located is None:
            return None
        grid, block = located
        return extract_record(grid, block, self.template)

    def get_aggregate(self, source, allowed_identifiers, group_filter=None):
        loaded = self._load(source)
        if loaded is None:
            return None
        grid, blocks = loaded
        return aggregate(grid, blocks, self.template, group_filter, allowed_identifiers)

    def get_roles(self, source, identifier, group_filter=None):
        located = self._locate(source, identifier, group_filter)
        if located is None:
            return None
        grid, block = located
        return extract_roles(grid, block, self.template)

    def describe(self, source):
        sheet = self.resolve(source)
        if sheet is None:
            return None
        grid = source.get_sheet_grid(sheet.name)
        groups = scan_groups(grid, self.template)
        blocks = scan_blocks(grid, self.template)
        return {
            "format": self.name,
            "sheet": sheet.name,
            "strategy": sheet.strategy,
            "dynamic_param": sheet.dynamic_param,
            "template_version": self.template.version,
            "rows": grid.height,
            "columns": grid.width,
            "groups": {
                g.label: [b.record_label for b in blocks if b.group_label == g.label]
                for g in groups
            },
        }


# ---------------------------------------------------------------------------
# Legacy format (one row per team on the "Capacity" sheet)
# ---------------------------------------------------------------------------

class LegacyFormatHandler(FormatHandler):
    """Reads the older single-table ``Capacity`` sheet.

    Team names are in column A from sheet row 3; a team's capacity is the
    sum of columns B..F.  The sheet has no value streams, iterations or
    feature-freeze split, so only ``total`` is populated.
    """

    name = "legacy"

    def __init__(self, sheet_name: str = DEFAULT_LEGACY_SHEET_NAME,
                 first_record_row: int = 2, label_col: int = 0,
                 value_cols: tuple = (1, 5)):
        self.sheet_name = sheet_name
        self.first_record_row = first_record_row
        self.label_col = label_col
        self.value_cols = value_cols

    def is_available(self, source: GridSource) -> bool:
        return self.sheet_name in source.list_sheet_names()

    def _rows(self, source: GridSource) -> Optional[tuple[Grid, list[LocatedBlock]]]:
        if not self.is_available(source):
            logger.info(f"Legacy sheet '{self.sheet_name}' not found")
            return None
        grid = source.get_sheet_grid(self.sheet_name)
        rows = []
        for row in range(self.first_record_row, grid.height):
            label = cell_text(grid.at(row, self.label_col))
            if label:
                rows.append(LocatedBlock(label, "", row, self.label_col))
        return grid, rows

    def _record(self, grid: Grid, row: LocatedBlock) -> ExtractedRecord:
        first, last = self.value_cols
        total = sum(coerce_number(grid.at(row.anchor_row, c)) for c in range(first, last + 1))
        return ExtractedRecord(identifier=row.record_label, group="", total=total)

    def get_record(self, source, identifier, group_filter=None):
        loaded = self._rows(source)
        if loaded is None:
            return None
        grid, rows = loaded
        if group_filter:
            logger.debug(f"Legacy sheet has no value streams; ignoring filter '{group_filter}'")
        row = resolve_identifier(rows, identifier)
        if row is None:
            return None
        return self._record(grid, row)

    def get_aggregate(self, source, allowed_identifiers, group_filter=None):
        loaded = self._rows(source)
        if loaded is None:
            return None
        grid, rows = loaded
        records = [self._record(grid, row) for row in rows]
        return aggregate_records(records, allowed_identifiers, categories=[])


def default_handlers(config: Optional[dict] = None,
                     template: BlockTemplate = CAPACITY_TEMPLATE_V1) -> list[FormatHandler]:
    """Consolidated handler followed by the legacy fallback, per *config*."""
    config = config or {}
    return [
        ConsolidatedFormatHandler(
            template=template,
            sheet_name_pattern=config.get("sheet_name_pattern", DEFAULT_SHEET_NAME_PATTERN),
            fallback_sheet_names=config.get("fallback_sheet_names", DEFAULT_FALLBACK_SHEET_NAMES),
            dynamic_param=config.get("dynamic_param"),
        ),
        LegacyFormatHandler(
            sheet_name=config.get("legacy_sheet_name", DEFAULT_LEGACY_SHEET_NAME),
        ),
    ]
