"""Capacity Reader.

Reads team capacity out of a capacity planning workbook in which every
team occupies a fixed-size block and blocks repeat at a fixed stride:

  * **scan**: find value streams and team blocks by probing anchor cells.
  * **match**: resolve a hand-typed team name to its block, tolerating
    case, spacing, ``-``/``_`` and partial names.
  * **extract**: read allocations, iterations and feature-freeze capacity
    of a block through a versioned offset template.
  * **aggregate**: sum teams into a value stream capacity summary.

Workbooks still on the older single-table ``Capacity`` sheet are read by a
fallback handler.
"""

from .aggregator import AggregateResult, GroupTotals, aggregate
from .extractor import ExtractedRecord, RoleCapacity, extract_record, extract_roles
from .grid import Grid, GridSource, InMemoryGridSource, WorkbookGridSource
from .matching import normalize, resolve_identifier
from .reader import (
    CapacityReader,
    describe_structure,
    get_aggregate_for_group,
    get_period_slice,
    get_record_by_identifier,
    get_roles_for_identifier,
    get_summary_value,
    is_primary_format_available,
)
from .scanner import LocatedBlock, scan_blocks
from .sheet_resolver import ResolvedSheet, resolve_sheet
from .template import CAPACITY_TEMPLATE_V1, BlockTemplate

__all__ = [
    "AggregateResult",
    "BlockTemplate",
    "CAPACITY_TEMPLATE_V1",
    "CapacityReader",
    "ExtractedRecord",
    "Grid",
    "GridSource",
    "GroupTotals",
    "InMemoryGridSource",
    "LocatedBlock",
    "ResolvedSheet",
    "RoleCapacity",
    "WorkbookGridSource",
    "aggregate",
    "describe_structure",
    "extract_record",
    "extract_roles",
    "get_aggregate_for_group",
    "get_period_slice",
    "get_record_by_identifier",
    "get_roles_for_identifier",
    "get_summary_value",
    "is_primary_format_available",
    "normalize",
    "resolve_identifier",
    "resolve_sheet",
    "scan_blocks",
]
