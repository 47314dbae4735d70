"""
Entry points used by report builders.

:class:`CapacityReader` walks its format handlers in order and delegates to
the first one whose sheet exists.  Lookups that cannot be resolved return
``None`` (``0.0`` for :meth:`CapacityReader.get_summary_value`) instead of
raising, so summaries always receive a well-typed result.  Failures of the
workbook itself (missing file, unreadable sheet) propagate.

The module-level functions are one-shot shortcuts over a default reader.
"""

import logging
from typing import Optional

from .aggregator import AggregateResult
from .config import DEFAULT_CONFIG
from .extractor import ExtractedRecord
from .grid import GridSource
from .handlers import FormatHandler, default_handlers
from .template import template_from_config

logger = logging.getLogger(__name__)


class CapacityReader:
    """Capacity lookups over one workbook."""

    def __init__(self, source: GridSource, handlers: Optional[list[FormatHandler]] = None):
        self.source = source
        self.handlers = list(handlers) if handlers is not None else default_handlers()

    @classmethod
    def from_config(cls, source: GridSource, config: Optional[dict] = None) -> "CapacityReader":
        config = config or DEFAULT_CONFIG
        template = template_from_config(config)
        return cls(source, default_handlers(config, template))

    def active_handler(self) -> Optional[FormatHandler]:
        """The first handler whose format is present, or ``None``."""
        for handler in self.handlers:
            if handler.is_available(self.source):
                logger.info(f"Using {handler.name} capacity format")
                return handler
        logger.info("No capacity data available in this workbook")
        return None

    def is_primary_format_available(self) -> bool:
        return bool(self.handlers) and self.handlers[0].is_available(self.source)

    def get_record_by_identifier(self, identifier: str,
                                 group_filter: Optional[str] = None) -> Optional[ExtractedRecord]:
        handler = self.active_handler()
        if handler is None:
            return None
        return handler.get_record(self.source, identifier, group_filter)

    def get_aggregate_for_group(self, allowed_identifiers: list[str],
                                group_filter: Optional[str] = None) -> Optional[AggregateResult]:
        handler = self.active_handler()
        if handler is None:
            return None
        return handler.get_aggregate(self.source, list(allowed_identifiers or []), group_filter)

    def get_period_slice(self, identifier: str, period_index: int,
                         group_filter: Optional[str] = None) -> Optional[dict]:
        """Category values of one iteration, or ``None``."""
        record = self.get_record_by_identifier(identifier, group_filter)
        if record is None or period_index not in record.per_period_values:
            return None
        return dict(record.per_period_values[period_index])

    def get_summary_value(self, identifier: str, before_cutoff: bool = True,
                          group_filter: Optional[str] = None) -> float:
        """Base capacity before (or after) feature freeze; ``0.0`` if unknown."""
        record = self.get_record_by_identifier(identifier, group_filter)
        if record is None:
            return 0.0
        return record.summary_before_cutoff if before_cutoff else record.summary_after_cutoff

    def get_roles_for_identifier(self, identifier: str,
                                 group_filter: Optional[str] = None) -> Optional[dict]:
        handler = self.active_handler()
        if handler is None:
            return None
        return handler.get_roles(self.source, identifier, group_filter)

    def describe_structure(self) -> Optional[dict]:
        handler = self.active_handler()
        if handler is None:
            return None
        return handler.describe(self.source) or {"format": handler.name}


# ---------------------------------------------------------------------------
# One-shot helpers
# ---------------------------------------------------------------------------

def is_primary_format_available(source: GridSource, config: Optional[dict] = None) -> bool:
    return CapacityReader.from_config(source, config).is_primary_format_available()


def get_record_by_identifier(source: GridSource, identifier: str,
                             group_filter: Optional[str] = None,
                             config: Optional[dict] = None) -> Optional[ExtractedRecord]:
    return CapacityReader.from_config(source, config).get_record_by_identifier(
        identifier, group_filter)


def get_aggregate_for_group(source: GridSource, allowed_identifiers: list[str],
                            group_filter: Optional[str] = None,
                            config: Optional[dict] = None) -> Optional[AggregateResult]:
    return CapacityReader.from_config(source, config).get_aggregate_for_group(
        allowed_identifiers, group_filter)


def get_period_slice(source: GridSource, identifier: str, period_index: int,
                     group_filter: Optional[str] = None,
                     config: Optional[dict] = None) -> Optional[dict]:
    return CapacityReader.from_config(source, config).get_period_slice(
        identifier, period_index, group_filter)


def get_summary_value(source: GridSource, identifier: str, before_cutoff: bool = True,
                      group_filter: Optional[str] = None,
                      config: Optional[dict] = None) -> float:
    return CapacityReader.from_config(source, config).get_summary_value(
        identifier, before_cutoff, group_filter)


def get_roles_for_identifier(source: GridSource, identifier: str,
                             group_filter: Optional[str] = None,
                             config: Optional[dict] = None) -> Optional[dict]:
    return CapacityReader.from_config(source, config).get_roles_for_identifier(
        identifier, group_filter)


def describe_structure(source: GridSource, config: Optional[dict] = None) -> Optional[dict]:
    return CapacityReader.from_config(source, config).describe_structure()
