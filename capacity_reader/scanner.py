"""
Locate team blocks in the consolidated capacity grid.

The layout is strictly periodic, so anchors are probed by position and
stride instead of scanning every cell: value stream names sit on the group
anchor row every ``group_stride`` columns, team names sit in the value
stream's first column every ``record_stride`` rows.
"""

import logging
from dataclasses import dataclass

from .grid import Grid, cell_text, to_external
from .template import BlockTemplate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GroupAnchor:
    """A value stream column band."""
    label: str
    start_col: int


@dataclass(frozen=True)
class LocatedBlock:
    """One team block, identified by its anchor cell (0-indexed)."""
    record_label: str
    group_label: str
    anchor_row: int
    anchor_col: int

    @property
    def sheet_coordinates(self) -> tuple[int, int]:
        """1-indexed ``(row, col)`` of the anchor, for messages and reports."""
        return to_external(self.anchor_row, self.anchor_col)


def is_reserved_label(label: str, template: BlockTemplate) -> bool:
    """True if *label* is a section header rather than a team name.

    Structural tokens (``allocation``, ``base capacity``) match anywhere in
    the label; role tokens (``qa``, ``be`` ...) must be the whole label, so
    a team called e.g. "Beacon" is not mistaken for the ``be`` role row.
    """
    text = label.strip().lower()
    if any(token.lower() in text for token in template.reserved_substrings):
        return True
    return text in {token.lower() for token in template.reserved_labels}


def scan_groups(grid: Grid, template: BlockTemplate) -> list[GroupAnchor]:
    """Return the value streams found on the group anchor row."""
    groups = []
    for col in range(0, grid.width, template.group_stride):
        label = cell_text(grid.at(template.group_anchor_row, col))
        if label:
            groups.append(GroupAnchor(label, col))
            logger.debug(f"Found value stream '{label}' at column {col + 1}")
    return groups


def scan_blocks(grid: Grid, template: BlockTemplate) -> list[LocatedBlock]:
    """Return every team block, in value-stream-then-row order."""
    blocks = []
    for group in scan_groups(grid, template):
        col = group.start_col + template.label_col
        for row in range(template.first_record_row, grid.height, template.record_stride):
            label = cell_text(grid.at(row, col))
            if not label:
                continue
            if is_reserved_label(label, template):
                logger.debug(f"Skipping header row '{label}' at row {row + 1}")
                continue
            blocks.append(LocatedBlock(label, group.label, row, col))
            logger.debug(f"  Found team '{label}' at row {row + 1}, col {col + 1}")

    logger.info(f"Total teams found: {len(blocks)}")
    return blocks
