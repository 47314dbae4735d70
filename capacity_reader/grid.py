"""
Grid access: the read-only 2-D cell array the scanner and extractor work on,
plus the Grid Source collaborators that materialise one from a workbook.

Coordinates inside the package are 0-indexed ``(row, col)``.  Sheets, the
CLI and anything a human reads are 1-indexed; :func:`to_internal` and
:func:`to_external` are the only places where the two meet.
"""

import logging
import math
import re
from abc import ABC, abstractmethod
from typing import Any

import numpy as np
import pandas as pd
from openpyxl import load_workbook

logger = logging.getLogger(__name__)

# Literal used in the planning sheets for "nothing planned here"
PLACEHOLDER = "-"

# Leading decimal number of a text cell ("10 SP" -> "10")
_LEADING_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


# ---------------------------------------------------------------------------
# Coordinate conversion (sheet boundary only)
# ---------------------------------------------------------------------------

def to_internal(row: int, col: int) -> tuple[int, int]:
    """Convert 1-indexed sheet coordinates to 0-indexed grid coordinates."""
    return row - 1, col - 1


def to_external(row: int, col: int) -> tuple[int, int]:
    """Convert 0-indexed grid coordinates to 1-indexed sheet coordinates."""
    return row + 1, col + 1


# ---------------------------------------------------------------------------
# Cell value helpers
# ---------------------------------------------------------------------------

def is_blank(value: Any) -> bool:
    """Return True for ``None``, NaN and whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def cell_text(value: Any) -> str:
    """Return the trimmed text of a cell, ``""`` for blanks."""
    if is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def coerce_number(value: Any) -> float:
    """Coerce a raw cell value to a finite float.

    Text is read up to the end of its leading number, so ``"10 SP"`` is
    ``10.0`` and ``"8*"`` is ``8.0``.  Blanks, the ``"-"`` placeholder,
    booleans, text without a leading number and anything that is not finite
    all read as ``0.0``.  Hand-maintained sheets are full of stray markers,
    so this never raises.
    """
    if value is None or isinstance(value, (bool, np.bool_)):
        return 0.0
    if isinstance(value, str):
        value = value.strip()
        if value in ("", PLACEHOLDER):
            return 0.0
        match = _LEADING_NUMBER.match(value)
        if match is None:
            return 0.0
        value = match.group(0)
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


# ---------------------------------------------------------------------------
# Grid handle
# ---------------------------------------------------------------------------

class Grid:
    """Immutable rectangular array of raw cell values (0-indexed)."""

    def __init__(self, values: np.ndarray):
        values = np.array(values, dtype=object)
        if values.ndim != 2:
            raise ValueError(f"Grid needs a 2-D array, got {values.ndim} dimension(s)")
        values.setflags(write=False)
        self._values = values

    @classmethod
    def from_rows(cls, rows: list[list[Any]]) -> "Grid":
        """Build a grid from a list of row lists; short rows are padded."""
        if not rows:
            return cls(np.empty((0, 0), dtype=object))
        frame = pd.DataFrame(rows, dtype=object)
        return cls.from_frame(frame)

    @classmethod
    def from_frame(cls, frame: pd.DataFrame) -> "Grid":
        """Build a grid from a positional DataFrame (index labels are ignored)."""
        if frame.empty:
            return cls(np.empty((0, 0), dtype=object))
        values = frame.to_numpy(dtype=object)
        # pandas pads ragged input with NaN; keep blanks as None
        mask = pd.isna(frame).to_numpy()
        values = values.copy()
        values[mask] = None
        return cls(values)

    @property
    def height(self) -> int:
        return int(self._values.shape[0])

    @property
    def width(self) -> int:
        return int(self._values.shape[1])

    def at(self, row: int, col: int) -> Any:
        """Raw value at 0-indexed ``(row, col)``; ``None`` outside the grid."""
        if row < 0 or col < 0 or row >= self.height or col >= self.width:
            return None
        return self._values[row, col]

    def get_cell(self, row: int, col: int) -> Any:
        """Raw value at 1-indexed sheet coordinates."""
        return self.at(*to_internal(row, col))

    def __repr__(self):
        return f"Grid(rows={self.height}, cols={self.width})"


# ---------------------------------------------------------------------------
# Grid sources
# ---------------------------------------------------------------------------

class GridSource(ABC):
    """A workbook-like collaborator that hands out sheet grids by name."""

    @abstractmethod
    def list_sheet_names(self) -> list[str]:
        """Return the sheet names in workbook order."""
        ...

    @abstractmethod
    def get_sheet_grid(self, name: str) -> Grid:
        """Materialise the used range of sheet *name*.

        Raises ``KeyError`` when the sheet does not exist.
        """
        ...

    def has_sheet(self, name: str) -> bool:
        return name in self.list_sheet_names()


class InMemoryGridSource(GridSource):
    """Grid source over plain Python rows, keyed by sheet name."""

    def __init__(self, sheets: dict[str, list[list[Any]]]):
        self._sheets = dict(sheets)

    def list_sheet_names(self) -> list[str]:
        return list(self._sheets.keys())

    def get_sheet_grid(self, name: str) -> Grid:
        if name not in self._sheets:
            raise KeyError(f"Worksheet {name} does not exist.")
        return Grid.from_rows(self._sheets[name])


def _load_sheet_dataframe(ws) -> pd.DataFrame:
    """Load a worksheet into a DataFrame preserving cell positions.

    Row / column labels are 1-based to match openpyxl conventions.
    """
    max_row = ws.max_row or 0
    max_col = ws.max_column or 0
    if max_row == 0 or max_col == 0:
        return pd.DataFrame()

    data = []
    for r in range(1, max_row + 1):
        row_vals = []
        for c in range(1, max_col + 1):
            row_vals.append(ws.cell(row=r, column=c).value)
        data.append(row_vals)

    cols = list(range(1, max_col + 1))
    idx = list(range(1, max_row + 1))
    return pd.DataFrame(data, index=idx, columns=cols, dtype=object)


class WorkbookGridSource(GridSource):
    """Grid source backed by an ``.xlsx`` file on disk.

    Cached values are read (``data_only=True``) so formula cells yield the
    numbers last computed by the spreadsheet application.  Errors opening
    the file propagate to the caller.
    """

    def __init__(self, path: str):
        self.path = path
        self._wb = load_workbook(path, data_only=True)
        logger.debug(f"Opened workbook {path} with sheets {self._wb.sheetnames}")

    def list_sheet_names(self) -> list[str]:
        return list(self._wb.sheetnames)

    def get_sheet_grid(self, name: str) -> Grid:
        ws = self._wb[name]
        grid = Grid.from_frame(_load_sheet_dataframe(ws))
        logger.debug(f"Materialised sheet '{name}': {grid.height} rows x {grid.width} columns")
        return grid

    def close(self):
        self._wb.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
