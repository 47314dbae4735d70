"""
Block template: the fixed offset table describing one team block in the
consolidated capacity planning sheet.

Layout of version ``v1`` (offsets relative to the team-name cell, 0-indexed)::

    +0   team name
    +1   "Allocation Type" header
    +2   KLO                  label in col +2, iterations in +3..+8, total in +9
    +3   Quality
    +4   Tech / Platform
    +5   Product - Feature
    +6   Product - Compliance
    +7   Unplanned work
    +8   allocation totals per iteration
    +10  "Base Capacity before FF" header, roles in +11..+15
    +16  capacity total before feature freeze
    +18  "Base Capacity after FF" header, roles in +19..+23
    +24  capacity total after feature freeze

Blocks repeat every 11 columns (one value stream per column band, name on
sheet row 1) and every 25 rows (one team per block, first team on sheet
row 3).  A change to the physical layout means a new template value with a
new ``version``; templates are never mutated.
"""

import dataclasses
from dataclasses import dataclass, field
from types import MappingProxyType


def _category_rows():
    return {
        "klo": 2,
        "quality": 3,
        "tech_platform": 4,
        "product_feature": 5,
        "product_compliance": 6,
        "unplanned_work": 7,
    }


def _summary_categories():
    return {
        "Features": ("product_feature", "product_compliance"),
        "Tech/Platform": ("tech_platform",),
        "Planned KLO": ("klo",),
        "Planned Quality": ("quality",),
        "Unplanned": ("unplanned_work",),
    }


def _role_aliases():
    return {
        "QA": "QA",
        "AQA": "QA",
        "W-DEV": "W-DEV",
        "WDEV": "W-DEV",
        "W DEV": "W-DEV",
        "M-DEV": "M-DEV",
        "MDEV": "M-DEV",
        "M DEV": "M-DEV",
        "MOBILE": "M-DEV",
        "M-ANDROID": "M-ANDROID",
        "M-IOS": "M-IOS",
        "BE": "BE",
        "FE": "FE",
        "DEVOPS": "DEVOPS",
        "UX": "UX",
    }


def read_only(mapping) -> MappingProxyType:
    """Read-only copy of *mapping*, for dict fields of frozen dataclasses."""
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class BlockTemplate:
    """Offset table for one version of the block layout."""
    version: str = "v1"

    # Anchor discovery
    group_stride: int = 11            # columns between value stream anchors
    record_stride: int = 25           # rows between team anchors
    group_anchor_row: int = 0         # sheet row 1
    first_record_row: int = 2         # sheet row 3
    label_col: int = 0

    # Allocation section
    category_label_col: int = 2
    category_rows: dict = field(default_factory=_category_rows)
    allocation_total_row: int = 8
    period_cols: tuple = (3, 8)       # inclusive; iterations 1..6
    total_col: int = 9

    # Base capacity sections, split at the feature freeze cutoff
    before_cutoff_total_row: int = 16
    after_cutoff_total_row: int = 24
    before_cutoff_role_rows: tuple = (11, 15)
    after_cutoff_role_rows: tuple = (19, 23)
    role_skip_substrings: tuple = ("base capacity", "total")
    role_aliases: dict = field(default_factory=_role_aliases)

    # Derived values
    derived_categories: tuple = ("product_feature", "product_compliance")
    summary_categories: dict = field(default_factory=_summary_categories)

    # Labels on the record stride that are never records
    reserved_substrings: tuple = ("allocation", "base capacity")
    reserved_labels: tuple = ("mobile", "qa", "w-dev", "m-dev", "be", "fe", "aqa")

    def __post_init__(self):
        for name in ("category_rows", "role_aliases", "summary_categories"):
            object.__setattr__(self, name, read_only(getattr(self, name)))
        if self.group_stride <= 0 or self.record_stride <= 0:
            raise ValueError("Template strides must be positive")
        rows = list(self.category_rows.values()) + [
            self.allocation_total_row,
            self.before_cutoff_total_row,
            self.after_cutoff_total_row,
            *self.before_cutoff_role_rows,
            *self.after_cutoff_role_rows,
        ]
        cols = [self.label_col, self.category_label_col, self.total_col, *self.period_cols]
        if min(rows) < 0 or max(rows) >= self.record_stride:
            raise ValueError(
                f"Template {self.version}: row offsets must fall inside the "
                f"{self.record_stride}-row block")
        if min(cols) < 0 or max(cols) >= self.group_stride:
            raise ValueError(
                f"Template {self.version}: column offsets must fall inside the "
                f"{self.group_stride}-column block")
        if self.period_cols[1] < self.period_cols[0]:
            raise ValueError(f"Template {self.version}: empty period column range")
        unknown = {c for cats in self.summary_categories.values() for c in cats}
        unknown |= set(self.derived_categories)
        unknown -= set(self.category_rows)
        if unknown:
            raise ValueError(
                f"Template {self.version}: unknown categories {sorted(unknown)}")

    @property
    def periods(self) -> range:
        """Period (iteration) numbers, 1-based."""
        first, last = self.period_cols
        return range(1, last - first + 2)

    def period_col(self, period: int) -> int:
        return self.period_cols[0] + period - 1

    def role_rows(self, before_cutoff: bool) -> range:
        first, last = (self.before_cutoff_role_rows if before_cutoff
                       else self.after_cutoff_role_rows)
        return range(first, last + 1)


CAPACITY_TEMPLATE_V1 = BlockTemplate()


# ---------------------------------------------------------------------------
# Config overrides
# ---------------------------------------------------------------------------

_TUPLE_FIELDS = {
    f.name for f in dataclasses.fields(BlockTemplate)
    if isinstance(f.default, tuple)
}


def template_from_config(config: dict, base: BlockTemplate = CAPACITY_TEMPLATE_V1) -> BlockTemplate:
    """Return *base* with the ``template`` overrides from *config* applied.

    Unknown keys raise ``ValueError`` so a typo in the YAML fails loudly at
    load time rather than silently reading the wrong cells.
    """
    overrides = dict(config.get("template") or {})
    if not overrides:
        return base

    known = {f.name for f in dataclasses.fields(BlockTemplate)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ValueError(f"Unknown template settings: {', '.join(unknown)}")

    for key in _TUPLE_FIELDS & set(overrides):
        overrides[key] = tuple(overrides[key])
    if "summary_categories" in overrides:
        overrides["summary_categories"] = {
            label: tuple(cats) for label, cats in overrides["summary_categories"].items()
        }
    return dataclasses.replace(base, **overrides)
