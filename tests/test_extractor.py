"""Tests for reading team records and role capacity out of located blocks."""

import os
import random
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from tests.create_sample_workbook import build_capacity_rows, sample_value_streams, team_block
from capacity_reader.extractor import extract_record, extract_roles, summarise_categories
from capacity_reader.grid import Grid
from capacity_reader.scanner import LocatedBlock, scan_blocks
from capacity_reader.template import CAPACITY_TEMPLATE_V1 as T


def _single_team_grid(**kwargs):
    rows = build_capacity_rows({"Alpha": [team_block("Team-X", **kwargs)]})
    return Grid.from_rows(rows), LocatedBlock("Team-X", "Alpha", 2, 0)


@pytest.fixture(scope="module")
def sample():
    grid = Grid.from_rows(build_capacity_rows(sample_value_streams()))
    blocks = {b.record_label: b for b in scan_blocks(grid, T)}
    return grid, blocks


class TestExtractRecord:
    def test_numeric_text_total(self):
        grid, block = _single_team_grid(totals={"quality": "5"})
        assert extract_record(grid, block, T).category_values["quality"] == 5

    def test_placeholder_total_is_zero(self):
        grid, block = _single_team_grid(totals={"quality": "-"})
        assert extract_record(grid, block, T).category_values["quality"] == 0

    def test_sample_team(self, sample):
        grid, blocks = sample
        record = extract_record(grid, blocks["Team-Alpha"], T)
        assert record.identifier == "Team-Alpha"
        assert record.group == "Clinical"
        assert record.category_values == {
            "klo": 10.0,
            "quality": 5.0,
            "tech_platform": 8.0,
            "product_feature": 20.0,
            "product_compliance": 4.0,
            "unplanned_work": 3.0,
        }
        assert record.total == 50.0
        assert record.derived_total == 24.0
        assert record.summary_before_cutoff == 40.0
        assert record.summary_after_cutoff == 10.0

    def test_per_period_values(self, sample):
        grid, blocks = sample
        periods = extract_record(grid, blocks["Team-Alpha"], T).per_period_values
        assert sorted(periods) == [1, 2, 3, 4, 5, 6]
        assert periods[1] == {
            "klo": 2.0,
            "quality": 1.0,
            "tech_platform": 2.0,
            "product_feature": 4.0,
            "product_compliance": 1.0,
            "unplanned_work": 1.0,
        }
        assert periods[6]["quality"] == 0.0
        assert periods[6]["product_compliance"] == 0.0

    def test_summary_values(self, sample):
        grid, blocks = sample
        record = extract_record(grid, blocks["Team-Alpha"], T)
        assert record.summary_values == {
            "Features": 24.0,
            "Tech/Platform": 8.0,
            "Planned KLO": 10.0,
            "Planned Quality": 5.0,
            "Unplanned": 3.0,
        }

    def test_second_value_stream_uses_its_own_columns(self, sample):
        grid, blocks = sample
        record = extract_record(grid, blocks["Team_Gamma"], T)
        assert record.group == "Commercial"
        assert record.category_values["quality"] == 12.0
        assert record.category_values["klo"] == 0.0
        assert record.total == 18.0
        assert (record.summary_before_cutoff, record.summary_after_cutoff) == (15.0, 3.0)

    def test_record_values_are_read_only(self, sample):
        grid, blocks = sample
        record = extract_record(grid, blocks["Team-Alpha"], T)
        with pytest.raises(TypeError):
            record.category_values["klo"] = 0.0
        with pytest.raises(TypeError):
            record.per_period_values[1]["klo"] = 0.0
        with pytest.raises(TypeError):
            record.summary_values["Features"] = 0.0
        assert extract_record(grid, blocks["Team-Alpha"], T).category_values["klo"] == 10.0

    def test_integer_too_large_for_float_is_zero(self):
        grid, block = _single_team_grid(totals={"quality": 10 ** 400, "klo": 2})
        record = extract_record(grid, block, T)
        assert record.category_values["quality"] == 0.0
        assert record.total == 2.0

    def test_total_with_trailing_note(self):
        grid, block = _single_team_grid(totals={"quality": "10 SP", "klo": "abc"})
        record = extract_record(grid, block, T)
        assert record.category_values["quality"] == 10.0
        assert record.category_values["klo"] == 0.0

    def test_block_at_grid_edge_reads_zero(self):
        rows = [["Alpha"] + [None] * 10, [None] * 11, ["Team-X"] + [None] * 10]
        record = extract_record(Grid.from_rows(rows), LocatedBlock("Team-X", "Alpha", 2, 0), T)
        assert record.total == 0.0
        assert record.summary_after_cutoff == 0.0

    def test_junk_cells_never_raise(self):
        rng = random.Random(11)
        junk = [None, "", "-", "n/a", "1,5", True, float("nan"), float("inf"), "3", 2.5, -1,
                10 ** 400, "4 SP"]
        rows = build_capacity_rows({"VS": [team_block("Team-J")]})
        for r in range(3, len(rows)):
            for c in range(1, 11):
                rows[r][c] = rng.choice(junk)
        record = extract_record(Grid.from_rows(rows), LocatedBlock("Team-J", "VS", 2, 0), T)
        assert all(isinstance(v, float) for v in record.category_values.values())
        assert record.total == sum(record.category_values.values())


def test_summarise_categories_defaults_missing_to_zero():
    assert summarise_categories({"klo": 3.0}, T)["Features"] == 0.0
    assert summarise_categories({"klo": 3.0}, T)["Planned KLO"] == 3.0


class TestExtractRoles:
    def test_roles_combine_before_and_after_cutoff(self, sample):
        grid, blocks = sample
        roles = extract_roles(grid, blocks["Team-Alpha"], T)
        assert set(roles) == {"BE", "QA"}
        be = roles["BE"]
        assert (be.before_cutoff, be.after_cutoff, be.total) == (20.0, 5.0, 25.0)
        assert be.by_period == {1: 4.0, 2: 4.0, 3: 4.0, 4: 4.0, 5: 2.0, 6: 2.0}

    def test_aliases_keep_sheet_display_name(self, sample):
        grid, blocks = sample
        qa = extract_roles(grid, blocks["Team-Alpha"], T)["QA"]
        assert qa.display_name == "AQA"
        assert qa.total == 10.0

    def test_team_without_roles(self, sample):
        grid, blocks = sample
        assert extract_roles(grid, blocks["Team-Beta"], T) == {}

    def test_total_rows_are_not_roles(self):
        grid, block = _single_team_grid(roles_before={"FE": (6, [1] * 6), "Total": (6, [])})
        assert list(extract_roles(grid, block, T)) == ["FE"]
