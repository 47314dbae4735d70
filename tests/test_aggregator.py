"""Tests for value-stream aggregation."""

import itertools
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from tests.create_sample_workbook import build_capacity_rows, sample_value_streams, team_block
from capacity_reader.aggregator import aggregate, aggregate_records
from capacity_reader.extractor import ExtractedRecord, extract_record
from capacity_reader.grid import Grid
from capacity_reader.scanner import scan_blocks
from capacity_reader.template import CAPACITY_TEMPLATE_V1 as T


@pytest.fixture(scope="module")
def sample():
    grid = Grid.from_rows(build_capacity_rows(sample_value_streams()))
    return grid, scan_blocks(grid, T)


def _record(name, total, features=0.0, before=0.0):
    return ExtractedRecord(
        identifier=name,
        group="VS",
        category_values={"product_feature": features},
        per_period_values={1: {"product_feature": features}},
        summary_before_cutoff=before,
        total=total,
        derived_total=features,
        summary_values={"Features": features},
    )


class TestAggregate:
    def test_empty_allowlist_includes_every_block(self, sample):
        grid, blocks = sample
        result = aggregate(grid, blocks, T, allowed_identifiers=[])
        assert list(result.by_group) == ["Team-Alpha", "Team-Beta", "Team_Gamma"]
        records = [extract_record(grid, b, T) for b in blocks]
        for category, value in result.by_category.items():
            assert value == sum(r.summary_values[category] for r in records)
        assert result.total == 50.0 + 24.0 + 18.0

    def test_category_keys_follow_template(self, sample):
        grid, blocks = sample
        result = aggregate(grid, blocks, T)
        assert list(result.by_category) == list(T.summary_categories)
        assert result.by_category["Features"] == 24.0 + 18.0 + 6.0

    def test_group_filter(self, sample):
        grid, blocks = sample
        result = aggregate(grid, blocks, T, group_filter="clinical")
        assert list(result.by_group) == ["Team-Alpha", "Team-Beta"]
        assert result.total == 74.0

    def test_allowlist_drops_unlisted_teams(self, sample):
        grid, blocks = sample
        result = aggregate(grid, blocks, T, allowed_identifiers=["team alpha", "Team Gamma"])
        assert list(result.by_group) == ["Team Gamma", "team alpha"]
        alpha = result.by_group["team alpha"]
        assert alpha.record_labels == ("Team-Alpha",)
        assert alpha.total == 50.0
        assert alpha.summary_before_cutoff == 40.0
        assert alpha.per_period_values[1]["klo"] == 2.0
        assert result.total == 68.0

    def test_allowlist_nothing_matches(self, sample):
        grid, blocks = sample
        result = aggregate(grid, blocks, T, allowed_identifiers=["Payments"])
        assert result.by_group == {}
        assert result.total == 0.0
        assert all(v == 0.0 for v in result.by_category.values())

    def test_no_blocks(self):
        result = aggregate(Grid.from_rows([]), [], T)
        assert result.by_group == {}
        assert result.by_category == {c: 0.0 for c in T.summary_categories}


class TestAggregateRecords:
    def test_result_does_not_depend_on_record_order(self):
        records = [_record("A", 0.1, 0.1), _record("B", 0.2, 0.7), _record("C", 0.3, 1e-9),
                   _record("D", 1e16, 3.0)]
        results = [aggregate_records(list(p)) for p in itertools.permutations(records)]
        assert all(r == results[0] for r in results)

    def test_records_matching_the_same_identifier_are_merged(self):
        records = [_record("Team-Core", 10, 4, before=8), _record("Team Core", 5, 1, before=2)]
        result = aggregate_records(records, ["team core"])
        merged = result.by_group["team core"]
        assert merged.record_labels == ("Team Core", "Team-Core")
        assert merged.total == 15.0
        assert merged.derived_total == 5.0
        assert merged.summary_before_cutoff == 10.0
        assert merged.summary_values == {"Features": 5.0}
        assert merged.per_period_values == {1: {"product_feature": 5.0}}

    def test_duplicate_labels_without_allowlist_are_merged(self):
        result = aggregate_records([_record("X", 1), _record("X", 2)])
        assert result.by_group["X"].total == 3.0
        assert result.total == 3.0

    def test_categories_default_to_those_on_records(self):
        result = aggregate_records([_record("A", 1, 2)])
        assert result.by_category == {"Features": 2.0}

    def test_explicit_empty_categories(self):
        result = aggregate_records([_record("A", 1, 2)], categories=[])
        assert result.by_category == {}
        assert result.total == 1.0

    def test_none_entries_in_allowlist_are_ignored(self):
        result = aggregate_records([_record("A", 1)], [None, "A"])
        assert list(result.by_group) == ["A"]

    def test_allowlist_mixing_numbers_and_names(self):
        records = [_record("42", 1), _record("Team A", 2), _record("Team B", 4)]
        result = aggregate_records(records, [42, "Team A"])
        assert list(result.by_group) == [42, "Team A"]
        assert result.by_group[42].record_labels == ("42",)
        assert result.total == 3.0


def test_shared_team_name_across_value_streams():
    rows = build_capacity_rows({
        "Clinical": [team_block("Team-Core", totals={"klo": 3}, before_ff=3)],
        "Commercial": [team_block("Team-Core", totals={"klo": 4}, before_ff=4)],
    })
    grid = Grid.from_rows(rows)
    result = aggregate(grid, scan_blocks(grid, T), T, allowed_identifiers=["Team Core"])
    assert result.by_group["Team Core"].total == 7.0
    assert result.by_group["Team Core"].summary_before_cutoff == 7.0
