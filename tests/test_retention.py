"""Tests for quarterly cohort retention."""

import logging
from datetime import date, datetime
from decimal import Decimal

import pytest

from purchase_behavior_audit.analyses.retention import (
    RetentionCell,
    RetentionMatrix,
    build_retention_matrix,
)
from purchase_behavior_audit.foundation.classification import Segment, classify_customers
from purchase_behavior_audit.foundation.order_identity import resolve_identities
from purchase_behavior_audit.foundation.records import RawOrderLine


def _line(customer_id, ts, line_id, product="Item"):
    return RawOrderLine(customer_id, ts, product, Decimal("20.00"), line_id)


def _matrix(lines, **kwargs):
    classification = classify_customers(resolve_identities(lines))
    return build_retention_matrix(lines, classification, **kwargs)


@pytest.fixture
def q1_2024_cohort():
    """100 returning customers acquired in 2024-Q1, 40 of them back in Q2."""
    lines = []
    for i in range(100):
        cid = str(i)
        lines.append(_line(cid, datetime(2024, 1, 10, 12), f"{cid}-a"))
        lines.append(_line(cid, datetime(2024, 2, 10, 12), f"{cid}-b"))
        if i < 40:
            lines.append(_line(cid, datetime(2024, 5, 1, 12), f"{cid}-c"))
    return lines


class TestBuildRetentionMatrix:
    """Test the cohort x offset computation."""

    def test_forty_of_hundred_retained(self, q1_2024_cohort):
        matrix = _matrix(q1_2024_cohort)

        assert matrix.cohort_ids == ["2024-Q1"]
        assert matrix.cohort_size("2024-Q1") == 100
        assert matrix.retention_curve("2024-Q1") == {
            0: Decimal("100.0"),
            1: Decimal("40.0"),
        }

    def test_offset_zero_is_always_full(self, q1_2024_cohort):
        matrix = _matrix(q1_2024_cohort)

        for cell in matrix.cells:
            if cell.quarter_offset == 0:
                assert cell.retention_percentage == Decimal("100.0")

    def test_percentage_rounds_half_up_to_one_decimal(self):
        lines = []
        for cid in ("1", "2", "3"):
            lines.append(_line(cid, datetime(2023, 1, 5), f"{cid}-a"))
            lines.append(_line(cid, datetime(2023, 2, 5), f"{cid}-b"))
        lines.append(_line("1", datetime(2023, 4, 5), "1-c"))
        lines.append(_line("2", datetime(2023, 4, 6), "2-c"))

        matrix = _matrix(lines)

        assert matrix.retention_curve("2023-Q1")[1] == Decimal("66.7")

    def test_multi_item_orders_count_once(self):
        """Several items of one order do not inflate active counts."""
        ts = datetime(2024, 1, 3, 9)
        lines = [
            _line("1", ts, "L1", "Laptop"),
            _line("1", ts, "L2", "Mouse"),
            _line("1", ts, "L3", "Cable"),
            _line("1", datetime(2024, 4, 3, 9), "L4"),
        ]

        matrix = _matrix(lines)

        assert [cell.active_customer_count for cell in matrix.cells] == [1, 1]

    def test_default_segment_excludes_one_time_customers(self):
        lines = [
            _line("once", datetime(2024, 1, 3), "L1"),
            _line("twice", datetime(2024, 1, 3), "L2"),
            _line("twice", datetime(2024, 7, 3), "L3"),
        ]

        assert _matrix(lines).cohort_size("2024-Q1") == 1
        assert _matrix(lines, segment=None).cohort_size("2024-Q1") == 2
        assert _matrix(lines, segment=Segment.ONE_TIME).retention_curve("2024-Q1") == {
            0: Decimal("100.0")
        }

    def test_cohorts_are_ordered(self):
        lines = [
            _line("late", datetime(2024, 8, 1), "L1"),
            _line("late", datetime(2024, 9, 1), "L2"),
            _line("early", datetime(2023, 11, 1), "L3"),
            _line("early", datetime(2023, 12, 1), "L4"),
        ]

        matrix = _matrix(lines)

        assert matrix.cohort_ids == ["2023-Q4", "2024-Q3"]

    def test_events_after_window_are_ignored(self):
        lines = [
            _line("1", datetime(2022, 1, 1), "L1"),
            _line("1", datetime(2022, 4, 1), "L2"),
            _line("1", datetime(2022, 10, 1), "L3"),
        ]

        matrix = _matrix(lines, max_quarter_offset=1)

        assert sorted(matrix.retention_curve("2022-Q1")) == [0, 1]

    def test_min_offset_hides_cells_but_keeps_denominator(self, q1_2024_cohort):
        matrix = _matrix(q1_2024_cohort, min_quarter_offset=1)

        assert matrix.retention_curve("2024-Q1") == {1: Decimal("40.0")}

    def test_null_timestamps_dropped_and_counted(self, caplog):
        lines = [
            _line("1", datetime(2024, 1, 3), "L1"),
            _line("1", datetime(2024, 4, 3), "L2"),
            _line("1", None, "L3"),
        ]

        with caplog.at_level(logging.WARNING):
            matrix = _matrix(lines)

        assert matrix.dropped_null_timestamp_lines == 1
        assert matrix.cohort_size("2024-Q1") == 1
        assert any("without purchase_ts were dropped" in r.message for r in caplog.records)

    def test_non_monotonic_cohort_is_reported(self, caplog):
        """A customer skipping a quarter and returning is flagged, not rejected."""
        lines = [
            _line("1", datetime(2024, 1, 3), "L1"),
            _line("1", datetime(2024, 7, 3), "L2"),
            _line("2", datetime(2024, 1, 4), "L3"),
            _line("2", datetime(2024, 2, 4), "L4"),
        ]

        with caplog.at_level(logging.WARNING):
            matrix = _matrix(lines)

        assert matrix.non_monotonic_cohorts == ("2024-Q1",)
        assert matrix.retention_curve("2024-Q1") == {
            0: Decimal("100.0"),
            2: Decimal("50.0"),
        }
        assert any("not monotonically decaying" in r.message for r in caplog.records)

    def test_empty_log(self):
        matrix = _matrix([])

        assert matrix.cells == []
        assert matrix.cohort_ids == []

    @pytest.mark.parametrize(
        "kwargs", [{"min_quarter_offset": -1}, {"min_quarter_offset": 3, "max_quarter_offset": 2}]
    )
    def test_invalid_window_raises(self, kwargs):
        with pytest.raises(ValueError):
            _matrix([], **kwargs)

    def test_as_dict_is_serialisable(self, q1_2024_cohort):
        payload = _matrix(q1_2024_cohort).as_dict()

        assert payload["segment"] == "returning"
        assert payload["cells"][1] == {
            "cohort_quarter": "2024-01-01",
            "cohort_id": "2024-Q1",
            "quarter_offset": 1,
            "active_customer_count": 40,
            "retention_percentage": 40.0,
        }


class TestRetentionModels:
    """Test result dataclass validation."""

    def test_cell_rejects_out_of_range_percentage(self):
        with pytest.raises(ValueError, match="retention_percentage"):
            RetentionCell(date(2024, 1, 1), 0, 10, Decimal("100.1"))

    def test_cell_rejects_negative_offset(self):
        with pytest.raises(ValueError, match="quarter_offset"):
            RetentionCell(date(2024, 1, 1), -1, 10, Decimal("100.0"))

    def test_matrix_requires_ordered_cells(self):
        cells = [
            RetentionCell(date(2024, 4, 1), 0, 5, Decimal("100.0")),
            RetentionCell(date(2024, 1, 1), 0, 5, Decimal("100.0")),
        ]

        with pytest.raises(ValueError, match="ordered"):
            RetentionMatrix(cells=cells, segment=None, max_quarter_offset=8)
