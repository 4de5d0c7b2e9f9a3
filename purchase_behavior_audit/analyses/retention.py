"""Quarterly cohort retention.

Customers are grouped by the calendar quarter of their first purchase and
followed through the quarters after it. For each cohort and quarter offset
the matrix reports how many cohort members placed at least one order, and
that count as a percentage of the cohort's offset-0 count.

Quick Start
-----------
>>> from purchase_behavior_audit.foundation import classify_customers, resolve_identities
>>> from purchase_behavior_audit.analyses.retention import build_retention_matrix
>>> lines = [...]  # RawOrderLine records
>>> classification = classify_customers(resolve_identities(lines))  # doctest: +SKIP
>>> matrix = build_retention_matrix(lines, classification)  # doctest: +SKIP
>>> matrix.retention_curve("2024-Q1")  # doctest: +SKIP
{0: Decimal('100.0'), 1: Decimal('40.0')}
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping, Sequence

from purchase_behavior_audit.foundation.classification import (
    CustomerType,
    Segment,
    select_segment,
)
from purchase_behavior_audit.foundation.cohorts import (
    DEFAULT_MAX_QUARTER_OFFSET,
    assign_quarterly_cohorts,
    first_order_dates,
)
from purchase_behavior_audit.foundation.periods import quarter_label
from purchase_behavior_audit.foundation.records import RawOrderLine

logger = logging.getLogger(__name__)

RETENTION_PRECISION = Decimal("0.1")


@dataclass(frozen=True)
class RetentionCell:
    """Active customers of one cohort at one quarter offset.

    Attributes
    ----------
    cohort_quarter:
        First day of the cohort's first-purchase quarter.
    quarter_offset:
        Quarters since the cohort quarter (0 = cohort quarter).
    active_customer_count:
        Distinct cohort members with at least one order in that quarter.
    retention_percentage:
        ``active_customer_count`` as a percentage of the same cohort's
        offset-0 count, rounded half-up to one decimal place.
    """

    cohort_quarter: date
    quarter_offset: int
    active_customer_count: int
    retention_percentage: Decimal

    def __post_init__(self) -> None:
        if self.quarter_offset < 0:
            raise ValueError(f"quarter_offset must be >= 0, got {self.quarter_offset}")
        if self.active_customer_count < 0:
            raise ValueError(
                f"active_customer_count must be >= 0, got {self.active_customer_count}"
            )
        if not 0 <= self.retention_percentage <= 100:
            raise ValueError(
                f"retention_percentage must be 0-100: {self.retention_percentage}"
            )

    @property
    def cohort_id(self) -> str:
        return quarter_label(self.cohort_quarter)

    def as_dict(self) -> dict[str, object]:
        return {
            "cohort_quarter": self.cohort_quarter.isoformat(),
            "cohort_id": self.cohort_id,
            "quarter_offset": self.quarter_offset,
            "active_customer_count": self.active_customer_count,
            "retention_percentage": float(self.retention_percentage),
        }


@dataclass(frozen=True)
class RetentionMatrix:
    """Cohort × quarter-offset retention table.

    Attributes
    ----------
    cells:
        Retention cells ordered by ``(cohort_quarter, quarter_offset)``.
    segment:
        Segment the matrix was computed for, ``None`` for all customers.
    max_quarter_offset:
        Upper bound of the observation window (inclusive).
    dropped_null_timestamp_lines:
        Order lines left out because their purchase timestamp is null.
    non_monotonic_cohorts:
        Cohort ids whose active count rises again after dropping. This does
        not invalidate the matrix but means retention did not decay
        monotonically for them.
    """

    cells: Sequence[RetentionCell]
    segment: Segment | None
    max_quarter_offset: int
    dropped_null_timestamp_lines: int = 0
    non_monotonic_cohorts: Sequence[str] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        keys = [(c.cohort_quarter, c.quarter_offset) for c in self.cells]
        if keys != sorted(keys):
            raise ValueError("cells must be ordered by cohort_quarter, quarter_offset")

    @property
    def cohort_ids(self) -> list[str]:
        return list(dict.fromkeys(cell.cohort_id for cell in self.cells))

    def cohort_size(self, cohort_id: str) -> int:
        """Offset-0 customer count of ``cohort_id`` (0 if unknown)."""
        for cell in self.cells:
            if cell.cohort_id == cohort_id and cell.quarter_offset == 0:
                return cell.active_customer_count
        return 0

    def retention_curve(self, cohort_id: str) -> dict[int, Decimal]:
        """Map quarter offset to retention percentage for one cohort."""
        return {
            cell.quarter_offset: cell.retention_percentage
            for cell in self.cells
            if cell.cohort_id == cohort_id
        }

    def as_dict(self) -> dict[str, object]:
        return {
            "segment": self.segment.value if self.segment else None,
            "max_quarter_offset": self.max_quarter_offset,
            "dropped_null_timestamp_lines": self.dropped_null_timestamp_lines,
            "non_monotonic_cohorts": list(self.non_monotonic_cohorts),
            "cells": [cell.as_dict() for cell in self.cells],
        }


def _retention_percentage(active: int, cohort_size: int) -> Decimal:
    return (Decimal(active) * 100 / Decimal(cohort_size)).quantize(
        RETENTION_PRECISION, rounding=ROUND_HALF_UP
    )


def build_retention_matrix(
    lines: Sequence[RawOrderLine],
    classification: Mapping[str, CustomerType],
    *,
    segment: Segment | None = Segment.RETURNING,
    max_quarter_offset: int = DEFAULT_MAX_QUARTER_OFFSET,
    min_quarter_offset: int = 0,
) -> RetentionMatrix:
    """Build the quarterly cohort retention matrix.

    Parameters
    ----------
    lines:
        Full order log. Multi-item orders are collapsed to one order event
        per ``(customer_id, purchase_ts)`` before counting.
    classification:
        Customer types over the full history.
    segment:
        Customers to include. Defaults to returning customers; one-time
        customers only ever appear at offset 0.
    max_quarter_offset, min_quarter_offset:
        Inclusive observation window in quarters since the cohort quarter.
        Percentages are always relative to offset 0, even when
        ``min_quarter_offset`` hides offset 0 from the output.

    Raises
    ------
    ValueError
        If the window bounds are negative or inverted, or if a cohort's
        offset-0 count is not its largest count (which would mean the cohort
        assignment is inconsistent with the order events).
    """
    if min_quarter_offset < 0:
        raise ValueError(f"min_quarter_offset must be >= 0, got {min_quarter_offset}")
    if max_quarter_offset < min_quarter_offset:
        raise ValueError(
            f"max_quarter_offset ({max_quarter_offset}) must be >= "
            f"min_quarter_offset ({min_quarter_offset})"
        )

    members = select_segment(classification, segment)

    # One event per (customer, timestamp): line-item noise must not inflate counts
    order_events: set[tuple[str, datetime]] = set()
    dropped = 0
    for line in lines:
        if line.customer_id not in members:
            continue
        if line.purchase_ts is None:
            dropped += 1
            continue
        order_events.add((line.customer_id, line.purchase_ts))

    if dropped:
        logger.warning(
            f"Cohort retention: {dropped} order lines without purchase_ts were dropped"
        )

    assignments = assign_quarterly_cohorts(first_order_dates(order_events))

    active: dict[tuple[date, int], set[str]] = defaultdict(set)
    for customer_id, ts in order_events:
        assignment = assignments[customer_id]
        offset = assignment.quarter_offset(ts)
        if offset <= max_quarter_offset:
            active[(assignment.cohort_quarter, offset)].add(customer_id)

    cohort_sizes = {
        cohort: len(customers)
        for (cohort, offset), customers in active.items()
        if offset == 0
    }

    counts_by_cohort: dict[date, dict[int, int]] = defaultdict(dict)
    for (cohort, offset), customers in active.items():
        counts_by_cohort[cohort][offset] = len(customers)

    non_monotonic: list[str] = []
    for cohort, counts in sorted(counts_by_cohort.items()):
        if max(counts.values()) != counts.get(0):
            raise ValueError(
                f"Cohort {quarter_label(cohort)} has a larger active count after "
                f"offset 0 than at offset 0: {dict(sorted(counts.items()))}"
            )
        # A missing offset means nobody from the cohort was active in it
        ordered = [counts.get(offset, 0) for offset in range(max(counts) + 1)]
        if any(later > earlier for earlier, later in zip(ordered, ordered[1:])):
            non_monotonic.append(quarter_label(cohort))

    if non_monotonic:
        logger.warning(
            f"Cohort retention is not monotonically decaying for "
            f"{len(non_monotonic)} cohorts: {non_monotonic[:5]}"
        )

    cells = [
        RetentionCell(
            cohort_quarter=cohort,
            quarter_offset=offset,
            active_customer_count=len(customers),
            retention_percentage=_retention_percentage(
                len(customers), cohort_sizes[cohort]
            ),
        )
        for (cohort, offset), customers in sorted(active.items())
        if offset >= min_quarter_offset
    ]

    return RetentionMatrix(
        cells=cells,
        segment=segment,
        max_quarter_offset=max_quarter_offset,
        dropped_null_timestamp_lines=dropped,
        non_monotonic_cohorts=tuple(non_monotonic),
    )
