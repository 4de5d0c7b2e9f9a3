"""Quarterly first-purchase cohort assignment.

A customer's cohort is the calendar quarter containing their earliest
purchase. Every later order event is placed relative to that quarter by a
quarter offset (0 = the cohort quarter itself).

Quick Start
-----------
>>> from datetime import datetime
>>> from purchase_behavior_audit.foundation.cohorts import assign_quarterly_cohorts
>>> assignments = assign_quarterly_cohorts(
...     {"C1": datetime(2023, 1, 15), "C2": datetime(2023, 5, 20)}
... )
>>> {cid: a.cohort_id for cid, a in assignments.items()}
{'C1': '2023-Q1', 'C2': '2023-Q2'}
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Mapping

from purchase_behavior_audit.foundation.periods import (
    quarter_label,
    quarter_start,
    quarters_between,
)

# Two-year observation window for cohort tracking
DEFAULT_MAX_QUARTER_OFFSET = 8


@dataclass(frozen=True)
class CohortAssignment:
    """Cohort membership of one customer.

    Attributes
    ----------
    customer_id:
        Customer identifier.
    first_order_ts:
        Timestamp of the customer's earliest order event.
    cohort_quarter:
        First day of the quarter containing ``first_order_ts``.
    """

    customer_id: str
    first_order_ts: datetime
    cohort_quarter: date

    @property
    def cohort_id(self) -> str:
        return quarter_label(self.cohort_quarter)

    def quarter_offset(self, event_ts: datetime) -> int:
        """Quarters elapsed between the cohort quarter and ``event_ts``."""
        return quarters_between(event_ts, self.first_order_ts)


def first_order_dates(
    order_events: Iterable[tuple[str, datetime]],
) -> dict[str, datetime]:
    """Earliest event timestamp per customer from ``(customer_id, ts)`` pairs."""
    first: dict[str, datetime] = {}
    for customer_id, ts in order_events:
        current = first.get(customer_id)
        if current is None or ts < current:
            first[customer_id] = ts
    return first


def assign_quarterly_cohorts(
    first_orders: Mapping[str, datetime],
) -> dict[str, CohortAssignment]:
    """Assign each customer to the quarter of their first order.

    Parameters
    ----------
    first_orders:
        Mapping of customer_id to the timestamp of their earliest order.

    Returns
    -------
    dict[str, CohortAssignment]
        One assignment per customer, keyed by customer_id.
    """
    return {
        customer_id: CohortAssignment(
            customer_id=customer_id,
            first_order_ts=first_ts,
            cohort_quarter=quarter_start(first_ts),
        )
        for customer_id, first_ts in first_orders.items()
    }
