"""Purchase timing metrics.

Two averages describe how quickly customers buy:

- days from signup to first purchase, and
- days between the first and the second order.

Both are plain means over qualifying customers. Rows that fail a
data-quality check are excluded, never corrected, and counted per reason in
the returned :class:`~purchase_behavior_audit.analyses.scalar.ScalarMetric`.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from purchase_behavior_audit.analyses.scalar import ScalarMetric, mean_metric
from purchase_behavior_audit.foundation.classification import (
    CustomerType,
    Segment,
    select_segment,
)
from purchase_behavior_audit.foundation.periods import days_between
from purchase_behavior_audit.foundation.ranking import (
    RankDiscipline,
    purchases_at_rank,
    rank_purchases,
)
from purchase_behavior_audit.foundation.records import Customer, RawOrderLine

DAYS_TO_FIRST_PURCHASE = "days_to_first_purchase"
DAYS_BETWEEN_FIRST_AND_SECOND_PURCHASE = "days_between_first_and_second_purchase"


def days_to_first_purchase(
    lines: Sequence[RawOrderLine],
    customers: Iterable[Customer],
    classification: Mapping[str, CustomerType],
    *,
    segment: Segment | None = Segment.RETURNING,
) -> ScalarMetric:
    """Average calendar days from signup to first purchase.

    The first purchase is the sequential-rank-1 line of each customer in the
    segment. Customers whose first purchase precedes their recorded signup
    are excluded (``purchase_before_signup``); a zero-day difference counts.

    Parameters
    ----------
    lines:
        Full order log.
    customers:
        Customer reference records providing ``created_on``.
    classification:
        Output of :func:`~purchase_behavior_audit.foundation.classify_customers`.
    segment:
        Customers to include. ``None`` includes everyone.
    """
    members = select_segment(classification, segment)
    signups = {c.customer_id: c.created_on for c in customers}
    segment_lines = [line for line in lines if line.customer_id in members]

    ranked = rank_purchases(segment_lines, RankDiscipline.SEQUENTIAL)
    first_purchases = purchases_at_rank(ranked, 1)

    values: list[int] = []
    before_signup = 0
    missing_customer = 0
    for customer_id, first_ts in first_purchases.items():
        created_on = signups.get(customer_id)
        if created_on is None:
            missing_customer += 1
            continue
        diff = days_between(first_ts, created_on)
        if diff < 0:
            before_signup += 1
            continue
        values.append(diff)

    return mean_metric(
        DAYS_TO_FIRST_PURCHASE,
        values,
        {
            "purchase_before_signup": before_signup,
            "missing_customer_record": missing_customer,
            "missing_purchase_ts": len(members) - len(first_purchases),
        },
    )


def days_between_first_and_second_purchase(
    lines: Sequence[RawOrderLine],
    classification: Mapping[str, CustomerType],
    *,
    segment: Segment | None = Segment.RETURNING,
) -> ScalarMetric:
    """Average calendar days between a customer's first and second order.

    Orders are ranked with the tie-sharing discipline so that the items of a
    multi-line checkout are one order. Customers without a rank-2 order are
    left out of the average (``no_second_order``) instead of contributing 0.
    """
    members = select_segment(classification, segment)
    segment_lines = [line for line in lines if line.customer_id in members]

    ranked = rank_purchases(segment_lines, RankDiscipline.TIE_SHARING)
    first_orders = purchases_at_rank(ranked, 1)
    second_orders = purchases_at_rank(ranked, 2)

    values = [
        days_between(second_ts, first_orders[customer_id])
        for customer_id, second_ts in second_orders.items()
    ]
    return mean_metric(
        DAYS_BETWEEN_FIRST_AND_SECOND_PURCHASE,
        values,
        {"no_second_order": len(members) - len(second_orders)},
    )
