"""Purchase-to-delivery timing for a customer segment."""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from purchase_behavior_audit.analyses.scalar import ScalarMetric, mean_metric
from purchase_behavior_audit.foundation.classification import (
    CustomerType,
    Segment,
    select_segment,
)
from purchase_behavior_audit.foundation.periods import days_between
from purchase_behavior_audit.foundation.records import OrderStatus, RawOrderLine

AVERAGE_DELIVERY_DAYS = "average_delivery_days"


def average_delivery_days(
    lines: Sequence[RawOrderLine],
    statuses: Iterable[OrderStatus],
    classification: Mapping[str, CustomerType],
    *,
    segment: Segment | None = Segment.ONE_TIME,
) -> ScalarMetric:
    """Average calendar days from purchase to delivery.

    Each order line of the segment is joined to its status record by
    ``line_item_id``. Only strictly positive elapsed times are averaged: a
    same-day delivery (0 days) is treated like a negative one, as a
    clock-skew or backfill artefact (``non_positive_delivery_time``). This
    threshold is deliberately stricter than the ``>= 0`` used for the
    signup-to-purchase interval.

    Lines with no status record, or whose status lacks either timestamp, are
    counted as ``missing_delivery_status``.
    """
    members = select_segment(classification, segment)
    status_by_line = {status.order_line_id: status for status in statuses}

    values: list[int] = []
    non_positive = 0
    missing = 0
    for line in lines:
        if line.customer_id not in members:
            continue
        status = status_by_line.get(line.line_item_id)
        if status is None or status.purchase_ts is None or status.delivery_ts is None:
            missing += 1
            continue
        elapsed = days_between(status.delivery_ts, status.purchase_ts)
        if elapsed <= 0:
            non_positive += 1
            continue
        values.append(elapsed)

    return mean_metric(
        AVERAGE_DELIVERY_DAYS,
        values,
        {
            "non_positive_delivery_time": non_positive,
            "missing_delivery_status": missing,
        },
    )
