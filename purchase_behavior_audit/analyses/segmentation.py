"""New vs. returning customer segmentation.

Answers the basic segmentation questions for each customer type:
- How many customers, orders and items does the segment account for?
- How much revenue does it bring in?
- What are its average order value, orders per customer, items per order
  and revenue per customer?

Orders are counted as distinct order identities, items as raw order lines.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping, Sequence

from purchase_behavior_audit.foundation.classification import CustomerType
from purchase_behavior_audit.foundation.order_identity import IdentityResolution
from purchase_behavior_audit.foundation.records import RawOrderLine

MONEY_PRECISION = Decimal("0.01")
RATIO_PRECISION = Decimal("0.01")


@dataclass(frozen=True)
class SegmentSummary:
    """Volume totals for one customer type.

    Attributes
    ----------
    customer_type:
        The segment these totals describe.
    num_customers:
        Distinct customers of this type.
    num_orders:
        Distinct order identities placed by them.
    num_items:
        Order lines (items) purchased by them.
    total_revenue:
        Sum of known unit prices, rounded to cents.
    """

    customer_type: CustomerType
    num_customers: int
    num_orders: int
    num_items: int
    total_revenue: Decimal

    def __post_init__(self) -> None:
        for name in ("num_customers", "num_orders", "num_items"):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} cannot be negative: {value}")
        if self.total_revenue < 0:
            raise ValueError(f"Total revenue cannot be negative: {self.total_revenue}")
        if self.num_orders < self.num_customers:
            raise ValueError(
                f"num_orders ({self.num_orders}) cannot be below num_customers "
                f"({self.num_customers})"
            )


@dataclass(frozen=True)
class SegmentMetrics:
    """Per-order and per-customer ratios for one customer type.

    Ratios are ``None`` when their denominator is zero.
    """

    customer_type: CustomerType
    average_order_value: Decimal | None
    orders_per_customer: Decimal | None
    items_per_order: Decimal | None
    revenue_per_customer: Decimal | None


def _ratio(numerator: Decimal | int, denominator: int, precision: Decimal) -> Decimal | None:
    if denominator == 0:
        return None
    return (Decimal(numerator) / Decimal(denominator)).quantize(
        precision, rounding=ROUND_HALF_UP
    )


def summarize_segments(
    lines: Sequence[RawOrderLine],
    resolution: IdentityResolution,
    classification: Mapping[str, CustomerType],
) -> list[SegmentSummary]:
    """Aggregate customers, orders, items and revenue per customer type.

    Parameters
    ----------
    lines:
        Order lines, in the same order they were passed to
        :func:`~purchase_behavior_audit.foundation.resolve_identities`.
    resolution:
        Identity resolution for ``lines``.
    classification:
        Customer types derived from ``resolution``.

    Returns
    -------
    list[SegmentSummary]
        One summary per customer type present in the data, ``NEW`` first.
    """
    if len(lines) != len(resolution.line_identities):
        raise ValueError(
            "resolution does not match lines",
            {"lines": len(lines), "resolved": len(resolution.line_identities)},
        )

    buckets: dict[CustomerType, dict[str, object]] = {}
    for line, identity in zip(lines, resolution.line_identities):
        customer_type = classification[line.customer_id]
        bucket = buckets.setdefault(
            customer_type,
            {"customers": set(), "orders": set(), "items": 0, "revenue": Decimal("0")},
        )
        bucket["customers"].add(line.customer_id)
        bucket["orders"].add(identity)
        bucket["items"] += 1
        if line.unit_price is not None:
            bucket["revenue"] += line.unit_price

    return [
        SegmentSummary(
            customer_type=customer_type,
            num_customers=len(buckets[customer_type]["customers"]),
            num_orders=len(buckets[customer_type]["orders"]),
            num_items=buckets[customer_type]["items"],
            total_revenue=buckets[customer_type]["revenue"].quantize(
                MONEY_PRECISION, rounding=ROUND_HALF_UP
            ),
        )
        for customer_type in CustomerType
        if customer_type in buckets
    ]


def segment_metrics(summaries: Sequence[SegmentSummary]) -> list[SegmentMetrics]:
    """Derive order and customer ratios from segment summaries.

    Examples
    --------
    >>> from decimal import Decimal
    >>> summary = SegmentSummary(CustomerType.RETURNING, 2, 5, 8, Decimal("250.00"))
    >>> metrics = segment_metrics([summary])[0]
    >>> metrics.average_order_value, metrics.items_per_order
    (Decimal('50.00'), Decimal('1.60'))
    """
    return [
        SegmentMetrics(
            customer_type=summary.customer_type,
            average_order_value=_ratio(
                summary.total_revenue, summary.num_orders, MONEY_PRECISION
            ),
            orders_per_customer=_ratio(
                summary.num_orders, summary.num_customers, RATIO_PRECISION
            ),
            items_per_order=_ratio(summary.num_items, summary.num_orders, RATIO_PRECISION),
            revenue_per_customer=_ratio(
                summary.total_revenue, summary.num_customers, MONEY_PRECISION
            ),
        )
        for summary in summaries
    ]
