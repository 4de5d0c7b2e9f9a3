"""Product breakdown by segment and purchase stage."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping, Sequence

from purchase_behavior_audit.foundation.classification import (
    CustomerType,
    PurchaseStage,
    Segment,
    select_segment,
)
from purchase_behavior_audit.foundation.ranking import RankDiscipline, rank_purchases
from purchase_behavior_audit.foundation.records import RawOrderLine

logger = logging.getLogger(__name__)

MONEY_PRECISION = Decimal("0.01")


class ProductNameNormalizer:
    """Map raw product names to canonical names through a lookup table.

    Names are trimmed before lookup; names absent from the table are
    returned trimmed but otherwise unchanged.

    >>> normalizer = ProductNameNormalizer({'27in"" 4k gaming monitor': "27in 4K gaming monitor"})
    >>> normalizer('27in"" 4k gaming monitor ')
    '27in 4K gaming monitor'
    >>> normalizer("Apple Airpods Headphones")
    'Apple Airpods Headphones'
    """

    def __init__(self, mapping: Mapping[str, str] | None = None) -> None:
        self.mapping = {raw.strip(): canonical for raw, canonical in (mapping or {}).items()}

    def __call__(self, product_name: str) -> str:
        name = product_name.strip()
        return self.mapping.get(name, name)


@dataclass(frozen=True)
class ProductSummary:
    """Sales of one canonical product within a segment and purchase stage."""

    product_name: str
    items_purchased: int
    total_revenue: Decimal
    average_price: Decimal | None

    def __post_init__(self) -> None:
        if self.items_purchased < 0:
            raise ValueError(f"items_purchased cannot be negative: {self.items_purchased}")
        if self.total_revenue < 0:
            raise ValueError(f"total_revenue cannot be negative: {self.total_revenue}")


def product_breakdown(
    lines: Sequence[RawOrderLine],
    classification: Mapping[str, CustomerType],
    *,
    segment: Segment | None,
    purchase_stage: PurchaseStage,
    normalizer: ProductNameNormalizer | None = None,
) -> list[ProductSummary]:
    """Summarise items bought per product for a segment and purchase stage.

    A line belongs to the ``FIRST`` stage when it is part of the customer's
    first order (tie-sharing rank 1, so every item of a multi-item first
    order counts) and to ``SUBSEQUENT`` otherwise. Lines without a purchase
    timestamp cannot be staged and are skipped.

    Returns
    -------
    list[ProductSummary]
        Rows ordered by total revenue descending, then product name.
    """
    normalizer = normalizer or ProductNameNormalizer()
    purchase_stage = PurchaseStage(purchase_stage)
    members = select_segment(classification, segment)
    segment_lines = [line for line in lines if line.customer_id in members]

    ranked = rank_purchases(segment_lines, RankDiscipline.TIE_SHARING)
    skipped = len(segment_lines) - len(ranked)
    if skipped:
        logger.warning(
            f"Product breakdown: {skipped} lines without purchase_ts cannot be "
            f"assigned a purchase stage and were skipped"
        )

    totals: dict[str, dict[str, object]] = {}
    for purchase in ranked:
        stage = PurchaseStage.FIRST if purchase.rank == 1 else PurchaseStage.SUBSEQUENT
        if stage is not purchase_stage:
            continue
        bucket = totals.setdefault(
            normalizer(purchase.line.product_name),
            {"items": 0, "revenue": Decimal("0"), "priced": 0},
        )
        bucket["items"] += 1
        if purchase.line.unit_price is not None:
            bucket["revenue"] += purchase.line.unit_price
            bucket["priced"] += 1

    summaries = [
        ProductSummary(
            product_name=name,
            items_purchased=bucket["items"],
            total_revenue=bucket["revenue"].quantize(MONEY_PRECISION, rounding=ROUND_HALF_UP),
            average_price=(
                (bucket["revenue"] / bucket["priced"]).quantize(
                    MONEY_PRECISION, rounding=ROUND_HALF_UP
                )
                if bucket["priced"]
                else None
            ),
        )
        for name, bucket in totals.items()
    ]
    summaries.sort(key=lambda s: (-s.total_revenue, s.product_name))
    return summaries
