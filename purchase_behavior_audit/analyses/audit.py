"""Run every behaviour analysis over one order log snapshot.

:func:`run_behavior_audit` is stateless: it resolves identities and
classifies customers once, feeds the shared results to each engine and
returns a :class:`BehaviorAudit` holding every output table plus the
data-quality counts an analyst needs to judge how much was excluded.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence

from purchase_behavior_audit.analyses.delivery import average_delivery_days
from purchase_behavior_audit.analyses.intervals import (
    days_between_first_and_second_purchase,
    days_to_first_purchase,
)
from purchase_behavior_audit.analyses.products import (
    ProductNameNormalizer,
    ProductSummary,
    product_breakdown,
)
from purchase_behavior_audit.analyses.retention import (
    RetentionMatrix,
    build_retention_matrix,
)
from purchase_behavior_audit.analyses.scalar import ScalarMetric
from purchase_behavior_audit.analyses.segmentation import (
    SegmentMetrics,
    SegmentSummary,
    segment_metrics,
    summarize_segments,
)
from purchase_behavior_audit.config import AuditSettings
from purchase_behavior_audit.foundation.classification import (
    PurchaseStage,
    Segment,
    classify_customers,
    unclassified_customers,
)
from purchase_behavior_audit.foundation.order_identity import resolve_identities
from purchase_behavior_audit.foundation.records import (
    Customer,
    OrderStatus,
    RawOrderLine,
)

logger = logging.getLogger(__name__)


def _decimal_or_none(value) -> float | None:
    return float(value) if value is not None else None


@dataclass(frozen=True)
class DataQualityReport:
    """Counts of anomalies found while preparing the order log.

    Attributes
    ----------
    order_lines:
        Number of order lines processed.
    fallback_identity_lines:
        Lines without a purchase timestamp, keyed by customer only.
    collapsed_customers:
        Customers whose null-timestamp lines were merged into one order.
    unclassified_customers:
        Known customers without any order; they have no customer type.
    """

    order_lines: int
    fallback_identity_lines: int
    collapsed_customers: Sequence[str] = field(default_factory=tuple)
    unclassified_customers: Sequence[str] = field(default_factory=tuple)

    def as_dict(self) -> dict[str, object]:
        return {
            "order_lines": self.order_lines,
            "fallback_identity_lines": self.fallback_identity_lines,
            "collapsed_customer_count": len(self.collapsed_customers),
            "collapsed_customers": list(self.collapsed_customers),
            "unclassified_customer_count": len(self.unclassified_customers),
            "unclassified_customers": list(self.unclassified_customers),
        }


@dataclass(frozen=True)
class BehaviorAudit:
    """All outputs of one audit run."""

    segments: Sequence[SegmentSummary]
    metrics: Sequence[SegmentMetrics]
    products: Mapping[tuple[Segment, PurchaseStage], Sequence[ProductSummary]]
    days_to_first_purchase: ScalarMetric
    days_between_first_and_second_purchase: ScalarMetric
    retention: RetentionMatrix
    delivery: ScalarMetric
    data_quality: DataQualityReport

    def as_dict(self) -> dict[str, object]:
        """Return a JSON-serialisable representation of the audit."""

        return {
            "segments": [
                {
                    "customer_type": s.customer_type.value,
                    "num_customers": s.num_customers,
                    "num_orders": s.num_orders,
                    "num_items": s.num_items,
                    "total_revenue": float(s.total_revenue),
                }
                for s in self.segments
            ],
            "metrics": [
                {
                    "customer_type": m.customer_type.value,
                    "average_order_value": _decimal_or_none(m.average_order_value),
                    "orders_per_customer": _decimal_or_none(m.orders_per_customer),
                    "items_per_order": _decimal_or_none(m.items_per_order),
                    "revenue_per_customer": _decimal_or_none(m.revenue_per_customer),
                }
                for m in self.metrics
            ],
            "products": [
                {
                    "segment": segment.value,
                    "purchase_stage": stage.value,
                    "product_name": p.product_name,
                    "items_purchased": p.items_purchased,
                    "total_revenue": float(p.total_revenue),
                    "average_price": _decimal_or_none(p.average_price),
                }
                for (segment, stage), rows in self.products.items()
                for p in rows
            ],
            "days_to_first_purchase": self.days_to_first_purchase.as_dict(),
            "days_between_first_and_second_purchase": (
                self.days_between_first_and_second_purchase.as_dict()
            ),
            "retention": self.retention.as_dict(),
            "delivery": self.delivery.as_dict(),
            "data_quality": self.data_quality.as_dict(),
        }


def run_behavior_audit(
    lines: Sequence[RawOrderLine],
    customers: Iterable[Customer] = (),
    statuses: Iterable[OrderStatus] = (),
    settings: AuditSettings | None = None,
) -> BehaviorAudit:
    """Compute every behaviour metric for one snapshot of the order log.

    Parameters
    ----------
    lines:
        Raw order lines.
    customers:
        Customer reference records, needed for days-to-first-purchase and for
        reporting customers without orders.
    statuses:
        Order statuses, needed for the delivery metric.
    settings:
        Run configuration; defaults to :class:`AuditSettings` defaults.
    """
    settings = settings or AuditSettings()
    lines = list(lines)
    customers = list(customers)
    statuses = list(statuses)

    logger.info(
        f"Running behaviour audit over {len(lines)} order lines, "
        f"{len(customers)} customers, {len(statuses)} order statuses"
    )

    resolution = resolve_identities(lines)
    classification = classify_customers(resolution)
    unclassified = unclassified_customers(customers, classification)
    if unclassified:
        logger.warning(
            f"{len(unclassified)} customers have no orders and are not classified"
        )

    segments = summarize_segments(lines, resolution, classification)
    normalizer = ProductNameNormalizer(settings.product_name_map)
    products = {
        (segment, stage): product_breakdown(
            lines,
            classification,
            segment=segment,
            purchase_stage=stage,
            normalizer=normalizer,
        )
        for segment in Segment
        for stage in PurchaseStage
    }

    retention_settings = settings.retention
    audit = BehaviorAudit(
        segments=segments,
        metrics=segment_metrics(segments),
        products=products,
        days_to_first_purchase=days_to_first_purchase(
            lines, customers, classification, segment=settings.interval_segment
        ),
        # Only returning customers can have a second order
        days_between_first_and_second_purchase=days_between_first_and_second_purchase(
            lines, classification, segment=Segment.RETURNING
        ),
        retention=build_retention_matrix(
            lines,
            classification,
            segment=retention_settings.segment,
            max_quarter_offset=retention_settings.max_quarter_offset,
            min_quarter_offset=retention_settings.min_quarter_offset,
        ),
        delivery=average_delivery_days(
            lines, statuses, classification, segment=settings.delivery_segment
        ),
        data_quality=DataQualityReport(
            order_lines=len(lines),
            fallback_identity_lines=resolution.fallback_line_count,
            collapsed_customers=tuple(resolution.collapsed_customers),
            unclassified_customers=tuple(unclassified),
        ),
    )
    logger.info(
        f"Behaviour audit complete: {len(classification)} classified customers, "
        f"{len(audit.retention.cohort_ids)} cohorts"
    )
    return audit
