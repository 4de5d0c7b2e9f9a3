"""Customer behaviour analyses over the order log.

1. Segmentation - new vs. returning customer volumes and ratios
2. Product breakdown - items and revenue by segment and purchase stage
3. Purchase timing - days to first purchase, days to second purchase
4. Cohort retention - quarterly first-purchase cohorts over time
5. Delivery timing - purchase to delivery for a segment
"""

from .scalar import ScalarMetric
from .segmentation import (
    SegmentMetrics,
    SegmentSummary,
    segment_metrics,
    summarize_segments,
)
from .products import ProductNameNormalizer, ProductSummary, product_breakdown
from .intervals import days_between_first_and_second_purchase, days_to_first_purchase
from .retention import RetentionCell, RetentionMatrix, build_retention_matrix
from .delivery import average_delivery_days
from .audit import BehaviorAudit, DataQualityReport, run_behavior_audit

__all__ = [
    "ScalarMetric",
    # Segmentation
    "SegmentMetrics",
    "SegmentSummary",
    "segment_metrics",
    "summarize_segments",
    # Products
    "ProductNameNormalizer",
    "ProductSummary",
    "product_breakdown",
    # Timing
    "days_between_first_and_second_purchase",
    "days_to_first_purchase",
    # Retention
    "RetentionCell",
    "RetentionMatrix",
    "build_retention_matrix",
    # Delivery
    "average_delivery_days",
    # Orchestration
    "BehaviorAudit",
    "DataQualityReport",
    "run_behavior_audit",
]
