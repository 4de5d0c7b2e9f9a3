"""Pandas DataFrame adapters for audit results."""

from typing import Dict, Mapping, Optional, Sequence

import pandas as pd  # type: ignore

from purchase_behavior_audit.analyses.audit import BehaviorAudit, run_behavior_audit
from purchase_behavior_audit.analyses.products import ProductSummary
from purchase_behavior_audit.analyses.retention import RetentionMatrix
from purchase_behavior_audit.analyses.scalar import ScalarMetric
from purchase_behavior_audit.analyses.segmentation import SegmentMetrics, SegmentSummary
from purchase_behavior_audit.config import AuditSettings
from purchase_behavior_audit.foundation.classification import PurchaseStage, Segment
from .records import (
    dataframe_to_customers,
    dataframe_to_order_lines,
    dataframe_to_order_statuses,
)
from ._utils import decimal_to_float

RETENTION_COLUMNS = [
    "cohort_quarter",
    "cohort_id",
    "quarter_offset",
    "active_customer_count",
    "retention_percentage",
]
SEGMENT_COLUMNS = [
    "customer_type",
    "num_customers",
    "num_orders",
    "num_items",
    "total_revenue",
    "average_order_value",
    "orders_per_customer",
    "items_per_order",
    "revenue_per_customer",
]
PRODUCT_COLUMNS = [
    "segment",
    "purchase_stage",
    "product_name",
    "items_purchased",
    "total_revenue",
    "average_price",
]
SCALAR_COLUMNS = ["metric", "value", "sample_size", "excluded_rows"]


def retention_to_dataframe(matrix: RetentionMatrix) -> pd.DataFrame:
    """Convert a retention matrix to a long-format DataFrame.

    Example:
        >>> df = retention_to_dataframe(matrix)
        >>> df.pivot(index="cohort_id", columns="quarter_offset", values="retention_percentage")
    """
    if not matrix.cells:
        return pd.DataFrame(columns=RETENTION_COLUMNS)
    return pd.DataFrame(
        [
            {
                "cohort_quarter": pd.Timestamp(cell.cohort_quarter),
                "cohort_id": cell.cohort_id,
                "quarter_offset": cell.quarter_offset,
                "active_customer_count": cell.active_customer_count,
                "retention_percentage": decimal_to_float(cell.retention_percentage),
            }
            for cell in matrix.cells
        ],
        columns=RETENTION_COLUMNS,
    )


def segments_to_dataframe(
    summaries: Sequence[SegmentSummary], metrics: Sequence[SegmentMetrics]
) -> pd.DataFrame:
    """Combine segment summaries and ratios, one row per customer type."""
    if not summaries:
        return pd.DataFrame(columns=SEGMENT_COLUMNS)
    metrics_by_type = {m.customer_type: m for m in metrics}
    rows = []
    for summary in summaries:
        metric = metrics_by_type.get(summary.customer_type)
        rows.append(
            {
                "customer_type": summary.customer_type.value,
                "num_customers": summary.num_customers,
                "num_orders": summary.num_orders,
                "num_items": summary.num_items,
                "total_revenue": decimal_to_float(summary.total_revenue),
                "average_order_value": decimal_to_float(
                    metric.average_order_value if metric else None
                ),
                "orders_per_customer": decimal_to_float(
                    metric.orders_per_customer if metric else None
                ),
                "items_per_order": decimal_to_float(
                    metric.items_per_order if metric else None
                ),
                "revenue_per_customer": decimal_to_float(
                    metric.revenue_per_customer if metric else None
                ),
            }
        )
    return pd.DataFrame(rows, columns=SEGMENT_COLUMNS)


def products_to_dataframe(
    products: Mapping[tuple[Segment, PurchaseStage], Sequence[ProductSummary]],
) -> pd.DataFrame:
    """Flatten product breakdowns into one DataFrame keyed by segment and stage."""
    rows = [
        {
            "segment": segment.value,
            "purchase_stage": stage.value,
            "product_name": p.product_name,
            "items_purchased": p.items_purchased,
            "total_revenue": decimal_to_float(p.total_revenue),
            "average_price": decimal_to_float(p.average_price),
        }
        for (segment, stage), summaries in products.items()
        for p in summaries
    ]
    if not rows:
        return pd.DataFrame(columns=PRODUCT_COLUMNS)
    return pd.DataFrame(rows, columns=PRODUCT_COLUMNS)


def scalars_to_dataframe(metrics: Sequence[ScalarMetric]) -> pd.DataFrame:
    """One row per scalar metric; ``value`` is NaN when there is no data."""
    return pd.DataFrame(
        [
            {
                "metric": m.name,
                "value": m.value,
                "sample_size": m.sample_size,
                "excluded_rows": m.total_excluded,
            }
            for m in metrics
        ],
        columns=SCALAR_COLUMNS,
    )


def audit_to_dataframes(audit: BehaviorAudit) -> Dict[str, pd.DataFrame]:
    """Convert a :class:`BehaviorAudit` to DataFrames.

    Returns:
        Dictionary with keys 'segments', 'products', 'retention' and 'scalars'
    """
    return {
        "segments": segments_to_dataframe(audit.segments, audit.metrics),
        "products": products_to_dataframe(audit.products),
        "retention": retention_to_dataframe(audit.retention),
        "scalars": scalars_to_dataframe(
            [
                audit.days_to_first_purchase,
                audit.days_between_first_and_second_purchase,
                audit.delivery,
            ]
        ),
    }


def run_behavior_audit_df(
    orders_df: pd.DataFrame,
    customers_df: Optional[pd.DataFrame] = None,
    status_df: Optional[pd.DataFrame] = None,
    settings: Optional[AuditSettings] = None,
) -> Dict[str, pd.DataFrame]:
    """Run the full audit on DataFrames.

    Convenience function combining conversion and analysis.

    Example:
        >>> orders = pd.read_csv("orders.csv", parse_dates=["purchase_ts"])
        >>> results = run_behavior_audit_df(orders)
        >>> results["retention"].to_csv("retention.csv", index=False)
    """
    lines = dataframe_to_order_lines(orders_df)
    customers = dataframe_to_customers(customers_df) if customers_df is not None else []
    statuses = dataframe_to_order_statuses(status_df) if status_df is not None else []

    audit = run_behavior_audit(lines, customers, statuses, settings=settings)
    return audit_to_dataframes(audit)
