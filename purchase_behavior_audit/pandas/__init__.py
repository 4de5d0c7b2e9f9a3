"""Pandas DataFrame adapters for purchase behaviour audit components."""

from .records import (
    dataframe_to_customers,
    dataframe_to_order_lines,
    dataframe_to_order_statuses,
)
from .results import (
    audit_to_dataframes,
    products_to_dataframe,
    retention_to_dataframe,
    run_behavior_audit_df,
    scalars_to_dataframe,
    segments_to_dataframe,
)

__all__ = [
    # Input adapters
    "dataframe_to_customers",
    "dataframe_to_order_lines",
    "dataframe_to_order_statuses",
    # Result adapters
    "audit_to_dataframes",
    "products_to_dataframe",
    "retention_to_dataframe",
    "scalars_to_dataframe",
    "segments_to_dataframe",
    "run_behavior_audit_df",
]
