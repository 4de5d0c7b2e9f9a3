"""Pandas DataFrame adapters for the input record sources."""

from typing import List

import pandas as pd  # type: ignore

from purchase_behavior_audit.foundation.records import (
    Customer,
    OrderLogContract,
    OrderStatus,
    RawOrderLine,
)
from ._utils import cell_to_datetime, cell_to_optional, require_columns

_TIMESTAMP_COLUMNS = {"purchase_ts", "created_on", "delivery_ts"}


def _records(df: pd.DataFrame) -> list[dict]:
    rows = []
    for record in df.to_dict("records"):
        rows.append(
            {
                column: (
                    cell_to_datetime(value)
                    if column in _TIMESTAMP_COLUMNS
                    else cell_to_optional(value)
                )
                for column, value in record.items()
            }
        )
    return rows


def dataframe_to_order_lines(orders_df: pd.DataFrame) -> List[RawOrderLine]:
    """Convert an orders DataFrame to :class:`RawOrderLine` records.

    Args:
        orders_df: DataFrame with columns customer_id, purchase_ts,
            product_name, unit_price (or usd_price) and line_item_id (or id)

    Returns:
        List of validated RawOrderLine objects in row order. ``NaT`` purchase
        timestamps become ``None``.

    Raises:
        ValueError: If the customer_id column is missing or a row fails validation

    Example:
        >>> orders_df = pd.read_csv("orders.csv", parse_dates=["purchase_ts"])
        >>> lines = dataframe_to_order_lines(orders_df)
    """
    require_columns(orders_df, ["customer_id"])
    return OrderLogContract().validate_order_lines(_records(orders_df))


def dataframe_to_customers(customers_df: pd.DataFrame) -> List[Customer]:
    """Convert a customers DataFrame (customer_id or id, created_on)."""
    require_columns(customers_df, ["created_on"])
    return OrderLogContract().validate_customers(_records(customers_df))


def dataframe_to_order_statuses(status_df: pd.DataFrame) -> List[OrderStatus]:
    """Convert an order status DataFrame (order_line_id or order_id, purchase_ts, delivery_ts)."""
    require_columns(status_df, ["purchase_ts", "delivery_ts"])
    return OrderLogContract().validate_order_statuses(_records(status_df))
