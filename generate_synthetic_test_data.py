#!/usr/bin/env python
"""
Generate a synthetic order log for trying the behaviour audit CLI.

The generated data includes the anomalies the audit is designed to report:
orders without a purchase timestamp, customers whose signup is recorded after
their first purchase, and deliveries that are not after the purchase.

Usage:
    python generate_synthetic_test_data.py
    purchase-behavior-audit synthetic_orders.json \
        --customers synthetic_customers.json \
        --order-status synthetic_order_status.json

Output:
    synthetic_orders.json, synthetic_customers.json, synthetic_order_status.json
"""

import json
from datetime import date
from pathlib import Path

from purchase_behavior_audit.synthetic import OrderLogConfig, generate_order_log


def _ts(value):
    return value.isoformat() if value is not None else None


def main():
    """Generate the synthetic order log and save it as three JSON files."""
    print("Generating synthetic order log...")

    log = generate_order_log(
        n_customers=2000,
        start=date(2022, 1, 1),
        end=date(2024, 6, 30),
        config=OrderLogConfig(
            null_timestamp_rate=0.01,
            signup_after_purchase_rate=0.02,
            non_positive_delivery_rate=0.03,
            seed=42,  # Fixed seed for reproducibility
        ),
    )

    orders = [
        {
            "customer_id": line.customer_id,
            "purchase_ts": _ts(line.purchase_ts),
            "product_name": line.product_name,
            "usd_price": float(line.unit_price) if line.unit_price is not None else None,
            "id": line.line_item_id,
        }
        for line in log.lines
    ]
    customers = [
        {"id": c.customer_id, "created_on": _ts(c.created_on)} for c in log.customers
    ]
    statuses = [
        {
            "order_id": s.order_line_id,
            "purchase_ts": _ts(s.purchase_ts),
            "delivery_ts": _ts(s.delivery_ts),
        }
        for s in log.statuses
    ]

    for name, records in (
        ("synthetic_orders.json", orders),
        ("synthetic_customers.json", customers),
        ("synthetic_order_status.json", statuses),
    ):
        output_file = Path(name)
        with open(output_file, "w") as f:
            json.dump(records, f, indent=2)
        print(f"  - {output_file.absolute()}: {len(records)} records")

    print("\nOrder log statistics:")
    print(f"  - Order lines: {len(orders)}")
    print(f"  - Customers: {len(customers)}")
    print(f"  - Lines without purchase_ts: {sum(1 for o in orders if o['purchase_ts'] is None)}")


if __name__ == "__main__":
    main()
