"""Walk through the behaviour audit on a synthetic order log.

This script demonstrates:
1. Order identity resolution and the null-timestamp diagnostics
2. New vs. returning segmentation with order/customer ratios
3. Purchase timing, quarterly cohort retention and delivery metrics

Run with: python examples/behavior_audit_demo.py
"""

from datetime import date

from purchase_behavior_audit.analyses import run_behavior_audit
from purchase_behavior_audit.config import AuditSettings, RetentionSettings
from purchase_behavior_audit.pandas import audit_to_dataframes
from purchase_behavior_audit.synthetic import OrderLogConfig, generate_order_log


def main():
    print("=" * 80)
    print("Purchase behaviour audit on synthetic data")
    print("=" * 80)

    log = generate_order_log(
        n_customers=1000,
        start=date(2022, 1, 1),
        end=date(2024, 12, 31),
        config=OrderLogConfig(
            null_timestamp_rate=0.02,
            signup_after_purchase_rate=0.05,
            non_positive_delivery_rate=0.05,
            seed=7,
        ),
    )
    print(f"\n✓ {len(log.lines)} order lines for {len(log.customers)} customers")

    settings = AuditSettings(retention=RetentionSettings(max_quarter_offset=4))
    audit = run_behavior_audit(log.lines, log.customers, log.statuses, settings=settings)

    quality = audit.data_quality
    print("\nData quality")
    print(f"  - Lines keyed without purchase_ts: {quality.fallback_identity_lines}")
    print(f"  - Customers with collapsed orders: {len(quality.collapsed_customers)}")

    frames = audit_to_dataframes(audit)
    print("\nSegments")
    print(frames["segments"].to_string(index=False))

    print("\nTiming and delivery")
    print(frames["scalars"].to_string(index=False))

    print("\nRetention (% of offset-0 customers)")
    retention = frames["retention"]
    if not retention.empty:
        print(
            retention.pivot(
                index="cohort_id", columns="quarter_offset", values="retention_percentage"
            ).to_string()
        )


if __name__ == "__main__":
    main()
