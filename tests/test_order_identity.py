"""Unit tests for order identity resolution."""

import logging
from datetime import datetime
from decimal import Decimal

from purchase_behavior_audit.foundation.order_identity import (
    FallbackIdentity,
    KeyedIdentity,
    resolve_identities,
    resolve_order_identity,
)
from purchase_behavior_audit.foundation.records import RawOrderLine


def _line(customer_id, ts, line_id, product="Cable", price="10.00"):
    return RawOrderLine(
        customer_id=customer_id,
        purchase_ts=ts,
        product_name=product,
        unit_price=Decimal(price),
        line_item_id=line_id,
    )


T1 = datetime(2024, 1, 5, 9, 30)
T2 = datetime(2024, 3, 1, 14, 0)


class TestResolveOrderIdentity:
    """Test the per-line identity derivation."""

    def test_keyed_identity_when_timestamp_present(self):
        """Lines with a timestamp are keyed by customer and timestamp."""
        identity = resolve_order_identity(_line("1", T1, "L1"))

        assert identity == KeyedIdentity("1", T1)
        assert identity.key == "1_2024-01-05T09:30:00"

    def test_fallback_identity_when_timestamp_missing(self):
        """Lines without a timestamp fall back to the customer id."""
        identity = resolve_order_identity(_line("1", None, "L1"))

        assert identity == FallbackIdentity("1")
        assert identity.key == "1"

    def test_lines_of_same_order_share_identity(self):
        """Items of one multi-line order resolve to the same identity."""
        a = resolve_order_identity(_line("1", T1, "L1", product="Laptop"))
        b = resolve_order_identity(_line("1", T1, "L2", product="Mouse"))

        assert a == b

    def test_identity_is_deterministic(self):
        """Identical inputs always produce identical identities."""
        line = _line("42", T2, "L9")

        assert resolve_order_identity(line) == resolve_order_identity(line)

    def test_keyed_and_fallback_identities_never_collide(self):
        """A fallback key equal to another customer's keyed key stays distinct."""
        keyed = resolve_order_identity(_line("1", T1, "L1"))
        fallback = resolve_order_identity(_line(keyed.key, None, "L2"))

        assert keyed.key == fallback.key
        assert keyed != fallback


class TestResolveIdentities:
    """Test identity resolution over a whole order log."""

    def test_groups_distinct_identities_by_customer(self):
        """Multi-item orders count once per customer."""
        resolution = resolve_identities(
            [_line("1", T1, "L1"), _line("1", T1, "L2"), _line("1", T2, "L3")]
        )

        assert resolution.order_count("1") == 2
        assert len(resolution.line_identities) == 3
        assert resolution.fallback_line_count == 0
        assert resolution.collapsed_customers == []

    def test_null_timestamp_orders_collapse_and_are_flagged(self, caplog):
        """Two null-timestamp orders merge into one identity and are reported."""
        with caplog.at_level(logging.WARNING):
            resolution = resolve_identities(
                [_line("1", None, "L1"), _line("1", None, "L2"), _line("2", None, "L3")]
            )

        assert resolution.order_count("1") == 1
        assert resolution.fallback_line_count == 3
        assert resolution.collapsed_customers == ["1"]
        assert any("keyed by customer_id only" in r.message for r in caplog.records)
        assert any("may be undercounted" in r.message for r in caplog.records)

    def test_null_and_keyed_lines_are_separate_orders(self):
        """A fallback identity and a keyed identity count as two orders."""
        resolution = resolve_identities([_line("1", None, "L1"), _line("1", T1, "L2")])

        assert resolution.order_count("1") == 2
        assert resolution.collapsed_customers == []

    def test_unknown_customer_has_no_orders(self):
        resolution = resolve_identities([])

        assert resolution.order_count("missing") == 0
