"""Unit tests for new vs. returning customer classification."""

from datetime import datetime
from decimal import Decimal

import pytest

from purchase_behavior_audit.foundation.classification import (
    CustomerType,
    Segment,
    classify_customer,
    classify_customers,
    select_segment,
    unclassified_customers,
)
from purchase_behavior_audit.foundation.order_identity import (
    FallbackIdentity,
    KeyedIdentity,
    resolve_identities,
)
from purchase_behavior_audit.foundation.records import Customer, RawOrderLine


def _line(customer_id, ts, line_id):
    return RawOrderLine(customer_id, ts, "Cable", Decimal("5.00"), line_id)


T1 = datetime(2024, 1, 1, 10)
T2 = datetime(2024, 2, 1, 10)


class TestClassifyCustomer:
    """Test single-customer classification."""

    def test_single_identity_is_new(self):
        assert classify_customer([KeyedIdentity("1", T1)]) is CustomerType.NEW

    def test_duplicate_identities_count_once(self):
        """Repeated identities of one order still make a NEW customer."""
        identities = [KeyedIdentity("1", T1), KeyedIdentity("1", T1)]

        assert classify_customer(identities) is CustomerType.NEW

    def test_multiple_identities_is_returning(self):
        identities = [KeyedIdentity("1", T1), FallbackIdentity("1")]

        assert classify_customer(identities) is CustomerType.RETURNING

    def test_no_orders_is_not_classified(self):
        """Customers without orders raise instead of defaulting to a type."""
        with pytest.raises(ValueError, match="not classified"):
            classify_customer([])


class TestClassifyCustomers:
    """Test classification over the order log."""

    def test_distinct_identity_count_matches_type(self):
        """count(distinct identity) == 1 exactly for NEW customers."""
        lines = [
            _line("A", T1, "L1"),
            _line("A", T1, "L2"),
            _line("A", T2, "L3"),
            _line("B", T1, "L4"),
            _line("B", T1, "L5"),
            _line("C", None, "L6"),
            _line("C", None, "L7"),
        ]
        resolution = resolve_identities(lines)
        classification = classify_customers(resolution)

        assert classification == {
            "A": CustomerType.RETURNING,
            "B": CustomerType.NEW,
            "C": CustomerType.NEW,
        }
        for customer_id, customer_type in classification.items():
            is_new = resolution.order_count(customer_id) == 1
            assert is_new == (customer_type is CustomerType.NEW)

    def test_unclassified_customers_reported(self):
        """Known customers without orders are listed, not classified."""
        classification = {"A": CustomerType.NEW}
        customers = [
            Customer("A", datetime(2023, 1, 1)),
            Customer("Z", datetime(2023, 1, 1)),
        ]

        assert unclassified_customers(customers, classification) == ["Z"]


class TestSelectSegment:
    """Test segment selection."""

    classification = {
        "A": CustomerType.RETURNING,
        "B": CustomerType.NEW,
        "C": CustomerType.NEW,
    }

    def test_one_time_segment(self):
        assert select_segment(self.classification, Segment.ONE_TIME) == {"B", "C"}

    def test_returning_segment(self):
        assert select_segment(self.classification, Segment.RETURNING) == {"A"}

    def test_none_selects_everyone(self):
        assert select_segment(self.classification, None) == {"A", "B", "C"}

    def test_segment_maps_to_customer_type(self):
        assert Segment.ONE_TIME.customer_type is CustomerType.NEW
        assert Segment.RETURNING.includes(CustomerType.RETURNING)
        assert not Segment.RETURNING.includes(CustomerType.NEW)
