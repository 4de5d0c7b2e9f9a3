"""Tests for the order log record contract."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from purchase_behavior_audit.analyses.audit import run_behavior_audit
from purchase_behavior_audit.foundation.records import (
    Customer,
    OrderLogContract,
    OrderStatus,
    RawOrderLine,
)


@pytest.fixture
def contract():
    return OrderLogContract()


class TestValidateOrderLines:
    """Test order line validation."""

    def test_valid_rows_produce_records(self, contract):
        lines = contract.validate_order_lines(
            [
                {
                    "customer_id": 12,
                    "purchase_ts": "2024-01-05T09:30:00",
                    "product_name": "Laptop",
                    "unit_price": "999.99",
                    "line_item_id": "L1",
                }
            ]
        )

        assert lines == [
            RawOrderLine(
                customer_id="12",
                purchase_ts=datetime(2024, 1, 5, 9, 30),
                product_name="Laptop",
                unit_price=Decimal("999.99"),
                line_item_id="L1",
            )
        ]

    def test_warehouse_aliases_are_accepted(self, contract):
        """``id`` and ``usd_price`` map onto the canonical fields."""
        lines = contract.validate_order_lines(
            [{"customer_id": "1", "id": "A-1", "usd_price": 12.5, "product_name": "Cable"}]
        )

        assert lines[0].line_item_id == "A-1"
        assert lines[0].unit_price == Decimal("12.5")

    def test_missing_or_blank_timestamp_is_none(self, contract):
        lines = contract.validate_order_lines(
            [
                {"customer_id": "1", "line_item_id": "L1"},
                {"customer_id": "1", "line_item_id": "L2", "purchase_ts": "  "},
            ]
        )

        assert [line.purchase_ts for line in lines] == [None, None]

    def test_offset_timestamps_are_stored_as_naive_utc(self, contract):
        lines = contract.validate_order_lines(
            [
                {"customer_id": "1", "line_item_id": "L1", "purchase_ts": "2024-01-05T09:30:00Z"},
                {
                    "customer_id": "1",
                    "line_item_id": "L2",
                    "purchase_ts": "2024-01-05T22:30:00-05:00",
                },
                {
                    "customer_id": "1",
                    "line_item_id": "L3",
                    "purchase_ts": datetime(2024, 1, 7, 12, tzinfo=timezone.utc),
                },
            ]
        )

        assert [line.purchase_ts for line in lines] == [
            datetime(2024, 1, 5, 9, 30),
            datetime(2024, 1, 6, 3, 30),
            datetime(2024, 1, 7, 12),
        ]

    def test_mixed_timestamp_forms_can_be_ranked(self, contract):
        """An export mixing "Z" and suffix-less timestamps runs through the audit."""
        lines = contract.validate_order_lines(
            [
                {"customer_id": "1", "line_item_id": "L1", "purchase_ts": "2024-01-01T10:00:00Z"},
                {"customer_id": "1", "line_item_id": "L2", "purchase_ts": "2024-02-01T10:00:00"},
            ]
        )

        audit = run_behavior_audit(lines)

        assert audit.days_between_first_and_second_purchase.value == 31

    def test_unknown_price_is_none(self, contract):
        lines = contract.validate_order_lines(
            [
                {"customer_id": "1", "line_item_id": "L1"},
                {"customer_id": "1", "line_item_id": "L2", "unit_price": float("nan")},
            ]
        )

        assert [line.unit_price for line in lines] == [None, None]

    def test_missing_customer_id_raises(self, contract):
        with pytest.raises(ValueError, match="Record missing required fields"):
            contract.validate_order_lines([{"line_item_id": "L1"}])

    def test_negative_price_raises(self, contract):
        with pytest.raises(ValueError, match="cannot be negative"):
            contract.validate_order_lines(
                [{"customer_id": "1", "line_item_id": "L1", "unit_price": -1}]
            )

    def test_non_numeric_price_raises(self, contract):
        with pytest.raises(ValueError, match="must be numeric"):
            contract.validate_order_lines(
                [{"customer_id": "1", "line_item_id": "L1", "unit_price": "cheap"}]
            )

    def test_bad_timestamp_raises(self, contract):
        with pytest.raises(ValueError, match="not a valid ISO 8601"):
            contract.validate_order_lines(
                [{"customer_id": "1", "line_item_id": "L1", "purchase_ts": "yesterday"}]
            )

    def test_wrong_timestamp_type_raises(self, contract):
        with pytest.raises(TypeError):
            contract.validate_order_lines(
                [{"customer_id": "1", "line_item_id": "L1", "purchase_ts": 1700000000}]
            )


class TestValidateCustomers:
    """Test customer validation."""

    def test_id_alias_and_parsing(self, contract):
        customers = contract.validate_customers(
            [{"id": 5, "created_on": "2023-06-01T00:00:00"}]
        )

        assert customers == [Customer("5", datetime(2023, 6, 1))]

    def test_duplicates_keep_earliest_signup(self, contract):
        customers = contract.validate_customers(
            [
                {"customer_id": "5", "created_on": "2023-06-01T00:00:00"},
                {"customer_id": "5", "created_on": "2023-01-01T00:00:00"},
            ]
        )

        assert customers == [Customer("5", datetime(2023, 1, 1))]

    def test_missing_signup_raises(self, contract):
        with pytest.raises(ValueError, match="Record missing required fields"):
            contract.validate_customers([{"customer_id": "5"}])


class TestValidateOrderStatuses:
    """Test order status validation."""

    def test_order_id_alias_and_undelivered(self, contract):
        statuses = contract.validate_order_statuses(
            [{"order_id": "L1", "purchase_ts": "2024-01-01T10:00:00", "delivery_ts": None}]
        )

        assert statuses == [OrderStatus("L1", datetime(2024, 1, 1, 10), None)]

    def test_missing_reference_raises(self, contract):
        with pytest.raises(ValueError, match="Record missing required fields"):
            contract.validate_order_statuses([{"delivery_ts": "2024-01-03T10:00:00"}])
