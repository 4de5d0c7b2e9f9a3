"""Input record contracts for the purchase behaviour audit.

The engine consumes three flat record sources: raw order lines (one row per
purchased item), customers (signup reference data) and order statuses
(delivery tracking). This module defines the canonical dataclasses for each
source and a contract object that turns loosely-typed mappings, as produced
by JSON exports or DataFrame rows, into validated records.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping


@dataclass(frozen=True)
class RawOrderLine:
    """A single purchased item as recorded in the order log.

    Attributes
    ----------
    customer_id:
        Identifier of the purchasing customer.
    purchase_ts:
        Checkout timestamp. All lines of one physical order share the same
        value. May be ``None`` when the source row lost its timestamp. The
        contract stores timestamps as naive UTC, so offset-suffixed and
        suffix-less exports compare cleanly.
    product_name:
        Raw product name as stored upstream (not yet normalised).
    unit_price:
        Price paid for the item in USD. ``None`` when unknown; unknown prices
        are skipped by revenue sums rather than counted as zero.
    line_item_id:
        Identifier of the order row. Order statuses reference this value.
    """

    customer_id: str
    purchase_ts: datetime | None
    product_name: str
    unit_price: Decimal | None
    line_item_id: str


@dataclass(frozen=True)
class Customer:
    """Customer reference record with the signup timestamp."""

    customer_id: str
    created_on: datetime


@dataclass(frozen=True)
class OrderStatus:
    """Delivery tracking for a single order line.

    Attributes
    ----------
    order_line_id:
        The :attr:`RawOrderLine.line_item_id` this status belongs to.
    purchase_ts:
        Purchase timestamp as recorded by the fulfilment system.
    delivery_ts:
        Delivery timestamp, ``None`` while the order is undelivered.
    """

    order_line_id: str
    purchase_ts: datetime | None
    delivery_ts: datetime | None


def _to_naive_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts
    return ts.astimezone(timezone.utc).replace(tzinfo=None)


def _parse_timestamp(value: Any, *, field_name: str, idx: int) -> datetime | None:
    """Parse a timestamp field to a naive UTC datetime (or None)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return _to_naive_utc(value)
    if isinstance(value, str):
        if not value.strip():
            return None
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError as exc:
            raise ValueError(
                f"{field_name} is not a valid ISO 8601 timestamp",
                {"record_index": idx, "value": value},
            ) from exc
        return _to_naive_utc(parsed)
    raise TypeError(
        f"{field_name} must be a datetime or ISO 8601 string",
        {"record_index": idx, "value": value},
    )


def _parse_price(value: Any, *, idx: int) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        price = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(
            "unit_price must be numeric", {"record_index": idx, "value": value}
        ) from exc
    if price.is_nan():
        return None
    if price < 0:
        raise ValueError(
            "unit_price cannot be negative", {"record_index": idx, "value": value}
        )
    return price


def _require(data: Mapping[str, Any], required: Iterable[str], idx: int) -> None:
    missing = [name for name in required if data.get(name) in (None, "")]
    if missing:
        raise ValueError(
            "Record missing required fields",
            {"missing_fields": sorted(missing), "record_index": idx},
        )


class OrderLogContract:
    """Validate raw mappings into :mod:`records` dataclasses.

    Field aliases used by common warehouse exports (``id`` for the line id,
    ``usd_price`` for the price, ``order_id`` for the status reference) are
    accepted so that query results can be fed in without renaming.
    """

    #: Fields every order line must carry. ``purchase_ts`` may be null.
    ORDER_LINE_FIELDS = {"customer_id", "line_item_id"}
    CUSTOMER_FIELDS = {"customer_id", "created_on"}
    ORDER_STATUS_FIELDS = {"order_line_id"}

    _ORDER_LINE_ALIASES = {"id": "line_item_id", "usd_price": "unit_price"}
    _CUSTOMER_ALIASES = {"id": "customer_id"}
    _ORDER_STATUS_ALIASES = {"order_id": "order_line_id"}

    @staticmethod
    def _apply_aliases(
        record: Mapping[str, Any], aliases: Mapping[str, str]
    ) -> dict[str, Any]:
        data = dict(record)
        for alias, canonical in aliases.items():
            if canonical not in data and alias in data:
                data[canonical] = data[alias]
        return data

    def validate_order_lines(
        self, records: Iterable[Mapping[str, Any]]
    ) -> list[RawOrderLine]:
        """Validate raw order rows and return :class:`RawOrderLine` records."""

        lines: list[RawOrderLine] = []
        for idx, record in enumerate(records):
            data = self._apply_aliases(record, self._ORDER_LINE_ALIASES)
            _require(data, self.ORDER_LINE_FIELDS, idx)
            lines.append(
                RawOrderLine(
                    customer_id=str(data["customer_id"]),
                    purchase_ts=_parse_timestamp(
                        data.get("purchase_ts"), field_name="purchase_ts", idx=idx
                    ),
                    product_name=str(data.get("product_name") or ""),
                    unit_price=_parse_price(data.get("unit_price"), idx=idx),
                    line_item_id=str(data["line_item_id"]),
                )
            )
        return lines

    def validate_customers(self, records: Iterable[Mapping[str, Any]]) -> list[Customer]:
        """Validate customer rows. Duplicate ids keep the earliest signup."""

        merged: dict[str, Customer] = {}
        for idx, record in enumerate(records):
            data = self._apply_aliases(record, self._CUSTOMER_ALIASES)
            _require(data, self.CUSTOMER_FIELDS, idx)
            created_on = _parse_timestamp(
                data["created_on"], field_name="created_on", idx=idx
            )
            customer = Customer(customer_id=str(data["customer_id"]), created_on=created_on)
            existing = merged.get(customer.customer_id)
            if existing is None or customer.created_on < existing.created_on:
                merged[customer.customer_id] = customer
        return list(merged.values())

    def validate_order_statuses(
        self, records: Iterable[Mapping[str, Any]]
    ) -> list[OrderStatus]:
        """Validate order status rows."""

        statuses: list[OrderStatus] = []
        for idx, record in enumerate(records):
            data = self._apply_aliases(record, self._ORDER_STATUS_ALIASES)
            _require(data, self.ORDER_STATUS_FIELDS, idx)
            statuses.append(
                OrderStatus(
                    order_line_id=str(data["order_line_id"]),
                    purchase_ts=_parse_timestamp(
                        data.get("purchase_ts"), field_name="purchase_ts", idx=idx
                    ),
                    delivery_ts=_parse_timestamp(
                        data.get("delivery_ts"), field_name="delivery_ts", idx=idx
                    ),
                )
            )
        return statuses
