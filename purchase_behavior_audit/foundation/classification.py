"""New vs. returning customer classification.

A customer is classified from the number of distinct order identities in
their full purchase history: exactly one makes them a ``NEW`` (one-time)
customer, more than one a ``RETURNING`` customer. Customers without any
order are outside the classifier's domain and are never given a type.
"""

from __future__ import annotations

from enum import Enum
from typing import Collection, Iterable, Mapping

from purchase_behavior_audit.foundation.order_identity import (
    IdentityResolution,
    OrderIdentity,
)
from purchase_behavior_audit.foundation.records import Customer


class CustomerType(str, Enum):
    """Purchase-cardinality classification of a customer."""

    NEW = "new_customer"
    RETURNING = "returning_customer"


class Segment(str, Enum):
    """Customer segment a metric is computed for."""

    ONE_TIME = "one_time"
    RETURNING = "returning"

    @property
    def customer_type(self) -> CustomerType:
        if self is Segment.ONE_TIME:
            return CustomerType.NEW
        return CustomerType.RETURNING

    def includes(self, customer_type: CustomerType) -> bool:
        return self.customer_type is customer_type


class PurchaseStage(str, Enum):
    """Whether a line belongs to a customer's first order or a later one."""

    FIRST = "first"
    SUBSEQUENT = "subsequent"


def classify_customer(identities: Collection[OrderIdentity]) -> CustomerType:
    """Classify one customer from their distinct order identities.

    Raises
    ------
    ValueError
        If ``identities`` is empty. Customers with no orders are not
        classified.
    """
    distinct = set(identities)
    if not distinct:
        raise ValueError("Customers with no orders are not classified")
    return CustomerType.NEW if len(distinct) == 1 else CustomerType.RETURNING


def classify_customers(resolution: IdentityResolution) -> dict[str, CustomerType]:
    """Classify every customer that appears in the order log."""
    return {
        customer_id: classify_customer(identities)
        for customer_id, identities in resolution.identities_by_customer.items()
    }


def unclassified_customers(
    customers: Iterable[Customer], classification: Mapping[str, CustomerType]
) -> list[str]:
    """Return ids of known customers that have no orders, sorted."""
    return sorted(
        {c.customer_id for c in customers if c.customer_id not in classification}
    )


def select_segment(
    classification: Mapping[str, CustomerType], segment: Segment | None
) -> set[str]:
    """Return the customer ids belonging to ``segment``.

    ``None`` selects every classified customer.
    """
    if segment is None:
        return set(classification)
    return {
        customer_id
        for customer_id, customer_type in classification.items()
        if segment.includes(customer_type)
    }
