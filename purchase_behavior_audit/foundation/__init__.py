"""Foundational building blocks for the purchase behaviour audit.

This package exposes the input record contracts, the order identity
resolver, the new/returning customer classifier, the purchase ranker and the
quarter arithmetic used for cohort assignment.
"""

from .records import Customer, OrderLogContract, OrderStatus, RawOrderLine
from .order_identity import (
    FallbackIdentity,
    IdentityResolution,
    KeyedIdentity,
    OrderIdentity,
    resolve_identities,
    resolve_order_identity,
)
from .classification import (
    CustomerType,
    PurchaseStage,
    Segment,
    classify_customer,
    classify_customers,
    select_segment,
    unclassified_customers,
)
from .ranking import RankDiscipline, RankedPurchase, purchases_at_rank, rank_purchases
from .cohorts import CohortAssignment, assign_quarterly_cohorts, first_order_dates
from .periods import calendar_date, days_between, quarter_label, quarter_start, quarters_between

__all__ = [
    "Customer",
    "OrderLogContract",
    "OrderStatus",
    "RawOrderLine",
    "FallbackIdentity",
    "IdentityResolution",
    "KeyedIdentity",
    "OrderIdentity",
    "resolve_identities",
    "resolve_order_identity",
    "CustomerType",
    "PurchaseStage",
    "Segment",
    "classify_customer",
    "classify_customers",
    "select_segment",
    "unclassified_customers",
    "RankDiscipline",
    "RankedPurchase",
    "purchases_at_rank",
    "rank_purchases",
    "CohortAssignment",
    "assign_quarterly_cohorts",
    "first_order_dates",
    "calendar_date",
    "days_between",
    "quarter_label",
    "quarter_start",
    "quarters_between",
]
