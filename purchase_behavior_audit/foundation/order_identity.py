"""Derive logical order identities from raw order lines.

The order log has no natural order key: one row is written per purchased
item, and all rows of a checkout share the customer and purchase timestamp.
An order is therefore identified by ``(customer_id, purchase_ts)``. Rows that
lost their timestamp fall back to the customer alone, which merges every
null-timestamp order of that customer into a single identity. That collapse
is a known limitation of the source data; it is surfaced in
:class:`IdentityResolution` diagnostics rather than corrected.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Union

from purchase_behavior_audit.foundation.records import RawOrderLine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyedIdentity:
    """Identity of an order whose purchase timestamp is known."""

    customer_id: str
    purchase_ts: datetime

    @property
    def key(self) -> str:
        return f"{self.customer_id}_{self.purchase_ts.isoformat()}"


@dataclass(frozen=True)
class FallbackIdentity:
    """Identity of an order without a purchase timestamp."""

    customer_id: str

    @property
    def key(self) -> str:
        return self.customer_id


OrderIdentity = Union[KeyedIdentity, FallbackIdentity]


def resolve_order_identity(line: RawOrderLine) -> OrderIdentity:
    """Return the logical order identity of a raw order line.

    Examples
    --------
    >>> from datetime import datetime
    >>> line = RawOrderLine("7", datetime(2024, 1, 5, 9, 30), "Cable", None, "L1")
    >>> resolve_order_identity(line).key
    '7_2024-01-05T09:30:00'
    >>> resolve_order_identity(RawOrderLine("7", None, "Cable", None, "L2")).key
    '7'
    """
    if line.purchase_ts is None:
        return FallbackIdentity(customer_id=line.customer_id)
    return KeyedIdentity(customer_id=line.customer_id, purchase_ts=line.purchase_ts)


@dataclass
class IdentityResolution:
    """Order identities grouped by customer, with data-quality diagnostics.

    Attributes
    ----------
    identities_by_customer:
        Distinct order identities observed for each customer.
    line_identities:
        Identity of every input line, in input order.
    fallback_line_count:
        Number of lines resolved through the customer-only fallback.
    collapsed_customers:
        Customers with two or more null-timestamp lines. Their fallback lines
        share one identity, so distinct orders may be undercounted.
    """

    identities_by_customer: dict[str, set[OrderIdentity]] = field(default_factory=dict)
    line_identities: list[OrderIdentity] = field(default_factory=list)
    fallback_line_count: int = 0
    collapsed_customers: list[str] = field(default_factory=list)

    def order_count(self, customer_id: str) -> int:
        """Number of distinct order identities for ``customer_id``."""
        return len(self.identities_by_customer.get(customer_id, ()))


def resolve_identities(lines: Iterable[RawOrderLine]) -> IdentityResolution:
    """Resolve identities for a whole order log.

    A warning is logged when fallback identities were needed, and another
    when fallback lines may have merged separate orders of one customer.
    """
    resolution = IdentityResolution()
    fallback_lines_per_customer: Counter[str] = Counter()

    for line in lines:
        identity = resolve_order_identity(line)
        resolution.line_identities.append(identity)
        resolution.identities_by_customer.setdefault(line.customer_id, set()).add(
            identity
        )
        if isinstance(identity, FallbackIdentity):
            fallback_lines_per_customer[line.customer_id] += 1

    resolution.fallback_line_count = sum(fallback_lines_per_customer.values())
    resolution.collapsed_customers = sorted(
        cid for cid, count in fallback_lines_per_customer.items() if count > 1
    )

    if resolution.fallback_line_count:
        logger.warning(
            f"{resolution.fallback_line_count} order lines have no purchase_ts "
            f"and were keyed by customer_id only"
        )
    if resolution.collapsed_customers:
        logger.warning(
            f"{len(resolution.collapsed_customers)} customers have multiple "
            f"null-timestamp lines collapsed into one order identity; order "
            f"counts for them may be undercounted. "
            f"First 5: {resolution.collapsed_customers[:5]}"
        )
    return resolution
