from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
import math
import random
from typing import List, Optional, Sequence

from purchase_behavior_audit.foundation.records import Customer, OrderStatus, RawOrderLine

DEFAULT_CATALOG = (
    "27in 4K gaming monitor",
    '27in"" 4k gaming monitor',
    "Apple Airpods Headphones",
    "Macbook Air Laptop",
    "ThinkPad Laptop",
    "Samsung Webcam",
    "Samsung Charging Cable Pack",
    "Apple iPhone",
)


@dataclass(frozen=True)
class OrderLogConfig:
    """Configuration for the synthetic order log.

    Attributes
    ----------
    churn_hazard: Monthly probability that an active customer stops buying.
    base_orders_per_month: Average orders per active customer per month.
    max_items_per_order: Upper bound of line items in one checkout.
    mean_unit_price: Average item price.
    price_variability: Coefficient in (0, 1] controlling price variance.
    null_timestamp_rate: Share of orders whose purchase_ts is lost.
    signup_after_purchase_rate: Share of customers whose signup is recorded
        after their first purchase (data-entry anomaly).
    non_positive_delivery_rate: Share of delivered lines whose delivery_ts
        is not after purchase_ts (clock skew / bad backfill).
    seed: Optional RNG seed for reproducibility.
    """

    churn_hazard: float = 0.15
    base_orders_per_month: float = 0.4
    max_items_per_order: int = 3
    mean_unit_price: float = 150.0
    price_variability: float = 0.5
    null_timestamp_rate: float = 0.0
    signup_after_purchase_rate: float = 0.0
    non_positive_delivery_rate: float = 0.0
    seed: Optional[int] = None


@dataclass(frozen=True)
class OrderLog:
    """Synthetic customers, order lines and order statuses."""

    customers: List[Customer]
    lines: List[RawOrderLine]
    statuses: List[OrderStatus]


def _month_range(start: date, end: date) -> List[date]:
    cur = date(start.year, start.month, 1)
    last = date(end.year, end.month, 1)
    out: List[date] = []
    while cur <= last:
        out.append(cur)
        if cur.month == 12:
            cur = date(cur.year + 1, 1, 1)
        else:
            cur = date(cur.year, cur.month + 1, 1)
    return out


def _poisson(rng: random.Random, lam: float) -> int:
    # Knuth's algorithm, fine for the small rates used here
    if lam <= 0:
        return 0
    L = math.exp(-lam)
    k = 0
    p = 1.0
    while p > L:
        k += 1
        p *= rng.random()
    return max(0, k - 1)


def _sample_price(rng: random.Random, mean: float, variability: float) -> Decimal:
    sigma = min(max(variability, 0.01), 1.0)
    mu = math.log(max(mean, 0.01)) - 0.5 * sigma * sigma
    price = math.exp(rng.normalvariate(mu, sigma))
    return Decimal(str(round(max(price, 0.01), 2)))


def generate_order_log(
    n_customers: int,
    start: date,
    end: date,
    *,
    config: Optional[OrderLogConfig] = None,
    catalog: Optional[Sequence[str]] = None,
) -> OrderLog:
    """Generate a synthetic order log between ``start`` and ``end``.

    Every customer signs up on a random day in the range and buys in the
    signup month. After that, customers churn with a monthly hazard and
    otherwise place a Poisson number of orders per month. Each order has
    1..``max_items_per_order`` lines sharing one purchase timestamp, which
    mirrors how the real order log records multi-item checkouts.
    """
    if start > end:
        raise ValueError("start date must be <= end date")
    if n_customers <= 0:
        return OrderLog(customers=[], lines=[], statuses=[])

    config = config or OrderLogConfig()
    rng = random.Random(config.seed)
    products = list(catalog) if catalog else list(DEFAULT_CATALOG)
    total_days = (end - start).days + 1

    customers: List[Customer] = []
    lines: List[RawOrderLine] = []
    statuses: List[OrderStatus] = []
    line_seq = 1

    for i in range(n_customers):
        customer_id = str(i + 1)
        signup = datetime.combine(
            start + timedelta(days=rng.randrange(total_days)), datetime.min.time()
        ) + timedelta(hours=rng.randrange(8, 20))

        last_day = datetime.combine(end, signup.time())
        order_times: List[datetime] = [
            min(signup + timedelta(days=rng.randrange(0, 10)), last_day)
        ]
        for month_start in _month_range(signup.date(), end)[1:]:
            if rng.random() < config.churn_hazard:
                break
            for _ in range(_poisson(rng, config.base_orders_per_month)):
                order_ts = datetime(
                    month_start.year,
                    month_start.month,
                    1 + rng.randrange(28),
                    rng.randrange(24),
                    rng.randrange(60),
                )
                if order_ts.date() <= end:
                    order_times.append(order_ts)

        if rng.random() < config.signup_after_purchase_rate:
            created_on = min(order_times) + timedelta(days=1 + rng.randrange(5))
        else:
            created_on = signup
        customers.append(Customer(customer_id=customer_id, created_on=created_on))

        for order_ts in order_times:
            purchase_ts: Optional[datetime] = order_ts
            if rng.random() < config.null_timestamp_rate:
                purchase_ts = None
            for _item in range(1 + rng.randrange(max(config.max_items_per_order, 1))):
                line_item_id = f"L-{line_seq}"
                line_seq += 1
                lines.append(
                    RawOrderLine(
                        customer_id=customer_id,
                        purchase_ts=purchase_ts,
                        product_name=rng.choice(products),
                        unit_price=_sample_price(
                            rng, config.mean_unit_price, config.price_variability
                        ),
                        line_item_id=line_item_id,
                    )
                )
                if rng.random() < config.non_positive_delivery_rate:
                    delivery_ts = order_ts - timedelta(days=rng.randrange(0, 3))
                else:
                    delivery_ts = order_ts + timedelta(days=1 + rng.randrange(10))
                statuses.append(
                    OrderStatus(
                        order_line_id=line_item_id,
                        purchase_ts=order_ts,
                        delivery_ts=delivery_ts,
                    )
                )

    lines.sort(key=lambda line: (int(line.customer_id), line.purchase_ts or datetime.min))
    return OrderLog(customers=customers, lines=lines, statuses=statuses)
