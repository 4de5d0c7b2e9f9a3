"""Scalar metric results with data-quality accounting."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScalarMetric:
    """Mean of a per-row measurement after data-quality filtering.

    Attributes
    ----------
    name:
        Metric identifier (e.g. ``"days_to_first_purchase"``).
    value:
        Mean over qualifying rows, or ``None`` when no row qualified. ``None``
        means "no data" and must not be read as zero.
    sample_size:
        Number of rows that contributed to ``value``.
    excluded:
        Count of rows left out of the mean, keyed by exclusion reason.
    """

    name: str
    value: float | None
    sample_size: int
    excluded: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.sample_size < 0:
            raise ValueError(f"sample_size must be >= 0, got {self.sample_size}")
        if (self.value is None) != (self.sample_size == 0):
            raise ValueError(
                "value must be None exactly when sample_size is 0",
                {"value": self.value, "sample_size": self.sample_size},
            )
        for reason, count in self.excluded.items():
            if count < 0:
                raise ValueError(f"excluded count for {reason!r} cannot be negative")

    @property
    def has_data(self) -> bool:
        return self.value is not None

    @property
    def total_excluded(self) -> int:
        return sum(self.excluded.values())

    def as_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "value": self.value,
            "has_data": self.has_data,
            "sample_size": self.sample_size,
            "excluded": dict(self.excluded),
        }


def mean_metric(
    name: str, values: Sequence[int | float], excluded: Mapping[str, int]
) -> ScalarMetric:
    """Build a :class:`ScalarMetric` from qualifying values.

    Zero counts are dropped from ``excluded``; non-zero exclusions are logged
    so analysts can judge their materiality.
    """
    excluded = {reason: count for reason, count in excluded.items() if count}
    if excluded:
        logger.warning(
            f"{name}: excluded {sum(excluded.values())} rows from the average "
            f"({', '.join(f'{reason}={count}' for reason, count in sorted(excluded.items()))})"
        )
    if not values:
        logger.warning(f"{name}: no qualifying rows, reporting no data")
        return ScalarMetric(name=name, value=None, sample_size=0, excluded=excluded)
    return ScalarMetric(
        name=name,
        value=sum(values) / len(values),
        sample_size=len(values),
        excluded=excluded,
    )
