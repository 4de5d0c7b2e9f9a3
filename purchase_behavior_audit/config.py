"""Run configuration for the purchase behaviour audit.

Settings are plain JSON on disk and validated with pydantic, so a typo in a
segment name or an inverted retention window fails before any data is read.

Example ``audit.json``::

    {
        "retention": {"max_quarter_offset": 4},
        "delivery_segment": "returning",
        "product_name_map": {"Macbook Air Laptop ": "Macbook Air Laptop"}
    }
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, Field, model_validator

from purchase_behavior_audit.foundation.classification import Segment
from purchase_behavior_audit.foundation.cohorts import DEFAULT_MAX_QUARTER_OFFSET

logger = logging.getLogger(__name__)

#: Known raw → canonical product name fix-ups in the order log.
DEFAULT_PRODUCT_NAME_MAP: dict[str, str] = {
    '27in"" 4k gaming monitor': "27in 4K gaming monitor",
}


class RetentionSettings(BaseModel):
    """Cohort retention window and segment."""

    segment: Segment | None = Field(
        default=Segment.RETURNING,
        description="Customers to track; null tracks every customer",
    )
    min_quarter_offset: int = Field(
        default=0, ge=0, description="First quarter offset reported (inclusive)"
    )
    max_quarter_offset: int = Field(
        default=DEFAULT_MAX_QUARTER_OFFSET,
        ge=0,
        description="Last quarter offset reported (inclusive)",
    )

    @model_validator(mode="after")
    def _check_window(self) -> "RetentionSettings":
        if self.max_quarter_offset < self.min_quarter_offset:
            raise ValueError("max_quarter_offset must be >= min_quarter_offset")
        return self


class AuditSettings(BaseModel):
    """Configuration of a full audit run."""

    retention: RetentionSettings = Field(default_factory=RetentionSettings)
    interval_segment: Segment = Field(
        default=Segment.RETURNING,
        description="Segment for days-to-first-purchase",
    )
    delivery_segment: Segment = Field(
        default=Segment.ONE_TIME,
        description="Segment for the average delivery time",
    )
    product_name_map: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_PRODUCT_NAME_MAP),
        description="Raw product name to canonical product name",
    )


def load_settings(path: str | Path | None = None) -> AuditSettings:
    """Load settings from a JSON file, or return defaults when ``path`` is None."""
    if path is None:
        return AuditSettings()
    path = Path(path)
    with path.open("r", encoding="utf-8") as fh:
        payload = json.load(fh)
    settings = AuditSettings.model_validate(payload)
    logger.info(f"Loaded audit settings from {path}")
    return settings
