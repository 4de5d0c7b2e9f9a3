"""Synthetic order log generation.

This package produces realistic-but-fake order logs, including the data
quality problems found in production exports, to exercise the audit
without accessing production data.
"""

from .generator import (
    DEFAULT_CATALOG,
    OrderLog,
    OrderLogConfig,
    generate_order_log,
)

__all__ = [
    "DEFAULT_CATALOG",
    "OrderLog",
    "OrderLogConfig",
    "generate_order_log",
]
