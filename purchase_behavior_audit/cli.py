"""Command line entry points for the purchase behaviour audit."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from purchase_behavior_audit.analyses.audit import run_behavior_audit
from purchase_behavior_audit.config import load_settings
from purchase_behavior_audit.foundation.records import OrderLogContract
from purchase_behavior_audit.pandas.results import audit_to_dataframes

logger = logging.getLogger(__name__)


MAX_INPUT_BYTES = 25 * 1024 * 1024  # 25 MiB cap to avoid accidental OOM


def _load_records(path: Path) -> list[dict[str, Any]]:
    resolved = path.resolve()
    size = resolved.stat().st_size
    if size > MAX_INPUT_BYTES:
        raise ValueError(
            f"Input file {resolved} is {size} bytes; exceeds limit of {MAX_INPUT_BYTES} bytes"
        )
    with path.open("r", encoding="utf-8") as fh:
        payload = json.load(fh)
    if not isinstance(payload, list):
        raise ValueError(f"Expected a list of records in {resolved}")
    return payload


def _resolve_output(path: Path) -> Path:
    output_path = path.resolve()
    cwd = Path.cwd().resolve()
    try:
        output_path.relative_to(cwd)
    except ValueError:
        raise ValueError(
            f"Output path {output_path} must reside within the current working directory"
        )
    output_path.parent.mkdir(parents=True, exist_ok=True)
    return output_path


def behavior_audit_cli(argv: list[str] | None = None) -> int:
    """Compute segmentation, timing, retention and delivery metrics.

    Reads the order log (and optionally customers and order statuses) from
    JSON files holding a list of records each, and writes the audit as JSON.

    Args:
        argv: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = argparse.ArgumentParser(
        description="Compute customer behaviour metrics from an order log"
    )
    parser.add_argument("orders", type=Path, help="Path to JSON file with order lines")
    parser.add_argument(
        "--customers", type=Path, help="Path to JSON file with customer records"
    )
    parser.add_argument(
        "--order-status", type=Path, help="Path to JSON file with order statuses"
    )
    parser.add_argument(
        "--config", type=Path, help="Path to JSON audit settings (optional)"
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Optional path for writing the audit as JSON (defaults to stdout)",
    )
    parser.add_argument(
        "--retention-csv",
        type=Path,
        help="Optional path for writing the retention matrix as CSV",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = load_settings(args.config)
    contract = OrderLogContract()

    logger.info(f"Loading order lines from {args.orders}")
    lines = contract.validate_order_lines(_load_records(args.orders))
    if not lines:
        logger.error("No order lines found in input file")
        return 1

    customers = []
    if args.customers:
        logger.info(f"Loading customers from {args.customers}")
        customers = contract.validate_customers(_load_records(args.customers))

    statuses = []
    if args.order_status:
        logger.info(f"Loading order statuses from {args.order_status}")
        statuses = contract.validate_order_statuses(_load_records(args.order_status))

    audit = run_behavior_audit(lines, customers, statuses, settings=settings)
    payload = audit.as_dict()

    if args.output:
        output_path = _resolve_output(args.output)
        with output_path.open("w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2, sort_keys=True)
        logger.info(f"Audit exported to {output_path}")
    else:  # stdout fallback enables piping in shell usage.
        json.dump(payload, fp=sys.stdout, indent=2, sort_keys=True)
        print()

    if args.retention_csv:
        csv_path = _resolve_output(args.retention_csv)
        audit_to_dataframes(audit)["retention"].to_csv(csv_path, index=False)
        logger.info(f"Retention matrix exported to {csv_path}")

    return 0


def main() -> None:
    raise SystemExit(behavior_audit_cli())


if __name__ == "__main__":  # pragma: no cover
    main()
