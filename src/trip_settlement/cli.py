"""Trip settlement command line interface.

Usage:
    python -m trip_settlement.cli preview trip.json
    python -m trip_settlement.cli preview - < trip.json
    python -m trip_settlement.cli serve --port 8000
    python -m trip_settlement.cli init-db --database-url sqlite+aiosqlite:///settlements.db

The preview input is a JSON object with "trip", "driver", "loads" and
"expenses" keys, shaped like the records the engine consumes.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Callable

from sqlalchemy.exc import SQLAlchemyError

from trip_settlement.calculators.engine import SettlementEngine
from trip_settlement.calculators.types import (
    DriverPayConfig,
    ExpenseRecord,
    LoadRecord,
    TripSnapshot,
)
from trip_settlement.config import DEFAULT_COMPANY_FUNDED_PAYERS, SettlementPolicy, get_settings
from trip_settlement.database import create_schema, get_engine
from trip_settlement.logging_config import configure_logging

logger = logging.getLogger(__name__)


def load_preview_input(data: dict[str, Any]) -> tuple[
    TripSnapshot, DriverPayConfig, list[LoadRecord], list[ExpenseRecord]
]:
    """Parse a preview document into engine records."""
    trip = TripSnapshot.from_dict(data["trip"])
    driver = data["driver"]
    if "driver_id" not in driver and trip.driver_id is not None:
        driver = {**driver, "driver_id": str(trip.driver_id)}
    pay_config = DriverPayConfig.from_dict(driver)
    loads = [LoadRecord.from_dict(item) for item in data.get("loads", [])]
    expenses = [ExpenseRecord.from_dict(item) for item in data.get("expenses", [])]
    return trip, pay_config, loads, expenses


class SettlementCli:
    """Settlement Command Line Interface."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="python -m trip_settlement.cli",
            description="Trip settlement tools",
        )
        parser.add_argument(
            "--log-level",
            default=None,
            help="Log level (default: LOG_LEVEL from the environment)",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        # preview command
        preview = subparsers.add_parser(
            "preview",
            help="Calculate a settlement from a JSON trip snapshot",
        )
        preview.add_argument(
            "file",
            help="Path to the JSON snapshot, or - for stdin",
        )
        preview.add_argument(
            "--company-funded-payer",
            action="append",
            dest="company_funded_payers",
            metavar="TAG",
            help="Payer tag the company funds (repeatable; replaces the defaults)",
        )

        # serve command
        serve = subparsers.add_parser(
            "serve",
            help="Run the HTTP API under uvicorn",
        )
        serve.add_argument("--host", default=None, help="Bind host (default: HOST)")
        serve.add_argument("--port", type=int, default=None, help="Bind port (default: PORT)")

        # init-db command
        init_db = subparsers.add_parser(
            "init-db",
            help="Create any missing settlement tables",
        )
        init_db.add_argument(
            "--database-url",
            default=None,
            help="Async SQLAlchemy URL (default: DATABASE_URL)",
        )

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)
        configure_logging(parsed.log_level or get_settings().log_level)

        if not parsed.command:
            self.parser.print_help()
            return 1

        # Dispatch to command handler
        handlers: dict[str, Callable[..., int]] = {
            "preview": self._cmd_preview,
            "serve": self._cmd_serve,
            "init-db": self._cmd_init_db,
        }

        handler = handlers.get(parsed.command)
        if handler:
            return handler(parsed)

        print(f"Unknown command: {parsed.command}", file=sys.stderr)
        return 1

    def _cmd_preview(self, args: argparse.Namespace) -> int:
        """Print the full settlement calculation as JSON."""
        try:
            if args.file == "-":
                data = json.load(sys.stdin)
            else:
                with open(args.file, encoding="utf-8") as fh:
                    data = json.load(fh)
        except OSError as e:
            print(f"ERROR: cannot read {args.file}: {e}", file=sys.stderr)
            return 1
        except json.JSONDecodeError as e:
            print(f"ERROR: {args.file} is not valid JSON: {e}", file=sys.stderr)
            return 1

        payers = args.company_funded_payers
        policy = SettlementPolicy(
            company_funded_payers=frozenset(payers) if payers else DEFAULT_COMPANY_FUNDED_PAYERS
        )

        try:
            trip, pay_config, loads, expenses = load_preview_input(data)
            calculation = SettlementEngine(policy).calculate(trip, pay_config, loads, expenses)
        except KeyError as e:
            print(f"ERROR: missing field {e}", file=sys.stderr)
            return 1
        except ValueError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 1

        print(json.dumps(calculation.to_dict(), indent=2))
        return 0

    def _cmd_serve(self, args: argparse.Namespace) -> int:
        """Run the API."""
        import uvicorn

        settings = get_settings()
        uvicorn.run(
            "trip_settlement.api.app:app",
            host=args.host or settings.host,
            port=args.port or settings.port,
            reload=settings.debug,
        )
        return 0

    def _cmd_init_db(self, args: argparse.Namespace) -> int:
        """Create tables on the configured database."""

        async def _run() -> list[str]:
            engine = get_engine(args.database_url)
            try:
                return await create_schema(engine)
            finally:
                await engine.dispose()

        try:
            tables = asyncio.run(_run())
        except SQLAlchemyError as e:
            print(f"ERROR: schema creation failed: {e}", file=sys.stderr)
            return 1

        print(f"Created or verified {len(tables)} tables")
        return 0


def main() -> int:
    """CLI entry point."""
    cli = SettlementCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
