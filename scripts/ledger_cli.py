#!/usr/bin/env python3
"""Balance-seconds ledger CLI: schema setup, event application and average queries."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys
from typing import Any, Iterator, Optional

# Ensure repository root is importable when script is executed by path.
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from backend.db.session import build_engine, build_session_factory, create_schema
from backend.db.store import SqlAlchemyEntityStore
from ledger.config import configure_logging, load_config
from ledger.entities import AccountBalance, BalanceSnapshot
from ledger.errors import EventDecodeError, IdentityResolutionError
from ledger.events import RawEvent
from ledger.identity import AptosViewClient, StoreIdentityResolver
from ledger.processors import EventDispatcher
from ledger.query import average_balance, balance_seconds_between, to_decimal
from ledger.store import FieldFilter

logger = logging.getLogger(__name__)


class _UnconfiguredViewClient:
    """Placeholder used when no node URL is configured."""

    def store_metadata(self, store_address: str, ledger_version: Optional[int] = None) -> str:
        raise IdentityResolutionError(
            f"Cannot resolve store={store_address}: set LEDGER_NODE_URL or pass --node-url."
        )


def _read_events(path: Path) -> Iterator[RawEvent]:
    with path.open("r", encoding="utf-8") as handle:
        for line_number, line in enumerate(handle, start=1):
            if not line.strip():
                continue
            try:
                payload = json.loads(line)
                yield RawEvent(
                    name=payload["name"],
                    data=payload["data"],
                    timestamp_micros=int(payload["timestamp_micros"]),
                    version=int(payload["version"]),
                    event_index=int(payload.get("event_index", 0)),
                    sender=payload.get("sender"),
                )
            except (KeyError, TypeError, ValueError) as exc:
                raise EventDecodeError(f"Invalid event on line {line_number} of {path}: {exc}") from exc


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Balance-seconds ledger CLI")
    parser.add_argument("--database-url", help="SQLAlchemy database URL (overrides LEDGER_DATABASE_URL)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create ledger tables from model metadata")

    apply_cmd = subparsers.add_parser("apply", help="Apply a JSON-lines file of chain events in order")
    apply_cmd.add_argument("--events", required=True, type=Path)
    apply_cmd.add_argument("--node-url", help="Aptos node base URL (overrides LEDGER_NODE_URL)")

    average_cmd = subparsers.add_parser("average", help="Time-weighted average balance over [start, end]")
    average_cmd.add_argument("--account-id", required=True)
    average_cmd.add_argument("--start", required=True, type=int)
    average_cmd.add_argument("--end", required=True, type=int)

    account_cmd = subparsers.add_parser("account", help="Show an account and its snapshot log")
    account_cmd.add_argument("--account-id", required=True)

    return parser


def _account_payload(store: SqlAlchemyEntityStore, account_id: str) -> Optional[dict[str, Any]]:
    account = store.get(AccountBalance, account_id)
    if account is None:
        return None
    snapshots = store.list(
        BalanceSnapshot,
        [FieldFilter("account_id", "=", account_id)],
        order_by="sequence",
    )
    return {
        "account_id": account.id,
        "kind": account.kind.value,
        "vault_id": account.vault_id,
        "balance": str(account.balance),
        "last_observation_time": account.last_observation_time,
        "cumulative_balance_seconds": str(account.cumulative_balance_seconds),
        "snapshot_count": account.snapshot_count,
        "snapshots": [
            {
                "sequence": snapshot.sequence,
                "filled_at": snapshot.filled_at,
                "last_update_time": snapshot.last_update_time,
                "balance": str(snapshot.balance),
                "cumulative_balance_seconds": str(snapshot.cumulative_balance_seconds),
            }
            for snapshot in snapshots
        ],
    }


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()

    config = load_config(database_url=args.database_url)
    configure_logging(config)

    engine = build_engine(config.database_url, echo=config.sql_echo)
    store = SqlAlchemyEntityStore(build_session_factory(engine))

    try:
        if args.command == "init-db":
            create_schema(engine)
            print(json.dumps({"status": "OK"}, sort_keys=True))
            return 0

        if args.command == "apply":
            node_url = args.node_url or config.node_url
            client = AptosViewClient(base_url=node_url) if node_url else _UnconfiguredViewClient()
            dispatcher = EventDispatcher(
                store,
                StoreIdentityResolver(store, client),
                start_version=config.start_version,
            )
            processed = dispatcher.dispatch_all(_read_events(args.events))
            print(json.dumps({"processed": processed}, sort_keys=True))
            return 0

        if args.command == "average":
            average = average_balance(store, args.account_id, args.start, args.end)
            integral = balance_seconds_between(store, args.account_id, args.start, args.end)
            payload = {
                "account_id": args.account_id,
                "start": args.start,
                "end": args.end,
                "average_balance": format(to_decimal(average), "f"),
                "balance_seconds": format(to_decimal(integral), "f"),
            }
            print(json.dumps(payload, sort_keys=True))
            return 0

        account_payload = _account_payload(store, args.account_id)
        if account_payload is None:
            print(json.dumps({"account_id": args.account_id, "found": False}, sort_keys=True))
            return 2
        print(json.dumps(account_payload, sort_keys=True))
        return 0
    finally:
        engine.dispose()


if __name__ == "__main__":
    raise SystemExit(main())
