#!/usr/bin/env python3
"""Send sample events to a ReveNew backend.

Useful to check that a backend is reachable and accepts the payloads the
SDK produces before shipping an app build.

Configuration comes from ``REVENEW_*`` environment variables (see
``RevenewConfig.from_env``) and can be overridden on the command line.

Examples::

    scripts/send_test_event.py --host 192.168.1.10 --port 3022 --app-name Demo download
    scripts/send_test_event.py --host 192.168.1.10 --port 3022 --app-name Demo purchase --trial "7 days"
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import uuid
from decimal import Decimal
from pathlib import Path
from typing import Any

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyrevenew import (  # noqa: E402
    DownloadEvent,
    EventLogClient,
    PurchaseEvent,
    RevenewConfig,
    RevenewConfigError,
    RevenewLogError,
)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--host", help="Backend host (env: REVENEW_HOST)")
    parser.add_argument("--port", type=int, help="Backend port (env: REVENEW_PORT)")
    parser.add_argument("--app-name", help="App name sent with events (env: REVENEW_APP_NAME)")
    parser.add_argument("--timeout", type=float, help="Request timeout in seconds")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable DEBUG logging")

    sub = parser.add_subparsers(dest="command", required=True)

    download = sub.add_parser("download", help="Send a first-download event")
    download.add_argument("--user-id", default=None, help="User id (default: random UUID)")

    purchase = sub.add_parser("purchase", help="Send a purchase event")
    purchase.add_argument("--price", default="4.99")
    purchase.add_argument("--currency", default="EUR")
    purchase.add_argument("--formatted", default=None, help="Formatted price (default: '<price> <currency>')")
    purchase.add_argument("--kind", default="auto_renewable")
    purchase.add_argument("--storefront", default="-")
    purchase.add_argument("--production", action="store_true", help="Mark as a production (non-sandbox) purchase")
    purchase.add_argument("--trial", default=None, metavar="PERIOD", help="Send as trial start with this period")

    return parser.parse_args(argv)


def _build_config(args: argparse.Namespace) -> RevenewConfig:
    overrides: dict[str, Any] = {}
    if args.host is not None:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if args.app_name is not None:
        overrides["app_name"] = args.app_name
    if args.timeout is not None:
        overrides["request_timeout"] = args.timeout
    config = RevenewConfig.from_env(**overrides)
    config.validate()
    return config


async def _run(args: argparse.Namespace, config: RevenewConfig) -> dict[str, Any]:
    async with EventLogClient(config) as client:
        if args.command == "download":
            event = DownloadEvent(user_id=args.user_id or str(uuid.uuid4()).upper(), app_name=config.app_name)
            response = await client.log_download(event)
        else:
            price = Decimal(args.price)
            purchase = PurchaseEvent(
                currency_code=args.currency,
                price=price,
                price_formatted=args.formatted or f"{price} {args.currency}",
                kind=args.kind,
                is_sandbox=not args.production,
                app_name=config.app_name,
                store_front=args.storefront,
                is_trial=args.trial is not None,
                trial_period=args.trial,
            )
            response = await client.log_purchase(purchase)
    return response.model_dump(mode="json")


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        config = _build_config(args)
    except RevenewConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    try:
        result = asyncio.run(_run(args, config))
    except RevenewLogError as exc:
        status = f" (HTTP {exc.status_code})" if exc.status_code is not None else ""
        print(f"{type(exc).__name__}{status}: {exc.custom_message}: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
