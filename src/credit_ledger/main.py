"""Credit ledger main entry point."""

from __future__ import annotations

import argparse
import os
import sys

import uvicorn

from credit_ledger.service.logging import configure_logging


def main() -> int:
    """Main entry point for the ledger service."""
    parser = argparse.ArgumentParser(
        prog="credit-ledger",
        description="Credit Ledger - in-memory account ledger with overdraft limits",
    )
    parser.add_argument(
        "--host",
        default="0.0.0.0",
        help="Host to bind to (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to listen on (default: $LEDGER_PORT or 9999)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["debug", "info", "warning", "error", "critical"],
        help="Log level (default: info)",
    )
    parser.add_argument(
        "--store-log-level",
        default=None,
        choices=["debug", "info", "warning", "error", "critical"],
        help="Log level for the ledger store (default: $LEDGER_STORE_LOG_LEVEL or --log-level)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Force JSON log output (default: auto-detect)",
    )

    args = parser.parse_args()

    configure_logging(
        level=args.log_level.upper(),
        json_output=args.json_logs if args.json_logs else None,
        store_level=args.store_log_level,
    )

    port = args.port if args.port is not None else int(os.environ.get("LEDGER_PORT", "9999"))
    os.environ["LEDGER_PORT"] = str(port)

    try:
        uvicorn.run(
            "credit_ledger.service.app:create_app_from_env",
            host=args.host,
            port=port,
            reload=args.reload,
            log_level=args.log_level,
            log_config=None,
            factory=True,
        )
        return 0
    except KeyboardInterrupt:
        print("\nShutting down...")
        return 0
    except ValueError as e:
        print(f"Error: invalid configuration: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
