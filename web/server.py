"""Command-line launcher for the treasury gateway."""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

import uvicorn

from treasury_service.logging_config import configure_logging
from treasury_service.runtime import TreasuryRuntime
from treasury_service.settings import ConfigurationError, Settings
from web.app import create_app


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="treasury-api")
    parser.add_argument("--host", help="Bind address (defaults to HOST).")
    parser.add_argument("--port", type=int, help="Bind port (defaults to PORT).")
    parser.add_argument("--log-level", help="Logging level (defaults to LOG_LEVEL).")
    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env()
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    log_level = (args.log_level or settings.log_level).upper()
    configure_logging(log_level)

    app = create_app(TreasuryRuntime.from_settings(settings))
    uvicorn.run(
        app,
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level=log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
