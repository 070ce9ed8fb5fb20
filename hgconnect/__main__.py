"""Command line helpers: ``python -m hgconnect describe|ping``."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from .config import load_config
from .credentials import LocalCredentialsService
from .datasource import build_pooled_request, construct
from .dialects import DialectSelector
from .errors import ConnectorError, DataSourceCreationError
from .pool import AsyncpgPoolingService

LOG = logging.getLogger(__name__)

_SECRET_PROPERTIES = {"password", "sslpassword"}


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hgconnect", description="Inspect HighGo connection profiles.")
    parser.add_argument("--config", type=Path, default=None, help="config file (default: ~/.config/hgconnect/config.toml)")
    parser.add_argument("--profile", default=None, help="profile name (default: active profile)")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("describe", help="print the resolved URI, properties and dialect")
    sub.add_parser("ping", help="open a pool and run SELECT 1")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _parser().parse_args(argv)
    settings = load_config(args.config)
    level = logging.DEBUG if args.verbose else getattr(logging, settings.log_level, logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    credentials = LocalCredentialsService()
    try:
        profile = settings.profile(args.profile)
        if args.command == "describe":
            request = build_pooled_request(profile, credentials)
            selector = DialectSelector(profile)
            print(f"profile: {profile.name}")
            print(f"uri: {request.uri}")
            print(f"username: {request.username or ''}")
            print(f"dialect: {selector.get_dialect().name} ({selector.variant.value})")
            for name, value in request.properties.items():
                shown = "****" if name.lower() in _SECRET_PROPERTIES else value
                print(f"property: {name}={shown}")
            return 0

        pooling = AsyncpgPoolingService(command_timeout=profile.query_timeout_sec)
        try:
            with construct(profile, credentials, pooling) as source:
                with source.connection() as conn:
                    conn.fetchval("SELECT 1")
        except ConnectorError:
            raise
        except Exception as exc:
            raise DataSourceCreationError(f"ping failed for '{profile.name}': {exc}") from exc
        finally:
            pooling.shutdown()
        print(f"{profile.name}: ok")
        return 0
    except ConnectorError as exc:
        LOG.debug("Command failed", exc_info=True)
        print(f"hgconnect: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
