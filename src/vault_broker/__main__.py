"""
Command line entry point.

Usage:
    # Read a secret (prints the lease as JSON)
    python -m vault_broker read secret/app

    # Write key/value pairs
    python -m vault_broker write secret/app username=svc password=s3cret

    # Authenticate and print token lease metadata (never the token itself)
    python -m vault_broker token

Configuration comes from --config FILE (YAML) or from VAULT_* environment
variables; a .env file in the working directory is loaded first.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

from vault_broker.common.exceptions import (
    AuthenticationError,
    ConfigurationError,
    VaultError,
)
from vault_broker.common.logging import log_exception
from vault_broker.common.logging_setup import setup_logging
from vault_broker.config import VaultConfig, load_config
from vault_broker.registry import create_client

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CONFIG = 2
EXIT_AUTH = 3


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="vault_broker",
        description="Read and write Vault secrets with a managed token",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML config file (default: VAULT_* environment variables)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit logs as JSON lines",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    read_parser = subparsers.add_parser("read", help="Read a secret")
    read_parser.add_argument("path", help="Secret path, e.g. secret/app")

    write_parser = subparsers.add_parser("write", help="Write a secret")
    write_parser.add_argument("path", help="Secret path, e.g. secret/app")
    write_parser.add_argument(
        "pairs", nargs="+", metavar="KEY=VALUE", help="Values to write"
    )

    subparsers.add_parser("token", help="Authenticate and show token lease metadata")

    return parser.parse_args(argv)


def parse_pairs(pairs: List[str]) -> Dict[str, str]:
    """Turn ["a=1", "b=2"] into {"a": "1", "b": "2"}."""
    data: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ConfigurationError(f"Expected KEY=VALUE, got {pair!r}")
        data[key] = value
    return data


async def run(args: argparse.Namespace) -> int:
    config = load_config(args.config) if args.config else VaultConfig.from_env()

    async with create_client(config) as client:
        if args.command == "read":
            lease = await client.read(args.path)
            output = {
                "data": dict(lease.data),
                "lease_id": lease.lease_id,
                "lease_duration": lease.lease_duration,
                "renewable": lease.renewable,
            }
        elif args.command == "write":
            await client.write(args.path, parse_pairs(args.pairs))
            output = {"written": args.path}
        else:
            token = await client.get_auth_token()
            output = {
                "auth_method": client.auth_method,
                "lease_duration": token.lease_duration,
                "renewable": token.renewable,
                "expires_at": token.expires_at.isoformat() if token.expires_at else None,
            }

    print(json.dumps(output, indent=2, default=str))
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = parse_args(argv)

    setup_logging(
        console_level=getattr(logging, args.log_level),
        json_format=args.json_logs,
        command=args.command,
        stream=sys.stderr,
    )

    try:
        return asyncio.run(run(args))
    except ConfigurationError as e:
        log_exception(logger, e, "Invalid configuration", include_traceback=False)
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG
    except AuthenticationError as e:
        log_exception(logger, e, "Authentication failed", include_traceback=False)
        print(f"Authentication failed: {e}", file=sys.stderr)
        return EXIT_AUTH
    except VaultError as e:
        log_exception(logger, e, "Request failed", include_traceback=False)
        print(f"Request failed: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
