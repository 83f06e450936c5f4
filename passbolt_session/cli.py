"""Connection check: login, count the resources, logout."""
import sys
import asyncio
import logging
import argparse
from pathlib import Path
from typing import Optional

from .client import PassboltClient
from .config import ClientConfig
from .exceptions import PassboltError
from .pgp import PGPBackend

logger = logging.getLogger("passbolt.session.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="passbolt-session",
        description="Testing program for Passbolt: login, list resources, logout.",
    )
    parser.add_argument(
        "--client-private-key", required=True, type=Path,
        help="path to the armored private key of the client",
    )
    parser.add_argument(
        "--client-passphrase", default=None,
        help="passphrase that protects the key",
    )
    parser.add_argument("--user-uuid", required=True, help="user uuid")
    parser.add_argument("--url", required=True, help="passbolt url")
    parser.add_argument("--timeout", type=float, default=30, help="request timeout (s)")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


async def run(args: argparse.Namespace) -> int:
    config = ClientConfig.create(args.url, timeout=args.timeout)
    crypto = PGPBackend()
    try:
        armored = args.client_private_key.read_text(encoding="utf-8")
    except OSError as err:
        print(f"Cannot read private key: {err}", file=sys.stderr)
        return 2
    identity = crypto.load_client_identity(armored, args.client_passphrase)
    async with PassboltClient(config, crypto=crypto) as client:
        try:
            await client.login(args.user_uuid, identity)
        except PassboltError as err:
            print(f"Failed to login to {config.base_url}: {err}", file=sys.stderr)
            return 1
        print(f"Successful login on {config.base_url}")
        try:
            resources = await client.get_resources()
            print(f"found {len(resources)} passwords")
        finally:
            try:
                await client.logout()
            except PassboltError as err:
                logger.warning("Logout failed: %s", err)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    try:
        return asyncio.run(run(args))
    except PassboltError as err:
        print(f"Error: {err}", file=sys.stderr)
        return 1
