"""Command-line interface for claim links.

Usage:
    claimlink create --chain 5 --amount 0.0001337 --password super_secret_password
    claimlink claim "https://peanut.to/claim?c=5&v=v3&i=0&p=..." --recipient 0x...
    claimlink decode "https://peanut.to/claim?c=5&v=v3&i=0&p=..."
    claimlink keys super_secret_password
    claimlink config

Chain access, contract addresses and the paying key come from CLAIMLINK_*
settings; with CLAIMLINK_DRY_RUN=true (the default) an in-memory escrow is used.
"""

import argparse
import asyncio
import json
import logging
import sys
from decimal import Decimal, InvalidOperation
from typing import Optional

from eth_account import Account

from claimlink import __version__
from claimlink.config import Settings, get_settings
from claimlink.errors import ClaimLinkError, ConfigurationError
from claimlink.gateway.base import LinkType
from claimlink.keys import derive_keys
from claimlink.links import decode_link
from claimlink.protocol import LinkProtocol

logger = logging.getLogger(__name__)

LINK_TYPES = {t.name.lower(): t for t in LinkType}


def setup_logging(settings: Settings) -> None:
    """Configure logging from settings."""
    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def _decimal(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"invalid amount: {value}")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="claimlink",
        description="Create and claim password-gated escrow links",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    create_parser_ = subparsers.add_parser("create", help="Deposit assets and print a claim link")
    create_parser_.add_argument("--chain", required=True, help="Chain id or name")
    create_parser_.add_argument("--amount", required=True, type=_decimal, help="Amount to deposit")
    create_parser_.add_argument(
        "--type",
        choices=sorted(LINK_TYPES),
        default="native",
        help="Asset kind (default: native)",
    )
    create_parser_.add_argument("--token", help="Token contract address (non-native links)")
    create_parser_.add_argument("--token-id", type=int, default=0, help="NFT token id")
    create_parser_.add_argument(
        "--decimals", type=int, default=18, help="ERC20 token decimals (default: 18)"
    )
    create_parser_.add_argument("--password", help="Link password (random if omitted)")

    claim_parser = subparsers.add_parser("claim", help="Claim a link's deposit")
    claim_parser.add_argument("link", help="Claim link")
    claim_parser.add_argument(
        "--recipient",
        help="Address receiving the deposit (default: the configured wallet)",
    )

    decode_parser = subparsers.add_parser("decode", help="Show a link's parameters")
    decode_parser.add_argument("link", help="Claim link")

    keys_parser = subparsers.add_parser("keys", help="Show the key pair a password derives")
    keys_parser.add_argument("password", help="Link password")

    subparsers.add_parser("config", help="Show effective settings (secrets redacted)")

    return parser


def _default_recipient(settings: Settings) -> Optional[str]:
    if not settings.has_wallet:
        return None
    try:
        return Account.from_key(settings.private_key).address
    except Exception:
        raise ConfigurationError("Invalid private key format (key not shown)") from None


async def run_create(args: argparse.Namespace, settings: Settings) -> int:
    protocol = LinkProtocol.from_settings(settings)
    result = await protocol.create_link(
        chain_id=args.chain,
        amount=args.amount,
        token_address=args.token,
        link_type=LINK_TYPES[args.type],
        token_id=args.token_id,
        password=args.password,
        token_decimals=args.decimals,
    )
    if not result.success:
        print(f"Error ({result.error_kind.value}): {result.error}", file=sys.stderr)
        return 1

    print(result.link)
    print(f"Deposit #{result.deposit_index}, tx {result.receipt.tx_hash}", file=sys.stderr)
    return 0


async def run_claim(args: argparse.Namespace, settings: Settings) -> int:
    recipient = args.recipient or _default_recipient(settings)
    if not recipient:
        print("Error: --recipient is required when no wallet is configured", file=sys.stderr)
        return 1

    protocol = LinkProtocol.from_settings(settings)
    result = await protocol.claim_link(args.link, recipient)
    if not result.success:
        print(f"Error ({result.error_kind.value}): {result.error}", file=sys.stderr)
        return 1

    print(f"Claimed deposit #{result.deposit_index} to {result.recipient}. Tx hash: {result.receipt.tx_hash}")
    return 0


def run_decode(args: argparse.Namespace) -> int:
    params = decode_link(args.link)
    print(f"Chain:            {params.chain}")
    print(f"Contract version: {params.contract_version}")
    print(f"Deposit index:    {params.deposit_index}")
    print(f"Password set:     {'yes' if params.password else 'no'}")
    if params.password is not None:
        print(f"Claimer address:  {derive_keys(params.password).address}")
    return 0


def run_keys(args: argparse.Namespace) -> int:
    keys = derive_keys(args.password)
    print(f"Address:     {keys.address}")
    print(f"Public key:  {keys.public_key}")
    print(f"Private key: {keys.private_key}")
    return 0


def run_config(settings: Settings) -> int:
    safe = settings.get_safe_dict()
    if settings.has_wallet:
        safe["wallet_address"] = _default_recipient(settings)
    print(json.dumps(safe, indent=2, sort_keys=True))
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    settings = get_settings()
    setup_logging(settings)

    try:
        if args.command == "create":
            return asyncio.run(run_create(args, settings))
        elif args.command == "claim":
            return asyncio.run(run_claim(args, settings))
        elif args.command == "decode":
            return run_decode(args)
        elif args.command == "keys":
            return run_keys(args)
        elif args.command == "config":
            return run_config(settings)
    except ClaimLinkError as e:
        print(f"Error ({e.kind.value}): {e}", file=sys.stderr)
        return 1

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
