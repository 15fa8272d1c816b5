#!/usr/bin/env python3
"""
Key Issuer - Command Line Entry Point

Generates a random Ethereum keypair, prints it, and passes it to the next
pipeline step as the outputs `private_key` and `account_address`.

Usage:
    python3 issue_key.py [--allow-secret-output] [--sink NAME] [--mask]
    python3 issue_key.py --verify ADDRESS    (prompts for the private key)
"""

import argparse
import logging
import sys
from getpass import getpass
from typing import List, Optional

from errors import KeyIssuerError
from key_issuer import KeyIssuer, verify_account
from output_sinks import SINK_NAMES, resolve_sink
from settings import get_settings

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="key-issuer",
        description="Generate a random Ethereum keypair and emit it as CI pipeline outputs.",
    )
    parser.add_argument(
        "--allow-secret-output",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="print the private key and pass it to the pipeline (default: on when CI=true)",
    )
    parser.add_argument(
        "--sink",
        choices=SINK_NAMES,
        default=None,
        help="pipeline output channel (default: auto)",
    )
    parser.add_argument(
        "--mask",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="ask the CI system to mask the private key in later log lines",
    )
    parser.add_argument(
        "--verify",
        metavar="ADDRESS",
        help="prompt for a private key and check that ADDRESS is derived from it",
    )
    return parser


def run(args: argparse.Namespace, settings: dict) -> int:
    if args.verify:
        address = args.verify
        # Prompted, not passed as an argument, so the key stays out of shell history.
        key = getpass("Private key (0x...): ")
        if verify_account(key, address):
            logger.info(f"Address {address} matches the private key")
            return 0
        logger.error(f"Address {address} does not match the private key")
        return 1

    allow_secret_output = settings["allow_secret_output"] if args.allow_secret_output is None else args.allow_secret_output
    mask = settings["mask"] if args.mask is None else args.mask

    issuer = KeyIssuer(
        sink=resolve_sink(args.sink or settings["sink"]),
        allow_secret_output=allow_secret_output,
        mask_secret=mask,
    )
    issuer.issue()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings()
    except KeyIssuerError as e:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
        logger.error(str(e))
        return e.exit_code

    logging.basicConfig(
        level=settings["log_level"],
        format="%(asctime)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        return run(args, settings)
    except KeyIssuerError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return e.exit_code


if __name__ == "__main__":
    sys.exit(main())
