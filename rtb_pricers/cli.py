#!/usr/bin/env python3
"""
============================================================================
RTB Pricers - Command Line Interface
============================================================================

Encrypt a price into a token or decrypt a token back into a price.

Keys are read from --encryption-key / --integrity-key when given, otherwise
from PRICER_* environment variables (a .env file in the working directory
is loaded first).

EXIT CODES:
    0 = success
    1 = pricer error (bad key, bad price, bad or tampered token)
    2 = invalid arguments

============================================================================
"""

import argparse
import logging
import sys
from typing import List, Optional

from rtb_pricers.config import PricerConfig
from rtb_pricers.doubleclick import DoubleClickPricer
from rtb_pricers.errors import PricerError
from rtb_pricers.keys import KeyDecodingMode


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rtb-pricer",
        description="Encrypt and decrypt DoubleClick price tokens",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
EXAMPLES:
    # Encrypt with keys from the environment
    rtb-pricer encrypt --seed "bid-42" --price 2.50

    # Decrypt with explicit base64 keys
    rtb-pricer --mode base64web \\
        --encryption-key "skU7Ax_NL5pPAFyKdkfZjZz2-VhIN8bjj1rVFOaJ_5o=" \\
        --integrity-key "arO23ykdNqUQ5LEoQ0FVmPkBd7xB5CO89PDZlSjpFxo=" \\
        decrypt "<token>"

    # Tokens starting with "-" must be passed with --token=
    rtb-pricer decrypt --token="-7aC..."
        """
    )

    parser.add_argument("--encryption-key", type=str, default=None,
                        help="Encryption key (default: PRICER_ENCRYPTION_KEY)")
    parser.add_argument("--integrity-key", type=str, default=None,
                        help="Integrity key (default: PRICER_INTEGRITY_KEY)")
    parser.add_argument("--mode", type=str, default=None,
                        choices=[m.value for m in KeyDecodingMode],
                        help="Key decoding mode (default: PRICER_KEY_DECODING_MODE or hex)")
    parser.add_argument("--base64-keys", action="store_true", default=None,
                        help="Keys are web-safe base64 (overrides --mode)")
    parser.add_argument("--scale-factor", type=float, default=None,
                        help="Price to micros multiplier (default: 1000000)")
    parser.add_argument("--debug", action="store_true",
                        help="Print intermediate values to stderr")

    subparsers = parser.add_subparsers(dest="command", required=True)

    encrypt = subparsers.add_parser("encrypt", help="Encrypt a clear price")
    encrypt.add_argument("--seed", type=str, required=True, help="Per-request seed")
    encrypt.add_argument("--price", type=float, required=True, help="Clear price")

    decrypt = subparsers.add_parser("decrypt", help="Decrypt a price token")
    # Tokens may start with "-", which only the --token=<token> form accepts
    token = decrypt.add_mutually_exclusive_group(required=True)
    token.add_argument("token", type=str, nargs="?", default=None,
                       help="Encrypted price token")
    token.add_argument("--token", type=str, dest="token_option", metavar="TOKEN",
                       help="Encrypted price token, for tokens starting with \"-\" (--token=<token>)")

    return parser


def _resolve_config(args: argparse.Namespace) -> PricerConfig:
    config = PricerConfig.from_environment(validate=False)

    if args.encryption_key is not None:
        config.encryption_key = args.encryption_key
    if args.integrity_key is not None:
        config.integrity_key = args.integrity_key
    if args.mode is not None:
        config.key_decoding_mode = KeyDecodingMode.parse(args.mode)
    if args.base64_keys:
        config.is_base64_keys = True
    if args.scale_factor is not None:
        config.scale_factor = args.scale_factor
    if args.debug:
        config.debug = True

    config.validate()
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the pricer CLI.

    Returns:
        Exit code (0 = success, 1 = pricer error, 2 = invalid args)
    """
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return 2 if e.code else 0

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )

    try:
        pricer = DoubleClickPricer.from_config(_resolve_config(args))

        if args.command == "encrypt":
            print(pricer.encrypt(args.seed, args.price))
        else:
            print(pricer.decrypt(args.token_option or args.token))
    except PricerError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
