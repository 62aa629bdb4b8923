"""
Kometa Studio Key Generator
===========================
Generates the master key that seals every profile's credentials, or checks
an existing one.

Usage:
    python -m kometa_studio.keygen
    python -m kometa_studio.keygen --check <KEY>

Keep the key somewhere safe: profiles sealed with it cannot be opened with
any other key.
"""

import argparse
import sys

from kometa_studio.security.envelope import generate_master_key, validate_master_key


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kometa-studio-keygen",
        description="Generate or check a Kometa Studio master key.",
    )
    parser.add_argument(
        "--check",
        metavar="KEY",
        help="validate KEY instead of generating a new one",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    args = _parser().parse_args(argv)

    if args.check is not None:
        if validate_master_key(args.check):
            print("OK: key is a valid master key (32 bytes, base64).")
            return
        print("ERROR: key is not the base64 encoding of exactly 32 bytes.")
        sys.exit(1)

    key = generate_master_key()
    print()
    print("=" * 60)
    print("  Kometa Studio -- Master Key")
    print("=" * 60)
    print()
    print(f"  {key}")
    print()
    print("  Set it as:")
    print(f"  KOMETA_STUDIO_MASTER_KEY={key}")
    print()
    print("  Losing this key makes every stored profile unreadable.")
    print("=" * 60)
    print()


if __name__ == "__main__":
    main()
