#!/usr/bin/env python3
"""
Offline redemption code generator.

Prints KYX codes one per line, or a single INSERT statement for the
redemption_codes table.

Usage:
    python scripts/generate_codes.py --count 100 --amount 1.50
    python scripts/generate_codes.py --count 100 --amount 1.50 --sql > codes.sql
"""

import argparse
import sys
from decimal import Decimal, InvalidOperation

from daily_checkin.utils.codes import generate_unique_codes

MAX_COUNT = 10000


def build_insert_sql(codes: list[str], amount: Decimal) -> str:
    """INSERT for undistributed codes of one amount."""
    values = ",\n".join(f"    ('{code}', {amount}, false, false)" for code in codes)
    return (
        "INSERT INTO redemption_codes (code, amount, is_distributed, is_used) VALUES\n"
        f"{values};"
    )


def parse_amount(value: str) -> Decimal:
    try:
        amount = Decimal(value).quantize(Decimal("0.01"))
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"invalid amount: {value}")
    if amount <= 0:
        raise argparse.ArgumentTypeError("amount must be greater than 0")
    return amount


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Generate redemption codes.")
    parser.add_argument("--count", type=int, required=True, help=f"Number of codes (1-{MAX_COUNT})")
    parser.add_argument("--amount", type=parse_amount, default=Decimal("1.00"), help="Face value")
    parser.add_argument("--sql", action="store_true", help="Print an INSERT statement")
    args = parser.parse_args(argv)

    if not 1 <= args.count <= MAX_COUNT:
        parser.error(f"--count must be between 1 and {MAX_COUNT}")

    codes = generate_unique_codes(args.count)
    if args.sql:
        print(build_insert_sql(codes, args.amount))
    else:
        print("\n".join(codes))
    return 0


if __name__ == "__main__":
    sys.exit(main())
