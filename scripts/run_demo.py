#!/usr/bin/env python
"""
FlatCurve Demo Script

Bootstraps a piecewise-flat forward curve from a sample set of deposit,
zero coupon, swap and bond quotes and prints the resulting knots.

Usage:
    python run_demo.py [--extrapolation RATE] [--verbose] [--output FILE]
"""

import argparse
import logging
import math

import pandas as pd

from flatcurve.curves import CurveBootstrapper, instrument_from_quote


SAMPLE_QUOTES = [
    {"instrument_type": "DEPOSIT", "tenor": "1M", "quote": 0.0532},
    {"instrument_type": "DEPOSIT", "tenor": "3M", "quote": 0.0530},
    {"instrument_type": "ZERO", "tenor": "6M", "quote": 0.9740},
    {"instrument_type": "SWAP", "tenor": "1Y", "quote": 0.0500, "frequency": "SEMI"},
    {"instrument_type": "SWAP", "tenor": "2Y", "quote": 0.0480, "frequency": "SEMI"},
    {"instrument_type": "SWAP", "tenor": "3Y", "quote": 0.0460, "frequency": "SEMI"},
    {"instrument_type": "BOND", "tenor": "5Y", "quote": 0.99, "coupon": 0.045},
    {"instrument_type": "BOND", "tenor": "10Y", "quote": 0.97, "coupon": 0.042, "frequency": "SEMI"},
]


def print_curve_table(df: pd.DataFrame) -> None:
    """Print bootstrapped knots."""
    print(f"\n{'Tenor':>6} {'Time':>8} {'Forward':>10} {'Spot':>10} {'DF':>10} {'Error':>10}")
    print("-" * 60)
    for row in df.itertuples(index=False):
        print(
            f"{row.tenor:>6} {row.time:>8.4f} {row.forward * 100:>9.4f}% "
            f"{row.spot * 100:>9.4f}% {row.discount:>10.6f} {row.repricing_error:>10.2e}"
        )


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="FlatCurve Bootstrap Demo")
    parser.add_argument(
        "--extrapolation",
        type=float,
        default=math.nan,
        help="Forward rate past the last knot (default: NaN, no extrapolation)"
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write the knot table to this CSV file"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log solver iterations"
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    print("=" * 60)
    print("FLATCURVE BOOTSTRAP DEMO")
    print("=" * 60)

    instruments = [instrument_from_quote(q) for q in SAMPLE_QUOTES]
    print(f"\nInstruments: {len(instruments)}")

    bootstrapper = CurveBootstrapper(extrapolation=args.extrapolation)
    result = bootstrapper.bootstrap(instruments)

    print(f"Status: {result.message}")
    df = result.to_frame()
    print_curve_table(df)

    if args.output:
        df.to_csv(args.output, index=False)
        print(f"\nSaved knots to {args.output}")

    return 0 if result.success else 1


if __name__ == "__main__":
    raise SystemExit(main())
