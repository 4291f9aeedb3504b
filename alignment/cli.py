"""
Command line alignment of a probability column.

Usage:
    python -m alignment.cli --method sbd --target 0.4 --synthetic 5000
    python -m alignment.cli --method logit_scaling_binary --target 0.25 \\
        --input people.csv --probability-column p_retire --weight-column weight \\
        --output aligned.csv
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

import pandas as pd

from .config import AlignmentConfig, DEFAULT_MAX_ITERATIONS, DEFAULT_PRECISION
from .errors import AlignmentValidationError
from .frame import FRAME_METHODS, align_frame, summarise_alignment
from .synthetic import generate_population


def load_population(args: argparse.Namespace) -> pd.DataFrame:
    """Read the population from CSV, or generate a synthetic one."""
    if args.input:
        path = Path(args.input)
        if not path.exists():
            raise FileNotFoundError(f"Population file not found: {path}")
        return pd.read_csv(path)
    return generate_population(n_agents=args.synthetic, seed=args.seed)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Align agent probabilities to a population target"
    )
    parser.add_argument(
        "--method", required=True, choices=sorted(FRAME_METHODS),
        help="Alignment method",
    )
    parser.add_argument("--target", type=float, required=True, help="Target share")

    source = parser.add_mutually_exclusive_group()
    source.add_argument("--input", help="CSV file with one row per agent")
    source.add_argument(
        "--synthetic", type=int, default=10000,
        help="Generate a synthetic population of this size (default)",
    )

    parser.add_argument(
        "--probability-column", default="p_employment",
        help="Column with unaligned probabilities",
    )
    parser.add_argument("--weight-column", help="Column with agent weights")
    parser.add_argument(
        "--filter-column",
        help="Boolean (0/1) column selecting the sub-population to align",
    )
    parser.add_argument("--output-column", help="Column for aligned values")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument(
        "--max-iterations", type=int, default=DEFAULT_MAX_ITERATIONS,
        help="Logit Scaling iteration budget",
    )
    parser.add_argument(
        "--precision", type=float, default=DEFAULT_PRECISION,
        help="Logit Scaling convergence tolerance",
    )
    parser.add_argument("--output", help="Write the aligned population to this CSV")
    return parser


def run(args: argparse.Namespace) -> pd.DataFrame:
    """Load, align and summarise; returns the aligned DataFrame."""
    df = load_population(args)
    print(f"Loaded {len(df):,} agents")

    where = None
    if args.filter_column:
        if args.filter_column not in df.columns:
            raise ValueError(f"Filter column not in data: {args.filter_column}")
        where = df[args.filter_column].astype(bool).to_numpy()

    output_column = args.output_column or f"{args.probability_column}_aligned"
    config = AlignmentConfig(
        max_iterations=args.max_iterations, precision=args.precision
    )

    aligned = align_frame(
        df,
        args.method,
        args.probability_column,
        args.target,
        weight_column=args.weight_column,
        where=where,
        output_column=output_column,
        rng=args.seed,
        config=config,
    )

    summary = summarise_alignment(
        aligned, args.probability_column, output_column, args.target,
        weight_column=args.weight_column, where=where,
    )
    print(f"Method: {args.method}")
    print(f"  Aligned agents: {summary.n_agents:,} (total weight {summary.total_weight:,.0f})")
    print(f"  Mean before: {summary.mean_before:.4f}")
    print(f"  Mean after:  {summary.mean_after:.4f}")
    print(f"  Target:      {summary.target:.4f} (error {summary.error:.2e})")

    if args.output:
        aligned.to_csv(args.output, index=False)
        print(f"Wrote {len(aligned):,} rows to {args.output}")

    return aligned


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        run(args)
    except (AlignmentValidationError, ValueError, FileNotFoundError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
