"""
DataFrame adapter for binary probability alignment.

Treats each row of a DataFrame as an agent, so microdata held in pandas
can be aligned without writing closures by hand.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd

from .closures import ProbabilityClosure
from .config import AlignmentConfig
from .methods import (
    LogitScalingBinaryAligner,
    LogitScalingBinaryWeightedAligner,
    MultiplicativeScalingAligner,
    SBDAligner,
    SBDLAligner,
    SidewalkAligner,
)
from .population import RandomSource

# method name -> (unweighted aligner, weighted aligner or None)
FRAME_METHODS = {
    "logit_scaling_binary": (LogitScalingBinaryAligner, LogitScalingBinaryWeightedAligner),
    "multiplicative": (MultiplicativeScalingAligner, None),
    "sbd": (SBDAligner, None),
    "sbdl": (SBDLAligner, None),
    "sidewalk": (SidewalkAligner, None),
}

RANDOMISED_METHODS = {"sbd", "sbdl", "sidewalk"}


@dataclass
class _Row:
    """A DataFrame row seen as an agent."""

    position: int
    weight: float = 1.0


@dataclass
class AlignmentSummary:
    """
    Aggregate comparison of a probability column before and after alignment.

    Attributes:
        n_agents: Number of rows in the aligned sub-population
        total_weight: Sum of their weights (the effective sample size)
        mean_before: Weighted mean of the unaligned probabilities
        mean_after: Weighted mean of the aligned probabilities
        target: Target share
        error: Absolute difference between mean_after and target
    """

    n_agents: int
    total_weight: float
    mean_before: float
    mean_after: float
    target: float
    error: float


def _row_mask(df: pd.DataFrame, where) -> np.ndarray:
    if where is None:
        return np.ones(len(df), dtype=bool)
    mask = np.asarray(where, dtype=bool)
    if mask.shape != (len(df),):
        raise ValueError(
            f"Row mask has shape {mask.shape}, expected ({len(df)},)."
        )
    return mask


def _require_columns(df: pd.DataFrame, *columns: Optional[str]) -> None:
    missing = {c for c in columns if c is not None} - set(df.columns)
    if missing:
        raise ValueError(
            f"Columns not in data: {missing}. Available: {df.columns.tolist()}"
        )


def align_frame(
    df: pd.DataFrame,
    method: str,
    probability_column: str,
    target: float,
    *,
    weight_column: Optional[str] = None,
    where=None,
    output_column: Optional[str] = None,
    rng: RandomSource = None,
    config: Optional[AlignmentConfig] = None,
) -> pd.DataFrame:
    """
    Align a probability column of a DataFrame.

    Args:
        df: One row per agent
        method: One of FRAME_METHODS
        probability_column: Column with unaligned probabilities
        target: Target share for the selected rows
        weight_column: Optional weight column; uses the weighted variant of
            the method where there is one
        where: Optional boolean mask selecting the rows to align
        output_column: Column for the result (default:
            ``{probability_column}_aligned``)
        rng: Generator or seed for randomised methods
        config: Iteration settings for Logit Scaling

    Returns:
        Copy of ``df`` with the output column added. Rows outside ``where``
        keep their unaligned value.

    Raises:
        ValueError: If the method or a column is unknown
        AlignmentValidationError: If the alignment inputs are invalid
    """
    if method not in FRAME_METHODS:
        raise ValueError(
            f"Unknown alignment method: {method}. "
            f"Valid methods: {sorted(FRAME_METHODS)}"
        )
    _require_columns(df, probability_column, weight_column)
    mask = _row_mask(df, where)

    unaligned = df[probability_column].to_numpy(dtype=float)
    aligned = unaligned.copy()
    if weight_column is None:
        rows = [_Row(i) for i in range(len(df))]
    else:
        weights = df[weight_column].to_numpy(dtype=float)
        rows = [_Row(i, float(w)) for i, w in enumerate(weights)]

    def assign(row: _Row, value: float) -> None:
        aligned[row.position] = value

    closure = ProbabilityClosure(
        probability=lambda row: unaligned[row.position], assign=assign
    )

    unweighted_cls, weighted_cls = FRAME_METHODS[method]
    aligner_cls = weighted_cls if weight_column and weighted_cls else unweighted_cls

    kwargs = {"predicate": lambda row: mask[row.position]}
    if method in RANDOMISED_METHODS:
        kwargs["rng"] = rng
    elif config is not None and method == "logit_scaling_binary":
        kwargs["config"] = config
    aligner_cls().align(rows, closure, target, **kwargs)

    result = df.copy()
    result[output_column or f"{probability_column}_aligned"] = aligned
    return result


def summarise_alignment(
    df: pd.DataFrame,
    before_column: str,
    after_column: str,
    target: float,
    weight_column: Optional[str] = None,
    where=None,
) -> AlignmentSummary:
    """Compare weighted means of the unaligned and aligned columns with the target."""
    _require_columns(df, before_column, after_column, weight_column)
    subset = df[_row_mask(df, where)]

    if weight_column is None:
        weights = np.ones(len(subset))
    else:
        weights = subset[weight_column].to_numpy(dtype=float)

    if len(subset) == 0:
        return AlignmentSummary(0, 0.0, np.nan, np.nan, target, np.nan)

    mean_before = float(np.average(subset[before_column], weights=weights))
    mean_after = float(np.average(subset[after_column], weights=weights))
    return AlignmentSummary(
        n_agents=len(subset),
        total_weight=float(weights.sum()),
        mean_before=mean_before,
        mean_after=mean_after,
        target=target,
        error=abs(mean_after - target),
    )
