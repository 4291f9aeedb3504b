"""
Input validation for alignment methods.

Every check here runs before any closure setter is called, so a failure
leaves the population untouched.
"""

from __future__ import annotations

import math
import warnings
from typing import Sequence

import numpy as np

from .errors import AlignmentConvergenceWarning, AlignmentValidationError


def validate_share(value: float, name: str = "target_share") -> None:
    """Raise if a share lies outside the closed interval [0, 1]."""
    if math.isnan(value) or value < 0.0 or value > 1.0:
        raise AlignmentValidationError(
            f"{name} must lie in the closed range [0, 1], got {value}."
        )


def validate_shares(shares: Sequence[float]) -> np.ndarray:
    """
    Validate a multi-choice target vector.

    Args:
        shares: Target share per choice

    Returns:
        The shares as a float array

    Raises:
        AlignmentValidationError: If any share is outside [0, 1], the vector
            has fewer than two entries, or the shares sum to more than 1
    """
    arr = np.asarray(shares, dtype=float)
    if arr.ndim != 1 or arr.size < 2:
        raise AlignmentValidationError(
            f"At least two outcomes are required, got {arr.size}."
        )
    for value in arr:
        validate_share(float(value))
    # Tolerate rounding in shares that are meant to sum to exactly 1
    if arr.sum() > 1.0 + 1e-12:
        raise AlignmentValidationError(
            f"Target shares must sum to at most 1, got {arr.sum():.12g}."
        )
    return arr


def validate_weights(weights: np.ndarray) -> None:
    """Raise unless every weight is strictly positive and finite."""
    if weights.size == 0:
        return
    if np.isnan(weights).any():
        raise AlignmentValidationError("Agent weight is not a number.")
    if np.isinf(weights).any():
        raise AlignmentValidationError("Agent weight is infinite.")
    if (weights <= 0.0).any():
        raise AlignmentValidationError("Agent weight cannot be zero or negative.")


def validate_target_count(target_count: float, effective_sample_size: float) -> None:
    """Raise if an absolute target is negative or larger than the sub-population."""
    if target_count < 0:
        raise AlignmentValidationError(
            f"Target count cannot be negative, got {target_count}."
        )
    if target_count > effective_sample_size:
        raise AlignmentValidationError(
            f"Target count {target_count} is larger than the effective sample "
            f"size {effective_sample_size} (over 100%)."
        )


def warn_nonconvergence(message: str) -> None:
    """Report a non-fatal convergence failure."""
    warnings.warn(message, AlignmentConvergenceWarning, stacklevel=3)
