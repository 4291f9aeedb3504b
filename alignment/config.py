"""
Alignment configuration.

Iteration budgets and tolerances shared by the iterative alignment methods.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace

from .errors import AlignmentValidationError

# Stephensen (2016) reports convergence within tens of iterations.
DEFAULT_MAX_ITERATIONS = 100

# If probabilities are stated to x decimal places, precision should be 1e-x.
DEFAULT_PRECISION = 1e-5

# Expected number of resample draws needed to flip one unit of delta.
AVG_RESAMPLE_ATTEMPTS = 20


@dataclass(frozen=True)
class AlignmentConfig:
    """
    Settings for a single alignment call.

    Attributes:
        max_iterations: Maximum number of passes of the iterative loop
        precision: Convergence tolerance, as a share of the sub-population
        warn_on_nonconvergence: Issue an AlignmentConvergenceWarning when the
            loop stops on its iteration budget
    """

    max_iterations: int = DEFAULT_MAX_ITERATIONS
    precision: float = DEFAULT_PRECISION
    warn_on_nonconvergence: bool = True

    def validate(self) -> None:
        """
        Check the iteration settings.

        Raises:
            AlignmentValidationError: If max_iterations < 1 or precision is
                not a finite positive number
        """
        if self.max_iterations < 1:
            raise AlignmentValidationError(
                f"max_iterations must be at least 1, got {self.max_iterations}."
            )
        if not math.isfinite(self.precision) or self.precision <= 0.0:
            raise AlignmentValidationError(
                f"precision must be finite and greater than 0, got {self.precision}."
            )

    def with_overrides(self, **overrides) -> "AlignmentConfig":
        """Return a copy with the given fields replaced."""
        return replace(self, **overrides)
