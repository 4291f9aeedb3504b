"""
Multiplicative scaling alignment.

Single pass: every probability is multiplied by the ratio between the
target share and the mean unaligned probability (Li & O'Donoghue 2014,
"Evaluating Binary Alignment Methods in Microsimulation Models", JASSS
17(1) 15).

Aligned values are not clipped; a large ratio can push them above 1 and
the caller's outcome sampling decides how to treat them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from ..closures import ProbabilityClosure
from ..errors import AlignmentValidationError
from ..population import Predicate, filter_population
from ..validation import validate_share


def scaling_factor(probabilities: np.ndarray, target_share: float) -> float:
    """Ratio ``target_share * n / sum(probabilities)``."""
    total = float(probabilities.sum())
    if not np.isfinite(total) or total <= 0.0:
        raise AlignmentValidationError(
            "Unaligned probabilities must have a positive, finite sum, "
            f"got {total}."
        )
    return target_share * probabilities.size / total


@dataclass
class MultiplicativeScalingAligner:
    """Binary alignment by a common multiplicative factor."""

    def align(
        self,
        agents: Iterable,
        closure: ProbabilityClosure,
        target_share: float,
        predicate: Optional[Predicate] = None,
    ) -> None:
        """
        Scale every probability so that their mean equals ``target_share``.

        Args:
            agents: Population to align
            closure: Reads unaligned and commits aligned probabilities
            target_share: Target mean probability, in [0, 1]
            predicate: Optional sub-population filter

        Raises:
            AlignmentValidationError: If the target is outside [0, 1] or the
                probabilities sum to zero
        """
        validate_share(target_share)

        population = filter_population(agents, predicate)
        if not population:
            return

        probabilities = np.array(
            [closure.probability(agent) for agent in population], dtype=float
        )
        factor = scaling_factor(probabilities, target_share)

        for agent, value in zip(population, probabilities * factor):
            closure.assign(agent, float(value))
