"""
Sidewalk alignment.

Agents are shuffled and their unaligned probabilities accumulated; an agent
gets probability 1 when the integer part of the running total moves past
a new integer, 0 otherwise. The number of positive assignments is
therefore ``floor(sum(probabilities))``.

The target share is validated but does not drive the result: the count
comes from the probabilities alone, so they should already be aligned in
expectation (e.g. by multiplicative scaling) before calling this method.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from ..closures import ProbabilityClosure
from ..population import (
    Predicate,
    RandomSource,
    filter_population,
    resolve_rng,
    shuffle_population,
)
from ..validation import validate_share


def carry_assignments(probabilities: np.ndarray) -> np.ndarray:
    """
    1.0 where the truncated cumulative sum steps up, 0.0 elsewhere.

    The value before the first agent is taken as 0.
    """
    truncated = np.trunc(np.cumsum(probabilities))
    previous = np.concatenate(([0.0], truncated[:-1]))
    return (truncated != previous).astype(float)


@dataclass
class SidewalkAligner:
    """Binary alignment by integer carries of the cumulative probability."""

    def align(
        self,
        agents: Iterable,
        closure: ProbabilityClosure,
        target_share: float,
        predicate: Optional[Predicate] = None,
        rng: RandomSource = None,
    ) -> None:
        """
        Assign 1.0 or 0.0 to every agent by walking the shuffled population.

        Args:
            agents: Population to align
            closure: Reads unaligned and commits aligned probabilities
            target_share: Validated to lie in [0, 1]; advisory only
            predicate: Optional sub-population filter
            rng: Generator, seed or None (used for the shuffle)

        Raises:
            AlignmentValidationError: If the target is outside [0, 1]
        """
        validate_share(target_share)

        population = filter_population(agents, predicate)
        if not population:
            return

        shuffled = shuffle_population(population, resolve_rng(rng))
        probabilities = np.array(
            [closure.probability(agent) for agent in shuffled], dtype=float
        )

        for agent, value in zip(shuffled, carry_assignments(probabilities)):
            closure.assign(agent, float(value))
