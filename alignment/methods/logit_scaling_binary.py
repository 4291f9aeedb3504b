"""
Logit Scaling alignment for binary events.

Two-outcome case of Logit Scaling: the probability of the positive outcome
and its complement are scaled as the two columns of the multi-choice
procedure, so the same convergence criterion and warnings apply.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

import numpy as np

from ..closures import ProbabilityClosure
from ..config import AlignmentConfig
from ..errors import AlignmentValidationError
from ..population import Predicate, extract_weights, filter_population
from ..validation import validate_share
from .logit_scaling import logit_scale


def _align_binary(
    agents: Iterable,
    closure: ProbabilityClosure,
    target_share: float,
    predicate: Optional[Predicate],
    config: AlignmentConfig,
    weighted: bool,
    weight_of: Optional[Callable],
    name: str,
) -> None:
    validate_share(target_share)
    config.validate()

    population = filter_population(agents, predicate)
    if not population:
        return

    if weighted:
        weights = extract_weights(population, weight_of)
    else:
        weights = np.ones(len(population))

    p = np.array([closure.probability(agent) for agent in population], dtype=float)
    if not np.isfinite(p).all() or (p < 0.0).any() or (p > 1.0).any():
        raise AlignmentValidationError(
            "Unaligned probabilities must lie in the closed range [0, 1]."
        )

    prob = np.column_stack([p, 1.0 - p])
    shares = np.array([target_share, 1.0 - target_share])
    aligned = logit_scale(prob, shares, weights, config, name=name)

    for agent, value in zip(population, aligned[:, 0]):
        closure.assign(agent, float(value))


@dataclass
class LogitScalingBinaryAligner:
    """Unweighted binary Logit Scaling alignment."""

    config: AlignmentConfig = field(default_factory=AlignmentConfig)

    def align(
        self,
        agents: Iterable,
        closure: ProbabilityClosure,
        target_share: float,
        predicate: Optional[Predicate] = None,
        config: Optional[AlignmentConfig] = None,
    ) -> None:
        """
        Align binary probabilities so that their mean matches ``target_share``.

        Raises:
            AlignmentValidationError: On an invalid target, settings or
                probabilities (no agent is modified)
        """
        _align_binary(
            agents, closure, target_share, predicate,
            config or self.config, False, None, "LogitScalingBinary",
        )


@dataclass
class LogitScalingBinaryWeightedAligner:
    """Weighted binary Logit Scaling alignment; the weighted mean matches the target."""

    config: AlignmentConfig = field(default_factory=AlignmentConfig)
    weight_of: Optional[Callable] = None

    def align(
        self,
        agents: Iterable,
        closure: ProbabilityClosure,
        target_share: float,
        predicate: Optional[Predicate] = None,
        config: Optional[AlignmentConfig] = None,
    ) -> None:
        _align_binary(
            agents, closure, target_share, predicate,
            config or self.config, True, self.weight_of,
            "LogitScalingBinaryWeighted",
        )
