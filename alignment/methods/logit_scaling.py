"""
Logit Scaling alignment for multi-choice events.

Iterative proportional fitting of an agents x choices probability matrix
(Stephensen 2016, "A General Method for Alignment in Microsimulation
Models", International Journal of Microsimulation 9(3) 89-102). Each pass
scales every column towards its target total (gamma transform), then
rescales every row back to the agent's weight (alpha transform).

Convergence is measured as stability: the loop stops once the column sums
change by less than ``precision * total`` between two passes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional, Sequence

import numpy as np

from ..closures import MultiProbabilityClosure
from ..config import AlignmentConfig
from ..errors import AlignmentValidationError
from ..population import Predicate, extract_weights, filter_population
from ..validation import validate_shares, warn_nonconvergence


def gamma_factors(prob: np.ndarray, target_totals: np.ndarray) -> np.ndarray:
    """
    Column scaling factors: target total over current column sum.

    Columns that sum to zero cannot be rescaled and keep a factor of 1.
    """
    column_sums = prob.sum(axis=0)
    gamma = np.ones_like(target_totals, dtype=float)
    np.divide(target_totals, column_sums, out=gamma, where=column_sums > 0.0)
    return gamma


def alpha_factors(prob: np.ndarray, weights: np.ndarray) -> np.ndarray:
    """
    Row scaling factors that bring each row back to the agent's weight.

    Raises:
        AlignmentValidationError: If a row sums to zero, i.e. an agent has
            no probability mass left on any choice
    """
    row_sums = prob.sum(axis=1)
    if (row_sums <= 0.0).any():
        agent = int(np.argmax(row_sums <= 0.0))
        raise AlignmentValidationError(
            f"Probabilities of agent {agent} sum to zero after scaling to the "
            "targets; the row cannot be renormalised."
        )
    return weights / row_sums


def scaling_step(
    prob: np.ndarray,
    target_totals: np.ndarray,
    weights: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """
    One gamma + alpha pass.

    Args:
        prob: Weighted probability matrix (agents x choices)
        target_totals: Target column totals
        weights: Agent weights (row totals)

    Returns:
        (new probability matrix, its column sums)
    """
    scaled = prob * gamma_factors(prob, target_totals)
    aligned = scaled * alpha_factors(scaled, weights)[:, np.newaxis]
    return aligned, aligned.sum(axis=0)


def stability_error(previous_sums: np.ndarray, current_sums: np.ndarray) -> float:
    """Mean absolute change of the column sums between two passes."""
    if previous_sums.shape != current_sums.shape:
        raise ValueError("Column sum arrays don't have the same size.")
    return float(np.mean(np.abs(current_sums - previous_sums)))


def read_probabilities(
    agents: list,
    closure: MultiProbabilityClosure,
    n_choices: int,
) -> np.ndarray:
    """Collect unaligned probability rows into a matrix, validating shape and range."""
    rows = [np.asarray(closure.probabilities(agent), dtype=float) for agent in agents]
    for i, row in enumerate(rows):
        if row.shape != (n_choices,):
            raise AlignmentValidationError(
                f"Agent {i} has {row.size} probabilities, expected {n_choices}."
            )
    prob = np.vstack(rows)
    if not np.isfinite(prob).all() or (prob < 0.0).any() or (prob > 1.0).any():
        raise AlignmentValidationError(
            "Unaligned probabilities must lie in the closed range [0, 1]."
        )
    return prob


def logit_scale(
    prob: np.ndarray,
    shares: np.ndarray,
    weights: np.ndarray,
    config: AlignmentConfig,
    name: str = "LogitScaling",
) -> np.ndarray:
    """
    Run the scaling loop on an unaligned probability matrix.

    Args:
        prob: Unaligned probabilities (agents x choices)
        shares: Target share per choice
        weights: Agent weights
        config: Iteration settings
        name: Method name used in the convergence warning

    Returns:
        Aligned probabilities (agents x choices), rows summing to 1
    """
    total = float(weights.sum())
    prob = prob * weights[:, np.newaxis]
    target_totals = shares * total
    allowed_error = config.precision * total

    column_sums = np.zeros_like(target_totals)
    error = np.inf
    iterations = 0
    while error >= allowed_error and iterations < config.max_iterations:
        previous_sums = column_sums
        prob, column_sums = scaling_step(prob, target_totals, weights)
        error = stability_error(previous_sums, column_sums)
        iterations += 1

    if error >= allowed_error and config.warn_on_nonconvergence:
        warn_nonconvergence(
            f"{name} alignment terminated with an error of {error / total:f}, "
            f"greater than the precision bound of +/-{config.precision:g}. "
            f"The filtered population has {len(weights)} agents (total weight "
            f"{total:g}) and {iterations} iterations were run. Check the aligned "
            "shares, or increase max_iterations or precision."
        )

    return prob / weights[:, np.newaxis]


def _align(
    agents: Iterable,
    closure: MultiProbabilityClosure,
    target_shares: Sequence[float],
    predicate: Optional[Predicate],
    config: AlignmentConfig,
    weighted: bool,
    weight_of: Optional[Callable],
    name: str,
) -> None:
    config.validate()
    shares = validate_shares(target_shares)

    population = filter_population(agents, predicate)
    if not population:
        return

    if weighted:
        weights = extract_weights(population, weight_of)
    else:
        weights = np.ones(len(population))
    prob = read_probabilities(population, closure, shares.size)

    aligned = logit_scale(prob, shares, weights, config, name=name)
    for agent, row in zip(population, aligned):
        closure.assign(agent, row.copy())


@dataclass
class LogitScalingAligner:
    """
    Unweighted Logit Scaling alignment: every agent counts as one.

    Attributes:
        config: Default iteration settings (overridable per call)
    """

    config: AlignmentConfig = field(default_factory=AlignmentConfig)

    def align(
        self,
        agents: Iterable,
        closure: MultiProbabilityClosure,
        target_shares: Sequence[float],
        predicate: Optional[Predicate] = None,
        config: Optional[AlignmentConfig] = None,
    ) -> None:
        """
        Align multi-choice probabilities to target shares.

        Args:
            agents: Population to align
            closure: Reads unaligned and commits aligned probability rows
            target_shares: Target share per choice, each in [0, 1], sum <= 1
            predicate: Optional sub-population filter
            config: Overrides the aligner's iteration settings for this call

        Raises:
            AlignmentValidationError: On invalid targets, settings or
                probability rows (no agent is modified)
        """
        _align(
            agents, closure, target_shares, predicate,
            config or self.config, False, None, "LogitScaling",
        )


@dataclass
class LogitScalingWeightedAligner:
    """
    Weighted Logit Scaling alignment.

    Agents stand for ``weight`` individuals; by default the weight is read
    from the agent's ``weight`` attribute (see ``Weighted``).

    Attributes:
        config: Default iteration settings (overridable per call)
        weight_of: Optional weight accessor
    """

    config: AlignmentConfig = field(default_factory=AlignmentConfig)
    weight_of: Optional[Callable] = None

    def align(
        self,
        agents: Iterable,
        closure: MultiProbabilityClosure,
        target_shares: Sequence[float],
        predicate: Optional[Predicate] = None,
        config: Optional[AlignmentConfig] = None,
    ) -> None:
        """Align weighted multi-choice probabilities; see LogitScalingAligner.align."""
        _align(
            agents, closure, target_shares, predicate,
            config or self.config, True, self.weight_of,
            "LogitScalingWeighted",
        )

