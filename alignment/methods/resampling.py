"""
Resampling alignment for binary outcomes.

Rather than rewriting probabilities, agents on the wrong side of the target
are picked at random and asked to redraw their outcome until the number
(or total weight) of positive outcomes matches the target, or the attempt
budget runs out. Partial progress is kept when the budget runs out.

References:
    Richiardi & Poggi (2014), "Imputing Individual Effects in Dynamic
    Microsimulation Models", International Journal of Microsimulation 7(2).
    Leombruni & Richiardi (2006), "LABORsim: An Agent-Based Microsimulation
    of Labour Supply", Computational Economics 27, 63-88.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Optional

import numpy as np

from ..closures import OutcomeClosure
from ..config import AVG_RESAMPLE_ATTEMPTS
from ..errors import AlignmentValidationError
from ..population import (
    Predicate,
    RandomSource,
    count_from_share,
    extract_weights,
    filter_population,
    is_weighted,
    resolve_rng,
)
from ..validation import validate_share, validate_target_count, warn_nonconvergence


@dataclass
class ResamplingState:
    """Where a resampling loop stopped."""

    delta: float
    attempts: int
    max_attempts: int

    @property
    def exhausted(self) -> bool:
        return self.attempts >= self.max_attempts


def resolve_max_attempts(requested: Optional[int], size: int) -> int:
    """Requested budget, or ``AVG_RESAMPLE_ATTEMPTS * size`` when absent or smaller than ``size``."""
    if requested is None or requested < size:
        return AVG_RESAMPLE_ATTEMPTS * size
    return requested


def resample_unweighted(
    population: list,
    closure: OutcomeClosure,
    target_count: int,
    max_attempts: Optional[int],
    rng: np.random.Generator,
) -> ResamplingState:
    """
    Resample agents until the positive count equals ``target_count``.

    The attempt counter counts consecutive failed resamples and resets on
    every successful flip.
    """
    outcomes = [bool(closure.outcome(agent)) for agent in population]
    delta = sum(outcomes) - target_count
    budget = resolve_max_attempts(max_attempts, len(population))
    if delta == 0:
        return ResamplingState(delta=0, attempts=0, max_attempts=budget)

    sign = 1 if delta > 0 else -1
    desired = sign < 0
    pool = [agent for agent, outcome in zip(population, outcomes) if outcome != desired]

    attempts = 0
    while delta != 0 and attempts < budget and pool:
        i = int(rng.integers(len(pool)))
        agent = pool[i]
        attempts += 1
        closure.resample(agent)
        if bool(closure.outcome(agent)) == desired:
            delta -= sign
            attempts = 0
            pool[i] = pool[-1]
            pool.pop()

    return ResamplingState(delta=delta, attempts=attempts, max_attempts=budget)


def final_adjustment(
    agent,
    weight: float,
    closure: OutcomeClosure,
    delta: float,
) -> float:
    """
    Try to flip one set-aside agent if doing so brings ``delta`` closer to 0.

    At most ``AVG_RESAMPLE_ATTEMPTS`` resamples are made.
    """
    sign = 1.0 if delta > 0 else -1.0
    if abs(delta - sign * weight) >= abs(delta):
        return delta
    desired = sign < 0
    for _ in range(AVG_RESAMPLE_ATTEMPTS):
        closure.resample(agent)
        if bool(closure.outcome(agent)) == desired:
            return delta - sign * weight
    return delta


def resample_weighted(
    population: list,
    weights: np.ndarray,
    closure: OutcomeClosure,
    target_weight: float,
    max_attempts: Optional[int],
    rng: np.random.Generator,
) -> ResamplingState:
    """
    Resample weighted agents until the positive weight reaches ``target_weight``.

    Agents on the wrong side are drawn with probability proportional to
    their weight. An agent heavier than the remaining delta is set aside;
    the lightest set-aside agent gets one final adjustment once the loop
    ends.
    """
    outcomes = [bool(closure.outcome(agent)) for agent in population]
    positive_weight = float(sum(w for w, outcome in zip(weights, outcomes) if outcome))
    delta = positive_weight - target_weight
    if delta == 0:
        return ResamplingState(
            delta=0.0, attempts=0,
            max_attempts=resolve_max_attempts(max_attempts, len(population)),
        )

    initial_sign = np.sign(delta)
    desired = initial_sign < 0
    pool = [(agent, w) for agent, w, outcome in zip(population, weights, outcomes)
            if outcome != desired]
    budget = resolve_max_attempts(max_attempts, len(pool))

    set_aside = None
    attempts = 0
    while np.sign(delta) == initial_sign and attempts < budget and pool:
        attempts += 1
        pool_weights = np.array([w for _, w in pool])
        i = int(rng.choice(len(pool), p=pool_weights / pool_weights.sum()))
        agent, weight = pool[i]
        if initial_sign * delta >= weight:
            closure.resample(agent)
            if bool(closure.outcome(agent)) == desired:
                delta -= initial_sign * weight
                attempts = 0
                pool.pop(i)
        else:
            if set_aside is None or set_aside[1] > weight:
                set_aside = (agent, weight)
            pool.pop(i)

    if set_aside is not None and delta != 0:
        delta = final_adjustment(set_aside[0], set_aside[1], closure, delta)

    return ResamplingState(delta=float(delta), attempts=attempts, max_attempts=budget)


@dataclass
class ResamplingAligner:
    """
    Binary outcome alignment by resampling.

    Attributes:
        max_resampling_attempts: Budget of consecutive failed resamples;
            ``None`` (or a value below the population size) means
            ``AVG_RESAMPLE_ATTEMPTS`` per agent
        weighted: Use agent weights; ``None`` detects the Weighted capability
        weight_of: Optional weight accessor
        warn_on_nonconvergence: Warn when the budget runs out
    """

    max_resampling_attempts: Optional[int] = None
    weighted: Optional[bool] = None
    weight_of: Optional[Callable] = None
    warn_on_nonconvergence: bool = True

    def align(
        self,
        agents: Iterable,
        closure: OutcomeClosure,
        target_share: float,
        predicate: Optional[Predicate] = None,
        rng: RandomSource = None,
    ) -> None:
        """
        Resample outcomes so that ``target_share`` of the sub-population is positive.

        The target is ``floor(target_share * effective_sample_size)``, where the
        effective sample size is the agent count or the total weight.

        Raises:
            AlignmentValidationError: If the target is outside [0, 1] or a
                weight is invalid
        """
        validate_share(target_share)
        population, weights = self._setup(agents, predicate)
        if not population:
            return

        size = len(population) if weights is None else float(weights.sum())
        self._run(population, weights, closure, count_from_share(target_share, size), rng)

    def align_count(
        self,
        agents: Iterable,
        closure: OutcomeClosure,
        target_count: float,
        predicate: Optional[Predicate] = None,
        rng: RandomSource = None,
    ) -> None:
        """
        Resample outcomes so that ``target_count`` agents (or weight units) are positive.

        Raises:
            AlignmentValidationError: If the count is negative or exceeds the
                effective sample size, or a weight is invalid
        """
        if target_count < 0:
            raise AlignmentValidationError(
                f"Target count cannot be negative, got {target_count}."
            )
        population, weights = self._setup(agents, predicate)
        if not population:
            return

        size = len(population) if weights is None else float(weights.sum())
        validate_target_count(target_count, size)
        self._run(population, weights, closure, target_count, rng)

    def _setup(self, agents: Iterable, predicate: Optional[Predicate]):
        population = filter_population(agents, predicate)
        if not population:
            return population, None
        use_weights = is_weighted(population) if self.weighted is None else self.weighted
        weights = extract_weights(population, self.weight_of) if use_weights else None
        return population, weights

    def _run(self, population, weights, closure, target, rng) -> None:
        generator = resolve_rng(rng)
        order = generator.permutation(len(population))
        shuffled = [population[i] for i in order]

        if weights is None:
            state = resample_unweighted(
                shuffled, closure, int(target), self.max_resampling_attempts, generator
            )
        else:
            state = resample_weighted(
                shuffled, weights[order], closure, float(target),
                self.max_resampling_attempts, generator,
            )

        if state.exhausted and self.warn_on_nonconvergence:
            share = f"{state.delta * 100.0 / target:.2f}" if target else "n/a"
            warn_nonconvergence(
                f"Resampling alignment reached the maximum number of resample "
                f"attempts ({state.attempts} of {state.max_attempts}, "
                f"{AVG_RESAMPLE_ATTEMPTS} per agent on average) and terminated. "
                f"The difference between the positive outcomes and the target "
                f"is {state.delta:g} ({share} percent of target {target:g}). "
                "Check the resampling method and the sub-population if this is "
                "too large."
            )
