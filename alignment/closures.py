"""
Closures binding alignment methods to agent state.

The engine never inspects agents directly. Each family of methods reads
and writes agent state through one of the closures below, built from
plain callables.
"""

from __future__ import annotations

from dataclasses import dataclass
from operator import attrgetter, methodcaller
from typing import Callable, Generic, Optional, Sequence, TypeVar

import numpy as np

T = TypeVar("T")


@dataclass(frozen=True)
class ProbabilityClosure(Generic[T]):
    """
    Binary probability access.

    Attributes:
        probability: Returns the unaligned probability of the positive outcome
        assign: Commits the aligned probability back onto the agent
    """

    probability: Callable[[T], float]
    assign: Callable[[T, float], None]

    @classmethod
    def from_attributes(
        cls, source: str, target: Optional[str] = None
    ) -> "ProbabilityClosure":
        """Read ``source`` and write the aligned value to ``target`` (default: ``source``)."""
        target = target or source
        return cls(
            probability=attrgetter(source),
            assign=lambda agent, value: setattr(agent, target, value),
        )


@dataclass(frozen=True)
class MultiProbabilityClosure(Generic[T]):
    """
    Multi-choice probability access.

    ``probabilities`` returns one unaligned probability per outcome (the
    values need not sum to 1); ``assign`` receives the aligned row as an
    array that sums to 1.
    """

    probabilities: Callable[[T], Sequence[float]]
    assign: Callable[[T, np.ndarray], None]

    @classmethod
    def from_attributes(
        cls, source: str, target: Optional[str] = None
    ) -> "MultiProbabilityClosure":
        target = target or source
        return cls(
            probabilities=attrgetter(source),
            assign=lambda agent, values: setattr(agent, target, values),
        )


@dataclass(frozen=True)
class OutcomeClosure(Generic[T]):
    """
    Binary outcome access.

    Attributes:
        outcome: Returns the agent's current outcome
        resample: Redraws the agent's stochastic driver so that a later
            ``outcome`` call may return a different value
    """

    outcome: Callable[[T], bool]
    resample: Callable[[T], None]

    @classmethod
    def from_attributes(cls, outcome: str, resample: str) -> "OutcomeClosure":
        """Read the ``outcome`` attribute and call the ``resample`` method."""
        return cls(outcome=attrgetter(outcome), resample=methodcaller(resample))
