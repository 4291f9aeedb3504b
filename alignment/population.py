"""
Population handling for alignment.

Selects the sub-population to align, reads agent weights and converts
target shares into target counts.
"""

from __future__ import annotations

import math
from typing import (
    Callable,
    Iterable,
    Optional,
    Protocol,
    TypeVar,
    Union,
    runtime_checkable,
)

import numpy as np

from .errors import AlignmentValidationError
from .validation import validate_weights

T = TypeVar("T")

Predicate = Callable[[T], bool]
RandomSource = Union[np.random.Generator, int, None]


@runtime_checkable
class Weighted(Protocol):
    """
    Capability of agents that stand for more than one real-world individual.

    ``weight`` must be a positive, finite number.
    """

    weight: float


def filter_population(
    agents: Iterable[T],
    predicate: Optional[Predicate] = None,
) -> list[T]:
    """
    Select the agents to align.

    Args:
        agents: Any iterable of agents (not modified)
        predicate: Optional test an agent must pass to be kept

    Returns:
        New list with the selected agents in their original order
    """
    if predicate is None:
        return list(agents)
    return [agent for agent in agents if predicate(agent)]


def resolve_rng(rng: RandomSource = None) -> np.random.Generator:
    """Return a Generator from a Generator, an integer seed or None."""
    return np.random.default_rng(rng)


def shuffle_population(agents: list[T], rng: np.random.Generator) -> list[T]:
    """Return a shuffled copy of ``agents``."""
    order = rng.permutation(len(agents))
    return [agents[i] for i in order]


def is_weighted(agents: list) -> bool:
    """True when every agent exposes the Weighted capability."""
    return bool(agents) and all(isinstance(agent, Weighted) for agent in agents)


def extract_weights(
    agents: list[T],
    weight_of: Optional[Callable[[T], float]] = None,
) -> np.ndarray:
    """
    Read and validate the weight of every agent.

    Args:
        agents: Filtered agents
        weight_of: Optional accessor; defaults to the agent's ``weight``

    Returns:
        Array of weights aligned with ``agents``

    Raises:
        AlignmentValidationError: If an agent has no weight or any weight is
            zero, negative, NaN or infinite
    """
    if weight_of is None:
        weight_of = agent_weight
    weights = np.array([float(weight_of(agent)) for agent in agents], dtype=float)
    validate_weights(weights)
    return weights


def agent_weight(agent) -> float:
    """Default weight accessor: the agent's ``weight`` attribute."""
    try:
        return agent.weight
    except AttributeError:
        raise AlignmentValidationError(
            f"Agent of type {type(agent).__name__} does not expose a weight."
        ) from None


def count_from_share(share: float, size: float) -> int:
    """
    Number of agents a share of ``size`` stands for, rounded down.

    Products such as ``(7 / 10) * 10`` that land a rounding error away from
    an integer are snapped to it before flooring.
    """
    raw = share * size
    nearest = round(raw)
    if math.isclose(raw, nearest, rel_tol=1e-12, abs_tol=1e-9):
        return int(nearest)
    return int(math.floor(raw))
