"""
Synthetic agent populations.

Generates a person-level population with survey-style weights and
unaligned transition probabilities, for demonstrating and testing the
alignment methods without real microdata.
"""

from typing import Optional

import numpy as np
import pandas as pd

# (min_age, max_age, proportion), roughly matching an adult population
AGE_GROUPS = [
    (18, 35, 0.30),   # Young adults
    (35, 55, 0.34),   # Middle-aged
    (55, 70, 0.22),   # Near retirement
    (70, 95, 0.14),   # Elderly
]


def _logistic(x: np.ndarray) -> np.ndarray:
    return 1.0 / (1.0 + np.exp(-x))


def generate_population(
    n_agents: int = 10000,
    seed: Optional[int] = None,
    population_size: float = 50_000_000,
) -> pd.DataFrame:
    """
    Generate a synthetic population of adults.

    Args:
        n_agents: Number of agents (sample records)
        seed: Random seed for reproducibility
        population_size: Real-world population the sample stands for; sets
            the scale of the weights

    Returns:
        DataFrame with columns agent_id, age, is_employed, weight,
        p_employment and p_retire
    """
    if n_agents < 1:
        raise ValueError(f"n_agents must be positive, got {n_agents}.")
    rng = np.random.default_rng(seed)

    ages = []
    for min_age, max_age, proportion in AGE_GROUPS:
        group_size = int(n_agents * proportion)
        ages.extend(rng.integers(min_age, max_age + 1, group_size))

    # Adjust to exact n_agents
    while len(ages) < n_agents:
        ages.append(rng.integers(18, 96))
    ages = np.array(ages[:n_agents])
    rng.shuffle(ages)

    # Employment peaks in mid-career and falls away after 60
    p_employment = _logistic(2.0 - 0.004 * (ages - 42) ** 2)
    is_employed = (rng.random(n_agents) < p_employment).astype(int)

    # Retirement hazard is negligible before 55 and climbs steeply after 60
    p_retire = np.where(
        is_employed == 1,
        _logistic(0.35 * (ages - 64)),
        0.0,
    )

    base_weight = population_size / n_agents
    weights = rng.gamma(shape=4, scale=base_weight / 4, size=n_agents)

    return pd.DataFrame({
        "agent_id": np.arange(1, n_agents + 1),
        "age": ages,
        "is_employed": is_employed,
        "weight": weights,
        "p_employment": p_employment,
        "p_retire": p_retire,
    })
