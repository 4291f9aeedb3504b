"""Tests for synthetic population generation."""

import numpy as np
import pytest

from alignment.synthetic import AGE_GROUPS, generate_population


class TestGeneratePopulation:
    """Tests for generate_population()."""

    def test_size_and_columns(self):
        df = generate_population(n_agents=500, seed=42)
        assert len(df) == 500
        assert list(df.columns) == [
            "agent_id", "age", "is_employed", "weight", "p_employment", "p_retire"
        ]

    def test_reproducible(self):
        """Same seed, same population."""
        a = generate_population(n_agents=300, seed=7)
        b = generate_population(n_agents=300, seed=7)
        assert a.equals(b)

    def test_value_ranges(self):
        df = generate_population(n_agents=2000, seed=1)
        assert df["age"].between(18, 95).all()
        assert (df["weight"] > 0).all()
        assert df["p_employment"].between(0, 1).all()
        assert df["p_retire"].between(0, 1).all()
        assert set(df["is_employed"].unique()) <= {0, 1}

    def test_only_employed_can_retire(self):
        df = generate_population(n_agents=1000, seed=3)
        assert (df.loc[df["is_employed"] == 0, "p_retire"] == 0).all()

    def test_weights_scale_to_population(self):
        """Weights sum to roughly the population size."""
        df = generate_population(n_agents=5000, seed=2, population_size=1_000_000)
        assert df["weight"].sum() == pytest.approx(1_000_000, rel=0.05)

    def test_age_group_proportions(self):
        assert sum(p for _, _, p in AGE_GROUPS) == pytest.approx(1.0)

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            generate_population(n_agents=0)

    def test_small_population(self):
        df = generate_population(n_agents=1, seed=0)
        assert len(df) == 1
        assert np.isfinite(df["weight"]).all()
