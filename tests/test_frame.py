"""Tests for DataFrame alignment."""

import numpy as np
import pandas as pd
import pytest

from alignment.config import AlignmentConfig
from alignment.errors import AlignmentValidationError
from alignment.frame import FRAME_METHODS, align_frame, summarise_alignment


@pytest.fixture
def people():
    """Small population with probabilities and weights."""
    np.random.seed(42)
    n = 200
    return pd.DataFrame({
        "agent_id": np.arange(n),
        "age": np.random.randint(18, 90, n),
        "p_employment": np.random.uniform(0.1, 0.9, n),
        "weight": np.random.uniform(500, 1500, n),
    })


class TestAlignFrame:
    """Tests for align_frame()."""

    def test_returns_copy_with_output_column(self, people):
        """The input frame is not modified."""
        result = align_frame(people, "multiplicative", "p_employment", 0.3)
        assert "p_employment_aligned" in result.columns
        assert "p_employment_aligned" not in people.columns
        assert result["p_employment_aligned"].mean() == pytest.approx(0.3)

    @pytest.mark.parametrize("method", ["sbd", "sbdl"])
    def test_sorting_methods_exact_count(self, people, method):
        result = align_frame(people, method, "p_employment", 0.35, rng=1)
        aligned = result["p_employment_aligned"]
        assert set(aligned.unique()) <= {0.0, 1.0}
        assert aligned.sum() == 70

    def test_sidewalk(self, people):
        result = align_frame(people, "sidewalk", "p_employment", 0.5, rng=1)
        assert result["p_employment_aligned"].sum() == np.floor(people["p_employment"].sum())

    def test_weighted_logit_scaling(self, people):
        """With a weight column the weighted mean hits the target."""
        config = AlignmentConfig(max_iterations=10_000, precision=1e-10)
        result = align_frame(
            people, "logit_scaling_binary", "p_employment", 0.6,
            weight_column="weight", config=config,
        )
        mean = np.average(result["p_employment_aligned"], weights=result["weight"])
        assert mean == pytest.approx(0.6, abs=1e-6)

    def test_where_mask(self, people):
        """Rows outside the mask keep their unaligned value."""
        mask = (people["age"] >= 65).to_numpy()
        result = align_frame(
            people, "sbd", "p_employment", 0.5, where=mask, output_column="retire", rng=0
        )
        outside = result.loc[~mask]
        np.testing.assert_array_equal(outside["retire"], outside["p_employment"])
        assert result.loc[mask, "retire"].sum() == mask.sum() // 2

    def test_summary(self, people):
        result = align_frame(people, "multiplicative", "p_employment", 0.3)
        summary = summarise_alignment(result, "p_employment", "p_employment_aligned", 0.3)
        assert summary.n_agents == 200
        assert summary.total_weight == 200.0
        assert summary.mean_before == pytest.approx(people["p_employment"].mean())
        assert summary.error == pytest.approx(0.0, abs=1e-12)

    def test_summary_empty_selection(self, people):
        result = align_frame(people, "multiplicative", "p_employment", 0.3)
        summary = summarise_alignment(
            result, "p_employment", "p_employment_aligned", 0.3,
            where=np.zeros(len(result), dtype=bool),
        )
        assert summary.n_agents == 0
        assert np.isnan(summary.mean_after)

    def test_unknown_method(self, people):
        with pytest.raises(ValueError, match="Unknown alignment method"):
            align_frame(people, "raking", "p_employment", 0.3)

    def test_missing_column(self, people):
        with pytest.raises(ValueError, match="Columns not in data"):
            align_frame(people, "sbd", "p_retire", 0.3)

    def test_mask_shape(self, people):
        with pytest.raises(ValueError, match="Row mask"):
            align_frame(people, "sbd", "p_employment", 0.3, where=[True, False])

    def test_invalid_target(self, people):
        with pytest.raises(AlignmentValidationError):
            align_frame(people, "sbd", "p_employment", 1.3)

    def test_all_methods_registered(self):
        assert set(FRAME_METHODS) == {
            "logit_scaling_binary", "multiplicative", "sbd", "sbdl", "sidewalk"
        }
