"""Tests for population filtering, weights and configuration."""

from dataclasses import dataclass

import numpy as np
import pytest

from alignment.config import (
    AVG_RESAMPLE_ATTEMPTS,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_PRECISION,
    AlignmentConfig,
)
from alignment.errors import AlignmentValidationError
from alignment.population import (
    Weighted,
    count_from_share,
    extract_weights,
    filter_population,
    is_weighted,
    resolve_rng,
    shuffle_population,
)
from alignment.validation import validate_share, validate_shares, validate_target_count


@dataclass
class Person:
    age: int


@dataclass
class WeightedPerson:
    age: int
    weight: float


class TestFilterPopulation:
    """Tests for filter_population()."""

    def test_no_predicate_keeps_everyone_in_order(self):
        """Without a predicate every agent is returned in input order."""
        people = [Person(30), Person(70), Person(45)]
        assert filter_population(people) == people

    def test_predicate_preserves_relative_order(self):
        """Selected agents keep their relative order."""
        people = [Person(30), Person(70), Person(45), Person(80)]
        selected = filter_population(people, lambda p: p.age > 40)
        assert [p.age for p in selected] == [70, 45, 80]

    def test_input_not_mutated(self):
        """The input collection is left untouched."""
        people = [Person(30), Person(70)]
        selected = filter_population(people, lambda p: p.age > 40)
        selected.clear()
        assert len(people) == 2

    def test_accepts_any_iterable(self):
        """Generators and tuples are accepted."""
        people = (Person(a) for a in range(5))
        assert len(filter_population(people, lambda p: p.age % 2 == 0)) == 3

    def test_empty_result(self):
        """An empty selection is a valid result."""
        assert filter_population([Person(10)], lambda p: p.age > 40) == []


class TestWeights:
    """Tests for the Weighted capability and weight extraction."""

    def test_weighted_protocol_detection(self):
        """Agents with a weight attribute satisfy Weighted."""
        assert isinstance(WeightedPerson(30, 2.0), Weighted)
        assert not isinstance(Person(30), Weighted)

    def test_is_weighted_requires_all_agents(self):
        """is_weighted is False for mixed or empty populations."""
        assert is_weighted([WeightedPerson(30, 1.0), WeightedPerson(40, 2.0)])
        assert not is_weighted([WeightedPerson(30, 1.0), Person(40)])
        assert not is_weighted([])

    def test_extract_weights(self):
        """Weights are read in population order."""
        people = [WeightedPerson(30, 1.5), WeightedPerson(40, 2.5)]
        np.testing.assert_array_equal(extract_weights(people), [1.5, 2.5])

    def test_custom_weight_accessor(self):
        """A weight accessor overrides the attribute."""
        people = [Person(30), Person(40)]
        weights = extract_weights(people, weight_of=lambda p: p.age / 10)
        np.testing.assert_array_equal(weights, [3.0, 4.0])

    @pytest.mark.parametrize("bad", [0.0, -1.0, float("nan"), float("inf")])
    def test_invalid_weight_rejected(self, bad):
        """Zero, negative, NaN and infinite weights are rejected."""
        people = [WeightedPerson(30, 1.0), WeightedPerson(40, bad)]
        with pytest.raises(AlignmentValidationError):
            extract_weights(people)

    def test_missing_weight_rejected(self):
        """Agents without a weight raise a validation error."""
        with pytest.raises(AlignmentValidationError, match="does not expose a weight"):
            extract_weights([Person(30)])


class TestCountFromShare:
    """Tests for count_from_share()."""

    def test_floors_fractional_counts(self):
        """Fractional counts are rounded down."""
        assert count_from_share(0.45, 10) == 4
        assert count_from_share(0.4, 5) == 2

    @pytest.mark.parametrize("k,n", [(7, 10), (1, 49), (29, 100), (3, 7)])
    def test_exact_fractions_are_not_lost_to_rounding(self, k, n):
        """k/n of n agents is exactly k."""
        assert count_from_share(k / n, n) == k

    def test_bounds(self):
        """Shares of 0 and 1 give 0 and n."""
        assert count_from_share(0.0, 13) == 0
        assert count_from_share(1.0, 13) == 13


class TestRandomSource:
    """Tests for rng normalisation and shuffling."""

    def test_seed_reproducible(self):
        """The same seed yields the same draws."""
        assert resolve_rng(7).random() == resolve_rng(7).random()

    def test_generator_passed_through(self):
        """An existing Generator is used as is."""
        rng = np.random.default_rng(1)
        assert resolve_rng(rng) is rng

    def test_shuffle_returns_permutation_copy(self):
        """shuffle_population returns a reordered copy."""
        agents = list(range(20))
        shuffled = shuffle_population(agents, resolve_rng(3))
        assert sorted(shuffled) == agents
        assert agents == list(range(20))


class TestValidation:
    """Tests for target validation."""

    @pytest.mark.parametrize("share", [-0.01, 1.01, float("nan")])
    def test_share_out_of_range(self, share):
        """Shares outside [0, 1] are rejected."""
        with pytest.raises(AlignmentValidationError):
            validate_share(share)

    def test_shares_must_sum_to_at_most_one(self):
        """Multi-choice targets summing to more than 1 are rejected."""
        with pytest.raises(AlignmentValidationError, match="sum to at most 1"):
            validate_shares([0.7, 0.6])

    def test_shares_need_two_outcomes(self):
        """A single outcome is not a multi-choice target."""
        with pytest.raises(AlignmentValidationError):
            validate_shares([1.0])

    def test_shares_summing_to_one_with_rounding(self):
        """Ten shares of 0.1 are accepted."""
        shares = validate_shares([0.1] * 10)
        assert shares.size == 10

    def test_target_count_bounds(self):
        """Counts must lie in [0, effective sample size]."""
        validate_target_count(5, 5)
        with pytest.raises(AlignmentValidationError):
            validate_target_count(-1, 5)
        with pytest.raises(AlignmentValidationError, match="over 100%"):
            validate_target_count(6, 5)


class TestAlignmentConfig:
    """Tests for AlignmentConfig."""

    def test_defaults(self):
        """Defaults match the documented constants."""
        config = AlignmentConfig()
        assert config.max_iterations == DEFAULT_MAX_ITERATIONS == 100
        assert config.precision == DEFAULT_PRECISION == 1e-5
        assert config.warn_on_nonconvergence is True
        assert AVG_RESAMPLE_ATTEMPTS == 20

    @pytest.mark.parametrize(
        "overrides",
        [
            {"max_iterations": 0},
            {"precision": 0.0},
            {"precision": -1e-3},
            {"precision": float("nan")},
            {"precision": float("inf")},
        ],
    )
    def test_invalid_settings(self, overrides):
        """Invalid iteration settings fail validation."""
        with pytest.raises(AlignmentValidationError):
            AlignmentConfig(**overrides).validate()

    def test_with_overrides_returns_copy(self):
        """with_overrides leaves the original untouched."""
        config = AlignmentConfig()
        changed = config.with_overrides(max_iterations=10)
        assert changed.max_iterations == 10
        assert config.max_iterations == 100
