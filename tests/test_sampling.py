import random

import pytest

import markovscope.sampling


class FixedRandom (random.Random):

	"""A random source whose draws come from a fixed list."""

	def __init__ (self, values: list) -> None:

		super().__init__(0)
		self.values = list(values)

	def random (self) -> float:

		return self.values.pop(0)


def test_choose_weighted_single_option () -> None:

	"""A single option should always be chosen."""

	token, roll = markovscope.sampling.choose_weighted({"A": 1.0}, random.Random(1))

	assert token == "A"
	assert 0.0 <= roll < 1.0


def test_choose_weighted_walks_cumulative_sum_in_order () -> None:

	"""The first token whose running sum reaches the draw should win."""

	distribution = {"A": 0.25, "B": 0.25, "C": 0.5}

	assert markovscope.sampling.choose_weighted(distribution, FixedRandom([0.1]))[0] == "A"
	assert markovscope.sampling.choose_weighted(distribution, FixedRandom([0.3]))[0] == "B"
	assert markovscope.sampling.choose_weighted(distribution, FixedRandom([0.9]))[0] == "C"


def test_choose_weighted_boundary_is_inclusive () -> None:

	"""A draw exactly on a cumulative boundary selects the earlier token."""

	distribution = {"A": 0.25, "B": 0.75}

	assert markovscope.sampling.choose_weighted(distribution, FixedRandom([0.25])) == ("A", 0.25)


def test_choose_weighted_returns_last_token_on_shortfall () -> None:

	"""If the probabilities sum short of the draw, the last token is used."""

	distribution = {"A": 0.3, "B": 0.3, "C": 0.3}

	assert markovscope.sampling.choose_weighted(distribution, FixedRandom([0.95]))[0] == "C"


def test_choose_weighted_empty_raises () -> None:

	"""An empty distribution cannot be sampled."""

	with pytest.raises(ValueError):
		markovscope.sampling.choose_weighted({}, random.Random(1))


def test_temperature_one_is_identity () -> None:

	"""A temperature of 1.0 should return the distribution untouched."""

	distribution = {"A": 0.7, "B": 0.3}

	assert markovscope.sampling.apply_temperature(distribution, 1.0) is distribution


def test_low_temperature_sharpens () -> None:

	"""Below 1.0 the most likely token gains probability."""

	adjusted = markovscope.sampling.apply_temperature({"A": 0.75, "B": 0.25}, 0.5)

	assert adjusted["A"] == pytest.approx(0.9)
	assert adjusted["B"] == pytest.approx(0.1)


def test_high_temperature_flattens () -> None:

	"""Above 1.0 the distribution moves toward uniform but keeps its ranking."""

	adjusted = markovscope.sampling.apply_temperature({"A": 0.75, "B": 0.25}, 2.0)

	assert 0.5 < adjusted["A"] < 0.75
	assert sum(adjusted.values()) == pytest.approx(1.0)


def test_temperature_preserves_order () -> None:

	"""Reshaping should not change iteration order."""

	adjusted = markovscope.sampling.apply_temperature({"C": 0.2, "A": 0.5, "B": 0.3}, 0.3)

	assert list(adjusted) == ["C", "A", "B"]


def test_shannon_entropy () -> None:

	"""Entropy is in bits and zero for certain or empty distributions."""

	assert markovscope.sampling.shannon_entropy({"A": 0.5, "B": 0.5}) == pytest.approx(1.0)
	assert markovscope.sampling.shannon_entropy({"A": 0.25, "B": 0.25, "C": 0.25, "D": 0.25}) == pytest.approx(2.0)
	assert markovscope.sampling.shannon_entropy({"A": 1.0}) == 0
	assert markovscope.sampling.shannon_entropy({}) == 0
