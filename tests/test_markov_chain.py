import random
import unittest

import pytest

import markovscope.config
import markovscope.markov_chain

from conftest import make_chain


class MarkovChainTrainingTests (unittest.TestCase):

	"""
	Tests for counting and normalization.
	"""

	def test_smoothed_probabilities (self) -> None:

		"""
		Smoothing is spread over observed continuations only.
		"""

		chain = make_chain([["A", "B", "A", "C"]], order=1, smoothing=0.1)
		state = chain.get_state("A")

		self.assertIsNotNone(state)
		self.assertEqual(list(state.transitions), ["B", "C"])
		self.assertAlmostEqual(state.transitions["B"], (1 + 0.1) / (2 + 0.2))
		self.assertAlmostEqual(state.transitions["C"], 0.5)
		self.assertEqual(chain.get_state("B").transitions, {"A": 1.0})
		self.assertIsNone(chain.get_state("C"))


	def test_probabilities_sum_to_one (self) -> None:

		"""
		Every state's distribution should be normalized.
		"""

		chain = make_chain([
			["a", "b", "c", "a", "b", "d", "a", "c"],
			["b", "c", "d", "a", "b", "b", "c"],
			["d", "d", "d", "a"],
		], order=2, smoothing=0.7)

		for state in chain.get_states():
			self.assertAlmostEqual(sum(state.transitions.values()), 1.0, delta=1e-9)


	def test_counts_and_visits (self) -> None:

		"""
		Raw counts and visit counts track every observation.
		"""

		chain = make_chain([["A", "B", "A", "B", "A", "C"]], order=1)
		state = chain.get_state("A")

		self.assertEqual(state.counts, {"B": 2, "C": 1})
		self.assertEqual(state.visit_count, 3)
		self.assertEqual(state.context, ("A",))


	def test_short_sequences_create_no_states (self) -> None:

		"""
		Sequences no longer than the order contribute nothing but are retained.
		"""

		chain = make_chain([["A", "B"], ["C"]], order=2)

		self.assertEqual(chain.get_stats().total_states, 0)
		self.assertEqual(chain.get_training_data(), [["A", "B"], ["C"]])


	def test_train_empty_is_not_an_error (self) -> None:

		chain = make_chain([], order=2)

		self.assertEqual(chain.get_stats().total_states, 0)

		with self.assertRaises(markovscope.markov_chain.NoTrainingDataError):
			chain.generate()


	def test_train_replaces_previous_states (self) -> None:

		"""
		train() starts from scratch.
		"""

		chain = make_chain([["A", "B"]])
		chain.train([["X", "Y"]])

		self.assertIsNone(chain.get_state("A"))
		self.assertIsNotNone(chain.get_state("X"))
		self.assertEqual(chain.get_training_data(), [["X", "Y"]])


	def test_train_append_matches_combined_training (self) -> None:

		"""
		train(A) then train_append(B) should equal train(A + B).
		"""

		first = [["A", "B", "C", "A"], ["B", "B", "A"]]
		second = [["A", "C", "C", "B"], ["C", "A", "B", "A", "D"]]

		appended = make_chain(first, order=1, smoothing=0.3)
		appended.train_append(second)

		combined = make_chain(first + second, order=1, smoothing=0.3)

		self.assertEqual([s.key for s in appended.get_states()], [s.key for s in combined.get_states()])

		for left, right in zip(appended.get_states(), combined.get_states()):
			self.assertEqual(left.counts, right.counts)
			self.assertEqual(left.visit_count, right.visit_count)
			self.assertEqual(list(left.transitions), list(right.transitions))
			for token in left.transitions:
				self.assertAlmostEqual(left.transitions[token], right.transitions[token])

		self.assertEqual(appended.get_training_data(), first + second)


	def test_reset_clears_everything (self) -> None:

		chain = make_chain([["A", "B", "C"]])
		self.assertGreater(chain.get_stats().total_states, 0)

		chain.reset()

		self.assertEqual(chain.get_stats().total_states, 0)
		self.assertEqual(chain.get_training_data(), [])

		with self.assertRaises(markovscope.markov_chain.NoTrainingDataError):
			chain.generate()


def test_get_stats () -> None:

	"""Stats count states and distinct transitions."""

	chain = make_chain([["A", "B", "A", "C"]])
	stats = chain.get_stats()

	assert stats.total_states == 2
	assert stats.total_transitions == 3
	assert stats.average_transitions_per_state == pytest.approx(1.5)


def test_get_stats_empty () -> None:

	stats = make_chain().get_stats()

	assert stats.total_states == 0
	assert stats.total_transitions == 0
	assert stats.average_transitions_per_state == 0


def test_get_state_accepts_token_sequence () -> None:

	"""States can be looked up by key or by context tokens."""

	chain = make_chain([["A", "B", "C"]], order=2)

	assert chain.get_state(["A", "B"]) is chain.get_state("A|B")


def test_default_config () -> None:

	"""A chain without a config uses the defaults."""

	chain = markovscope.markov_chain.MarkovChain()

	assert chain.get_config() == markovscope.config.ChainConfig()


def test_training_logs_summary (caplog) -> None:

	"""Training reports its size at INFO level."""

	import logging

	with caplog.at_level(logging.INFO, logger="markovscope.markov_chain"):
		make_chain([["A", "B", "A", "C"]])

	assert "Trained on 1 sequences" in caplog.text
	assert "2 states" in caplog.text


def test_transition_analysis () -> None:

	"""States are classified and branching factors tallied."""

	chain = make_chain([["A", "B", "A", "C"]])
	analysis = chain.get_transition_analysis()

	assert analysis.deterministic_states == 1
	assert analysis.probabilistic_states == 1
	assert analysis.transition_distribution == {2: 1, 1: 1}
	assert [key for key, _ in analysis.sample_transitions] == ["A", "B"]


def test_learning_breakdown_replays_counts () -> None:

	"""Each observation shows the count before and after it."""

	chain = make_chain([["A", "B", "A", "B"]], smoothing=0.0)
	breakdown = chain.get_learning_breakdown()

	assert breakdown.total_sequences == 1
	assert breakdown.total_transitions == 3
	assert [(s.context, s.next_token) for s in breakdown.learning_steps] == [("A", "B"), ("B", "A"), ("A", "B")]

	last = breakdown.learning_steps[-1]
	assert last.current_count == 1
	assert last.new_count == 2
	assert "A" in last.description

	final = dict(breakdown.final_states)
	assert final["A"][0].token == "B"
	assert final["A"][0].count == 2
	assert final["A"][0].probability == pytest.approx(1.0)


def test_training_quality_flags_repetitive_data (repetitive_chain) -> None:

	"""A single deterministic state triggers every recommendation."""

	quality = repetitive_chain.analyze_training_quality()

	assert quality.total_states == 1
	assert quality.low_entropy_states == 1
	assert quality.high_repetition_states == 1
	assert quality.average_transitions_per_state == pytest.approx(1.0)
	assert len(quality.recommendations) == 4


def test_random_start_context_comes_from_training () -> None:

	"""Random windows are order-length slices of a training sequence."""

	chain = make_chain([["A", "B", "C", "D", "E"]], order=2, seed=7)
	windows = {tuple(chain.random_start_context()) for _ in range(50)}

	assert windows <= {("A", "B"), ("B", "C"), ("C", "D")}


def test_shared_rng_is_used () -> None:

	"""The chain's generator draws from the injected source."""

	rng = random.Random(3)
	chain = markovscope.markov_chain.MarkovChain(markovscope.config.ChainConfig(), rng=rng)

	assert chain.rng is rng
