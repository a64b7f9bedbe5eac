import logging
import string
import tracemalloc

import pytest

import markovscope.analysis.complexity

from conftest import make_chain


@pytest.fixture
def analyzer () -> markovscope.analysis.complexity.ComplexityAnalyzer:

	return markovscope.analysis.complexity.ComplexityAnalyzer()


def test_count_training_operations (analyzer) -> None:

	"""Two windows at order 2 cost 4 each, plus 2 states times 6 tokens."""

	assert analyzer.count_training_operations([["A", "B", "C"], ["D", "E", "F"]], 2) == 20


def test_count_training_operations_empty (analyzer) -> None:

	assert analyzer.count_training_operations([], 2) == 0
	assert analyzer.count_training_operations([["A"]], 2) == 0


def test_estimate_time_ms (analyzer) -> None:

	assert analyzer.estimate_time_ms(1_000_000) == pytest.approx(1000.0)


def test_measure_training_complexity (analyzer) -> None:

	metrics = analyzer.measure_training_complexity([["A", "B", "C", "A"], ["B", "C", "A"]], 1)

	assert metrics.operations == analyzer.count_training_operations([["A", "B", "C", "A"], ["B", "C", "A"]], 1)
	assert metrics.big_o == "O(n * m * k + s * v)"
	assert metrics.actual_time_ms >= 0
	assert metrics.memory_bytes >= 0
	assert metrics.efficiency in ("low", "medium", "high")


def test_estimate_memory_usage (analyzer) -> None:

	usage = analyzer.estimate_memory_usage(10, 2)

	assert usage.states_count == 100
	assert usage.transitions_count == 1000
	assert usage.bytes_estimate == 71000
	assert usage.feasible is True
	assert usage.breakdown.states == 20000
	assert usage.breakdown.transitions == 50000
	assert usage.breakdown.metadata == 1000


def test_estimate_memory_usage_is_capped (analyzer) -> None:

	"""Huge configurations cap the state count and are flagged infeasible."""

	usage = analyzer.estimate_memory_usage(1_000_000, 5)

	assert usage.states_count == 1_000_000
	assert usage.transitions_count == 20_000_000
	assert usage.feasible is False


def test_small_chain_has_no_bottleneck (analyzer) -> None:

	report = analyzer.analyze_bottlenecks(make_chain([["A", "B", "A", "C"]]))

	assert report.bottleneck == "none"
	assert report.severity == "low"
	assert report.recommendation == "No optimization needed"
	assert report.metrics.state_count == 2


def test_alphabet_chain_has_no_bottleneck (analyzer) -> None:

	chain = make_chain([list(string.ascii_uppercase)] * 100, order=3)
	report = analyzer.analyze_bottlenecks(chain)

	assert report.bottleneck == "none"
	assert report.metrics.state_count == 23
	assert report.metrics.average_transitions_per_state == pytest.approx(1.0)


def test_many_states_is_moderate_complexity (analyzer, caplog) -> None:

	chain = make_chain([[f"T{i}" for i in range(10_002)]])

	with caplog.at_level(logging.INFO, logger="markovscope.analysis.complexity"):
		report = analyzer.analyze_bottlenecks(chain)

	assert report.bottleneck == "moderate complexity"
	assert report.severity == "medium"
	assert report.metrics.state_count == 10_001
	assert "Bottleneck detected" in caplog.text


def test_dense_branching_is_transition_density (analyzer) -> None:

	chain = make_chain([["X", f"T{i}"] for i in range(51)])
	report = analyzer.analyze_bottlenecks(chain)

	assert report.bottleneck == "transition density"
	assert report.metrics.average_transitions_per_state == pytest.approx(51.0)


def test_estimate_chain_memory (analyzer) -> None:

	chain = make_chain([["A", "B", "A", "C"]])

	assert analyzer.estimate_chain_memory(chain) == 2 * 200 + 3 * 50


def test_recommend_optimal_order (analyzer) -> None:

	sequences = [list("ABCDEFGHIJKLMNO"), list("AEIOBCDFGHJKLMN"), list("ONMLKJIHGFEDCBA")]
	recommendation = analyzer.recommend_optimal_order(sequences)

	assert 1 <= recommendation.order <= 5
	assert recommendation.reasoning
	assert recommendation.tradeoffs
	assert recommendation.memory_impact in ("low", "medium", "high")
	assert 0 <= recommendation.score <= 1


def test_recommend_optimal_order_empty_prefers_lowest (analyzer) -> None:

	"""With nothing to cover every order scores the same; the lowest wins."""

	recommendation = analyzer.recommend_optimal_order([])

	assert recommendation.order == 1
	assert recommendation.score == pytest.approx(0.6)


def test_profile_memory_usage (analyzer) -> None:

	profile = analyzer.profile_memory_usage(lambda: [str(i) for i in range(1000)])

	assert profile.peak >= profile.before
	assert profile.delta >= 0


def test_profile_memory_usage_keeps_outer_trace (analyzer) -> None:

	"""An already running trace keeps running and keeps its peak."""

	tracemalloc.start()

	try:
		block = [0] * 200_000
		del block
		_, outer_peak = tracemalloc.get_traced_memory()

		profile = analyzer.profile_memory_usage(lambda: None)

		assert tracemalloc.is_tracing()
		assert profile.peak >= outer_peak
		assert tracemalloc.get_traced_memory()[1] >= outer_peak

	finally:
		tracemalloc.stop()
