"""Cost, memory and bottleneck estimates for training and holding a chain.

Training cost is modelled as ``O(n * m * k + s * v)``: ``n`` sequences of
average length ``m`` at order ``k``, plus a normalization pass over ``s``
observed states and ``v`` distinct tokens.  Memory is estimated from fixed
per-state and per-transition byte costs.  All figures are approximations
meant for comparing configurations, not guarantees.
"""

import dataclasses
import logging
import time
import tracemalloc
import typing

import markovscope.config
import markovscope.markov_chain


logger = logging.getLogger(__name__)


BYTES_PER_STATE: int = 200
BYTES_PER_TRANSITION: int = 50
CHAIN_METADATA_BYTES: int = 1000

MAX_ESTIMATED_STATES: int = 1_000_000
MAX_ESTIMATED_BRANCHING: int = 20

MEMORY_BUDGET_BYTES: int = 100 * 1024 * 1024
HIGH_MEMORY_BYTES: int = 50 * 1024 * 1024
MEDIUM_MEMORY_BYTES: int = 10 * 1024 * 1024

STATE_EXPLOSION_STATES: int = 100_000
MODERATE_COMPLEXITY_STATES: int = 10_000
DENSE_BRANCHING: float = 50.0

# Assumed throughput for turning operation counts into time estimates.
OPERATIONS_PER_SECOND: float = 1_000_000.0

SLOW_TRAINING_MS: float = 1000.0
MEDIUM_TRAINING_MS: float = 100.0

MAX_RECOMMENDED_ORDER: int = 5

# Weights of the order recommendation score.
COST_WEIGHT: float = 0.3
MEMORY_WEIGHT: float = 0.3
COVERAGE_WEIGHT: float = 0.4

# Fraction of the total token count treated as the useful number of contexts.
COVERAGE_DATA_RATIO: float = 0.1

BIG_O_TRAINING = "O(n * m * k + s * v)"


@dataclasses.dataclass
class ComplexityMetrics:

	"""
	Attributes:
		operations: Modelled operation count for training.
		big_o: Asymptotic cost expression.
		estimated_time_ms: ``operations`` at the assumed throughput.
		actual_time_ms: Measured wall time of a real training run.
		memory_bytes: Peak traced allocation during that run.
		efficiency: ``"low"``, ``"medium"`` or ``"high"``.
	"""

	operations: int
	big_o: str
	estimated_time_ms: float
	actual_time_ms: float
	memory_bytes: int
	efficiency: str


@dataclasses.dataclass
class MemoryBreakdown:

	states: int
	transitions: int
	metadata: int


@dataclasses.dataclass
class MemoryUsage:

	states_count: int
	transitions_count: int
	bytes_estimate: int
	feasible: bool
	breakdown: MemoryBreakdown


@dataclasses.dataclass
class BottleneckMetrics:

	state_count: int
	average_transitions_per_state: float
	memory_bytes: int


@dataclasses.dataclass
class BottleneckReport:

	bottleneck: str
	severity: str
	recommendation: str
	metrics: BottleneckMetrics


@dataclasses.dataclass
class OrderRecommendation:

	order: int
	reasoning: str
	tradeoffs: str
	score: float
	memory_impact: str


@dataclasses.dataclass
class MemoryProfile:

	"""Traced memory in bytes around one call."""

	before: int
	after: int
	delta: int
	peak: int


def _vocabulary_size (sequences: typing.Sequence[typing.Sequence[str]]) -> int:

	return len({token for sequence in sequences for token in sequence})


def _observed_state_count (sequences: typing.Sequence[typing.Sequence[str]], order: int) -> int:

	contexts = set()

	for sequence in sequences:
		for i in range(len(sequence) - order):
			contexts.add(tuple(sequence[i:i + order]))

	return len(contexts)


class ComplexityAnalyzer:

	"""
	Estimates the computational and memory cost of chain configurations.
	"""

	def count_training_operations (self, sequences: typing.Sequence[typing.Sequence[str]], order: int) -> int:

		"""
		Modelled operation count: each counted window costs ``order + 2``
		(key building, state lookup, count update), and normalization touches
		every observed state once per distinct token.
		"""

		operations = 0

		for sequence in sequences:
			windows = max(0, len(sequence) - order)
			operations += windows * (order + 2)

		operations += _observed_state_count(sequences, order) * _vocabulary_size(sequences)

		return operations


	def estimate_time_ms (self, operations: int) -> float:

		return operations / OPERATIONS_PER_SECOND * 1000.0


	def measure_training_complexity (self, sequences: typing.Sequence[typing.Sequence[str]], order: int) -> ComplexityMetrics:

		"""
		Model the training cost and time a real training run on a scratch chain.
		"""

		operations = self.count_training_operations(sequences, order)
		scratch = markovscope.markov_chain.MarkovChain(markovscope.config.ChainConfig(order=order))

		profile, actual_time_ms = self._timed_profile(lambda: scratch.train(sequences))

		if actual_time_ms > SLOW_TRAINING_MS or profile.peak > HIGH_MEMORY_BYTES:
			efficiency = "low"
		elif actual_time_ms > MEDIUM_TRAINING_MS or profile.peak > MEDIUM_MEMORY_BYTES:
			efficiency = "medium"
		else:
			efficiency = "high"

		return ComplexityMetrics(
			operations = operations,
			big_o = BIG_O_TRAINING,
			estimated_time_ms = self.estimate_time_ms(operations),
			actual_time_ms = actual_time_ms,
			memory_bytes = profile.peak,
			efficiency = efficiency,
		)


	def estimate_memory_usage (self, vocabulary_size: int, order: int) -> MemoryUsage:

		"""
		Worst-case memory for a vocabulary and order.

		States are ``min(v ** k, 1_000_000)`` with at most 20 transitions each.
		Configurations above the 100MB budget are flagged as infeasible.
		"""

		# Cap before exponentiating fully so huge vocabularies stay cheap to evaluate.
		max_states = 1
		for _ in range(order):
			max_states = min(max_states * vocabulary_size, MAX_ESTIMATED_STATES)

		branching = min(vocabulary_size, MAX_ESTIMATED_BRANCHING)
		transitions = max_states * branching

		states_bytes = max_states * BYTES_PER_STATE
		transitions_bytes = transitions * BYTES_PER_TRANSITION
		total = states_bytes + transitions_bytes + CHAIN_METADATA_BYTES

		return MemoryUsage(
			states_count = max_states,
			transitions_count = transitions,
			bytes_estimate = total,
			feasible = total < MEMORY_BUDGET_BYTES,
			breakdown = MemoryBreakdown(
				states = states_bytes,
				transitions = transitions_bytes,
				metadata = CHAIN_METADATA_BYTES,
			),
		)


	def estimate_chain_memory (self, chain: markovscope.markov_chain.MarkovChain) -> int:

		"""Estimated bytes held by a trained chain."""

		states = chain.get_states()
		transitions = sum(len(state.transitions) for state in states)

		return len(states) * BYTES_PER_STATE + transitions * BYTES_PER_TRANSITION


	def analyze_bottlenecks (self, chain: markovscope.markov_chain.MarkovChain) -> BottleneckReport:

		"""
		Name the dominant scaling problem of a trained chain, if any.
		"""

		states = chain.get_states()
		state_count = len(states)
		transitions = sum(len(state.transitions) for state in states)
		average = transitions / state_count if state_count else 0.0
		memory = self.estimate_chain_memory(chain)

		if state_count > STATE_EXPLOSION_STATES:
			bottleneck, severity, recommendation = "state explosion", "high", "Reduce order or vocabulary size"

		elif average > DENSE_BRANCHING:
			bottleneck, severity, recommendation = "transition density", "medium", "Prune low-probability transitions"

		elif memory > HIGH_MEMORY_BYTES:
			bottleneck, severity, recommendation = "memory pressure", "high", "Use a sparser transition representation"

		elif state_count > MODERATE_COMPLEXITY_STATES:
			bottleneck, severity, recommendation = "moderate complexity", "medium", "Consider optimization for better performance"

		else:
			bottleneck, severity, recommendation = "none", "low", "No optimization needed"

		if bottleneck != "none":
			logger.info(f"Bottleneck detected: {bottleneck} ({severity}) with {state_count} states")

		return BottleneckReport(
			bottleneck = bottleneck,
			severity = severity,
			recommendation = recommendation,
			metrics = BottleneckMetrics(
				state_count = state_count,
				average_transitions_per_state = average,
				memory_bytes = memory,
			),
		)


	def recommend_optimal_order (self, sequences: typing.Sequence[typing.Sequence[str]]) -> OrderRecommendation:

		"""
		Score orders 1 to 5 and return the best one.

		``score = 0.3 * cost + 0.3 * memory + 0.4 * coverage`` where cost is
		``1 / (1 + estimated_ms)``, memory is 1 when feasible and 0.1 otherwise,
		and coverage is ``min(1, v ** k / (0.1 * total_tokens))``, the share of
		the data's useful context count the order can express.  Ties keep the
		lower order.
		"""

		vocabulary_size = _vocabulary_size(sequences)
		total_tokens = sum(len(sequence) for sequence in sequences)
		average_length = total_tokens / len(sequences) if sequences else 0.0

		best: typing.Optional[OrderRecommendation] = None

		for order in range(1, MAX_RECOMMENDED_ORDER + 1):

			memory = self.estimate_memory_usage(vocabulary_size, order)
			estimated_ms = self.estimate_time_ms(self.count_training_operations(sequences, order))

			cost_score = 1.0 / (1.0 + estimated_ms)
			memory_score = 1.0 if memory.feasible else 0.1

			useful_contexts = total_tokens * COVERAGE_DATA_RATIO
			coverage_score = min(1.0, memory.states_count / useful_contexts) if useful_contexts > 0 else 0.0

			score = COST_WEIGHT * cost_score + MEMORY_WEIGHT * memory_score + COVERAGE_WEIGHT * coverage_score

			if memory.bytes_estimate > HIGH_MEMORY_BYTES:
				memory_impact = "high"
			elif memory.bytes_estimate > MEDIUM_MEMORY_BYTES:
				memory_impact = "medium"
			else:
				memory_impact = "low"

			candidate = OrderRecommendation(
				order = order,
				reasoning = self._order_reasoning(order, vocabulary_size, average_length, memory.feasible),
				tradeoffs = self._order_tradeoffs(order, estimated_ms, memory),
				score = score,
				memory_impact = memory_impact,
			)

			if best is None or candidate.score > best.score:
				best = candidate

		return best


	def profile_memory_usage (self, operation: typing.Callable[[], typing.Any]) -> MemoryProfile:

		"""
		Trace Python allocations while ``operation`` runs.

		When the caller is already tracing, its peak is not reset, so
		``peak`` covers the caller's whole tracing window rather than just
		this call.
		"""

		profile, _ = self._timed_profile(operation)

		return profile


	def _timed_profile (self, operation: typing.Callable[[], typing.Any]) -> typing.Tuple[MemoryProfile, float]:

		already_tracing = tracemalloc.is_tracing()

		if not already_tracing:
			tracemalloc.start()

		try:
			before, _ = tracemalloc.get_traced_memory()

			start = time.perf_counter()
			operation()
			elapsed_ms = (time.perf_counter() - start) * 1000.0

			after, peak = tracemalloc.get_traced_memory()

		finally:
			if not already_tracing:
				tracemalloc.stop()

		profile = MemoryProfile(
			before = before,
			after = after,
			delta = max(0, after - before),
			peak = max(peak, before),
		)

		return profile, elapsed_ms


	def _order_reasoning (self, order: int, vocabulary_size: int, average_length: float, feasible: bool) -> str:

		if not feasible:
			return f"Order {order} requires too much memory ({vocabulary_size}^{order} states)"

		if average_length and order >= average_length:
			return f"Order {order} is as long as the average sequence ({average_length:.1f} tokens), so few transitions will be learned"

		if order == 1:
			return "Simple patterns, fast training, but limited context"

		if order == 2:
			return "Good balance of context and performance, recommended for most cases"

		if order == 3:
			return "Rich context, good for complex patterns, moderate memory usage"

		return "Very rich context, high memory usage, only for large datasets"


	def _order_tradeoffs (self, order: int, estimated_ms: float, memory: MemoryUsage) -> str:

		tradeoffs: typing.List[str] = []

		if estimated_ms > SLOW_TRAINING_MS:
			tradeoffs.append("Slow training")

		if memory.bytes_estimate > MEDIUM_MEMORY_BYTES:
			tradeoffs.append("High memory usage")

		if order > 3:
			tradeoffs.append("May overfit with small datasets")

		if order < 2:
			tradeoffs.append("Limited context")

		return ", ".join(tradeoffs) if tradeoffs else "Good balance of features"
