"""Determinism, cycle and state-space analysis of a chain viewed as an automaton.

Each state is a node; each learned transition leads to the state whose context
is the current one shifted by the emitted token.  A state counts as
deterministic when its entropy is below :data:`DETERMINISM_ENTROPY_THRESHOLD`
or one continuation has probability 1.
"""

import dataclasses
import math
import typing

import markovscope.markov_chain
import markovscope.sampling
import markovscope.state_store


# Tunable: entropy (bits) below which a state is treated as deterministic.
DETERMINISM_ENTROPY_THRESHOLD: float = 0.1

MIN_TRAINING_SEQUENCES: int = 10
RECOMMENDED_TRAINING_SEQUENCES: int = 50
DIFFICULT_SEQUENCE_COUNT: int = 1000

STATE_EXPLOSION_MEDIUM: int = 100_000
STATE_EXPLOSION_LOW: int = 1_000_000
BYTES_PER_STATE_ESTIMATE: int = 100


@dataclasses.dataclass
class StateInfo:

	key: str
	is_deterministic: bool
	entropy: float
	transition_count: int
	most_likely_transition: typing.Optional[str]
	probability: float


@dataclasses.dataclass
class DeterminismMetrics:

	"""
	Attributes:
		determinism_index: 0 = fully probabilistic, 1 = fully deterministic.
		state_complexity: Average number of continuations per state.
	"""

	determinism_index: float
	deterministic_states: int
	probabilistic_states: int
	total_states: int
	average_entropy: float
	state_complexity: float


@dataclasses.dataclass
class Cycle:

	"""A loop found by always following the most probable transition."""

	states: typing.List[str]
	length: int
	probability: float


@dataclasses.dataclass
class TrainingDataRequirement:

	minimum_sequences: int
	recommended_sequences: int
	estimated_states: int
	vocabulary_size: int
	feasibility: str
	reasoning: str


@dataclasses.dataclass
class OrderExplosion:

	order: int
	max_states: int
	memory_estimate: int
	feasibility: str


@dataclasses.dataclass
class DiagramNode:

	id: str
	label: str
	type: str


@dataclasses.dataclass
class DiagramEdge:

	source: str
	target: str
	token: str
	label: str
	probability: float
	weight: int


@dataclasses.dataclass
class StateDiagram:

	"""Node and edge lists for external visualization."""

	nodes: typing.List[DiagramNode]
	edges: typing.List[DiagramEdge]
	total_states: int
	total_transitions: int
	determinism_index: float


	def to_dot (self, name: str = "markov_chain") -> str:

		"""
		Render the diagram in Graphviz DOT syntax. Deterministic states are drawn
		as double circles.
		"""

		lines = [f"digraph {_dot_quote(name)} {{", "\trankdir=LR;"]

		for node in self.nodes:
			shape = "doublecircle" if node.type == "deterministic" else "circle"
			lines.append(f"\t{_dot_quote(node.id)} [label={_dot_quote(node.label)}, shape={shape}];")

		for edge in self.edges:
			lines.append(f"\t{_dot_quote(edge.source)} -> {_dot_quote(edge.target)} [label={_dot_quote(edge.label)}, penwidth={edge.weight}];")

		lines.append("}")

		return "\n".join(lines)


def _dot_quote (text: str) -> str:

	escaped = text.replace("\\", "\\\\").replace("\"", "\\\"").replace("\n", "\\n")

	return f"\"{escaped}\""


def next_context (context: typing.Sequence[str], token: str, order: int) -> markovscope.state_store.Context:

	"""
	The context reached from ``context`` after emitting ``token``.
	"""

	return (tuple(context) + (token,))[-order:]


class AutomataAnalyzer:

	"""
	Read-only structural analysis of a chain's transition graph.
	"""

	def state_entropy (self, state: markovscope.state_store.ChainState) -> float:

		return markovscope.sampling.shannon_entropy(state.transitions)


	def is_deterministic (self, state: markovscope.state_store.ChainState) -> bool:

		"""
		True when the state's entropy is under the threshold or one
		continuation is certain.
		"""

		if self.state_entropy(state) < DETERMINISM_ENTROPY_THRESHOLD:
			return True

		_, probability = state.max_transition()

		return probability == 1.0


	def determinism_index (self, chain: markovscope.markov_chain.MarkovChain) -> float:

		"""
		``(fraction_deterministic + (1 - average_entropy)) / 2``, clamped to 0-1.
		An empty chain scores 0.
		"""

		states = chain.get_states()

		if not states:
			return 0.0

		deterministic = sum(1 for state in states if self.is_deterministic(state))
		average_entropy = sum(self.state_entropy(state) for state in states) / len(states)

		index = (deterministic / len(states) + (1.0 - average_entropy)) / 2

		return max(0.0, min(1.0, index))


	def find_non_deterministic_states (self, chain: markovscope.markov_chain.MarkovChain) -> typing.List[StateInfo]:

		"""
		Return the probabilistic states, highest entropy first.
		"""

		infos: typing.List[StateInfo] = []

		for state in chain.get_states():

			if self.is_deterministic(state):
				continue

			token, probability = state.max_transition()

			infos.append(StateInfo(
				key = state.key,
				is_deterministic = False,
				entropy = self.state_entropy(state),
				transition_count = len(state.transitions),
				most_likely_transition = token,
				probability = probability,
			))

		infos.sort(key=lambda info: info.entropy, reverse=True)

		return infos


	def get_determinism_metrics (self, chain: markovscope.markov_chain.MarkovChain) -> DeterminismMetrics:

		states = chain.get_states()

		deterministic = sum(1 for state in states if self.is_deterministic(state))
		total_entropy = sum(self.state_entropy(state) for state in states)
		total_transitions = sum(len(state.transitions) for state in states)

		return DeterminismMetrics(
			determinism_index = self.determinism_index(chain),
			deterministic_states = deterministic,
			probabilistic_states = len(states) - deterministic,
			total_states = len(states),
			average_entropy = total_entropy / len(states) if states else 0.0,
			state_complexity = total_transitions / len(states) if states else 0.0,
		)


	def find_cycles (self, chain: markovscope.markov_chain.MarkovChain) -> typing.List[Cycle]:

		"""
		Greedily follow the most probable transition from every unvisited state.

		A walk ends when it revisits a state on its own path (a cycle, reported
		with the probability product of the whole walk), reaches a state
		already explored by an earlier walk, or hits a dead end.  Only cycles
		of two or more states are returned.
		"""

		order = chain.get_config().order
		visited: typing.Set[str] = set()
		cycles: typing.List[Cycle] = []

		for state in chain.get_states():

			if state.key in visited:
				continue

			cycle = self._walk_from(chain, state, order, visited)

			if cycle is not None and cycle.length > 1:
				cycles.append(cycle)

		return cycles


	def _walk_from (
		self,
		chain: markovscope.markov_chain.MarkovChain,
		start: markovscope.state_store.ChainState,
		order: int,
		visited: typing.Set[str]
	) -> typing.Optional[Cycle]:

		path: typing.List[str] = []
		on_path: typing.Set[str] = set()
		probability = 1.0
		current: typing.Optional[markovscope.state_store.ChainState] = start

		while current is not None and current.key not in on_path:

			if current.key in visited:
				return None

			path.append(current.key)
			on_path.add(current.key)
			visited.add(current.key)

			token, token_probability = current.max_transition()

			if token is None:
				return None

			probability *= token_probability
			current = chain.get_state(next_context(current.context, token, order))

		if current is None:
			return None

		cycle_states = path[path.index(current.key):]

		return Cycle(states=cycle_states, length=len(cycle_states), probability=probability)


	# --- Estimators ---

	def estimate_vocabulary_size (self, target_states: int, order: int) -> int:

		"""
		Vocabulary needed for ``target_states`` contexts at a given order:
		``ceil(target_states ** (1 / order))``.
		"""

		if target_states <= 0:
			return 0

		if order < 1:
			raise ValueError("Order must be at least 1")

		# Round first so exact powers do not overshoot through float error.
		return math.ceil(round(target_states ** (1.0 / order), 9))


	def estimate_training_data_requirement (self, target_states: int, order: int) -> TrainingDataRequirement:

		"""
		Heuristic sequence counts for learning about ``target_states`` states.

		``minimum = max(10, ceil(target / 2))`` and
		``recommended = max(50, target * 2)``.  These are rules of thumb, not bounds.
		"""

		vocabulary_size = self.estimate_vocabulary_size(target_states, order)
		max_states = vocabulary_size ** order
		minimum = max(MIN_TRAINING_SEQUENCES, math.ceil(target_states / 2))
		recommended = max(RECOMMENDED_TRAINING_SEQUENCES, target_states * 2)
		estimated_states = min(target_states, max_states)

		if target_states > max_states:
			feasibility = "low"
			reasoning = f"Target states ({target_states}) exceeds maximum possible ({vocabulary_size}^{order} = {max_states})"

		elif recommended > DIFFICULT_SEQUENCE_COUNT:
			feasibility = "medium"
			reasoning = f"Requires {recommended} sequences, which may be difficult to obtain"

		else:
			feasibility = "high"
			reasoning = f"Feasible with {recommended} sequences"

		return TrainingDataRequirement(
			minimum_sequences = minimum,
			recommended_sequences = recommended,
			estimated_states = estimated_states,
			vocabulary_size = vocabulary_size,
			feasibility = feasibility,
			reasoning = reasoning,
		)


	def analyze_state_explosion (self, vocabulary_size: int, max_order: int = 5) -> typing.List[OrderExplosion]:

		"""
		Worst-case state counts for orders 1 to ``max_order``.
		"""

		results: typing.List[OrderExplosion] = []

		for order in range(1, max_order + 1):

			max_states = vocabulary_size ** order

			if max_states > STATE_EXPLOSION_LOW:
				feasibility = "low"
			elif max_states > STATE_EXPLOSION_MEDIUM:
				feasibility = "medium"
			else:
				feasibility = "high"

			results.append(OrderExplosion(
				order = order,
				max_states = max_states,
				memory_estimate = max_states * BYTES_PER_STATE_ESTIMATE,
				feasibility = feasibility,
			))

		return results


	# --- Export ---

	def export_state_diagram (self, chain: markovscope.markov_chain.MarkovChain) -> StateDiagram:

		"""
		Build node and edge lists with per-state determinism and per-edge
		probability.  Edges point at the context key reached after the token.
		"""

		order = chain.get_config().order
		states = chain.get_states()
		nodes: typing.List[DiagramNode] = []
		edges: typing.List[DiagramEdge] = []

		for state in states:

			entropy = self.state_entropy(state)

			nodes.append(DiagramNode(
				id = state.key,
				label = f"{state.key}\nH={entropy:.2f}",
				type = "deterministic" if self.is_deterministic(state) else "probabilistic",
			))

			for token, probability in state.transitions.items():
				edges.append(DiagramEdge(
					source = state.key,
					target = markovscope.state_store.context_key(next_context(state.context, token, order)),
					token = token,
					label = f"{probability * 100:.1f}%",
					probability = probability,
					weight = max(1, round(probability * 10)),
				))

		return StateDiagram(
			nodes = nodes,
			edges = edges,
			total_states = len(states),
			total_transitions = len(edges),
			determinism_index = self.determinism_index(chain),
		)
