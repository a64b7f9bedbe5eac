"""The fixed-order Markov chain: training, generation, and read-only accessors.

:class:`MarkovChain` wires a :class:`~markovscope.trainer.Trainer` and a
:class:`~markovscope.generator.Generator` around one shared
:class:`~markovscope.state_store.StateStore`.  Analysers only use the
``get_*`` accessors and never reach into the store directly.

The chain is not thread-safe; concurrent training calls on one instance need
external locking.
"""

import collections
import dataclasses
import logging
import random
import typing

import markovscope.config
import markovscope.generator
import markovscope.sampling
import markovscope.state_store
import markovscope.trainer


logger = logging.getLogger(__name__)


NoTrainingDataError = markovscope.generator.NoTrainingDataError

# Thresholds used by the chain's own quality reports.
NEAR_CERTAIN_PROBABILITY: float = 0.95
LOW_ENTROPY_THRESHOLD: float = 0.5
HIGH_REPETITION_PROBABILITY: float = 0.8
SAMPLE_STATE_LIMIT: int = 5


@dataclasses.dataclass
class ChainStats:

	"""Size summary of a trained chain."""

	total_states: int
	total_transitions: int
	average_transitions_per_state: float


@dataclasses.dataclass
class TransitionAnalysis:

	"""
	Shape of the learned transitions.

	Attributes:
		deterministic_states: States with one continuation, or where every
			continuation is above 0.95 probability.
		probabilistic_states: All remaining states.
		transition_distribution: Number of states per branching factor.
		sample_transitions: The first few states' distributions, in store order.
	"""

	deterministic_states: int
	probabilistic_states: int
	transition_distribution: typing.Dict[int, int]
	sample_transitions: typing.List[typing.Tuple[str, typing.List[typing.Tuple[str, float]]]]


@dataclasses.dataclass
class LearningStep:

	"""One counted observation, replayed from the training data."""

	step: int
	context: str
	next_token: str
	current_count: int
	new_count: int

	@property
	def description (self) -> str:
		return f"Learning transition from context {self.context!r} to {self.next_token!r}"


@dataclasses.dataclass
class LearnedTransition:

	token: str
	count: int
	probability: float


@dataclasses.dataclass
class LearningBreakdown:

	"""A replay of training, observation by observation, and the resulting states."""

	total_sequences: int
	total_transitions: int
	learning_steps: typing.List[LearningStep]
	final_states: typing.List[typing.Tuple[str, typing.List[LearnedTransition]]]


@dataclasses.dataclass
class TrainingQuality:

	"""Heuristic assessment of whether the training data is rich enough."""

	total_states: int
	low_entropy_states: int
	high_repetition_states: int
	average_transitions_per_state: float
	recommendations: typing.List[str]


class MarkovChain:

	"""
	A fixed-order Markov chain learned from token sequences.
	"""

	def __init__ (
		self,
		config: typing.Optional[markovscope.config.ChainConfig] = None,
		rng: typing.Optional[random.Random] = None
	) -> None:

		"""
		Initialize an untrained chain.

		Parameters:
			config: Chain settings; defaults to ``ChainConfig()``.
			rng: Optional seeded ``random.Random``. It is the only source of
				randomness for generation and random start windows.
		"""

		self.config = config or markovscope.config.ChainConfig()
		self.rng = rng or random.Random()

		self._store = markovscope.state_store.StateStore()
		self._training_data: typing.List[typing.List[str]] = []

		self._trainer = markovscope.trainer.Trainer(self.config, self._store)
		self._generator = markovscope.generator.Generator(self.config, self._store, self.get_training_data, self.rng)


	# --- Training ---

	def train (self, sequences: typing.Iterable[typing.Sequence[str]]) -> None:

		"""
		Learn the chain from scratch, replacing any previous states and data.
		"""

		self._training_data = [list(sequence) for sequence in sequences]
		self._store.clear()

		observations = self._trainer.train(self._training_data)

		logger.info(f"Trained on {len(self._training_data)} sequences: {observations} transitions, {len(self._store)} states")


	def train_append (self, sequences: typing.Iterable[typing.Sequence[str]]) -> None:

		"""
		Merge more sequences into the existing counts and renormalize.
		"""

		new_sequences = [list(sequence) for sequence in sequences]
		self._training_data.extend(new_sequences)

		observations = self._trainer.train(new_sequences)

		logger.info(f"Appended {len(new_sequences)} sequences: {observations} transitions, {len(self._store)} states")


	def reset (self) -> None:

		"""
		Clear all states and retained training data.
		"""

		self._store.clear()
		self._training_data = []


	# --- Generation ---

	def generate (self, length: typing.Optional[int] = None, start_context: typing.Optional[typing.Sequence[str]] = None) -> typing.List[str]:

		"""
		Generate a sequence of up to ``length`` tokens (default ``config.max_length``).

		Raises:
			NoTrainingDataError: If the chain holds no training data.
			ValueError: If ``length`` is not positive.
		"""

		return self._generator.generate(self._length(length), start_context)


	def generate_with_steps (
		self,
		length: typing.Optional[int] = None,
		start_context: typing.Optional[typing.Sequence[str]] = None
	) -> markovscope.generator.GenerationResult:

		"""
		Generate a sequence and the per-step record of how each token was chosen.
		"""

		return self._generator.generate_with_steps(self._length(length), start_context)


	def generate_with_repetition_prevention (
		self,
		length: typing.Optional[int] = None,
		start_context: typing.Optional[typing.Sequence[str]] = None,
		max_repetition: int = markovscope.generator.DEFAULT_MAX_REPETITION,
		restart_interval: typing.Optional[int] = None,
		long_term_prevention: bool = True
	) -> typing.List[str]:

		"""
		Generate a sequence while avoiding token runs and short repeating patterns.
		See :meth:`~markovscope.generator.Generator.generate_with_repetition_prevention`.
		"""

		return self._generator.generate_with_repetition_prevention(
			self._length(length),
			start_context = start_context,
			max_repetition = max_repetition,
			restart_interval = restart_interval,
			long_term_prevention = long_term_prevention,
		)


	def random_start_context (self) -> typing.List[str]:

		"""
		Return a random ``order``-length window from the retained training data.
		"""

		return list(self._generator.random_start_context())


	def _length (self, length: typing.Optional[int]) -> int:

		return self.config.max_length if length is None else length


	# --- Read-only accessors ---

	def get_config (self) -> markovscope.config.ChainConfig:

		return self.config


	def get_states (self) -> typing.List[markovscope.state_store.ChainState]:

		"""
		Return all states in their fixed iteration order. Callers must not mutate them.
		"""

		return self._store.states()


	def get_state (self, key: typing.Union[str, typing.Sequence[str]]) -> typing.Optional[markovscope.state_store.ChainState]:

		"""
		Look up a state by context key (``"A|B"``) or by a sequence of tokens.
		"""

		if not isinstance(key, str):
			key = markovscope.state_store.context_key(key)

		return self._store.get(key)


	def get_training_data (self) -> typing.List[typing.List[str]]:

		return self._training_data


	# --- Reports ---

	def get_stats (self) -> ChainStats:

		"""
		Count states and transitions.
		"""

		states = self._store.states()
		total_transitions = sum(len(state.transitions) for state in states)

		return ChainStats(
			total_states = len(states),
			total_transitions = total_transitions,
			average_transitions_per_state = total_transitions / len(states) if states else 0.0,
		)


	def get_transition_analysis (self) -> TransitionAnalysis:

		"""
		Classify states and tally how many continuations each one has.
		"""

		deterministic = 0
		probabilistic = 0
		distribution: typing.Dict[int, int] = collections.defaultdict(int)
		samples: typing.List[typing.Tuple[str, typing.List[typing.Tuple[str, float]]]] = []

		for state in self._store:

			transitions = list(state.transitions.items())

			if len(transitions) == 1 or all(probability > NEAR_CERTAIN_PROBABILITY for _, probability in transitions):
				deterministic += 1

			else:
				probabilistic += 1

			distribution[len(transitions)] += 1

			if len(samples) < SAMPLE_STATE_LIMIT:
				samples.append((state.key, transitions))

		return TransitionAnalysis(
			deterministic_states = deterministic,
			probabilistic_states = probabilistic,
			transition_distribution = dict(distribution),
			sample_transitions = samples,
		)


	def get_learning_breakdown (self) -> LearningBreakdown:

		"""
		Replay training over the retained data, showing each count as it grows.
		"""

		order = self.config.order
		running: typing.Dict[typing.Tuple[str, str], int] = collections.defaultdict(int)
		steps: typing.List[LearningStep] = []

		for sequence in self._training_data:
			for i in range(len(sequence) - order):

				key = markovscope.state_store.context_key(sequence[i:i + order])
				next_token = sequence[i + order]
				current = running[(key, next_token)]
				running[(key, next_token)] = current + 1

				steps.append(LearningStep(
					step = len(steps) + 1,
					context = key,
					next_token = next_token,
					current_count = current,
					new_count = current + 1,
				))

		final_states = [
			(state.key, [
				LearnedTransition(token=token, count=state.counts.get(token, 0), probability=probability)
				for token, probability in state.transitions.items()
			])
			for state in self._store
		]

		return LearningBreakdown(
			total_sequences = len(self._training_data),
			total_transitions = len(steps),
			learning_steps = steps,
			final_states = final_states,
		)


	def analyze_training_quality (self) -> TrainingQuality:

		"""
		Flag signs of thin or repetitive training data and suggest remedies.
		"""

		states = self._store.states()
		low_entropy = 0
		high_repetition = 0
		total_transitions = 0

		for state in states:

			total_transitions += len(state.transitions)

			if markovscope.sampling.shannon_entropy(state.transitions) < LOW_ENTROPY_THRESHOLD:
				low_entropy += 1

			if state.transitions and max(state.transitions.values()) > HIGH_REPETITION_PROBABILITY:
				high_repetition += 1

		average = total_transitions / len(states) if states else 0.0
		recommendations: typing.List[str] = []

		if low_entropy > len(states) * 0.3:
			recommendations.append("Many states have low entropy. Consider adding more diverse training data.")

		if high_repetition > len(states) * 0.2:
			recommendations.append("Many states have highly repetitive patterns. Consider reducing order or adding more varied sequences.")

		if average < 2:
			recommendations.append("States have very few transitions. Consider reducing the order parameter or adding more training data.")

		if len(states) < 10:
			recommendations.append("Very few states learned. Consider adding more training sequences or reducing the order parameter.")

		return TrainingQuality(
			total_states = len(states),
			low_entropy_states = low_entropy,
			high_repetition_states = high_repetition,
			average_transitions_per_state = average,
			recommendations = recommendations,
		)
