"""Sequence generation from a trained state store.

The :class:`Generator` never mutates the store.  Every random draw goes through
the single ``random.Random`` it was given, so a seeded source reproduces the
same output, step records included.
"""

import collections
import dataclasses
import logging
import random
import typing

import markovscope.config
import markovscope.sampling
import markovscope.state_store


logger = logging.getLogger(__name__)


MAX_REPETITION_ATTEMPTS: int = 15
DEFAULT_MAX_REPETITION: int = 3
MAX_RESTART_INTERVAL: int = 32
RESTART_TAIL: int = 4

# Pattern lengths checked by long-term repetition avoidance, and the history
# needed before those checks start.
LONG_TERM_PATTERN_LENGTHS: typing.Tuple[int, ...] = (2, 3, 4)
LONG_TERM_MIN_HISTORY: int = 8


class NoTrainingDataError (RuntimeError):

	"""Raised when generation needs retained training data and there is none."""


@dataclasses.dataclass
class GenerationStep:

	"""
	One sampling decision, recorded for replay and inspection.

	Attributes:
		step: Zero-based position in the generated sequence.
		context: Context key that was looked up.
		candidates: The distribution sampled from, after temperature, in order.
		token: The chosen token.
		roll: The random draw in [0, 1) that selected it.
		fallback: True when the context had no transitions and a fallback
			state supplied the distribution.
	"""

	step: int
	context: str
	candidates: typing.List[typing.Tuple[str, float]]
	token: str
	roll: float
	fallback: bool = False


@dataclasses.dataclass
class GenerationResult:

	"""A generated sequence together with the step-by-step record that produced it."""

	sequence: typing.List[str]
	steps: typing.List[GenerationStep] = dataclasses.field(default_factory=list)


class Generator:

	"""
	Samples token sequences from a :class:`~markovscope.state_store.StateStore`.
	"""

	def __init__ (
		self,
		config: markovscope.config.ChainConfig,
		store: markovscope.state_store.StateStore,
		training_data: typing.Callable[[], typing.Sequence[typing.Sequence[str]]],
		rng: typing.Optional[random.Random] = None
	) -> None:

		"""
		Initialize the generator.

		Parameters:
			config: The owning chain's configuration.
			store: The trained states to read from.
			training_data: Callable returning the retained training sequences,
				used to pick random start windows.
			rng: Optional seeded ``random.Random`` for deterministic output.
		"""

		self.config = config
		self.store = store
		self._training_data = training_data
		self.rng = rng or random.Random()


	def random_start_context (self) -> markovscope.state_store.Context:

		"""
		Pick an ``order``-length window from a randomly chosen training sequence.
		"""

		training = self._training_data()

		if not training:
			raise NoTrainingDataError("No training data available")

		order = self.config.order
		sequence = training[self.rng.randrange(len(training))]
		start = self.rng.randrange(max(1, len(sequence) - order))

		return tuple(sequence[start:start + order])


	def generate (self, length: int, start_context: typing.Optional[typing.Sequence[str]] = None) -> typing.List[str]:

		"""
		Generate up to ``length`` tokens. The result is shorter only when the
		chain has no transitions left to offer.
		"""

		return self.generate_with_steps(length, start_context).sequence


	def generate_with_steps (self, length: int, start_context: typing.Optional[typing.Sequence[str]] = None) -> GenerationResult:

		"""
		Generate tokens and record the context, candidates, choice and draw of every step.
		"""

		context = self._initial_context(length, start_context)
		result = GenerationResult(sequence=[])

		for step in range(length):

			resolved = self._resolve_distribution(context)

			if resolved is None:
				logger.debug(f"No transitions available at step {step}, stopping early")
				break

			distribution, fallback = resolved
			token, roll = markovscope.sampling.choose_weighted(distribution, self.rng)

			result.steps.append(GenerationStep(
				step = step,
				context = markovscope.state_store.context_key(context),
				candidates = list(distribution.items()),
				token = token,
				roll = roll,
				fallback = fallback,
			))
			result.sequence.append(token)

			context = self._advance(context, token)

		return result


	def generate_with_repetition_prevention (
		self,
		length: int,
		start_context: typing.Optional[typing.Sequence[str]] = None,
		max_repetition: int = DEFAULT_MAX_REPETITION,
		restart_interval: typing.Optional[int] = None,
		long_term_prevention: bool = True
	) -> typing.List[str]:

		"""
		Generate tokens while steering away from loops.

		Parameters:
			length: Number of tokens to produce.
			start_context: Optional starting window; random when omitted.
			max_repetition: Longest allowed run of one identical token.
			restart_interval: Reseed the context from a random training window
				every this many steps. Defaults to ``min(32, length // 4)``;
				0 disables restarts. No restart happens in the final 4 steps.
			long_term_prevention: Also reject candidates that recreate a 2-4
				token pattern seen within the last ``2 * k`` tokens.

		A candidate is redrawn up to 15 times. When every draw repeats, the most
		probable candidate that does not repeat is used, and failing that the
		last draw.
		"""

		if max_repetition < 1:
			raise ValueError("Max repetition must be at least 1")

		context = self._initial_context(length, start_context)

		if restart_interval is None:
			restart_interval = min(MAX_RESTART_INTERVAL, length // 4)

		sequence: typing.List[str] = []
		recent: typing.Deque[str] = collections.deque(maxlen=max_repetition * 2)

		for i in range(length):

			if restart_interval > 0 and i > 0 and i % restart_interval == 0 and i < length - RESTART_TAIL:
				context = self.random_start_context()
				logger.debug(f"Restarting context at position {i} to prevent repetition")

			resolved = self._resolve_distribution(context)

			if resolved is None:
				break

			distribution, _ = resolved

			def rejected (candidate: str) -> bool:
				if self._would_repeat_token(candidate, recent, max_repetition):
					return True
				return long_term_prevention and self._would_repeat_pattern(candidate, sequence)

			selected: typing.Optional[str] = None
			candidate = ""

			for _ in range(MAX_REPETITION_ATTEMPTS):
				candidate, _roll = markovscope.sampling.choose_weighted(distribution, self.rng)
				if not rejected(candidate):
					selected = candidate
					break

			if selected is None:
				selected = self._best_available(distribution, rejected)

			if selected is None:
				selected = candidate

			sequence.append(selected)
			recent.append(selected)
			context = self._advance(context, selected)

		return sequence


	def find_fallback_state (self, context: typing.Sequence[str]) -> typing.Optional[markovscope.state_store.ChainState]:

		"""
		Find a substitute state for a context with no learned transitions.

		Oldest tokens are dropped one at a time and the first state whose
		context ends with the remaining suffix wins.  When no suffix matches,
		the state with the highest entropy is used (the first one on ties).
		Returns ``None`` only when the chain has no transitions at all.
		"""

		context = tuple(context)

		for size in range(len(context) - 1, 0, -1):

			suffix = context[-size:]

			for state in self.store:
				if state.transitions and len(state.context) >= size and state.context[-size:] == suffix:
					return state

		best_state: typing.Optional[markovscope.state_store.ChainState] = None
		best_entropy = -1.0

		for state in self.store:

			if not state.transitions:
				continue

			entropy = markovscope.sampling.shannon_entropy(state.transitions)

			if entropy > best_entropy:
				best_entropy = entropy
				best_state = state

		return best_state


	def _initial_context (self, length: int, start_context: typing.Optional[typing.Sequence[str]]) -> markovscope.state_store.Context:

		"""
		Validate a generation request and return the context to start from.
		"""

		if length is None or length <= 0:
			raise ValueError("Length must be a positive number")

		if not self._training_data():
			raise NoTrainingDataError("No training data available")

		if start_context is not None:
			return tuple(start_context)

		return self.random_start_context()


	def _resolve_distribution (self, context: markovscope.state_store.Context) -> typing.Optional[typing.Tuple[markovscope.sampling.Distribution, bool]]:

		"""
		Return the temperature-adjusted distribution for a context and whether
		it came from a fallback state, or ``None`` when nothing is available.
		"""

		state = self.store.get(markovscope.state_store.context_key(context))
		fallback = False

		if state is None or not state.transitions:

			state = self.find_fallback_state(context)

			if state is None:
				return None

			logger.debug(f"Context {markovscope.state_store.context_key(context)!r} unseen, falling back to {state.key!r}")
			fallback = True

		distribution = markovscope.sampling.apply_temperature(state.transitions, self.config.temperature)

		return distribution, fallback


	def _advance (self, context: markovscope.state_store.Context, token: str) -> markovscope.state_store.Context:

		"""
		Slide the window: append the new token and keep the last ``order`` tokens.
		"""

		return (tuple(context) + (token,))[-self.config.order:]


	def _would_repeat_token (self, candidate: str, recent: typing.Sequence[str], max_repetition: int) -> bool:

		"""
		True if the last ``max_repetition`` tokens all equal the candidate.
		"""

		if len(recent) < max_repetition:
			return False

		return all(token == candidate for token in list(recent)[-max_repetition:])


	def _would_repeat_pattern (self, candidate: str, sequence: typing.Sequence[str]) -> bool:

		"""
		True if appending the candidate recreates a short pattern that already
		occurs within the last ``2 * k`` tokens, for k in 2..4.
		"""

		if len(sequence) < LONG_TERM_MIN_HISTORY:
			return False

		current = len(sequence)

		for pattern_length in LONG_TERM_PATTERN_LENGTHS:

			pattern = list(sequence[current - pattern_length + 1:]) + [candidate]
			first_start = max(0, current - pattern_length * 2 + 1)

			for start in range(first_start, current - pattern_length + 1):
				if list(sequence[start:start + pattern_length]) == pattern:
					return True

		return False


	def _best_available (self, distribution: markovscope.sampling.Distribution, rejected: typing.Callable[[str], bool]) -> typing.Optional[str]:

		"""
		Return the most probable candidate that passes the repetition checks.
		"""

		ranked = sorted(distribution.items(), key=lambda item: item[1], reverse=True)

		for token, _ in ranked:
			if not rejected(token):
				return token

		return None
