"""Information-theoretic metrics for a trained chain and for token sequences.

Entropy is measured in bits.  Surprise is ``-log2(p)`` for a learned
transition; a transition the chain has never seen scores a fixed sentinel of
``1`` rather than infinity, so averages over sequences stay finite.
"""

import dataclasses
import math
import typing

import markovscope.markov_chain
import markovscope.sampling
import markovscope.state_store


UNSEEN_TRANSITION_SURPRISE: float = 1.0

# Floor probability used for information content so log2(0) never happens.
MIN_INFORMATION_PROBABILITY: float = 0.001

# Average surprise (bits) at which a sequence is considered fully incoherent.
COHERENCE_SURPRISE_SCALE: float = 5.0

# Average branching factor at which the novelty score saturates at 1.
NOVELTY_SATURATION_BRANCHING: float = 5.0

LOW_INTEREST_THRESHOLD: float = 0.2
HIGH_INTEREST_THRESHOLD: float = 0.7


@dataclasses.dataclass
class EntropyMetrics:

	state_entropy: float
	chain_entropy: float
	average_surprise: float
	novelty_score: float
	predictability: float


@dataclasses.dataclass
class TransitionSurprise:

	source: str
	target: str
	surprise: float
	probability: float
	information_content: float


@dataclasses.dataclass
class SequenceInterest:

	position: int
	token: str
	local_entropy: float
	surprise: float
	interest: str


@dataclasses.dataclass
class InterestMap:

	"""
	Per-position interest of a sequence.

	``low_interest_regions`` and ``high_interest_regions`` hold the start
	position of every run of consecutive positions at that level.
	"""

	sequence: typing.List[str]
	interest_scores: typing.List[SequenceInterest]
	average_interest: float
	peak_interest: float
	low_interest_regions: typing.List[int]
	high_interest_regions: typing.List[int]


@dataclasses.dataclass
class GenerationComparison:

	generated_entropy: float
	training_entropy: float
	novelty: float
	coherence: float
	creativity: float


def _clamp (value: float, low: float = 0.0, high: float = 1.0) -> float:

	return max(low, min(high, value))


def _bigrams (sequence: typing.Sequence[str]) -> typing.List[typing.Tuple[str, str]]:

	return [(sequence[i], sequence[i + 1]) for i in range(len(sequence) - 1)]


class EntropyAnalyzer:

	"""
	Read-only entropy, surprise and novelty measurements over a chain.
	"""

	def state_entropy (self, state: markovscope.state_store.ChainState) -> float:

		"""Shannon entropy of one state's transitions (0 if it has none)."""

		return markovscope.sampling.shannon_entropy(state.transitions)


	def chain_entropy (self, chain: markovscope.markov_chain.MarkovChain) -> float:

		"""Mean state entropy across the chain (0 for an empty chain)."""

		states = chain.get_states()

		if not states:
			return 0.0

		return sum(self.state_entropy(state) for state in states) / len(states)


	def transition_probability (self, chain: markovscope.markov_chain.MarkovChain, context: typing.Union[str, typing.Sequence[str]], token: str) -> float:

		state = chain.get_state(context)

		if state is None:
			return 0.0

		return state.transitions.get(token, 0.0)


	def transition_surprise (self, chain: markovscope.markov_chain.MarkovChain, context: typing.Union[str, typing.Sequence[str]], token: str) -> float:

		"""
		Return ``-log2(p)`` for a learned transition, or 1 for one never observed
		(including every transition out of an unseen context).
		"""

		probability = self.transition_probability(chain, context, token)

		if probability <= 0:
			return UNSEEN_TRANSITION_SURPRISE

		return -math.log2(probability)


	def sequence_surprise (self, chain: markovscope.markov_chain.MarkovChain, sequence: typing.Sequence[str]) -> typing.List[TransitionSurprise]:

		"""
		Score every transition in a sequence against the chain.
		"""

		order = chain.get_config().order
		surprises: typing.List[TransitionSurprise] = []

		for i in range(len(sequence) - order):

			context = markovscope.state_store.context_key(sequence[i:i + order])
			token = sequence[i + order]
			probability = self.transition_probability(chain, context, token)

			surprises.append(TransitionSurprise(
				source = context,
				target = token,
				surprise = self.transition_surprise(chain, context, token),
				probability = probability,
				information_content = -math.log2(probability or MIN_INFORMATION_PROBABILITY),
			))

		return surprises


	def get_entropy_metrics (self, chain: markovscope.markov_chain.MarkovChain) -> EntropyMetrics:

		"""
		Summarize the chain's entropy, surprise, novelty and predictability.
		An empty chain yields all zeros.
		"""

		states = chain.get_states()
		chain_entropy = self.chain_entropy(chain)

		total_surprise = 0.0
		transition_count = 0

		for state in states:
			for probability in state.transitions.values():
				if probability > 0:
					total_surprise -= math.log2(probability)
				transition_count += 1

		return EntropyMetrics(
			state_entropy = chain_entropy,
			chain_entropy = chain_entropy,
			average_surprise = total_surprise / transition_count if transition_count else 0.0,
			novelty_score = self.novelty_score(chain),
			predictability = self.predictability(chain),
		)


	def novelty_score (self, chain: markovscope.markov_chain.MarkovChain) -> float:

		"""
		``min(1, average_branching / 5)``: a chain where every state has one
		continuation scores 0.2, five or more continuations score 1.
		"""

		states = chain.get_states()

		if not states:
			return 0.0

		average = sum(len(state.transitions) for state in states) / len(states)

		return min(1.0, average / NOVELTY_SATURATION_BRANCHING)


	def predictability (self, chain: markovscope.markov_chain.MarkovChain) -> float:

		"""
		``1 - chain_entropy / log2(state_count)``, clamped to 0-1.

		An empty chain scores 0. A single state has no ``log2`` scale, so its
		entropy is compared against one bit instead.
		"""

		states = chain.get_states()

		if not states:
			return 0.0

		chain_entropy = self.chain_entropy(chain)

		if len(states) == 1:
			return _clamp(1.0 - chain_entropy)

		return _clamp(1.0 - chain_entropy / math.log2(len(states)))


	def most_surprising_transitions (self, chain: markovscope.markov_chain.MarkovChain, limit: int = 10) -> typing.List[TransitionSurprise]:

		"""
		Return the ``limit`` least probable learned transitions, most surprising first.
		"""

		surprises: typing.List[TransitionSurprise] = []

		for state in chain.get_states():
			for token, probability in state.transitions.items():

				surprise = -math.log2(probability) if probability > 0 else UNSEEN_TRANSITION_SURPRISE

				surprises.append(TransitionSurprise(
					source = state.key,
					target = token,
					surprise = surprise,
					probability = probability,
					information_content = surprise,
				))

		surprises.sort(key=lambda s: s.surprise, reverse=True)

		return surprises[:limit]


	# --- Sequence-level metrics ---

	def sequence_entropy (self, chain: markovscope.markov_chain.MarkovChain, sequence: typing.Sequence[str]) -> float:

		"""Mean surprise of a sequence's transitions (0 if it has none)."""

		surprises = self.sequence_surprise(chain, sequence)

		if not surprises:
			return 0.0

		return sum(s.surprise for s in surprises) / len(surprises)


	def training_entropy (self, chain: markovscope.markov_chain.MarkovChain, training: typing.Sequence[typing.Sequence[str]]) -> float:

		if not training:
			return 0.0

		return sum(self.sequence_entropy(chain, sequence) for sequence in training) / len(training)


	def novelty (self, generated: typing.Sequence[str], training: typing.Sequence[typing.Sequence[str]]) -> float:

		"""
		Fraction of the generated bigrams that never occur in the training data.
		"""

		generated_bigrams = _bigrams(generated)

		if not generated_bigrams:
			return 0.0

		training_bigrams: typing.Set[typing.Tuple[str, str]] = set()

		for sequence in training:
			training_bigrams.update(_bigrams(sequence))

		novel = [bigram for bigram in generated_bigrams if bigram not in training_bigrams]

		return len(novel) / len(generated_bigrams)


	def coherence (self, chain: markovscope.markov_chain.MarkovChain, sequence: typing.Sequence[str]) -> float:

		"""
		How closely a sequence follows the learned transitions:
		``max(0, 1 - average_surprise / 5)``.
		"""

		surprises = self.sequence_surprise(chain, sequence)

		if not surprises:
			return 0.0

		average = sum(s.surprise for s in surprises) / len(surprises)

		return max(0.0, 1.0 - average / COHERENCE_SURPRISE_SCALE)


	def creativity (self, novelty: float, coherence: float) -> float:

		"""
		Peaks when novelty and coherence are both moderate (0.5), falls to 0
		when both are extreme.
		"""

		novelty_score = 1.0 - abs(novelty - 0.5) * 2
		coherence_score = 1.0 - abs(coherence - 0.5) * 2

		return (novelty_score + coherence_score) / 2


	def compare_generation_to_training (
		self,
		chain: markovscope.markov_chain.MarkovChain,
		generated: typing.Sequence[str],
		training: typing.Sequence[typing.Sequence[str]]
	) -> GenerationComparison:

		"""
		Contrast a generated sequence with the data the chain learned from.
		"""

		novelty = self.novelty(generated, training)
		coherence = self.coherence(chain, generated)

		return GenerationComparison(
			generated_entropy = self.sequence_entropy(chain, generated),
			training_entropy = self.training_entropy(chain, training),
			novelty = novelty,
			coherence = coherence,
			creativity = self.creativity(novelty, coherence),
		)


	def analyze_sequence_interest (self, chain: markovscope.markov_chain.MarkovChain, sequence: typing.Sequence[str]) -> InterestMap:

		"""
		Rate each position by the entropy of its preceding context and the
		surprise of the token that follows it.
		"""

		order = chain.get_config().order
		scores: typing.List[SequenceInterest] = []

		for position, token in enumerate(sequence):

			context = markovscope.state_store.context_key(sequence[max(0, position - order):position])
			state = chain.get_state(context)
			local_entropy = self.state_entropy(state) if state is not None else 0.0

			surprise = 0.0
			if position >= order:
				surprise = self.transition_surprise(chain, context, token)

			interest = (local_entropy + surprise) / 2

			if interest < LOW_INTEREST_THRESHOLD:
				level = "low"
			elif interest > HIGH_INTEREST_THRESHOLD:
				level = "high"
			else:
				level = "medium"

			scores.append(SequenceInterest(
				position = position,
				token = token,
				local_entropy = local_entropy,
				surprise = surprise,
				interest = level,
			))

		entropies = [score.local_entropy for score in scores]

		return InterestMap(
			sequence = list(sequence),
			interest_scores = scores,
			average_interest = sum(entropies) / len(entropies) if entropies else 0.0,
			peak_interest = max(entropies) if entropies else 0.0,
			low_interest_regions = self._region_starts(scores, "low"),
			high_interest_regions = self._region_starts(scores, "high"),
		)


	def _region_starts (self, scores: typing.Sequence[SequenceInterest], level: str) -> typing.List[int]:

		"""Start positions of each run of consecutive scores at ``level``."""

		starts: typing.List[int] = []
		previous_matches = False

		for score in scores:
			matches = score.interest == level
			if matches and not previous_matches:
				starts.append(score.position)
			previous_matches = matches

		return starts
