import logging
import typing

import markovscope.config
import markovscope.state_store


logger = logging.getLogger(__name__)


class Trainer:

	"""
	Counts context transitions into a :class:`~markovscope.state_store.StateStore`
	and owns their normalization.  This is the only component that mutates the store.
	"""

	def __init__ (self, config: markovscope.config.ChainConfig, store: markovscope.state_store.StateStore) -> None:

		"""
		Bind the trainer to a config and the store it will populate.
		"""

		self.config = config
		self.store = store


	def count_sequences (self, sequences: typing.Iterable[typing.Sequence[str]]) -> int:

		"""
		Add the transitions of each sequence to the store's raw counts.
		Returns the number of observations counted.
		"""

		observations = 0

		for sequence in sequences:
			observations += self._count_sequence(sequence)

		return observations


	def _count_sequence (self, sequence: typing.Sequence[str]) -> int:

		"""
		Count every (context, next token) window in one sequence.
		Sequences no longer than the order contribute nothing.
		"""

		order = self.config.order
		observations = 0

		for i in range(len(sequence) - order):

			state = self.store.get_or_create(sequence[i:i + order])
			next_token = sequence[i + order]

			# Accumulate like a weighted edge: repeated observations strengthen it.
			if next_token in state.counts:
				state.counts[next_token] += 1

			else:
				state.counts[next_token] = 1

			state.visit_count += 1
			observations += 1

		return observations


	def normalize (self) -> None:

		"""
		Recompute every state's probabilities from its counts.

		``p(next) = (count + smoothing) / (total + smoothing * k)`` where ``k`` is
		the number of distinct observed continuations.  Smoothing never creates
		mass for tokens that were not observed from the context.
		"""

		smoothing = self.config.smoothing

		for state in self.store:

			total = sum(state.counts.values())
			smoothed_total = total + smoothing * len(state.counts)

			if smoothed_total <= 0:
				state.transitions = {}
				continue

			state.transitions = {
				token: (count + smoothing) / smoothed_total
				for token, count in state.counts.items()
			}


	def train (self, sequences: typing.Iterable[typing.Sequence[str]]) -> int:

		"""
		Count the sequences and renormalize. Returns the number of observations.
		"""

		observations = self.count_sequences(sequences)
		self.normalize()

		logger.debug(f"Counted {observations} transitions, store holds {len(self.store)} states")

		return observations
