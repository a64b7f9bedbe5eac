import dataclasses
import typing


CONTEXT_SEPARATOR = "|"

Context = typing.Tuple[str, ...]


def context_key (context: typing.Sequence[str]) -> str:

	"""
	Serialize a context window into the composite key used by the store.
	"""

	return CONTEXT_SEPARATOR.join(context)


@dataclasses.dataclass
class ChainState:

	"""
	The learned transition distribution for one context.

	``counts`` holds raw observations and is the source of truth; ``transitions``
	holds the normalized probabilities derived from it.  Both dictionaries keep
	first-observation order, which is the iteration order used for sampling and
	tie-breaks.
	"""

	key: str
	context: Context
	counts: typing.Dict[str, int] = dataclasses.field(default_factory=dict)
	transitions: typing.Dict[str, float] = dataclasses.field(default_factory=dict)
	visit_count: int = 0


	def max_transition (self) -> typing.Tuple[typing.Optional[str], float]:

		"""
		Return the most probable next token and its probability.
		Ties go to the token observed first.
		"""

		best_token: typing.Optional[str] = None
		best_probability = 0.0

		for token, probability in self.transitions.items():
			if probability > best_probability:
				best_token = token
				best_probability = probability

		return best_token, best_probability


class StateStore:

	"""
	Ordered mapping of context key to :class:`ChainState`.
	"""

	def __init__ (self) -> None:

		"""
		Initialize an empty store.
		"""

		self._states: typing.Dict[str, ChainState] = {}


	def __len__ (self) -> int:

		return len(self._states)


	def __contains__ (self, key: object) -> bool:

		return key in self._states


	def __iter__ (self) -> typing.Iterator[ChainState]:

		return iter(self._states.values())


	def get (self, key: str) -> typing.Optional[ChainState]:

		"""
		Return the state for a context key, or ``None`` if it was never observed.
		"""

		return self._states.get(key)


	def get_or_create (self, context: typing.Sequence[str]) -> ChainState:

		"""
		Return the state for a context, creating an empty one on first sight.
		"""

		key = context_key(context)
		state = self._states.get(key)

		if state is None:
			state = ChainState(key=key, context=tuple(context))
			self._states[key] = state

		return state


	def states (self) -> typing.List[ChainState]:

		"""
		Return all states in insertion order.
		"""

		return list(self._states.values())


	def clear (self) -> None:

		"""
		Remove every state.
		"""

		self._states.clear()
