import random
import typing

import pytest

import markovscope.config
import markovscope.markov_chain


ChainFactory = typing.Callable[..., markovscope.markov_chain.MarkovChain]


def make_chain (
	sequences: typing.Optional[typing.List[typing.List[str]]] = None,
	order: int = 1,
	smoothing: float = 0.1,
	temperature: float = 1.0,
	max_length: int = 32,
	seed: int = 1,
) -> markovscope.markov_chain.MarkovChain:

	"""Build a seeded chain and train it when sequences are given."""

	config = markovscope.config.ChainConfig(order=order, smoothing=smoothing, temperature=temperature, max_length=max_length)
	chain = markovscope.markov_chain.MarkovChain(config, rng=random.Random(seed))

	if sequences is not None:
		chain.train(sequences)

	return chain


@pytest.fixture
def chain_factory () -> ChainFactory:

	"""Expose make_chain to tests as a fixture."""

	return make_chain


@pytest.fixture
def repetitive_chain () -> markovscope.markov_chain.MarkovChain:

	"""An order-2 chain trained on a single repeated token."""

	return make_chain([["C4", "C4", "C4", "C4", "C4"]], order=2)


@pytest.fixture
def varied_chain () -> markovscope.markov_chain.MarkovChain:

	"""An order-1 chain where every state has two continuations."""

	return make_chain([
		["A", "B", "C"],
		["A", "C", "B"],
		["B", "A", "C"],
		["B", "C", "A"],
	])
