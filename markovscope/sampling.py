"""Distribution helpers shared by the generator and the analysers.

Distributions are plain ordered ``dict`` objects mapping token to probability.
Their iteration order is significant: inverse-CDF sampling walks it in order,
so the same seed and the same insertion order always yield the same token.
"""

import math
import random
import typing


Distribution = typing.Dict[str, float]


def shannon_entropy (distribution: typing.Mapping[str, float]) -> float:

	"""
	Bits of uncertainty in a distribution. Empty distributions have zero entropy.
	"""

	entropy = 0.0

	for probability in distribution.values():
		if probability > 0:
			entropy -= probability * math.log2(probability)

	return entropy


def apply_temperature (distribution: Distribution, temperature: float) -> Distribution:

	"""
	Reshape a distribution with ``p ** (1 / T)`` and renormalize.

	A temperature of exactly 1.0 returns the distribution unchanged.
	"""

	if temperature == 1.0 or not distribution:
		return distribution

	exponent = 1.0 / temperature
	adjusted = {token: probability ** exponent for token, probability in distribution.items()}
	total = sum(adjusted.values())

	if total <= 0:
		# Every probability underflowed; keep the original shape.
		return distribution

	return {token: weight / total for token, weight in adjusted.items()}


def choose_weighted (distribution: Distribution, rng: random.Random) -> typing.Tuple[str, float]:

	"""
	Choose one token by inverse-CDF sampling and return it with the random draw.

	The running sum is compared against a single ``rng.random()`` draw in the
	distribution's iteration order. If rounding leaves the sum just short of
	the draw, the last token is returned.
	"""

	if not distribution:
		raise ValueError("Distribution cannot be empty")

	roll = rng.random()
	accum = 0.0
	last_token = ""

	for token, probability in distribution.items():
		accum += probability
		last_token = token
		if accum >= roll:
			return token, roll

	return last_token, roll
