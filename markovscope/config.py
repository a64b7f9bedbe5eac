"""Chain configuration and YAML loading.

A :class:`ChainConfig` is fixed when a chain is constructed.  Values are
validated up front so the trainer and generator never have to re-check them.
"""

import dataclasses
import logging
import math
import numbers
import os
import typing

import yaml


logger = logging.getLogger(__name__)


DEFAULT_ORDER: int = 1
DEFAULT_SMOOTHING: float = 0.0
DEFAULT_TEMPERATURE: float = 1.0
DEFAULT_MAX_LENGTH: int = 32

MIN_TEMPERATURE: float = 0.1
MAX_TEMPERATURE: float = 2.0


def _is_real (value: typing.Any) -> bool:

	return isinstance(value, numbers.Real) and not isinstance(value, bool)


@dataclasses.dataclass(frozen=True)
class ChainConfig:

	"""
	Settings for a fixed-order Markov chain.

	Attributes:
		order: Number of preceding tokens used as context (>= 1).
		smoothing: Additive count applied to every observed continuation (>= 0).
		temperature: Sampling sharpness, 0.1 to 2.0. Below 1.0 favours the
			most likely token, above 1.0 flattens toward uniform.
		max_length: Default number of tokens produced by ``generate()``.
	"""

	order: int = DEFAULT_ORDER
	smoothing: float = DEFAULT_SMOOTHING
	temperature: float = DEFAULT_TEMPERATURE
	max_length: int = DEFAULT_MAX_LENGTH

	def __post_init__ (self) -> None:

		"""Reject settings outside their documented ranges."""

		if isinstance(self.order, bool) or not isinstance(self.order, int) or self.order < 1:
			raise ValueError(f"Order must be a positive integer, got {self.order!r}")

		if not _is_real(self.smoothing) or not math.isfinite(self.smoothing) or self.smoothing < 0:
			raise ValueError(f"Smoothing must be a finite non-negative number, got {self.smoothing!r}")

		if not _is_real(self.temperature) or not MIN_TEMPERATURE <= self.temperature <= MAX_TEMPERATURE:
			raise ValueError(f"Temperature must be between {MIN_TEMPERATURE} and {MAX_TEMPERATURE}, got {self.temperature!r}")

		if isinstance(self.max_length, bool) or not isinstance(self.max_length, int) or self.max_length < 1:
			raise ValueError(f"Max length must be a positive integer, got {self.max_length!r}")


	@classmethod
	def from_dict (cls, values: typing.Dict[str, typing.Any]) -> "ChainConfig":

		"""
		Build a config from a plain mapping, accepting snake_case or camelCase keys.
		Unknown keys and keys with no value are ignored.
		"""

		aliases = {
			"order": "order",
			"smoothing": "smoothing",
			"temperature": "temperature",
			"max_length": "max_length",
			"maxLength": "max_length",
		}

		kwargs: typing.Dict[str, typing.Any] = {}

		for key, value in values.items():
			field_name = aliases.get(key)
			if field_name is None:
				logger.debug(f"Ignoring unknown config key: {key}")
				continue
			if value is None:
				logger.debug(f"Config key {key} has no value, using the default")
				continue
			kwargs[field_name] = value

		return cls(**kwargs)


def load_config (config_path: str = "markovscope.yaml") -> ChainConfig:

	"""
	Load a chain configuration from a YAML file.

	The file may hold the settings at the top level or under a ``chain:``
	mapping. A missing file falls back to the defaults.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return ChainConfig()

	with open(config_path, "r") as f:
		data = yaml.safe_load(f) or {}

	if not isinstance(data, dict):
		raise ValueError(f"Config file {config_path} must contain a mapping")

	section = data.get("chain", data)

	if not isinstance(section, dict):
		raise ValueError(f"The 'chain' section in {config_path} must be a mapping")

	return ChainConfig.from_dict(section)
