"""Chain training and generation throughput benchmark.

Trains chains of increasing order on random token sequences and measures
wall time for training and for generation, alongside the modelled operation
count and estimated memory for each order.

Usage:
    python benchmarks/training_throughput.py [--sequences N] [--length N]
                                             [--vocabulary N] [--max-order N]
                                             [--generate N] [--seed N]

Options:
    --sequences N       Training sequences (default: 200)
    --length N          Tokens per sequence (default: 64)
    --vocabulary N      Distinct tokens (default: 24)
    --max-order N       Highest order to measure (default: 4)
    --generate N        Tokens generated per order (default: 1000)
    --seed N            Random seed (default: 1)
"""

import argparse
import logging
import random
import statistics
import time
import typing

# Keep training logs out of the report.
logging.basicConfig(level=logging.ERROR)

import markovscope.analysis.complexity
import markovscope.config
import markovscope.markov_chain

# ---------------------------------------------------------------------------

REPEATS = 5


def _make_sequences (count: int, length: int, vocabulary: int, rng: random.Random) -> typing.List[typing.List[str]]:

	tokens = [f"t{i}" for i in range(vocabulary)]

	return [[rng.choice(tokens) for _ in range(length)] for _ in range(count)]


def _time_ms (operation: typing.Callable[[], typing.Any]) -> float:

	start = time.perf_counter()
	operation()

	return (time.perf_counter() - start) * 1000.0


def _run_benchmark (
	sequences: typing.List[typing.List[str]],
	order: int,
	generate: int,
	seed: int,
) -> typing.Dict[str, float]:

	"""Train and generate ``REPEATS`` times at one order and return median timings."""

	config = markovscope.config.ChainConfig(order=order, smoothing=0.1, max_length=generate)
	analyzer = markovscope.analysis.complexity.ComplexityAnalyzer()

	train_times: typing.List[float] = []
	generate_times: typing.List[float] = []
	chains = [markovscope.markov_chain.MarkovChain(config, rng=random.Random(seed)) for _ in range(REPEATS)]

	for chain in chains:
		train_times.append(_time_ms(lambda: chain.train(sequences)))
		generate_times.append(_time_ms(lambda: chain.generate(generate)))

	return {
		"train_ms": statistics.median(train_times),
		"generate_ms": statistics.median(generate_times),
		"operations": analyzer.count_training_operations(sequences, order),
		"states": chains[-1].get_stats().total_states,
		"memory_bytes": analyzer.estimate_chain_memory(chains[-1]),
	}


def _print_report (results: typing.Dict[int, typing.Dict[str, float]], sequences: int, length: int, vocabulary: int, generate: int) -> None:

	print(f"\nTraining Throughput Benchmark: {sequences} sequences x {length} tokens, vocabulary {vocabulary}")
	print(f"{'-' * 74}")
	print(f"  {'Order':>5}  {'States':>8}  {'Operations':>11}  {'Train ms':>9}  {'Gen ms':>8}  {'Gen tok/s':>10}  {'Memory KB':>9}")
	print(f"{'-' * 74}")

	for order, result in results.items():

		tokens_per_second = generate / (result["generate_ms"] / 1000.0) if result["generate_ms"] > 0 else 0.0

		print(
			f"  {order:>5}  {int(result['states']):>8}  {int(result['operations']):>11}"
			f"  {result['train_ms']:>9.2f}  {result['generate_ms']:>8.2f}"
			f"  {tokens_per_second:>10.0f}  {result['memory_bytes'] / 1024:>9.1f}"
		)

	print(f"{'-' * 74}")
	print()


def main () -> None:

	parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
	parser.add_argument("--sequences",  type=int, default=200,  help="Training sequences (default: 200)")
	parser.add_argument("--length",     type=int, default=64,   help="Tokens per sequence (default: 64)")
	parser.add_argument("--vocabulary", type=int, default=24,   help="Distinct tokens (default: 24)")
	parser.add_argument("--max-order",  type=int, default=4,    help="Highest order to measure (default: 4)")
	parser.add_argument("--generate",   type=int, default=1000, help="Tokens generated per order (default: 1000)")
	parser.add_argument("--seed",       type=int, default=1,    help="Random seed (default: 1)")
	args = parser.parse_args()

	sequences = _make_sequences(args.sequences, args.length, args.vocabulary, random.Random(args.seed))
	results: typing.Dict[int, typing.Dict[str, float]] = {}

	for order in range(1, args.max_order + 1):
		print(f"Measuring order {order} ...")
		results[order] = _run_benchmark(sequences, order, args.generate, args.seed)

	_print_report(results, args.sequences, args.length, args.vocabulary, args.generate)

	recommendation = markovscope.analysis.complexity.ComplexityAnalyzer().recommend_optimal_order(sequences)
	print(f"  Recommended order : {recommendation.order} ({recommendation.reasoning})")
	print()


if __name__ == "__main__":
	main()
