"""
markovscope - learn, sample and inspect fixed-order Markov chains over tokens.

A chain is trained on example sequences of string tokens. Every run of
``order`` consecutive tokens becomes a context, and the tokens observed to
follow it become that context's transition distribution. New sequences are
sampled from those distributions, and a set of analysers describes what was
learned.

What it covers:

- **Training.** ``train()`` and incremental ``train_append()`` count
  transitions and normalize them with optional additive smoothing over the
  continuations actually observed.
- **Generation.** Temperature-scaled inverse-CDF sampling, back-off to a
  shorter context or the most uncertain state when a context is unseen,
  step-by-step records for replay, and a repetition-avoiding mode that
  rejects token runs and short repeating patterns.
- **Entropy analysis.** State and chain entropy, transition surprise,
  novelty, predictability, coherence and creativity of generated output.
- **Automata analysis.** Determinism index, greedy cycle detection,
  training-data and vocabulary estimates, and node/edge or DOT export.
- **Complexity analysis.** Training cost model, memory estimates against a
  budget, bottleneck classification and order recommendations.
- **Deterministic seeding.** Pass one ``random.Random`` to the chain and
  every draw is repeatable.

Minimal example:

    ```python
    import random

    import markovscope

    chain = markovscope.MarkovChain(markovscope.ChainConfig(order=1, smoothing=0.1), rng=random.Random(42))
    chain.train([["A", "B", "A", "C"]])

    print(chain.generate(8, start_context=["A"]))
    print(markovscope.EntropyAnalyzer().get_entropy_metrics(chain))
    ```

Package-level exports: ``ChainConfig``, ``MarkovChain``, ``NoTrainingDataError``,
``load_config``, ``EntropyAnalyzer``, ``AutomataAnalyzer``, ``ComplexityAnalyzer``.
"""

import markovscope.analysis.automata
import markovscope.analysis.complexity
import markovscope.analysis.entropy
import markovscope.config
import markovscope.markov_chain


ChainConfig = markovscope.config.ChainConfig
load_config = markovscope.config.load_config
MarkovChain = markovscope.markov_chain.MarkovChain
NoTrainingDataError = markovscope.markov_chain.NoTrainingDataError
EntropyAnalyzer = markovscope.analysis.entropy.EntropyAnalyzer
AutomataAnalyzer = markovscope.analysis.automata.AutomataAnalyzer
ComplexityAnalyzer = markovscope.analysis.complexity.ComplexityAnalyzer
