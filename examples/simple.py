import logging
import random

import markovscope

logging.basicConfig(level=logging.INFO)

# A few bars of a melody as note-name tokens. Any strings work.
MELODIES = [
	["C4", "E4", "G4", "E4", "C4", "D4", "E4", "C4"],
	["C4", "E4", "G4", "A4", "G4", "E4", "D4", "C4"],
	["E4", "G4", "A4", "G4", "E4", "D4", "C4", "D4"],
	["G4", "A4", "G4", "E4", "C4", "E4", "D4", "C4"],
]

config = markovscope.load_config("markovscope.yaml")
chain = markovscope.MarkovChain(config, rng=random.Random(7))
chain.train(MELODIES)

stats = chain.get_stats()
print(f"{stats.total_states} states, {stats.total_transitions} transitions")

# Plain sampling and a run that steers away from loops.
print("generated :", " ".join(chain.generate(16, start_context=["C4"] * config.order)))
print("varied    :", " ".join(chain.generate_with_repetition_prevention(16, max_repetition=2)))

# Each step keeps its candidates and the random draw that picked the token.
for step in chain.generate_with_steps(4).steps:
	candidates = ", ".join(f"{token} {probability:.2f}" for token, probability in step.candidates)
	print(f"step {step.step}: [{step.context}] -> {step.token}  ({candidates})")

entropy = markovscope.EntropyAnalyzer()
metrics = entropy.get_entropy_metrics(chain)
print(f"chain entropy {metrics.chain_entropy:.2f} bits, predictability {metrics.predictability:.2f}")

generated = chain.generate(16)
comparison = entropy.compare_generation_to_training(chain, generated, MELODIES)
print(f"novelty {comparison.novelty:.2f}, coherence {comparison.coherence:.2f}, creativity {comparison.creativity:.2f}")

automata = markovscope.AutomataAnalyzer()
for cycle in automata.find_cycles(chain):
	print("cycle:", " -> ".join(cycle.states))

print(automata.export_state_diagram(chain).to_dot("melody"))

recommendation = markovscope.ComplexityAnalyzer().recommend_optimal_order(MELODIES)
print(f"recommended order {recommendation.order}: {recommendation.reasoning}")
