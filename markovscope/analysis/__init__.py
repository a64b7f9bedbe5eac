"""
Read-only diagnostic passes over a trained chain.

- ``markovscope.analysis.entropy`` - Shannon entropy, surprise, novelty and predictability
- ``markovscope.analysis.automata`` - determinism, cycles, state-space estimates and graph export
- ``markovscope.analysis.complexity`` - training cost, memory and bottleneck estimates
"""
