"""
Resistance Evolution Analysis Package

Statistical analysis of the loss and re-evolvability of antibiotic
resistance across a long-term evolution experiment.

Main modules:
    - pairing: Paired MIC comparisons and signed outcomes
    - analysis: Trinomial test, Fisher's method, fluctuation analysis,
      standard test wrappers and question-level pipelines
"""

__version__ = '1.0.0'
__author__ = 'Resistance Evolution Analysis'

# Convenience imports
from pairing import compare, pair_observations, Direction, PairingKey
from analysis import trinomial_test, combine_probabilities, analyze_fluctuation
