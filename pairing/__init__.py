"""
Pairing Module

Builds signed ternary outcomes from paired MIC observations.

Public API:
    - compare: Sign of a compared value relative to its reference
    - pair_observations: Pair observations by key and compare them
    - group_outcomes: Count outcomes per (strain, antibiotic)
    - compute_evolvability: Two-fold steps gained by a daughter
    - Observation, PairedOutcome, TrinomialOutcomeSet: Data types
    - Antibiotic, Genotype, Direction, PairingKey: Enums
"""

from .outcome_types import (
    Antibiotic,
    Direction,
    Genotype,
    Observation,
    PairedOutcome,
    PairingKey,
    TrinomialOutcomeSet
)
from .comparator import (
    compare,
    compute_evolvability,
    evolvability_values,
    group_outcomes,
    pair_observations
)
from .tables import mic_table_observations, time_series_observations

__all__ = [
    'compare',
    'pair_observations',
    'group_outcomes',
    'compute_evolvability',
    'evolvability_values',
    'mic_table_observations',
    'time_series_observations',
    'Observation',
    'PairedOutcome',
    'TrinomialOutcomeSet',
    'Antibiotic',
    'Genotype',
    'Direction',
    'PairingKey'
]
