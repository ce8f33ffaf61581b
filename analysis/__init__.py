"""
Analysis Module

Hypothesis tests and estimators for the resistance study: the trinomial
test for paired data with ties, Fisher's combined probability, zero-class
fluctuation analysis, and wrappers around standard scipy/statsmodels tests.

The question-level pipelines live in analysis.pipelines and are imported
from there directly.

Public API:
    - trinomial_test: One-sided trinomial test with direction correction
    - difference_probability: Raw trinomial probability of a net difference
    - combine_probabilities: Fisher's method
    - analyze_strain / analyze_fluctuation: Mutation-rate estimation
    - rate_interval_from_bounds: p0 interval -> rate interval
    - AnalysisConfig: Validated settings
    - PairingError, InsufficientDataError, DomainError: Error kinds
"""

from .errors import AnalysisError, PairingError, InsufficientDataError, DomainError
from .config import AnalysisConfig
from .trinomial import trinomial_test, difference_probability
from .combined_probability import combine_probabilities, CombinedProbability
from .fluctuation import (
    FluctuationResult,
    analyze_fluctuation,
    analyze_strain,
    estimate_mutational_events,
    mean_cell_yield,
    rate_interval_from_bounds
)
from .standard_tests import (
    binomial_proportion_ci,
    dunnett_test,
    kruskal_wallis,
    shapiro_wilk,
    variance_f_test,
    welch_t_test
)

__all__ = [
    'AnalysisError',
    'PairingError',
    'InsufficientDataError',
    'DomainError',
    'AnalysisConfig',
    # Trinomial test and Fisher's method
    'trinomial_test',
    'difference_probability',
    'combine_probabilities',
    'CombinedProbability',
    # Fluctuation analysis
    'FluctuationResult',
    'analyze_fluctuation',
    'analyze_strain',
    'estimate_mutational_events',
    'mean_cell_yield',
    'rate_interval_from_bounds',
    # Standard tests
    'binomial_proportion_ci',
    'dunnett_test',
    'kruskal_wallis',
    'shapiro_wilk',
    'variance_f_test',
    'welch_t_test'
]
