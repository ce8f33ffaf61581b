"""
Configuration Module

Default constants and the validated configuration object shared by the
analysis pipelines.

Biological context:
- Cell counts are taken on a diluted sample, so the strain mean is scaled
  by a single global dilution factor to estimate culture yield
- MIC values come from two-fold serial dilutions, so log2 values that are
  equal are genuine ties
"""

from dataclasses import dataclass, field
from typing import Tuple


ANTIBIOTICS = ('amp', 'cro', 'cip', 'tet')

# Fluctuation assay defaults
DEFAULT_DILUTION_FACTOR = 100.0
DEFAULT_CONFIDENCE_LEVEL = 0.95
DEFAULT_CI_METHOD = 'agresti_coull'

# Methods accepted by statsmodels' proportion_confint
CI_METHODS = ('agresti_coull', 'wilson', 'beta', 'jeffreys', 'normal')

# LTEE ancestors used as references for the derived clones
DEFAULT_ANCESTORS = ('REL606', 'REL607')

DEFAULT_CONTROL_TIME_POINT = '0'


@dataclass(frozen=True)
class AnalysisConfig:
    """
    Settings for a full analysis run.

    Attributes:
        dilution_factor: Multiplier applied to mean cell counts (> 0)
        confidence_level: Two-sided level of the p0 interval, in (0, 1)
        ci_method: Binomial proportion interval method
        tie_tolerance: Largest |log2 difference| still counted as a tie
        ancestral_strains: Strains treated as references for paired.ID pairing
        control_time_point: Time point used as control for Dunnett's test

    Example:
        >>> config = AnalysisConfig(dilution_factor=10.0)
    """
    dilution_factor: float = DEFAULT_DILUTION_FACTOR
    confidence_level: float = DEFAULT_CONFIDENCE_LEVEL
    ci_method: str = DEFAULT_CI_METHOD
    tie_tolerance: float = 0.0
    ancestral_strains: Tuple[str, ...] = field(default=DEFAULT_ANCESTORS)
    control_time_point: str = DEFAULT_CONTROL_TIME_POINT

    def __post_init__(self):
        """Validate settings."""
        if not self.dilution_factor > 0:
            raise ValueError(f"dilution_factor must be > 0, got {self.dilution_factor}")
        if not 0 < self.confidence_level < 1:
            raise ValueError(
                f"confidence_level must be in (0, 1), got {self.confidence_level}"
            )
        if self.ci_method not in CI_METHODS:
            raise ValueError(
                f"Unknown ci_method '{self.ci_method}', expected one of {CI_METHODS}"
            )
        if self.tie_tolerance < 0:
            raise ValueError(f"tie_tolerance must be >= 0, got {self.tie_tolerance}")
        if not self.ancestral_strains:
            raise ValueError("At least one ancestral strain is required")
        # Normalize lists to tuples
        object.__setattr__(self, 'ancestral_strains', tuple(self.ancestral_strains))
