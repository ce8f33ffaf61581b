"""
Fluctuation Analysis Module

Estimates mutation rates to resistance from a Luria-Delbrück fluctuation
assay using the zero-class (p0) method.

Biological context:
- Many parallel cultures are plated on antibiotic; a culture with no
  resistant colony had no mutational event
- Under the Poisson model, P(no event) = exp(-m), so m = -ln(p0)
- The rate per cell is m divided by the final population size, which is
  measured on separate replicates and shared across the strain

Public API:
    mean_cell_yield(cell_counts, dilution_factor) -> float
    estimate_mutational_events(n_zero, n_total) -> float
    rate_interval_from_bounds(p0_lower, p0_upper, cell_yield) -> tuple
    analyze_strain(colony_counts, cell_counts, ...) -> FluctuationResult
    analyze_fluctuation(colony_table, cell_table, config) -> dict
"""

import math
import warnings
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .config import AnalysisConfig, DEFAULT_DILUTION_FACTOR
from .errors import DomainError, InsufficientDataError
from .standard_tests import binomial_proportion_ci


@dataclass(frozen=True)
class FluctuationResult:
    """
    Mutation-rate estimate for one strain.

    Attributes:
        strain: Strain label
        n_cultures: Number of plated cultures
        n_zero: Cultures without any resistant colony
        p0: n_zero / n_cultures
        m: Expected number of mutational events per culture
        cell_yield: Mean cell count times the dilution factor
        mutation_rate: m / cell_yield
        rate_ci_lower: Lower rate bound (from the upper p0 bound)
        rate_ci_upper: Upper rate bound (from the lower p0 bound)
        p0_ci: (lower, upper) interval on p0
    """
    strain: str
    n_cultures: int
    n_zero: int
    p0: float
    m: float
    cell_yield: float
    mutation_rate: float
    rate_ci_lower: float
    rate_ci_upper: float
    p0_ci: Tuple[float, float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'strain': self.strain,
            'n_cultures': self.n_cultures,
            'n_zero': self.n_zero,
            'p0': self.p0,
            'p0_ci_lower': self.p0_ci[0],
            'p0_ci_upper': self.p0_ci[1],
            'm': self.m,
            'cell_yield': self.cell_yield,
            'mutation_rate': self.mutation_rate,
            'rate_ci_lower': self.rate_ci_lower,
            'rate_ci_upper': self.rate_ci_upper
        }


def mean_cell_yield(
    cell_counts: Sequence[float],
    dilution_factor: float = DEFAULT_DILUTION_FACTOR
) -> float:
    """
    Strain-level culture yield.

    Args:
        cell_counts: Cell counts of the independent, non-plated replicates
        dilution_factor: Global multiplier for the counted dilution

    Returns:
        mean(cell_counts) * dilution_factor
    """
    if not dilution_factor > 0:
        raise DomainError(f"dilution_factor must be > 0, got {dilution_factor}")

    counts = np.asarray(cell_counts, dtype=float)
    counts = counts[~np.isnan(counts)]
    if counts.size == 0:
        raise InsufficientDataError("No cell-count replicates to average")
    if np.any(counts <= 0):
        raise DomainError("Cell counts must be > 0")

    return float(counts.mean() * dilution_factor)


def events_from_proportion(p0: float) -> float:
    """m = -ln(p0), the expected number of mutational events."""
    if p0 <= 0.0:
        raise DomainError(
            "Zero-class proportion is 0; -ln(p0) is undefined"
        )
    if p0 > 1.0:
        raise DomainError(f"Proportion must be <= 1, got {p0}")
    return -math.log(p0)


def estimate_mutational_events(n_zero: int, n_total: int) -> float:
    """
    Zero-class estimate of mutational events per culture.

    Args:
        n_zero: Cultures with no resistant colony
        n_total: All plated cultures

    Raises:
        InsufficientDataError: If n_total is 0
        DomainError: If no culture was free of mutants (p0 = 0)
    """
    if n_total <= 0:
        raise InsufficientDataError("No cultures to estimate mutational events from")
    if not 0 <= n_zero <= n_total:
        raise DomainError(f"n_zero must lie in [0, {n_total}], got {n_zero}")
    if n_zero == 0:
        raise DomainError(
            f"Every one of {n_total} cultures produced mutants (p0 = 0); "
            "the zero-class estimator is undefined"
        )

    return events_from_proportion(n_zero / n_total)


def rate_interval_from_bounds(
    p0_lower: float,
    p0_upper: float,
    cell_yield: float
) -> Tuple[float, float]:
    """
    Convert a p0 interval to a mutation-rate interval.

    -ln is decreasing, so the lower p0 bound gives the upper rate bound
    and the upper p0 bound gives the lower rate bound. A lower p0 bound of
    0 leaves the rate unbounded above, reported as inf.

    Returns:
        (rate_lower, rate_upper)

    Example:
        >>> lower, upper = rate_interval_from_bounds(0.3, 0.5, 1000.0)
        >>> round(lower, 6), round(upper, 6)
        (0.000693, 0.001204)
    """
    if p0_lower > p0_upper:
        raise ValueError(f"p0 bounds are reversed: ({p0_lower}, {p0_upper})")
    if not cell_yield > 0:
        raise DomainError(f"cell_yield must be > 0, got {cell_yield}")
    if p0_upper <= 0.0:
        raise DomainError("Upper p0 bound is 0; the rate interval is undefined")

    if p0_lower <= 0.0:
        rate_upper = math.inf
    else:
        rate_upper = events_from_proportion(p0_lower) / cell_yield
    rate_lower = events_from_proportion(p0_upper) / cell_yield

    return rate_lower, rate_upper


def analyze_strain(
    strain: str,
    colony_counts: Sequence[int],
    cell_counts: Sequence[float],
    dilution_factor: float = DEFAULT_DILUTION_FACTOR,
    confidence_level: float = 0.95,
    ci_method: str = 'agresti_coull'
) -> FluctuationResult:
    """
    Full fluctuation analysis for one strain.

    Args:
        strain: Strain label
        colony_counts: Resistant colonies per plated culture
        cell_counts: Cell counts of the separate yield replicates
        dilution_factor: Multiplier for the cell counts
        confidence_level: Coverage of the p0 interval
        ci_method: Binomial interval method

    Returns:
        FluctuationResult
    """
    colonies = np.asarray(colony_counts, dtype=float)
    colonies = colonies[~np.isnan(colonies)]
    if np.any(colonies < 0):
        raise DomainError(f"Colony counts must be >= 0 for strain {strain}")

    n_total = int(colonies.size)
    n_zero = int(np.sum(colonies == 0))

    try:
        m = estimate_mutational_events(n_zero, n_total)
    except (DomainError, InsufficientDataError) as e:
        raise type(e)(f"Strain {strain}: {e}") from e

    cell_yield = mean_cell_yield(cell_counts, dilution_factor)
    p0_lower, p0_upper = binomial_proportion_ci(
        n_zero, n_total, confidence_level=confidence_level, method=ci_method
    )

    rate_lower, rate_upper = rate_interval_from_bounds(p0_lower, p0_upper, cell_yield)
    if math.isinf(rate_upper):
        warnings.warn(
            f"Strain {strain}: {ci_method} p0 interval reaches 0 with {n_zero} of "
            f"{n_total} cultures free of mutants; upper rate bound is unbounded"
        )

    return FluctuationResult(
        strain=strain,
        n_cultures=n_total,
        n_zero=n_zero,
        p0=n_zero / n_total,
        m=m,
        cell_yield=cell_yield,
        mutation_rate=m / cell_yield,
        rate_ci_lower=rate_lower,
        rate_ci_upper=rate_upper,
        p0_ci=(p0_lower, p0_upper)
    )


def analyze_fluctuation(
    colony_table: pd.DataFrame,
    cell_table: pd.DataFrame,
    config: Optional[AnalysisConfig] = None
) -> Dict[str, FluctuationResult]:
    """
    Fluctuation analysis for every strain in the colony table.

    Args:
        colony_table: Columns strain, replicate.ID, n.colonies
        cell_table: Columns strain, replicate.ID, cell.count
        config: Analysis settings (defaults used when None)

    Returns:
        Dict mapping strain -> FluctuationResult, in order of first appearance

    Raises:
        InsufficientDataError: If a strain has no cell-count replicates
    """
    if config is None:
        config = AnalysisConfig()

    for table, column, name in (
        (colony_table, 'n.colonies', 'Colony table'),
        (cell_table, 'cell.count', 'Cell-count table')
    ):
        missing = [c for c in ('strain', column) if c not in table.columns]
        if missing:
            raise ValueError(f"{name} is missing required columns: {missing}")

    colonies_by_strain = colony_table.groupby(
        colony_table['strain'].astype(str), sort=False
    )['n.colonies']
    cells_by_strain = {
        strain: group.to_numpy()
        for strain, group in cell_table.groupby(
            cell_table['strain'].astype(str), sort=False
        )['cell.count']
    }

    results = {}
    for strain, colonies in colonies_by_strain:
        if strain not in cells_by_strain:
            raise InsufficientDataError(f"No cell-count replicates for strain {strain}")

        results[strain] = analyze_strain(
            strain,
            colonies.to_numpy(),
            cells_by_strain[strain],
            dilution_factor=config.dilution_factor,
            confidence_level=config.confidence_level,
            ci_method=config.ci_method
        )

    return results
