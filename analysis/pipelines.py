"""
Pipelines Module

End-to-end analyses for the three study questions. Every function takes
its input tables and an AnalysisConfig explicitly and returns new tables;
nothing is shared between calls.

Public API:
    trinomial_table(grouped) -> pd.DataFrame
    combine_by_antibiotic(p_table) -> pd.DataFrame
    resistance_loss_analysis(mic_table, config) -> dict
    evolvability_analysis(mic_table, config) -> dict
    time_series_evolvability_analysis(ts_table, config) -> dict
    mutation_rate_analysis(colony_table, cell_table, config) -> pd.DataFrame
    cell_yield_comparison(cell_table, strain_a, strain_b) -> dict
"""

from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from pairing.comparator import (
    GroupKey,
    evolvability_values,
    group_outcomes,
    pair_observations
)
from pairing.outcome_types import (
    Antibiotic,
    Direction,
    Genotype,
    PairingKey,
    TrinomialOutcomeSet
)
from pairing.tables import mic_table_observations, time_series_observations

from .combined_probability import combine_probabilities
from .config import AnalysisConfig
from .errors import AnalysisError, InsufficientDataError
from .fluctuation import analyze_fluctuation
from .standard_tests import (
    dunnett_test,
    kruskal_wallis,
    shapiro_wilk,
    variance_f_test,
    welch_t_test
)
from .trinomial import trinomial_test


def trinomial_table(grouped: Dict[GroupKey, TrinomialOutcomeSet]) -> pd.DataFrame:
    """
    Run the trinomial test on every (strain, antibiotic) group.

    Returns:
        DataFrame with strain, antibiotic, n_pos, n_tie, n_neg, n and p_value
    """
    rows = []
    for (strain, antibiotic), counts in grouped.items():
        drug = antibiotic.value if antibiotic else '-'
        try:
            p_value = trinomial_test(counts.n_pos, counts.n_tie, counts.n_neg)
        except AnalysisError as e:
            raise type(e)(f"Strain {strain}, antibiotic {drug}: {e}") from e

        rows.append({
            'strain': strain,
            'antibiotic': drug,
            **counts.to_dict(),
            'n': counts.n,
            'p_value': p_value
        })

    return pd.DataFrame(
        rows,
        columns=['strain', 'antibiotic', 'n_pos', 'n_tie', 'n_neg', 'n', 'p_value']
    )


def combine_by_antibiotic(p_table: pd.DataFrame) -> pd.DataFrame:
    """
    Fisher-combine the per-strain p-values of each antibiotic.

    Returns:
        DataFrame with antibiotic, statistic, df, n_tests and p_value
    """
    rows = []
    for antibiotic, group in p_table.groupby('antibiotic', sort=False):
        combined = combine_probabilities(dict(zip(group['strain'], group['p_value'])))
        rows.append({'antibiotic': antibiotic, **combined.to_dict()})

    return pd.DataFrame(rows, columns=['antibiotic', 'statistic', 'df', 'n_tests', 'p_value'])


def _expected_groups(strains: List[str], antibiotics: List[Antibiotic]) -> List[GroupKey]:
    return [(strain, antibiotic) for strain in strains for antibiotic in antibiotics]


def _unique(values) -> List[str]:
    return list(dict.fromkeys(values))


def resistance_loss_analysis(
    mic_table: pd.DataFrame,
    config: Optional[AnalysisConfig] = None
) -> Dict[str, Any]:
    """
    Did derived clones lose resistance relative to their ancestors?

    Parent-genotype MICs of each derived strain are paired with the ancestor
    row sharing their paired.ID; a strictly lower MIC counts as +1.

    Returns:
        Dict with 'outcomes' (per-group counts and p-values) and
        'combined' (per-antibiotic Fisher combination)
    """
    if config is None:
        config = AnalysisConfig()

    observations = [
        o for o in mic_table_observations(mic_table)
        if o.genotype == Genotype.PARENT
    ]
    ancestors = set(config.ancestral_strains)
    references = [o for o in observations if o.strain in ancestors]
    derived = [o for o in observations if o.strain not in ancestors]

    if not references:
        raise InsufficientDataError(
            f"No ancestral rows found for strains {sorted(ancestors)}"
        )

    outcomes = pair_observations(
        references,
        derived,
        PairingKey.PAIRED_ID,
        Direction.LOWER,
        tie_tolerance=config.tie_tolerance
    )

    derived_strains = _unique(
        str(s) for s in mic_table['strain'] if str(s) not in ancestors
    )
    grouped = group_outcomes(
        outcomes, _expected_groups(derived_strains, list(Antibiotic))
    )

    p_table = trinomial_table(grouped)
    return {'outcomes': p_table, 'combined': combine_by_antibiotic(p_table)}


def evolvability_analysis(
    mic_table: pd.DataFrame,
    config: Optional[AnalysisConfig] = None
) -> Dict[str, Any]:
    """
    Can each strain re-evolve resistance?

    Daughter MICs are paired with the parent of the same row.ID; a strictly
    higher daughter MIC counts as +1.

    Returns:
        Dict with 'outcomes', 'combined' and 'evolvability' (integer
        two-fold steps per row)
    """
    if config is None:
        config = AnalysisConfig()

    observations = mic_table_observations(mic_table)
    parents = [o for o in observations if o.genotype == Genotype.PARENT]
    daughters = [o for o in observations if o.genotype == Genotype.DAUGHTER]

    outcomes = pair_observations(
        parents,
        daughters,
        PairingKey.ROW_ID,
        Direction.HIGHER,
        tie_tolerance=config.tie_tolerance
    )

    strains = _unique(str(s) for s in mic_table['strain'])
    grouped = group_outcomes(outcomes, _expected_groups(strains, list(Antibiotic)))

    p_table = trinomial_table(grouped)
    return {
        'outcomes': p_table,
        'combined': combine_by_antibiotic(p_table),
        'evolvability': pd.DataFrame(
            evolvability_values(observations),
            columns=['strain', 'antibiotic', 'row_id', 'evolvability']
        )
    }


def time_series_evolvability_analysis(
    ts_table: pd.DataFrame,
    config: Optional[AnalysisConfig] = None
) -> Dict[str, Any]:
    """
    Does evolvability change over the course of the evolution experiment?

    Evolvability is computed for every row, then compared across time
    points with Kruskal-Wallis and against the control time point with
    Dunnett's test.

    Returns:
        Dict with 'evolvability' (per-row values), 'summary' (per time
        point mean/median/n), 'kruskal' and 'dunnett'
    """
    if config is None:
        config = AnalysisConfig()

    values = pd.DataFrame(
        evolvability_values(time_series_observations(ts_table)),
        columns=['strain', 'antibiotic', 'row_id', 'evolvability']
    )
    if values.empty:
        raise InsufficientDataError("Time-series table holds no parent/daughter pairs")

    time_points = _unique(str(s) for s in ts_table['strain'])
    groups = {}
    for time_point in time_points:
        group = values.loc[values['strain'] == time_point, 'evolvability']
        if group.empty:
            raise InsufficientDataError(f"No evolvability values for time point {time_point}")
        groups[time_point] = group.to_numpy(dtype=float)

    if config.control_time_point not in groups:
        raise InsufficientDataError(
            f"Control time point {config.control_time_point!r} is not in the table "
            f"(time points: {time_points}); choose one with --control-time-point"
        )

    summary = pd.DataFrame([
        {
            'strain': time_point,
            'n': len(group),
            'mean': float(np.mean(group)),
            'median': float(np.median(group))
        }
        for time_point, group in groups.items()
    ])

    return {
        'evolvability': values,
        'summary': summary,
        'kruskal': kruskal_wallis(groups),
        'dunnett': dunnett_test(groups, control=config.control_time_point)
    }


def mutation_rate_analysis(
    colony_table: pd.DataFrame,
    cell_table: pd.DataFrame,
    config: Optional[AnalysisConfig] = None
) -> pd.DataFrame:
    """
    Per-strain mutation rates with confidence intervals.

    Returns:
        DataFrame, one row per strain (see FluctuationResult.to_dict)
    """
    results = analyze_fluctuation(colony_table, cell_table, config)
    return pd.DataFrame([r.to_dict() for r in results.values()])


def cell_yield_comparison(
    cell_table: pd.DataFrame,
    strain_a: str,
    strain_b: str
) -> Dict[str, Any]:
    """
    Compare the cell yields of two strains.

    Shapiro-Wilk checks normality of each sample, the F-test checks equal
    variances, and Welch's t-test compares the means.
    """
    strains = cell_table['strain'].astype(str)
    a = cell_table.loc[strains == str(strain_a), 'cell.count'].to_numpy(dtype=float)
    b = cell_table.loc[strains == str(strain_b), 'cell.count'].to_numpy(dtype=float)

    return {
        'strains': (str(strain_a), str(strain_b)),
        'shapiro': {
            str(strain_a): shapiro_wilk(a),
            str(strain_b): shapiro_wilk(b)
        },
        'f_test': variance_f_test(a, b),
        'welch': welch_t_test(a, b)
    }
