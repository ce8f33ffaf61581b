"""
Table Conversion Module

Converts the wide MIC tables into immutable Observation lists.

Expected columns:
- MIC table: strain, paired.ID, row.ID, <drug>.parent, <drug>.daughter
  for drug in amp, cro, cip, tet
- Time-series table: strain, row.ID, parent, daughter

Empty MIC cells are skipped. Whether the resulting groups are complete is
checked later, when outcomes are grouped.
"""

from typing import List, Optional, Sequence

import pandas as pd

from .outcome_types import Antibiotic, Genotype, Observation


MIC_ID_COLUMNS = ('strain', 'paired.ID', 'row.ID')
TIME_SERIES_ID_COLUMNS = ('strain', 'row.ID')


def _require_columns(table: pd.DataFrame, columns: Sequence[str], name: str):
    missing = [col for col in columns if col not in table.columns]
    if missing:
        raise ValueError(f"{name} is missing required columns: {missing}")


def mic_table_observations(
    mic_table: pd.DataFrame,
    antibiotics: Optional[Sequence[Antibiotic]] = None
) -> List[Observation]:
    """
    Convert the wide MIC table to observations.

    Args:
        mic_table: One row per clone, one column per (antibiotic, genotype)
        antibiotics: Antibiotics to extract (default: all four)

    Returns:
        List of Observation, one per non-missing MIC cell
    """
    if antibiotics is None:
        antibiotics = list(Antibiotic)

    columns = list(MIC_ID_COLUMNS)
    for antibiotic in antibiotics:
        columns += [f'{antibiotic.value}.{g.value}' for g in Genotype]
    _require_columns(mic_table, columns, 'MIC table')

    observations = []
    for values in mic_table.to_dict('records'):
        for antibiotic in antibiotics:
            for genotype in Genotype:
                mic = values[f'{antibiotic.value}.{genotype.value}']
                if pd.isna(mic):
                    continue
                observations.append(Observation(
                    strain=str(values['strain']),
                    antibiotic=antibiotic,
                    genotype=genotype,
                    paired_id=values['paired.ID'],
                    row_id=int(values['row.ID']),
                    mic=float(mic)
                ))

    return observations


def time_series_observations(ts_table: pd.DataFrame) -> List[Observation]:
    """
    Convert the time-series MIC table to observations.

    Strain labels are time points ("0", "0.5A", ..., "10B") and are kept
    as strings. The table covers a single drug, so antibiotic is None.
    """
    _require_columns(
        ts_table,
        list(TIME_SERIES_ID_COLUMNS) + [g.value for g in Genotype],
        'Time-series table'
    )

    observations = []
    for record in ts_table.to_dict('records'):
        for genotype in Genotype:
            mic = record[genotype.value]
            if pd.isna(mic):
                continue
            observations.append(Observation(
                strain=str(record['strain']),
                antibiotic=None,
                genotype=genotype,
                paired_id=None,
                row_id=int(record['row.ID']),
                mic=float(mic)
            ))

    return observations
