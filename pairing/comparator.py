"""
Paired Comparator Module

Turns pairs of MIC observations into signed ternary outcomes and integer
evolvability values.

Two pairings are used by the study:
- paired_id: a derived clone against its ancestor (expected LOWER, loss of
  resistance under relaxed selection)
- row_id: a parent clone against its resistance-selected daughter (expected
  HIGHER, evolvability)

Both go through the same parameterized comparison; only the key and the
direction change.

Public API:
    compare(reference_value, compared_value, direction) -> int
    pair_observations(references, compared, pairing_key, direction) -> list
    group_outcomes(outcomes, expected_groups) -> dict
    compute_evolvability(parent, daughter) -> int
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from analysis.errors import PairingError, InsufficientDataError
from .outcome_types import (
    Antibiotic,
    Direction,
    Genotype,
    Observation,
    PairedOutcome,
    PairingKey,
    TrinomialOutcomeSet
)


GroupKey = Tuple[str, Optional[Antibiotic]]


def compare(
    reference_value: float,
    compared_value: float,
    direction: Direction,
    tie_tolerance: float = 0.0
) -> int:
    """
    Sign of a compared value relative to its reference.

    Args:
        reference_value: Reference (ancestor or parent) log2 MIC
        compared_value: Compared (derived or daughter) log2 MIC
        direction: Direction the compared value is expected to move
        tie_tolerance: Largest absolute difference still counted as a tie

    Returns:
        +1 if compared_value strictly moved in the expected direction,
        0 for a tie, -1 otherwise

    Example:
        >>> compare(3.0, 1.0, Direction.LOWER)
        1
    """
    difference = compared_value - reference_value

    if abs(difference) <= tie_tolerance:
        return 0

    if direction == Direction.LOWER:
        return 1 if difference < 0 else -1
    if direction == Direction.HIGHER:
        return 1 if difference > 0 else -1

    raise ValueError(f"Unknown direction: {direction}")


def _lookup_key(observation: Observation, pairing_key: PairingKey) -> tuple:
    """
    Index key shared by an observation and its reference.

    A parent and its daughter sit on the same row and strain, so row_id
    pairing is scoped to the strain. Ancestors carry a different strain
    label, so paired_id pairing is not.
    """
    key = (observation.key(pairing_key), observation.antibiotic)
    if pairing_key == PairingKey.ROW_ID:
        return (observation.strain,) + key
    return key


def _index_references(
    references: Iterable[Observation],
    pairing_key: PairingKey
) -> Dict[tuple, List[Observation]]:
    """Index reference observations by their lookup key."""
    index = defaultdict(list)
    for ref in references:
        index[_lookup_key(ref, pairing_key)].append(ref)
    return index


def find_reference(
    observation: Observation,
    index: Dict[tuple, List[Observation]],
    pairing_key: PairingKey
) -> Observation:
    """
    Return the single reference matching an observation.

    Raises:
        PairingError: If zero or several references share the key
    """
    key_value = observation.key(pairing_key)
    matches = index.get(_lookup_key(observation, pairing_key), [])

    if len(matches) != 1:
        problem = "no matching" if not matches else f"{len(matches)} matching"
        raise PairingError(
            f"{problem} reference rows for strain {observation.strain} "
            f"({pairing_key.value}={key_value!r}, antibiotic={observation.drug_label})"
        )

    return matches[0]


def pair_observations(
    references: Sequence[Observation],
    compared: Sequence[Observation],
    pairing_key: PairingKey,
    direction: Direction,
    tie_tolerance: float = 0.0
) -> List[PairedOutcome]:
    """
    Compare every observation with its unique reference.

    Args:
        references: Ancestor or parent observations
        compared: Derived or daughter observations
        pairing_key: Column shared by a compared row and its reference
        direction: Expected direction of change
        tie_tolerance: Passed through to compare()

    Returns:
        One PairedOutcome per compared observation, in input order

    Raises:
        PairingError: If a compared observation has zero or several references
    """
    index = _index_references(references, pairing_key)
    outcomes = []

    for observation in compared:
        reference = find_reference(observation, index, pairing_key)
        sign = compare(
            reference.log2_mic,
            observation.log2_mic,
            direction,
            tie_tolerance=tie_tolerance
        )
        outcomes.append(PairedOutcome(observation.strain, observation.antibiotic, sign))

    return outcomes


def group_outcomes(
    outcomes: Iterable[PairedOutcome],
    expected_groups: Optional[Iterable[GroupKey]] = None
) -> Dict[GroupKey, TrinomialOutcomeSet]:
    """
    Count outcomes per (strain, antibiotic) group.

    Args:
        outcomes: Paired outcomes to count
        expected_groups: Groups that must all be present. When given, the
            result has exactly these keys, in this order.

    Returns:
        Dict mapping (strain, antibiotic) -> TrinomialOutcomeSet

    Raises:
        InsufficientDataError: If an expected group has no outcomes
    """
    signs = defaultdict(list)
    for outcome in outcomes:
        signs[(outcome.strain, outcome.antibiotic)].append(outcome.sign)

    if expected_groups is None:
        keys = list(signs)
    else:
        keys = list(expected_groups)

    grouped = {}
    for key in keys:
        if not signs.get(key):
            strain, antibiotic = key
            drug = antibiotic.value if antibiotic else '-'
            raise InsufficientDataError(
                f"No paired outcomes for strain {strain}, antibiotic {drug}"
            )
        grouped[key] = TrinomialOutcomeSet.from_signs(signs[key])

    return grouped


def compute_evolvability(parent: Observation, daughter: Observation) -> int:
    """
    Number of two-fold dilution steps gained by the daughter.

    Fractional log2 differences are below assay resolution and are
    rounded to the nearest integer.
    """
    return int(round(daughter.log2_mic - parent.log2_mic))


def evolvability_values(
    observations: Sequence[Observation]
) -> List[Dict[str, object]]:
    """
    Evolvability of every daughter observation.

    Daughters are matched to parents by row_id and antibiotic.

    Returns:
        List of dicts with strain, antibiotic, row_id and evolvability

    Raises:
        PairingError: If a daughter has zero or several parents
    """
    parents = [o for o in observations if o.genotype == Genotype.PARENT]
    daughters = [o for o in observations if o.genotype == Genotype.DAUGHTER]

    index = _index_references(parents, PairingKey.ROW_ID)
    values = []

    for daughter in daughters:
        parent = find_reference(daughter, index, PairingKey.ROW_ID)
        values.append({
            'strain': daughter.strain,
            'antibiotic': daughter.drug_label,
            'row_id': daughter.row_id,
            'evolvability': compute_evolvability(parent, daughter)
        })

    return values
