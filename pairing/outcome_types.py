"""
Outcome Types Module

Defines data structures for MIC observations and the signed outcomes
produced when two observations are paired.

Biological context:
- MIC: minimum inhibitory concentration, measured by two-fold serial
  dilution, so log2(MIC) moves in whole steps
- Parent genotype: the clone as isolated from the evolution experiment
- Daughter genotype: the same clone after selection for resistance
"""

import math
from enum import Enum
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from analysis.errors import DomainError


class Antibiotic(Enum):
    """
    Antibiotics assayed in the MIC table.

    AMP: ampicillin
    CRO: ceftriaxone
    CIP: ciprofloxacin
    TET: tetracycline
    """
    AMP = "amp"
    CRO = "cro"
    CIP = "cip"
    TET = "tet"


class Genotype(Enum):
    """Parent clone or its resistance-selected daughter."""
    PARENT = "parent"
    DAUGHTER = "daughter"


class Direction(Enum):
    """
    Direction a compared value is expected to move from its reference.

    LOWER: loss of resistance under relaxed selection
    HIGHER: gain of resistance (evolvability)
    """
    LOWER = "lower"
    HIGHER = "higher"


class PairingKey(Enum):
    """Column linking a compared observation to its reference."""
    PAIRED_ID = "paired_id"
    ROW_ID = "row_id"


@dataclass(frozen=True)
class Observation:
    """
    One MIC measurement.

    Attributes:
        strain: Strain or time-point label
        antibiotic: Antibiotic the MIC was measured against (None for
            single-drug tables such as the time series)
        genotype: Parent or daughter
        paired_id: Key linking a derived strain to its ancestor
        row_id: Key linking a parent to its daughter
        mic: Concentration, strictly positive

    Example:
        >>> obs = Observation("REL606", Antibiotic.AMP, Genotype.PARENT, 1, 1, 2.0)
        >>> obs.log2_mic
        1.0
    """
    strain: str
    antibiotic: Optional[Antibiotic]
    genotype: Genotype
    paired_id: Any
    row_id: int
    mic: float

    def __post_init__(self):
        """Validate the MIC value."""
        if not self.mic > 0:
            raise DomainError(
                f"MIC must be > 0, got {self.mic} for strain {self.strain} "
                f"({self.drug_label}, {self.genotype.value})"
            )

    @property
    def drug_label(self) -> str:
        return self.antibiotic.value if self.antibiotic else "-"

    @property
    def log2_mic(self) -> float:
        """MIC on the two-fold dilution scale."""
        return math.log2(self.mic)

    def key(self, pairing_key: PairingKey) -> Any:
        """Return the value of the requested pairing key."""
        return getattr(self, pairing_key.value)


@dataclass(frozen=True)
class PairedOutcome:
    """
    Signed result of comparing an observation with its reference.

    Attributes:
        strain: Strain of the compared observation
        antibiotic: Antibiotic of both observations
        sign: +1 (moved in the expected direction), 0 (tie), -1 (otherwise)
    """
    strain: str
    antibiotic: Optional[Antibiotic]
    sign: int

    def __post_init__(self):
        if self.sign not in (-1, 0, 1):
            raise ValueError(f"sign must be -1, 0 or 1, got {self.sign}")


@dataclass(frozen=True)
class TrinomialOutcomeSet:
    """
    Counts of signed outcomes for one (strain, antibiotic) group.

    Attributes:
        n_pos: Outcomes in the expected direction
        n_tie: Ties
        n_neg: Outcomes against the expected direction
    """
    n_pos: int
    n_tie: int
    n_neg: int

    @classmethod
    def from_signs(cls, signs: Iterable[int]) -> 'TrinomialOutcomeSet':
        """Count a sequence of +1/0/-1 signs."""
        counts = {1: 0, 0: 0, -1: 0}
        for sign in signs:
            counts[sign] += 1
        return cls(counts[1], counts[0], counts[-1])

    @property
    def n(self) -> int:
        """Total number of outcomes."""
        return self.n_pos + self.n_tie + self.n_neg

    def to_dict(self) -> Dict[str, int]:
        return {
            'n_pos': self.n_pos,
            'n_tie': self.n_tie,
            'n_neg': self.n_neg
        }
