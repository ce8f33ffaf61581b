"""
Combined Probability Module

Fisher's method for pooling independent p-values: T = -2 * sum(ln p_i)
follows a chi-squared distribution with 2k degrees of freedom under the
joint null.

Public API:
    combine_probabilities(p_values) -> CombinedProbability
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Sequence, Union

from scipy import stats

from .errors import DomainError, InsufficientDataError


@dataclass(frozen=True)
class CombinedProbability:
    """
    Result of Fisher's combination.

    Attributes:
        statistic: T = -2 * sum(ln p_i)
        p_value: Upper tail of chi-squared(2k) at T
        n_tests: Number of combined p-values (k)
    """
    statistic: float
    p_value: float
    n_tests: int

    @property
    def degrees_of_freedom(self) -> int:
        return 2 * self.n_tests

    def to_dict(self) -> Dict[str, Any]:
        return {
            'statistic': self.statistic,
            'p_value': self.p_value,
            'n_tests': self.n_tests,
            'df': self.degrees_of_freedom
        }


def combine_probabilities(
    p_values: Union[Mapping[Any, float], Sequence[float]]
) -> CombinedProbability:
    """
    Combine independent p-values with Fisher's method.

    Args:
        p_values: Mapping group -> p-value, or a plain sequence of p-values.
            Every value must lie in (0, 1].

    Returns:
        CombinedProbability with the statistic and pooled p-value

    Raises:
        InsufficientDataError: If no p-values are given
        DomainError: If any p-value is NaN, <= 0 or > 1
    """
    if isinstance(p_values, Mapping):
        labelled = list(p_values.items())
    else:
        labelled = list(enumerate(p_values))

    if not labelled:
        raise InsufficientDataError("Fisher's method needs at least one p-value")

    for label, p in labelled:
        if p is None or math.isnan(p) or p <= 0.0 or p > 1.0:
            raise DomainError(f"p-value for {label!r} must lie in (0, 1], got {p}")

    # fsum keeps the statistic independent of input order
    statistic = -2.0 * math.fsum(math.log(p) for _, p in labelled)
    k = len(labelled)
    p_value = float(stats.chi2.sf(statistic, 2 * k))

    return CombinedProbability(
        statistic=statistic,
        p_value=p_value,
        n_tests=k
    )
