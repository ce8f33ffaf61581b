"""
Trinomial Test Module

Exact test for paired data with ties (Bian, McAleer & Wong 2011). Each pair
is scored +1, 0 or -1; under the null, +1 and -1 are equally likely and ties
occur with probability p_tie, estimated by n_tie / n.

The probability of the observed net difference nd = |n_pos - n_neg| is

    P(Nd) = sum_{k=0}^{x} n! / ((nd+k)! k! (n-nd-2k)!)
                         * ((1 - p_tie) / 2)^(nd+2k) * p_tie^(n-nd-2k)

with x = (n - nd) / 2. Factorials overflow a double past 170!, so every
term is assembled in log space with gammaln and summed with logsumexp.

Public API:
    trinomial_test(n_pos, n_tie, n_neg) -> float
    difference_probability(n, nd, p_tie) -> float
"""

import numpy as np
from scipy.special import gammaln, logsumexp, xlogy

from .errors import DomainError, InsufficientDataError

# Smallest positive normal double; results are never reported as exactly 0
MIN_PROBABILITY = np.finfo(float).tiny


def _log_factorial(values: np.ndarray) -> np.ndarray:
    return gammaln(values + 1.0)


def difference_probability(n: int, nd: int, p_tie: float) -> float:
    """
    Probability of a net difference of exactly nd among n trinomial pairs.

    Args:
        n: Number of pairs (> 0)
        nd: Absolute net difference |n_pos - n_neg|
        p_tie: Probability of a tie, in [0, 1]

    Returns:
        P(Nd = nd), unclamped

    Raises:
        DomainError: If n - nd is odd or the arguments are out of range
    """
    if n <= 0:
        raise InsufficientDataError(f"Trinomial test needs n > 0, got n={n}")
    if nd < 0 or nd > n:
        raise DomainError(f"Net difference must lie in [0, n], got nd={nd}, n={n}")
    if not 0.0 <= p_tie <= 1.0:
        raise DomainError(f"p_tie must lie in [0, 1], got {p_tie}")
    if (n - nd) % 2 != 0:
        raise DomainError(
            f"n - nd must be even for the trinomial sum, got n={n}, nd={nd}"
        )

    x = (n - nd) // 2
    k = np.arange(x + 1, dtype=float)
    n_ties = n - nd - 2 * k

    log_coef = (
        _log_factorial(np.float64(n))
        - _log_factorial(nd + k)
        - _log_factorial(k)
        - _log_factorial(n_ties)
    )
    # xlogy treats 0 * log(0) as 0, so 0^0 = 1 when p_tie is 0 or 1
    log_terms = (
        log_coef
        + xlogy(nd + 2 * k, (1.0 - p_tie) / 2.0)
        + xlogy(n_ties, p_tie)
    )

    return float(np.exp(logsumexp(log_terms)))


def trinomial_test(n_pos: int, n_tie: int, n_neg: int) -> float:
    """
    One-sided trinomial test probability with direction correction.

    Args:
        n_pos: Pairs that moved in the expected direction
        n_tie: Tied pairs
        n_neg: Pairs that moved against the expected direction

    Returns:
        P(Nd) when n_pos >= n_neg, otherwise 1 - P(Nd), clamped to
        [MIN_PROBABILITY, 1]

    Raises:
        InsufficientDataError: If there are no pairs
        DomainError: If a count is negative or n - nd is odd

    Example:
        >>> round(trinomial_test(7, 2, 1), 9)
        0.015532032
    """
    counts = (n_pos, n_tie, n_neg)
    if any(c < 0 for c in counts):
        raise DomainError(f"Outcome counts must be non-negative, got {counts}")

    n = n_pos + n_tie + n_neg
    if n == 0:
        raise InsufficientDataError("Trinomial test is undefined for n = 0")

    nd = abs(n_pos - n_neg)
    p_tie = n_tie / n

    probability = difference_probability(n, nd, p_tie)

    if n_pos < n_neg:
        probability = 1.0 - probability

    if np.isnan(probability):
        raise DomainError(f"Trinomial probability is NaN for counts {counts}")

    return float(np.clip(probability, MIN_PROBABILITY, 1.0))
