"""
Errors Module

Typed exceptions raised by the analysis pipeline. All of them derive from
ValueError so callers that already guard against invalid input keep working.

- PairingError: a compared observation has zero or several reference rows
- InsufficientDataError: an empty group, or no replicates at all
- DomainError: a value outside the domain of the formula (log of zero,
  non-positive p-value, odd trinomial parity, non-positive MIC)
"""


class AnalysisError(ValueError):
    """Base class for all analysis failures."""


class PairingError(AnalysisError):
    """No unique reference observation for a pairing key."""


class InsufficientDataError(AnalysisError):
    """A group or dataset holds too few observations to be analysed."""


class DomainError(AnalysisError):
    """An input lies outside the mathematical domain of a calculation."""
