"""Exception and warning taxonomy.

Structural problems (bad selectors, malformed covariance specs) are raised at
construction time. Numerical trouble inside a single statistic is reported
with :class:`StatisticComputationWarning` and rendered as a blank cell.
"""
from __future__ import annotations

__all__ = [
    "AmbiguousSpecError",
    "DimensionMismatchError",
    "LabelCollisionError",
    "NonSymmetricWarning",
    "RegTablesError",
    "SelectorRangeError",
    "StatisticComputationWarning",
]


class RegTablesError(Exception):
    """Base class for all regtables errors."""


class SelectorRangeError(RegTablesError, IndexError):
    """Index, range or relative selector outside the axis bounds."""


class AmbiguousSpecError(RegTablesError, TypeError):
    """Covariance spec with no materialization rule."""


class DimensionMismatchError(RegTablesError, ValueError):
    """Covariance matrix shape does not match the number of coefficients."""


class LabelCollisionError(RegTablesError, ValueError):
    """Distinct coefficients relabeled onto the same row under ``relabel_collisions='raise'``."""


class NonSymmetricWarning(UserWarning):
    """Covariance matrix is not symmetric within tolerance."""


class StatisticComputationWarning(RuntimeWarning):
    """A statistic could not be computed and is shown as missing."""
