"""Model adapter interface and the generic results container.

A model adapter exposes what a summary table needs from one fitted model:
coefficient names and values, standard errors and, optionally, p-values,
formula structure, footer statistics and "other statistics" (fixed effects,
clusters, first-stage diagnostics, random effects). Optional capabilities
return :data:`UNSUPPORTED` instead of raising.
"""

# regtables/models/base.py
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

import numpy as np
import pandas as pd
from scipy import stats

from regtables.core.names import CoefName, as_coefname, parse_coef_name
from regtables.utils.formula import Formula, parse_formula

if TYPE_CHECKING:  # import-only typing
    from collections.abc import Sequence

    from numpy.typing import NDArray

__all__ = [
    "UNSUPPORTED",
    "EstimationResult",
    "ModelAdapter",
    "ci_level_to_alpha",
    "normalize_ci_level",
]

_LOGGER = logging.getLogger(__name__)


class _Unsupported(Enum):
    UNSUPPORTED = "UNSUPPORTED"

    def __repr__(self) -> str:
        return "UNSUPPORTED"

    def __bool__(self) -> bool:
        return False


UNSUPPORTED = _Unsupported.UNSUPPORTED
"""Returned by optional adapter methods the model family does not provide."""

OTHER_STAT_KINDS = ("fe", "clusters", "first_stage", "randomeffects")


def normalize_ci_level(level: float | None, *, default: float = 0.95) -> float:
    """Normalize confidence level to a probability (0, 1)."""
    if not (0.0 < float(default) < 1.0):
        raise ValueError("default confidence level must lie in (0, 1)")
    if level is None:
        coerced = float(default)
    else:
        coerced = float(level)
        # Accept percentage-style inputs (e.g., 90 for 90%)
        if coerced > 1.0:
            coerced /= 100.0
    if not (0.0 < coerced < 1.0):
        raise ValueError("confint_level must be in (0, 1); supply e.g. 0.95 or 95")
    return coerced


def ci_level_to_alpha(level: float | None, *, default: float = 0.95) -> float:
    """Return the corresponding tail probability ``alpha`` for a confidence level."""
    return 1.0 - normalize_ci_level(level, default=default)


class ModelAdapter(ABC):
    """Capability interface consumed by the table builder.

    Subclasses must implement :meth:`coefficient_values` and
    :meth:`standard_errors`. Everything else has a default derived from those
    two and from :meth:`formula`, or returns :data:`UNSUPPORTED`.
    """

    @abstractmethod
    def coefficient_values(self) -> NDArray[np.float64]:
        """Point estimates, in coefficient order."""

    @abstractmethod
    def standard_errors(self) -> NDArray[np.float64]:
        """Standard errors, in coefficient order."""

    def coefficient_names(self) -> list[CoefName]:
        """Coefficient names; defaults to the right-hand side of :meth:`formula`."""
        form = self.formula()
        if form is UNSUPPORTED:
            raise TypeError(
                f"{type(self).__name__} provides neither coefficient names nor a formula.",
            )
        return list(form.rhs)

    def p_values(self) -> NDArray[np.float64]:
        """Two-sided p-values from F(1, dof) on t², normal when dof is unknown."""
        coefs = np.asarray(self.coefficient_values(), dtype=float)
        ses = np.asarray(self.standard_errors(), dtype=float)
        with np.errstate(divide="ignore", invalid="ignore"):
            tt = coefs / ses
        dof = self.dof_residual()
        if dof is UNSUPPORTED or dof is None or not np.isfinite(dof) or dof <= 0:
            return 2.0 * stats.norm.sf(np.abs(tt))
        return stats.f.sf(tt**2, 1, float(dof))

    def confidence_interval(self, level: float = 0.95) -> NDArray[np.float64]:
        """``(k, 2)`` array of lower and upper bounds."""
        alpha = ci_level_to_alpha(level)
        coefs = np.asarray(self.coefficient_values(), dtype=float)
        ses = np.asarray(self.standard_errors(), dtype=float)
        dof = self.dof_residual()
        if dof is UNSUPPORTED or dof is None or not np.isfinite(dof) or dof <= 0:
            q = stats.norm.ppf(1.0 - alpha / 2.0)
        else:
            q = stats.t.ppf(1.0 - alpha / 2.0, float(dof))
        return np.column_stack([coefs - q * ses, coefs + q * ses])

    def formula(self) -> Formula | Any:
        return UNSUPPORTED

    def response_name(self) -> CoefName | Any:
        form = self.formula()
        if form is UNSUPPORTED:
            return UNSUPPORTED
        return form.lhs

    def dof_residual(self) -> float | Any:
        return UNSUPPORTED

    def nobs(self) -> int | Any:
        return UNSUPPORTED

    def vcov(self) -> NDArray[np.float64] | Any:
        return UNSUPPORTED

    def other_statistics(self, kind: str) -> list[tuple[Any, Any]] | Any:
        """``(name, value)`` pairs for ``kind`` in :data:`OTHER_STAT_KINDS`."""
        return UNSUPPORTED

    def default_statistics(self) -> list[Any]:
        return ["nobs", "r2"]

    def statistic(self, key: str) -> Any:
        """Model-level statistic by registry key (``"r2"``, ``"f"``, ...)."""
        return UNSUPPORTED

    def is_linear(self) -> bool:
        return True

    def regression_type(self) -> str:
        return "OLS" if self.is_linear() else "NL"

    def vcov_type(self) -> str:
        return "IID"

    def __add__(self, other: Any) -> ModelAdapter:
        from regtables.models.vcov import VcovSpec, with_vcov

        if isinstance(other, VcovSpec):
            return with_vcov(self, other)
        return NotImplemented

    __radd__ = __add__


# ---------------------------------------------------------------------
# Results container, estimator-agnostic
# ---------------------------------------------------------------------
@dataclass
class EstimationResult(ModelAdapter):
    """Container for estimation results produced outside of regtables.

    ``params`` carries coefficient names in its index. ``se`` may be omitted
    when ``vcov_matrix`` is given. ``statistics`` maps registry keys (``"r2"``,
    ``"adjr2"``, ``"f"``, ...) to values. ``model_info`` recognises the keys
    ``"Estimator"``, ``"VcovType"``, ``"DepVar"``, ``"Linear"`` and
    ``"DefaultStatistics"``. Fixed effects and clusters default to the
    ``fe(...)`` and ``cluster(...)`` terms of ``formula_text``.
    """

    params: pd.Series
    se: pd.Series | None = None
    vcov_matrix: NDArray[np.float64] | pd.DataFrame | None = None
    pvalues: pd.Series | None = None
    n_obs: int | None = None
    dof_resid: float | None = None
    formula_text: str | None = None
    model_info: dict[str, Any] = field(default_factory=dict)
    statistics: dict[str, Any] = field(default_factory=dict)
    fixed_effects: Sequence[Any] | None = None
    clusters: dict[Any, int] | None = None
    first_stage: dict[Any, float] | None = None
    random_effects: dict[Any, float] | None = None
    extra: dict[str, Any] = field(default_factory=dict)
    """Dictionary for estimator-specific values that do not go in the table."""

    def __post_init__(self) -> None:
        if not isinstance(self.params, pd.Series):
            self.params = pd.Series(self.params)
        if self.se is None and self.vcov_matrix is None:
            raise ValueError("EstimationResult needs either se or vcov_matrix.")
        if self.se is not None and len(self.se) != len(self.params):
            raise ValueError(f"se has length {len(self.se)} but params has length {len(self.params)}.")

    def __repr__(self) -> str:  # pragma: no cover - convenience only
        head = ", ".join(f"{k}={v}" for k, v in self.model_info.items())
        return f"EstimationResult(k={len(self.params)}, n={self.n_obs}, {head})"

    def coefficient_values(self) -> NDArray[np.float64]:
        return self.params.to_numpy(dtype=float)

    def standard_errors(self) -> NDArray[np.float64]:
        if self.se is not None:
            return pd.Series(self.se).to_numpy(dtype=float)
        return np.sqrt(np.diag(np.asarray(self.vcov_matrix, dtype=float)))

    def coefficient_names(self) -> list[CoefName]:
        return [n if isinstance(n, CoefName) else parse_coef_name(str(n)) for n in self.params.index]

    def p_values(self) -> NDArray[np.float64]:
        if self.pvalues is not None:
            return pd.Series(self.pvalues).to_numpy(dtype=float)
        return super().p_values()

    def formula(self) -> Formula | Any:
        if not self.formula_text:
            return UNSUPPORTED
        return parse_formula(self.formula_text)

    def response_name(self) -> CoefName | Any:
        dep = self.model_info.get("DepVar")
        if dep is not None:
            return as_coefname(dep)
        return super().response_name()

    def dof_residual(self) -> float | Any:
        return UNSUPPORTED if self.dof_resid is None else self.dof_resid

    def nobs(self) -> int | Any:
        return UNSUPPORTED if self.n_obs is None else int(self.n_obs)

    def vcov(self) -> NDArray[np.float64] | Any:
        if self.vcov_matrix is None:
            return UNSUPPORTED
        return np.asarray(self.vcov_matrix, dtype=float)

    def statistic(self, key: str) -> Any:
        return self.statistics.get(key, UNSUPPORTED)

    def default_statistics(self) -> list[Any]:
        return list(self.model_info.get("DefaultStatistics", super().default_statistics()))

    def is_linear(self) -> bool:
        return bool(self.model_info.get("Linear", True))

    def regression_type(self) -> str:
        est = self.model_info.get("Estimator")
        return str(est) if est else super().regression_type()

    def vcov_type(self) -> str:
        return str(self.model_info.get("VcovType", "IID"))

    def other_statistics(self, kind: str) -> list[tuple[Any, Any]] | Any:
        if kind not in OTHER_STAT_KINDS:
            raise ValueError(f"Unknown statistic family {kind!r}; expected one of {OTHER_STAT_KINDS}.")
        form = self.formula()
        if kind == "fe":
            if self.fixed_effects is not None:
                return [(name, True) for name in self.fixed_effects]
            if form is not UNSUPPORTED:
                return [(name, True) for name in form.fixed_effects]
            return UNSUPPORTED
        if kind == "clusters":
            if self.clusters is not None:
                return list(self.clusters.items())
            if form is not UNSUPPORTED and form.clusters:
                return [(name, None) for name in form.clusters]
            return UNSUPPORTED
        if kind == "first_stage":
            return UNSUPPORTED if self.first_stage is None else list(self.first_stage.items())
        return UNSUPPORTED if self.random_effects is None else list(self.random_effects.items())
