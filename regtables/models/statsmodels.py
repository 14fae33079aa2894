"""Adapters for third-party result objects and adapter dispatch.

:class:`StatsmodelsAdapter` reads statsmodels- and linearmodels-style result
objects by duck typing (``params``, ``bse`` or ``std_errors``, ``pvalues``,
``df_resid``, ``nobs``, ``rsquared`` ...), so neither package is a hard
dependency. :func:`as_adapter` picks an adapter for any supported input.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import suppress
from typing import Any

import numpy as np
import pandas as pd

from regtables.core.names import CoefName, parse_coef_name
from regtables.models.base import UNSUPPORTED, ModelAdapter
from regtables.utils.formula import Formula, parse_formula

__all__ = ["ADAPTERS", "StatsmodelsAdapter", "as_adapter", "register_adapter"]

_LOGGER = logging.getLogger(__name__)

# registry key -> candidate attribute names, first hit wins
_STAT_ATTRS: dict[str, tuple[str, ...]] = {
    "r2": ("rsquared",),
    "adjr2": ("rsquared_adj",),
    "r2_within": ("rsquared_within",),
    "pseudo_r2": ("prsquared",),
    "r2_mcfadden": ("prsquared",),
    "ll": ("llf", "loglik"),
    "aic": ("aic",),
    "bic": ("bic",),
    "f": ("fvalue",),
    "p": ("f_pvalue",),
}

_VCOV_NAMES = {
    "nonrobust": "IID",
    "unadjusted": "IID",
    "homoskedastic": "IID",
    "robust": "Robust",
    "heteroskedastic": "Robust",
    "cluster": "Cluster",
    "clustered": "Cluster",
    "hac": "HAC",
    "kernel": "HAC",
}


def _scalar(value: Any) -> Any:
    if value is None:
        return UNSUPPORTED
    if callable(value):
        value = value()
    with suppress(TypeError, ValueError):
        return float(value)
    return UNSUPPORTED


class StatsmodelsAdapter(ModelAdapter):
    """Duck-typed adapter over a fitted statsmodels or linearmodels result."""

    def __init__(self, result: Any) -> None:
        if not hasattr(result, "params"):
            raise TypeError(f"{type(result).__name__} has no 'params'; cannot build a table column from it.")
        self.result = result

    def __repr__(self) -> str:  # pragma: no cover - convenience only
        return f"StatsmodelsAdapter({type(self.result).__name__})"

    @property
    def _model(self) -> Any:
        return getattr(self.result, "model", None)

    def _params(self) -> pd.Series:
        params = self.result.params
        if isinstance(params, pd.Series):
            return params
        names = getattr(self._model, "exog_names", None)
        return pd.Series(np.asarray(params, dtype=float), index=names)

    def coefficient_values(self) -> np.ndarray:
        return self._params().to_numpy(dtype=float)

    def standard_errors(self) -> np.ndarray:
        for attr in ("bse", "std_errors"):
            se = getattr(self.result, attr, None)
            if se is not None:
                return np.asarray(se, dtype=float).reshape(-1)
        return np.sqrt(np.diag(self.vcov()))

    def coefficient_names(self) -> list[CoefName]:
        params = self._params()
        if params.index is None or isinstance(params.index, pd.RangeIndex):
            return super().coefficient_names()
        return [parse_coef_name(str(n)) for n in params.index]

    def p_values(self) -> np.ndarray:
        pv = getattr(self.result, "pvalues", None)
        if pv is None:
            return super().p_values()
        return np.asarray(pv, dtype=float).reshape(-1)

    def formula(self) -> Formula | Any:
        text = getattr(self._model, "formula", None)
        if not isinstance(text, str):
            return UNSUPPORTED
        try:
            return parse_formula(text)
        except ValueError as exc:
            _LOGGER.debug("Could not parse formula %r: %s", text, exc)
            return UNSUPPORTED

    def response_name(self) -> CoefName | Any:
        form = self.formula()
        if form is not UNSUPPORTED:
            return form.lhs
        name = getattr(self._model, "endog_names", None)
        if name is None:
            dep = getattr(self._model, "dependent", None)
            name = getattr(dep, "vars", [None])[0] if dep is not None else None
        return UNSUPPORTED if name is None else parse_coef_name(str(name))

    def dof_residual(self) -> float | Any:
        return _scalar(getattr(self.result, "df_resid", None))

    def nobs(self) -> int | Any:
        n = _scalar(getattr(self.result, "nobs", None))
        return n if n is UNSUPPORTED else int(n)

    def vcov(self) -> np.ndarray | Any:
        cov = getattr(self.result, "cov_params", None)
        if cov is None:
            cov = getattr(self.result, "cov", None)
        if cov is None:
            return UNSUPPORTED
        if callable(cov):
            cov = cov()
        return np.asarray(cov, dtype=float)

    def statistic(self, key: str) -> Any:
        if key in {"f", "p"}:
            fstat = getattr(self.result, "f_statistic", None)
            if fstat is not None and not callable(fstat):
                return _scalar(getattr(fstat, "stat" if key == "f" else "pval", None))
        if key == "pseudo_r2" and not hasattr(self.result, "prsquared"):
            fn = getattr(self.result, "pseudo_rsquared", None)
            return _scalar(fn) if fn is not None else UNSUPPORTED
        for attr in _STAT_ATTRS.get(key, ()):
            if hasattr(self.result, attr):
                return _scalar(getattr(self.result, attr))
        return UNSUPPORTED

    def default_statistics(self) -> list[Any]:
        if not self.is_linear():
            return ["nobs", "pseudo_r2"]
        return ["nobs", "r2"]

    def is_linear(self) -> bool:
        if hasattr(self.result, "prsquared"):
            return False
        family = getattr(self._model, "family", None)
        if family is not None:
            return type(family).__name__ == "Gaussian"
        return True

    def regression_type(self) -> str:
        model = self._model
        if model is None:
            return super().regression_type()
        name = type(model).__name__
        family = getattr(model, "family", None)
        if family is not None:
            return f"{name} ({type(family).__name__})"
        return name

    def vcov_type(self) -> str:
        raw = getattr(self.result, "cov_type", None)
        if raw is None:
            return "IID"
        text = str(raw)
        return _VCOV_NAMES.get(text.lower(), text)

    def other_statistics(self, kind: str) -> list[tuple[Any, Any]] | Any:
        model = self._model
        if kind == "fe":
            effects = []
            if getattr(model, "entity_effects", False):
                effects.append(("Entity", True))
            if getattr(model, "time_effects", False):
                effects.append(("Time", True))
            if effects or hasattr(model, "entity_effects"):
                return effects
            form = self.formula()
            if form is not UNSUPPORTED and form.fixed_effects:
                return [(name, True) for name in form.fixed_effects]
            return UNSUPPORTED
        if kind == "first_stage":
            first = getattr(self.result, "first_stage", None)
            diag = getattr(first, "diagnostics", None)
            if isinstance(diag, pd.DataFrame) and "f.stat" in diag.columns:
                return [(str(idx), float(val)) for idx, val in diag["f.stat"].items()]
            return UNSUPPORTED
        if kind == "clusters":
            if self.vcov_type() != "Cluster":
                return UNSUPPORTED
            groups = (getattr(self.result, "cov_kwds", None) or {}).get("groups")
            count = None if groups is None else int(pd.unique(np.asarray(groups).reshape(-1)).size)
            return [("cluster", count)]
        return UNSUPPORTED


# ---------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------

ADAPTERS: dict[type, Callable[[Any], ModelAdapter]] = {}


def register_adapter(cls: type, factory: Callable[[Any], ModelAdapter]) -> None:
    """Use ``factory`` for instances of ``cls`` (and subclasses)."""
    ADAPTERS[cls] = factory


def as_adapter(obj: Any) -> ModelAdapter:
    """Return a :class:`ModelAdapter` for ``obj``.

    Adapters pass through; registered classes are matched along the MRO;
    anything with ``params`` and standard errors is read by duck typing.
    """
    if isinstance(obj, ModelAdapter):
        return obj
    for klass in type(obj).__mro__:
        if klass in ADAPTERS:
            return ADAPTERS[klass](obj)
    if hasattr(obj, "params") and (hasattr(obj, "bse") or hasattr(obj, "std_errors") or hasattr(obj, "cov_params")):
        return StatsmodelsAdapter(obj)
    raise TypeError(f"Cannot build a table column from {type(obj).__name__}.")


