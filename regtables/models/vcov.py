"""Covariance override wrapper.

``model + VcovSpec(source)`` (or :func:`with_vcov`) returns a
:class:`VcovOverride` that swaps the covariance matrix and standard errors of
``model`` for the ones produced by ``source`` without touching ``model``:

- a 2-D array is used verbatim;
- a callable taking one positional argument is called with the model, one
  taking none is called without arguments;
- any other object is an estimator tag resolved through the
  :func:`materialize_vcov` single-dispatch hook.

The matrix is materialized on first use, validated against the number of
coefficients, checked for symmetry and cached for the lifetime of the wrapper.
"""
from __future__ import annotations

import inspect
import logging
import re
import threading
import warnings
from collections.abc import Callable
from dataclasses import dataclass
from functools import singledispatch
from typing import Any

import numpy as np
import pandas as pd

from regtables.core.errors import AmbiguousSpecError, DimensionMismatchError, NonSymmetricWarning
from regtables.models.base import ModelAdapter
from regtables.models.statsmodels import as_adapter

__all__ = [
    "VcovOverride",
    "VcovSpec",
    "materialize_vcov",
    "vcov_type_name",
    "with_vcov",
]

_LOGGER = logging.getLogger(__name__)

_SYMMETRY_RTOL = 1.5e-8
_HR_PAT = re.compile(r"^HR(?P<k>\d)$")


@dataclass(frozen=True, eq=False)
class VcovSpec:
    """User or plugin description of how to obtain a covariance matrix."""

    source: Any

    def __repr__(self) -> str:
        return f"VcovSpec({vcov_type_name(self.source)})"


@singledispatch
def materialize_vcov(estimator: Any, model: ModelAdapter) -> np.ndarray:
    """Produce the covariance matrix of ``model`` for an estimator tag.

    Register implementations for third-party estimator types::

        @materialize_vcov.register
        def _(est: MyHC1, model): ...
    """
    raise AmbiguousSpecError(
        f"No covariance materialization rule is registered for {type(estimator).__name__}.",
    )


@singledispatch
def vcov_type_name(source: Any) -> str:
    """Readable name of the covariance estimator behind ``source``."""
    name = getattr(source, "name", None)
    text = str(name) if isinstance(name, str) else type(source).__name__
    m = _HR_PAT.match(text)
    return f"HC{m.group('k')}" if m else text


@vcov_type_name.register(np.ndarray)
@vcov_type_name.register(pd.DataFrame)
def _(source: Any) -> str:
    return "Custom"


def _is_matrix(source: Any) -> bool:
    return isinstance(source, (np.ndarray, pd.DataFrame)) or (
        isinstance(source, (list, tuple)) and len(source) > 0 and isinstance(source[0], (list, tuple, np.ndarray))
    )


def _call_arity(func: Callable[..., Any]) -> int | None:
    """1 when ``func`` accepts a single positional argument, 0 when it accepts none."""
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        return None
    try:
        sig.bind(object())
    except TypeError:
        pass
    else:
        return 1
    try:
        sig.bind()
    except TypeError:
        return None
    return 0


class VcovOverride(ModelAdapter):
    """A model whose covariance matrix comes from a :class:`VcovSpec`.

    Everything except :meth:`vcov`, :meth:`standard_errors`,
    :meth:`p_values`, :meth:`confidence_interval` and :meth:`vcov_type`
    delegates to the wrapped model.
    """

    def __init__(self, model: Any, spec: VcovSpec) -> None:
        model = as_adapter(model)
        if isinstance(model, VcovOverride):
            model = model.model
        self._model = model
        self._spec = spec
        self._cache: np.ndarray | None = None
        self._lock = threading.Lock()

    @property
    def model(self) -> ModelAdapter:
        return self._model

    @property
    def spec(self) -> VcovSpec:
        return self._spec

    @property
    def is_materialized(self) -> bool:
        return self._cache is not None

    def __repr__(self) -> str:  # pragma: no cover - convenience only
        return f"VcovOverride({self._model!r}, {self._spec!r})"

    # -- materialization ------------------------------------------------
    def _materialize(self) -> np.ndarray:
        source = self._spec.source
        if _is_matrix(source):
            mat = source
        elif callable(source) and not isinstance(source, type):
            arity = _call_arity(source)
            if arity == 1:
                mat = source(self._model)
            elif arity == 0:
                mat = source()
            else:
                raise AmbiguousSpecError(
                    "Covariance functions must accept the model as their only argument or no arguments.",
                )
        else:
            mat = materialize_vcov(source, self._model)

        arr = np.asarray(mat, dtype=float)
        k = len(np.asarray(self._model.coefficient_values()))
        if arr.ndim != 2 or arr.shape[0] != arr.shape[1] or arr.shape[0] != k:
            raise DimensionMismatchError(
                f"Covariance matrix has shape {arr.shape}, expected ({k}, {k}) to match the coefficients.",
            )
        if not np.allclose(arr, arr.T, rtol=_SYMMETRY_RTOL, atol=0.0, equal_nan=True):
            warnings.warn(
                "Covariance matrix is not symmetric; using it as given.",
                NonSymmetricWarning,
                stacklevel=4,
            )
        return arr

    def vcov(self) -> np.ndarray:
        if self._cache is None:
            with self._lock:
                if self._cache is None:
                    self._cache = self._materialize()
                    _LOGGER.debug("Materialized %s covariance for %r.", self.vcov_type(), self._model)
        return self._cache

    def standard_errors(self) -> np.ndarray:
        return np.sqrt(np.diag(self.vcov()))

    def vcov_type(self) -> str:
        source = self._spec.source
        if _is_matrix(source):
            return "Custom"
        if callable(source) and not isinstance(source, type):
            return "Function"
        return vcov_type_name(source)

    # -- delegation -----------------------------------------------------
    def coefficient_values(self) -> np.ndarray:
        return self._model.coefficient_values()

    def coefficient_names(self) -> list[Any]:
        return self._model.coefficient_names()

    def formula(self) -> Any:
        return self._model.formula()

    def response_name(self) -> Any:
        return self._model.response_name()

    def dof_residual(self) -> Any:
        return self._model.dof_residual()

    def nobs(self) -> Any:
        return self._model.nobs()

    def other_statistics(self, kind: str) -> Any:
        return self._model.other_statistics(kind)

    def default_statistics(self) -> list[Any]:
        return self._model.default_statistics()

    def statistic(self, key: str) -> Any:
        return self._model.statistic(key)

    def is_linear(self) -> bool:
        return self._model.is_linear()

    def regression_type(self) -> str:
        return self._model.regression_type()


def with_vcov(model: Any, spec: VcovSpec | Any) -> VcovOverride:
    """Wrap ``model`` with ``spec``; re-wrapping replaces the previous spec.

    ``model`` may be any object :func:`~regtables.models.statsmodels.as_adapter`
    accepts.
    """
    if not isinstance(spec, VcovSpec):
        spec = VcovSpec(spec)
    return VcovOverride(model, spec)
