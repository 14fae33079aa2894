"""Statistic value types and the footer-statistic registry.

Cell values placed in the aligned matrices are small frozen dataclasses. They
carry raw numbers only; turning them into text is done by :func:`format_cell`
with a :class:`CellFormat` resolved from the summary configuration.

Footer statistics are looked up by key in :data:`REGISTRY`. Each entry knows
its label per output backend and how to read the value off a model adapter.
Numerical trouble while computing a single statistic is downgraded to a
missing cell and a :class:`~regtables.core.errors.StatisticComputationWarning`.
"""
from __future__ import annotations

import logging
import math
import warnings
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from functools import singledispatch
from typing import TYPE_CHECKING, Any

import numpy as np

from regtables.core.errors import StatisticComputationWarning

if TYPE_CHECKING:  # pragma: no cover - import only for type checking
    from regtables.models.base import ModelAdapter

__all__ = [
    "REGISTRY",
    "CellFormat",
    "ClusterValue",
    "CoefValue",
    "ConfInt",
    "FirstStageValue",
    "FixedEffectValue",
    "HasControls",
    "RandomEffectValue",
    "RegressionNumber",
    "RegressionType",
    "Spacer",
    "StatSpec",
    "StdError",
    "TStat",
    "VcovType",
    "format_cell",
    "register_statistic",
    "resolve_statistic",
    "safe_compute",
]

_LOGGER = logging.getLogger(__name__)


# ---------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class CoefValue:
    value: float
    pvalue: float | None = None


@dataclass(frozen=True)
class StdError:
    value: float


@dataclass(frozen=True)
class TStat:
    value: float


@dataclass(frozen=True)
class ConfInt:
    lower: float
    upper: float


@dataclass(frozen=True)
class RegressionType:
    label: str


@dataclass(frozen=True)
class VcovType:
    label: str


@dataclass(frozen=True)
class HasControls:
    value: bool


@dataclass(frozen=True)
class RegressionNumber:
    value: int


@dataclass(frozen=True)
class FixedEffectValue:
    present: bool


@dataclass(frozen=True)
class ClusterValue:
    count: int | None  # None: clustered, count unknown


@dataclass(frozen=True)
class FirstStageValue:
    value: float


@dataclass(frozen=True)
class RandomEffectValue:
    value: float


@dataclass(frozen=True)
class Spacer:
    """Blank footer row."""


# ---------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class CellFormat:
    """Number formatting options, resolved once per table."""

    digits: int = 3
    digits_stats: int = 3
    estim_format: str | None = None
    statistic_format: str | None = None
    stars: bool = True
    star_breaks: tuple[float, ...] = (0.01, 0.05, 0.1)
    star_symbol: str = "*"
    below_decoration: str = "({})"
    estim_decoration: Callable[[str, float | None], str] | None = None
    number_regressions_decoration: str = "({})"
    fe_symbol: str = "Yes"
    fe_empty: str = ""
    control_symbol: str = "Yes"
    show_cluster_counts: bool = False
    confint_separator: str = ", "


def _fmt_float(value: float, spec: str | None, digits: int, *, commas: bool) -> str:
    if value is None:
        return ""
    x = float(value)
    if math.isnan(x):
        return ""
    if spec:
        return format(x, spec)
    return f"{x:,.{digits}f}" if commas else f"{x:.{digits}f}"


def _stars(pvalue: float | None, fmt: CellFormat) -> str:
    if not fmt.stars or pvalue is None or not np.isfinite(pvalue):
        return ""
    count = sum(1 for brk in fmt.star_breaks if pvalue < brk)
    return fmt.star_symbol * count


@singledispatch
def format_cell(value: Any, fmt: CellFormat) -> str:
    """Render an aligned cell value as text. ``None`` renders blank."""
    if value is None:
        return ""
    if isinstance(value, (bool, np.bool_)):
        return fmt.fe_symbol if value else fmt.fe_empty
    if isinstance(value, (int, np.integer)):
        return f"{int(value):,}"
    if isinstance(value, (float, np.floating)):
        return _fmt_float(value, fmt.statistic_format, fmt.digits_stats, commas=True)
    return str(value)


@format_cell.register
def _(value: CoefValue, fmt: CellFormat) -> str:
    text = _fmt_float(value.value, fmt.estim_format, fmt.digits, commas=False)
    if fmt.estim_decoration is not None:
        return fmt.estim_decoration(text, value.pvalue)
    return text + _stars(value.pvalue, fmt)


@format_cell.register
def _(value: StdError, fmt: CellFormat) -> str:
    return fmt.below_decoration.format(_fmt_float(value.value, fmt.estim_format, fmt.digits, commas=False))


@format_cell.register
def _(value: TStat, fmt: CellFormat) -> str:
    return fmt.below_decoration.format(_fmt_float(value.value, fmt.estim_format, fmt.digits, commas=False))


@format_cell.register
def _(value: ConfInt, fmt: CellFormat) -> str:
    lo = _fmt_float(value.lower, fmt.estim_format, fmt.digits, commas=False)
    hi = _fmt_float(value.upper, fmt.estim_format, fmt.digits, commas=False)
    return fmt.below_decoration.format(f"{lo}{fmt.confint_separator}{hi}")


@format_cell.register
def _(value: RegressionType, fmt: CellFormat) -> str:
    return value.label


@format_cell.register
def _(value: VcovType, fmt: CellFormat) -> str:
    return value.label


@format_cell.register
def _(value: HasControls, fmt: CellFormat) -> str:
    return fmt.control_symbol if value.value else ""


@format_cell.register
def _(value: RegressionNumber, fmt: CellFormat) -> str:
    return fmt.number_regressions_decoration.format(value.value)


@format_cell.register
def _(value: FixedEffectValue, fmt: CellFormat) -> str:
    return fmt.fe_symbol if value.present else fmt.fe_empty


@format_cell.register
def _(value: ClusterValue, fmt: CellFormat) -> str:
    if value.count is None:
        return fmt.fe_symbol
    if value.count <= 0:
        return ""
    return f"{value.count:,}" if fmt.show_cluster_counts else fmt.fe_symbol


@format_cell.register
def _(value: FirstStageValue, fmt: CellFormat) -> str:
    return _fmt_float(value.value, fmt.statistic_format, fmt.digits_stats, commas=True)


@format_cell.register
def _(value: RandomEffectValue, fmt: CellFormat) -> str:
    return _fmt_float(value.value, fmt.statistic_format, fmt.digits_stats, commas=True)


@format_cell.register
def _(value: Spacer, fmt: CellFormat) -> str:
    return ""


# ---------------------------------------------------------------------
# Footer statistics
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class StatSpec:
    """A footer statistic.

    ``labels`` maps a backend name (``"latex"``, ``"html"``) to a label that
    differs from the plain ``label``. ``getter`` receives the model adapter and
    returns a number, ``None`` or the adapter's ``UNSUPPORTED`` sentinel.
    """

    key: str
    label: str
    getter: Callable[[ModelAdapter], Any]
    integer: bool = False
    labels: dict[str, str] = field(default_factory=dict)

    def label_for(self, backend: str) -> str:
        return self.labels.get(str(backend), self.label)


def _stat(key: str) -> Callable[[ModelAdapter], Any]:
    def getter(model: ModelAdapter) -> Any:
        return model.statistic(key)

    getter.__name__ = f"get_{key}"
    return getter


REGISTRY: dict[str, StatSpec] = {}


def register_statistic(spec: StatSpec) -> StatSpec:
    """Add or replace a footer statistic."""
    REGISTRY[spec.key] = spec
    return spec


for _spec in (
    StatSpec("nobs", "N", lambda m: m.nobs(), integer=True,
             labels={"latex": "$N$", "html": "<i>N</i>"}),
    StatSpec("r2", "R2", _stat("r2"), labels={"latex": "$R^2$", "html": "R<sup>2</sup>"}),
    StatSpec("adjr2", "Adjusted R2", _stat("adjr2"),
             labels={"latex": "Adjusted $R^2$", "html": "Adjusted R<sup>2</sup>"}),
    StatSpec("r2_within", "Within-R2", _stat("r2_within"),
             labels={"latex": "Within-$R^2$", "html": "Within-R<sup>2</sup>"}),
    StatSpec("pseudo_r2", "Pseudo R2", _stat("pseudo_r2"),
             labels={"latex": "Pseudo $R^2$", "html": "Pseudo R<sup>2</sup>"}),
    StatSpec("adj_pseudo_r2", "Pseudo Adjusted R2", _stat("adj_pseudo_r2"),
             labels={"latex": "Pseudo Adjusted $R^2$", "html": "Pseudo Adjusted R<sup>2</sup>"}),
    StatSpec("r2_mcfadden", "McFadden R2", _stat("r2_mcfadden"),
             labels={"latex": "McFadden $R^2$", "html": "McFadden R<sup>2</sup>"}),
    StatSpec("r2_coxsnell", "Cox-Snell R2", _stat("r2_coxsnell"),
             labels={"latex": "Cox-Snell $R^2$", "html": "Cox-Snell R<sup>2</sup>"}),
    StatSpec("r2_nagelkerke", "Nagelkerke R2", _stat("r2_nagelkerke"),
             labels={"latex": "Nagelkerke $R^2$", "html": "Nagelkerke R<sup>2</sup>"}),
    StatSpec("r2_deviance", "Deviance R2", _stat("r2_deviance"),
             labels={"latex": "Deviance $R^2$", "html": "Deviance R<sup>2</sup>"}),
    StatSpec("adjr2_deviance", "Adjusted Deviance R2", _stat("adjr2_deviance"),
             labels={"latex": "Adjusted Deviance $R^2$", "html": "Adjusted Deviance R<sup>2</sup>"}),
    StatSpec("ll", "Log Likelihood", _stat("ll")),
    StatSpec("aic", "AIC", _stat("aic")),
    StatSpec("aicc", "AICC", _stat("aicc")),
    StatSpec("bic", "BIC", _stat("bic")),
    StatSpec("dof", "Degrees of Freedom", lambda m: m.dof_residual(), integer=True),
    StatSpec("f", "F", _stat("f"), labels={"latex": "$F$", "html": "<i>F</i>"}),
    StatSpec("p", "F-test p value", _stat("p")),
    StatSpec("f_kp", "First-stage F statistic", _stat("f_kp")),
    StatSpec("p_kp", "First-stage p value", _stat("p_kp")),
    StatSpec("vcov_type", "Vcov Type", lambda m: VcovType(str(m.vcov_type()))),
    StatSpec("spacer", "", lambda m: Spacer()),
):
    register_statistic(_spec)


def resolve_statistic(item: Any) -> tuple[StatSpec, str | None]:
    """Interpret one entry of ``regression_statistics``.

    Accepts a registry key, a :class:`StatSpec`, a ``(key, label)`` pair or a
    ``(callable, label)`` pair; returns the spec and an optional label override.
    """
    if isinstance(item, StatSpec):
        return item, None
    if isinstance(item, str):
        key = item.strip().lower()
        if key not in REGISTRY:
            raise ValueError(f"Unknown regression statistic {item!r}; known: {sorted(REGISTRY)}.")
        return REGISTRY[key], None
    if isinstance(item, Sequence) and len(item) == 2 and isinstance(item[1], str):
        head, label = item
        if callable(head) and not isinstance(head, StatSpec):
            name = getattr(head, "__name__", "custom")
            return StatSpec(name, label, head), label
        spec, _ = resolve_statistic(head)
        return spec, label
    raise ValueError(f"Cannot interpret {item!r} as a regression statistic.")


def safe_compute(spec: StatSpec, model: ModelAdapter) -> Any:
    """Evaluate ``spec`` on ``model``; degeneracies become ``None`` with a warning."""
    from regtables.models.base import UNSUPPORTED

    try:
        value = spec.getter(model)
    except (ArithmeticError, ValueError, np.linalg.LinAlgError) as exc:
        warnings.warn(
            f"Statistic {spec.key!r} could not be computed ({exc}); showing a blank cell.",
            StatisticComputationWarning,
            stacklevel=3,
        )
        return None
    if value is UNSUPPORTED or value is None:
        return None
    if isinstance(value, (float, np.floating)) and not np.isfinite(value):
        _LOGGER.debug("Statistic %s is not finite for %r.", spec.key, model)
        return None
    if spec.integer and isinstance(value, (int, float, np.integer, np.floating)):
        return int(round(float(value)))
    return value
