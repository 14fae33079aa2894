"""Align sparse per-model values onto shared row axes.

Both aligners return object ``pandas.DataFrame`` values with one column per
model. Missing entries are ``None`` and render as blank cells, never ``0``.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

import numpy as np
import pandas as pd

from regtables.core.axis import model_names, relabeled_names
from regtables.core.names import CoefName, as_coefname, relabel, unique_names
from regtables.core.selectors import keep_positions
from regtables.core.statistics import (
    ClusterValue,
    CoefValue,
    ConfInt,
    FirstStageValue,
    FixedEffectValue,
    RandomEffectValue,
    StdError,
    TStat,
)

if TYPE_CHECKING:  # pragma: no cover - import only for type checking
    from regtables.models.base import ModelAdapter

__all__ = [
    "BELOW_STATISTICS",
    "FillPolicy",
    "OtherStatKind",
    "align_coefs",
    "align_other_stats",
    "column_labels",
]

_LOGGER = logging.getLogger(__name__)

BELOW_STATISTICS = ("se", "tstat", "confint")


class OtherStatKind(str, Enum):
    FIXED_EFFECTS = "fe"
    CLUSTERS = "clusters"
    FIRST_STAGE = "first_stage"
    RANDOM_EFFECTS = "randomeffects"


@dataclass(frozen=True)
class FillPolicy:
    """How present and absent entries of one family are stored."""

    wrap: Any
    fill: Any

    @classmethod
    def for_kind(cls, kind: OtherStatKind | str) -> FillPolicy:
        kind = OtherStatKind(kind)
        if kind is OtherStatKind.FIXED_EFFECTS:
            return cls(lambda v: FixedEffectValue(bool(v)), FixedEffectValue(False))
        if kind is OtherStatKind.CLUSTERS:
            return cls(lambda v: ClusterValue(None if v is None else int(v)), ClusterValue(0))
        if kind is OtherStatKind.FIRST_STAGE:
            return cls(lambda v: FirstStageValue(float(v)), None)
        return cls(lambda v: RandomEffectValue(float(v)), None)


def column_labels(n_models: int) -> list[str]:
    return [f"({i + 1})" for i in range(n_models)]


def _below_values(model: ModelAdapter, below: str | None, level: float) -> list[Any] | None:
    if below is None:
        return None
    if below == "se":
        return [StdError(float(s)) for s in model.standard_errors()]
    if below == "tstat":
        coefs = np.asarray(model.coefficient_values(), dtype=float)
        ses = np.asarray(model.standard_errors(), dtype=float)
        with np.errstate(divide="ignore", invalid="ignore"):
            tt = coefs / ses
        return [TStat(float(t)) for t in tt]
    if below == "confint":
        ci = np.asarray(model.confidence_interval(level), dtype=float)
        return [ConfInt(float(lo), float(hi)) for lo, hi in ci]
    raise ValueError(f"below_statistic must be one of {BELOW_STATISTICS} or None, got {below!r}.")


def align_coefs(  # noqa: PLR0913
    models: Sequence[ModelAdapter],
    axis: Sequence[CoefName],
    *,
    labels: Mapping[str, str] | None = None,
    transform: Mapping[str, str] | None = None,
    below: str | None = "se",
    level: float = 0.95,
    with_pvalues: bool = True,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Coefficient and below-statistic matrices over ``axis``.

    Each model's names are relabeled the same way the axis was, then matched
    by identity. When a model maps two of its own coefficients onto the same
    row, the first one wins.
    """
    index = [nm.identity() for nm in axis]
    row_of = {key: i for i, key in enumerate(index)}
    cols = column_labels(len(models))
    values = np.full((len(axis), len(models)), None, dtype=object)
    belows = np.full((len(axis), len(models)), None, dtype=object)

    for j, model in enumerate(models):
        names = relabeled_names(model_names(model), labels, transform)
        coefs = [float(c) for c in model.coefficient_values()]
        pvals = list(model.p_values()) if with_pvalues else [None] * len(coefs)
        below_vals = _below_values(model, below, level)
        for k, nm in enumerate(names):
            i = row_of.get(nm.identity())
            if i is None or values[i, j] is not None:
                continue
            pv = pvals[k]
            values[i, j] = CoefValue(coefs[k], None if pv is None else float(pv))
            if below_vals is not None:
                belows[i, j] = below_vals[k]

    values_df = pd.DataFrame(values, index=pd.Index(index, name="coef"), columns=cols)
    below_df = pd.DataFrame(belows, index=pd.Index(index, name="coef"), columns=cols)
    _LOGGER.debug(
        "Aligned %d coefficients across %d models (%d non-missing).",
        len(axis), len(models), int(values_df.notna().to_numpy().sum()),
    )
    return values_df, below_df


def align_other_stats(  # noqa: PLR0913
    per_model: Sequence[Sequence[tuple[Any, Any]] | Any],
    policy: FillPolicy,
    *,
    labels: Mapping[str, str] | None = None,
    transform: Mapping[str, str] | None = None,
    keep: Sequence[Any] = (),
    wrapper: type[CoefName] | None = None,
) -> tuple[list[CoefName], pd.DataFrame] | None:
    """Union sparse ``(name, value)`` lists into one matrix.

    ``per_model`` holds, per model, either a list of pairs or the adapter's
    ``UNSUPPORTED`` sentinel. Unsupported models add no names and get missing
    cells; supporting models get ``policy.fill`` where a name is absent.
    Returns ``None`` when no model supports the family or no names remain.
    """
    from regtables.models.base import UNSUPPORTED

    supported = [entry is not UNSUPPORTED and entry is not None for entry in per_model]
    if not any(supported):
        return None

    def _name(raw: Any) -> CoefName:
        nm = as_coefname(raw)
        if wrapper is not None and not isinstance(nm, wrapper):
            nm = wrapper(nm)
        return nm

    pairs_per_model: list[list[tuple[CoefName, Any]]] = []
    for entry, ok in zip(per_model, supported):
        pairs_per_model.append([(_name(k), v) for k, v in entry] if ok else [])

    # selection sees source names, rows show relabeled ones
    raw_names = unique_names([nm for pairs in pairs_per_model for nm, _ in pairs])
    if keep:
        raw_names = [raw_names[i] for i in keep_positions(raw_names, keep)]
    shown = [relabel(nm, labels, transform) for nm in raw_names]
    names = unique_names(shown)
    if not names:
        return None

    index = [nm.identity() for nm in names]
    row_of_label = {key: i for i, key in enumerate(index)}
    row_of = {raw.identity(): row_of_label[new.identity()] for raw, new in zip(raw_names, shown)}
    cells = np.full((len(names), len(per_model)), None, dtype=object)
    for j, (pairs, ok) in enumerate(zip(pairs_per_model, supported)):
        if ok:
            cells[:, j] = policy.fill
        for nm, val in pairs:
            i = row_of.get(nm.identity())
            if i is not None:
                cells[i, j] = policy.wrap(val)
    frame = pd.DataFrame(cells, index=pd.Index(index, name="name"), columns=column_labels(len(per_model)))
    return names, frame
