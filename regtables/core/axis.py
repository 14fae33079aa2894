"""Canonical coefficient axis shared by all columns of a table."""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from regtables.core.errors import LabelCollisionError
from regtables.core.names import CoefName, as_coefname, relabel, unique_names
from regtables.core.selectors import drop_positions, keep_positions, order_positions

if TYPE_CHECKING:  # pragma: no cover - import only for type checking
    from regtables.models.base import ModelAdapter

__all__ = ["build_axis", "model_names", "relabeled_names", "union_names"]

_LOGGER = logging.getLogger(__name__)

_COLLISION_POLICIES = {"merge", "raise"}


def model_names(model: ModelAdapter) -> list[CoefName]:
    """Coefficient names of ``model`` as structured names."""
    return [as_coefname(nm) for nm in model.coefficient_names()]


def relabeled_names(
    names: Iterable[CoefName],
    labels: Mapping[str, str] | None,
    transform: Mapping[str, str] | None,
) -> list[CoefName]:
    return [relabel(nm, labels, transform) for nm in names]


def _check_collisions(
    sources: Sequence[CoefName], targets: Sequence[CoefName], policy: str,
) -> None:
    if policy == "merge":
        return
    seen: dict[str, str] = {}
    for src, dst in zip(sources, targets):
        key = dst.identity()
        prev = seen.setdefault(key, src.identity())
        if prev != src.identity():
            raise LabelCollisionError(
                f"Coefficients {prev!r} and {src.identity()!r} are both relabeled to {key!r}.",
            )


def union_names(per_model: Iterable[Sequence[CoefName]]) -> list[CoefName]:
    """First-seen union by identity, models taken in input order."""
    out: list[CoefName] = []
    for names in per_model:
        out.extend(names)
    return unique_names(out)


def build_axis(  # noqa: PLR0913
    models: Sequence[ModelAdapter],
    *,
    labels: Mapping[str, str] | None = None,
    transform: Mapping[str, str] | None = None,
    use_relabeled: bool = False,
    keep: Sequence[Any] = (),
    drop: Sequence[Any] = (),
    order: Sequence[Any] = (),
    collisions: str = "merge",
) -> list[CoefName]:
    """Union coefficient names across ``models`` and apply keep/drop/order.

    With ``use_relabeled`` the labels are applied before the union, so two
    source names mapping to the same label share a row and selectors see the
    relabeled identities. Otherwise selectors see the source identities and
    the labels are applied afterwards; collisions introduced at that point
    still collapse to one row.
    """
    if collisions not in _COLLISION_POLICIES:
        raise ValueError(f"relabel_collisions must be one of {sorted(_COLLISION_POLICIES)}, got {collisions!r}.")

    raw = union_names(model_names(m) for m in models)
    if use_relabeled:
        relabeled = relabeled_names(raw, labels, transform)
        _check_collisions(raw, relabeled, collisions)
        axis = unique_names(relabeled)
    else:
        axis = raw

    if keep:
        axis = [axis[i] for i in keep_positions(axis, keep)]
    if drop:
        axis = [axis[i] for i in drop_positions(axis, drop)]
    if order:
        axis = [axis[i] for i in order_positions(axis, order)]

    if not use_relabeled:
        relabeled = relabeled_names(axis, labels, transform)
        _check_collisions(axis, relabeled, collisions)
        axis = unique_names(relabeled)

    _LOGGER.debug("Built coefficient axis with %d rows from %d models.", len(axis), len(models))
    return axis
