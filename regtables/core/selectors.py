"""Selector resolution against a named axis.

Selectors pick positions out of an ordered sequence of coefficient names:

- ``"x"`` exact name (identity) match, empty when absent; the intercept also
  matches ``"Intercept"``;
- ``2`` a single 0-based index;
- ``range(1, 3)`` or ``ByRange(1, 2)`` an inclusive position range;
- ``re.compile("^x")`` every name whose identity matches;
- ``Last(2)`` / ``("last", 2)`` the final two positions, ``End(1)`` /
  ``("end", 1)`` the position one before the last.

Resolution never mutates the axis. Out-of-bounds positions raise
:class:`~regtables.core.errors.SelectorRangeError` instead of being clipped.
"""
from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from regtables.core.errors import SelectorRangeError
from regtables.core.names import CoefNameLike, identity, match_keys

__all__ = [
    "ByIndex",
    "ByName",
    "ByRange",
    "ByRegex",
    "ByRelative",
    "End",
    "Last",
    "Relative",
    "Selector",
    "as_selector",
    "drop_positions",
    "keep_positions",
    "order_positions",
    "resolve",
    "resolve_all",
]


class Relative(str, Enum):
    LAST = "last"
    END = "end"


@dataclass(frozen=True)
class ByName:
    name: str


@dataclass(frozen=True)
class ByIndex:
    index: int


@dataclass(frozen=True)
class ByRange:
    start: int
    stop: int  # inclusive


@dataclass(frozen=True)
class ByRegex:
    pattern: re.Pattern[str]


@dataclass(frozen=True)
class ByRelative:
    kind: Relative
    offset: int = 0


Selector = Union[ByName, ByIndex, ByRange, ByRegex, ByRelative]


def Last(n: int = 1) -> ByRelative:  # noqa: N802 - token-style constructor
    """The final ``n`` positions."""
    return ByRelative(Relative.LAST, int(n))


def End(n: int = 0) -> ByRelative:  # noqa: N802 - token-style constructor
    """The single position ``n`` steps before the last one."""
    return ByRelative(Relative.END, int(n))


def as_selector(obj: Any) -> Selector:
    """Coerce user input into a :data:`Selector`."""
    if isinstance(obj, (ByName, ByIndex, ByRange, ByRegex, ByRelative)):
        return obj
    if isinstance(obj, Relative):
        return ByRelative(obj, 1 if obj is Relative.LAST else 0)
    if isinstance(obj, str):
        return ByName(obj)
    if isinstance(obj, bool):
        raise TypeError("Boolean values are not valid selectors.")
    if isinstance(obj, int):
        return ByIndex(int(obj))
    if isinstance(obj, range):
        if obj.step != 1:
            raise ValueError("Only contiguous ranges (step 1) are supported as selectors.")
        return ByRange(obj.start, obj.stop - 1)
    if isinstance(obj, re.Pattern):
        return ByRegex(obj)
    if isinstance(obj, tuple) and len(obj) == 2 and isinstance(obj[0], (str, Relative)):
        try:
            kind = obj[0] if isinstance(obj[0], Relative) else Relative(obj[0].lower())
        except ValueError as exc:
            raise ValueError(f"Unrecognized relative selector token {obj[0]!r}; use 'last' or 'end'.") from exc
        return ByRelative(kind, int(obj[1]))
    if hasattr(obj, "identity") and callable(obj.identity):
        return ByName(obj.identity())
    raise TypeError(f"Cannot interpret {obj!r} as a selector.")


def _check(pos: int, n: int, selector: Any) -> int:
    if not 0 <= pos < n:
        raise SelectorRangeError(
            f"Selector {selector!r} resolves to position {pos}, outside the axis bounds [0, {n}).",
        )
    return pos


def resolve(axis: Sequence[CoefNameLike], selector: Any) -> list[int]:
    """Resolve a single selector to an ordered list of axis positions."""
    sel = as_selector(selector)
    n = len(axis)
    if isinstance(sel, ByName):
        return next(([i] for i, a in enumerate(axis) if sel.name in match_keys(a)), [])
    if isinstance(sel, ByIndex):
        return [_check(sel.index, n, sel)]
    if isinstance(sel, ByRange):
        _check(sel.start, n, sel)
        _check(sel.stop, n, sel)
        if sel.stop < sel.start:
            return []
        return list(range(sel.start, sel.stop + 1))
    if isinstance(sel, ByRegex):
        return [i for i, a in enumerate(axis) if sel.pattern.search(identity(a))]
    if isinstance(sel, ByRelative):
        if sel.kind is Relative.LAST:
            if sel.offset <= 0:
                return []
            start = _check(n - sel.offset, n, sel)
            return list(range(start, n))
        return [_check(n - 1 - sel.offset, n, sel)]
    raise TypeError(f"Unknown selector variant {type(sel).__name__}.")


def resolve_all(axis: Sequence[CoefNameLike], selectors: Iterable[Any]) -> list[int]:
    """Accumulate positions left to right, keeping the first occurrence."""
    out: list[int] = []
    seen: set[int] = set()
    for sel in selectors:
        for pos in resolve(axis, sel):
            if pos not in seen:
                seen.add(pos)
                out.append(pos)
    return out


def keep_positions(axis: Sequence[CoefNameLike], keep: Iterable[Any]) -> list[int]:
    """Positions retained by ``keep``, in selector order."""
    return resolve_all(axis, keep)


def drop_positions(axis: Sequence[CoefNameLike], drop: Iterable[Any]) -> list[int]:
    """Positions left after removing everything ``drop`` matches."""
    dropped = set(resolve_all(axis, drop))
    return [i for i in range(len(axis)) if i not in dropped]


def order_positions(axis: Sequence[CoefNameLike], order: Iterable[Any]) -> list[int]:
    """Matched positions first (selector order), then the rest in axis order."""
    first = resolve_all(axis, order)
    taken = set(first)
    return first + [i for i in range(len(axis)) if i not in taken]
