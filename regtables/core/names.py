"""Coefficient names.

A closed family of frozen dataclasses describing what a table row (or an
"other statistic" row) refers to. Rows are matched by :func:`identity`, a
deterministic backend-independent string; :meth:`CoefName.display` is only
used for the rendered label.
"""
from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Union

__all__ = [
    "HTML_STYLE",
    "LATEX_STYLE",
    "PLAIN_STYLE",
    "Categorical",
    "Cluster",
    "CoefName",
    "CoefNameLike",
    "FirstStage",
    "FixedEffect",
    "Interacted",
    "Intercept",
    "NameStyle",
    "Plain",
    "RandomEffect",
    "as_coefname",
    "identity",
    "match_keys",
    "parse_coef_name",
    "relabel",
    "unique_names",
]


@dataclass(frozen=True)
class NameStyle:
    """Backend-specific separators used when displaying names."""

    interaction: str = " & "
    categorical: str = ": "
    random_effect: str = " | "
    intercept: str = "(Intercept)"
    fe_suffix: str = " Fixed Effects"
    cluster_suffix: str = " Clustering"
    first_stage_suffix: str = " First Stage"


PLAIN_STYLE = NameStyle()
LATEX_STYLE = NameStyle(interaction=" $\\times$ ", categorical=" = ")
HTML_STYLE = NameStyle(interaction=" &times; ")


class CoefName:
    """Base of the coefficient-name variants. Not instantiated directly."""

    __slots__ = ()

    def identity(self) -> str:
        raise NotImplementedError

    def display(self, style: NameStyle = PLAIN_STYLE) -> str:
        return self.identity()

    def __str__(self) -> str:
        return self.identity()


@dataclass(frozen=True)
class Plain(CoefName):
    name: str

    def identity(self) -> str:
        return self.name


@dataclass(frozen=True)
class Intercept(CoefName):
    def identity(self) -> str:
        return "(Intercept)"

    def display(self, style: NameStyle = PLAIN_STYLE) -> str:
        return style.intercept


@dataclass(frozen=True)
class Interacted(CoefName):
    parts: tuple[CoefName, ...]

    def identity(self) -> str:
        return " & ".join(p.identity() for p in self.parts)

    def display(self, style: NameStyle = PLAIN_STYLE) -> str:
        return style.interaction.join(p.display(style) for p in self.parts)


@dataclass(frozen=True)
class Categorical(CoefName):
    base: str
    level: str

    def identity(self) -> str:
        return f"{self.base}: {self.level}"

    def display(self, style: NameStyle = PLAIN_STYLE) -> str:
        return f"{self.base}{style.categorical}{self.level}"


@dataclass(frozen=True)
class FixedEffect(CoefName):
    inner: CoefName

    def identity(self) -> str:
        return self.inner.identity()

    def display(self, style: NameStyle = PLAIN_STYLE) -> str:
        return _upper_first(self.inner.display(style)) + style.fe_suffix


@dataclass(frozen=True)
class Cluster(CoefName):
    inner: CoefName

    def identity(self) -> str:
        return self.inner.identity()

    def display(self, style: NameStyle = PLAIN_STYLE) -> str:
        return _upper_first(self.inner.display(style)) + style.cluster_suffix


@dataclass(frozen=True)
class RandomEffect(CoefName):
    lhs: CoefName
    rhs: CoefName

    def identity(self) -> str:
        return f"{self.rhs.identity()} | {self.lhs.identity()}"

    def display(self, style: NameStyle = PLAIN_STYLE) -> str:
        return self.rhs.display(style) + style.random_effect + self.lhs.display(style)


@dataclass(frozen=True)
class FirstStage(CoefName):
    label: str

    def identity(self) -> str:
        return self.label

    def display(self, style: NameStyle = PLAIN_STYLE) -> str:
        return _upper_first(self.label) + style.first_stage_suffix


CoefNameLike = Union[CoefName, str]


def _upper_first(text: str) -> str:
    return text[:1].upper() + text[1:]


def as_coefname(name: CoefNameLike) -> CoefName:
    """Coerce strings to :class:`Plain`; pass structured names through."""
    if isinstance(name, CoefName):
        return name
    if isinstance(name, str):
        return Plain(name)
    raise TypeError(f"Cannot interpret {type(name).__name__} as a coefficient name.")


def identity(name: CoefNameLike) -> str:
    """Return the matching key of ``name``."""
    return as_coefname(name).identity()


_INTERCEPT_KEYS = ("(Intercept)", "Intercept")


def match_keys(name: CoefNameLike) -> tuple[str, ...]:
    """Keys ``name`` answers to in ``labels`` and name selectors.

    The intercept also answers to the statsmodels spelling ``Intercept``.
    """
    nm = as_coefname(name)
    if isinstance(nm, Intercept):
        return _INTERCEPT_KEYS
    return (nm.identity(),)


def unique_names(names: list[CoefName]) -> list[CoefName]:
    """Deduplicate by identity, keeping the first occurrence."""
    seen: set[str] = set()
    out: list[CoefName] = []
    for nm in names:
        key = nm.identity()
        if key in seen:
            continue
        seen.add(key)
        out.append(nm)
    return out


# ---------------------------------------------------------------------
# Relabeling
# ---------------------------------------------------------------------


def _transform_text(text: str, transform: Mapping[str, str] | None) -> str:
    if not transform:
        return text
    # single pass, longest key first, so replacements are never rewritten
    keys = sorted((k for k in transform if k), key=len, reverse=True)
    if not keys:
        return text
    pattern = re.compile("|".join(re.escape(k) for k in keys))
    return pattern.sub(lambda m: transform[m.group(0)], text)


def relabel(
    name: CoefNameLike,
    labels: Mapping[str, str] | None = None,
    transform: Mapping[str, str] | None = None,
) -> CoefName:
    """Apply exact ``labels`` and substring ``transform`` replacements.

    An exact hit on the identity replaces the whole name. Otherwise the name is
    rebuilt component by component so that a label for ``x`` also shows up in
    ``x & z``.
    """
    nm = as_coefname(name)
    labels = labels or {}
    key = next((k for k in match_keys(nm) if k in labels), None)
    if key is not None:
        new = Plain(str(labels[key]))
        if isinstance(nm, (FixedEffect, Cluster)):
            return type(nm)(new)
        if isinstance(nm, FirstStage):
            return FirstStage(new.name)
        return new
    if isinstance(nm, Plain):
        return Plain(_transform_text(nm.name, transform))
    if isinstance(nm, Intercept):
        return nm
    if isinstance(nm, Interacted):
        return Interacted(tuple(relabel(p, labels, transform) for p in nm.parts))
    if isinstance(nm, Categorical):
        base = labels.get(nm.base, _transform_text(nm.base, transform))
        return Categorical(str(base), _transform_text(nm.level, transform))
    if isinstance(nm, (FixedEffect, Cluster)):
        return type(nm)(relabel(nm.inner, labels, transform))
    if isinstance(nm, RandomEffect):
        return RandomEffect(
            relabel(nm.lhs, labels, transform), relabel(nm.rhs, labels, transform),
        )
    if isinstance(nm, FirstStage):
        return FirstStage(_transform_text(nm.label, transform))
    raise TypeError(f"Unknown coefficient name variant {type(nm).__name__}.")


# ---------------------------------------------------------------------
# Parsing patsy / statsmodels style labels
# ---------------------------------------------------------------------

_CATEGORICAL_PAT = re.compile(
    r"^(?:C\(\s*(?P<cvar>[^,)]+?)\s*(?:,[^)]*)?\)|(?P<var>[^\[\]]+?))\[(?:T\.)?(?P<level>[^\]]+)\]$",
)


def _split_top_level(text: str, sep: str = ":") -> list[str]:
    """Split on ``sep`` outside of parentheses and brackets."""
    parts: list[str] = []
    depth = 0
    start = 0
    for i, ch in enumerate(text):
        if ch in "([":
            depth += 1
        elif ch in ")]":
            depth = max(depth - 1, 0)
        elif ch == sep and depth == 0:
            parts.append(text[start:i])
            start = i + 1
    parts.append(text[start:])
    return parts


def parse_coef_name(
    text: str, *, intercept_names: tuple[str, ...] = ("Intercept", "(Intercept)"),
) -> CoefName:
    """Parse a statsmodels/patsy column label into a structured name.

    ``Intercept`` becomes :class:`Intercept`, ``a:b`` an :class:`Interacted`,
    ``C(g)[T.b]`` / ``g[T.b]`` a :class:`Categorical`; anything else is kept
    as :class:`Plain`.
    """
    s = str(text).strip()
    if s in intercept_names:
        return Intercept()
    pieces = _split_top_level(s)
    if len(pieces) > 1:
        return Interacted(tuple(parse_coef_name(p, intercept_names=intercept_names) for p in pieces))
    m = _CATEGORICAL_PAT.match(s)
    if m:
        base = m.group("cvar") or m.group("var")
        return Categorical(base.strip(), m.group("level").strip())
    return Plain(s)
