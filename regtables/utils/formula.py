"""Formula structure parser for regtables.

Patsy-based parsing of model formulas into structured coefficient names, with
the ``fe(...)``, ``cluster(...)`` and ``(x | g)`` extensions used by panel and
mixed-model estimators. No data is touched: the parser only recovers which
terms a formula names, so that adapters without explicit coefficient names can
still report them, and the dependent variable, fixed-effect and cluster rows
can be derived from the formula text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

import patsy

from regtables.core.names import (
    Cluster,
    CoefName,
    FixedEffect,
    Interacted,
    Intercept,
    RandomEffect,
    parse_coef_name,
)

if TYPE_CHECKING:  # pragma: no cover - typing only
    from collections.abc import Sequence

__all__ = ["Formula", "FormulaParser", "parse_formula"]

_FE_PAT = re.compile(r"fe\((?P<inside>.+?)\)")
_CLUSTER_PAT = re.compile(
    r"cluster\((?P<vars>.+?)\)", re.IGNORECASE | re.DOTALL | re.MULTILINE,
)
_RE_PAT = re.compile(r"\(\s*(?P<expr>[^()|]+?)\s*\|\s*(?P<group>[^()|]+?)\s*\)")


def _cleanup_rhs(rhs: str) -> str:
    """Remove empty/duplicate additive operators after dropping specials (e.g., fe(...)) so
    that Patsy receives a valid additive formula. Returns "1" if empty so that
    an intercept-only formula stays parseable.
    """
    s = re.sub(r"\s*\+\s*", " + ", rhs)
    # collapse multiple consecutive pluses
    s = re.sub(r"(?:\s*\+\s*){2,}", " + ", s)
    s = s.strip()
    s = re.sub(r"^\+\s*", "", s)
    s = re.sub(r"\s*\+$", "", s)
    return s if s else "1"


def _split_terms(inside: str) -> list[str]:
    return [t.strip() for t in re.split(r"\s*\+\s*", inside) if t.strip()]


def _term_name(parts: Sequence[str]) -> CoefName:
    names = [parse_coef_name(p) for p in parts]
    if len(names) == 1:
        return names[0]
    return Interacted(tuple(names))


@dataclass(frozen=True)
class Formula:
    """Structured view of a model formula."""

    text: str
    lhs: CoefName
    rhs: tuple[CoefName, ...]
    fixed_effects: tuple[FixedEffect, ...] = ()
    clusters: tuple[Cluster, ...] = ()
    random_effects: tuple[RandomEffect, ...] = ()
    include_intercept: bool = True


class FormulaParser:
    """Parse formula strings into :class:`Formula` values.

    Extensions
    ----------
    fe(a + b + a:b)
        Absorbed fixed effects. Each additive term becomes one fixed-effect
        row; ``a:b`` is a single interacted fixed effect.
    cluster(a + b)
        Cluster variables, either inside the formula or in ``options``.
    (x | g)
        Random-effect terms as written by mixed-model packages.
    """

    def __init__(self, *, intercept_names: tuple[str, ...] = ("Intercept", "(Intercept)")) -> None:
        self.intercept_names = intercept_names

    def parse(self, formula: str, *, options: str | None = None) -> Formula:
        if "~" not in formula:
            msg = "Formula must contain '~'."
            raise ValueError(msg)
        lhs_raw, rhs_raw = (s.strip() for s in formula.split("~", 1))

        fixed: list[FixedEffect] = []
        seen: set[str] = set()
        for m in _FE_PAT.finditer(rhs_raw):
            for t in _split_terms(m.group("inside")):
                if t in seen:
                    continue
                seen.add(t)
                fixed.append(FixedEffect(_term_name([p.strip() for p in t.split(":") if p.strip()])))
        rhs = _FE_PAT.sub("", rhs_raw)

        cluster_src = [m.group("vars") for m in _CLUSTER_PAT.finditer(rhs)]
        rhs = _CLUSTER_PAT.sub("", rhs)
        if options:
            cluster_src.extend(m.group("vars") for m in _CLUSTER_PAT.finditer(options))
        if len(cluster_src) > 1:
            raise ValueError("cluster(...) may appear at most once.")
        clusters = tuple(
            Cluster(parse_coef_name(v)) for raw in cluster_src for v in re.split(r"[+,\s]+", raw) if v.strip()
        )

        random = tuple(
            RandomEffect(lhs=parse_coef_name(m.group("group")), rhs=parse_coef_name(m.group("expr")))
            for m in _RE_PAT.finditer(rhs)
        )
        rhs = _cleanup_rhs(_RE_PAT.sub("", rhs))

        try:
            desc = patsy.ModelDesc.from_formula(f"{lhs_raw} ~ {rhs}")
        except patsy.PatsyError as exc:
            raise ValueError(f"Could not parse formula {formula!r}: {exc}") from exc

        lhs_terms = [t.name() for t in desc.lhs_termlist]
        if len(lhs_terms) != 1:
            raise ValueError(f"Formula {formula!r} must have exactly one response term.")

        rhs_names: list[CoefName] = []
        include_intercept = False
        for term in desc.rhs_termlist:
            if not term.factors:
                include_intercept = True
                rhs_names.append(Intercept())
                continue
            rhs_names.append(_term_name([f.name() for f in term.factors]))

        return Formula(
            text=formula,
            lhs=parse_coef_name(lhs_terms[0], intercept_names=self.intercept_names),
            rhs=tuple(rhs_names),
            fixed_effects=tuple(fixed),
            clusters=clusters,
            random_effects=random,
            include_intercept=include_intercept,
        )


def parse_formula(formula: str, *, options: str | None = None) -> Formula:
    """Parse ``formula`` with the default parser."""
    return FormulaParser().parse(formula, options=options)
