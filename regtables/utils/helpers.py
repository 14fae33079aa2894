"""Shared helper utilities.

Label transform tables (LaTeX / HTML escaping and the named shortcuts accepted
by ``transform_labels``), placeholder rows for the renderer's post-processing,
and small alignment helpers.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

__all__ = [
    "HTML_ESCAPES",
    "LATEX_ESCAPES",
    "MIDRULE_TOKEN",
    "check_align",
    "escape_html",
    "escape_latex",
    "expand_align",
    "hline_placeholder",
    "is_sequence_of_rows",
    "resolve_transform",
]

MIDRULE_TOKEN = "MSMIDRULE"

LATEX_ESCAPES: dict[str, str] = {
    "\\": r"\textbackslash{}",
    "&": r"\&",
    "%": r"\%",
    "$": r"\$",
    "#": r"\#",
    "_": r"\_",
    "{": r"\{",
    "}": r"\}",
    "~": r"\textasciitilde{}",
    "^": r"\textasciicircum{}",
}

HTML_ESCAPES: dict[str, str] = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
}

# named shortcuts for ``transform_labels``
_NAMED_TRANSFORMS: dict[str, dict[str, str]] = {
    "latex": LATEX_ESCAPES,
    "html": HTML_ESCAPES,
    "ampersand": {"&": r"\&"},
    "underscore": {"_": r"\_"},
    "underscore2space": {"_": " "},
}


def _escape(text: str, table: Mapping[str, str]) -> str:
    # single pass so replacements are never escaped twice
    return "".join(table.get(ch, ch) for ch in text)


def escape_latex(obj: Any) -> str:
    """Minimal LaTeX escaping (consistent with tabulate's expectations)."""
    return _escape(str(obj), LATEX_ESCAPES)


def escape_html(obj: Any) -> str:
    return _escape(str(obj), HTML_ESCAPES)


def resolve_transform(spec: Mapping[str, str] | str | None) -> dict[str, str]:
    """Turn a ``transform_labels`` option into a substring replacement table.

    Accepts a mapping, one of the names ``"latex"``, ``"html"``,
    ``"ampersand"``, ``"underscore"``, ``"underscore2space"``, or ``None``.
    """
    if spec is None:
        return {}
    if isinstance(spec, str):
        key = spec.strip().lower()
        if key not in _NAMED_TRANSFORMS:
            raise ValueError(
                f"Unknown transform_labels {spec!r}; expected a mapping or one of {sorted(_NAMED_TRANSFORMS)}.",
            )
        return dict(_NAMED_TRANSFORMS[key])
    if isinstance(spec, Mapping):
        return {str(k): str(v) for k, v in spec.items()}
    raise TypeError(f"transform_labels must be a mapping or a name, got {type(spec).__name__}.")


def hline_placeholder(n_cols: int) -> list[str]:
    """Build a placeholder row that post-processing replaces with a rule.

    The placeholder is detected and replaced downstream in
    ``regtables.output.render``.
    """
    return [MIDRULE_TOKEN] * int(n_cols)


def check_align(value: str, *, name: str = "align") -> str:
    """Validate a one-character (or per-column) alignment string."""
    text = str(value).strip().lower()
    if not text or any(ch not in "lcr" for ch in text):
        raise ValueError(f"{name} must consist of 'l', 'c' or 'r' characters, got {value!r}.")
    return text


def expand_align(value: str, n_cols: int, *, label: str = "l") -> str:
    """Expand a single alignment character to ``label`` plus one per model column."""
    text = check_align(value)
    if len(text) == 1:
        return label + text * (n_cols - 1)
    if len(text) != n_cols:
        raise ValueError(f"Alignment {value!r} has {len(text)} characters for {n_cols} columns.")
    return text


def is_sequence_of_rows(obj: Any) -> bool:
    """True when ``obj`` is a sequence whose items are themselves rows."""
    return (
        isinstance(obj, Sequence)
        and not isinstance(obj, str)
        and len(obj) > 0
        and all(isinstance(r, Sequence) and not isinstance(r, str) for r in obj)
    )
