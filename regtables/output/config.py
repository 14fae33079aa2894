"""Summary table configuration.

All options of :func:`regtables.modelsummary` live in one frozen
:class:`SummaryConfig`. Options left at ``None`` are filled per output backend
by :meth:`SummaryConfig.resolve`, which also applies the user's
``backend_overrides`` map. The default backend can be set with the
``REGTABLES_BACKEND`` environment variable.
"""
from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any

from regtables.core.align import BELOW_STATISTICS
from regtables.core.names import HTML_STYLE, LATEX_STYLE, PLAIN_STYLE, NameStyle
from regtables.core.statistics import CellFormat
from regtables.models.base import normalize_ci_level
from regtables.utils.helpers import check_align, resolve_transform

__all__ = [
    "DEFAULT_SECTION_ORDER",
    "Backend",
    "SummaryConfig",
    "backend_from_path",
    "default_backend",
]

_LOGGER = logging.getLogger(__name__)


class Backend(str, Enum):
    TEXT = "text"
    ASCII = "ascii"
    MARKDOWN = "markdown"
    HTML = "html"
    LATEX = "latex"

    @classmethod
    def coerce(cls, value: Backend | str) -> Backend:
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        aliases = {"tex": "latex", "md": "markdown", "txt": "text", "plain": "text"}
        try:
            return cls(aliases.get(key, key))
        except ValueError:
            valid = ", ".join(b.value for b in cls)
            raise ValueError(f"Unknown backend {value!r}; expected one of {valid}.") from None


_EXTENSIONS = {
    ".tex": Backend.LATEX,
    ".html": Backend.HTML,
    ".htm": Backend.HTML,
    ".md": Backend.MARKDOWN,
}


def backend_from_path(path: str | os.PathLike[str]) -> Backend:
    """Backend implied by a file extension; text for anything unrecognised."""
    return _EXTENSIONS.get(Path(path).suffix.lower(), Backend.TEXT)


def default_backend() -> Backend:
    """Backend used when neither the call nor the file name decides."""
    env = str(os.environ.get("REGTABLES_BACKEND", "")).strip()
    if not env:
        return Backend.TEXT
    try:
        return Backend.coerce(env)
    except ValueError:
        _LOGGER.warning("Ignoring REGTABLES_BACKEND=%r; using text.", env)
        return Backend.TEXT


DEFAULT_SECTION_ORDER: tuple[str, ...] = (
    "groups",
    "depvar",
    "number_regressions",
    "break",
    "coef",
    "break",
    "fe",
    "break",
    "randomeffects",
    "break",
    "clusters",
    "break",
    "first_stage",
    "break",
    "regtype",
    "break",
    "controls",
    "break",
    "stats",
    "extralines",
)

# backend -> defaults for options left at None
_BACKEND_DEFAULTS: dict[Backend, dict[str, Any]] = {
    Backend.TEXT: {"transform_labels": {}},
    Backend.ASCII: {"transform_labels": {}},
    Backend.MARKDOWN: {"transform_labels": {}},
    Backend.HTML: {"transform_labels": {}},
    Backend.LATEX: {"transform_labels": "latex"},
}

_NAME_STYLES = {Backend.LATEX: LATEX_STYLE, Backend.HTML: HTML_STYLE}


@dataclass(frozen=True)
class SummaryConfig:
    """Options of a summary table.

    Notes
    -----
    - ``number_regressions=None`` numbers the columns when there is more than
      one model.
    - ``transform_labels=None`` escapes labels for LaTeX output and leaves
      them alone elsewhere.
    - ``backend_overrides`` maps a backend to option values used only when
      rendering for that backend, e.g. ``{"latex": {"digits": 2}}``.
    - ``relabel_collisions`` decides what happens when relabeling maps two
      coefficients to the same label: ``"merge"`` shows them on one row,
      ``"raise"`` raises :class:`~regtables.core.errors.LabelCollisionError`.
    """

    backend: Backend | str | None = None
    # selection and labels
    keep: Sequence[Any] = ()
    drop: Sequence[Any] = ()
    order: Sequence[Any] = ()
    fixedeffects: Sequence[Any] = ()
    labels: Mapping[str, str] = field(default_factory=dict)
    transform_labels: Mapping[str, str] | str | None = None
    use_relabeled_values: bool = False
    relabel_collisions: str = "merge"
    # layout
    align: str = "r"
    header_align: str = "c"
    below_statistic: str | None = "se"
    stat_below: bool = True
    confint_level: float = 0.95
    regression_statistics: Sequence[Any] | None = None
    groups: Sequence[Any] | None = None
    extralines: Sequence[Any] | None = None
    section_order: Sequence[Any] | None = None
    extra_space: bool = False
    # section toggles
    print_depvar: bool = True
    number_regressions: bool | None = None
    print_estimator_section: bool = False
    print_fe_section: bool = True
    print_clusters: bool = False
    print_first_stage_section: bool = False
    print_randomeffects: bool = False
    print_control_indicator: bool = True
    print_fe_suffix: bool = True
    # numbers
    digits: int = 3
    digits_stats: int = 3
    estim_format: str | None = None
    statistic_format: str | None = None
    stars: bool = False
    star_breaks: Sequence[float] = (0.01, 0.05, 0.1)
    star_symbol: str = "*"
    below_decoration: str = "({})"
    number_regressions_decoration: str = "({})"
    estim_decoration: Callable[[str, float | None], str] | None = None
    show_cluster_counts: bool = False
    # symbols and spacers (also set by themes)
    fe_symbol: str = "Yes"
    fe_empty: str = ""
    fe_suffix: str = " Fixed Effects"
    add_vcov_stat: bool = False
    spacer_before_vcov: bool = True
    spacer_after_coef: bool = False
    spacer_after_fe: bool = False
    # appearance and output
    theme: Any = None
    table_format: Any = None
    file: str | os.PathLike[str] | None = None
    backend_overrides: Mapping[Backend | str, Mapping[str, Any]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "align", check_align(self.align, name="align"))
        object.__setattr__(self, "header_align", check_align(self.header_align, name="header_align"))
        if self.backend is not None:
            object.__setattr__(self, "backend", Backend.coerce(self.backend))
        below = self.below_statistic
        if isinstance(below, str):
            below = below.strip().lower()
            below = None if below == "none" else below
        if below is not None and below not in BELOW_STATISTICS:
            raise ValueError(f"below_statistic must be one of {BELOW_STATISTICS} or None, got {self.below_statistic!r}.")
        object.__setattr__(self, "below_statistic", below)
        object.__setattr__(self, "confint_level", normalize_ci_level(self.confint_level))
        if self.relabel_collisions not in {"merge", "raise"}:
            raise ValueError(f"relabel_collisions must be 'merge' or 'raise', got {self.relabel_collisions!r}.")
        if int(self.digits) < 0 or int(self.digits_stats) < 0:
            raise ValueError("digits and digits_stats must be non-negative.")
        overrides = {Backend.coerce(k): dict(v) for k, v in dict(self.backend_overrides).items()}
        known = {f.name for f in fields(self)}
        for bk, opts in overrides.items():
            unknown = sorted(set(opts) - known)
            if unknown:
                raise ValueError(f"Unknown options {unknown} in backend_overrides[{bk.value!r}].")
        object.__setattr__(self, "backend_overrides", overrides)

    # -----------------------------------------------------------------
    def update(self, **options: Any) -> SummaryConfig:
        """Return a copy with ``options`` replaced (unknown names raise ``TypeError``)."""
        if not options:
            return self
        return replace(self, **options)

    def target_backend(self) -> Backend:
        """Backend to build for: explicit option, else file extension, else the default."""
        if self.backend is not None:
            return Backend.coerce(self.backend)
        if self.file is not None:
            return backend_from_path(self.file)
        return default_backend()

    def resolve(self, backend: Backend | str | None = None) -> SummaryConfig:
        """Fill backend-dependent defaults and apply ``backend_overrides``."""
        bk = self.target_backend() if backend is None else Backend.coerce(backend)
        changes = {k: v for k, v in _BACKEND_DEFAULTS[bk].items() if getattr(self, k) is None}
        changes.update(self.backend_overrides.get(bk, {}))
        changes["backend"] = bk
        resolved = replace(self, **changes)
        _LOGGER.debug("Resolved summary options for %s backend.", bk.value)
        return resolved

    def apply_theme_options(self, options: Mapping[str, Any]) -> SummaryConfig:
        """Apply theme option overrides to fields the user left at their defaults."""
        if not options:
            return self
        defaults = {f.name: f.default for f in fields(self)}
        changes = {}
        for key, value in options.items():
            if key not in defaults:
                raise ValueError(f"Theme option {key!r} is not a summary option.")
            if getattr(self, key) == defaults[key]:
                changes[key] = value
        return replace(self, **changes) if changes else self

    # -----------------------------------------------------------------
    @property
    def transform(self) -> dict[str, str]:
        return resolve_transform(self.transform_labels)

    def name_style(self) -> NameStyle:
        """Separators and suffixes used when displaying names for the backend."""
        bk = self.target_backend()
        style = _NAME_STYLES.get(bk, PLAIN_STYLE)
        return replace(style, fe_suffix=self.fe_suffix if self.print_fe_suffix else "")

    def cell_format(self) -> CellFormat:
        return CellFormat(
            digits=int(self.digits),
            digits_stats=int(self.digits_stats),
            estim_format=self.estim_format,
            statistic_format=self.statistic_format,
            stars=bool(self.stars),
            star_breaks=tuple(sorted(float(b) for b in self.star_breaks)),
            star_symbol=self.star_symbol,
            below_decoration=self.below_decoration,
            estim_decoration=self.estim_decoration,
            number_regressions_decoration=self.number_regressions_decoration,
            fe_symbol=self.fe_symbol,
            fe_empty=self.fe_empty,
            show_cluster_counts=bool(self.show_cluster_counts),
        )
