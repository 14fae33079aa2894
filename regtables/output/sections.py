"""Assemble the rows of a summary table from independently toggleable sections.

The table is built in two passes over ``section_order``:

1. the effective order drops disabled sections and collapses runs of
   ``"break"`` tokens (a trailing break is kept only when the user's order
   literally ends with one);
2. every remaining token emits zero or more :class:`DataRow` objects. Tokens
   before ``"coef"`` belong to the header, the rest to the body.

Break positions are row counts: a rule is drawn below row ``pos - 1``. They
are strictly increasing and never ``0``.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Union

from regtables.core.align import FillPolicy, OtherStatKind, align_coefs, align_other_stats
from regtables.core.axis import model_names, relabeled_names
from regtables.core.names import Cluster, CoefName, FixedEffect, relabel
from regtables.core.statistics import (
    HasControls,
    RegressionNumber,
    RegressionType,
    Spacer,
    format_cell,
    resolve_statistic,
    safe_compute,
)
from regtables.models.base import UNSUPPORTED
from regtables.output.config import DEFAULT_SECTION_ORDER
from regtables.utils.helpers import expand_align, is_sequence_of_rows

if TYPE_CHECKING:  # pragma: no cover - import only for type checking
    from regtables.models.base import ModelAdapter
    from regtables.output.config import SummaryConfig

__all__ = [
    "Assembly",
    "DataRow",
    "Phase",
    "Section",
    "SectionAssembler",
    "Span",
    "combine_equals",
]

_LOGGER = logging.getLogger(__name__)


class Section(str, Enum):
    GROUPS = "groups"
    DEPVAR = "depvar"
    NUMBER_REGRESSIONS = "number_regressions"
    COEF = "coef"
    FIXED_EFFECTS = "fe"
    CLUSTERS = "clusters"
    FIRST_STAGE = "first_stage"
    RANDOM_EFFECTS = "randomeffects"
    REGTYPE = "regtype"
    CONTROLS = "controls"
    STATS = "stats"
    EXTRALINES = "extralines"
    BREAK = "break"


class Phase(Enum):
    HEADER = "header"
    BODY = "body"


@dataclass(frozen=True)
class Span:
    """A cell merged across ``width`` adjacent columns."""

    value: str
    width: int

    def __post_init__(self) -> None:
        if int(self.width) < 1:
            raise ValueError(f"Span width must be at least 1, got {self.width}.")


Cell = Union[str, Span]


def cell_width(cell: Cell) -> int:
    return cell.width if isinstance(cell, Span) else 1


def cell_text(cell: Cell) -> str:
    return cell.value if isinstance(cell, Span) else str(cell)


@dataclass
class DataRow:
    """One table row.

    ``align`` holds one of ``l``/``c``/``r`` per cell and ``underline`` one
    flag per cell; both are filled from the column alignment when omitted.
    """

    cells: list[Cell]
    align: str | None = None
    underline: list[bool] | bool = False

    def __post_init__(self) -> None:
        self.cells = [c if isinstance(c, Span) else ("" if c is None else str(c)) for c in self.cells]
        if isinstance(self.underline, bool):
            self.underline = [self.underline] * len(self.cells)
        else:
            self.underline = [bool(u) for u in self.underline]
        if len(self.underline) != len(self.cells):
            raise ValueError("DataRow needs one underline flag per cell.")
        if self.align is not None and len(self.align) != len(self.cells):
            raise ValueError("DataRow needs one alignment character per cell.")

    @property
    def n_columns(self) -> int:
        return sum(cell_width(c) for c in self.cells)

    def texts(self) -> list[str]:
        """Cell texts expanded to one entry per column (span text in its first column)."""
        out: list[str] = []
        for c in self.cells:
            out.append(cell_text(c))
            out.extend([""] * (cell_width(c) - 1))
        return out


def combine_equals(cells: Sequence[Cell]) -> list[Cell]:
    """Merge runs of equal, non-empty neighbouring cells into spans."""
    out: list[Cell] = []
    i = 0
    cells = list(cells)
    while i < len(cells):
        cur = cells[i]
        if isinstance(cur, Span) or cur == "":
            out.append(cur)
            i += 1
            continue
        j = i
        while j + 1 < len(cells) and not isinstance(cells[j + 1], Span) and cells[j + 1] == cur:
            j += 1
        out.append(Span(cur, j - i + 1) if j > i else cur)
        i = j + 1
    return out


@dataclass
class Assembly:
    """Output of :class:`SectionAssembler`."""

    rows: list[DataRow]
    breaks: list[int]
    n_header_rows: int
    sections: dict[str, tuple[int, int]] = field(default_factory=dict)


@dataclass(frozen=True)
class _Titled:
    section: Any
    title: str


_OTHER_KINDS = {
    Section.FIXED_EFFECTS: OtherStatKind.FIXED_EFFECTS,
    Section.CLUSTERS: OtherStatKind.CLUSTERS,
    Section.FIRST_STAGE: OtherStatKind.FIRST_STAGE,
    Section.RANDOM_EFFECTS: OtherStatKind.RANDOM_EFFECTS,
}

_WRAPPERS: dict[OtherStatKind, type[CoefName]] = {
    OtherStatKind.FIXED_EFFECTS: FixedEffect,
    OtherStatKind.CLUSTERS: Cluster,
}


def _coerce_token(token: Any) -> Any:
    if isinstance(token, (Section, DataRow, _Titled)):
        return token
    if isinstance(token, str):
        try:
            return Section(token.strip().lower())
        except ValueError:
            valid = ", ".join(s.value for s in Section)
            raise ValueError(f"Unknown section {token!r}; expected one of {valid}, or a row.") from None
    if isinstance(token, tuple) and len(token) == 2 and isinstance(token[0], str) and isinstance(token[1], str):
        try:
            inner = Section(token[0].strip().lower())
        except ValueError:
            inner = None
        if inner is not None and inner is not Section.BREAK:
            return _Titled(inner, token[1])
    if isinstance(token, Sequence):
        return DataRow(list(token))
    raise TypeError(f"Cannot interpret {token!r} as a section or a row.")


def _section_of(token: Any) -> Any:
    return token.section if isinstance(token, _Titled) else token


class SectionAssembler:
    """Two-pass state machine turning ``section_order`` into table rows."""

    def __init__(
        self,
        models: Sequence[ModelAdapter],
        config: SummaryConfig,
        axis: Sequence[CoefName],
    ) -> None:
        self.models = list(models)
        self.config = config
        self.axis = list(axis)
        self.n_cols = len(self.models) + 1
        self.fmt = config.cell_format()
        self.style = config.name_style()
        self.backend = config.target_backend()
        self.transform = config.transform
        self.body_align = expand_align(config.align, self.n_cols)
        self.header_align = expand_align(config.header_align, self.n_cols)
        raw_order = config.section_order if config.section_order is not None else DEFAULT_SECTION_ORDER
        self.order = [_coerce_token(t) for t in raw_order]
        self.phase = Phase.HEADER

    # ------------------------------------------------------------------
    # Pass 1
    # ------------------------------------------------------------------
    def _enabled(self, section: Any) -> bool:
        if not isinstance(section, Section):
            return True
        cfg = self.config
        toggles = {
            Section.GROUPS: cfg.groups is not None,
            Section.DEPVAR: cfg.print_depvar,
            Section.NUMBER_REGRESSIONS: (
                len(self.models) > 1 if cfg.number_regressions is None else cfg.number_regressions
            ),
            Section.REGTYPE: cfg.print_estimator_section,
            Section.FIXED_EFFECTS: cfg.print_fe_section,
            Section.EXTRALINES: cfg.extralines is not None,
            Section.CONTROLS: cfg.print_control_indicator,
            Section.CLUSTERS: cfg.print_clusters,
            Section.FIRST_STAGE: cfg.print_first_stage_section,
            Section.RANDOM_EFFECTS: cfg.print_randomeffects,
        }
        return bool(toggles.get(section, True))

    def effective_order(self) -> list[Any]:
        """Enabled tokens with collapsed breaks."""
        out: list[Any] = []
        for token in self.order:
            section = _section_of(token)
            if section is Section.BREAK:
                if not out or out[-1] is not Section.BREAK:
                    out.append(Section.BREAK)
            elif self._enabled(section):
                out.append(token)
        if out and out[-1] is Section.BREAK and not self._ends_with_break():
            out.pop()
        return out

    def _ends_with_break(self) -> bool:
        return bool(self.order) and self.order[-1] is Section.BREAK

    # ------------------------------------------------------------------
    # Pass 2
    # ------------------------------------------------------------------
    def assemble(self) -> Assembly:
        tokens = self.effective_order()
        rows: list[DataRow] = []
        breaks: list[int] = []
        sections: dict[str, tuple[int, int]] = {}
        n_header = None
        self.phase = Phase.HEADER

        for i, token in enumerate(tokens):
            section = _section_of(token)
            if section is Section.BREAK:
                pos = len(rows)
                if pos > 0 and (not breaks or breaks[-1] != pos):
                    breaks.append(pos)
                continue
            if section is Section.COEF:
                self.phase = Phase.BODY
                if n_header is None:
                    n_header = len(rows)
            nxt = tokens[i + 1] if i + 1 < len(tokens) else None
            new_rows = self._emit(section, nxt)
            if not new_rows:
                continue
            if isinstance(token, _Titled):
                new_rows.insert(0, self._row([token.title] + [""] * len(self.models), self.body_align))
            start = len(rows)
            rows.extend(new_rows)
            if isinstance(section, Section):
                sections.setdefault(section.value, (start, len(rows)))

        if breaks and breaks[-1] == len(rows) and not self._ends_with_break():
            breaks.pop()
        _LOGGER.debug("Assembled %d rows with breaks at %s.", len(rows), breaks)
        return Assembly(rows, breaks, len(rows) if n_header is None else n_header, sections)

    def _emit(self, section: Any, nxt: Any) -> list[DataRow] | None:
        if isinstance(section, DataRow):
            return [self._inline(section)]
        if section is Section.GROUPS:
            return self._inline_rows(self.config.groups)
        if section is Section.EXTRALINES:
            return self._inline_rows(self.config.extralines)
        if section is Section.DEPVAR:
            return self._depvar(underline=nxt is not None and nxt is not Section.BREAK)
        if section is Section.NUMBER_REGRESSIONS:
            cells = [format_cell(RegressionNumber(j + 1), self.fmt) for j in range(len(self.models))]
            return [self._row(cells, self.body_align)]
        if section is Section.COEF:
            return self._coef()
        if section is Section.REGTYPE:
            cells = [format_cell(RegressionType(m.regression_type()), self.fmt) for m in self.models]
            return [self._row(["Estimator", *cells], self.body_align)]
        if section is Section.CONTROLS:
            return self._controls()
        if section is Section.STATS:
            return self._stats()
        if section in _OTHER_KINDS:
            return self._other(_OTHER_KINDS[section])
        raise ValueError(f"Cannot emit section {section!r}.")

    # ------------------------------------------------------------------
    # Row helpers
    # ------------------------------------------------------------------
    def _row(
        self,
        cells: Sequence[Cell],
        align_cols: str,
        *,
        combine: bool = False,
        underline: bool = False,
        explicit: DataRow | None = None,
    ) -> DataRow:
        cells = list(cells)
        if combine:
            cells = combine_equals(cells)
        width = sum(cell_width(c) for c in cells)
        if width > self.n_cols:
            raise ValueError(f"Row {cells!r} spans {width} columns; the table has {self.n_cols}.")
        pad = self.n_cols - width
        cells = [""] * pad + cells
        if explicit is not None and explicit.align is not None and not combine:
            align = align_cols[:pad] + explicit.align
            flags = [False] * pad + list(explicit.underline)
            return DataRow(cells, align, flags)
        align = []
        col = 0
        for c in cells:
            align.append(align_cols[col])
            col += cell_width(c)
        if explicit is not None and not combine:
            flags = [False] * pad + list(explicit.underline)
        else:
            flags = [underline and bool(cell_text(c).strip()) for c in cells]
        return DataRow(cells, "".join(align), flags)

    def _inline(self, row: DataRow) -> DataRow:
        if self.phase is Phase.HEADER:
            return self._row(row.cells, self.header_align, combine=True, underline=True)
        return self._row(row.cells, self.body_align, explicit=row)

    def _inline_rows(self, spec: Any) -> list[DataRow]:
        if isinstance(spec, DataRow):
            items = [spec]
        elif is_sequence_of_rows(spec) or (isinstance(spec, Sequence) and spec and isinstance(spec[0], DataRow)):
            items = list(spec)
        else:
            items = [spec]
        return [self._inline(r if isinstance(r, DataRow) else DataRow(list(r))) for r in items]

    def _name(self, name: Any) -> CoefName:
        return relabel(name, self.config.labels, self.transform)

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------
    def _depvar(self, *, underline: bool) -> list[DataRow] | None:
        names = []
        for m in self.models:
            resp = m.response_name()
            names.append("" if resp is UNSUPPORTED else self._name(resp).display(self.style))
        if not any(names):
            return None
        return [self._row(names, self.header_align, combine=True, underline=underline)]

    def _coef(self) -> list[DataRow]:
        cfg = self.config
        values, below = align_coefs(
            self.models,
            self.axis,
            labels=cfg.labels,
            transform=self.transform,
            below=cfg.below_statistic,
            level=cfg.confint_level,
        )
        blank = [""] * self.n_cols
        rows: list[DataRow] = []
        last = len(self.axis) - 1
        for r, nm in enumerate(self.axis):
            label = nm.display(self.style)
            coefs = [format_cell(v, self.fmt) for v in values.iloc[r]]
            if cfg.below_statistic is None:
                rows.append(self._row([label, *coefs], self.body_align))
            elif cfg.stat_below:
                rows.append(self._row([label, *coefs], self.body_align))
                rows.append(self._row(["", *(format_cell(v, self.fmt) for v in below.iloc[r])], self.body_align))
            else:
                belows = [format_cell(v, self.fmt) for v in below.iloc[r]]
                joined = [" ".join(p for p in (c, b) if p) for c, b in zip(coefs, belows)]
                rows.append(self._row([label, *joined], self.body_align))
            if cfg.extra_space and r != last:
                rows.append(self._row(blank, self.body_align))
        if cfg.spacer_after_coef:
            rows.append(self._row(blank, self.body_align))
        return rows

    def _controls(self) -> list[DataRow] | None:
        shown = {nm.identity() for nm in self.axis}
        flags = []
        for m in self.models:
            names = relabeled_names(model_names(m), self.config.labels, self.transform)
            flags.append(any(nm.identity() not in shown for nm in names))
        if not any(flags):
            return None
        cells = [format_cell(HasControls(f), self.fmt) for f in flags]
        return [self._row(["Controls", *cells], self.body_align)]

    def _statistic_items(self) -> list[Any]:
        cfg = self.config
        if cfg.regression_statistics is not None:
            items = list(cfg.regression_statistics)
        else:
            items = []
            for m in self.models:
                for key in m.default_statistics():
                    if key not in items:
                        items.append(key)
        if cfg.add_vcov_stat:
            keys = {it for it in items if isinstance(it, str)}
            if "vcov_type" not in keys:
                if cfg.spacer_before_vcov and "spacer" not in keys:
                    items.append("spacer")
                items.append("vcov_type")
        return items

    def _stats(self) -> list[DataRow] | None:
        rows: list[DataRow] = []
        for item in self._statistic_items():
            spec, label = resolve_statistic(item)
            values = [safe_compute(spec, m) for m in self.models]
            if spec.key == "spacer" or all(isinstance(v, Spacer) for v in values):
                rows.append(self._row([""] * self.n_cols, self.body_align))
                continue
            if all(v is None for v in values):
                _LOGGER.debug("Skipping statistic %s: no model reports it.", spec.key)
                continue
            text = label if label is not None else spec.label_for(self.backend.value)
            rows.append(self._row([text, *(format_cell(v, self.fmt) for v in values)], self.body_align))
        if all(not any(r.texts()) for r in rows):
            return None
        return rows

    def _other(self, kind: OtherStatKind) -> list[DataRow] | None:
        cfg = self.config
        per_model = [m.other_statistics(kind.value) for m in self.models]
        result = align_other_stats(
            per_model,
            FillPolicy.for_kind(kind),
            labels=cfg.labels,
            transform=self.transform,
            keep=cfg.fixedeffects if kind is OtherStatKind.FIXED_EFFECTS else (),
            wrapper=_WRAPPERS.get(kind),
        )
        if result is None:
            return None
        names, frame = result
        rows = [
            self._row(
                [nm.display(self.style), *(format_cell(v, self.fmt) for v in frame.iloc[r])],
                self.body_align,
            )
            for r, nm in enumerate(names)
        ]
        if cfg.spacer_after_fe:
            rows.append(self._row([""] * self.n_cols, self.body_align))
        return rows
