"""The summary table value returned by :func:`regtables.modelsummary`."""
from __future__ import annotations

import logging
import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import pandas as pd

from regtables.core.align import column_labels
from regtables.output.config import Backend, backend_from_path, default_backend
from regtables.output.formats import normalize_table_format
from regtables.output.render import RESERVED_KWARGS, Formatter, render_rows
from regtables.output.sections import DataRow, Span, cell_width
from regtables.utils.helpers import check_align

__all__ = ["SummaryTable"]

_LOGGER = logging.getLogger(__name__)


class SummaryTable:
    """Rows of a finished summary table plus how to draw them.

    Parameters
    ----------
    rows
        :class:`~regtables.output.sections.DataRow` objects, header rows first.
    breaks
        Row counts after which a horizontal rule is drawn.
    align, header_align
        One ``l``/``c``/``r`` character per column (label column included).
    n_header_rows
        Rows above the coefficient block.
    backend
        Default backend for :meth:`render`; ``None`` means text unless
        ``REGTABLES_BACKEND`` says otherwise.
    table_format
        Anything accepted by
        :func:`~regtables.output.formats.normalize_table_format`.

    Post-construction changes (:meth:`add_hline`, :meth:`set_alignment`, ...)
    only touch rules and display settings; the cell contents are fixed.
    """

    def __init__(  # noqa: PLR0913
        self,
        rows: Sequence[DataRow],
        *,
        breaks: Sequence[int] = (),
        align: str,
        header_align: str | None = None,
        n_header_rows: int = 0,
        backend: Backend | str | None = None,
        table_format: Any = None,
        render_kwargs: Mapping[str, Any] | None = None,
        formatters: Sequence[Formatter] = (),
        sections: Mapping[str, tuple[int, int]] | None = None,
    ) -> None:
        self.rows = list(rows)
        self.align = check_align(align)
        self.header_align = check_align(header_align or align)
        if len(self.header_align) != len(self.align):
            raise ValueError("align and header_align must have one character per column.")
        for i, row in enumerate(self.rows):
            if row.n_columns != self.n_columns:
                raise ValueError(f"Row {i} covers {row.n_columns} columns; expected {self.n_columns}.")
        self.n_header_rows = int(n_header_rows)
        self.breaks: list[int] = []
        for pos in breaks:
            self.add_hline(pos)
        self.backend = None if backend is None else Backend.coerce(backend)
        self.table_format = normalize_table_format(table_format)
        self.render_kwargs: dict[str, Any] = {}
        self.merge_kwargs(**dict(render_kwargs or {}))
        self.formatters: list[Formatter] = list(formatters)
        self.sections = dict(sections or {})

    # ------------------------------------------------------------------
    # Shape and cell access
    # ------------------------------------------------------------------
    @property
    def n_columns(self) -> int:
        return len(self.align)

    @property
    def n_models(self) -> int:
        return self.n_columns - 1

    @property
    def shape(self) -> tuple[int, int]:
        return len(self.rows), self.n_columns

    def __len__(self) -> int:
        return len(self.rows)

    def __getitem__(self, key: tuple[int, int]) -> str:
        """Text of cell ``(row, column)``; a merged cell is read at its first column."""
        i, j = key
        return self.rows[i].texts()[j]

    def __setitem__(self, key: tuple[int, int], value: Any) -> None:
        i, j = key
        row = self.rows[i]
        col = 0
        for k, cell in enumerate(row.cells):
            width = cell_width(cell)
            if col == j:
                row.cells[k] = Span(str(value), width) if isinstance(cell, Span) else str(value)
                return
            if col < j < col + width:
                break
            col += width
        raise IndexError(f"Cell ({i}, {j}) is inside a merged cell; address its first column.")

    def to_frame(self) -> pd.DataFrame:
        """Cell texts as a DataFrame; merged cells fill their first column."""
        columns = ["", *column_labels(self.n_models)]
        return pd.DataFrame([r.texts() for r in self.rows], columns=columns)

    # ------------------------------------------------------------------
    # Customisation
    # ------------------------------------------------------------------
    def add_hline(self, position: int) -> SummaryTable:
        """Draw a rule below row ``position - 1``; adding an existing rule does nothing."""
        pos = int(position)
        if not 0 < pos <= len(self.rows):
            raise ValueError(f"Rule position {pos} outside 1..{len(self.rows)}.")
        if pos not in self.breaks:
            self.breaks.append(pos)
            self.breaks.sort()
        return self

    def remove_hline(self, position: int) -> SummaryTable:
        self.breaks = [b for b in self.breaks if b != int(position)]
        return self

    def set_alignment(self, col: int, align: str, *, header: bool = False) -> SummaryTable:
        """Set the body (or header) alignment of column ``col`` (0 is the label column)."""
        char = check_align(align)
        if len(char) != 1:
            raise ValueError(f"Alignment must be a single character, got {align!r}.")
        if not 0 <= col < self.n_columns:
            raise IndexError(f"Column {col} outside 0..{self.n_columns - 1}.")
        current = self.header_align if header else self.align
        updated = current[:col] + char + current[col + 1:]
        for row in self.rows[: self.n_header_rows] if header else self.rows[self.n_header_rows:]:
            self._realign(row, current, updated)
        if header:
            self.header_align = updated
        else:
            self.align = updated
        return self

    @staticmethod
    def _realign(row: DataRow, old: str, new: str) -> None:
        if row.align is None:
            return
        chars = list(row.align)
        col = 0
        for k, cell in enumerate(row.cells):
            if chars[k] == old[col]:
                chars[k] = new[col]
            col += cell_width(cell)
        row.align = "".join(chars)

    def set_backend(self, backend: Backend | str | None) -> SummaryTable:
        self.backend = None if backend is None else Backend.coerce(backend)
        return self

    def merge_kwargs(self, **kwargs: Any) -> SummaryTable:
        """Add keyword arguments passed to :func:`tabulate.tabulate` when rendering."""
        bad = sorted(set(kwargs) & RESERVED_KWARGS)
        if bad:
            raise ValueError(f"Renderer options {bad} are set by regtables and cannot be overridden.")
        self.render_kwargs.update(kwargs)
        return self

    def add_formatter(self, formatter: Formatter) -> SummaryTable:
        """Add ``formatter(text, row, col) -> text``, applied to every cell at render time."""
        if not callable(formatter):
            raise TypeError("formatter must be callable.")
        self.formatters.append(formatter)
        return self

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------
    def render(self, backend: Backend | str | None = None) -> str:
        bk = Backend.coerce(backend) if backend is not None else (self.backend or default_backend())
        return render_rows(
            self.rows,
            breaks=self.breaks,
            backend=bk,
            table_format=self.table_format[bk],
            colalign=self.align,
            formatters=self.formatters,
            **self.render_kwargs,
        )

    def write(self, path: str | os.PathLike[str], backend: Backend | str | None = None) -> Path:
        """Write the rendered table.

        The backend is ``backend`` if given, else the table's own backend, else
        the one implied by the file extension.
        """
        target = Path(path)
        if backend is None:
            backend = self.backend if self.backend is not None else backend_from_path(target)
        text = self.render(backend)
        target.write_text(text + "\n", encoding="utf-8")
        _LOGGER.info("Wrote %s table to %s.", Backend.coerce(backend).value, target)
        return target

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return self.render()

    def _repr_html_(self) -> str:
        return self.render(Backend.HTML)

    def _repr_latex_(self) -> str:
        return self.render(Backend.LATEX)
