"""Render assembled rows with ``tabulate``.

``tabulate`` lays out every ordinary row and draws the outer frame. Rows it
cannot express (merged cells, a per-row alignment that differs from the
column alignment) are sent through as width-reserving placeholders and
rebuilt here from the format's own ``DataRow`` separators, so they line up
with the rest. Horizontal rules at break positions and underlines below
header cells are inserted the same way:

- text / ascii: rule lines built from the format's ``linebelowheader``;
- markdown: the first row becomes the header; rules and merges are dropped;
- html: ``colspan`` cells and bordered separator rows;
- latex: ``\\multicolumn`` cells, ``\\midrule`` (or ``\\hline``) and
  ``\\cmidrule`` (or ``\\cline``) under underlined header cells.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from tabulate import Line, TableFormat, tabulate
from tabulate import _table_formats as _TABULATE_FORMATS  # noqa: PLC2701

from regtables.output.config import Backend
from regtables.output.sections import DataRow, cell_text, cell_width
from regtables.utils.helpers import MIDRULE_TOKEN, hline_placeholder

__all__ = ["RESERVED_KWARGS", "expand_rows", "render_rows"]

_LOGGER = logging.getLogger(__name__)

_COLALIGN = {"l": "left", "c": "center", "r": "right"}
_LATEX_NATIVE = frozenset({"latex", "latex_raw", "latex_booktabs"})
_FILL = "#"

# options that would change the column layout the post-processing relies on
RESERVED_KWARGS = frozenset({
    "tablefmt",
    "headers",
    "colalign",
    "disable_numparse",
    "showindex",
    "maxcolwidths",
    "maxheadercolwidths",
})

Formatter = Callable[[str, int, int], Any]


@dataclass(frozen=True)
class GridCell:
    text: str
    start: int
    width: int
    align: str
    underline: bool


def expand_rows(
    rows: Sequence[DataRow], colalign: str, formatters: Iterable[Formatter] = (),
) -> list[list[GridCell]]:
    """Attach column positions to cells and apply cell formatters."""
    formatters = list(formatters)
    n_cols = len(colalign)
    grid: list[list[GridCell]] = []
    for i, row in enumerate(rows):
        out: list[GridCell] = []
        col = 0
        aligns = row.align
        for k, cell in enumerate(row.cells):
            width = cell_width(cell)
            text = cell_text(cell).replace("\n", " ").strip()
            for fmt in formatters:
                text = str(fmt(text, i, col))
            if col + width > n_cols:
                raise ValueError(f"Row {i} has more than {n_cols} columns.")
            al = aligns[k] if aligns is not None else colalign[col]
            out.append(GridCell(text, col, width, al, bool(row.underline[k])))
            col += width
        if col != n_cols:
            raise ValueError(f"Row {i} covers {col} columns; the table has {n_cols}.")
        grid.append(out)
    return grid


def _flat(row: Sequence[GridCell], n_cols: int) -> list[str]:
    out = [""] * n_cols
    for c in row:
        out[c.start] = c.text
    return out


def _inner_width(widths: Sequence[int], cell: GridCell, padding: int, sep_len: int) -> int:
    span = widths[cell.start: cell.start + cell.width]
    return sum(span) + (cell.width - 1) * (2 * padding + sep_len)


def _column_widths(grid: Sequence[Sequence[GridCell]], n_cols: int, padding: int, sep_len: int) -> list[int]:
    widths = [0] * n_cols
    for row in grid:
        for c in row:
            if c.width == 1:
                widths[c.start] = max(widths[c.start], len(c.text))
    for row in grid:
        for c in row:
            if c.width > 1:
                short = len(c.text) - _inner_width(widths, c, padding, sep_len)
                if short > 0:
                    widths[c.start + c.width - 1] += short
    return widths


def _is_manual(row: Sequence[GridCell], colalign: str, *, underline: bool = False) -> bool:
    return any(
        c.width > 1 or c.align != colalign[c.start] or (underline and c.underline and c.text)
        for c in row
    )


def _align_text(text: str, width: int, align: str) -> str:
    if align == "l":
        return text.ljust(width)
    if align == "c":
        return text.center(width)
    return text.rjust(width)


def _tabulate(body: list[list[str]], fmt: Any, colalign: str, kwargs: dict[str, Any], **extra: Any) -> str:
    return tabulate(
        body,
        tablefmt=fmt,
        colalign=[_COLALIGN[a] for a in colalign],
        disable_numparse=True,
        **extra,
        **kwargs,
    )


def _render_flat(grid: Sequence[Sequence[GridCell]], fmt: Any, colalign: str, kwargs: dict[str, Any]) -> str:
    _LOGGER.debug("Rendering %r without merged cells or rules.", fmt)
    return _tabulate([_flat(r, len(colalign)) for r in grid], fmt, colalign, kwargs)


# ---------------------------------------------------------------------
# text / ascii
# ---------------------------------------------------------------------


def _table_format(fmt: Any) -> TableFormat | None:
    if isinstance(fmt, TableFormat):
        return fmt
    return _TABULATE_FORMATS.get(fmt)


def _line_based(tf: TableFormat | None) -> bool:
    if tf is None or callable(tf.datarow):
        return False
    lines = (tf.lineabove, tf.linebelowheader, tf.linebetweenrows, tf.linebelow)
    return not any(callable(ln) for ln in lines)


def _rule_template(tf: TableFormat) -> Line:
    line = tf.linebelowheader or tf.linebetweenrows or tf.lineabove or tf.linebelow
    if line is None:
        begin, sep, end = tf.datarow
        line = Line("-" * len(begin), "-", "-" * len(sep), "-" * len(end))
    return line


def _rule_line(widths: Sequence[int], tf: TableFormat) -> str:
    line = _rule_template(tf)
    cells = [line.hline * (w + 2 * tf.padding) for w in widths]
    return (line.begin + line.sep.join(cells) + line.end).rstrip()


def _data_line(row: Sequence[GridCell], widths: Sequence[int], tf: TableFormat) -> str:
    begin, sep, end = tf.datarow
    pad = " " * tf.padding
    parts = [
        pad + _align_text(c.text, _inner_width(widths, c, tf.padding, len(sep)), c.align) + pad
        for c in row
    ]
    return (begin + sep.join(parts) + end).rstrip()


def _underline_line(row: Sequence[GridCell], widths: Sequence[int], tf: TableFormat) -> str:
    begin, sep, end = tf.datarow
    char = _rule_template(tf).hline or "-"
    pad = " " * tf.padding
    parts = []
    for c in row:
        w = _inner_width(widths, c, tf.padding, len(sep))
        mark = char * w if c.underline and c.text else " " * w
        parts.append(pad + mark + pad)
    return (begin + sep.join(parts) + end).rstrip()


def _render_text(
    grid: Sequence[Sequence[GridCell]], breaks: set[int], fmt: Any, colalign: str, kwargs: dict[str, Any],
) -> str:
    tf = _table_format(fmt)
    if not _line_based(tf):
        return _render_flat(grid, fmt, colalign, kwargs)
    widths = _column_widths(grid, len(colalign), tf.padding, len(tf.datarow.sep))
    manual = [_is_manual(r, colalign) for r in grid]
    body = [
        [_FILL * w for w in widths] if m else [c.text for c in r]
        for r, m in zip(grid, manual)
    ]
    lines = _tabulate(body, tf, colalign, kwargs).split("\n")

    start = 1 if tf.lineabove else 0
    step = 2 if tf.linebetweenrows else 1
    rule = _rule_line(widths, tf)
    n = len(grid)
    out = lines[:start]
    for r, row in enumerate(grid):
        idx = start + r * step
        out.append(_data_line(row, widths, tf) if manual[r] else lines[idx])
        if any(c.underline and c.text for c in row):
            out.append(_underline_line(row, widths, tf))
        if r + 1 < n:
            if r + 1 in breaks:
                out.append(rule)
            elif step == 2:
                out.append(lines[idx + 1])
        elif n in breaks:
            out.append(rule)
    out.extend(lines[start + (n - 1) * step + 1:])
    return "\n".join(out)


# ---------------------------------------------------------------------
# markdown
# ---------------------------------------------------------------------


def _render_markdown(grid: Sequence[Sequence[GridCell]], fmt: Any, colalign: str, kwargs: dict[str, Any]) -> str:
    flat = [_flat(r, len(colalign)) for r in grid]
    return _tabulate(flat[1:], fmt, colalign, kwargs, headers=flat[0])


# ---------------------------------------------------------------------
# html
# ---------------------------------------------------------------------


def _html_row(row: Sequence[GridCell]) -> str:
    tds = []
    for c in row:
        style = f"text-align: {_COLALIGN[c.align]};"
        if c.underline and c.text:
            style += " border-bottom: 1px solid black;"
        span = f' colspan="{c.width}"' if c.width > 1 else ""
        tds.append(f'<td{span} style="{style}">{c.text}</td>')
    return "<tr>" + "".join(tds) + "</tr>"


def _render_html(
    grid: Sequence[Sequence[GridCell]], breaks: set[int], fmt: Any, colalign: str, kwargs: dict[str, Any],
) -> str:
    # cells already hold HTML markup; labels are escaped by transform_labels
    if fmt == "html":
        fmt = "unsafehtml"
    n_cols = len(colalign)
    manual = [_is_manual(r, colalign, underline=True) for r in grid]
    body = [[""] * n_cols if m else [c.text for c in r] for r, m in zip(grid, manual)]
    lines = _tabulate(body, fmt, colalign, kwargs).split("\n")
    row_lines = [k for k, ln in enumerate(lines) if ln.lstrip().startswith("<tr")]
    if len(row_lines) != len(grid):
        _LOGGER.debug("Unrecognised HTML layout for %r; leaving merged cells and rules out.", fmt)
        return _render_flat(grid, fmt, colalign, kwargs)

    rule = f'<tr><td colspan="{n_cols}" style="border-bottom: 1px solid black; padding: 0;"></td></tr>'
    position = {k: r for r, k in enumerate(row_lines)}
    out = []
    for k, ln in enumerate(lines):
        r = position.get(k)
        if r is None:
            out.append(ln)
            continue
        out.append(_html_row(grid[r]) if manual[r] else ln)
        if r + 1 in breaks:
            out.append(rule)
    return "\n".join(out)


# ---------------------------------------------------------------------
# latex
# ---------------------------------------------------------------------


def _latex_row(row: Sequence[GridCell], colalign: str) -> str:
    parts = []
    for c in row:
        if c.width > 1 or c.align != colalign[c.start]:
            parts.append(f"\\multicolumn{{{c.width}}}{{{c.align}}}{{{c.text}}}")
        else:
            parts.append(c.text)
    return " & ".join(parts) + " \\\\"


def _latex_underline(row: Sequence[GridCell], *, booktabs: bool) -> str:
    cmd = "\\cmidrule(lr)" if booktabs else "\\cline"
    return " ".join(
        f"{cmd}{{{c.start + 1}-{c.start + c.width}}}" for c in row if c.underline and c.text
    )


def _render_latex(
    grid: Sequence[Sequence[GridCell]], breaks: set[int], fmt: Any, colalign: str, kwargs: dict[str, Any],
) -> str:
    if fmt not in _LATEX_NATIVE:
        return _render_flat(grid, fmt, colalign, kwargs)
    booktabs = fmt == "latex_booktabs"
    n_cols = len(colalign)
    manual = [_is_manual(r, colalign) for r in grid]
    body = [hline_placeholder(n_cols) if m else [c.text for c in r] for r, m in zip(grid, manual)]
    lines = _tabulate(body, "latex_raw", colalign, kwargs).split("\n")

    n = len(grid)
    head, row_lines, tail = lines[:2], lines[2: 2 + n], lines[2 + n:]
    if booktabs:
        head[1] = "\\toprule"
        tail[0] = "\\bottomrule"
    mid = "\\midrule" if booktabs else "\\hline"
    out = list(head)
    for r, row in enumerate(grid):
        if manual[r]:
            out.append(_latex_row(row, colalign))
        else:
            out.append(row_lines[r])
        if any(c.underline and c.text for c in row):
            out.append(_latex_underline(row, booktabs=booktabs))
        if r + 1 in breaks:
            out.append(mid)
    out.extend(tail)
    text = "\n".join(out)
    if MIDRULE_TOKEN in text:  # pragma: no cover - every placeholder row is rebuilt above
        raise RuntimeError("Unresolved placeholder row in LaTeX output.")
    return text


# ---------------------------------------------------------------------
# entry point
# ---------------------------------------------------------------------


def render_rows(  # noqa: PLR0913
    rows: Sequence[DataRow],
    *,
    breaks: Iterable[int],
    backend: Backend | str,
    table_format: Any,
    colalign: str,
    formatters: Iterable[Formatter] = (),
    **kwargs: Any,
) -> str:
    """Render ``rows`` for ``backend`` with the given tabulate format.

    ``colalign`` holds the body alignment of every column (``l``/``c``/``r``).
    Extra keyword arguments go to :func:`tabulate.tabulate`.
    """
    bad = sorted(set(kwargs) & RESERVED_KWARGS)
    if bad:
        raise ValueError(f"Renderer options {bad} are set by regtables and cannot be overridden.")
    grid = expand_rows(rows, colalign, formatters)
    if not grid:
        return ""
    backend = Backend.coerce(backend)
    positions = set(breaks)
    if backend is Backend.MARKDOWN:
        return _render_markdown(grid, table_format, colalign, kwargs)
    if backend is Backend.HTML:
        return _render_html(grid, positions, table_format, colalign, kwargs)
    if backend is Backend.LATEX:
        return _render_latex(grid, positions, table_format, colalign, kwargs)
    return _render_text(grid, positions, table_format, colalign, kwargs)
