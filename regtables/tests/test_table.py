import pytest

from regtables.output.config import Backend
from regtables.output.render import render_rows
from regtables.output.sections import DataRow, Span
from regtables.output.summary import modelsummary
from regtables.output.table import SummaryTable


def small_table(**kwargs) -> SummaryTable:
    rows = [
        DataRow(["", Span("Wages", 2)], align="lc", underline=[False, True]),
        DataRow(["x", "1.000", "2.000"]),
        DataRow(["", "(0.100)", "(0.200)"]),
        DataRow(["N", "100", "120"]),
    ]
    return SummaryTable(rows, breaks=[1, 3], align="lrr", header_align="lcc", n_header_rows=1, **kwargs)


# ---------------------------------------------------------------------
# Construction and cell access
# ---------------------------------------------------------------------


def test_shape_and_cells() -> None:
    tbl = small_table()
    assert tbl.shape == (4, 3)
    assert tbl.n_models == 2
    assert tbl[0, 1] == "Wages"
    assert tbl[1, 2] == "2.000"
    frame = tbl.to_frame()
    assert list(frame.columns) == ["", "(1)", "(2)"]
    assert frame.iloc[3, 0] == "N"


def test_setitem_and_merged_cells() -> None:
    tbl = small_table()
    tbl[3, 0] = "Observations"
    assert tbl[3, 0] == "Observations"
    tbl[0, 1] = "Log wages"
    assert tbl.rows[0].cells[1] == Span("Log wages", 2)
    with pytest.raises(IndexError):
        tbl[0, 2] = "inside"


def test_rows_must_match_columns() -> None:
    with pytest.raises(ValueError, match="covers 2 columns"):
        SummaryTable([DataRow(["a", "b"])], align="lrr")
    with pytest.raises(ValueError):
        SummaryTable([], align="lr", header_align="lrr")


def test_add_hline_is_idempotent_and_sorted() -> None:
    tbl = small_table()
    tbl.add_hline(2).add_hline(2)
    assert tbl.breaks == [1, 2, 3]
    tbl.remove_hline(2)
    assert tbl.breaks == [1, 3]
    with pytest.raises(ValueError):
        tbl.add_hline(0)
    with pytest.raises(ValueError):
        tbl.add_hline(5)


def test_set_alignment() -> None:
    tbl = small_table()
    tbl.set_alignment(1, "c")
    assert tbl.align == "lcr"
    assert tbl.rows[1].align is None
    tbl.set_alignment(1, "l", header=True)
    assert tbl.header_align == "llc"
    assert tbl.rows[0].align == "ll"
    with pytest.raises(ValueError):
        tbl.set_alignment(1, "lr")
    with pytest.raises(ValueError):
        tbl.set_alignment(1, "x")
    with pytest.raises(IndexError):
        tbl.set_alignment(3, "l")


def test_render_kwargs_and_formatters() -> None:
    tbl = small_table()
    with pytest.raises(ValueError, match="cannot be overridden"):
        tbl.merge_kwargs(tablefmt="grid")
    with pytest.raises(TypeError):
        tbl.add_formatter("upper")
    tbl.add_formatter(lambda text, i, j: text.upper() if j == 0 else text)
    assert "OBSERVATIONS" not in tbl.render()
    tbl[3, 0] = "Observations"
    assert "OBSERVATIONS" in tbl.render()


# ---------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------


def test_text_rendering_rules_and_widths() -> None:
    lines = small_table().render("text").split("\n")
    assert lines[0].startswith("┌")
    assert lines[-1].startswith("└")
    assert sum(ln.startswith("├") for ln in lines) == 2
    # every line has the same width, merged cells included
    assert len({len(ln) for ln in lines}) == 1
    # top frame, 4 rows, underline, 2 rules, bottom frame
    assert len(lines) == 9
    assert "Wages" in lines[1]
    assert "─────" in lines[2]


def test_ascii_rendering() -> None:
    text = small_table().render("ascii")
    assert "┌" not in text
    assert text.startswith("+")


def test_grid_format_replaces_between_row_lines() -> None:
    tbl = small_table(table_format="grid")
    lines = tbl.render("text").split("\n")
    assert len({len(ln) for ln in lines}) == 1
    assert sum(ln.startswith("+=") for ln in lines) == 2


def test_markdown_rendering() -> None:
    lines = small_table().render("markdown").split("\n")
    assert lines[0].startswith("|")
    assert "---" in lines[1]
    assert len(lines) == 5


def test_html_rendering() -> None:
    html = small_table().render("html")
    assert html.startswith("<table>")
    assert 'colspan="2"' in html
    assert html.count("border-bottom: 1px solid black; padding: 0;") == 2


def test_html_cells_are_emitted_verbatim() -> None:
    rows = [DataRow(["R<sup>2</sup>", "1"])]
    for fmt in ("html", "unsafehtml"):
        html = render_rows(rows, breaks=[], backend="html", table_format=fmt, colalign="lr")
        assert "R<sup>2</sup>" in html
        assert "&lt;" not in html


def test_html_labels_escaped_through_transform(make_model) -> None:
    m = make_model(["a<b"], [1.0], [0.1], statistics={"r2": 0.5})
    html = modelsummary(m, backend="html", transform_labels="html", regression_statistics=["r2"]).render()
    assert "a&lt;b" in html
    assert "R<sup>2</sup>" in html


def test_latex_booktabs_rendering() -> None:
    tex = small_table().render("latex")
    lines = tex.split("\n")
    assert lines[0] == "\\begin{tabular}{lrr}"
    assert lines[1] == "\\toprule"
    assert "\\multicolumn{2}{c}{Wages}" in tex
    assert "\\cmidrule(lr){2-3}" in tex
    assert tex.count("\\midrule") == 2
    assert lines[-2] == "\\bottomrule"
    assert lines[-1] == "\\end{tabular}"


def test_plain_latex_uses_hline_and_cline() -> None:
    tex = small_table(table_format={"latex": "latex"}).render("latex")
    assert "\\toprule" not in tex
    assert "\\cline{2-3}" in tex
    assert tex.count("\\hline") == 4


def test_render_rejects_reserved_kwargs() -> None:
    with pytest.raises(ValueError):
        render_rows([DataRow(["a"])], breaks=[], backend="text", table_format="simple", colalign="l", headers=["h"])


def test_default_backend_from_environment(monkeypatch) -> None:
    tbl = small_table()
    monkeypatch.setenv("REGTABLES_BACKEND", "latex")
    assert str(tbl).startswith("\\begin{tabular}")
    tbl.set_backend("markdown")
    assert str(tbl).startswith("|")


def test_notebook_reprs() -> None:
    tbl = small_table(backend="text")
    assert tbl._repr_html_().startswith("<table>")
    assert tbl._repr_latex_().startswith("\\begin{tabular}")


def test_write_uses_extension_when_no_backend_is_set(tmp_path) -> None:
    tbl = small_table()
    path = tbl.write(tmp_path / "table.tex")
    content = path.read_text(encoding="utf-8")
    assert "\\toprule" in content
    assert "\\midrule" in content
    md = tbl.write(tmp_path / "table.md").read_text(encoding="utf-8")
    assert md.startswith("|")
    txt = tbl.write(tmp_path / "table.txt", backend="html").read_text(encoding="utf-8")
    assert txt.startswith("<table>")


def test_write_prefers_table_backend_over_extension(tmp_path) -> None:
    tbl = small_table(backend=Backend.MARKDOWN)
    assert tbl.write(tmp_path / "table.txt").read_text(encoding="utf-8").startswith("|")
    tex = tbl.write(tmp_path / "table.tex", backend="latex").read_text(encoding="utf-8")
    assert tex.startswith("\\begin{tabular}")


def test_table_from_modelsummary_is_a_summary_table(model_a) -> None:
    assert isinstance(modelsummary(model_a), SummaryTable)
