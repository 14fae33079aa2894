import pytest
from tabulate import TableFormat

from regtables.output.config import Backend, SummaryConfig, backend_from_path, default_backend
from regtables.output.formats import (
    MINIMAL_TEXT,
    THEMES,
    format_family,
    get_theme,
    list_themes,
    normalize_table_format,
)


def test_defaults_per_backend() -> None:
    formats = normalize_table_format(None)
    assert formats[Backend.TEXT] == "simple_outline"
    assert formats[Backend.ASCII] == "outline"
    assert formats[Backend.MARKDOWN] == "pipe"
    assert formats[Backend.HTML] == "unsafehtml"
    assert formats[Backend.LATEX] == "latex_booktabs"
    assert normalize_table_format("default") == formats


def test_name_applies_to_its_family_only() -> None:
    formats = normalize_table_format("grid")
    assert formats[Backend.TEXT] == "grid"
    assert formats[Backend.ASCII] == "grid"
    assert formats[Backend.LATEX] == "latex_booktabs"
    formats = normalize_table_format("latex")
    assert formats[Backend.LATEX] == "latex"
    assert formats[Backend.TEXT] == "simple_outline"


def test_aliases() -> None:
    assert normalize_table_format("booktabs")[Backend.LATEX] == "latex_booktabs"
    assert normalize_table_format("rounded")[Backend.TEXT] == "rounded_outline"
    assert normalize_table_format("gfm")[Backend.MARKDOWN] == "github"


def test_mapping_per_backend() -> None:
    formats = normalize_table_format({"text": "psql", "tex": "latex_raw", "html": "default"})
    assert formats[Backend.TEXT] == "psql"
    assert formats[Backend.LATEX] == "latex_raw"
    assert formats[Backend.HTML] == "unsafehtml"


def test_table_format_object() -> None:
    formats = normalize_table_format(MINIMAL_TEXT)
    assert formats[Backend.TEXT] is MINIMAL_TEXT
    assert format_family(MINIMAL_TEXT) == {Backend.TEXT, Backend.ASCII}


def test_unknown_format_or_backend_raises() -> None:
    with pytest.raises(ValueError, match="Unknown table format"):
        normalize_table_format("fancy_nonsense")
    with pytest.raises(ValueError, match="Unknown backend"):
        normalize_table_format({"word": "grid"})
    with pytest.raises(TypeError):
        normalize_table_format({"text": 3})


def test_builtin_themes() -> None:
    themes = list_themes()
    assert set(themes) == {"academic", "modern", "minimal", "compact", "default", "unicode"}
    assert get_theme("Modern").table_formats()[Backend.TEXT] == "rounded_outline"
    assert isinstance(get_theme("minimal").table_formats()[Backend.TEXT], TableFormat)
    assert get_theme("default").formats == THEMES["academic"].formats


def test_custom_theme_mapping() -> None:
    theme = get_theme({"text": "grid", "options": {"fe_symbol": "X"}})
    assert theme.table_formats()[Backend.TEXT] == "grid"
    assert theme.options == {"fe_symbol": "X"}


def test_theme_errors() -> None:
    with pytest.raises(ValueError, match="Unknown theme"):
        get_theme("gothic")
    with pytest.raises(ValueError, match="Unsupported theme options"):
        get_theme({"options": {"digits": 5}})
    with pytest.raises(TypeError):
        get_theme(42)


# ---------------------------------------------------------------------
# Backends and configuration
# ---------------------------------------------------------------------


def test_backend_coercion() -> None:
    assert Backend.coerce("TeX") is Backend.LATEX
    assert Backend.coerce("md") is Backend.MARKDOWN
    with pytest.raises(ValueError, match="Unknown backend"):
        Backend.coerce("docx")


def test_backend_from_path() -> None:
    assert backend_from_path("out/table.tex") is Backend.LATEX
    assert backend_from_path("table.HTML") is Backend.HTML
    assert backend_from_path("table.md") is Backend.MARKDOWN
    assert backend_from_path("table.txt") is Backend.TEXT


def test_default_backend_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("REGTABLES_BACKEND", "latex")
    assert default_backend() is Backend.LATEX
    monkeypatch.setenv("REGTABLES_BACKEND", "bogus")
    assert default_backend() is Backend.TEXT
    monkeypatch.delenv("REGTABLES_BACKEND")
    assert default_backend() is Backend.TEXT


def test_config_validation() -> None:
    with pytest.raises(ValueError, match="align"):
        SummaryConfig(align="x")
    with pytest.raises(ValueError, match="below_statistic"):
        SummaryConfig(below_statistic="pvalue")
    with pytest.raises(ValueError, match="confint_level"):
        SummaryConfig(confint_level=150)
    with pytest.raises(ValueError, match="Unknown options"):
        SummaryConfig(backend_overrides={"latex": {"colour": "red"}})
    with pytest.raises(TypeError):
        SummaryConfig().update(not_an_option=1)
    assert SummaryConfig(below_statistic="none").below_statistic is None


def test_resolve_fills_backend_defaults_and_overrides() -> None:
    cfg = SummaryConfig(backend_overrides={"latex": {"digits": 2}})
    latex = cfg.resolve("latex")
    assert latex.backend is Backend.LATEX
    assert latex.digits == 2
    assert latex.transform["_"] == "\\_"
    text = cfg.resolve("text")
    assert text.digits == 3
    assert text.transform == {}


def test_target_backend_follows_file_extension() -> None:
    assert SummaryConfig(file="t.tex").target_backend() is Backend.LATEX
    assert SummaryConfig(file="t.tex", backend="html").target_backend() is Backend.HTML


def test_theme_options_do_not_override_user_choices() -> None:
    cfg = SummaryConfig(fe_symbol="Y").apply_theme_options({"fe_symbol": "X", "spacer_after_fe": True})
    assert cfg.fe_symbol == "Y"
    assert cfg.spacer_after_fe is True
