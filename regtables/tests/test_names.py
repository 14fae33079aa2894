import pytest

from regtables.core.names import (
    HTML_STYLE,
    LATEX_STYLE,
    PLAIN_STYLE,
    Categorical,
    Cluster,
    FirstStage,
    FixedEffect,
    Interacted,
    Intercept,
    Plain,
    RandomEffect,
    as_coefname,
    identity,
    match_keys,
    parse_coef_name,
    relabel,
    unique_names,
)


def test_parse_plain_intercept_interaction_categorical() -> None:
    assert parse_coef_name("x") == Plain("x")
    assert parse_coef_name("Intercept") == Intercept()
    assert parse_coef_name("x:z") == Interacted((Plain("x"), Plain("z")))
    assert parse_coef_name("C(g)[T.b]") == Categorical("g", "b")
    assert parse_coef_name("g[T.b]") == Categorical("g", "b")


def test_identity_is_backend_independent() -> None:
    nm = Interacted((Plain("x"), Categorical("g", "b")))
    assert nm.identity() == "x & g: b"
    assert nm.display(LATEX_STYLE) == "x $\\times$ g = b"
    assert nm.display(HTML_STYLE) == "x &times; g: b"


def test_fixed_effect_and_cluster_display() -> None:
    assert FixedEffect(Plain("firm")).display(PLAIN_STYLE) == "Firm Fixed Effects"
    assert Cluster(Plain("firm")).display(PLAIN_STYLE) == "Firm Clustering"
    assert FixedEffect(Plain("firm")).identity() == "firm"


def test_random_effect_and_first_stage() -> None:
    re_name = RandomEffect(lhs=Plain("school"), rhs=Plain("1"))
    assert re_name.identity() == "1 | school"
    assert FirstStage("x").display() == "X First Stage"


def test_as_coefname_rejects_other_types() -> None:
    assert as_coefname("x") == Plain("x")
    with pytest.raises(TypeError):
        as_coefname(3)


def test_relabel_exact_match_replaces_whole_name() -> None:
    assert relabel("x", {"x": "Treatment"}) == Plain("Treatment")
    assert relabel(FixedEffect(Plain("firm")), {"firm": "Company"}) == FixedEffect(Plain("Company"))


def test_relabel_reaches_interaction_parts() -> None:
    nm = Interacted((Plain("x"), Plain("z")))
    assert identity(relabel(nm, {"x": "Treatment"})) == "Treatment & z"


def test_relabel_applies_substring_transform() -> None:
    assert relabel("log_wage", transform={"_": "\\_"}) == Plain("log\\_wage")
    assert relabel(Intercept(), transform={"(": "["}) == Intercept()


def test_unique_names_keeps_first() -> None:
    names = [Plain("a"), Plain("b"), FixedEffect(Plain("a"))]
    assert unique_names(names) == [Plain("a"), Plain("b")]


def test_transform_is_single_pass() -> None:
    from regtables.utils.helpers import LATEX_ESCAPES

    out = relabel("a\\b_{c}", transform=LATEX_ESCAPES)
    assert out == Plain("a\\textbackslash{}b\\_\\{c\\}")


def test_intercept_labels_accept_statsmodels_spelling() -> None:
    assert match_keys(Intercept()) == ("(Intercept)", "Intercept")
    assert match_keys("x") == ("x",)
    assert relabel(parse_coef_name("Intercept"), {"Intercept": "Constant"}) == Plain("Constant")
    assert relabel(Intercept(), {"(Intercept)": "Constant"}) == Plain("Constant")
