import pytest

from regtables.core.names import Cluster, FixedEffect, Interacted, Intercept, Plain, RandomEffect
from regtables.utils.formula import FormulaParser, parse_formula


def test_include_intercept_detects_0_plus_x() -> None:
    out = FormulaParser().parse("y ~ 0 + x")
    assert out.include_intercept is False
    assert out.rhs == (Plain("x"),)


def test_include_intercept_detects_x_minus_1() -> None:
    out = FormulaParser().parse("y ~ x - 1")
    assert out.include_intercept is False


def test_include_intercept_default_true() -> None:
    out = parse_formula("y ~ x")
    assert out.include_intercept is True
    assert out.rhs == (Intercept(), Plain("x"))
    assert out.lhs == Plain("y")


def test_interaction_terms_become_interacted_names() -> None:
    out = parse_formula("y ~ x + x:z")
    assert Interacted((Plain("x"), Plain("z"))) in out.rhs


def test_fixed_effects_are_removed_from_rhs() -> None:
    out = parse_formula("wage ~ educ + fe(firm) + fe(year + firm:year)")
    assert out.rhs == (Intercept(), Plain("educ"))
    assert out.fixed_effects == (
        FixedEffect(Plain("firm")),
        FixedEffect(Plain("year")),
        FixedEffect(Interacted((Plain("firm"), Plain("year")))),
    )


def test_fe_only_formula_keeps_intercept_only_rhs() -> None:
    out = parse_formula("y ~ fe(g)")
    assert out.rhs == (Intercept(),)
    assert out.fixed_effects == (FixedEffect(Plain("g")),)


def test_cluster_terms_from_formula_and_options() -> None:
    out = parse_formula("y ~ x + cluster(firm)")
    assert out.clusters == (Cluster(Plain("firm")),)
    out = parse_formula("y ~ x", options="cluster(firm + year)")
    assert out.clusters == (Cluster(Plain("firm")), Cluster(Plain("year")))


def test_cluster_may_only_appear_once() -> None:
    with pytest.raises(ValueError, match="at most once"):
        parse_formula("y ~ x + cluster(a)", options="cluster(b)")


def test_random_effect_terms() -> None:
    out = parse_formula("y ~ x + (1 | school)")
    assert out.random_effects == (RandomEffect(lhs=Plain("school"), rhs=Plain("1")),)
    assert out.rhs == (Intercept(), Plain("x"))


def test_formula_without_tilde_raises() -> None:
    with pytest.raises(ValueError, match="~"):
        parse_formula("y + x")
