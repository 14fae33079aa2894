from types import SimpleNamespace

import numpy as np
import pandas as pd
import pytest

from regtables.core.names import Cluster, FixedEffect, Intercept, Plain
from regtables.models.base import UNSUPPORTED, EstimationResult, ModelAdapter, normalize_ci_level
from regtables.models.statsmodels import StatsmodelsAdapter, as_adapter, register_adapter


class OLS:
    """Stands in for a statsmodels model class; only the name matters."""

    formula = "y ~ x"
    endog_names = "y"


def _fake_result(**extra):
    attrs = {
        "params": pd.Series([1.0, 2.0], index=["Intercept", "x"]),
        "bse": pd.Series([0.5, 0.5], index=["Intercept", "x"]),
        "pvalues": pd.Series([0.04, 0.001], index=["Intercept", "x"]),
        "df_resid": 48.0,
        "nobs": 50.0,
        "rsquared": 0.3,
        "rsquared_adj": 0.28,
        "fvalue": 12.0,
        "cov_type": "HC1",
        "model": OLS(),
    }
    attrs.update(extra)
    return SimpleNamespace(**attrs)


def test_duck_typed_statsmodels_result() -> None:
    ad = as_adapter(_fake_result())
    assert isinstance(ad, StatsmodelsAdapter)
    assert ad.coefficient_names() == [Intercept(), Plain("x")]
    np.testing.assert_allclose(ad.standard_errors(), [0.5, 0.5])
    np.testing.assert_allclose(ad.p_values(), [0.04, 0.001])
    assert ad.nobs() == 50
    assert ad.statistic("r2") == pytest.approx(0.3)
    assert ad.statistic("adjr2") == pytest.approx(0.28)
    assert ad.statistic("f") == pytest.approx(12.0)
    assert ad.statistic("aic") is UNSUPPORTED
    assert ad.response_name() == Plain("y")
    assert ad.regression_type() == "OLS"
    assert ad.vcov_type() == "HC1"


def test_cov_type_names_are_normalized() -> None:
    assert as_adapter(_fake_result(cov_type="nonrobust")).vcov_type() == "IID"
    assert as_adapter(_fake_result(cov_type="cluster")).vcov_type() == "Cluster"


def test_clustered_result_reports_cluster_count() -> None:
    res = _fake_result(cov_type="cluster", cov_kwds={"groups": np.array([1, 1, 2, 3])})
    assert as_adapter(res).other_statistics("clusters") == [("cluster", 3)]
    assert as_adapter(_fake_result()).other_statistics("clusters") is UNSUPPORTED


def test_pseudo_r2_marks_nonlinear_model() -> None:
    ad = as_adapter(_fake_result(prsquared=0.12))
    assert not ad.is_linear()
    assert ad.default_statistics() == ["nobs", "pseudo_r2"]
    assert ad.statistic("pseudo_r2") == pytest.approx(0.12)


def test_unknown_objects_are_rejected() -> None:
    with pytest.raises(TypeError, match="Cannot build a table column"):
        as_adapter(object())


def test_adapters_pass_through(model_a) -> None:
    assert as_adapter(model_a) is model_a


def test_registered_adapter_is_used(model_a) -> None:
    class Wrapper:
        def __init__(self, inner):
            self.inner = inner

    register_adapter(Wrapper, lambda w: w.inner)
    assert as_adapter(Wrapper(model_a)) is model_a


# ---------------------------------------------------------------------
# EstimationResult and the base interface
# ---------------------------------------------------------------------


def test_estimation_result_from_vcov_only() -> None:
    res = EstimationResult(params=pd.Series([1.0, 2.0], index=["a", "b"]), vcov_matrix=np.diag([0.25, 1.0]))
    np.testing.assert_allclose(res.standard_errors(), [0.5, 1.0])
    assert res.nobs() is UNSUPPORTED


def test_estimation_result_needs_uncertainty() -> None:
    with pytest.raises(ValueError, match="se or vcov_matrix"):
        EstimationResult(params=pd.Series([1.0], index=["a"]))
    with pytest.raises(ValueError, match="length"):
        EstimationResult(params=pd.Series([1.0], index=["a"]), se=pd.Series([1.0, 2.0]))


def test_estimation_result_other_statistics_from_formula(fe_model) -> None:
    assert fe_model.other_statistics("fe") == [
        (FixedEffect(Plain("firm")), True),
        (FixedEffect(Plain("year")), True),
    ]
    assert fe_model.other_statistics("clusters") == [("firm", 40)]
    assert fe_model.other_statistics("first_stage") is UNSUPPORTED
    assert fe_model.response_name() == Plain("y")
    with pytest.raises(ValueError, match="Unknown statistic family"):
        fe_model.other_statistics("weights")


def test_formula_clusters_without_counts(make_model) -> None:
    m = make_model(["x"], [1.0], [0.1], formula_text="y ~ x + cluster(state)")
    assert m.other_statistics("clusters") == [(Cluster(Plain("state")), None)]


def test_confidence_interval_and_pvalues_without_dof() -> None:
    res = EstimationResult(params=pd.Series([2.0], index=["x"]), se=pd.Series([1.0], index=["x"]))
    lo, hi = res.confidence_interval(0.95)[0]
    assert lo == pytest.approx(2.0 - 1.959964, abs=1e-5)
    assert hi == pytest.approx(2.0 + 1.959964, abs=1e-5)
    assert res.p_values()[0] == pytest.approx(0.0455, abs=1e-3)


def test_normalize_ci_level() -> None:
    assert normalize_ci_level(95) == pytest.approx(0.95)
    assert normalize_ci_level(None) == pytest.approx(0.95)
    with pytest.raises(ValueError):
        normalize_ci_level(0.0)


def test_minimal_adapter_uses_formula_names() -> None:
    class Minimal(ModelAdapter):
        def coefficient_values(self):
            return np.array([1.0, 2.0])

        def standard_errors(self):
            return np.array([1.0, 1.0])

        def formula(self):
            from regtables.utils.formula import parse_formula

            return parse_formula("y ~ x")

    ad = Minimal()
    assert ad.coefficient_names() == [Intercept(), Plain("x")]
    assert ad.regression_type() == "OLS"
    assert ad.other_statistics("fe") is UNSUPPORTED
