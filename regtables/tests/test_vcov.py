import numpy as np
import pytest

from regtables.core.errors import AmbiguousSpecError, DimensionMismatchError, NonSymmetricWarning
from regtables.models.vcov import VcovOverride, VcovSpec, materialize_vcov, vcov_type_name, with_vcov


def test_matrix_override_replaces_standard_errors(model_a) -> None:
    wrapped = model_a + VcovSpec(np.diag([4.0, 9.0]))
    assert isinstance(wrapped, VcovOverride)
    np.testing.assert_allclose(wrapped.standard_errors(), [2.0, 3.0])
    assert wrapped.vcov_type() == "Custom"
    # the original model is untouched
    np.testing.assert_allclose(model_a.standard_errors(), [0.5, 0.25])


def test_delegates_everything_else(model_a) -> None:
    wrapped = with_vcov(model_a, np.eye(2))
    assert wrapped.coefficient_names() == model_a.coefficient_names()
    np.testing.assert_allclose(wrapped.coefficient_values(), [1.0, 2.0])
    assert wrapped.nobs() == 100
    assert wrapped.statistic("r2") == pytest.approx(0.5)
    assert wrapped.model is model_a


def test_function_called_once_and_cached(model_a) -> None:
    calls = []

    def hc(model):
        calls.append(model)
        return np.eye(2) * 0.01

    wrapped = model_a + VcovSpec(hc)
    assert not wrapped.is_materialized
    wrapped.standard_errors()
    wrapped.vcov()
    wrapped.p_values()
    assert len(calls) == 1
    assert calls[0] is model_a
    assert wrapped.vcov_type() == "Function"


def test_zero_argument_function(model_a) -> None:
    wrapped = with_vcov(model_a, lambda: np.eye(2))
    np.testing.assert_allclose(wrapped.standard_errors(), [1.0, 1.0])


def test_dimension_mismatch_is_not_cached(model_a) -> None:
    wrapped = model_a + VcovSpec(np.eye(3))
    with pytest.raises(DimensionMismatchError):
        wrapped.vcov()
    assert not wrapped.is_materialized
    with pytest.raises(DimensionMismatchError):
        wrapped.standard_errors()


def test_non_symmetric_matrix_warns(model_a) -> None:
    wrapped = model_a + VcovSpec(np.array([[1.0, 0.5], [0.0, 1.0]]))
    with pytest.warns(NonSymmetricWarning):
        wrapped.vcov()


def test_unregistered_estimator_tag_is_ambiguous(model_a) -> None:
    class Mystery:
        pass

    wrapped = model_a + VcovSpec(Mystery())
    with pytest.raises(AmbiguousSpecError):
        wrapped.vcov()


def test_registered_estimator_tag(model_a) -> None:
    class HR1:
        name = "HR1"

    @materialize_vcov.register(HR1)
    def _(est, model):
        return np.eye(2) * 4.0

    wrapped = model_a + VcovSpec(HR1())
    np.testing.assert_allclose(wrapped.standard_errors(), [2.0, 2.0])
    assert wrapped.vcov_type() == "HC1"


def test_rewrapping_replaces_previous_spec(model_a) -> None:
    first = model_a + VcovSpec(np.eye(2))
    second = first + VcovSpec(np.eye(2) * 4.0)
    assert second.model is model_a
    np.testing.assert_allclose(second.standard_errors(), [2.0, 2.0])


def test_vcov_type_name_for_tags() -> None:
    class Robust:
        pass

    assert vcov_type_name(Robust()) == "Robust"
    assert vcov_type_name(np.eye(2)) == "Custom"


def test_wrapping_a_raw_result_adapts_it() -> None:
    from types import SimpleNamespace

    import pandas as pd

    from regtables.models.statsmodels import StatsmodelsAdapter

    res = SimpleNamespace(
        params=pd.Series([0.5, 1.0], index=["Intercept", "x"]),
        bse=pd.Series([0.1, 0.2], index=["Intercept", "x"]),
        nobs=30.0,
    )
    wrapped = with_vcov(res, np.eye(2) * 4)
    assert isinstance(wrapped.model, StatsmodelsAdapter)
    assert [str(n) for n in wrapped.coefficient_names()] == ["(Intercept)", "x"]
    np.testing.assert_allclose(wrapped.standard_errors(), [2.0, 2.0])
