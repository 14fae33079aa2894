import warnings

import numpy as np
import pytest

from regtables.core.errors import StatisticComputationWarning
from regtables.core.statistics import (
    REGISTRY,
    CellFormat,
    ClusterValue,
    CoefValue,
    ConfInt,
    FixedEffectValue,
    HasControls,
    RegressionNumber,
    Spacer,
    StatSpec,
    StdError,
    TStat,
    VcovType,
    format_cell,
    register_statistic,
    resolve_statistic,
    safe_compute,
)

FMT = CellFormat()


def test_coef_with_stars() -> None:
    assert format_cell(CoefValue(1.23456, 0.001), FMT) == "1.235***"
    assert format_cell(CoefValue(1.0, 0.03), FMT) == "1.000**"
    assert format_cell(CoefValue(1.0, 0.07), FMT) == "1.000*"
    assert format_cell(CoefValue(1.0, 0.5), FMT) == "1.000"
    assert format_cell(CoefValue(1.0, 0.001), CellFormat(stars=False)) == "1.000"


def test_custom_star_breaks_and_symbol() -> None:
    fmt = CellFormat(star_breaks=(0.05,), star_symbol="+")
    assert format_cell(CoefValue(1.0, 0.01), fmt) == "1.000+"


def test_estim_decoration_overrides_stars() -> None:
    fmt = CellFormat(estim_decoration=lambda s, p: f"[{s}]")
    assert format_cell(CoefValue(2.0, 0.0), fmt) == "[2.000]"


def test_below_statistics_use_decoration() -> None:
    assert format_cell(StdError(0.1234), FMT) == "(0.123)"
    assert format_cell(TStat(2.5), CellFormat(below_decoration="[{}]")) == "[2.500]"
    assert format_cell(ConfInt(0.5, 1.5), FMT) == "(0.500, 1.500)"


def test_missing_values_render_blank_not_zero() -> None:
    assert format_cell(None, FMT) == ""
    assert format_cell(float("nan"), FMT) == ""
    assert format_cell(CoefValue(float("nan")), FMT) == ""


def test_plain_numbers() -> None:
    assert format_cell(12345, FMT) == "12,345"
    assert format_cell(0.51234, FMT) == "0.512"
    assert format_cell(0.51234, CellFormat(statistic_format=".1%")) == "51.2%"


def test_indicator_cells() -> None:
    assert format_cell(FixedEffectValue(True), FMT) == "Yes"
    assert format_cell(FixedEffectValue(False), CellFormat(fe_empty="No")) == "No"
    assert format_cell(ClusterValue(None), FMT) == "Yes"
    assert format_cell(ClusterValue(0), FMT) == ""
    assert format_cell(ClusterValue(40), CellFormat(show_cluster_counts=True)) == "40"
    assert format_cell(HasControls(True), FMT) == "Yes"
    assert format_cell(HasControls(False), FMT) == ""
    assert format_cell(RegressionNumber(2), FMT) == "(2)"
    assert format_cell(VcovType("HC1"), FMT) == "HC1"
    assert format_cell(Spacer(), FMT) == ""


def test_registry_labels_per_backend() -> None:
    spec = REGISTRY["r2"]
    assert spec.label_for("text") == "R2"
    assert spec.label_for("latex") == "$R^2$"
    assert spec.label_for("html") == "R<sup>2</sup>"


def test_resolve_statistic_forms() -> None:
    spec, label = resolve_statistic("NOBS")
    assert spec.key == "nobs" and label is None
    spec, label = resolve_statistic(("r2", "R-squared"))
    assert spec.key == "r2" and label == "R-squared"

    def mean_y(model):
        return 4.2

    spec, label = resolve_statistic((mean_y, "Mean of y"))
    assert spec.key == "mean_y" and label == "Mean of y"


def test_resolve_statistic_unknown_key() -> None:
    with pytest.raises(ValueError, match="Unknown regression statistic"):
        resolve_statistic("r3")


def test_safe_compute_reads_model(model_a) -> None:
    assert safe_compute(REGISTRY["nobs"], model_a) == 100
    assert safe_compute(REGISTRY["r2"], model_a) == pytest.approx(0.5)
    assert safe_compute(REGISTRY["aic"], model_a) is None
    assert safe_compute(REGISTRY["vcov_type"], model_a) == VcovType("IID")


def test_safe_compute_downgrades_numerical_errors(model_a) -> None:
    def broken(model):
        raise np.linalg.LinAlgError("singular matrix")

    with pytest.warns(StatisticComputationWarning, match="singular"):
        assert safe_compute(StatSpec("broken", "Broken", broken), model_a) is None


def test_safe_compute_non_finite_is_missing(model_a) -> None:
    spec = StatSpec("inf", "Inf", lambda m: float("inf"))
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        assert safe_compute(spec, model_a) is None


def test_register_statistic_adds_entry(model_a) -> None:
    spec = register_statistic(StatSpec("test_const", "Const", lambda m: 7, integer=True))
    try:
        assert resolve_statistic("test_const")[0] is spec
        assert safe_compute(spec, model_a) == 7
    finally:
        REGISTRY.pop("test_const")
