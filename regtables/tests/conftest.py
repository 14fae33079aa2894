from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from regtables.models import EstimationResult


def make_result(names, coefs, ses, **kwargs) -> EstimationResult:
    """Small :class:`EstimationResult` with a fixed number of observations."""
    kwargs.setdefault("n_obs", 100)
    kwargs.setdefault("dof_resid", 100.0 - len(coefs))
    return EstimationResult(
        params=pd.Series(np.asarray(coefs, dtype=float), index=list(names)),
        se=pd.Series(np.asarray(ses, dtype=float), index=list(names)),
        **kwargs,
    )


# ---------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------


@pytest.fixture
def model_a() -> EstimationResult:
    return make_result(
        ["const", "x"], [1.0, 2.0], [0.5, 0.25],
        statistics={"r2": 0.5}, model_info={"DepVar": "y"},
    )


@pytest.fixture
def model_b() -> EstimationResult:
    return make_result(
        ["const", "z"], [1.5, 3.0], [0.5, 1.0],
        statistics={"r2": 0.25}, model_info={"DepVar": "y"},
    )


@pytest.fixture
def fe_model() -> EstimationResult:
    return make_result(
        ["x"], [0.75], [0.25],
        formula_text="y ~ x + fe(firm) + fe(year)",
        clusters={"firm": 40},
        statistics={"r2": 0.6, "r2_within": 0.2},
        model_info={"Estimator": "FE-OLS", "VcovType": "Cluster"},
    )


@pytest.fixture
def make_model():
    return make_result
