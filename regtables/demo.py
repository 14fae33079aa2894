"""Demonstration of regtables summary tables.

Builds a few regression results by ordinary least squares on simulated data
and prints them side by side with different backends, themes and options.
"""

from __future__ import annotations

import logging
import re

import numpy as np
import pandas as pd

from .models import EstimationResult, VcovSpec
from .output import modelsummary

_LOGGER = logging.getLogger(__name__)


def _ols(df: pd.DataFrame, y: str, xs: list[str], **info: object) -> EstimationResult:
    """Least squares with an intercept, returned as an :class:`EstimationResult`."""
    X = np.column_stack([np.ones(len(df)), df[xs].to_numpy(dtype=float)])
    yv = df[y].to_numpy(dtype=float)
    beta, *_ = np.linalg.lstsq(X, yv, rcond=None)
    resid = yv - X @ beta
    n, k = X.shape
    sigma2 = float(resid @ resid) / (n - k)
    vcov = sigma2 * np.linalg.inv(X.T @ X)
    tss = float(((yv - yv.mean()) ** 2).sum())
    r2 = 1.0 - float(resid @ resid) / tss
    names = ["(Intercept)", *xs]
    return EstimationResult(
        params=pd.Series(beta, index=names),
        vcov_matrix=vcov,
        n_obs=n,
        dof_resid=float(n - k),
        formula_text=f"{y} ~ " + " + ".join(xs),
        statistics={"r2": r2, "adjr2": 1.0 - (1.0 - r2) * (n - 1) / (n - k)},
        model_info={"Estimator": "OLS", **info},
    )


def simulate(n: int = 500, seed: int = 0) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    x = rng.standard_normal(n)
    z = rng.standard_normal(n)
    w = rng.standard_normal(n)
    y = 1.0 + 0.5 * x - 0.25 * z + 0.1 * w + rng.standard_normal(n)
    return pd.DataFrame({"y": y, "x": x, "z": z, "w": w})


def _hc1(model: EstimationResult, df: pd.DataFrame) -> np.ndarray:
    X = np.column_stack([np.ones(len(df)), df[["x", "z"]].to_numpy(dtype=float)])
    resid = df["y"].to_numpy(dtype=float) - X @ model.coefficient_values()
    bread = np.linalg.inv(X.T @ X)
    meat = (X * resid[:, None] ** 2).T @ X
    n, k = X.shape
    return n / (n - k) * bread @ meat @ bread


def run_demo() -> None:
    df = simulate()
    m1 = _ols(df, "y", ["x"])
    m2 = _ols(df, "y", ["x", "z"])
    m3 = _ols(df, "y", ["x", "z", "w"])
    m3.fixed_effects = ["firm"]

    print(modelsummary(m1, m2, m3, regression_statistics=["nobs", "r2", "adjr2"], stars=True))
    print()
    print(
        modelsummary(
            m1,
            m2 + VcovSpec(lambda m: _hc1(m, df)),
            keep=["x", re.compile("^z")],
            labels={"x": "Treatment"},
            below_statistic="tstat",
            theme="modern",
            add_vcov_stat=True,
        ),
    )
    print()
    print(modelsummary(m1, m2, backend="latex", groups=["Baseline", "Baseline"]))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run_demo()
