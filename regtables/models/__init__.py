# regtables/models/__init__.py
"""Model adapters and the covariance override wrapper."""
from .base import UNSUPPORTED, EstimationResult, ModelAdapter
from .statsmodels import StatsmodelsAdapter, as_adapter, register_adapter
from .vcov import VcovOverride, VcovSpec, materialize_vcov, vcov_type_name, with_vcov

__all__ = [
    "UNSUPPORTED",
    "EstimationResult",
    "ModelAdapter",
    "StatsmodelsAdapter",
    "VcovOverride",
    "VcovSpec",
    "as_adapter",
    "materialize_vcov",
    "register_adapter",
    "vcov_type_name",
    "with_vcov",
]
