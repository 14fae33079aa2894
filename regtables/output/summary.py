"""Summary tables.

Generates publication-ready side-by-side tables of several fitted models.
"""

from __future__ import annotations

import logging
import warnings
from typing import Any

from regtables.core.axis import build_axis
from regtables.models.statsmodels import as_adapter
from regtables.output.config import SummaryConfig
from regtables.output.formats import get_theme
from regtables.output.sections import SectionAssembler
from regtables.output.table import SummaryTable
from regtables.utils.helpers import expand_align

__all__ = ["modelsummary"]

_LOGGER = logging.getLogger(__name__)


def modelsummary(*models: Any, config: SummaryConfig | None = None, **options: Any) -> SummaryTable:
    """Build a summary table from one or more fitted models.

    Parameters
    ----------
    *models
        Model adapters (:class:`~regtables.models.base.ModelAdapter`,
        :class:`~regtables.models.base.EstimationResult`, a
        :class:`~regtables.models.vcov.VcovOverride`) or result objects an
        adapter is registered for (statsmodels / linearmodels style results
        are read by duck typing).
    config
        Base options; keyword ``options`` override its fields.
    **options
        Any :class:`~regtables.output.config.SummaryConfig` field, e.g.
        ``keep=["x", re.compile("^z")]``, ``labels={"x": "Treatment"}``,
        ``below_statistic="tstat"``, ``stars=True``, ``theme="modern"``,
        ``file="table.tex"``.

    Returns
    -------
    SummaryTable
        Printable table; when ``file`` is given it has also been written.

    Examples
    --------
    >>> tbl = modelsummary(res1, res2, regression_statistics=["nobs", "r2", "f"])
    >>> print(tbl)
    >>> modelsummary(res1, res2, file="table.tex")  # LaTeX, from the extension

    """
    if not models:
        raise ValueError("modelsummary needs at least one model.")
    cfg = (config or SummaryConfig()).update(**options)

    table_format = cfg.table_format
    if cfg.theme is not None:
        if cfg.table_format is not None:
            warnings.warn(
                "Both `theme` and `table_format` were given; using `theme` and ignoring `table_format`.",
                UserWarning,
                stacklevel=2,
            )
        theme = get_theme(cfg.theme)
        table_format = theme.table_formats()
        cfg = cfg.apply_theme_options(theme.options)

    adapters = [as_adapter(m) for m in models]
    cfg = cfg.resolve()
    axis = build_axis(
        adapters,
        labels=cfg.labels,
        transform=cfg.transform,
        use_relabeled=cfg.use_relabeled_values,
        keep=cfg.keep,
        drop=cfg.drop,
        order=cfg.order,
        collisions=cfg.relabel_collisions,
    )
    assembly = SectionAssembler(adapters, cfg, axis).assemble()
    n_models = len(adapters)
    table = SummaryTable(
        assembly.rows,
        breaks=assembly.breaks,
        align=expand_align(cfg.align, n_models + 1),
        header_align=expand_align(cfg.header_align, n_models + 1),
        n_header_rows=assembly.n_header_rows,
        backend=cfg.backend,
        table_format=table_format,
        sections=assembly.sections,
    )
    _LOGGER.debug(
        "Built %d x %d summary table for %s output.", table.shape[0], table.shape[1], cfg.backend.value,
    )
    if cfg.file is not None:
        table.write(cfg.file, cfg.backend)
    return table
