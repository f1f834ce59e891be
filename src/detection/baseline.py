"""
Population Statistics Estimator.

Turns the Aggregator's per-group rows into the global baseline each group
is compared against: mean and sample std (ddof=1, same convention as the
Aggregator) of every tested measure across all groups.
"""

import logging
import warnings
from typing import Sequence

import numpy as np
import pandas as pd

from src.detection.errors import DegenerateBaseline, SchemaMismatch
from src.detection.models import MeasureBaseline, PopulationBaseline


logger = logging.getLogger(__name__)


def estimate_baseline(
    groups: pd.DataFrame,
    measures: Sequence[str],
    detector: str = "estimator"
) -> PopulationBaseline:
    """
    Compute the population baseline of one detector run.

    With fewer than 2 groups the std is undefined; it is reported as 0
    and a DegenerateBaseline warning is emitted, which makes the k-sigma
    rule inert for this run instead of flagging everything.

    Example:
        >>> baseline = estimate_baseline(pairs, ["total_transaction_count"])
        >>> baseline["total_transaction_count"].std
    """
    missing = set(measures) - set(groups.columns)
    if missing:
        raise SchemaMismatch(missing, context=detector)

    n_groups = len(groups)
    stats = {}
    for measure in measures:
        values = pd.to_numeric(groups[measure], errors="coerce").astype(float)
        mean = float(values.mean()) if n_groups else 0.0
        std = float(values.std(ddof=1)) if n_groups >= 2 else 0.0
        if np.isnan(mean):
            mean = 0.0
        if np.isnan(std):
            std = 0.0
        stats[measure] = MeasureBaseline(measure=measure, mean=mean, std=std)

    baseline = PopulationBaseline(detector=detector, n_groups=n_groups, measures=stats)

    if baseline.degenerate:
        warnings.warn(
            f"[{detector}] baseline built from {n_groups} group(s); "
            f"no group can be flagged by the k-sigma rule.",
            DegenerateBaseline
        )
        logger.warning(f"[{detector}] degenerate baseline ({n_groups} groups)")
    else:
        summary = ", ".join(
            f"{m}: mean={b.mean:.3f} std={b.std:.3f}" for m, b in stats.items()
        )
        logger.info(f"[{detector}] baseline over {n_groups:,} groups ({summary})")

    return baseline
