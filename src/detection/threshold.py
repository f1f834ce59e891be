"""
The shared k-sigma threshold rule.

    two-sided (deviation):  |v - mu| > k * sigma
    one-sided (excess):     v > mu + k * sigma

The sidedness is fixed per detector instance. A sigma of 0 (single-member
group, degenerate baseline) or NaN never fires, whatever the value.
"""

from enum import Enum
from typing import Union

import numpy as np
import pandas as pd


Number = Union[int, float]


class ThresholdMode(str, Enum):
    DEVIATION = "two_sided"
    EXCESS = "excess"


class SigmaRule:
    """
    Usage:
        rule = SigmaRule(ThresholdMode.EXCESS, k=3)
        flags = rule.fires(pairs["total_transaction_count"], mean, std)
    """

    def __init__(self, mode: ThresholdMode, k: float = 3.0):
        if k < 0:
            raise ValueError(f"k must be >= 0, got {k}")
        self.mode = ThresholdMode(mode)
        self.k = float(k)

    def fires(
        self,
        values: pd.Series,
        mean: Union[Number, pd.Series],
        std: Union[Number, pd.Series]
    ) -> pd.Series:
        """
        Boolean Series aligned with values.

        mean/std may be scalars (population baseline) or Series aligned
        with values (each record against its own group's statistics).
        """
        values = pd.to_numeric(values, errors="coerce").astype(float)
        if np.isscalar(mean):
            mean = pd.Series(float(mean), index=values.index)
        if np.isscalar(std):
            std = pd.Series(float(std), index=values.index)
        mean = mean.astype(float)
        std = std.astype(float)

        if self.mode is ThresholdMode.DEVIATION:
            hit = (values - mean).abs() > self.k * std
        else:
            hit = values > mean + self.k * std

        # NaN comparisons are already False
        return (hit & (std > 0)).astype(bool)

    def __repr__(self) -> str:
        return f"SigmaRule(mode={self.mode.value}, k={self.k})"
