"""
Typed containers passed between pipeline stages.

GroupAggregates and flagged records travel as pandas DataFrames; the
small, per-run objects (configuration, baselines) are frozen pydantic
models so a stage can never alter what it was handed.
"""

from typing import Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DetectorConfig(BaseModel):
    """
    Thresholds shared by every detector in one scoring run.

    Defaults are the long-standing rule values:
    3 sigma, nocturnal band 00:00-04:59, more than 5 transactions
    for a frequent counterparty.
    """

    k: float = Field(3.0, ge=0, description="k of the k-sigma rule")
    nocturnal_hours: Tuple[int, ...] = (0, 1, 2, 3, 4)
    frequent_counterparty_cutoff: int = Field(5, ge=0)
    min_fraud_flags: int = Field(1, ge=0, description="flagged user needs fraud_flag_count > this")

    # Suspicion buckets: both cutoffs are strict ">"
    high_suspicion_min_count: int = 10
    high_suspicion_min_amount: float = 100000.0
    moderate_suspicion_min_count: int = 5
    moderate_suspicion_min_amount: float = 50000.0

    model_config = ConfigDict(frozen=True)

    @field_validator("nocturnal_hours")
    @classmethod
    def hours_must_be_valid(cls, v):
        bad = [h for h in v if h < 0 or h > 23]
        if bad:
            raise ValueError(f"nocturnal hours must be in 0..23, got {bad}")
        return tuple(sorted(set(v)))


class MeasureBaseline(BaseModel):
    """Population mean / sample std of one measure across all groups."""

    measure: str
    mean: float
    std: float = Field(..., ge=0)

    model_config = ConfigDict(frozen=True)


class PopulationBaseline(BaseModel):
    """
    Reference distribution for one detector run.

    degenerate is True when fewer than 2 groups exist; every std is
    then 0 and the k-sigma rule cannot fire.
    """

    detector: str
    n_groups: int = Field(..., ge=0)
    measures: Dict[str, MeasureBaseline]

    model_config = ConfigDict(frozen=True)

    @property
    def degenerate(self) -> bool:
        return self.n_groups < 2

    def __getitem__(self, measure: str) -> MeasureBaseline:
        return self.measures[measure]
