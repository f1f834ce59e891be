"""
Anomaly Classifier: one parameterised k-sigma detector, four instances.

Every detector is the same pipeline with different parameters:

    1. aggregate  - group transactions by key, summarise measures
    2. estimate   - population mean/std of the tested measures
    3. classify   - SigmaRule per tested measure, OR-combined
                    (plus an optional fixed rule, e.g. nocturnal hours)
    4. propagate  - copy the flag back to member transactions when the
                    result is reported at transaction grain

The transaction value detector is the one "member" scoped instance: each
transaction is compared with its own pair's mean/std rather than with a
population baseline.

All stages are pure; running a detector twice on the same snapshot and
config yields identical frames.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Sequence, Tuple

import pandas as pd

from src.detection.aggregator import (
    BUYER_PROMO_DAY,
    BUYER_SELLER,
    BUYER_SELLER_HOUR,
    KeyField,
    aggregate,
    key_names,
)
from src.detection.baseline import estimate_baseline
from src.detection.models import DetectorConfig, PopulationBaseline
from src.detection.propagator import propagate
from src.detection.threshold import SigmaRule, ThresholdMode
from src.ingestion.snapshot import TransactionSnapshot


logger = logging.getLogger(__name__)

FixedRule = Callable[[pd.DataFrame, DetectorConfig], pd.Series]


@dataclass
class DetectorResult:
    """
    Output of one detector run.

    groups:   every GroupAggregate with its baseline columns and flag
    records:  rows at the reporting grain (groups or transactions)
    baseline: population baseline (None for member-scoped detectors)
    """
    detector: str
    flag_column: str
    groups: pd.DataFrame
    records: pd.DataFrame
    baseline: Optional[PopulationBaseline] = None

    def flagged(self) -> pd.DataFrame:
        """Only the rows whose flag is 1."""
        mask = self.records[self.flag_column] == 1
        return self.records[mask].reset_index(drop=True)

    @property
    def n_flagged(self) -> int:
        return int((self.records[self.flag_column] == 1).sum())


@dataclass(frozen=True)
class ThresholdDetector:
    """
    Group -> compare to baseline -> flag, parameterised.

    Args:
        name: Detector name (logs, errors, run report)
        key_fields: Grouping key
        measure_fields: Transaction columns the Aggregator summarises
        tested_measures: Aggregate columns (after rename) the rule tests
        mode: DEVIATION (two-sided) or EXCESS (one-sided)
        flag_column: Name of the 0/1 output flag
        rename: Aggregator column -> output column
        group_columns: Aggregate columns kept on the output (after rename);
            None keeps all
        exclude_null: Key names whose null values drop the record
        fixed_rule: Statistics-free condition OR-ed with the k-sigma test
        scope: "population" (group vs. all groups) or
            "member" (transaction vs. its own group)
        member_value: Transaction column tested when scope="member"
        output: "groups" or "transactions"
    """
    name: str
    key_fields: Tuple[KeyField, ...]
    measure_fields: Tuple[str, ...]
    tested_measures: Tuple[str, ...]
    mode: ThresholdMode
    flag_column: str
    rename: Dict[str, str] = field(default_factory=dict)
    group_columns: Optional[Tuple[str, ...]] = None
    exclude_null: Tuple[str, ...] = ()
    fixed_rule: Optional[FixedRule] = None
    scope: str = "population"
    member_value: Optional[str] = None
    output: str = "groups"

    def __post_init__(self):
        if self.scope not in ("population", "member"):
            raise ValueError(f"scope must be 'population' or 'member', got '{self.scope}'")
        if self.output not in ("groups", "transactions"):
            raise ValueError(f"output must be 'groups' or 'transactions', got '{self.output}'")
        if self.scope == "member":
            if self.member_value is None or len(self.tested_measures) != 2:
                raise ValueError(
                    "member scope needs member_value and tested_measures=(mean_column, std_column)"
                )

    # ------------------------------------------------------------------
    # Stage 1: Aggregator
    # ------------------------------------------------------------------

    def aggregate(self, frame: pd.DataFrame) -> pd.DataFrame:
        groups = aggregate(
            frame,
            self.key_fields,
            self.measure_fields,
            detector=self.name,
            exclude_null=self.exclude_null
        ).rename(columns=self.rename)

        if self.group_columns is not None:
            groups = groups[key_names(self.key_fields) + list(self.group_columns)]
        return groups

    # ------------------------------------------------------------------
    # Stage 2: Population Statistics Estimator
    # ------------------------------------------------------------------

    def estimate(self, groups: pd.DataFrame) -> PopulationBaseline:
        return estimate_baseline(groups, self.tested_measures, detector=self.name)

    # ------------------------------------------------------------------
    # Stage 3: Classifier
    # ------------------------------------------------------------------

    def classify(
        self,
        groups: pd.DataFrame,
        baseline: PopulationBaseline,
        config: DetectorConfig
    ) -> pd.DataFrame:
        """Attach baseline columns and the OR-combined flag to every group."""
        rule = SigmaRule(self.mode, config.k)
        out = groups.copy()
        hit = pd.Series(False, index=out.index)

        for measure in self.tested_measures:
            stats = baseline[measure]
            out[f"baseline_avg_{measure}"] = stats.mean
            out[f"baseline_std_{measure}"] = stats.std
            hit |= rule.fires(out[measure], stats.mean, stats.std)

        if self.fixed_rule is not None and not out.empty:
            hit |= self.fixed_rule(out, config).astype(bool)

        out[self.flag_column] = hit.astype(int)
        return out

    def classify_members(
        self,
        frame: pd.DataFrame,
        groups: pd.DataFrame,
        config: DetectorConfig
    ) -> pd.DataFrame:
        """Compare every transaction with its own group's mean/std."""
        mean_column, std_column = self.tested_measures
        members = propagate(
            frame,
            groups,
            self.key_fields,
            [mean_column, std_column],
            detector=self.name,
            exclude_null=self.exclude_null
        )
        rule = SigmaRule(self.mode, config.k)
        hit = rule.fires(members[self.member_value], members[mean_column], members[std_column])
        members[self.flag_column] = hit.astype(int)
        return members

    # ------------------------------------------------------------------
    # Full run
    # ------------------------------------------------------------------

    def run(self, snapshot: TransactionSnapshot, config: Optional[DetectorConfig] = None) -> DetectorResult:
        config = config or DetectorConfig()
        frame = snapshot.frame

        groups = self.aggregate(frame)

        if self.scope == "member":
            records = self.classify_members(frame, groups, config)
            result = DetectorResult(self.name, self.flag_column, groups, records, None)
        else:
            baseline = self.estimate(groups)
            classified = self.classify(groups, baseline, config)
            if self.output == "transactions":
                records = propagate(
                    frame,
                    classified,
                    self.key_fields,
                    [self.flag_column],
                    detector=self.name,
                    exclude_null=self.exclude_null
                )
            else:
                records = classified
            result = DetectorResult(self.name, self.flag_column, classified, records, baseline)

        logger.info(
            f"[{self.name}] {result.n_flagged:,} of {len(result.records):,} "
            f"{self.output} flagged ({self.flag_column})"
        )
        return result


def nocturnal_hours(groups: pd.DataFrame, config: DetectorConfig) -> pd.Series:
    """Always-on timing rule: the hour falls in the nocturnal band."""
    return groups["transaction_hour"].isin(config.nocturnal_hours)


# ============================================================================
# DETECTOR INSTANCES
# ============================================================================

TRANSACTION_VALUE_ANOMALY = ThresholdDetector(
    name="transaction_value_anomaly",
    key_fields=BUYER_SELLER,
    measure_fields=("transaction_amount",),
    tested_measures=("avg_transaction_amount", "std_transaction_amount"),
    mode=ThresholdMode.DEVIATION,
    flag_column="is_anomalous",
    scope="member",
    member_value="transaction_amount",
    output="transactions",
)

COLLUSION = ThresholdDetector(
    name="collusion",
    key_fields=BUYER_SELLER,
    measure_fields=("transaction_amount",),
    tested_measures=("total_transaction_count", "total_transaction_amount"),
    mode=ThresholdMode.EXCESS,
    flag_column="is_potential_collusion",
    rename={
        "transaction_count": "total_transaction_count",
        "sum_transaction_amount": "total_transaction_amount",
        "avg_transaction_amount": "avg_transaction_amount_per_pair",
    },
    group_columns=(
        "total_transaction_count",
        "total_transaction_amount",
        "avg_transaction_amount_per_pair",
    ),
)

PROMOTION_MISUSE = ThresholdDetector(
    name="promotion_misuse",
    key_fields=BUYER_PROMO_DAY,
    measure_fields=("transaction_promo_cashback_amount",),
    tested_measures=("promo_usage_count", "total_promo_cashback"),
    mode=ThresholdMode.EXCESS,
    flag_column="is_potential_misuse",
    rename={
        "transaction_count": "promo_usage_count",
        "sum_transaction_promo_cashback_amount": "total_promo_cashback",
    },
    group_columns=("promo_usage_count", "total_promo_cashback"),
    exclude_null=("promotion_code",),
)

SUSPICIOUS_TIMING = ThresholdDetector(
    name="suspicious_timing",
    key_fields=BUYER_SELLER_HOUR,
    measure_fields=(),
    tested_measures=("transaction_count_per_hour",),
    mode=ThresholdMode.EXCESS,
    flag_column="is_suspicious",
    rename={"transaction_count": "transaction_count_per_hour"},
    fixed_rule=nocturnal_hours,
    output="transactions",
)

DETECTORS = {
    d.name: d
    for d in (TRANSACTION_VALUE_ANOMALY, COLLUSION, PROMOTION_MISUSE, SUSPICIOUS_TIMING)
}
