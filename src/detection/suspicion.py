"""
Suspicion-level bucketing of buyer/seller pairs.

    High Suspicion:     transaction_count > 10 AND total amount > 100,000
    Moderate Suspicion: transaction_count > 5  AND total amount > 50,000
    Low Suspicion:      everything else

Cutoffs come from DetectorConfig. The TopFraudulentBuyerSellerPairs set
keeps High and Moderate only, ordered by severity, count, amount (desc).
"""

from enum import Enum
from typing import Optional

import numpy as np
import pandas as pd

from src.detection.aggregator import BUYER_SELLER, aggregate
from src.detection.models import DetectorConfig
from src.ingestion.snapshot import TransactionSnapshot


# Carried into the summary as max_<column> when the source table has them
OPTIONAL_FRAUD_COUNTERS = ("frequency_fraud", "transaction_count_fraud")


class SuspicionLevel(str, Enum):
    LOW = "Low Suspicion"
    MODERATE = "Moderate Suspicion"
    HIGH = "High Suspicion"

    @property
    def severity(self) -> int:
        return {"Low Suspicion": 0, "Moderate Suspicion": 1, "High Suspicion": 2}[self.value]


def classify_suspicion(
    transaction_count: int,
    total_amount: float,
    config: Optional[DetectorConfig] = None
) -> SuspicionLevel:
    config = config or DetectorConfig()
    if (transaction_count > config.high_suspicion_min_count
            and total_amount > config.high_suspicion_min_amount):
        return SuspicionLevel.HIGH
    if (transaction_count > config.moderate_suspicion_min_count
            and total_amount > config.moderate_suspicion_min_amount):
        return SuspicionLevel.MODERATE
    return SuspicionLevel.LOW


def suspicion_levels(summary: pd.DataFrame, config: Optional[DetectorConfig] = None) -> pd.Series:
    """Vectorised classify_suspicion over a pair summary."""
    config = config or DetectorConfig()
    count = summary["transaction_count"]
    amount = summary["total_transaction_amount"]
    levels = np.select(
        [
            (count > config.high_suspicion_min_count) & (amount > config.high_suspicion_min_amount),
            (count > config.moderate_suspicion_min_count) & (amount > config.moderate_suspicion_min_amount),
        ],
        [SuspicionLevel.HIGH.value, SuspicionLevel.MODERATE.value],
        default=SuspicionLevel.LOW.value
    )
    return pd.Series(levels, index=summary.index, name="suspicion_level")


def buyer_seller_summary(frame: pd.DataFrame) -> pd.DataFrame:
    counters = tuple(c for c in OPTIONAL_FRAUD_COUNTERS if c in frame.columns)
    groups = aggregate(
        frame,
        BUYER_SELLER,
        ("transaction_amount",) + counters,
        detector="suspicion_level"
    )
    columns = {
        "transaction_count": "transaction_count",
        "sum_transaction_amount": "total_transaction_amount",
        "avg_transaction_amount": "avg_transaction_amount",
        "max_transaction_amount": "max_transaction_amount",
    }
    for counter in counters:
        columns[f"max_{counter}"] = f"max_{counter}"
    return groups[["buyer_id", "seller_id"] + list(columns)].rename(columns=columns)


def top_fraudulent_pairs(
    snapshot: TransactionSnapshot,
    config: Optional[DetectorConfig] = None
) -> pd.DataFrame:
    """High and Moderate pairs, most severe first."""
    summary = buyer_seller_summary(snapshot.frame)
    summary["suspicion_level"] = suspicion_levels(summary, config)

    top = summary[summary["suspicion_level"] != SuspicionLevel.LOW.value].copy()
    top["_severity"] = top["suspicion_level"].map(lambda v: SuspicionLevel(v).severity)
    top = top.sort_values(
        ["_severity", "transaction_count", "total_transaction_amount", "buyer_id", "seller_id"],
        ascending=[False, False, False, True, True],
        kind="mergesort"
    )
    return top.drop(columns="_severity").reset_index(drop=True)
