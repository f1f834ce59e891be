"""
Account-level repeat-offender analysis ("Flagged User Connections").

1. AccountRiskProfile per buyer: fraud_flag_count (transactions carrying
   user_fraud_flag=1) and is_blacklisted (any blacklist_account_flag=1).
2. A buyer is a Flagged User when fraud_flag_count > min_fraud_flags
   OR is_blacklisted.
3. Every (flagged buyer, seller) interaction is summarised and flagged
   when the pair's rows carry a fraud flag, a blacklist flag, or the pair
   has more than frequent_counterparty_cutoff transactions.
"""

import logging
from typing import Optional

import pandas as pd

from src.detection.aggregator import BUYER, BUYER_SELLER, aggregate
from src.detection.models import DetectorConfig
from src.ingestion.snapshot import TransactionSnapshot


logger = logging.getLogger(__name__)

FLAG_FIELDS = ("user_fraud_flag", "blacklist_account_flag")

PROFILE_COLUMNS = ["buyer_id", "transaction_count", "fraud_flag_count", "is_blacklisted"]

INTERACTION_COLUMNS = [
    "flagged_buyer_id",
    "interacting_seller_id",
    "transaction_count",
    "total_transaction_amount",
    "seller_fraud_flag",
    "seller_blacklisted_flag",
    "is_flagged_interaction",
]


def _binary_flags(frame: pd.DataFrame) -> pd.DataFrame:
    out = frame.copy()
    for flag in FLAG_FIELDS:
        out[flag] = (pd.to_numeric(out[flag], errors="coerce") == 1).astype(int)
    return out


def build_account_risk_profiles(frame: pd.DataFrame) -> pd.DataFrame:
    """One AccountRiskProfile row per buyer."""
    groups = aggregate(_binary_flags(frame), BUYER, FLAG_FIELDS, detector="flagged_users")
    if groups.empty:
        return pd.DataFrame(columns=PROFILE_COLUMNS)

    profiles = pd.DataFrame({
        "buyer_id": groups["buyer_id"],
        "transaction_count": groups["transaction_count"].astype(int),
        "fraud_flag_count": groups["sum_user_fraud_flag"].astype(int),
        "is_blacklisted": groups["max_blacklist_account_flag"].astype(int),
    })
    return profiles


def select_flagged_users(profiles: pd.DataFrame, min_fraud_flags: int = 1) -> pd.DataFrame:
    """Buyers with repeated fraud flags OR blacklist status."""
    mask = (profiles["fraud_flag_count"] > min_fraud_flags) | (profiles["is_blacklisted"] == 1)
    return profiles[mask].reset_index(drop=True)


def flagged_user_interactions(
    snapshot: TransactionSnapshot,
    config: Optional[DetectorConfig] = None,
    include_unflagged: bool = False
) -> pd.DataFrame:
    """
    Summarise every counterparty of every Flagged User.

    Args:
        snapshot: Transaction snapshot
        config: Cutoffs (min_fraud_flags, frequent_counterparty_cutoff)
        include_unflagged: Keep interactions that did not meet any condition

    Returns:
        DataFrame with INTERACTION_COLUMNS, sorted by buyer then seller.
    """
    config = config or DetectorConfig()
    frame = _binary_flags(snapshot.frame)

    profiles = build_account_risk_profiles(frame)
    flagged_users = select_flagged_users(profiles, config.min_fraud_flags)
    logger.info(
        f"[flagged_users] {len(flagged_users):,} of {len(profiles):,} buyers qualify as flagged users"
    )

    members = frame[frame["buyer_id"].isin(flagged_users["buyer_id"])]
    pairs = aggregate(
        members,
        BUYER_SELLER,
        ("transaction_amount",) + FLAG_FIELDS,
        detector="flagged_users"
    )
    if pairs.empty:
        return pd.DataFrame(columns=INTERACTION_COLUMNS)

    interactions = pd.DataFrame({
        "flagged_buyer_id": pairs["buyer_id"],
        "interacting_seller_id": pairs["seller_id"],
        "transaction_count": pairs["transaction_count"].astype(int),
        "total_transaction_amount": pairs["sum_transaction_amount"],
        "seller_fraud_flag": pairs["max_user_fraud_flag"].astype(int),
        "seller_blacklisted_flag": pairs["max_blacklist_account_flag"].astype(int),
    })
    interactions["is_flagged_interaction"] = (
        (interactions["seller_fraud_flag"] == 1)
        | (interactions["seller_blacklisted_flag"] == 1)
        | (interactions["transaction_count"] > config.frequent_counterparty_cutoff)
    ).astype(int)

    if not include_unflagged:
        interactions = interactions[interactions["is_flagged_interaction"] == 1]

    logger.info(f"[flagged_users] {len(interactions):,} flagged interactions")
    return interactions.reset_index(drop=True)
