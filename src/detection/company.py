"""
User-company fraud insights: fraud concentration per company profile.

Groups by company_id and whichever descriptive status fields the source
table carries (KYC/KYB status, type group, account flags).
"""

import logging

import pandas as pd

from src.detection.aggregator import COMPANY, coerce_measures, derive_keys
from src.ingestion.snapshot import TransactionSnapshot


logger = logging.getLogger(__name__)

COMPANY_PROFILE_FIELDS = [
    "company_kyc_status_name",
    "company_kyb_status_name",
    "company_type_group",
    "user_fraud_flag",
    "testing_account_flag",
    "blacklist_account_flag",
]


def company_fraud_insights(snapshot: TransactionSnapshot) -> pd.DataFrame:
    """
    Returns one row per company profile with total_transactions,
    total_transaction_amount, avg_transaction_amount and fraud_transactions,
    ordered by fraud_transactions descending.
    """
    frame = derive_keys(snapshot.frame, COMPANY, detector="company_insights")
    frame = coerce_measures(frame, ["transaction_amount"], detector="company_insights")
    frame["_fraud"] = (pd.to_numeric(frame["user_fraud_flag"], errors="coerce") == 1).astype(int)

    keys = ["company_id"] + [c for c in COMPANY_PROFILE_FIELDS if c in frame.columns]
    grouped = frame.groupby(keys, dropna=False, sort=True)
    insights = grouped.agg(
        total_transactions=("transaction_amount", "count"),
        total_transaction_amount=("transaction_amount", "sum"),
        avg_transaction_amount=("transaction_amount", "mean"),
        fraud_transactions=("_fraud", "sum"),
    ).reset_index()

    insights = insights.sort_values("fraud_transactions", ascending=False, kind="mergesort")
    logger.info(f"[company_insights] {len(insights):,} company profiles")
    return insights.reset_index(drop=True)
