"""
Named result sets (the consumption contracts of a scoring run).

Each builder is an independent function of (snapshot, config); none
reads another builder's output, so any subset can be produced alone or
all of them in parallel.

    AnomalousTransactions          transaction level, is_anomalous = 1
    FlaggedPairs                   buyer/seller pairs, is_potential_collusion = 1
    FlaggedPromotionUsage          buyer/promo/day, is_potential_misuse = 1
    FlaggedTransactions            transaction level, is_suspicious = 1
    FlaggedInteractions            flagged buyer x counterparty
    TopFraudulentBuyerSellerPairs  High/Moderate suspicion pairs
    flagged_users_transactions     raw rows of fraud-flagged or blacklisted accounts
    CompanyFraudInsights           fraud concentration per company profile
"""

from typing import Callable, Dict, Union

import pandas as pd

from src.detection.accounts import flagged_user_interactions
from src.detection.company import company_fraud_insights
from src.detection.detectors import (
    COLLUSION,
    PROMOTION_MISUSE,
    SUSPICIOUS_TIMING,
    TRANSACTION_VALUE_ANOMALY,
    DetectorResult,
)
from src.detection.errors import SchemaMismatch
from src.detection.models import DetectorConfig
from src.detection.suspicion import top_fraudulent_pairs
from src.ingestion.snapshot import TransactionSnapshot


FLAGGED_USER_COLUMNS = [
    "company_id",
    "company_kyc_status_name",
    "company_kyb_status_name",
    "company_type_group",
    "company_phone_verified_flag",
    "company_email_verified_flag",
    "user_fraud_flag",
    "testing_account_flag",
    "blacklist_account_flag",
    "package_active_name",
    "company_registered_datetime",
    "dpt_id",
    "dpt_promotion_id",
    "buyer_id",
    "seller_id",
    "transaction_amount",
    "payment_method_name",
    "payment_provider_name",
    "transaction_created_datetime",
    "transaction_updated_datetime",
    "time_diff",
    "frequency_fraud",
    "daily_transaction_count",
    "transaction_count_fraud",
    "total_fee_amount",
    "document_type_name",
    "promotion_code",
    "promotion_name",
    "transaction_promo_cashback_amount",
    "promotion_fraud_label",
]


def flagged_users_transactions(frame: pd.DataFrame) -> pd.DataFrame:
    """
    Raw rows where user_fraud_flag = 1 OR blacklist_account_flag = 1,
    projected to FLAGGED_USER_COLUMNS. Applying it to its own output
    returns the same rows.
    """
    missing = set(FLAGGED_USER_COLUMNS) - set(frame.columns)
    if missing:
        raise SchemaMismatch(missing, context="flagged_users_transactions")

    fraud = pd.to_numeric(frame["user_fraud_flag"], errors="coerce") == 1
    blacklisted = pd.to_numeric(frame["blacklist_account_flag"], errors="coerce") == 1
    return frame.loc[fraud | blacklisted, FLAGGED_USER_COLUMNS].reset_index(drop=True)


Builder = Callable[[TransactionSnapshot, DetectorConfig], Union[pd.DataFrame, DetectorResult]]

RESULT_SET_BUILDERS: Dict[str, Builder] = {
    "AnomalousTransactions": TRANSACTION_VALUE_ANOMALY.run,
    "FlaggedPairs": COLLUSION.run,
    "FlaggedPromotionUsage": PROMOTION_MISUSE.run,
    "FlaggedTransactions": SUSPICIOUS_TIMING.run,
    "FlaggedInteractions": flagged_user_interactions,
    "TopFraudulentBuyerSellerPairs": top_fraudulent_pairs,
    "flagged_users_transactions": lambda snapshot, config: flagged_users_transactions(snapshot.frame),
    "CompanyFraudInsights": lambda snapshot, config: company_fraud_insights(snapshot),
}

RESULT_SET_NAMES = list(RESULT_SET_BUILDERS)
