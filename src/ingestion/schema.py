from datetime import datetime
from typing import Optional

import pandas as pd
from pydantic import BaseModel, ConfigDict, field_validator


# Columns every scoring run needs. Everything else is carried through untouched.
REQUIRED_COLUMNS = [
    "buyer_id",
    "seller_id",
    "company_id",
    "transaction_amount",
    "transaction_created_datetime",
    "promotion_code",
    "transaction_promo_cashback_amount",
    "user_fraud_flag",
    "blacklist_account_flag",
]


class TransactionRecord(BaseModel):
    # --- 1. KEYS ---
    # Grouping identities. Stored as strings so "42" and 42 land in one group.
    buyer_id: str
    seller_id: str
    company_id: str

    # --- 2. MEASURES ---
    transaction_amount: float
    transaction_created_datetime: datetime

    # Promotions (nullable; cashback falls back to 0 without a promo code)
    promotion_code: Optional[str] = None
    transaction_promo_cashback_amount: float = 0.0

    # --- 3. ACCOUNT FLAGS ---
    user_fraud_flag: int = 0
    blacklist_account_flag: int = 0

    # --- 4. DESCRIPTIVE FIELDS ---
    # KYC/KYB status, payment method, etc. are let in as extras.
    model_config = ConfigDict(extra="allow", frozen=True)

    @field_validator("buyer_id", "seller_id", "company_id", mode="before")
    @classmethod
    def force_string_id(cls, v):
        if v is None or (isinstance(v, float) and pd.isna(v)):
            raise ValueError("identifier cannot be null")
        # 1001.0 coming out of a float column should still read as "1001"
        if isinstance(v, float) and v.is_integer():
            v = int(v)
        return str(v)

    @field_validator("transaction_amount")
    @classmethod
    def amount_must_be_non_negative(cls, v):
        if pd.isna(v):
            raise ValueError("transaction_amount cannot be null")
        if v < 0:
            raise ValueError("transaction_amount cannot be negative")
        return v

    @field_validator("transaction_created_datetime", mode="before")
    @classmethod
    def timestamp_must_exist(cls, v):
        if v is None or v is pd.NaT:
            raise ValueError("transaction_created_datetime cannot be null")
        return v

    @field_validator("promotion_code", mode="before")
    @classmethod
    def blank_promo_is_null(cls, v):
        if v is None or (isinstance(v, float) and pd.isna(v)):
            return None
        v = str(v).strip()
        return v or None

    @field_validator("transaction_promo_cashback_amount", mode="before")
    @classmethod
    def missing_cashback_is_zero(cls, v):
        if v is None or (isinstance(v, float) and pd.isna(v)):
            return 0.0
        return v

    @field_validator("user_fraud_flag", "blacklist_account_flag", mode="before")
    @classmethod
    def flag_must_be_binary(cls, v):
        if v is None or (isinstance(v, float) and pd.isna(v)):
            return 0
        v = int(v)
        if v not in (0, 1):
            raise ValueError(f"flag must be 0 or 1, got {v}")
        return v
