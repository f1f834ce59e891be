"""
Pytest configuration and shared fixtures.

Registers markers and provides small synthetic transaction tables; every
test builds exactly the rows it reasons about.
"""

from datetime import datetime, timedelta

import pandas as pd
import pytest

from src.ingestion.snapshot import TransactionSnapshot
from src.views.result_sets import FLAGGED_USER_COLUMNS


BASE_TIME = datetime(2024, 3, 1, 12, 0, 0)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (touches DuckDB / great_expectations)"
    )
    config.addinivalue_line(
        "markers",
        "unit: mark test as unit test (fast, isolated)"
    )


def txn(**overrides) -> dict:
    """One cleaned_merged_data row with neutral defaults."""
    row = {
        "buyer_id": "B1",
        "seller_id": "S1",
        "company_id": "C1",
        "transaction_amount": 100.0,
        "transaction_created_datetime": BASE_TIME,
        "promotion_code": None,
        "transaction_promo_cashback_amount": None,
        "user_fraud_flag": 0,
        "blacklist_account_flag": 0,
    }
    row.update(overrides)
    return row


def with_view_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Adds every flagged_users_transactions column the rows lack."""
    out = df.copy()
    for column in FLAGGED_USER_COLUMNS:
        if column not in out.columns:
            out[column] = None
    return out


@pytest.fixture
def make_snapshot():
    """Factory: list of row overrides -> TransactionSnapshot."""
    def _make(rows, full_columns: bool = False):
        df = pd.DataFrame([txn(**r) for r in rows])
        if full_columns:
            df = with_view_columns(df)
        return TransactionSnapshot(df, source="test")
    return _make


@pytest.fixture
def marketplace_rows():
    """
    A small marketplace with one of everything:

    - 20 ordinary buyer/seller pairs, one 100.0 transaction each at 12:00
    - B_COLLUDE -> S_COLLUDE: 30 transactions of 5,000 within 13:00-13:29
    - B_NIGHT -> S1: one transaction at 02:30
    - B_PROMO: 30 uses of promo SPRING on one day (cashback 10 each),
      20 other buyers use SPRING once
    - B_FRAUD: two fraud-flagged transactions with S_FRAUD
    """
    rows = []
    for i in range(20):
        rows.append({
            "buyer_id": f"B{i:02d}",
            "seller_id": f"S{i:02d}",
            "transaction_created_datetime": BASE_TIME + timedelta(days=i),
        })
    for minute in range(30):
        rows.append({
            "buyer_id": "B_COLLUDE",
            "seller_id": "S_COLLUDE",
            "transaction_amount": 5000.0,
            "transaction_created_datetime": BASE_TIME + timedelta(hours=1, minutes=minute),
        })
    rows.append({
        "buyer_id": "B_NIGHT",
        "transaction_created_datetime": datetime(2024, 3, 2, 2, 30),
    })
    for i in range(30):
        rows.append({
            "buyer_id": "B_PROMO",
            "seller_id": "S_SHOP",
            "promotion_code": "SPRING",
            "transaction_promo_cashback_amount": 10.0,
            "transaction_created_datetime": BASE_TIME + timedelta(minutes=2 * i),
        })
    for i in range(20):
        rows.append({
            "buyer_id": f"B_P{i:02d}",
            "seller_id": "S_SHOP",
            "promotion_code": "SPRING",
            "transaction_promo_cashback_amount": 10.0,
        })
    for i in range(2):
        rows.append({
            "buyer_id": "B_FRAUD",
            "seller_id": "S_FRAUD",
            "user_fraud_flag": 1,
            "transaction_created_datetime": BASE_TIME + timedelta(days=3, minutes=i),
        })
    return rows


@pytest.fixture
def marketplace_frame(marketplace_rows):
    """marketplace_rows as a full cleaned_merged_data table."""
    return with_view_columns(pd.DataFrame([txn(**r) for r in marketplace_rows]))
