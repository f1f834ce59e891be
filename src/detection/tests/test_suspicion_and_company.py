"""
Tests for suspicion-level bucketing, the top-pairs ordering and
company fraud insights.
"""

import pytest

from src.detection.company import company_fraud_insights
from src.detection.models import DetectorConfig
from src.detection.suspicion import (
    SuspicionLevel,
    classify_suspicion,
    top_fraudulent_pairs,
)


pytestmark = pytest.mark.unit


@pytest.mark.parametrize("count, amount, expected", [
    (11, 150000, SuspicionLevel.HIGH),
    (6, 60000, SuspicionLevel.MODERATE),
    (6, 40000, SuspicionLevel.LOW),
    (10, 150000, SuspicionLevel.MODERATE),   # count must be > 10 for High
    (11, 100000, SuspicionLevel.MODERATE),   # amount must be > 100,000 for High
    (5, 60000, SuspicionLevel.LOW),
])
def test_classify_suspicion(count, amount, expected):
    assert classify_suspicion(count, amount) is expected


def test_severity_orders_levels():
    assert SuspicionLevel.HIGH.severity > SuspicionLevel.MODERATE.severity > SuspicionLevel.LOW.severity


def _pair(buyer, seller, count, amount_each):
    return [
        {"buyer_id": buyer, "seller_id": seller, "transaction_amount": amount_each}
        for _ in range(count)
    ]


def test_top_pairs_excludes_low_and_orders_by_severity(make_snapshot):
    rows = (
        _pair("B_MOD_BIG", "S1", 9, 10000.0)      # 9 txns, 90,000 -> Moderate
        + _pair("B_HIGH", "S1", 11, 150000.0 / 11)  # 11 txns, 150,000 -> High
        + _pair("B_MOD_SMALL", "S1", 6, 10000.0)  # 6 txns, 60,000 -> Moderate
        + _pair("B_LOW", "S1", 6, 40000.0 / 6)    # 6 txns, 40,000 -> Low
    )

    top = top_fraudulent_pairs(make_snapshot(rows))

    assert list(top["buyer_id"]) == ["B_HIGH", "B_MOD_BIG", "B_MOD_SMALL"]
    assert list(top["suspicion_level"]) == [
        "High Suspicion", "Moderate Suspicion", "Moderate Suspicion"
    ]
    assert top.loc[0, "total_transaction_amount"] == pytest.approx(150000.0)
    assert top.loc[0, "max_transaction_amount"] == pytest.approx(150000.0 / 11)


def test_top_pairs_respects_configured_cutoffs(make_snapshot):
    rows = _pair("B1", "S1", 3, 1000.0)
    config = DetectorConfig(moderate_suspicion_min_count=2, moderate_suspicion_min_amount=2000)

    top = top_fraudulent_pairs(make_snapshot(rows), config)

    assert list(top["suspicion_level"]) == ["Moderate Suspicion"]


def test_top_pairs_carries_optional_fraud_counters(make_snapshot):
    rows = [
        {"transaction_amount": 20000.0, "frequency_fraud": f, "transaction_count_fraud": 1}
        for f in range(6)
    ]

    top = top_fraudulent_pairs(make_snapshot(rows))

    assert top.loc[0, "max_frequency_fraud"] == 5
    assert top.loc[0, "max_transaction_count_fraud"] == 1


def test_company_insights_count_fraud_per_profile(make_snapshot):
    rows = [
        {"company_id": "C1", "company_kyc_status_name": "verified", "transaction_amount": 10.0},
        {"company_id": "C1", "company_kyc_status_name": "verified", "transaction_amount": 30.0},
        {"company_id": "C2", "company_kyc_status_name": "pending", "transaction_amount": 5.0, "user_fraud_flag": 1},
        {"company_id": "C2", "company_kyc_status_name": "pending", "transaction_amount": 7.0, "user_fraud_flag": 1},
    ]

    insights = company_fraud_insights(make_snapshot(rows))

    # Fraud-flagged rows form their own profile (user_fraud_flag is a grouping field)
    assert insights.loc[0, "company_id"] == "C2"
    assert insights.loc[0, "fraud_transactions"] == 2
    assert insights.loc[0, "total_transaction_amount"] == pytest.approx(12.0)
    c1 = insights[insights["company_id"] == "C1"].iloc[0]
    assert c1["total_transactions"] == 2
    assert c1["avg_transaction_amount"] == pytest.approx(20.0)
    assert c1["fraud_transactions"] == 0
