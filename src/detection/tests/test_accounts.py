"""
Tests for flagged-user qualification and counterparty interactions.
"""

import pytest

from src.detection.accounts import (
    build_account_risk_profiles,
    flagged_user_interactions,
    select_flagged_users,
)
from src.detection.models import DetectorConfig


pytestmark = pytest.mark.unit


def test_risk_profile_counts_fraud_flags_and_blacklist(make_snapshot):
    snapshot = make_snapshot([
        {"buyer_id": "B1", "user_fraud_flag": 1},
        {"buyer_id": "B1", "user_fraud_flag": 1},
        {"buyer_id": "B1"},
        {"buyer_id": "B2", "blacklist_account_flag": 1},
        {"buyer_id": "B3"},
    ])

    profiles = build_account_risk_profiles(snapshot.frame).set_index("buyer_id")

    assert profiles.loc["B1", "fraud_flag_count"] == 2
    assert profiles.loc["B1", "transaction_count"] == 3
    assert profiles.loc["B2", "is_blacklisted"] == 1
    assert profiles.loc["B3", "fraud_flag_count"] == 0


def test_flagged_user_qualification_is_or_of_both_conditions(make_snapshot):
    snapshot = make_snapshot([
        # exactly 2 fraud flags, not blacklisted -> qualifies (2 > 1)
        {"buyer_id": "TWO_FLAGS", "user_fraud_flag": 1},
        {"buyer_id": "TWO_FLAGS", "user_fraud_flag": 1},
        # one fraud flag only -> does not qualify
        {"buyer_id": "ONE_FLAG", "user_fraud_flag": 1},
        # blacklisted, zero fraud flags -> qualifies
        {"buyer_id": "BLACKLISTED", "blacklist_account_flag": 1},
        {"buyer_id": "CLEAN"},
    ])

    profiles = build_account_risk_profiles(snapshot.frame)
    flagged = select_flagged_users(profiles, min_fraud_flags=1)

    assert sorted(flagged["buyer_id"]) == ["BLACKLISTED", "TWO_FLAGS"]


def test_interactions_flagged_by_counterparty_flags_or_frequency(make_snapshot):
    rows = [
        {"buyer_id": "BAD", "seller_id": "S_FLAGGED", "user_fraud_flag": 1},
        {"buyer_id": "BAD", "seller_id": "S_FLAGGED", "user_fraud_flag": 1},
    ]
    rows += [{"buyer_id": "BAD", "seller_id": "S_FREQUENT"} for _ in range(6)]
    rows += [{"buyer_id": "BAD", "seller_id": "S_FIVE"} for _ in range(5)]
    rows += [{"buyer_id": "BAD", "seller_id": "S_BLACK", "blacklist_account_flag": 1}]
    # Clean buyer trading heavily: never reported
    rows += [{"buyer_id": "GOOD", "seller_id": "S_FREQUENT"} for _ in range(20)]

    interactions = flagged_user_interactions(make_snapshot(rows))

    assert set(interactions["flagged_buyer_id"]) == {"BAD"}
    assert list(interactions["interacting_seller_id"]) == ["S_BLACK", "S_FLAGGED", "S_FREQUENT"]

    by_seller = interactions.set_index("interacting_seller_id")
    assert by_seller.loc["S_FLAGGED", "seller_fraud_flag"] == 1
    assert by_seller.loc["S_BLACK", "seller_blacklisted_flag"] == 1
    assert by_seller.loc["S_FREQUENT", "transaction_count"] == 6
    assert by_seller.loc["S_FREQUENT", "total_transaction_amount"] == pytest.approx(600.0)


def test_include_unflagged_keeps_every_counterparty(make_snapshot):
    rows = [{"buyer_id": "BAD", "blacklist_account_flag": 1, "seller_id": "S1"}]
    rows += [{"buyer_id": "BAD", "seller_id": "S_QUIET"}]

    interactions = flagged_user_interactions(make_snapshot(rows), include_unflagged=True)

    quiet = interactions.set_index("interacting_seller_id").loc["S_QUIET"]
    assert quiet["is_flagged_interaction"] == 0


def test_frequent_counterparty_cutoff_is_configurable(make_snapshot):
    rows = [{"buyer_id": "BAD", "blacklist_account_flag": 1, "seller_id": "S1"}]
    rows += [{"buyer_id": "BAD", "seller_id": "S3"} for _ in range(3)]

    default = flagged_user_interactions(make_snapshot(rows))
    strict = flagged_user_interactions(make_snapshot(rows), DetectorConfig(frequent_counterparty_cutoff=2))

    assert "S3" not in set(default["interacting_seller_id"])
    assert "S3" in set(strict["interacting_seller_id"])


def test_no_flagged_users_gives_empty_result(make_snapshot):
    interactions = flagged_user_interactions(make_snapshot([{}, {}]))

    assert interactions.empty
    assert "is_flagged_interaction" in interactions.columns
