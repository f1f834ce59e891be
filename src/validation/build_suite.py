import logging

import great_expectations as gx
import great_expectations.expectations as gxe

from src.ingestion.schema import REQUIRED_COLUMNS


logger = logging.getLogger(__name__)

SCHEMA_SUITE = "cleaned_merged_data_schema"
BUSINESS_SUITE = "cleaned_merged_data_business_logic"


def _fresh_suite(context, suite_name: str):
    # Idempotent rebuild: drop the old definition if the context has one
    try:
        context.suites.delete(suite_name)
    except Exception:
        logger.debug(f"Suite '{suite_name}' not registered yet")
    return context.suites.add(gx.ExpectationSuite(name=suite_name))


def build_schema_suite(context):
    suite = _fresh_suite(context, SCHEMA_SUITE)

    # Structural Expectations: every column the detectors read
    for column in REQUIRED_COLUMNS:
        suite.add_expectation(gxe.ExpectColumnToExist(column=column))

    # Grouping keys may never be null
    for column in ("buyer_id", "seller_id", "company_id", "transaction_created_datetime"):
        suite.add_expectation(gxe.ExpectColumnValuesToNotBeNull(column=column))

    logger.info(f"✅ Suite '{SCHEMA_SUITE}' registered and built.")
    return suite


def build_business_logic_suite(context):
    suite = _fresh_suite(context, BUSINESS_SUITE)

    suite.add_expectation(gxe.ExpectColumnValuesToBeBetween(
        column="transaction_amount", min_value=0
    ))
    suite.add_expectation(gxe.ExpectColumnValuesToBeBetween(
        column="transaction_promo_cashback_amount", min_value=0
    ))
    suite.add_expectation(gxe.ExpectColumnValuesToBeInSet(
        column="user_fraud_flag", value_set=[0, 1]
    ))
    suite.add_expectation(gxe.ExpectColumnValuesToBeInSet(
        column="blacklist_account_flag", value_set=[0, 1]
    ))

    logger.info(f"✅ Suite '{BUSINESS_SUITE}' registered and built.")
    return suite


def build_suites(context):
    return [build_schema_suite(context), build_business_logic_suite(context)]


def main():
    # File-based context so the suites persist as JSON next to the project
    context = gx.get_context(context_root_dir="great_expectations")

    print("--- Building Expectation Suites (Context-Managed) ---")
    build_suites(context)
    print("\n🎉 Suites successfully registered in Data Context.")


if __name__ == "__main__":
    main()
