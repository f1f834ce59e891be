import logging
from typing import Optional

import great_expectations as gx
import pandas as pd

from src.validation.build_suite import build_suites


logger = logging.getLogger(__name__)

DATASOURCE_NAME = "marketplace_datasource"
ASSET_NAME = "cleaned_merged_data_asset"
BATCH_DEFINITION_NAME = "whole_snapshot"


def validate_batch(df: pd.DataFrame, context_root_dir: Optional[str] = None) -> bool:
    """
    Gatekeeper for the source snapshot before scoring.

    Args:
        df: cleaned_merged_data rows
        context_root_dir: File context directory; None uses an
            ephemeral in-memory context

    Returns:
        True if every expectation in both suites passed.
    """
    if context_root_dir is None:
        context = gx.get_context(mode="ephemeral")
    else:
        context = gx.get_context(context_root_dir=context_root_dir)
    logger.info("🔍 Running Batch Validation...")

    # 1. Suites are rebuilt every time so code and context never drift
    schema_suite, business_suite = build_suites(context)

    # 2. Connect the Data
    datasource = context.data_sources.add_or_update_pandas(name=DATASOURCE_NAME)
    try:
        asset = datasource.add_dataframe_asset(name=ASSET_NAME)
    except Exception:
        asset = datasource.get_asset(ASSET_NAME)

    try:
        batch_def = asset.add_batch_definition_whole_dataframe(BATCH_DEFINITION_NAME)
    except Exception:
        batch_def = asset.get_batch_definition(BATCH_DEFINITION_NAME)

    # 3. Validation Definitions (Data + Suite) and Checkpoint
    val_schema = context.validation_definitions.add_or_update(
        gx.ValidationDefinition(name="val_schema", data=batch_def, suite=schema_suite)
    )
    val_logic = context.validation_definitions.add_or_update(
        gx.ValidationDefinition(name="val_logic", data=batch_def, suite=business_suite)
    )
    checkpoint = context.checkpoints.add_or_update(
        gx.Checkpoint(
            name="snapshot_checkpoint",
            validation_definitions=[val_schema, val_logic]
        )
    )

    # 4. Execute with the actual DataFrame
    result = checkpoint.run(batch_parameters={"dataframe": df})

    if not result.success:
        logger.error("🚨 DATA VALIDATION FAILED!")
        for run_result in result.run_results.values():
            for r in getattr(run_result, "results", []):
                if not r.success:
                    logger.error(f"❌ FAILED: {r.expectation_config.type} {r.expectation_config.kwargs}")
        return False

    logger.info("✅ Batch Validation Passed.")
    return True


if __name__ == "__main__":
    from src.ingestion.batch_loader import load_cleaned_merged_data

    logging.basicConfig(level=logging.INFO)
    df = load_cleaned_merged_data("data/processed/cleaned_merged_data.duckdb")
    if not validate_batch(df, context_root_dir="great_expectations"):
        raise RuntimeError("⛔ STOP! Data Validation Failed. Fix the data before scoring.")
