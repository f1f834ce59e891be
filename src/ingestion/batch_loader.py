import logging
from typing import List

import duckdb
import pandas as pd
from pydantic import ValidationError

from src.detection.errors import SchemaMismatch
from src.ingestion.schema import REQUIRED_COLUMNS, TransactionRecord
from src.ingestion.snapshot import TransactionSnapshot


logger = logging.getLogger(__name__)


def load_cleaned_merged_data(duckdb_path: str, table: str = "cleaned_merged_data") -> pd.DataFrame:
    """
    Reads the cleaned source table from DuckDB, sorted by time.
    The engine only needs read access, so the connection is read-only.
    """
    logger.info(f"Connecting to {duckdb_path}...")
    con = duckdb.connect(duckdb_path, read_only=True)
    try:
        query = f'SELECT * FROM "{table}" ORDER BY transaction_created_datetime'
        df = con.execute(query).df()
    finally:
        con.close()

    logger.info(f"Loaded {len(df):,} rows from {table}.")
    return df


def validate_and_convert(df: pd.DataFrame) -> List[TransactionRecord]:
    """
    Converts a raw DataFrame into a list of strict TransactionRecord objects.

    A table missing a required column is fatal (SchemaMismatch).
    Rows with bad values (negative amount, flag of 7, ...) are logged and skipped.
    """
    missing = set(REQUIRED_COLUMNS) - set(df.columns)
    if missing:
        raise SchemaMismatch(missing, context="record conversion")

    logger.info("Converting DataFrame to TransactionRecord objects (Validation)...")

    raw_records = df.to_dict(orient="records")

    valid_records = []
    rejected = 0
    for row_index, record in enumerate(raw_records):
        try:
            valid_records.append(TransactionRecord(**record))
        except ValidationError as e:
            rejected += 1
            logger.warning(f"Failed to parse row {row_index}: {e.errors()[0]['msg']}")

    logger.info(
        f"Successfully validated {len(valid_records):,} transactions "
        f"({rejected:,} rejected)."
    )
    return valid_records


def load_snapshot(duckdb_path: str, table: str = "cleaned_merged_data") -> TransactionSnapshot:
    """
    Loads the source table, validates every row and freezes the valid
    ones into a snapshot handle.
    """
    df = load_cleaned_merged_data(duckdb_path, table)
    records = validate_and_convert(df)
    return TransactionSnapshot.from_records(
        records,
        source=f"{duckdb_path}:{table}",
        columns=list(df.columns)
    )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)

    DB_PATH = "data/processed/cleaned_merged_data.duckdb"

    # 1. Load raw data
    df = load_cleaned_merged_data(DB_PATH)

    # 2. Validate a small sample to be fast
    records = validate_and_convert(df.head(1000))

    # 3. Prove it worked
    print(f"\nSample TransactionRecord 0:")
    print(records[0])
