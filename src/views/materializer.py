"""
Result Materializer: persists result sets as DuckDB tables.

One table per result set, replaced on every run, so each set stays
independently queryable after the run ends.
"""

import logging
from typing import Dict, Iterable, List, Optional

import duckdb
import pandas as pd


logger = logging.getLogger(__name__)


def _duckdb_friendly(df: pd.DataFrame) -> pd.DataFrame:
    # All-null object columns give DuckDB nothing to infer a type from
    out = df.copy()
    for column in out.columns:
        if out[column].dtype == object and out[column].isna().all():
            out[column] = out[column].astype("string")
    return out


def save_result_sets(
    result_sets: Dict[str, pd.DataFrame],
    output_path: str,
    failed: Iterable[str] = ()
) -> Dict[str, int]:
    """
    Writes every result set to output_path (CREATE OR REPLACE TABLE).

    Tables named in `failed` are dropped: a result set that could not be
    built this run must not keep serving the previous run's rows. The
    whole run is written in one transaction.

    Returns:
        {result_set_name: row_count}
    """
    written = {}
    con = duckdb.connect(output_path)
    try:
        con.execute("BEGIN TRANSACTION")
        for name in failed:
            con.execute(f'DROP TABLE IF EXISTS "{name}"')
            logger.warning(f"Dropped {output_path}:{name} (failed this run)")
        for name, df in result_sets.items():
            con.register("result_df", _duckdb_friendly(df))
            con.execute(f'CREATE OR REPLACE TABLE "{name}" AS SELECT * FROM result_df')
            con.unregister("result_df")
            written[name] = len(df)
            logger.info(f"Saved {len(df):,} rows to {output_path}:{name}")
        con.execute("COMMIT")
    except Exception:
        con.execute("ROLLBACK")
        raise
    finally:
        con.close()
    return written


def list_result_sets(db_path: str) -> Dict[str, int]:
    """{table_name: row_count} for every materialized result set."""
    con = duckdb.connect(db_path, read_only=True)
    try:
        tables = [row[0] for row in con.execute(
            "SELECT table_name FROM information_schema.tables ORDER BY table_name"
        ).fetchall()]
        return {
            t: con.execute(f'SELECT COUNT(*) FROM "{t}"').fetchone()[0]
            for t in tables
        }
    finally:
        con.close()


def read_result_set(db_path: str, name: str, limit: Optional[int] = None) -> pd.DataFrame:
    """Reads one materialized result set back as a DataFrame."""
    available: List[str] = list(list_result_sets(db_path))
    if name not in available:
        raise KeyError(f"Unknown result set '{name}'. Available: {available}")

    query = f'SELECT * FROM "{name}"'
    params = []
    if limit is not None:
        query += " LIMIT ?"
        params.append(int(limit))

    con = duckdb.connect(db_path, read_only=True)
    try:
        return con.execute(query, params).df()
    finally:
        con.close()
