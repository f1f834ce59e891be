"""
Immutable snapshot handle over the cleaned_merged_data table.

Every detector receives a TransactionSnapshot instead of reading ambient
tables. The wrapped DataFrame is private; callers always get a copy, so
no stage can mutate what another stage reads.
"""

import logging
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from src.detection.errors import SchemaMismatch
from src.ingestion.schema import REQUIRED_COLUMNS, TransactionRecord


logger = logging.getLogger(__name__)


class TransactionSnapshot:
    """
    Read-only view of one closed dataset snapshot.

    Usage:
        snapshot = TransactionSnapshot(df)
        frame = snapshot.frame  # private copy, safe to modify
    """

    def __init__(self, df: pd.DataFrame, source: str = "in-memory"):
        missing = set(REQUIRED_COLUMNS) - set(df.columns)
        if missing:
            raise SchemaMismatch(missing, context=source)

        frame = df.copy()
        frame["transaction_created_datetime"] = pd.to_datetime(
            frame["transaction_created_datetime"], errors="coerce"
        )

        # Blank promo codes are the same as no promo code
        promo = frame["promotion_code"].astype(object)
        promo = promo.mask(promo.str.strip().eq(""), None)
        frame["promotion_code"] = promo

        # Cashback defaults to 0 when there is no promotion
        cashback = frame["transaction_promo_cashback_amount"]
        frame["transaction_promo_cashback_amount"] = cashback.mask(
            promo.isna() & cashback.isna(), 0
        )

        self._frame = frame.reset_index(drop=True)
        self.source = source

        logger.info(f"Snapshot '{source}' holds {len(self._frame):,} transactions")

    @classmethod
    def from_records(
        cls,
        records: Iterable[TransactionRecord],
        source: str = "records",
        columns: Optional[Sequence[str]] = None
    ) -> "TransactionSnapshot":
        """
        Builds a snapshot from validated records.

        columns fixes the column order (and the columns of an empty
        snapshot); by default the record fields plus their extras.
        """
        rows = [r.model_dump() for r in records]
        if columns is None:
            columns = list(rows[0]) if rows else REQUIRED_COLUMNS
        return cls(pd.DataFrame(rows, columns=list(columns)), source=source)

    @property
    def frame(self) -> pd.DataFrame:
        return self._frame.copy()

    @property
    def columns(self) -> List[str]:
        return list(self._frame.columns)

    def __len__(self) -> int:
        return len(self._frame)

    def __repr__(self) -> str:
        return f"TransactionSnapshot(source={self.source!r}, rows={len(self)})"
