"""
Aggregator: raw transactions -> one GroupAggregate row per key.

Given a grouping key (a tuple of KeyFields, some of which truncate the
timestamp to a date or an hour) and a list of numeric measure fields,
produce per group:

    transaction_count
    sum_<field>, avg_<field>, std_<field>, max_<field>

std is the SAMPLE standard deviation (ddof=1). Single-member groups have
an undefined std, which is reported as 0.0 so nothing downstream divides
by or compares against NaN.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from src.detection.errors import InvalidGroupKey, NonNumericMeasure, SchemaMismatch


logger = logging.getLogger(__name__)

TIMESTAMP_COLUMN = "transaction_created_datetime"


@dataclass(frozen=True)
class KeyField:
    """
    One component of a grouping key.

    Args:
        name: Column name of the key in the aggregate output
        source: Column of the transaction table it is read from
        truncate: None, "date" or "hour" (timestamp truncation)
    """
    name: str
    source: str
    truncate: Optional[str] = None

    def extract(self, frame: pd.DataFrame) -> pd.Series:
        values = frame[self.source]
        if self.truncate is None:
            return values
        values = pd.to_datetime(values, errors="coerce")
        if self.truncate == "date":
            return values.dt.date.where(values.notna(), None)
        if self.truncate == "hour":
            return values.dt.hour
        raise ValueError(f"Unknown truncation '{self.truncate}' for key '{self.name}'")


def key(*fields) -> Tuple[KeyField, ...]:
    """Shorthand: plain column names or KeyField objects."""
    return tuple(f if isinstance(f, KeyField) else KeyField(f, f) for f in fields)


BUYER_SELLER = key("buyer_id", "seller_id")
BUYER_PROMO_DAY = key(
    "buyer_id",
    "promotion_code",
    KeyField("usage_date", TIMESTAMP_COLUMN, "date"),
)
BUYER_SELLER_HOUR = key(
    "buyer_id",
    "seller_id",
    KeyField("transaction_date", TIMESTAMP_COLUMN, "date"),
    KeyField("transaction_hour", TIMESTAMP_COLUMN, "hour"),
)
BUYER = key("buyer_id")
COMPANY = key("company_id")


def key_names(key_fields: Sequence[KeyField]) -> List[str]:
    return [f.name for f in key_fields]


def derive_keys(
    frame: pd.DataFrame,
    key_fields: Sequence[KeyField],
    detector: str = "aggregator",
    exclude_null: Iterable[str] = ()
) -> pd.DataFrame:
    """
    Adds key columns to a copy of frame and validates them.

    Records whose key field is listed in exclude_null are dropped when that
    field is null (e.g. no promotion_code). Any other null key raises
    InvalidGroupKey naming the first offending record.
    """
    missing = {f.source for f in key_fields} - set(frame.columns)
    if missing:
        raise SchemaMismatch(missing, context=detector)

    out = frame.copy()
    for f in key_fields:
        out[f.name] = f.extract(frame)

    exclude_null = set(exclude_null)
    for f in key_fields:
        if f.name in exclude_null:
            before = len(out)
            out = out[out[f.name].notna()]
            dropped = before - len(out)
            if dropped:
                logger.info(f"[{detector}] excluded {dropped:,} records with null {f.name}")

    for f in key_fields:
        nulls = out[f.name].isna()
        if nulls.any():
            row_index = nulls.idxmax()
            record = out.loc[row_index, [c for c in frame.columns]].to_dict()
            raise InvalidGroupKey(detector, f.name, row_index, record)

    return out


def coerce_measures(frame: pd.DataFrame, fields: Sequence[str], detector: str = "aggregator") -> pd.DataFrame:
    """Casts measure columns to float; anything non-numeric aborts the run."""
    missing = set(fields) - set(frame.columns)
    if missing:
        raise SchemaMismatch(missing, context=detector)

    out = frame.copy()
    for field in fields:
        numeric = pd.to_numeric(out[field], errors="coerce")
        bad = numeric.isna() & out[field].notna()
        if bad.any():
            row_index = bad.idxmax()
            raise NonNumericMeasure(detector, field, row_index, out.loc[row_index, field])
        out[field] = numeric.astype(float)
    return out


def aggregate(
    frame: pd.DataFrame,
    key_fields: Sequence[KeyField],
    measure_fields: Sequence[str],
    detector: str = "aggregator",
    exclude_null: Iterable[str] = ()
) -> pd.DataFrame:
    """
    Groups transactions by key and summarises each measure field.

    Args:
        frame: Transaction-level DataFrame (never modified)
        key_fields: Grouping key
        measure_fields: Numeric columns to summarise
        detector: Name used in errors and logs
        exclude_null: Key names whose null values drop the record

    Returns:
        One row per distinct key, sorted by key, with
        transaction_count and sum_/avg_/std_/max_ per measure field.
    """
    keyed = derive_keys(frame, key_fields, detector, exclude_null)
    keyed = coerce_measures(keyed, measure_fields, detector)
    names = key_names(key_fields)

    if keyed.empty:
        columns = names + ["transaction_count"]
        for field in measure_fields:
            columns += [f"sum_{field}", f"avg_{field}", f"std_{field}", f"max_{field}"]
        return pd.DataFrame(columns=columns)

    grouped = keyed.groupby(names, sort=True)
    groups = grouped.size().rename("transaction_count").to_frame()
    for field in measure_fields:
        stats = grouped[field].agg(["sum", "mean", "std", "max"])
        groups[f"sum_{field}"] = stats["sum"]
        groups[f"avg_{field}"] = stats["mean"]
        # Undefined for single-member groups -> 0
        groups[f"std_{field}"] = stats["std"].fillna(0.0)
        groups[f"max_{field}"] = stats["max"]

    groups = groups.reset_index()
    logger.info(f"[{detector}] aggregated {len(keyed):,} records into {len(groups):,} groups")
    return groups
