"""
Flag Propagator: classified groups -> member transactions.

Every transaction inherits the columns (flag, group statistics) of the
group whose key it matches exactly. Derived key columns (date, hour) are
only used as join predicates and are not kept on the output rows.
"""

from typing import Iterable, Sequence

import pandas as pd

from src.detection.aggregator import KeyField, derive_keys, key_names


_ROW = "__row_position"


def propagate(
    frame: pd.DataFrame,
    groups: pd.DataFrame,
    key_fields: Sequence[KeyField],
    columns: Sequence[str],
    detector: str = "propagator",
    exclude_null: Iterable[str] = ()
) -> pd.DataFrame:
    """
    Inner-join transactions onto their groups and attach group columns.

    Args:
        frame: Transaction-level DataFrame
        groups: One row per key (Aggregator / Classifier output)
        key_fields: The grouping key the groups were built with
        columns: Group columns copied onto every member transaction
        detector: Name used in errors
        exclude_null: Same exclusions the Aggregator applied

    Returns:
        frame's columns + columns, in input transaction order.
    """
    names = key_names(key_fields)
    output_columns = list(frame.columns) + [c for c in columns if c not in frame.columns]

    keyed = derive_keys(frame, key_fields, detector, exclude_null)
    if keyed.empty or groups.empty:
        return pd.DataFrame(columns=output_columns)

    keyed[_ROW] = range(len(keyed))
    joined = keyed.merge(
        groups[names + list(columns)],
        on=names,
        how="inner",
        validate="many_to_one"
    )
    joined = joined.sort_values(_ROW, kind="mergesort")
    return joined[output_columns].reset_index(drop=True)
