"""Tabular summaries of query results.

Turns the plain dicts returned by ``count_by`` / ``count_where`` and the
QUAL column of a record stream into DataFrames that can be written as TSV
or handed to the plotting helpers.
"""
from __future__ import annotations

from typing import Hashable, Iterable, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from ..io.record import Header, Record
from ..query.engine import project
from ..utils import natural_sort_key

__all__ = [
    "counts_table",
    "tally_table",
    "quality_series",
    "collect_quality",
    "quality_summary",
    "records_frame",
]


def counts_table(counts: Mapping[Hashable, int], key_name: str = "Key", sort_by: str = "key") -> pd.DataFrame:
    """Return a DataFrame with columns ``[key_name, Count]``.

    ``sort_by='key'`` orders keys naturally (chr2 before chr10);
    ``sort_by='count'`` orders by descending count, ties by key.
    """
    if sort_by == "key":
        keys = sorted(counts, key=natural_sort_key)
    elif sort_by == "count":
        keys = sorted(counts, key=lambda k: (-counts[k], natural_sort_key(k)))
    else:
        raise ValueError(f"sort_by must be 'key' or 'count', got {sort_by!r}")
    df = pd.DataFrame({key_name: keys, "Count": [counts[k] for k in keys]})
    df["Count"] = df["Count"].astype("int64")
    return df


def tally_table(tallies: Mapping[str, int], total: Optional[int] = None) -> pd.DataFrame:
    """Return ``[Label, Count, Fraction]`` in label insertion order.

    Tallies are independent, so fractions need not sum to 1. ``Fraction``
    is NaN when ``total`` is unknown or zero.
    """
    labels = list(tallies)
    df = pd.DataFrame({"Label": labels, "Count": [tallies[k] for k in labels]})
    df["Count"] = df["Count"].astype("int64")
    if total:
        df["Fraction"] = df["Count"] / float(total)
    else:
        df["Fraction"] = np.nan
    return df


def quality_series(values: Iterable[Optional[float]]) -> pd.Series:
    """QUAL values as a float Series named ``QUAL``; ``None`` becomes NaN."""
    return pd.Series([np.nan if q is None else q for q in values], dtype="float64", name="QUAL")


def collect_quality(records: Iterable[Record]) -> pd.Series:
    """QUAL of every record as floats, NaN where QUAL is missing."""
    return quality_series(rec.quality for rec in records)


def quality_summary(qual: pd.Series) -> pd.DataFrame:
    """One-row summary: Records, WithQual, MissingQual, Mean, Median, Min, Max."""
    arr = qual.to_numpy(dtype=float)
    present = arr[~np.isnan(arr)]
    row = {
        "Records": int(arr.size),
        "WithQual": int(present.size),
        "MissingQual": int(arr.size - present.size),
        "Mean": float(present.mean()) if present.size else np.nan,
        "Median": float(np.percentile(present, 50)) if present.size else np.nan,
        "Min": float(present.min()) if present.size else np.nan,
        "Max": float(present.max()) if present.size else np.nan,
    }
    return pd.DataFrame([row])


def records_frame(records: Iterable[Record], field_names: Sequence[str], header: Header) -> pd.DataFrame:
    """Project records into a DataFrame; POS and QUAL become numeric."""
    rows = list(project(records, field_names, header))
    df = pd.DataFrame(rows, columns=list(field_names))
    for col in df.columns:
        if col.upper() in ("POS", "POSITION", "QUAL", "QUALITY") or col.lower().startswith("len("):
            df[col] = pd.to_numeric(df[col], errors="coerce")
    return df
