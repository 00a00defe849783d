"""Tabular dataset loader.

Load a CSV/CSV.GZ/Parquet table with a header row into a numeric feature
matrix and a binary outcome, ready for partitioning and cost-sensitive
training.
"""

import logging
from pathlib import Path
from typing import Any, Sequence

import pandas as pd

logger = logging.getLogger(__name__)

# Supported file extensions
SUPPORTED_EXTENSIONS = [".csv.gz", ".csv", ".parquet"]


def read_table(path: Path) -> pd.DataFrame:
    """Read a CSV, gzipped CSV or Parquet file into a DataFrame."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Dataset not found: {path}")

    name = path.name.lower()
    if name.endswith(".parquet"):
        return pd.read_parquet(path)
    if name.endswith(".csv") or name.endswith(".csv.gz"):
        return pd.read_csv(path)
    raise ValueError(
        f"Unsupported file type for {path}; expected one of {SUPPORTED_EXTENSIONS}"
    )


def _match_label(outcome: pd.Series, positive_label: Any) -> pd.Series:
    # Labels from settings or the CLI arrive as strings; match them against
    # numeric columns by value
    if (
        isinstance(positive_label, str)
        and pd.api.types.is_numeric_dtype(outcome)
        and not pd.api.types.is_bool_dtype(outcome)
    ):
        try:
            positive_label = float(positive_label)
        except ValueError as e:
            raise ValueError(
                f"Positive label {positive_label!r} is not a number but outcome column "
                f"{outcome.name!r} is numeric"
            ) from e
    return outcome == positive_label


def encode_outcome(outcome: pd.Series, positive_label: Any = None) -> pd.Series:
    """Map an outcome column to 0/1 integers.

    Args:
        outcome: Raw outcome values
        positive_label: Value that marks the positive class. When omitted the
            column must already be boolean or contain only 0 and 1. A string
            label is compared by value against a numeric column.

    Returns:
        Integer Series of 0/1 with the original index

    Raises:
        ValueError: If the outcome is not binary, or ``positive_label`` never
            occurs in it
    """
    if positive_label is not None:
        matches = _match_label(outcome, positive_label)
        if not matches.any():
            raise ValueError(
                f"Positive label {positive_label!r} never occurs in outcome column "
                f"{outcome.name!r} (values: {sorted(map(str, pd.unique(outcome)))[:5]})"
            )
        return matches.astype(int)

    if outcome.dtype == bool:
        return outcome.astype(int)

    values = set(pd.unique(outcome))
    if not values <= {0, 1}:
        raise ValueError(
            f"Outcome column {outcome.name!r} is not binary (values: {sorted(map(str, values))[:5]}); "
            "pass positive_label to binarize it"
        )
    return outcome.astype(int)


def encode_features(df: pd.DataFrame) -> pd.DataFrame:
    """One-hot encode categorical columns.

    Object, category and boolean columns are expanded with ``pd.get_dummies``
    (missing values get their own indicator). Numeric NaNs are kept: they are
    imputed by the classifier from its training rows only, so held-out rows
    never inform the fill values.
    """
    categorical = df.select_dtypes(include=["object", "category", "bool"]).columns.tolist()
    if not categorical:
        return df.copy()

    encoded = pd.get_dummies(df, columns=categorical, dummy_na=True, dtype=int)

    # Drop the NaN indicators get_dummies added for columns without gaps
    empty = [
        f"{col}_nan" for col in categorical
        if f"{col}_nan" in encoded.columns
        and f"{col}_nan" not in df.columns
        and encoded[f"{col}_nan"].sum() == 0
    ]
    return encoded.drop(columns=empty)


def load_tabular_dataset(
    path: Path,
    outcome_column: str,
    positive_label: Any = None,
    drop_columns: Sequence[str] = (),
) -> tuple[pd.DataFrame, pd.Series]:
    """Load a labeled table as (features, labels).

    Rows with a missing outcome are dropped. Identifier columns listed in
    ``drop_columns`` are removed before encoding.

    Args:
        path: CSV/CSV.GZ/Parquet file with a header row
        outcome_column: Name of the outcome column
        positive_label: Outcome value that marks the positive class
        drop_columns: Columns to exclude from the features

    Returns:
        Tuple of (encoded feature DataFrame, 0/1 label Series), sharing a
        fresh RangeIndex

    Raises:
        FileNotFoundError: If ``path`` does not exist
        ValueError: If a named column is missing, the outcome is not binary, or
            ``positive_label`` never occurs in it
    """
    df = read_table(path)
    logger.info(f"Loaded {path}: {df.shape[0]} rows, {df.shape[1]} columns")

    missing = [c for c in [outcome_column, *drop_columns] if c not in df.columns]
    if missing:
        raise ValueError(f"Columns not found in {path}: {missing}")

    n_before = len(df)
    df = df[df[outcome_column].notna()].reset_index(drop=True)
    if len(df) < n_before:
        logger.warning(f"  Dropped {n_before - len(df)} rows with missing {outcome_column}")

    labels = encode_outcome(df[outcome_column], positive_label).rename(outcome_column)
    features = encode_features(df.drop(columns=[outcome_column, *drop_columns]))

    logger.info(
        f"  {features.shape[1]} encoded features, "
        f"{int(labels.sum())} positive / {int(len(labels) - labels.sum())} negative"
    )
    return features, labels
