"""Tabular data ingestion for intervention planning."""

from src.ingestion.tabular_loader import (
    encode_features,
    encode_outcome,
    load_tabular_dataset,
    read_table,
)

__all__ = [
    "encode_features",
    "encode_outcome",
    "load_tabular_dataset",
    "read_table",
]
