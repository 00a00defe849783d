"""Seeded train/validation/test partitioning for intervention planning.

The random source is injected as a ``numpy.random.Generator`` so the
partition is reproducible regardless of any other random calls made
elsewhere in the program. Stratified sampling preserves the class balance
of the (usually rare) positive outcome across partitions.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd
from sklearn.model_selection import train_test_split


@dataclass(frozen=True)
class DatasetSubset:
    """Aligned feature rows and binary labels."""

    features: pd.DataFrame
    labels: pd.Series

    def __post_init__(self) -> None:
        if len(self.features) != len(self.labels):
            raise ValueError(
                f"features has {len(self.features)} rows but labels has {len(self.labels)}"
            )

    def __len__(self) -> int:
        return len(self.labels)

    @property
    def positive_rate(self) -> float:
        return float(self.labels.mean()) if len(self.labels) else 0.0


@dataclass(frozen=True)
class Dataset:
    """Disjoint train/validation/test partitions of one labeled table.

    ``validation`` may be empty, in which case the budget search measures
    intervention rates on the training partition.
    """

    train: DatasetSubset
    validation: DatasetSubset
    test: DatasetSubset
    test_size: float
    validation_size: float

    def __len__(self) -> int:
        return len(self.train) + len(self.validation) + len(self.test)

    @property
    def feature_names(self) -> list[str]:
        return list(self.train.features.columns)


def _subset(features: pd.DataFrame, labels: pd.Series, index: np.ndarray) -> DatasetSubset:
    return DatasetSubset(features.loc[index], labels.loc[index])


def partition_dataset(
    features: pd.DataFrame,
    labels: pd.Series,
    test_size: float = 0.3,
    validation_size: float = 0.0,
    rng: np.random.Generator | None = None,
    stratify: bool = True,
) -> Dataset:
    """Partition a labeled table into disjoint train/validation/test subsets.

    Both sizes are fractions of the full table. The validation split is drawn
    from what remains after the test split, rescaled so the final proportions
    match the requested ones.

    Args:
        features: Feature table, one row per example
        labels: Binary labels aligned with ``features``
        test_size: Fraction of examples held out for the final evaluation
        validation_size: Fraction of examples used to drive the budget search
        rng: Random source; defaults to ``np.random.default_rng(42)``
        stratify: Preserve the label balance in every partition

    Returns:
        Dataset whose partitions are disjoint and cover every input row

    Raises:
        ValueError: If the sizes are out of range or labels are misaligned,
            or stratification is impossible for the class counts

    Example:
        >>> dataset = partition_dataset(X, y, test_size=0.3, rng=np.random.default_rng(7))
        >>> assert set(dataset.train.features.index).isdisjoint(dataset.test.features.index)
    """
    if len(features) != len(labels):
        raise ValueError(f"features has {len(features)} rows but labels has {len(labels)}")
    if not features.index.equals(labels.index):
        raise ValueError("features and labels must share the same index")
    if not features.index.is_unique:
        raise ValueError("features index must be unique")
    if not 0 < test_size < 1:
        raise ValueError(f"test_size must be in (0, 1), got {test_size}")
    if not 0 <= validation_size < 1 or test_size + validation_size >= 1:
        raise ValueError(
            f"validation_size must be in [0, 1) with test_size + validation_size < 1, "
            f"got test_size={test_size}, validation_size={validation_size}"
        )

    rng = rng if rng is not None else np.random.default_rng(42)
    index = np.asarray(features.index)

    # Derive sklearn seeds from the injected generator
    test_seed, val_seed = (int(s) for s in rng.integers(0, 2**31 - 1, size=2))

    train_val_idx, test_idx = train_test_split(
        index,
        test_size=test_size,
        random_state=test_seed,
        stratify=labels if stratify else None,
    )

    if validation_size > 0:
        relative_val_size = validation_size / (1 - test_size)
        train_val_labels = labels.loc[train_val_idx]
        train_idx, val_idx = train_test_split(
            train_val_idx,
            test_size=relative_val_size,
            random_state=val_seed,
            stratify=train_val_labels if stratify else None,
        )
    else:
        train_idx, val_idx = train_val_idx, index[:0]

    return Dataset(
        train=_subset(features, labels, train_idx),
        validation=_subset(features, labels, val_idx),
        test=_subset(features, labels, test_idx),
        test_size=test_size,
        validation_size=validation_size,
    )
