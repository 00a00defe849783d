"""Held-out confusion-matrix tabulation for binary classifiers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Any, Protocol, runtime_checkable

import numpy as np
import pandas as pd
from sklearn.metrics import confusion_matrix

from src.decision.errors import InvalidParameter


logger = logging.getLogger(__name__)


@runtime_checkable
class Classifier(Protocol):
    """Anything that maps one feature vector to a 0/1 label."""

    def predict_label(self, feature_vector: Any) -> int: ...


class LabeledSubset(Protocol):
    """A features table with aligned binary labels."""

    features: pd.DataFrame
    labels: pd.Series


@dataclass(frozen=True)
class ConfusionMatrix:
    """Outcome counts of a binary classifier over a labeled evaluation set."""

    true_negative: int = 0
    false_positive: int = 0
    false_negative: int = 0
    true_positive: int = 0

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise InvalidParameter(f"{f.name} must be an integer count, got {value!r}")
            if value < 0:
                raise InvalidParameter(f"{f.name} must be non-negative, got {value}")
            object.__setattr__(self, f.name, int(value))

    @property
    def total(self) -> int:
        return self.true_negative + self.false_positive + self.false_negative + self.true_positive

    @property
    def positives(self) -> int:
        return self.false_negative + self.true_positive

    @property
    def negatives(self) -> int:
        return self.true_negative + self.false_positive

    def as_array(self) -> np.ndarray:
        """2x2 array with true labels as rows and predictions as columns."""
        return np.array(
            [
                [self.true_negative, self.false_positive],
                [self.false_negative, self.true_positive],
            ],
            dtype=int,
        )

    @classmethod
    def from_predictions(cls, y_true: Any, y_pred: Any) -> "ConfusionMatrix":
        """Tabulate aligned true and predicted labels.

        Raises:
            InvalidParameter: If the inputs differ in length or contain
                values other than 0 and 1
        """
        y_true = _as_binary("labels", y_true)
        y_pred = _as_binary("predictions", y_pred)
        if len(y_true) != len(y_pred):
            raise InvalidParameter(
                f"{len(y_true)} labels but {len(y_pred)} predictions"
            )
        if len(y_true) == 0:
            return cls()

        tn, fp, fn, tp = confusion_matrix(y_true, y_pred, labels=[0, 1]).ravel()
        return cls(
            true_negative=int(tn),
            false_positive=int(fp),
            false_negative=int(fn),
            true_positive=int(tp),
        )


def _as_binary(name: str, values: Any) -> np.ndarray:
    arr = np.asarray(values)
    if arr.ndim != 1:
        arr = arr.reshape(-1)
    valid = np.isin(arr, (0, 1))
    if arr.size and not valid.all():
        bad = list(pd.unique(arr[~valid]))[:5]
        raise InvalidParameter(f"{name} must be 0 or 1, found {bad}")
    return arr.astype(int)


def predict_subset(classifier: Classifier, features: pd.DataFrame) -> np.ndarray:
    """Predict one label per row, in row order.

    Uses the classifier's vectorized ``predict_labels`` when it has one,
    otherwise calls ``predict_label`` row by row.
    """
    batch = getattr(classifier, "predict_labels", None)
    if callable(batch):
        return np.asarray(batch(features))
    return np.array(
        [classifier.predict_label(row) for _, row in features.iterrows()], dtype=int
    )


def evaluate_confusion(classifier: Classifier, subset: LabeledSubset) -> ConfusionMatrix:
    """Run ``classifier`` over ``subset`` and count each (true, predicted) pair.

    Every example lands in exactly one quadrant, so the counts sum to
    ``len(subset.labels)``. An empty subset gives an all-zero matrix.

    Args:
        classifier: Fitted object exposing ``predict_label``
        subset: Object with aligned ``features`` and ``labels``

    Returns:
        ConfusionMatrix for the subset
    """
    if len(subset.labels) == 0:
        return ConfusionMatrix()

    predictions = predict_subset(classifier, subset.features)
    cm = ConfusionMatrix.from_predictions(subset.labels, predictions)
    logger.debug(
        f"Confusion over {cm.total} examples: TN={cm.true_negative} FP={cm.false_positive} "
        f"FN={cm.false_negative} TP={cm.true_positive}"
    )
    return cm
