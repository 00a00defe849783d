"""Cost-sensitive tree model training and persistence.

Supports a single decision tree, a random forest (bagged trees) and XGBoost
(boosted trees). Each is trained with a CostModel: the trees and forests
receive the off-diagonal costs as class weights, XGBoost as
``scale_pos_weight``. The fitted estimator is wrapped in a
CostSensitiveClassifier, which exposes the uniform ``predict_label``
capability used by the evaluation and search code.
"""

from __future__ import annotations

import json
import logging
import pickle
from dataclasses import asdict
from pathlib import Path
from typing import Any, Callable, Literal, Mapping, Sequence, Union

import numpy as np
import pandas as pd
from sklearn.ensemble import RandomForestClassifier
from sklearn.exceptions import NotFittedError
from sklearn.tree import DecisionTreeClassifier
from sklearn.utils.validation import check_is_fitted
from xgboost import XGBClassifier

from src.decision.cost_model import CostModel
from src.decision.errors import UntrainedModel
from src.prediction.split import DatasetSubset


logger = logging.getLogger(__name__)

ModelType = Literal["decision_tree", "random_forest", "xgboost"]
MODEL_TYPES = ("decision_tree", "random_forest", "xgboost")

Estimator = Union[DecisionTreeClassifier, RandomForestClassifier, XGBClassifier]


class CostSensitiveClassifier:
    """Uniform ``predict_label`` adapter over a tree-based estimator.

    Args:
        estimator: Unfitted or fitted scikit-learn / XGBoost classifier
        cost_model: Cost matrix the estimator is (to be) trained with
        model_type: One of ``MODEL_TYPES``
        feature_names: Column order expected by the estimator; taken from the
            training frame on ``fit`` when not given
        fill_values: Per-column values that replace missing entries before
            prediction; the training medians are computed on ``fit``
    """

    def __init__(
        self,
        estimator: Estimator,
        cost_model: CostModel,
        model_type: ModelType,
        feature_names: Sequence[str] | None = None,
        fill_values: Mapping[str, float] | None = None,
    ):
        self.estimator = estimator
        self.cost_model = cost_model
        self.model_type = model_type
        self.feature_names = list(feature_names) if feature_names is not None else None
        self.fill_values = dict(fill_values) if fill_values is not None else None

    def __repr__(self) -> str:
        state = "fitted" if self.is_fitted else "unfitted"
        return (
            f"CostSensitiveClassifier({self.model_type}, {state}, "
            f"FN/FP={self.cost_model.cost_false_negative}/{self.cost_model.cost_false_positive})"
        )

    @property
    def is_fitted(self) -> bool:
        try:
            check_is_fitted(self.estimator)
        except NotFittedError:
            return False
        return self.feature_names is not None

    def fit(self, X: pd.DataFrame, y: Union[pd.Series, np.ndarray]) -> "CostSensitiveClassifier":
        weights = self.cost_model.normalized().class_weights()
        if self.model_type == "xgboost":
            self.estimator.set_params(scale_pos_weight=weights[1])
        else:
            self.estimator.set_params(class_weight=weights)

        self.feature_names = list(X.columns)
        # Impute from training rows only
        self.fill_values = {
            col: 0.0 if pd.isna(median) else float(median)
            for col, median in X.median(numeric_only=True).items()
        }
        self.estimator.fit(self._align(X), np.asarray(y).astype(int))
        return self

    def _check_fitted(self) -> None:
        if not self.is_fitted:
            raise UntrainedModel(
                f"{self.model_type} classifier must be fitted before predicting"
            )

    def _align(self, features: pd.DataFrame) -> pd.DataFrame:
        missing = [c for c in self.feature_names if c not in features.columns]
        if missing:
            raise ValueError(f"Missing feature columns: {missing[:5]}")
        aligned = features[self.feature_names]
        if self.fill_values:
            aligned = aligned.fillna(self.fill_values)
        return aligned

    def predict_labels(self, features: pd.DataFrame) -> np.ndarray:
        """Predict a 0/1 label for every row of ``features``."""
        self._check_fitted()
        if len(features) == 0:
            return np.zeros(0, dtype=int)
        return np.asarray(self.estimator.predict(self._align(features))).astype(int)

    def predict_label(self, feature_vector: Union[Mapping[str, Any], pd.Series, Sequence[float]]) -> int:
        """Predict the label of a single example.

        ``feature_vector`` may be a mapping or Series keyed by feature name, or
        a plain sequence in training column order.
        """
        self._check_fitted()
        if isinstance(feature_vector, (Mapping, pd.Series)):
            row = pd.DataFrame([dict(feature_vector)])
        else:
            row = pd.DataFrame([list(feature_vector)], columns=self.feature_names)
        return int(self.predict_labels(row)[0])

    def predict_proba(self, features: pd.DataFrame) -> np.ndarray:
        """Positive-class probability for every row of ``features``."""
        self._check_fitted()
        return self.estimator.predict_proba(self._align(features))[:, 1]


def build_estimator(model_type: ModelType, **kwargs) -> Estimator:
    """Construct an unfitted estimator with the given complexity parameters.

    Args:
        model_type: "decision_tree", "random_forest" or "xgboost"
        **kwargs: Complexity parameters. Trees accept ``ccp_alpha``,
            ``min_samples_leaf`` and ``max_depth``; forests additionally
            ``n_estimators``; XGBoost ``n_estimators``, ``max_depth``,
            ``learning_rate`` and ``min_child_weight``. Anything else is passed
            to the estimator constructor.
    """
    if model_type == "decision_tree":
        return DecisionTreeClassifier(
            ccp_alpha=kwargs.pop("ccp_alpha", 0.0),
            min_samples_leaf=kwargs.pop("min_samples_leaf", 1),
            max_depth=kwargs.pop("max_depth", None),
            random_state=kwargs.pop("random_state", 42),
            **kwargs,
        )
    elif model_type == "random_forest":
        return RandomForestClassifier(
            n_estimators=kwargs.pop("n_estimators", 200),
            ccp_alpha=kwargs.pop("ccp_alpha", 0.0),
            min_samples_leaf=kwargs.pop("min_samples_leaf", 1),
            max_depth=kwargs.pop("max_depth", None),
            random_state=kwargs.pop("random_state", 42),
            **kwargs,
        )
    elif model_type == "xgboost":
        kwargs.pop("ccp_alpha", None)
        min_samples_leaf = kwargs.pop("min_samples_leaf", None)
        return XGBClassifier(
            n_estimators=kwargs.pop("n_estimators", 100),
            max_depth=kwargs.pop("max_depth", None) or 6,
            learning_rate=kwargs.pop("learning_rate", 0.1),
            min_child_weight=kwargs.pop("min_child_weight", min_samples_leaf or 1),
            random_state=kwargs.pop("random_state", 42),
            eval_metric="logloss",
            **kwargs,
        )
    else:
        raise ValueError(f"Unknown model_type: {model_type}")


def train_model(
    X_train: pd.DataFrame,
    y_train: Union[pd.Series, np.ndarray],
    cost_model: CostModel,
    model_type: ModelType = "decision_tree",
    **kwargs,
) -> CostSensitiveClassifier:
    """Train a cost-sensitive classifier.

    Args:
        X_train: Training features (n_samples, n_features)
        y_train: Binary training labels (n_samples,)
        cost_model: Cost matrix biasing the fit toward cheaper errors
        model_type: Type of model to train
        **kwargs: Complexity parameters passed to ``build_estimator``

    Returns:
        Fitted CostSensitiveClassifier
    """
    estimator = build_estimator(model_type, **kwargs)
    classifier = CostSensitiveClassifier(estimator, cost_model, model_type)
    return classifier.fit(X_train, y_train)


def make_trainer(
    model_type: ModelType = "decision_tree", **kwargs
) -> Callable[[DatasetSubset, CostModel], CostSensitiveClassifier]:
    """Bind a model type and complexity parameters into a ``trainer(subset, cost_model)``."""
    if model_type not in MODEL_TYPES:
        raise ValueError(f"Unknown model_type: {model_type}")

    def trainer(subset: DatasetSubset, cost_model: CostModel) -> CostSensitiveClassifier:
        return train_model(
            subset.features, subset.labels, cost_model, model_type=model_type, **dict(kwargs)
        )

    return trainer


def save_model(classifier: CostSensitiveClassifier, path: Path) -> None:
    """Save a trained classifier to disk.

    XGBoost estimators are saved to JSON for portability, with the cost model
    and feature order in a ``.meta.json`` sidecar. scikit-learn classifiers
    are pickled whole.

    Args:
        classifier: Trained classifier to save
        path: Path to save the model
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if isinstance(classifier.estimator, XGBClassifier):
        classifier.estimator.save_model(str(path))
        meta = {
            "model_type": classifier.model_type,
            "feature_names": classifier.feature_names,
            "fill_values": classifier.fill_values,
            "cost_model": asdict(classifier.cost_model),
        }
        _meta_path(path).write_text(json.dumps(meta, indent=2))
    else:
        with open(path, "wb") as f:
            pickle.dump(classifier, f)
    logger.debug(f"Saved {classifier.model_type} classifier to {path}")


def load_model(path: Path) -> CostSensitiveClassifier:
    """Load a trained classifier from disk.

    Determines the format from the file extension: .json for XGBoost,
    anything else for pickled scikit-learn classifiers.

    Args:
        path: Path to the saved model

    Returns:
        Loaded CostSensitiveClassifier
    """
    path = Path(path)

    if path.suffix == ".json":
        meta = json.loads(_meta_path(path).read_text())
        estimator = XGBClassifier()
        estimator.load_model(str(path))
        return CostSensitiveClassifier(
            estimator,
            CostModel(**meta["cost_model"]),
            meta["model_type"],
            feature_names=meta["feature_names"],
            fill_values=meta.get("fill_values"),
        )
    else:
        with open(path, "rb") as f:
            return pickle.load(f)


def _meta_path(path: Path) -> Path:
    return path.with_suffix(".meta.json")
