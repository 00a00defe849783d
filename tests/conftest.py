import numpy as np
import pandas as pd
import pytest
from pathlib import Path
from sklearn.datasets import make_classification

from config.settings import Settings
from src.decision.cost_model import CostModel
from src.prediction.split import Dataset, DatasetSubset, partition_dataset


class RiskThresholdClassifier:
    """Flags a case when its ``risk`` column exceeds ``1 / (1 + FN/FP ratio)``.

    The intervention rate is therefore monotonic in the cost ratio, which
    makes the budget search deterministic to test.
    """

    def __init__(self, threshold: float):
        self.threshold = threshold

    def predict_label(self, feature_vector) -> int:
        return int(feature_vector["risk"] > self.threshold)


def risk_threshold_trainer(subset: DatasetSubset, cost_model: CostModel) -> RiskThresholdClassifier:
    return RiskThresholdClassifier(1.0 / (1.0 + cost_model.loss_ratio))


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings with test paths overridden."""
    return Settings(
        dataset_path=tmp_path / "cohort.csv",
        output_dir=tmp_path / "outputs",
    )


@pytest.fixture
def synthetic_features() -> tuple[pd.DataFrame, pd.Series]:
    """600 rows, 12 features, ~20% positive class rate."""
    X, y = make_classification(
        n_samples=600,
        n_features=12,
        n_informative=6,
        n_redundant=2,
        class_sep=1.0,
        weights=[0.8, 0.2],
        random_state=42,
    )
    features = pd.DataFrame(X, columns=[f"feature_{i}" for i in range(12)])
    labels = pd.Series(y, name="readmitted")
    return features, labels


@pytest.fixture
def synthetic_dataset(synthetic_features) -> Dataset:
    """Synthetic features split 70/30 with a fixed random source."""
    features, labels = synthetic_features
    return partition_dataset(features, labels, test_size=0.3, rng=np.random.default_rng(42))


@pytest.fixture
def risk_dataset() -> Dataset:
    """1000 cases with a uniform ``risk`` score; outcomes more likely at high risk."""
    rng = np.random.default_rng(7)
    risk = rng.uniform(0, 1, size=1000)
    features = pd.DataFrame({
        "risk": risk,
        "noise": rng.normal(size=1000),
    })
    labels = pd.Series((rng.uniform(0, 1, size=1000) < 0.4 * risk).astype(int), name="outcome")
    return partition_dataset(features, labels, test_size=0.3, rng=np.random.default_rng(11))


@pytest.fixture
def risk_trainer():
    """Trainer producing RiskThresholdClassifier instances."""
    return risk_threshold_trainer


@pytest.fixture
def cohort_csv(tmp_path: Path) -> Path:
    """CSV cohort with numeric and categorical features and a yes/no outcome."""
    X, y = make_classification(
        n_samples=800,
        n_features=8,
        n_informative=5,
        n_redundant=1,
        class_sep=1.0,
        weights=[0.7, 0.3],
        random_state=3,
    )
    df = pd.DataFrame(X, columns=[f"lab_{i}" for i in range(8)])
    rng = np.random.default_rng(3)
    df["admission_type"] = rng.choice(["EMERGENCY", "ELECTIVE", "URGENT"], size=len(df))
    df["patient_id"] = np.arange(len(df))
    df["readmitted"] = np.where(y == 1, "yes", "no")

    path = tmp_path / "cohort.csv"
    df.to_csv(path, index=False)
    return path
