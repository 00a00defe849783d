"""Prediction module for cost-sensitive intervention planning.

This module provides functions for dataset partitioning, cost-sensitive
model training, evaluation, and reporting for deciding which cases should
receive a costed intervention.

Data Splitting:
- Seeded, stratified train/validation/test partitions
- Injectable numpy random source for reproducibility

Model Training:
- Decision tree, random forest and XGBoost variants
- Cost matrix supplied as class weights / scale_pos_weight
- Uniform predict_label adapter over every variant
- Model save/load with JSON (XGBoost) or pickle (sklearn)

Evaluation:
- Cost, intervention-rate and ranking metrics
- Variable importance extraction
- Markdown report generation
"""

from src.prediction.split import (
    Dataset,
    DatasetSubset,
    partition_dataset,
)
from src.prediction.model import (
    CostSensitiveClassifier,
    build_estimator,
    train_model,
    make_trainer,
    save_model,
    load_model,
)
from src.prediction.evaluate import (
    evaluate_model,
    get_feature_importance,
    generate_evaluation_report,
)

__all__ = [
    # Data splitting
    "Dataset",
    "DatasetSubset",
    "partition_dataset",
    # Model training and persistence
    "CostSensitiveClassifier",
    "build_estimator",
    "train_model",
    "make_trainer",
    "save_model",
    "load_model",
    # Evaluation and reporting
    "evaluate_model",
    "get_feature_importance",
    "generate_evaluation_report",
]
