#!/usr/bin/env python3
"""Model Comparison Example: Compare tree variants at the same budget.

This example trains a decision tree, a random forest and XGBoost with the
same intervention budget and compares what each costs on the test partition.

Usage:
    python docs/examples/02_model_comparison.py
"""

import numpy as np
import pandas as pd

from config.settings import Settings
from src.decision import ConvergenceFailure, build_cost_model, build_raw_cost_model
from src.decision import search_intervention_budget
from src.ingestion import load_tabular_dataset
from src.prediction import evaluate_model, make_trainer, partition_dataset


def main():
    settings = Settings()

    features, labels = load_tabular_dataset(
        settings.dataset_path,
        outcome_column=settings.outcome_column,
        positive_label=settings.positive_label,
        drop_columns=settings.drop_columns,
    )
    dataset = partition_dataset(
        features,
        labels,
        test_size=settings.test_size,
        validation_size=settings.validation_size,
        rng=np.random.default_rng(settings.random_seed),
    )
    costs = (settings.intervention_cost, settings.outcome_cost, settings.efficacy_rate)
    initial = build_cost_model(*costs)
    raw = build_raw_cost_model(*costs)

    rows = []
    for model_type in ["decision_tree", "random_forest", "xgboost"]:
        params = settings.model_copy(update={"model_type": model_type}).complexity_params()
        try:
            result = search_intervention_budget(
                dataset,
                make_trainer(model_type, **params),
                settings.target_intervention_fraction,
                settings.tolerance,
                initial_cost_model=initial,
            )
        except ConvergenceFailure as e:
            print(f"{model_type}: {e}")
            continue

        metrics = evaluate_model(result.classifier, dataset.test, raw)
        rows.append({
            "model": model_type,
            "loss_ratio": result.cost_model.loss_ratio,
            "iterations": result.iterations,
            "intervention_rate": metrics["intervention_rate"],
            "true_positive_rate": metrics["true_positive_rate"],
            "total_cost": metrics["total_cost"],
            "net_value": metrics["net_value_vs_baseline"],
            "auroc": metrics["auroc"],
        })

    comparison = pd.DataFrame(rows)
    print(comparison.to_string(index=False))
    return comparison


if __name__ == "__main__":
    main()
