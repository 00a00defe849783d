"""Sensitivity of the chosen operating point to the assumed unit costs."""

from __future__ import annotations

import itertools
import logging
from typing import Iterable

import pandas as pd

from src.decision.cost_model import build_cost_model, build_raw_cost_model
from src.decision.errors import InvalidParameter
from src.decision.report import evaluate_classifier
from src.decision.threshold_search import PartitionedDataset, Trainer


logger = logging.getLogger(__name__)

SENSITIVITY_COLUMNS = [
    "intervention_cost",
    "outcome_cost",
    "efficacy_rate",
    "cost_false_negative",
    "loss_ratio",
    "intervention_count",
    "intervention_rate",
    "total_cost",
    "baseline_cost",
    "net_value_vs_baseline",
    "accuracy",
    "true_positive_rate",
    "false_positive_rate",
]


def cost_sensitivity_analysis(
    dataset: PartitionedDataset,
    trainer: Trainer,
    intervention_costs: Iterable[float],
    outcome_costs: Iterable[float],
    efficacy_rates: Iterable[float],
) -> pd.DataFrame:
    """Retrain and re-price the classifier over a grid of unit-cost assumptions.

    For each (intervention_cost, outcome_cost, efficacy_rate) combination the
    normalized cost model is built and used to train on ``dataset.train``.
    The test partition is then priced with the matching raw (monetary) cost
    model, so ``total_cost`` and ``net_value_vs_baseline`` are in currency
    units. Combinations for which no valid loss matrix exists are skipped.

    Returns:
        DataFrame with one row per evaluated combination and the columns in
        ``SENSITIVITY_COLUMNS``
    """
    rows = []
    grid = itertools.product(intervention_costs, outcome_costs, efficacy_rates)
    for intervention_cost, outcome_cost, efficacy_rate in grid:
        try:
            cost_model = build_cost_model(intervention_cost, outcome_cost, efficacy_rate)
            loss_ratio = cost_model.loss_ratio
        except InvalidParameter as e:
            logger.warning(
                f"Skipping intervention={intervention_cost}, outcome={outcome_cost}, "
                f"efficacy={efficacy_rate}: {e}"
            )
            continue

        classifier = trainer(dataset.train, cost_model)
        raw_model = build_raw_cost_model(intervention_cost, outcome_cost, efficacy_rate)
        report = evaluate_classifier(classifier, dataset.test, raw_model)

        logger.info(
            f"  intervention={intervention_cost}, outcome={outcome_cost}, "
            f"efficacy={efficacy_rate}: rate={report.intervention_rate:.4f}, "
            f"net value={report.net_value_vs_baseline:,.0f}"
        )
        rows.append({
            "intervention_cost": float(intervention_cost),
            "outcome_cost": float(outcome_cost),
            "efficacy_rate": float(efficacy_rate),
            "cost_false_negative": cost_model.cost_false_negative,
            "loss_ratio": loss_ratio,
            "intervention_count": report.intervention_count,
            "intervention_rate": report.intervention_rate,
            "total_cost": report.total_cost,
            "baseline_cost": report.baseline_cost,
            "net_value_vs_baseline": report.net_value_vs_baseline,
            "accuracy": report.accuracy,
            "true_positive_rate": report.true_positive_rate,
            "false_positive_rate": report.false_positive_rate,
        })

    return pd.DataFrame(rows, columns=SENSITIVITY_COLUMNS)
