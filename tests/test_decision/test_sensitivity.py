"""Tests for src.decision.sensitivity: unit-cost sensitivity tables."""

import pytest

from src.decision import build_raw_cost_model, cost_sensitivity_analysis, evaluate_classifier
from src.decision.sensitivity import SENSITIVITY_COLUMNS
from src.prediction import make_trainer


class TestCostSensitivityAnalysis:
    def test_one_row_per_valid_combination(self, risk_dataset, risk_trainer):
        table = cost_sensitivity_analysis(
            risk_dataset,
            risk_trainer,
            intervention_costs=[800, 1200],
            outcome_costs=[35000],
            efficacy_rates=[0.5, 0.75, 0.9],
        )

        assert list(table.columns) == SENSITIVITY_COLUMNS
        assert len(table) == 6
        assert (table["cost_false_negative"] >= 0).all()

    def test_invalid_combinations_skipped(self, risk_dataset, risk_trainer):
        table = cost_sensitivity_analysis(
            risk_dataset,
            risk_trainer,
            intervention_costs=[1200, 50000],
            outcome_costs=[35000],
            efficacy_rates=[0.75],
        )

        assert len(table) == 1
        assert table.loc[0, "intervention_cost"] == 1200

    def test_costs_priced_in_currency_on_test_partition(self, risk_dataset, risk_trainer):
        table = cost_sensitivity_analysis(
            risk_dataset, risk_trainer, [1200], [35000], [0.75]
        )
        row = table.iloc[0]

        raw = build_raw_cost_model(1200, 35000, 0.75)
        classifier = risk_trainer(risk_dataset.train, raw.normalized())
        report = evaluate_classifier(classifier, risk_dataset.test, raw)

        assert row["total_cost"] == pytest.approx(report.total_cost)
        assert row["net_value_vs_baseline"] == pytest.approx(report.net_value_vs_baseline)
        assert row["loss_ratio"] == pytest.approx(7550 / 1200)

    def test_higher_efficacy_loss_flags_fewer(self, risk_dataset, risk_trainer):
        """A treated positive keeping more of the outcome cost lowers the FN penalty."""
        table = cost_sensitivity_analysis(
            risk_dataset, risk_trainer, [1200], [35000], [0.2, 0.5, 0.8]
        )
        rates = table.sort_values("efficacy_rate")["intervention_rate"].tolist()
        assert rates == sorted(rates, reverse=True)

    def test_with_decision_tree(self, synthetic_dataset):
        table = cost_sensitivity_analysis(
            synthetic_dataset,
            make_trainer("decision_tree", min_samples_leaf=20),
            [1200],
            [35000],
            [0.75],
        )

        assert len(table) == 1
        assert 0 <= table.loc[0, "intervention_rate"] <= 1
