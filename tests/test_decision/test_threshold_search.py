"""Tests for src.decision.threshold_search: budget-constrained cost ratio search."""

import numpy as np
import pandas as pd
import pytest

from src.decision import (
    ConvergenceFailure,
    CostModel,
    InvalidParameter,
    build_cost_model,
    evaluate_classifier,
    evaluate_confusion,
    search_intervention_budget,
)
from src.decision.threshold_search import DEFAULT_MAX_ITERATIONS
from src.prediction import make_trainer, partition_dataset
from src.prediction.split import Dataset, DatasetSubset

from tests.conftest import RiskThresholdClassifier


class TestSearchConverges:
    def test_five_percent_budget(self, risk_dataset, risk_trainer):
        """Target 5% +/- 0.5% is reached within the iteration cap."""
        result = search_intervention_budget(risk_dataset, risk_trainer, 0.05, 0.005)

        assert 0.045 <= result.intervention_rate <= 0.055
        assert result.iterations <= 30
        assert result.report.confusion.total == len(risk_dataset.train)

    def test_test_partition_scored_separately(self, risk_dataset, risk_trainer):
        result = search_intervention_budget(risk_dataset, risk_trainer, 0.2, 0.01)

        assert result.test_confusion.total == len(risk_dataset.test)
        assert result.test_confusion == evaluate_confusion(result.classifier, risk_dataset.test)
        assert result.test_report.cost_model == result.cost_model

    def test_winning_cost_model_keeps_false_positive_cost(self, risk_dataset, risk_trainer):
        initial = build_cost_model(1200, 35000, 0.75)
        result = search_intervention_budget(
            risk_dataset, risk_trainer, 0.1, 0.01, initial_cost_model=initial
        )

        assert result.cost_model.cost_false_positive == 1200
        assert result.cost_model.is_normalized
        assert result.cost_model.loss_ratio == pytest.approx(result.history[-1].loss_ratio)

    def test_history_is_ordered(self, risk_dataset, risk_trainer):
        result = search_intervention_budget(risk_dataset, risk_trainer, 0.3, 0.002)

        assert [s.iteration for s in result.history] == list(range(1, result.iterations + 1))
        assert abs(result.history[-1].intervention_rate - 0.3) <= 0.002

    def test_endpoint_within_tolerance_returns_immediately(self, risk_dataset, risk_trainer):
        low_model = CostModel().with_loss_ratio(0.01)
        low_rate = evaluate_classifier(
            risk_trainer(risk_dataset.train, low_model), risk_dataset.train, low_model
        ).intervention_rate

        result = search_intervention_budget(
            risk_dataset, risk_trainer, low_rate, 0.001, ratio_bounds=(0.01, 100.0)
        )
        assert result.iterations == 1
        assert result.intervention_rate == pytest.approx(low_rate)

    def test_validation_partition_drives_search(self, risk_trainer):
        rng = np.random.default_rng(5)
        features = pd.DataFrame({"risk": rng.uniform(size=900)})
        labels = pd.Series((rng.uniform(size=900) < features["risk"] * 0.5).astype(int))
        dataset = partition_dataset(
            features, labels, test_size=0.2, validation_size=0.2, rng=np.random.default_rng(1)
        )

        result = search_intervention_budget(dataset, risk_trainer, 0.1, 0.01)

        assert result.report.confusion.total == len(dataset.validation)
        assert result.test_confusion.total == len(dataset.test)


class TestMonotonicity:
    def test_raising_false_negative_cost_never_reduces_interventions(self, risk_dataset, risk_trainer):
        counts = []
        for fn_cost in [100, 500, 1200, 5000, 20000, 100000]:
            costs = CostModel(cost_false_positive=1200, cost_false_negative=fn_cost)
            classifier = risk_trainer(risk_dataset.train, costs)
            cm = evaluate_confusion(classifier, risk_dataset.test)
            counts.append(cm.false_positive + cm.true_positive)

        assert counts == sorted(counts)

    def test_decision_tree_flags_more_at_extreme_ratio(self, synthetic_dataset):
        trainer = make_trainer("decision_tree", min_samples_leaf=20)
        low = trainer(synthetic_dataset.train, CostModel().with_loss_ratio(0.01))
        high = trainer(synthetic_dataset.train, CostModel().with_loss_ratio(100.0))

        cm_low = evaluate_confusion(low, synthetic_dataset.test)
        cm_high = evaluate_confusion(high, synthetic_dataset.test)

        assert (cm_high.false_positive + cm_high.true_positive) >= (
            cm_low.false_positive + cm_low.true_positive
        )


class TestSearchFailures:
    def test_iteration_cap_surfaces_failure(self, risk_dataset, risk_trainer):
        with pytest.raises(ConvergenceFailure) as exc_info:
            search_intervention_budget(
                risk_dataset, risk_trainer, 0.1234567, 0.0, max_iterations=4
            )

        err = exc_info.value
        assert len(err.history) == 4
        assert err.best_step in err.history
        assert err.target == pytest.approx(0.1234567)

    def test_default_iteration_cap(self, risk_dataset, risk_trainer):
        """Omitting max_iterations caps the search at DEFAULT_MAX_ITERATIONS steps."""
        for max_iterations in [None, DEFAULT_MAX_ITERATIONS]:
            expected = f"after {DEFAULT_MAX_ITERATIONS} iterations"
            with pytest.raises(ConvergenceFailure, match=expected) as exc_info:
                search_intervention_budget(
                    risk_dataset, risk_trainer, 0.1234567, 0.0, max_iterations=max_iterations
                )
            assert len(exc_info.value.history) == DEFAULT_MAX_ITERATIONS

    def test_unbracketed_target(self, risk_dataset, risk_trainer):
        with pytest.raises(ConvergenceFailure, match="not bracketed"):
            search_intervention_budget(
                risk_dataset, risk_trainer, 0.9, 0.01, ratio_bounds=(0.01, 0.02)
            )

    def test_non_monotonic_response(self, risk_dataset):
        def erratic_trainer(subset, cost_model):
            ratio = cost_model.loss_ratio
            if ratio < 0.5:
                share = 0.0
            elif ratio > 5:
                share = 0.5
            else:
                share = 0.9
            return RiskThresholdClassifier(1.0 - share)

        with pytest.raises(ConvergenceFailure, match="not monotonic"):
            search_intervention_budget(
                risk_dataset, erratic_trainer, 0.3, 0.01, ratio_bounds=(0.1, 10.0)
            )

    def test_decision_tree_five_percent_budget(self, synthetic_dataset):
        """A real tree either meets the 5% budget or reports a ConvergenceFailure."""
        trainer = make_trainer("decision_tree", min_samples_leaf=10)
        try:
            result = search_intervention_budget(synthetic_dataset, trainer, 0.05, 0.005)
        except ConvergenceFailure as e:
            assert len(e.history) <= 30
        else:
            assert 0.045 <= result.intervention_rate <= 0.055


class TestSearchArguments:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"target_intervention_fraction": 1.5, "tolerance": 0.01},
            {"target_intervention_fraction": -0.1, "tolerance": 0.01},
            {"target_intervention_fraction": 0.1, "tolerance": -0.01},
            {"target_intervention_fraction": 0.1, "tolerance": 0.01, "max_iterations": 0},
            {"target_intervention_fraction": 0.1, "tolerance": 0.01, "ratio_bounds": (5.0, 1.0)},
            {"target_intervention_fraction": 0.1, "tolerance": 0.01, "ratio_bounds": (0.0, 1.0)},
            {
                "target_intervention_fraction": 0.1,
                "tolerance": 0.01,
                "initial_cost_model": CostModel(cost_false_positive=0),
            },
        ],
    )
    def test_invalid_arguments(self, risk_dataset, risk_trainer, kwargs):
        with pytest.raises(InvalidParameter):
            search_intervention_budget(risk_dataset, risk_trainer, **kwargs)

    def test_empty_search_partition(self, risk_dataset, risk_trainer):
        empty = DatasetSubset(
            risk_dataset.train.features.iloc[:0], risk_dataset.train.labels.iloc[:0]
        )
        dataset = Dataset(
            train=empty,
            validation=empty,
            test=risk_dataset.test,
            test_size=0.3,
            validation_size=0.0,
        )
        with pytest.raises(InvalidParameter, match="empty"):
            search_intervention_budget(dataset, risk_trainer, 0.1, 0.01)
