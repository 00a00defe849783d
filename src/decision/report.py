"""Cost and rate metrics derived from a confusion matrix and a cost model."""

from __future__ import annotations

from dataclasses import dataclass

from src.decision.confusion import Classifier, ConfusionMatrix, LabeledSubset, evaluate_confusion
from src.decision.cost_model import CostModel


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else 0.0


@dataclass(frozen=True)
class EvaluationReport:
    """Read-only view over a ConfusionMatrix priced with a CostModel.

    Every metric is recomputed from the two inputs on access. Rates whose
    denominator is zero evaluate to 0.0.
    """

    confusion: ConfusionMatrix
    cost_model: CostModel

    @property
    def total_cost(self) -> float:
        cm, c = self.confusion, self.cost_model
        return (
            cm.true_negative * c.cost_true_negative
            + cm.false_positive * c.cost_false_positive
            + cm.false_negative * c.cost_false_negative
            + cm.true_positive * c.cost_true_positive
        )

    @property
    def baseline_cost(self) -> float:
        """Cost of intervening on nobody: every positive becomes a false negative."""
        cm, c = self.confusion, self.cost_model
        return cm.negatives * c.cost_true_negative + cm.positives * c.cost_false_negative

    @property
    def net_value_vs_baseline(self) -> float:
        return self.baseline_cost - self.total_cost

    @property
    def intervention_count(self) -> int:
        return self.confusion.false_positive + self.confusion.true_positive

    @property
    def intervention_rate(self) -> float:
        return _ratio(self.intervention_count, self.confusion.total)

    @property
    def accuracy(self) -> float:
        cm = self.confusion
        return _ratio(cm.true_negative + cm.true_positive, cm.total)

    @property
    def true_positive_rate(self) -> float:
        return _ratio(self.confusion.true_positive, self.confusion.positives)

    @property
    def false_positive_rate(self) -> float:
        return _ratio(self.confusion.false_positive, self.confusion.negatives)

    @property
    def precision(self) -> float:
        return _ratio(self.confusion.true_positive, self.intervention_count)

    def to_dict(self) -> dict:
        """Flatten counts, costs and metrics into one dictionary."""
        cm = self.confusion
        return {
            "true_negative": cm.true_negative,
            "false_positive": cm.false_positive,
            "false_negative": cm.false_negative,
            "true_positive": cm.true_positive,
            "n": cm.total,
            "total_cost": self.total_cost,
            "baseline_cost": self.baseline_cost,
            "net_value_vs_baseline": self.net_value_vs_baseline,
            "intervention_count": self.intervention_count,
            "intervention_rate": self.intervention_rate,
            "accuracy": self.accuracy,
            "true_positive_rate": self.true_positive_rate,
            "false_positive_rate": self.false_positive_rate,
            "precision": self.precision,
        }


def evaluate_classifier(
    classifier: Classifier, subset: LabeledSubset, cost_model: CostModel
) -> EvaluationReport:
    """Evaluate ``classifier`` on ``subset`` and price the outcome with ``cost_model``."""
    return EvaluationReport(evaluate_confusion(classifier, subset), cost_model)
