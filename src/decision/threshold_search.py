"""Budget-constrained search for a cost matrix that hits a target intervention rate.

Raising the false-negative cost relative to the false-positive cost makes a
cost-sensitive classifier flag more cases. The search exploits that
monotonic response: it bisects the ratio ``cost_false_negative /
cost_false_positive`` in log space, retraining and re-evaluating at each
step, until the intervention rate on the search partition lies within
``tolerance`` of the target.

Training always uses ``dataset.train``. The intervention rate is measured on
``dataset.validation`` when it is non-empty, otherwise on ``dataset.train``.
The winning classifier is finally scored on ``dataset.test``, which the
search never looks at.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Protocol

from src.decision.confusion import Classifier, ConfusionMatrix, LabeledSubset, evaluate_confusion
from src.decision.cost_model import CostModel
from src.decision.errors import ConvergenceFailure, InvalidParameter
from src.decision.report import EvaluationReport, evaluate_classifier


logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 30
DEFAULT_RATIO_SPAN = 100.0

Trainer = Callable[[LabeledSubset, CostModel], Classifier]


class PartitionedDataset(Protocol):
    train: LabeledSubset
    validation: LabeledSubset
    test: LabeledSubset


@dataclass(frozen=True)
class SearchStep:
    """One retrain-and-evaluate step of the search."""

    iteration: int
    loss_ratio: float
    intervention_rate: float


@dataclass(frozen=True)
class _Candidate:
    step: SearchStep
    cost_model: CostModel
    classifier: Classifier
    report: EvaluationReport


@dataclass(frozen=True)
class BudgetSearchResult:
    """Winning operating point of a budget search.

    Attributes:
        cost_model: Cost matrix the winning classifier was trained with
        report: Evaluation on the partition that drove the search
        test_confusion: Confusion matrix on the held-out test partition
        classifier: The classifier trained with ``cost_model``
        history: Every step taken, in order
    """

    cost_model: CostModel
    report: EvaluationReport
    test_confusion: ConfusionMatrix
    classifier: Classifier
    history: tuple[SearchStep, ...]

    @property
    def iterations(self) -> int:
        return len(self.history)

    @property
    def intervention_rate(self) -> float:
        return self.report.intervention_rate

    @property
    def test_report(self) -> EvaluationReport:
        return EvaluationReport(self.test_confusion, self.cost_model)


def _search_partition(dataset: PartitionedDataset) -> LabeledSubset:
    validation = getattr(dataset, "validation", None)
    if validation is not None and len(validation.labels) > 0:
        return validation
    return dataset.train


def _initial_bracket(base: CostModel) -> tuple[float, float]:
    r0 = base.loss_ratio or 1.0
    return r0 / DEFAULT_RATIO_SPAN, r0 * DEFAULT_RATIO_SPAN


def search_intervention_budget(
    dataset: PartitionedDataset,
    trainer: Trainer,
    target_intervention_fraction: float,
    tolerance: float,
    *,
    initial_cost_model: CostModel | None = None,
    ratio_bounds: tuple[float, float] | None = None,
    max_iterations: int | None = None,
) -> BudgetSearchResult:
    """Find a cost matrix whose classifier flags the target fraction of cases.

    Args:
        dataset: Partitioned dataset with ``train``, ``validation`` and ``test``
        trainer: ``trainer(subset, cost_model)`` returning a fitted classifier
        target_intervention_fraction: Desired share of cases flagged, in [0, 1]
        tolerance: Accepted absolute deviation from the target
        initial_cost_model: Supplies the fixed false-positive cost and the
            centre of the default ratio bracket (defaults to unit costs)
        ratio_bounds: ``(low, high)`` loss-ratio bracket; defaults to two
            orders of magnitude either side of the initial ratio
        max_iterations: Maximum number of retrain-and-evaluate steps;
            ``DEFAULT_MAX_ITERATIONS`` when omitted

    Returns:
        BudgetSearchResult for the first step within tolerance

    Raises:
        InvalidParameter: On out-of-range arguments or an empty search partition
        ConvergenceFailure: If the target is not bracketed, the response is not
            monotonic, or ``max_iterations`` steps pass without meeting tolerance
    """
    target = float(target_intervention_fraction)
    if not 0.0 <= target <= 1.0:
        raise InvalidParameter(f"target_intervention_fraction must be in [0, 1], got {target}")
    if not tolerance >= 0:
        raise InvalidParameter(f"tolerance must be non-negative, got {tolerance}")
    if max_iterations is None:
        max_iterations = DEFAULT_MAX_ITERATIONS
    if max_iterations < 1:
        raise InvalidParameter(f"max_iterations must be at least 1, got {max_iterations}")

    search_subset = _search_partition(dataset)
    n = len(search_subset.labels)
    if n == 0:
        raise InvalidParameter("search partition is empty")

    base = (initial_cost_model or CostModel()).normalized()
    if base.cost_false_positive == 0:
        raise InvalidParameter("initial cost model must have a positive cost_false_positive")
    lo, hi = (float(b) for b in (ratio_bounds or _initial_bracket(base)))
    if not 0 < lo < hi or not math.isfinite(hi):
        raise InvalidParameter(f"ratio_bounds must satisfy 0 < low < high, got ({lo}, {hi})")

    history: list[SearchStep] = []

    def fail(message: str) -> ConvergenceFailure:
        return ConvergenceFailure(
            message, target=target, tolerance=tolerance, history=tuple(history)
        )

    def evaluate_at(ratio: float) -> _Candidate:
        if len(history) >= max_iterations:
            raise fail(
                f"No cost ratio within {tolerance} of target {target:.4f} "
                f"after {max_iterations} iterations"
            )
        cost_model = base.with_loss_ratio(ratio)
        classifier = trainer(dataset.train, cost_model)
        report = evaluate_classifier(classifier, search_subset, cost_model)
        step = SearchStep(
            iteration=len(history) + 1,
            loss_ratio=ratio,
            intervention_rate=report.intervention_rate,
        )
        history.append(step)
        logger.debug(
            f"  Iteration {step.iteration}: FN/FP ratio={ratio:.4g}, "
            f"intervention rate={step.intervention_rate:.4f}"
        )
        return _Candidate(step, cost_model, classifier, report)

    def within_tolerance(candidate: _Candidate) -> bool:
        return abs(candidate.step.intervention_rate - target) <= tolerance

    def finish(candidate: _Candidate) -> BudgetSearchResult:
        test_confusion = evaluate_confusion(candidate.classifier, dataset.test)
        logger.info(
            f"Budget search converged in {len(history)} iterations: "
            f"FN/FP ratio={candidate.step.loss_ratio:.4g}, "
            f"intervention rate={candidate.step.intervention_rate:.4f} (target {target:.4f})"
        )
        return BudgetSearchResult(
            cost_model=candidate.cost_model,
            report=candidate.report,
            test_confusion=test_confusion,
            classifier=candidate.classifier,
            history=tuple(history),
        )

    logger.info(
        f"Searching FN/FP cost ratio in [{lo:.4g}, {hi:.4g}] for intervention rate "
        f"{target:.4f} +/- {tolerance} over {n} examples"
    )

    low = evaluate_at(lo)
    if within_tolerance(low):
        return finish(low)
    high = evaluate_at(hi)
    if within_tolerance(high):
        return finish(high)

    if not low.step.intervention_rate <= target <= high.step.intervention_rate:
        raise fail(
            f"Target {target:.4f} is not bracketed: rate is "
            f"{low.step.intervention_rate:.4f} at ratio {lo:.4g} and "
            f"{high.step.intervention_rate:.4f} at ratio {hi:.4g}"
        )

    while True:
        ratio = math.sqrt(low.step.loss_ratio * high.step.loss_ratio)
        mid = evaluate_at(ratio)
        if within_tolerance(mid):
            return finish(mid)

        rate = mid.step.intervention_rate
        if rate < low.step.intervention_rate or rate > high.step.intervention_rate:
            raise fail(
                f"Intervention rate is not monotonic in the cost ratio: "
                f"{rate:.4f} at ratio {ratio:.4g} lies outside "
                f"[{low.step.intervention_rate:.4f}, {high.step.intervention_rate:.4f}]"
            )
        if rate < target:
            low = mid
        else:
            high = mid
