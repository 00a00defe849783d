"""Asymmetric cost (loss) matrices for cost-sensitive classification.

A CostModel holds the monetary cost of each confusion-matrix quadrant.
Models handed to a trainer are normalized so the diagonal is zero: costs that
are incurred whatever the prediction cannot change the decision, so only the
off-diagonal penalties are kept.

Example:
    >>> model = build_cost_model(1200, 35000, 0.75)
    >>> model.cost_false_positive, model.cost_false_negative
    (1200.0, 7550.0)
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, fields, replace

import numpy as np

from src.decision.errors import InvalidParameter


logger = logging.getLogger(__name__)


def _check_non_negative(name: str, value: float) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidParameter(f"{name} must be a number, got {value!r}") from e
    if not math.isfinite(value) or value < 0:
        raise InvalidParameter(f"{name} must be a finite non-negative number, got {value}")
    return value


@dataclass(frozen=True)
class CostModel:
    """2x2 cost matrix indexed by (true label, predicted label).

    All four entries are non-negative monetary amounts. The matrix is
    immutable; use ``with_loss_ratio`` or ``normalized`` to derive a new one.
    """

    cost_true_negative: float = 0.0
    cost_true_positive: float = 0.0
    cost_false_positive: float = 1.0
    cost_false_negative: float = 1.0

    def __post_init__(self) -> None:
        for f in fields(self):
            object.__setattr__(self, f.name, _check_non_negative(f.name, getattr(self, f.name)))

    @classmethod
    def build(
        cls, intervention_cost: float, outcome_cost: float, efficacy_rate: float
    ) -> "CostModel":
        """Alias for :func:`build_cost_model`."""
        return build_cost_model(intervention_cost, outcome_cost, efficacy_rate)

    @property
    def is_normalized(self) -> bool:
        return self.cost_true_negative == 0 and self.cost_true_positive == 0

    @property
    def loss_ratio(self) -> float:
        """Penalty of a missed positive relative to an unnecessary intervention."""
        if self.cost_false_positive == 0:
            raise InvalidParameter("loss ratio is undefined when cost_false_positive is 0")
        return self.cost_false_negative / self.cost_false_positive

    def with_loss_ratio(self, ratio: float) -> "CostModel":
        """Return a new model with ``cost_false_negative = ratio * cost_false_positive``."""
        ratio = _check_non_negative("ratio", ratio)
        if self.cost_false_positive == 0:
            raise InvalidParameter("cannot rescale a cost model whose cost_false_positive is 0")
        return replace(self, cost_false_negative=ratio * self.cost_false_positive)

    def normalized(self) -> "CostModel":
        """Subtract each row's diagonal entry from that row.

        Raises:
            InvalidParameter: If an off-diagonal entry is smaller than its
                row's diagonal, i.e. the correct prediction costs more than
                the error.
        """
        return CostModel(
            cost_true_negative=0.0,
            cost_true_positive=0.0,
            cost_false_positive=_row_difference(
                "cost_false_positive", self.cost_false_positive, self.cost_true_negative
            ),
            cost_false_negative=_row_difference(
                "cost_false_negative", self.cost_false_negative, self.cost_true_positive
            ),
        )

    def as_loss_matrix(self) -> np.ndarray:
        """Return the matrix as a 2x2 array; rows are true labels, columns predictions."""
        return np.array(
            [
                [self.cost_true_negative, self.cost_false_positive],
                [self.cost_false_negative, self.cost_true_positive],
            ],
            dtype=float,
        )

    def class_weights(self) -> dict[int, float]:
        """Relative class weights that encode the off-diagonal costs for a trainer.

        Weights are expressed relative to the false-positive cost, so the
        negative class always has weight 1.0.
        """
        if self.cost_false_positive == 0:
            raise InvalidParameter(
                "cost_false_positive must be positive to derive training weights"
            )
        return {0: 1.0, 1: self.loss_ratio}


def _row_difference(name: str, off_diagonal: float, diagonal: float) -> float:
    diff = off_diagonal - diagonal
    if diff < 0:
        raise InvalidParameter(
            f"normalized {name} would be negative ({diff:.4g}); "
            "the correct prediction costs more than the error"
        )
    return diff


def build_raw_cost_model(
    intervention_cost: float, outcome_cost: float, efficacy_rate: float
) -> CostModel:
    """Build the monetary (non-normalized) cost model from unit costs.

    A flagged true positive pays for the intervention and still incurs
    ``efficacy_rate`` of the outcome cost. A missed positive pays the full
    outcome cost. An unnecessary intervention pays only the intervention.

    Args:
        intervention_cost: Cost of one intervention (e.g. an outreach call)
        outcome_cost: Cost of one bad outcome (e.g. a readmission)
        efficacy_rate: Share of the outcome cost a treated positive still incurs

    Returns:
        CostModel with the raw costs on the diagonal

    Raises:
        InvalidParameter: If a cost is negative or the rate is outside [0, 1]
    """
    intervention_cost = _check_non_negative("intervention_cost", intervention_cost)
    outcome_cost = _check_non_negative("outcome_cost", outcome_cost)
    efficacy_rate = _check_non_negative("efficacy_rate", efficacy_rate)
    if efficacy_rate > 1:
        raise InvalidParameter(f"efficacy_rate must be in [0, 1], got {efficacy_rate}")

    return CostModel(
        cost_true_negative=0.0,
        cost_true_positive=intervention_cost + outcome_cost * efficacy_rate,
        cost_false_positive=intervention_cost,
        cost_false_negative=outcome_cost,
    )


def build_cost_model(
    intervention_cost: float, outcome_cost: float, efficacy_rate: float
) -> CostModel:
    """Build the normalized loss matrix a cost-sensitive classifier is trained with.

    Equivalent to ``build_raw_cost_model(...).normalized()``: the true-positive
    cost is subtracted from the positive row, leaving
    ``cost_false_negative = outcome_cost - cost_true_positive_raw`` and a zero
    diagonal.

    Raises:
        InvalidParameter: On invalid inputs, or when the intervention costs more
            than the outcome it prevents (negative false-negative cost).
    """
    model = build_raw_cost_model(intervention_cost, outcome_cost, efficacy_rate).normalized()
    logger.debug(
        f"Cost model for intervention={intervention_cost}, outcome={outcome_cost}, "
        f"efficacy={efficacy_rate}: FP={model.cost_false_positive:.2f}, "
        f"FN={model.cost_false_negative:.2f}"
    )
    return model
