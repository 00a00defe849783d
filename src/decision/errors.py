"""Exception hierarchy for cost-sensitive decision evaluation."""

from __future__ import annotations

from typing import Any


class CostSensitiveError(Exception):
    """Base class for all decision-layer errors."""


class InvalidParameter(CostSensitiveError, ValueError):
    """A cost, rate, fraction or label input is outside its valid domain."""


class UntrainedModel(CostSensitiveError, RuntimeError):
    """A classifier was asked for predictions before it was fitted."""


class ConvergenceFailure(CostSensitiveError, RuntimeError):
    """The budget search could not reach the target intervention rate.

    Attributes:
        target: Requested intervention fraction
        tolerance: Allowed absolute deviation from the target
        history: Every evaluated search step, in order
        best_step: The step whose rate came closest to the target (or None)
    """

    def __init__(
        self,
        message: str,
        *,
        target: float,
        tolerance: float,
        history: tuple[Any, ...] = (),
    ) -> None:
        super().__init__(message)
        self.target = target
        self.tolerance = tolerance
        self.history = tuple(history)
        self.best_step = (
            min(self.history, key=lambda s: abs(s.intervention_rate - target))
            if self.history
            else None
        )
