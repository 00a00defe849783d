"""Cost-sensitive decision evaluation for intervention planning.

This module turns real-world unit costs into a loss matrix, evaluates a
classifier's held-out outcomes against it, and searches for the cost ratio
that flags a target share of the population.

Cost Model:
- Unit costs (intervention, outcome, efficacy) to a 2x2 loss matrix
- Zero-diagonal normalization for training

Evaluation:
- Confusion-matrix tabulation over any object exposing ``predict_label``
- Total cost, intervention rate, accuracy, TPR/FPR, net value vs. no intervention

Search:
- Bounded log-space bisection over the FN/FP cost ratio
- Sensitivity tables over unit-cost grids
"""

from src.decision.errors import (
    CostSensitiveError,
    InvalidParameter,
    UntrainedModel,
    ConvergenceFailure,
)
from src.decision.cost_model import (
    CostModel,
    build_cost_model,
    build_raw_cost_model,
)
from src.decision.confusion import (
    Classifier,
    ConfusionMatrix,
    evaluate_confusion,
)
from src.decision.report import (
    EvaluationReport,
    evaluate_classifier,
)
from src.decision.threshold_search import (
    BudgetSearchResult,
    SearchStep,
    search_intervention_budget,
)
from src.decision.sensitivity import cost_sensitivity_analysis

__all__ = [
    # Errors
    "CostSensitiveError",
    "InvalidParameter",
    "UntrainedModel",
    "ConvergenceFailure",
    # Cost model
    "CostModel",
    "build_cost_model",
    "build_raw_cost_model",
    # Evaluation
    "Classifier",
    "ConfusionMatrix",
    "evaluate_confusion",
    "EvaluationReport",
    "evaluate_classifier",
    # Search
    "BudgetSearchResult",
    "SearchStep",
    "search_intervention_budget",
    "cost_sensitivity_analysis",
]
