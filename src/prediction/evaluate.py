"""Model evaluation and reporting for cost-sensitive intervention planning.

Provides held-out evaluation metrics, variable importance extraction, and
markdown report generation for a budget search result.
"""

from pathlib import Path

import numpy as np
import pandas as pd
from sklearn.metrics import roc_auc_score

from src.decision.cost_model import CostModel
from src.decision.errors import UntrainedModel
from src.decision.report import EvaluationReport, evaluate_classifier
from src.decision.threshold_search import BudgetSearchResult
from src.prediction.model import CostSensitiveClassifier
from src.prediction.split import DatasetSubset


def evaluate_model(
    classifier: CostSensitiveClassifier,
    subset: DatasetSubset,
    cost_model: CostModel | None = None,
) -> dict:
    """Evaluate a trained classifier and compute cost and ranking metrics.

    Args:
        classifier: Trained cost-sensitive classifier
        subset: Labeled evaluation subset
        cost_model: Costs used to price the outcomes (defaults to the
            classifier's training cost model)

    Returns:
        Dictionary with the confusion counts, cost and rate metrics from
        ``EvaluationReport.to_dict()`` plus ``auroc`` (NaN when the subset
        contains a single class)
    """
    report = evaluate_classifier(classifier, subset, cost_model or classifier.cost_model)
    metrics = report.to_dict()

    y_true = np.asarray(subset.labels)
    if len(np.unique(y_true)) == 2:
        metrics["auroc"] = float(roc_auc_score(y_true, classifier.predict_proba(subset.features)))
    else:
        metrics["auroc"] = float("nan")

    return metrics


def get_feature_importance(classifier: CostSensitiveClassifier) -> pd.DataFrame:
    """Extract variable importance from a trained tree-based classifier.

    Decision trees and random forests report impurity decrease; XGBoost
    reports its configured importance type (gain by default).

    Args:
        classifier: Trained classifier

    Returns:
        DataFrame with columns [feature, importance], sorted by importance descending
    """
    if not classifier.is_fitted:
        raise UntrainedModel("classifier must be fitted before extracting importance")
    importances = np.asarray(classifier.estimator.feature_importances_, dtype=float)

    importance_df = pd.DataFrame({
        "feature": classifier.feature_names,
        "importance": importances,
    })
    importance_df = importance_df.sort_values("importance", ascending=False).reset_index(drop=True)

    return importance_df


def _confusion_table(cm) -> str:
    return f"""| | Predicted No Intervention | Predicted Intervention |
|---|---|---|
| **Actual Negative** | {cm.true_negative} | {cm.false_positive} |
| **Actual Positive** | {cm.false_negative} | {cm.true_positive} |"""


def generate_evaluation_report(
    result: BudgetSearchResult,
    feature_importance: pd.DataFrame,
    output_path: Path,
    raw_cost_model: CostModel | None = None,
) -> None:
    """Generate a markdown evaluation report for a budget search.

    Creates a report with:
    - The operating-point loss matrix and FN/FP ratio
    - The search history
    - Search-partition and test-partition metrics
    - Test confusion matrix
    - Top-20 most important features

    Args:
        result: Output of ``search_intervention_budget``
        feature_importance: DataFrame from get_feature_importance()
        output_path: Path to write the markdown report
        raw_cost_model: Monetary costs used to price both partitions; the
            normalized search cost model prices them when omitted
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    cost = result.cost_model
    pricing = raw_cost_model or cost
    search = EvaluationReport(result.report.confusion, pricing)
    test = EvaluationReport(result.test_confusion, pricing)
    units = "monetary unit costs" if raw_cost_model is not None else "normalized search loss matrix"

    history_rows = "\n".join(
        f"| {s.iteration} | {s.loss_ratio:.4g} | {s.intervention_rate:.4f} |"
        for s in result.history
    )

    top_features = feature_importance.head(20)
    feature_rows = "\n".join(
        f"| {i+1} | {row['feature']} | {row['importance']:.4f} |"
        for i, row in top_features.iterrows()
    )

    report = f"""# Intervention Planning Report

## Operating Point

| | Predicted No Intervention | Predicted Intervention |
|---|---|---|
| **Actual Negative** | {cost.cost_true_negative:,.2f} | {cost.cost_false_positive:,.2f} |
| **Actual Positive** | {cost.cost_false_negative:,.2f} | {cost.cost_true_positive:,.2f} |

FN/FP cost ratio: **{cost.loss_ratio:.4g}**

## Search History

| Iteration | FN/FP Ratio | Intervention Rate |
|---|---|---|
{history_rows}

## Performance

| Metric | Search Partition | Test Partition |
|---|---|---|
| **Examples** | {search.confusion.total} | {test.confusion.total} |
| **Intervention Rate** | {search.intervention_rate:.4f} | {test.intervention_rate:.4f} |
| **Accuracy** | {search.accuracy:.4f} | {test.accuracy:.4f} |
| **True Positive Rate** | {search.true_positive_rate:.4f} | {test.true_positive_rate:.4f} |
| **False Positive Rate** | {search.false_positive_rate:.4f} | {test.false_positive_rate:.4f} |
| **Total Cost** | {search.total_cost:,.2f} | {test.total_cost:,.2f} |
| **Net Value vs. No Intervention** | {search.net_value_vs_baseline:,.2f} | {test.net_value_vs_baseline:,.2f} |

Both partitions are priced with the {units}.

## Test Confusion Matrix

{_confusion_table(result.test_confusion)}

## Top-20 Feature Importance

| Rank | Feature | Importance |
|---|---|---|
{feature_rows}
"""

    output_path.write_text(report)
