#!/usr/bin/env python3
"""Quick Start Example: Plan a 5% intervention budget.

This example runs the complete pipeline on the dataset configured in .env:
it builds the loss matrix from unit costs, searches for the FN/FP cost ratio
whose decision tree flags about 5% of cases, and reports the monetary
outcome on the held-out test partition.

Usage:
    python docs/examples/01_quick_start.py
"""

from pathlib import Path

from config.settings import Settings
from src.decision import ConvergenceFailure
from src.main import run_pipeline


def main():
    """Run the end-to-end pipeline with a 5% intervention budget."""
    # Load default settings from .env
    settings = Settings()

    # Budget: 5% of cases, accepted within half a percentage point
    settings = settings.model_copy(update={
        "target_intervention_fraction": 0.05,
        "tolerance": 0.005,
        "model_type": "decision_tree",
    })

    print("=" * 60)
    print("Quick Start: Budget-Constrained Intervention Planning")
    print("=" * 60)
    print(f"\nConfiguration:")
    print(f"  - Dataset: {settings.dataset_path}")
    print(f"  - Intervention cost: {settings.intervention_cost:,.2f}")
    print(f"  - Outcome cost: {settings.outcome_cost:,.2f}")
    print(f"  - Efficacy rate: {settings.efficacy_rate:.0%}")
    print(f"  - Target rate: {settings.target_intervention_fraction:.1%}")
    print()

    try:
        result = run_pipeline(settings=settings)
    except ConvergenceFailure as e:
        print(f"\nBudget search failed: {e}")
        if e.best_step is not None:
            print(f"Closest rate {e.best_step.intervention_rate:.4f} at ratio {e.best_step.loss_ratio:.4g}")
        return None

    # Print results
    print("\n" + "=" * 60)
    print("Pipeline Results")
    print("=" * 60)
    print(f"\nDataset shape: {result['dataset_shape']}")
    print(f"Search iterations: {result['iterations']}")
    print(f"Chosen FN/FP ratio: {result['cost_model'].loss_ratio:.4g}")

    test = result["test_metrics"]
    print("\nTest Partition:")
    print(f"    Intervention rate: {test['intervention_rate']:.4f}")
    print(f"    True positive rate: {test['true_positive_rate']:.4f}")
    print(f"    Total cost: {test['total_cost']:,.2f}")
    print(f"    Net value vs. no intervention: {test['net_value_vs_baseline']:,.2f}")
    print(f"    AUROC: {test['auroc']:.4f}")

    print("\nArtifacts created:")
    for name, path in result["artifact_paths"].items():
        exists = Path(path).exists()
        status = "OK" if exists else "Not created"
        print(f"  [{status}] {name}: {path}")

    return result


if __name__ == "__main__":
    main()
