"""Main pipeline orchestrator for cost-sensitive intervention planning.

Orchestrates the stages of the pipeline:
1. Ingestion: Load the labeled table and encode features
2. Partition: Seeded train/validation/test split
3. Cost Model: Turn unit costs into a normalized loss matrix
4. Search: Find the FN/FP cost ratio that meets the intervention budget
5. Reporting: Variable importance, persisted model and markdown report
"""

import argparse
import logging
from pathlib import Path
from typing import Any

import numpy as np
from pydantic import ValidationError

from config.settings import Settings
from src.decision.cost_model import build_cost_model, build_raw_cost_model
from src.decision.errors import CostSensitiveError, ConvergenceFailure
from src.decision.threshold_search import search_intervention_budget


logger = logging.getLogger(__name__)


def _artifact_paths(output_dir: Path, model_type: str) -> dict[str, Path]:
    suffix = "json" if model_type == "xgboost" else "pkl"
    return {
        "model": output_dir / "models" / f"{model_type}.{suffix}",
        "report": output_dir / "reports" / f"intervention_plan_{model_type}.md",
    }


def run_pipeline(
    settings: Settings,
    output_dir: Path | None = None,
) -> dict[str, Any]:
    """Orchestrate the complete intervention planning pipeline.

    Args:
        settings: Pipeline configuration settings
        output_dir: Override ``settings.output_dir``

    Returns:
        Dictionary containing:
            - dataset_shape: (n_rows, n_encoded_features)
            - partition_sizes: rows per partition
            - cost_model: Loss matrix of the chosen operating point
            - search_metrics: Metrics on the search partition
            - test_metrics: Monetary metrics on the test partition
            - iterations: Number of search iterations
            - history: Every search step, in order
            - artifact_paths: Paths to generated artifacts

    Raises:
        ConvergenceFailure: If no cost ratio meets the intervention budget
    """
    from src.ingestion.tabular_loader import load_tabular_dataset
    from src.prediction.split import partition_dataset
    from src.prediction.model import make_trainer, save_model
    from src.prediction.evaluate import (
        evaluate_model,
        get_feature_importance,
        generate_evaluation_report,
    )

    paths = _artifact_paths(output_dir or settings.output_dir, settings.model_type)

    # Stage 1: Ingestion
    logger.info("Stage 1: Loading dataset...")
    features, labels = load_tabular_dataset(
        settings.dataset_path,
        outcome_column=settings.outcome_column,
        positive_label=settings.positive_label,
        drop_columns=settings.drop_columns,
    )

    # Stage 2: Partition
    logger.info("Stage 2: Partitioning dataset...")
    dataset = partition_dataset(
        features,
        labels,
        test_size=settings.test_size,
        validation_size=settings.validation_size,
        rng=np.random.default_rng(settings.random_seed),
    )
    logger.info(
        f"  Split: train={len(dataset.train)}, val={len(dataset.validation)}, "
        f"test={len(dataset.test)}"
    )

    # Stage 3: Cost model
    logger.info("Stage 3: Building cost model...")
    cost_model = build_cost_model(
        settings.intervention_cost, settings.outcome_cost, settings.efficacy_rate
    )
    raw_cost_model = build_raw_cost_model(
        settings.intervention_cost, settings.outcome_cost, settings.efficacy_rate
    )
    logger.info(
        f"  FP={cost_model.cost_false_positive:,.2f}, FN={cost_model.cost_false_negative:,.2f} "
        f"(ratio {cost_model.loss_ratio:.4g})"
    )

    # Stage 4: Budget search
    logger.info(
        f"Stage 4: Searching for a {settings.target_intervention_fraction:.1%} "
        f"intervention rate with {settings.model_type}..."
    )
    trainer = make_trainer(settings.model_type, **settings.complexity_params())
    result = search_intervention_budget(
        dataset,
        trainer,
        settings.target_intervention_fraction,
        settings.tolerance,
        initial_cost_model=cost_model,
        max_iterations=settings.max_search_iterations,
    )

    # Stage 5: Reporting
    logger.info("Stage 5: Writing model and report...")
    importance = get_feature_importance(result.classifier)
    save_model(result.classifier, paths["model"])
    generate_evaluation_report(result, importance, paths["report"], raw_cost_model=raw_cost_model)
    logger.info(f"  Report saved to {paths['report']}")

    test_metrics = evaluate_model(result.classifier, dataset.test, raw_cost_model)

    return {
        "dataset_shape": features.shape,
        "partition_sizes": {
            "train": len(dataset.train),
            "validation": len(dataset.validation),
            "test": len(dataset.test),
        },
        "cost_model": result.cost_model,
        "search_metrics": result.report.to_dict(),
        "test_metrics": test_metrics,
        "iterations": result.iterations,
        "history": result.history,
        "artifact_paths": paths,
    }


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for the pipeline."""
    parser = argparse.ArgumentParser(
        description="Plan a budget-constrained intervention with a cost-sensitive tree model",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--data",
        type=Path,
        default=None,
        help="Path to the labeled CSV/Parquet table (default: from settings)",
    )
    parser.add_argument(
        "--outcome",
        type=str,
        default=None,
        help="Outcome column name (default: from settings)",
    )
    parser.add_argument(
        "--positive-label",
        type=str,
        default=None,
        help="Outcome value marking the positive class",
    )
    parser.add_argument(
        "--model-type",
        choices=["decision_tree", "random_forest", "xgboost"],
        default=None,
        help="Model variant to train (default: from settings)",
    )
    parser.add_argument(
        "--target-rate",
        type=float,
        default=None,
        help="Target fraction of cases receiving the intervention",
    )
    parser.add_argument(
        "--tolerance",
        type=float,
        default=None,
        help="Accepted absolute deviation from the target rate",
    )
    parser.add_argument(
        "--intervention-cost",
        type=float,
        default=None,
        help="Cost of one intervention",
    )
    parser.add_argument(
        "--outcome-cost",
        type=float,
        default=None,
        help="Cost of one bad outcome",
    )
    parser.add_argument(
        "--efficacy-rate",
        type=float,
        default=None,
        help="Share of the outcome cost a treated positive still incurs",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Output directory for artifacts",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args(argv)

    # Configure logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Load settings
    settings = Settings()

    # Override settings from CLI args
    overrides = {
        "dataset_path": args.data,
        "outcome_column": args.outcome,
        "positive_label": args.positive_label,
        "model_type": args.model_type,
        "target_intervention_fraction": args.target_rate,
        "tolerance": args.tolerance,
        "intervention_cost": args.intervention_cost,
        "outcome_cost": args.outcome_cost,
        "efficacy_rate": args.efficacy_rate,
        "output_dir": args.output_dir,
    }
    updates = {k: v for k, v in overrides.items() if v is not None}
    if updates:
        try:
            settings = Settings(**{**settings.model_dump(), **updates})
        except ValidationError as e:
            logger.error(f"Invalid configuration: {e}")
            return 1

    if not settings.dataset_path.exists():
        logger.error(f"Dataset not found: {settings.dataset_path}")
        return 1

    logger.info("Starting intervention planning pipeline...")
    try:
        result = run_pipeline(settings)
    except ConvergenceFailure as e:
        logger.error(f"Budget search failed: {e}")
        if e.best_step is not None:
            logger.error(
                f"  Closest: ratio={e.best_step.loss_ratio:.4g}, "
                f"rate={e.best_step.intervention_rate:.4f}"
            )
        return 1
    except (CostSensitiveError, ValueError) as e:
        logger.error(f"Pipeline failed: {e}")
        return 1

    # Print summary
    test = result["test_metrics"]
    print("\n" + "=" * 60)
    print("Pipeline Complete")
    print("=" * 60)
    print(f"Dataset: {result['dataset_shape'][0]} rows x {result['dataset_shape'][1]} features")
    print(f"Search iterations: {result['iterations']}")
    print(f"FN/FP cost ratio: {result['cost_model'].loss_ratio:.4g}")
    print(f"\nTest partition ({test['n']} cases):")
    print(f"  Intervention rate: {test['intervention_rate']:.4f}")
    print(f"  Total cost:        {test['total_cost']:,.2f}")
    print(f"  Net value:         {test['net_value_vs_baseline']:,.2f}")
    print(f"  AUROC:             {test['auroc']:.4f}")

    print("\nArtifacts:")
    for name, path in result["artifact_paths"].items():
        status = "exists" if Path(path).exists() else "not created"
        print(f"  {name}: {path} ({status})")

    return 0


if __name__ == "__main__":
    exit(main())
