"""CLI entry point for cost sensitivity analysis.

Usage:
    python -m src.prediction [--data PATH] [--output PATH]
        [--intervention-costs 800 1200] [--outcome-costs 35000]
        [--efficacy-rates 0.6 0.75 0.9]
"""

import argparse
import logging
from pathlib import Path

import numpy as np

from config.settings import Settings
from src.decision.sensitivity import cost_sensitivity_analysis
from src.ingestion.tabular_loader import load_tabular_dataset
from src.prediction.model import make_trainer
from src.prediction.split import partition_dataset


logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Tabulate test-partition costs over a grid of unit-cost assumptions."""
    parser = argparse.ArgumentParser(
        description="Cost sensitivity analysis for a cost-sensitive tree model",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--data",
        "-d",
        type=Path,
        default=None,
        help="Path to the labeled CSV/Parquet table (default: from settings)",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=Path("outputs/reports/cost_sensitivity.csv"),
        help="Output CSV path",
    )
    parser.add_argument(
        "--intervention-costs",
        type=float,
        nargs="+",
        default=None,
        help="Intervention costs to try (default: settings value)",
    )
    parser.add_argument(
        "--outcome-costs",
        type=float,
        nargs="+",
        default=None,
        help="Outcome costs to try (default: settings value)",
    )
    parser.add_argument(
        "--efficacy-rates",
        type=float,
        nargs="+",
        default=None,
        help="Efficacy rates to try (default: settings value)",
    )
    parser.add_argument(
        "--model-type",
        choices=["decision_tree", "random_forest", "xgboost"],
        default=None,
        help="Model variant to train (default: from settings)",
    )
    parser.add_argument(
        "-v", "--verbose",
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

    settings = Settings()
    updates = {}
    if args.data:
        updates["dataset_path"] = args.data
    if args.model_type:
        updates["model_type"] = args.model_type
    if updates:
        settings = settings.model_copy(update=updates)

    if not settings.dataset_path.exists():
        logger.error(f"Dataset not found: {settings.dataset_path}")
        return 1

    try:
        features, labels = load_tabular_dataset(
            settings.dataset_path,
            outcome_column=settings.outcome_column,
            positive_label=settings.positive_label,
            drop_columns=settings.drop_columns,
        )
        dataset = partition_dataset(
            features,
            labels,
            test_size=settings.test_size,
            validation_size=settings.validation_size,
            rng=np.random.default_rng(settings.random_seed),
        )
    except ValueError as e:
        logger.error(f"Could not prepare dataset: {e}")
        return 1

    logger.info(f"  Train: {len(dataset.train)}, Test: {len(dataset.test)}")

    table = cost_sensitivity_analysis(
        dataset,
        make_trainer(settings.model_type, **settings.complexity_params()),
        intervention_costs=args.intervention_costs or [settings.intervention_cost],
        outcome_costs=args.outcome_costs or [settings.outcome_cost],
        efficacy_rates=args.efficacy_rates or [settings.efficacy_rate],
    )

    if table.empty:
        logger.error("No valid cost combinations in the grid")
        return 1

    args.output.parent.mkdir(parents=True, exist_ok=True)
    table.to_csv(args.output, index=False)
    logger.info(f"Sensitivity table saved to {args.output}")

    # Print summary
    print("\n" + "=" * 50)
    print("Sensitivity Analysis Complete")
    print("=" * 50)
    print(table[[
        "intervention_cost", "outcome_cost", "efficacy_rate",
        "intervention_rate", "net_value_vs_baseline",
    ]].to_string(index=False))

    return 0


if __name__ == "__main__":
    exit(main())
