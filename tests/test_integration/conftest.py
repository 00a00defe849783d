"""Integration test fixtures."""

import pytest
from pathlib import Path

from config.settings import Settings


@pytest.fixture
def pipeline_settings(cohort_csv: Path, tmp_path: Path, monkeypatch) -> Settings:
    """Settings pointing at the synthetic cohort; a validation partition drives the search."""
    monkeypatch.chdir(tmp_path)  # no .env in tmp_path
    return Settings(
        dataset_path=cohort_csv,
        outcome_column="readmitted",
        positive_label="yes",
        drop_columns=["patient_id"],
        model_type="decision_tree",
        target_intervention_fraction=0.3,
        tolerance=0.05,
        validation_size=0.2,
        random_seed=42,
        output_dir=tmp_path / "outputs",
    )
