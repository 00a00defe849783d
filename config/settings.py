from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Dataset
    dataset_path: Path = Field(default=Path("data/raw/readmissions.csv"))
    outcome_column: str = Field(default="readmitted")
    positive_label: str | None = Field(default=None)  # None = outcome already 0/1
    drop_columns: list[str] = Field(default_factory=list)

    # Unit costs
    intervention_cost: float = Field(default=1200.0, ge=0)
    outcome_cost: float = Field(default=35000.0, ge=0)
    efficacy_rate: float = Field(default=0.75, ge=0, le=1)

    # Budget search
    target_intervention_fraction: float = Field(default=0.05, ge=0, le=1)
    tolerance: float = Field(default=0.005, gt=0)
    max_search_iterations: int = Field(default=30, ge=1)

    # Partitioning
    test_size: float = Field(default=0.3, gt=0, lt=1)
    validation_size: float = Field(default=0.0, ge=0, lt=1)
    random_seed: int = Field(default=42)

    # Model
    model_type: Literal["decision_tree", "random_forest", "xgboost"] = Field(default="decision_tree")
    ccp_alpha: float = Field(default=0.0, ge=0)  # cost-complexity pruning
    min_samples_leaf: int = Field(default=20, ge=1)
    max_depth: int | None = Field(default=None)  # None = grow until leaves are pure
    n_estimators: int = Field(default=200, ge=1)  # forests and boosting only

    # Outputs
    output_dir: Path = Field(default=Path("outputs"))

    @model_validator(mode="after")
    def _validate_partition_sizes(self) -> "Settings":
        if self.test_size + self.validation_size >= 1:
            raise ValueError(
                "TEST_SIZE + VALIDATION_SIZE must be below 1 so the training "
                "partition is not empty."
            )
        return self

    def complexity_params(self) -> dict:
        """Complexity parameters for the configured model type."""
        params = {
            "ccp_alpha": self.ccp_alpha,
            "min_samples_leaf": self.min_samples_leaf,
            "max_depth": self.max_depth,
            "random_state": self.random_seed,
        }
        if self.model_type != "decision_tree":
            params["n_estimators"] = self.n_estimators
        return params
