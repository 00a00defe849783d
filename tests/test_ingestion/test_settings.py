"""Tests for pipeline configuration."""

import pytest
from pydantic import ValidationError

from config.settings import Settings


@pytest.fixture(autouse=True)
def _isolate_from_dotenv(monkeypatch, tmp_path):
    """Prevent .env file from leaking into settings tests."""
    for name in ["MODEL_TYPE", "TARGET_INTERVENTION_FRACTION", "INTERVENTION_COST", "DATASET_PATH"]:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)  # no .env in tmp_path


class TestSettingsDefaults:
    def test_cost_defaults(self):
        s = Settings()
        assert s.intervention_cost == 1200.0
        assert s.outcome_cost == 35000.0
        assert s.efficacy_rate == 0.75

    def test_search_defaults(self):
        s = Settings()
        assert s.target_intervention_fraction == 0.05
        assert s.tolerance == 0.005
        assert s.max_search_iterations == 30
        assert s.model_type == "decision_tree"


class TestSettingsSources:
    def test_environment_override(self, monkeypatch):
        """Environment variables override defaults."""
        monkeypatch.setenv("MODEL_TYPE", "xgboost")
        monkeypatch.setenv("TARGET_INTERVENTION_FRACTION", "0.1")
        s = Settings()
        assert s.model_type == "xgboost"
        assert s.target_intervention_fraction == 0.1

    def test_dotenv_file(self, tmp_path):
        (tmp_path / ".env").write_text("INTERVENTION_COST=800\nDATASET_PATH=cohort.parquet\n")
        s = Settings()
        assert s.intervention_cost == 800.0
        assert s.dataset_path.name == "cohort.parquet"


class TestSettingsValidation:
    def test_partition_sizes_must_leave_training_rows(self):
        with pytest.raises(ValidationError, match="TEST_SIZE \\+ VALIDATION_SIZE"):
            Settings(test_size=0.6, validation_size=0.4)

    @pytest.mark.parametrize(
        "field,value",
        [
            ("efficacy_rate", 1.5),
            ("intervention_cost", -1),
            ("tolerance", 0.0),
            ("target_intervention_fraction", 2.0),
            ("model_type", "svm"),
        ],
    )
    def test_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            Settings(**{field: value})


class TestComplexityParams:
    def test_decision_tree(self):
        params = Settings(min_samples_leaf=5, ccp_alpha=0.01).complexity_params()
        assert params == {
            "ccp_alpha": 0.01,
            "min_samples_leaf": 5,
            "max_depth": None,
            "random_state": 42,
        }

    def test_forest_includes_n_estimators(self):
        params = Settings(model_type="random_forest", n_estimators=50).complexity_params()
        assert params["n_estimators"] == 50
