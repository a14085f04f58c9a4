"""Tests for configuration loading and validation."""
import copy
from pathlib import Path
from typing import Any, Dict

import pytest
import yaml

from strategy_analytics.config import (
    AnalysisConfig,
    Config,
    ThresholdConfig,
    _from_dict,
    default_config,
    load_config,
)

# A complete and valid dictionary that can be used to construct a Config object.
FULL_CONFIG_DICT: Dict[str, Any] = {
    "run": {"name": "test_run", "output_dir": "test_output"},
    "data": {"ledger_path": "data/trades.json", "templates_path": "config/templates.yaml"},
    "analysis": {"portfolio_size": 2, "max_combinations": 500, "diversification_weight": 0.5, "win_rate_weight": 0.5},
    "thresholds": {
        "excellent_correlation": -0.4, "excellent_benefit": 25, "good_correlation": 0.1,
        "good_benefit": 12, "avoid_correlation": 0.8,
    },
    "reporting": {"output_formats": ["json", "csv"], "granularity": "quarter", "top_n": 5},
}


def _write(tmp_path: Path, config_dict: Dict[str, Any]) -> Path:
    config_path = tmp_path / "config.yaml"
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(config_dict, f)
    return config_path


@pytest.fixture
def temp_config_file(tmp_path: Path) -> Path:
    """Pytest fixture to create a temporary, valid config file."""
    return _write(tmp_path, copy.deepcopy(FULL_CONFIG_DICT))


def test_load_valid_config(temp_config_file: Path) -> None:
    """Test loading a valid configuration file returns a Config object."""
    config = load_config(temp_config_file)
    assert isinstance(config, Config)
    assert config.run.name == "test_run"
    assert config.run.output_dir == Path("test_output")
    assert config.data.templates_path == Path("config/templates.yaml")
    assert config.analysis.portfolio_size == 2
    assert config.thresholds.excellent_benefit == 25.0
    assert isinstance(config.thresholds.excellent_benefit, float)
    assert config.reporting.granularity == "quarter"


def test_load_example_config_file() -> None:
    """Test that the main example config file is valid."""
    config = load_config(Path("config/example.yaml"))
    assert isinstance(config, Config)
    assert config.run.name == "example"


def test_partial_config_uses_defaults(tmp_path: Path) -> None:
    config = load_config(_write(tmp_path, {"analysis": {"portfolio_size": 4}}))
    assert config.analysis.portfolio_size == 4
    assert config.analysis.max_combinations == AnalysisConfig().max_combinations
    assert config.thresholds == ThresholdConfig()
    assert config.data.templates_path is None


def test_empty_config_file(tmp_path: Path) -> None:
    config_path = tmp_path / "empty.yaml"
    config_path.write_text("")
    assert load_config(config_path) == default_config()


def test_missing_config_file() -> None:
    """Test error handling for missing config file."""
    with pytest.raises(FileNotFoundError):
        load_config(Path("nonexistent.yaml"))


def test_invalid_yaml_syntax(tmp_path: Path) -> None:
    """Test error handling for invalid YAML syntax."""
    config_path = tmp_path / "invalid.yaml"
    config_path.write_text("run: { name: test")
    with pytest.raises(ValueError, match="Invalid YAML syntax"):
        load_config(config_path)


def test_unknown_key_fails(tmp_path: Path) -> None:
    invalid_config = copy.deepcopy(FULL_CONFIG_DICT)
    invalid_config["analysis"]["max_portfolios"] = 3
    with pytest.raises(ValueError, match="Configuration validation failed"):
        load_config(_write(tmp_path, invalid_config))


@pytest.mark.parametrize(
    "section, key, value, message",
    [
        ("analysis", "portfolio_size", 0, "portfolio_size must be at least 1"),
        ("analysis", "max_combinations", 0, "max_combinations must be positive"),
        ("analysis", "win_rate_weight", -0.1, "weights must be non-negative"),
        ("thresholds", "avoid_correlation", 1.5, "avoid_correlation must be within"),
        ("thresholds", "good_benefit", -1, "good_benefit must be non-negative"),
        ("reporting", "output_formats", ["json", "html"], "unknown entries"),
        ("reporting", "granularity", "fortnight", "granularity must be one of"),
        ("reporting", "top_n", 0, "top_n must be at least 1"),
    ],
)
def test_validation_fails(tmp_path: Path, section: str, key: str, value: Any, message: str) -> None:
    """Test that each logical inconsistency is rejected up front."""
    invalid_config = copy.deepcopy(FULL_CONFIG_DICT)
    invalid_config[section][key] = value
    with pytest.raises(ValueError, match=message):
        load_config(_write(tmp_path, invalid_config))


def test_zero_weight_sum_fails(tmp_path: Path) -> None:
    invalid_config = copy.deepcopy(FULL_CONFIG_DICT)
    invalid_config["analysis"]["diversification_weight"] = 0
    invalid_config["analysis"]["win_rate_weight"] = 0
    with pytest.raises(ValueError, match="positive sum"):
        load_config(_write(tmp_path, invalid_config))


def test_from_dict_conversion() -> None:
    """Tests the internal _from_dict helper for creating nested dataclasses."""
    config = _from_dict(Config, copy.deepcopy(FULL_CONFIG_DICT))
    assert isinstance(config, Config)
    assert isinstance(config.analysis, AnalysisConfig)
    assert config.data.ledger_path == Path("data/trades.json")
    assert config.reporting.output_formats == ["json", "csv"]


def test_config_is_frozen() -> None:
    config = default_config()
    with pytest.raises(AttributeError):
        config.analysis.portfolio_size = 5  # type: ignore[misc]


def test_empty_section_uses_defaults(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("analysis:\nreporting:\n  top_n: 5\n")

    config = load_config(config_path)
    assert config.analysis == AnalysisConfig()
    assert config.reporting.top_n == 5


def test_wrong_value_type_fails(tmp_path: Path) -> None:
    """A non-numeric value is reported as a configuration error, not a TypeError."""
    invalid_config = copy.deepcopy(FULL_CONFIG_DICT)
    invalid_config["analysis"]["portfolio_size"] = "three"
    with pytest.raises(ValueError, match="wrong type"):
        load_config(_write(tmp_path, invalid_config))
