"""
Configuration loading and validation for the strategy analytics tool.

Configuration objects are plain frozen dataclasses filled from a YAML file.
Every section carries defaults, so a partial file (or no file at all, via
``default_config``) yields a complete configuration. Validation is a set of
explicit checks on the raw dictionary that fail fast with ``ValueError``.
"""

import yaml
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Type, Union, cast, get_args, get_origin

__all__ = [
    "load_config",
    "default_config",
    "Config",
    "AnalysisConfig",
    "ThresholdConfig",
    "ReportingConfig",
    "GRANULARITIES",
    "OUTPUT_FORMATS",
]

GRANULARITIES = ("day", "week", "month", "quarter", "year", "all")
OUTPUT_FORMATS = ("json", "markdown", "csv")


# §1. Nested Configuration Dataclasses
# --------------------------------------------------------------------------------------


@dataclass(frozen=True)
class RunConfig:
    name: str = "strategy-analysis"
    output_dir: Path = Path("runs/latest")


@dataclass(frozen=True)
class DataConfig:
    ledger_path: Path = Path("data/trades.json")
    templates_path: Optional[Path] = None


@dataclass(frozen=True)
class AnalysisConfig:
    portfolio_size: int = 3
    max_combinations: int = 100_000
    diversification_weight: float = 0.6
    win_rate_weight: float = 0.4


@dataclass(frozen=True)
class ThresholdConfig:
    """Cut-offs used to label a pair of strategies."""
    excellent_correlation: float = -0.3
    excellent_benefit: float = 20.0
    good_correlation: float = 0.2
    good_benefit: float = 10.0
    avoid_correlation: float = 0.7


@dataclass(frozen=True)
class ReportingConfig:
    output_formats: List[Literal["json", "markdown", "csv"]] = field(
        default_factory=lambda: ["json", "markdown", "csv"]
    )
    granularity: Literal["day", "week", "month", "quarter", "year", "all"] = "month"
    top_n: int = 10


# §2. Top-Level Configuration
# --------------------------------------------------------------------------------------


@dataclass(frozen=True)
class Config:
    """The root configuration object, composing all nested sections."""
    run: RunConfig = field(default_factory=RunConfig)
    data: DataConfig = field(default_factory=DataConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)
    reporting: ReportingConfig = field(default_factory=ReportingConfig)


def default_config() -> Config:
    """Returns the built-in configuration."""
    return Config()


# §3. Validation and Loading
# --------------------------------------------------------------------------------------


def _from_dict(data_class: Type[Any], data: Any) -> Any:
    """Recursively creates nested dataclasses from a dictionary."""
    # Optional[X] arrives as Union[X, None]; unwrap to X.
    if get_origin(data_class) is Union:
        non_none = [a for a in get_args(data_class) if a is not type(None)]
        data_class = non_none[0] if len(non_none) == 1 else Any

    # An empty YAML section (`analysis:`) loads as None; use the section defaults.
    if data is None and hasattr(data_class, "__dataclass_fields__"):
        return data_class()

    if isinstance(data, dict) and hasattr(data_class, "__dataclass_fields__"):
        field_types = {f.name: f.type for f in data_class.__dataclass_fields__.values()}

        kwargs = {}
        for k, v in data.items():
            field_type = field_types.get(k)
            # Unknown keys are passed through; the dataclass constructor
            # raises TypeError for them, which load_config reports.
            kwargs[k] = _from_dict(field_type, v) if field_type else v
        return data_class(**kwargs)

    if isinstance(data, str) and data_class is Path:
        return Path(data)
    if isinstance(data, int) and not isinstance(data, bool) and data_class is float:
        return float(data)
    return data


def _validate_config(cfg: Dict[str, Any]) -> None:
    """
    Performs simple, explicit validation checks on the raw config dictionary.
    Fail fast on any logical inconsistencies.
    """
    if not isinstance(cfg, dict):
        raise ValueError("Configuration must be a YAML object.")

    analysis = cfg.get("analysis") or {}
    if analysis.get("portfolio_size", 3) < 1:
        raise ValueError("analysis.portfolio_size must be at least 1.")
    if analysis.get("max_combinations", 1) < 1:
        raise ValueError("analysis.max_combinations must be positive.")

    div_w = analysis.get("diversification_weight", 0.6)
    win_w = analysis.get("win_rate_weight", 0.4)
    if div_w < 0 or win_w < 0 or div_w + win_w <= 0:
        raise ValueError("analysis weights must be non-negative with a positive sum.")

    thresholds = cfg.get("thresholds") or {}
    for key in ("excellent_correlation", "good_correlation", "avoid_correlation"):
        if key in thresholds and not -1.0 <= thresholds[key] <= 1.0:
            raise ValueError(f"thresholds.{key} must be within [-1, 1].")
    for key in ("excellent_benefit", "good_benefit"):
        if key in thresholds and thresholds[key] < 0:
            raise ValueError(f"thresholds.{key} must be non-negative.")

    reporting = cfg.get("reporting") or {}
    unknown = set(reporting.get("output_formats", [])) - set(OUTPUT_FORMATS)
    if unknown:
        raise ValueError(f"reporting.output_formats has unknown entries: {sorted(unknown)}")
    if reporting.get("granularity", "month") not in GRANULARITIES:
        raise ValueError(f"reporting.granularity must be one of {', '.join(GRANULARITIES)}.")
    if reporting.get("top_n", 1) < 1:
        raise ValueError("reporting.top_n must be at least 1.")


# impure
def load_config(config_path: Path) -> Config:
    """
    Loads and validates a YAML configuration file into a Config object.
    #impure: Reads from the filesystem.
    """
    if not config_path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in {config_path}: {e}") from e

    if raw_config is None:
        raw_config = {}

    try:
        _validate_config(raw_config)
    except TypeError as e:
        raise ValueError(f"Configuration validation failed: value of the wrong type. Details: {e}") from e

    try:
        # _from_dict is too dynamic for mypy to track; validation above
        # already checked the structure.
        return cast(Config, _from_dict(Config, raw_config))
    except (TypeError, KeyError) as e:
        raise ValueError(f"Configuration validation failed: missing or invalid key. Details: {e}") from e
