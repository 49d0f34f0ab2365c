"""Configuration management for duplicate detection and segmentation."""

import copy
import dataclasses
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from .deduplication.core_engine import DEFAULT_STRATEGIES
from .deduplication.match_strategies import DEFAULT_STRATEGY_WEIGHTS, StrategyName
from .deduplication.similarity_scoring import ScoringParameters
from .error_handling import ConfigurationError
from .logging_config import get_logger, setup_logging

logger = get_logger(__name__)

TRUTHY = ("true", "1", "yes")
FALSY = ("false", "0", "no")


class ThresholdConfig(BaseModel):
    high: float = Field(default=0.9, ge=0.0, le=1.0)
    medium: float = Field(default=0.7, ge=0.0, le=1.0)
    low: float = Field(default=0.5, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def check_order(self) -> "ThresholdConfig":
        if not self.low <= self.medium <= self.high:
            raise ValueError("thresholds must satisfy low <= medium <= high")
        return self


class DeduplicationConfig(BaseModel):
    strategies: List[StrategyName] = Field(default_factory=lambda: list(DEFAULT_STRATEGIES))
    thresholds: ThresholdConfig = Field(default_factory=ThresholdConfig)
    require_exact_email: bool = False
    require_exact_phone: bool = False
    strategy_weights: Dict[StrategyName, float] = Field(
        default_factory=lambda: dict(DEFAULT_STRATEGY_WEIGHTS)
    )
    scoring: Dict[str, float] = Field(default_factory=dict)

    @field_validator("strategy_weights")
    @classmethod
    def check_weights(cls, weights: Dict[StrategyName, float]) -> Dict[StrategyName, float]:
        negative = [name.value for name, weight in weights.items() if weight < 0]
        if negative:
            raise ValueError(f"strategy weights must be non-negative: {', '.join(negative)}")
        return weights

    @field_validator("scoring")
    @classmethod
    def check_scoring_keys(cls, scoring: Dict[str, float]) -> Dict[str, float]:
        known = {f.name for f in dataclasses.fields(ScoringParameters)}
        unknown = sorted(set(scoring) - known)
        if unknown:
            raise ValueError(f"unknown scoring parameters: {', '.join(unknown)}")
        return scoring


class SegmentConfig(BaseModel):
    max_depth: Optional[int] = Field(default=None, ge=1)
    validate_select_options: bool = True


class LoggingConfig(BaseModel):
    format: Literal["json", "text"] = "json"
    level: str = "INFO"
    log_file: Optional[str] = None


class Config(BaseModel):
    """Root configuration model."""

    deduplication: DeduplicationConfig = Field(default_factory=DeduplicationConfig)
    segments: SegmentConfig = Field(default_factory=SegmentConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class ConfigManager:
    """Manages configuration loading and validation."""

    DEFAULT_CONFIG = {
        "deduplication": {
            "strategies": [name.value for name in DEFAULT_STRATEGIES],
            "thresholds": {"high": 0.9, "medium": 0.7, "low": 0.5},
            "require_exact_email": False,
            "require_exact_phone": False,
            "strategy_weights": {
                name.value: weight for name, weight in DEFAULT_STRATEGY_WEIGHTS.items()
            },
            "scoring": {},
        },
        "segments": {
            "max_depth": None,
            "validate_select_options": True,
        },
        "logging": {
            "format": "json",
            "level": "INFO",
            "log_file": None,
        },
    }

    def __init__(self, config_path: Optional[str] = None):
        """Initialize config manager.

        Args:
            config_path: Path to a JSON config file. Falls back to the
                ``DONORCORE_CONFIG`` environment variable, then to defaults
                plus environment overrides.
        """
        config_path = config_path or os.getenv("DONORCORE_CONFIG")
        self.config_path = Path(config_path) if config_path else None
        self._config: Optional[Config] = None

    def load(self) -> Config:
        """Load configuration from file and environment."""
        if self._config:
            return self._config

        load_dotenv()
        config_dict = copy.deepcopy(self.DEFAULT_CONFIG)

        if self.config_path:
            if not self.config_path.exists():
                raise ConfigurationError(
                    f"Config file not found: {self.config_path}",
                    context={"path": str(self.config_path)},
                )
            try:
                with open(self.config_path, "r") as f:
                    file_config = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(
                    f"Config file is not valid JSON: {e}",
                    context={"path": str(self.config_path)},
                ) from e
            config_dict = self._deep_merge(config_dict, file_config)

        config_dict = self._apply_env_overrides(config_dict)

        try:
            self._config = Config(**config_dict)
        except PydanticValidationError as e:
            first = e.errors()[0]
            key = ".".join(str(part) for part in first["loc"])
            raise ConfigurationError(
                f"Invalid configuration at '{key}': {first['msg']}", config_key=key
            ) from e

        logger.debug(
            "config_loaded",
            path=str(self.config_path) if self.config_path else None,
            strategies=[s.value for s in self._config.deduplication.strategies],
        )
        return self._config

    def _deep_merge(self, base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in update.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides."""
        dedup = config.setdefault("deduplication", {})

        for band in ("high", "medium", "low"):
            env_key = f"DONORCORE_DEDUP_{band.upper()}_THRESHOLD"
            value = os.getenv(env_key)
            if value:
                dedup.setdefault("thresholds", {})[band] = _parse_float(env_key, value)

        strategies = os.getenv("DONORCORE_DEDUP_STRATEGIES")
        if strategies:
            dedup["strategies"] = [s.strip() for s in strategies.split(",") if s.strip()]

        for option in ("email", "phone"):
            env_key = f"DONORCORE_REQUIRE_EXACT_{option.upper()}"
            value = os.getenv(env_key)
            if value:
                dedup[f"require_exact_{option}"] = _parse_bool(env_key, value)

        max_depth = os.getenv("DONORCORE_SEGMENT_MAX_DEPTH")
        if max_depth:
            config.setdefault("segments", {})["max_depth"] = _parse_int(
                "DONORCORE_SEGMENT_MAX_DEPTH", max_depth
            )

        log_level = os.getenv("DONORCORE_LOG_LEVEL")
        if log_level:
            config.setdefault("logging", {})["level"] = log_level.upper()

        log_format = os.getenv("DONORCORE_LOG_FORMAT")
        if log_format:
            config.setdefault("logging", {})["format"] = log_format.lower()

        return config

    def save_template(self, path: str):
        """Save a configuration template file with every default spelled out."""
        template = copy.deepcopy(self.DEFAULT_CONFIG)
        template["deduplication"]["scoring"] = dataclasses.asdict(ScoringParameters())

        with open(path, "w") as f:
            json.dump(template, f, indent=2)

        logger.info("config_template_saved", path=path)

    @property
    def config(self) -> Config:
        """Get the loaded configuration."""
        if not self._config:
            self._config = self.load()
        return self._config


def configure_logging(config: Config) -> None:
    """Apply the ``logging`` section of a loaded configuration."""
    setup_logging(
        format=config.logging.format,
        level=config.logging.level,
        log_file=config.logging.log_file,
    )


def _parse_float(env_key: str, value: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"{env_key} must be a number, got {value!r}", config_key=env_key)


def _parse_int(env_key: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{env_key} must be an integer, got {value!r}", config_key=env_key)


def _parse_bool(env_key: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in TRUTHY:
        return True
    if lowered in FALSY:
        return False
    raise ConfigurationError(f"{env_key} must be true or false, got {value!r}", config_key=env_key)
