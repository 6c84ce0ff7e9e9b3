"""
Configuration system for the rule engine.

This module provides configuration dataclasses and loaders for
managing rule engine settings, including per-rule overrides and
parameters, category settings, and hierarchical configuration merging.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..errors import ConfigurationError
from .base import Severity

logger = logging.getLogger(__name__)


def _parse_severity(value: Any, where: str) -> str:
    """Validate a severity string, returning it lower-cased."""
    try:
        return Severity(str(value).lower()).value
    except ValueError:
        choices = ", ".join(s.value for s in Severity)
        raise ValueError(f"{where}: invalid severity {value!r} (expected {choices})") from None


@dataclass
class RuleConfig:
    """Configuration for a single rule."""

    enabled: bool = True
    severity_override: str | None = None
    parameters: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuleConfig":
        """Create RuleConfig from dictionary."""
        severity = data.get("severity")
        return cls(
            enabled=data.get("enabled", True),
            severity_override=_parse_severity(severity, "severity") if severity else None,
            parameters=dict(data.get("parameters", {})),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {"enabled": self.enabled}
        if self.severity_override:
            result["severity"] = self.severity_override
        if self.parameters:
            result["parameters"] = self.parameters
        return result

    def merge(self, other: "RuleConfig") -> "RuleConfig":
        """Layer ``other`` over this config; parameters merge key by key."""
        return RuleConfig(
            enabled=other.enabled,
            severity_override=other.severity_override or self.severity_override,
            parameters={**self.parameters, **other.parameters},
        )


@dataclass
class CategoryConfig:
    """Configuration for a rule category."""

    enabled: bool = True
    default_severity: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CategoryConfig":
        """Create CategoryConfig from dictionary."""
        severity = data.get("defaultSeverity")
        return cls(
            enabled=data.get("enabled", True),
            default_severity=(
                _parse_severity(severity, "defaultSeverity") if severity else None
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {"enabled": self.enabled}
        if self.default_severity:
            result["defaultSeverity"] = self.default_severity
        return result


@dataclass
class PerformanceConfig:
    """Performance configuration for the rule engine."""

    parallel_execution: bool = True
    max_parallel_workers: int = 4

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PerformanceConfig":
        """Create PerformanceConfig from dictionary."""
        workers = data.get("maxParallelWorkers", 4)
        if not isinstance(workers, int) or workers < 1:
            raise ValueError(f"maxParallelWorkers must be a positive integer, got {workers!r}")
        return cls(
            parallel_execution=data.get("parallelExecution", True),
            max_parallel_workers=workers,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "parallelExecution": self.parallel_execution,
            "maxParallelWorkers": self.max_parallel_workers,
        }


@dataclass
class RuleEngineConfig:
    """Configuration for the rule engine."""

    # Global settings
    enabled: bool = True
    fail_on_severity: Severity = field(default=Severity.HIGH)
    continue_on_error: bool = True

    # Performance settings
    performance: PerformanceConfig = field(default_factory=PerformanceConfig)

    # Per-category settings
    categories: dict[str, CategoryConfig] = field(default_factory=dict)

    # Per-rule settings
    rules: dict[str, RuleConfig] = field(default_factory=dict)

    def is_rule_enabled(self, rule_id: str, category: str | None = None) -> bool:
        """Check if a rule is enabled.

        Args:
            rule_id: The rule identifier
            category: The rule's category (optional)

        Returns:
            True if the rule is enabled, False otherwise
        """
        if not self.enabled:
            return False

        if category and category in self.categories:
            if not self.categories[category].enabled:
                return False

        if rule_id in self.rules:
            return self.rules[rule_id].enabled

        return True

    def get_rule_config(self, rule_id: str) -> RuleConfig:
        """Get configuration for a specific rule (default if not configured)."""
        return self.rules.get(rule_id, RuleConfig())

    def get_rule_parameter(
        self, rule_id: str, param_name: str, default: Any = None
    ) -> Any:
        """Get a specific parameter for a rule.

        Args:
            rule_id: The rule identifier
            param_name: The parameter name
            default: Default value if not configured

        Returns:
            The parameter value or default
        """
        config = self.get_rule_config(rule_id)
        return config.parameters.get(param_name, default)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuleEngineConfig":
        """Create RuleEngineConfig from dictionary.

        Raises:
            ValueError: If a value has the wrong shape.
        """
        if not isinstance(data, dict):
            raise ValueError("top-level value must be an object")

        config = cls(
            enabled=data.get("enabled", True),
            continue_on_error=data.get("continueOnError", True),
        )

        fail_on = data.get("failOnSeverity", "high")
        config.fail_on_severity = Severity(_parse_severity(fail_on, "failOnSeverity"))

        if "performance" in data:
            config.performance = PerformanceConfig.from_dict(data["performance"])

        for cat_name, cat_data in data.get("categories", {}).items():
            config.categories[cat_name] = CategoryConfig.from_dict(cat_data)

        for rule_id, rule_data in data.get("rules", {}).items():
            config.rules[rule_id] = RuleConfig.from_dict(rule_data)

        return config

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "enabled": self.enabled,
            "failOnSeverity": self.fail_on_severity.value,
            "continueOnError": self.continue_on_error,
            "performance": self.performance.to_dict(),
            "categories": {k: v.to_dict() for k, v in self.categories.items()},
            "rules": {k: v.to_dict() for k, v in self.rules.items()},
        }

    def merge(self, other: "RuleEngineConfig") -> "RuleEngineConfig":
        """Merge another config into this one (other takes precedence).

        Args:
            other: Configuration to merge in

        Returns:
            New RuleEngineConfig with merged settings
        """
        result = RuleEngineConfig(
            enabled=other.enabled,
            fail_on_severity=other.fail_on_severity,
            continue_on_error=other.continue_on_error,
            performance=PerformanceConfig(
                parallel_execution=other.performance.parallel_execution,
                max_parallel_workers=other.performance.max_parallel_workers,
            ),
        )

        result.categories = dict(self.categories)
        result.categories.update(other.categories)

        result.rules = dict(self.rules)
        for rule_id, rule_config in other.rules.items():
            if rule_id in result.rules:
                result.rules[rule_id] = result.rules[rule_id].merge(rule_config)
            else:
                result.rules[rule_id] = rule_config

        return result


class RuleEngineConfigLoader:
    """Loads rule engine configuration from bugvet.config.json files."""

    CONFIG_FILENAME = "bugvet.config.json"
    LOCAL_CONFIG_FILENAME = "bugvet.config.local.json"
    PROJECT_CONFIG_DIR = ".bugvet"
    GLOBAL_CONFIG_DIR = Path.home() / ".bugvet"

    def __init__(
        self,
        project_path: Path | None = None,
        config_path: Path | None = None,
    ):
        """Initialize the config loader.

        Args:
            project_path: Path to the project root (defaults to CWD)
            config_path: Explicit config file layered on top of the others
        """
        self.project_path = project_path or Path.cwd()
        self.config_path = config_path

    def candidate_paths(self) -> list[Path]:
        """Config files consulted, lowest precedence first."""
        project_dir = self.project_path / self.PROJECT_CONFIG_DIR
        return [
            self.GLOBAL_CONFIG_DIR / self.CONFIG_FILENAME,
            project_dir / self.CONFIG_FILENAME,
            project_dir / self.LOCAL_CONFIG_FILENAME,
        ]

    def load(self) -> RuleEngineConfig:
        """Load configuration with hierarchical merging.

        Load order (later overrides earlier):
        1. Built-in defaults
        2. Global config (~/.bugvet/bugvet.config.json)
        3. Project config (<project>/.bugvet/bugvet.config.json)
        4. Local config (<project>/.bugvet/bugvet.config.local.json)
        5. The explicit ``config_path``, if any

        Unreadable implicit files are skipped with a warning; an explicit
        file that cannot be loaded raises ConfigurationError.

        Returns:
            Merged RuleEngineConfig
        """
        config = get_default_config()

        for path in self.candidate_paths():
            if path.exists():
                loaded = self._load_file(path)
                if loaded:
                    config = config.merge(loaded)

        if self.config_path is not None:
            loaded = self._load_file(self.config_path, required=True)
            config = config.merge(loaded)

        return config

    def _load_file(self, path: Path, required: bool = False) -> RuleEngineConfig | None:
        """Load configuration from a file.

        Args:
            path: Path to the config file
            required: Raise instead of warning when the file is unusable

        Returns:
            RuleEngineConfig or None if file couldn't be loaded
        """
        try:
            with open(path) as f:
                data = json.load(f)
            config = RuleEngineConfig.from_dict(data)
        except (json.JSONDecodeError, OSError, ValueError, AttributeError) as e:
            if required:
                raise ConfigurationError(str(path), str(e)) from e
            logger.warning(f"Could not load config from {path}: {e}")
            return None
        logger.debug(f"Loaded config from {path}")
        return config


def get_default_config() -> RuleEngineConfig:
    """Get the default rule engine configuration.

    Returns:
        RuleEngineConfig with the heuristic rule parameters spelled out
    """
    return RuleEngineConfig(
        enabled=True,
        fail_on_severity=Severity.HIGH,
        continue_on_error=True,
        categories={
            "literals": CategoryConfig(enabled=True),
            "stdlib": CategoryConfig(enabled=True),
            "concurrency": CategoryConfig(enabled=True),
        },
        rules={
            "STDLIB.SLEEP_CONSTANT": RuleConfig(parameters={"maxSuspicious": 120}),
            "LITERALS.INVALID_TEMPLATE": RuleConfig(
                parameters={"reportSubstring": "unexpected"}
            ),
        },
    )
