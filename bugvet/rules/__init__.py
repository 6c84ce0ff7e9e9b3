"""
Rule engine for detecting likely bugs in type-checked Go programs.

This package provides the BaseRule contract, the Finding record, the
configuration system, the immutable RuleRegistry and the RuleEngine that
walks each file once and dispatches nodes to rules by type.
"""

from .base import LIKELY_BUG, BaseRule, Finding, RuleContext, Severity
from .config import (
    CategoryConfig,
    PerformanceConfig,
    RuleConfig,
    RuleEngineConfig,
    RuleEngineConfigLoader,
    get_default_config,
)
from .engine import (
    FileAnalysisResult,
    RuleEngine,
    RuleEngineResult,
    RuleError,
    create_rule_engine,
)
from .registry import DEFAULT_RULE_CLASSES, RuleRegistry, default_registry

__all__ = [
    "LIKELY_BUG",
    "BaseRule",
    "CategoryConfig",
    "DEFAULT_RULE_CLASSES",
    "FileAnalysisResult",
    "Finding",
    "PerformanceConfig",
    "RuleConfig",
    "RuleContext",
    "RuleEngine",
    "RuleEngineConfig",
    "RuleEngineConfigLoader",
    "RuleEngineResult",
    "RuleError",
    "RuleRegistry",
    "Severity",
    "create_rule_engine",
    "default_registry",
    "get_default_config",
]
