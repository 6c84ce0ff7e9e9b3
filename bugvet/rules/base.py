"""
Base classes and types for the bug-detection rule engine.

This module provides the foundational abstractions shared by every rule:
severities, the immutable Finding record, the per-file RuleContext and
the BaseRule contract.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from ..syntax.nodes import Node, Position
from ..syntax.render import render
from ..syntax.source import SourceFile
from ..syntax.typeinfo import TypeInfo

if TYPE_CHECKING:
    from .config import CategoryConfig, RuleConfig, RuleEngineConfig

LIKELY_BUG = "likely-bug"


class Severity(Enum):
    """Severity levels for findings."""

    CRITICAL = "critical"  # Almost certainly broken at runtime
    HIGH = "high"  # Very likely a bug, blocks by default
    MEDIUM = "medium"  # Suspicious, worth a look
    LOW = "low"  # Informational

    def __lt__(self, other: "Severity") -> bool:
        order = [Severity.LOW, Severity.MEDIUM, Severity.HIGH, Severity.CRITICAL]
        return order.index(self) < order.index(other)

    def __le__(self, other: "Severity") -> bool:
        return self == other or self < other

    def __gt__(self, other: "Severity") -> bool:
        return not self <= other

    def __ge__(self, other: "Severity") -> bool:
        return not self < other


@dataclass(frozen=True)
class Finding:
    """A single reported diagnostic."""

    rule_id: str
    severity: Severity
    category: str
    message: str
    file_path: str
    line: int | None = None
    column: int | None = None
    tag: str = LIKELY_BUG
    remediation_hints: tuple[str, ...] = ()
    data: dict[str, Any] = field(default_factory=dict, compare=False)
    node: Node | None = field(default=None, compare=False, repr=False)

    @property
    def location(self) -> str:
        """``path:line:column`` with the unknown parts left out."""
        parts = [self.file_path]
        if self.line is not None:
            parts.append(str(self.line))
            if self.column:
                parts.append(str(self.column))
        return ":".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "rule_id": self.rule_id,
            "severity": self.severity.value,
            "category": self.category,
            "tag": self.tag,
            "message": self.message,
            "file_path": self.file_path,
            "line": self.line,
            "column": self.column,
            "remediation_hints": list(self.remediation_hints),
            "data": dict(self.data),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Finding":
        """Create Finding from dictionary."""
        return cls(
            rule_id=data["rule_id"],
            severity=Severity(data["severity"]),
            category=data["category"],
            message=data["message"],
            file_path=data["file_path"],
            line=data.get("line"),
            column=data.get("column"),
            tag=data.get("tag", LIKELY_BUG),
            remediation_hints=tuple(data.get("remediation_hints", ())),
            data=data.get("data", {}),
        )


@dataclass
class RuleContext:
    """Context passed to rules for evaluation."""

    file: SourceFile
    config: "RuleEngineConfig | None" = field(default=None, repr=False)

    @property
    def file_path(self) -> str:
        return self.file.path

    @property
    def info(self) -> TypeInfo:
        return self.file.info

    def render(self, node: Node) -> str:
        """Go source rendering of ``node`` for use in messages."""
        return render(node)

    def rule_config(self, rule_id: str) -> "RuleConfig | None":
        if self.config is None:
            return None
        return self.config.get_rule_config(rule_id)

    def category_config(self, category: str) -> "CategoryConfig | None":
        if self.config is None:
            return None
        return self.config.categories.get(category)

    def parameter(self, rule_id: str, name: str, default: Any = None) -> Any:
        """Rule parameter from config, or ``default``."""
        if self.config is None:
            return default
        return self.config.get_rule_parameter(rule_id, name, default)


class BaseRule(ABC):
    """Abstract base class for all rules.

    A rule is stateless: ``check`` is called once per node whose type is in
    ``node_types`` and must return a (possibly empty) list of findings
    without keeping anything between calls.
    """

    @property
    @abstractmethod
    def rule_id(self) -> str:
        """Unique rule identifier (e.g., 'LITERALS.INVALID_REGEX').

        Format: CATEGORY.RULE_NAME where CATEGORY is uppercase and
        RULE_NAME uses UPPER_SNAKE_CASE.
        """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable rule name."""

    @property
    @abstractmethod
    def category(self) -> str:
        """Rule category: literals, stdlib or concurrency."""

    @property
    @abstractmethod
    def default_severity(self) -> Severity:
        """Default severity level for findings from this rule."""

    @property
    @abstractmethod
    def node_types(self) -> tuple[type[Node], ...]:
        """Node classes this rule is dispatched on."""

    @property
    def description(self) -> str:
        """Detailed description of what this rule checks."""
        return f"Rule {self.rule_id}: {self.name}"

    @property
    def parameters(self) -> dict[str, Any]:
        """Tunable parameters and their defaults."""
        return {}

    @abstractmethod
    def check(self, node: Node, context: RuleContext) -> list[Finding]:
        """Inspect one node and return findings.

        Args:
            node: A node whose type is listed in ``node_types``
            context: RuleContext for the file being analysed

        Returns:
            List of Finding objects, empty when the node does not match.
        """

    def parameter(self, context: RuleContext, name: str) -> Any:
        """Configured value of one of this rule's ``parameters``."""
        return context.parameter(self.rule_id, name, self.parameters[name])

    def get_severity(
        self,
        config: "RuleConfig | None",
        category_config: "CategoryConfig | None" = None,
    ) -> Severity:
        """Get severity from config or use default.

        A rule-level override wins over the category default.

        Args:
            config: Optional rule-specific configuration
            category_config: Optional configuration of the rule's category

        Returns:
            Severity level to use for findings
        """
        if config and config.severity_override:
            return Severity(config.severity_override)
        if category_config and category_config.default_severity:
            return Severity(category_config.default_severity)
        return self.default_severity

    def _create_finding(
        self,
        message: str,
        node: Node,
        context: RuleContext,
        remediation_hints: list[str] | None = None,
        data: dict[str, Any] | None = None,
    ) -> Finding:
        """Helper to create a Finding with this rule's ID and severity.

        Args:
            message: Diagnostic text
            node: Node the finding is reported at
            context: RuleContext for the file
            remediation_hints: List of suggestions for fixing
            data: Extra machine-readable details

        Returns:
            Populated Finding object
        """
        pos = node.pos or Position(0)
        return Finding(
            rule_id=self.rule_id,
            severity=self.get_severity(
                context.rule_config(self.rule_id),
                context.category_config(self.category),
            ),
            category=self.category,
            message=message,
            file_path=context.file_path,
            line=pos.line or None,
            column=pos.column or None,
            remediation_hints=tuple(remediation_hints or ()),
            data=data or {},
            node=node,
        )
