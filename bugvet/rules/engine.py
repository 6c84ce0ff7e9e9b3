"""
Rule engine coordinator for executing rules over analysed files.

This module provides the RuleEngine class that walks each file's syntax
tree once, hands every node to the rules registered for its type, and
aggregates findings and rule failures.

Files are independent, so several can be analysed at once using a
ThreadPoolExecutor when parallel execution is enabled.
"""

import logging
import time
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field

from ..syntax.nodes import Node, walk
from ..syntax.source import SourceFile
from .base import BaseRule, Finding, RuleContext, Severity
from .config import RuleEngineConfig, RuleEngineConfigLoader
from .registry import RuleRegistry, default_registry

logger = logging.getLogger(__name__)


@dataclass
class RuleError:
    """Error that occurred while a rule inspected a node."""

    rule_id: str
    error_message: str
    exception_type: str | None = None
    file_path: str | None = None
    line: int | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "rule_id": self.rule_id,
            "error_message": self.error_message,
            "exception_type": self.exception_type,
            "file_path": self.file_path,
            "line": self.line,
        }


@dataclass
class FileAnalysisResult:
    """Result of running the rules over one file."""

    file_path: str
    findings: list[Finding] = field(default_factory=list)
    errors: list[RuleError] = field(default_factory=list)
    nodes_visited: int = 0
    execution_time_ms: float = 0.0
    stopped_early: bool = False

    @property
    def success(self) -> bool:
        return not self.errors


@dataclass
class RuleEngineResult:
    """Result of rule engine execution."""

    findings: list[Finding] = field(default_factory=list)
    errors: list[RuleError] = field(default_factory=list)
    execution_time_ms: float = 0.0
    files_analyzed: int = 0
    rules_executed: int = 0

    def add(self, file_result: FileAnalysisResult) -> None:
        """Fold one file's result into the totals."""
        self.findings.extend(file_result.findings)
        self.errors.extend(file_result.errors)
        self.files_analyzed += 1

    def should_block(self, severity_threshold: Severity = Severity.HIGH) -> bool:
        """Check if any findings should block the operation.

        Args:
            severity_threshold: Minimum severity to block

        Returns:
            True if any findings meet or exceed the threshold
        """
        return any(f.severity >= severity_threshold for f in self.findings)

    @property
    def critical_count(self) -> int:
        return sum(1 for f in self.findings if f.severity == Severity.CRITICAL)

    @property
    def high_count(self) -> int:
        return sum(1 for f in self.findings if f.severity == Severity.HIGH)

    @property
    def medium_count(self) -> int:
        return sum(1 for f in self.findings if f.severity == Severity.MEDIUM)

    @property
    def low_count(self) -> int:
        return sum(1 for f in self.findings if f.severity == Severity.LOW)

    def get_findings_by_severity(self, severity: Severity) -> list[Finding]:
        return [f for f in self.findings if f.severity == severity]

    def get_findings_by_rule(self, rule_id: str) -> list[Finding]:
        return [f for f in self.findings if f.rule_id == rule_id]

    def sorted_findings(self) -> list[Finding]:
        """Findings ordered by file, line, column and rule id."""
        return sorted(
            self.findings,
            key=lambda f: (f.file_path, f.line or 0, f.column or 0, f.rule_id),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "findings": [f.to_dict() for f in self.sorted_findings()],
            "errors": [e.to_dict() for e in self.errors],
            "execution_time_ms": self.execution_time_ms,
            "files_analyzed": self.files_analyzed,
            "rules_executed": self.rules_executed,
            "summary": {
                "total_findings": len(self.findings),
                "critical": self.critical_count,
                "high": self.high_count,
                "medium": self.medium_count,
                "low": self.low_count,
            },
        }


class RuleEngine:
    """Engine for executing rules over syntax trees.

    Example usage:
        engine = RuleEngine()
        result = engine.run(load_dump(Path("main.go.json")))

        if result.should_block():
            print("Blocking due to high severity findings")
    """

    def __init__(
        self,
        registry: RuleRegistry | None = None,
        config: RuleEngineConfig | None = None,
        config_loader: RuleEngineConfigLoader | None = None,
    ):
        """Initialize the rule engine.

        Args:
            registry: Rules to run (defaults to every built-in rule)
            config: Optional pre-loaded configuration
            config_loader: Optional config loader for loading from files
        """
        if config:
            self.config = config
        elif config_loader:
            self.config = config_loader.load()
        else:
            self.config = RuleEngineConfig()

        if registry is None:
            registry = default_registry()
        self.registry = registry.without_disabled(self.config)
        logger.debug(f"Engine ready with {len(self.registry)} rules")

    def get_rule(self, rule_id: str) -> BaseRule | None:
        return self.registry.get(rule_id)

    def get_all_rules(self) -> list[BaseRule]:
        return list(self.registry)

    def analyze_file(
        self, file: SourceFile, registry: RuleRegistry | None = None
    ) -> FileAnalysisResult:
        """Walk one file and dispatch every node to its rules.

        Args:
            file: Syntax tree and type information for the file
            registry: Rules to use instead of the engine's own

        Returns:
            FileAnalysisResult with findings and captured rule errors
        """
        registry = registry or self.registry
        context = RuleContext(file=file, config=self.config)
        result = FileAnalysisResult(file_path=file.path)
        start_time = time.time()

        for node in walk(file.root):
            result.nodes_visited += 1
            for rule in registry.rules_for(node):
                findings, error = self._check_node(rule, node, context)
                if error is None:
                    result.findings.extend(findings)
                    continue
                result.errors.append(error)
                if not self.config.continue_on_error:
                    result.stopped_early = True
                    break
            if result.stopped_early:
                break

        result.execution_time_ms = (time.time() - start_time) * 1000
        logger.debug(
            f"{file.path}: {result.nodes_visited} nodes, "
            f"{len(result.findings)} findings, {len(result.errors)} errors"
        )
        return result

    def run(
        self,
        file: SourceFile,
        rule_ids: list[str] | None = None,
        categories: list[str] | None = None,
    ) -> RuleEngineResult:
        """Run rules over a single file.

        Args:
            file: Syntax tree and type information for the file
            rule_ids: Optional list of specific rule IDs to run
            categories: Optional list of categories to run

        Returns:
            RuleEngineResult with findings and execution info
        """
        return self.run_many([file], rule_ids=rule_ids, categories=categories, parallel=False)

    def run_many(
        self,
        files: Iterable[SourceFile],
        rule_ids: list[str] | None = None,
        categories: list[str] | None = None,
        parallel: bool | None = None,
    ) -> RuleEngineResult:
        """Run rules over several files.

        Findings are collected per file; no ordering across files is
        guaranteed when running in parallel.

        Args:
            files: Files to analyse
            rule_ids: Optional list of specific rule IDs to run
            categories: Optional list of categories to run
            parallel: Override parallel execution (None = use config)

        Returns:
            RuleEngineResult with findings and execution info
        """
        start_time = time.time()
        files = list(files)
        registry = self.registry.select(rule_ids, categories)
        result = RuleEngineResult(rules_executed=len(registry))

        use_parallel = (
            parallel if parallel is not None else self.config.performance.parallel_execution
        )

        if use_parallel and len(files) > 1:
            self._analyze_parallel(files, registry, result)
        else:
            for file in files:
                result.add(self.analyze_file(file, registry))

        result.execution_time_ms = (time.time() - start_time) * 1000
        return result

    def _analyze_parallel(
        self,
        files: list[SourceFile],
        registry: RuleRegistry,
        result: RuleEngineResult,
    ) -> None:
        """Analyse files concurrently using ThreadPoolExecutor."""
        max_workers = min(self.config.performance.max_parallel_workers, len(files))

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_file = {
                executor.submit(self.analyze_file, file, registry): file for file in files
            }
            for future in as_completed(future_to_file):
                result.add(future.result())

    def _check_node(
        self, rule: BaseRule, node: Node, context: RuleContext
    ) -> tuple[list[Finding], RuleError | None]:
        """Run one rule on one node, capturing any exception it raises."""
        try:
            return rule.check(node, context), None
        except Exception as e:
            line = node.pos.line if node.pos else None
            logger.warning(f"Rule {rule.rule_id} failed on {context.file_path}:{line}: {e}")
            return [], RuleError(
                rule_id=rule.rule_id,
                error_message=str(e),
                exception_type=type(e).__name__,
                file_path=context.file_path,
                line=line,
            )


def create_rule_engine(
    config: RuleEngineConfig | None = None,
    project_path=None,
    config_path=None,
) -> RuleEngine:
    """Factory function to create and configure a rule engine.

    Args:
        config: Optional pre-loaded configuration
        project_path: Optional project path for config loading
        config_path: Optional explicit config file

    Returns:
        Configured RuleEngine instance
    """
    if config is None:
        loader = RuleEngineConfigLoader(project_path, config_path)
        return RuleEngine(config_loader=loader)
    return RuleEngine(config=config)
