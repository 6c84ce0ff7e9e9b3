"""Unit tests for bugvet.rules.engine module."""

import pytest

from bugvet.rules.base import BaseRule, Finding, RuleContext, Severity
from bugvet.rules.config import PerformanceConfig, RuleConfig, RuleEngineConfig
from bugvet.rules.engine import (
    RuleEngine,
    RuleEngineResult,
    RuleError,
    create_rule_engine,
)
from bugvet.rules.registry import RuleRegistry
from bugvet.syntax.nodes import CallExpr, ForStmt, Ident


class FailingRule(BaseRule):
    """A rule that raises on every call expression."""

    @property
    def rule_id(self) -> str:
        return "TEST.FAILING"

    @property
    def name(self) -> str:
        return "Failing Rule"

    @property
    def category(self) -> str:
        return "test"

    @property
    def default_severity(self) -> Severity:
        return Severity.HIGH

    @property
    def node_types(self):
        return (CallExpr,)

    def check(self, node, context: RuleContext) -> list[Finding]:
        raise ValueError("Rule execution failed")


def finding(severity: Severity, path: str = "a.go", line: int = 1) -> Finding:
    return Finding("X.Y", severity, "x", "m", path, line=line)


class TestRuleError:
    """Tests for RuleError dataclass."""

    def test_to_dict(self):
        """Test RuleError serialization."""
        error = RuleError("TEST.RULE", "boom", "ValueError", "a.go", 3)
        assert error.to_dict() == {
            "rule_id": "TEST.RULE",
            "error_message": "boom",
            "exception_type": "ValueError",
            "file_path": "a.go",
            "line": 3,
        }


class TestRuleEngineResult:
    """Tests for RuleEngineResult."""

    def test_should_block(self):
        """Test blocking against a threshold."""
        result = RuleEngineResult(findings=[finding(Severity.MEDIUM)])
        assert not result.should_block()
        assert result.should_block(Severity.MEDIUM)
        assert result.should_block(Severity.LOW)

    def test_empty_never_blocks(self):
        """Test that no findings never block."""
        assert not RuleEngineResult().should_block(Severity.LOW)

    def test_counts(self):
        """Test severity counters."""
        result = RuleEngineResult(
            findings=[
                finding(Severity.CRITICAL),
                finding(Severity.HIGH),
                finding(Severity.HIGH),
                finding(Severity.LOW),
            ]
        )
        assert result.critical_count == 1
        assert result.high_count == 2
        assert result.medium_count == 0
        assert result.low_count == 1
        assert len(result.get_findings_by_severity(Severity.HIGH)) == 2
        assert len(result.get_findings_by_rule("X.Y")) == 4

    def test_to_dict_sorted(self):
        """Test serialization orders findings by location."""
        result = RuleEngineResult(
            findings=[finding(Severity.LOW, "b.go", 1), finding(Severity.HIGH, "a.go", 9)],
            files_analyzed=2,
        )

        data = result.to_dict()

        assert [f["file_path"] for f in data["findings"]] == ["a.go", "b.go"]
        assert data["summary"]["total_findings"] == 2
        assert data["summary"]["high"] == 1
        assert data["files_analyzed"] == 2


class TestRuleEngine:
    """Tests for RuleEngine execution."""

    def test_default_registry(self):
        """Test that the engine loads every built-in rule by default."""
        engine = RuleEngine()
        assert len(engine.get_all_rules()) == 8
        assert engine.get_rule("STDLIB.SLEEP_CONSTANT") is not None

    def test_disabled_rules_not_loaded(self):
        """Test that rules disabled in config are dropped."""
        config = RuleEngineConfig(rules={"STDLIB.SLEEP_CONSTANT": RuleConfig(enabled=False)})
        engine = RuleEngine(config=config)
        assert engine.get_rule("STDLIB.SLEEP_CONSTANT") is None
        assert len(engine.get_all_rules()) == 7

    def test_run_collects_findings(self, go):
        """Test a single file with findings from several rules."""
        file = go.file(
            go.stmt(go.call("time", "Sleep", go.int(10))),
            go.stmt(go.call("regexp", "MustCompile", go.string("(["))),
            ForStmt(),
        )

        result = RuleEngine().run(file)

        assert result.files_analyzed == 1
        assert result.rules_executed == 8
        assert sorted(f.rule_id for f in result.findings) == [
            "CONCURRENCY.EMPTY_INFINITE_LOOP",
            "LITERALS.INVALID_REGEX",
            "STDLIB.SLEEP_CONSTANT",
        ]
        assert result.errors == []
        assert result.execution_time_ms >= 0

    def test_each_node_checked_once(self, go):
        """Test that a matching node yields exactly one finding."""
        file = go.file(go.stmt(go.call("time", "Sleep", go.int(3))))
        assert len(RuleEngine().run(file).findings) == 1

    def test_run_with_rule_filter(self, go):
        """Test running a subset of rules."""
        file = go.file(go.stmt(go.call("time", "Sleep", go.int(10))), ForStmt())

        result = RuleEngine().run(file, rule_ids=["CONCURRENCY.EMPTY_INFINITE_LOOP"])

        assert [f.rule_id for f in result.findings] == ["CONCURRENCY.EMPTY_INFINITE_LOOP"]
        assert result.rules_executed == 1

    def test_run_with_category_filter(self, go):
        """Test running one category."""
        file = go.file(go.stmt(go.call("time", "Sleep", go.int(10))), ForStmt())
        result = RuleEngine().run(file, categories=["stdlib"])
        assert [f.rule_id for f in result.findings] == ["STDLIB.SLEEP_CONSTANT"]

    def test_rule_exception_captured(self, go, caplog):
        """Test that a failing rule becomes a RuleError."""
        engine = RuleEngine(registry=RuleRegistry([FailingRule()]))
        call = go.call("time", "Sleep", go.int(10))

        result = engine.run(go.file(go.stmt(call)))

        assert result.findings == []
        assert len(result.errors) == 1
        error = result.errors[0]
        assert error.rule_id == "TEST.FAILING"
        assert error.exception_type == "ValueError"
        assert error.file_path == "main.go"
        assert error.line == call.pos.line
        assert "Rule TEST.FAILING failed" in caplog.text

    def test_continue_on_error(self, go):
        """Test that every node is still visited after a failure."""
        engine = RuleEngine(registry=RuleRegistry([FailingRule()]))
        file = go.file(go.stmt(CallExpr(Ident("f"))), go.stmt(CallExpr(Ident("g"))))
        assert len(engine.run(file).errors) == 2

    def test_stop_on_error(self, go):
        """Test that continueOnError=false stops the file at the first failure."""
        config = RuleEngineConfig(continue_on_error=False)
        engine = RuleEngine(registry=RuleRegistry([FailingRule()]), config=config)
        file = go.file(go.stmt(CallExpr(Ident("f"))), go.stmt(CallExpr(Ident("g"))))

        file_result = engine.analyze_file(file)

        assert len(file_result.errors) == 1
        assert file_result.stopped_early
        assert not file_result.success

    @pytest.mark.parametrize("parallel", [True, False])
    def test_run_many(self, go, parallel):
        """Test analysing several files, in parallel or not."""
        files = [
            go.file(go.stmt(go.call("time", "Sleep", go.int(n))), path=f"f{n}.go")
            for n in range(1, 6)
        ]
        config = RuleEngineConfig(performance=PerformanceConfig(max_parallel_workers=3))

        result = RuleEngine(config=config).run_many(files, parallel=parallel)

        assert result.files_analyzed == 5
        assert sorted(f.file_path for f in result.findings) == [
            "f1.go",
            "f2.go",
            "f3.go",
            "f4.go",
            "f5.go",
        ]

    def test_create_rule_engine(self, tmp_path):
        """Test the factory loads configuration from the project."""
        engine = create_rule_engine(project_path=tmp_path)
        assert engine.config.get_rule_parameter("STDLIB.SLEEP_CONSTANT", "maxSuspicious") == 120
