"""Tests for the bugvet command line interface."""

import json

import pytest
from click.testing import CliRunner

from bugvet import __version__
from bugvet.cli import cli
from bugvet.rules.config import RuleEngineConfigLoader

BUGGY_RULES = [
    "CONCURRENCY.WAITGROUP_COPY",
    "STDLIB.SLEEP_CONSTANT",
    "LITERALS.INVALID_REGEX",
    "CONCURRENCY.WAITGROUP_ADD_RACE",
    "STDLIB.BINARY_WRITE_LAYOUT",
    "CONCURRENCY.EMPTY_INFINITE_LOOP",
]


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep user and project config files out of CLI runs."""
    monkeypatch.setattr(RuleEngineConfigLoader, "GLOBAL_CONFIG_DIR", tmp_path / "home")
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def buggy(fixtures_dir):
    return str(fixtures_dir / "buggy.json")


@pytest.fixture
def clean(fixtures_dir):
    return str(fixtures_dir / "clean.json")


class TestCLI:
    """Tests for the command group."""

    def test_help(self, runner):
        """Test that --help lists the commands."""
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "check" in result.output
        assert "rules" in result.output

    def test_version(self, runner):
        """Test --version."""
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestCheckCommand:
    """Tests for bugvet check."""

    def test_text_output(self, runner, buggy):
        """Test findings in text form, ordered by position."""
        result = runner.invoke(cli, ["check", buggy])

        assert result.exit_code == 1
        lines = result.stdout.splitlines()
        assert len(lines) == 6
        assert lines[0] == (
            "cmd/app/main.go:10:13: should pass sync.WaitGroup by pointer "
            "(CONCURRENCY.WAITGROUP_COPY) [high]"
        )
        assert [line.split("(")[-1].split(")")[0] for line in lines] == BUGGY_RULES
        assert "6 findings in 1 file(s), 8 rule(s) run" in result.stderr

    def test_messages(self, runner, buggy):
        """Test the message of each finding."""
        result = runner.invoke(cli, ["check", buggy])
        out = result.stdout

        assert (
            "main.go:13:13: sleeping for 10 nanoseconds is probably a bug. "
            "Be explicit if it isn't: time.Sleep(10 * time.Nanosecond)"
        ) in out
        assert "main.go:14:21: error parsing regexp: " in out
        assert (
            "main.go:16:3: should call wg.Add(1) before starting the goroutine "
            "to avoid a race"
        ) in out
        assert "main.go:19:37: type *main.Header cannot be used with binary.Write" in out
        assert "main.go:21:3: should not use an infinite empty loop." in out

    def test_json_output(self, runner, buggy):
        """Test machine-readable output."""
        result = runner.invoke(cli, ["check", "--format", "json", buggy])

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert [f["rule_id"] for f in data["findings"]] == BUGGY_RULES
        assert data["files_analyzed"] == 1
        assert data["summary"]["total_findings"] == 6
        assert data["summary"]["medium"] == 2
        assert data["errors"] == []

    def test_clean_dump(self, runner, clean):
        """Test a dump without findings."""
        result = runner.invoke(cli, ["check", clean])
        assert result.exit_code == 0
        assert result.stdout == ""
        assert "0 findings in 1 file(s)" in result.stderr

    def test_multiple_dumps(self, runner, buggy, clean):
        """Test several dumps in one run."""
        result = runner.invoke(cli, ["check", "--format", "json", buggy, clean])
        assert json.loads(result.stdout)["files_analyzed"] == 2

    def test_rule_filter(self, runner, buggy):
        """Test --rule."""
        result = runner.invoke(cli, ["check", "-r", "STDLIB.SLEEP_CONSTANT", buggy])

        assert result.exit_code == 0
        assert len(result.stdout.splitlines()) == 1
        assert "1 finding in 1 file(s), 1 rule(s) run" in result.stderr

    def test_category_filter(self, runner, buggy):
        """Test --category."""
        result = runner.invoke(cli, ["check", "-c", "concurrency", "--format", "json", buggy])
        rule_ids = {f["rule_id"] for f in json.loads(result.stdout)["findings"]}
        assert rule_ids == {
            "CONCURRENCY.WAITGROUP_COPY",
            "CONCURRENCY.WAITGROUP_ADD_RACE",
            "CONCURRENCY.EMPTY_INFINITE_LOOP",
        }

    def test_fail_on(self, runner, buggy):
        """Test that --fail-on lowers or raises the threshold."""
        sleep_only = ["check", "-r", "STDLIB.SLEEP_CONSTANT", buggy]
        assert runner.invoke(cli, [*sleep_only, "--fail-on", "medium"]).exit_code == 1
        assert runner.invoke(cli, ["check", buggy, "--fail-on", "critical"]).exit_code == 0

    def test_config_file(self, runner, buggy, tmp_path):
        """Test --config disabling a rule and changing the threshold."""
        config = tmp_path / "ci.json"
        config.write_text(
            json.dumps(
                {
                    "failOnSeverity": "low",
                    "rules": {"STDLIB.BINARY_WRITE_LAYOUT": {"enabled": False}},
                }
            )
        )

        result = runner.invoke(cli, ["check", "--config", str(config), "--format", "json", buggy])

        assert result.exit_code == 1
        rule_ids = [f["rule_id"] for f in json.loads(result.stdout)["findings"]]
        assert "STDLIB.BINARY_WRITE_LAYOUT" not in rule_ids
        assert json.loads(result.stdout)["rules_executed"] == 7

    def test_unknown_rule(self, runner, buggy):
        """Test that an unknown rule id exits with status 2."""
        result = runner.invoke(cli, ["check", "-r", "STDLIB.NOPE", buggy])
        assert result.exit_code == 2
        assert "Unknown rule(s): STDLIB.NOPE" in result.stderr
        assert "bugvet rules" in result.stderr

    def test_bad_dump(self, runner, tmp_path):
        """Test that a malformed dump exits with status 2."""
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({"version": 9, "path": "x.go", "root": {"kind": "File"}}))

        result = runner.invoke(cli, ["check", str(bad)])

        assert result.exit_code == 2
        assert "Cannot load dump" in result.stderr
        assert "unsupported dump version 9" in result.stderr

    def test_bad_config(self, runner, buggy, tmp_path):
        """Test that an invalid explicit config exits with status 2."""
        config = tmp_path / "bad.json"
        config.write_text("{not json")
        result = runner.invoke(cli, ["check", "--config", str(config), buggy])
        assert result.exit_code == 2
        assert "Invalid configuration" in result.stderr

    def test_quiet_and_verbose(self, runner, buggy):
        """Test that --quiet and --verbose conflict."""
        result = runner.invoke(cli, ["check", "-q", "-v", buggy])
        assert result.exit_code == 2

    def test_quiet_hides_summary(self, runner, clean):
        """Test that --quiet drops the summary line."""
        result = runner.invoke(cli, ["check", "-q", clean])
        assert result.exit_code == 0
        assert result.stderr == ""

    def test_log_file(self, runner, clean, tmp_path):
        """Test that --log-file receives debug records."""
        log_file = tmp_path / "logs" / "bugvet.log"
        result = runner.invoke(cli, ["check", "--log-file", str(log_file), clean])
        assert result.exit_code == 0
        assert log_file.exists()


class TestRulesCommand:
    """Tests for bugvet rules."""

    def test_text(self, runner):
        """Test the rule listing."""
        result = runner.invoke(cli, ["rules"])
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert len(lines) == 8
        assert lines[0].startswith("LITERALS.INVALID_REGEX")
        assert "Suspicious Sleep Duration" in result.output

    def test_json_with_category(self, runner):
        """Test JSON listing filtered by category."""
        result = runner.invoke(cli, ["rules", "--format", "json", "-c", "stdlib"])
        data = json.loads(result.stdout)
        assert [r["rule_id"] for r in data] == [
            "STDLIB.BINARY_WRITE_LAYOUT",
            "STDLIB.SLEEP_CONSTANT",
        ]
        assert data[1]["parameters"] == {"maxSuspicious": 120}
        assert data[1]["severity"] == "medium"
