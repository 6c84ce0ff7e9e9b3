"""Click-based CLI interface for bugvet."""

import json
import sys
from pathlib import Path
from typing import Any

import click

from . import __version__
from .errors import CLIError
from .logging_config import setup_logging
from .rules.base import Finding, Severity
from .rules.config import RuleEngineConfigLoader
from .rules.engine import RuleEngine, RuleEngineResult
from .rules.registry import default_registry
from .syntax.loader import load_dump

SEVERITY_CHOICES = [s.value for s in Severity]

SEVERITY_COLORS = {
    Severity.CRITICAL: "magenta",
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "cyan",
}


def common_options(f: Any) -> Any:
    """Common options for commands."""
    f = click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")(f)
    f = click.option("--quiet", "-q", is_flag=True, help="Suppress non-error output")(f)
    f = click.option(
        "--config",
        "config_path",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        help="Configuration file layered over the discovered ones",
    )(f)
    return f


def _format_finding(finding: Finding) -> str:
    severity = click.style(
        finding.severity.value, fg=SEVERITY_COLORS.get(finding.severity)
    )
    return f"{finding.location}: {finding.message} ({finding.rule_id}) [{severity}]"


def _echo_text(result: RuleEngineResult, quiet: bool) -> None:
    for finding in result.sorted_findings():
        click.echo(_format_finding(finding))
    for error in result.errors:
        click.echo(
            f"{error.file_path}:{error.line}: rule {error.rule_id} failed: "
            f"{error.error_message}",
            err=True,
        )
    if not quiet:
        noun = "finding" if len(result.findings) == 1 else "findings"
        click.echo(
            f"{len(result.findings)} {noun} in {result.files_analyzed} file(s), "
            f"{result.rules_executed} rule(s) run",
            err=True,
        )


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """bugvet - find likely bugs in type-checked Go programs."""


@cli.command()
@click.argument(
    "dumps",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option("--rule", "-r", "rule_ids", multiple=True, help="Only run this rule id (repeatable)")
@click.option(
    "--category", "-c", "categories", multiple=True, help="Only run this category (repeatable)"
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)
@click.option(
    "--fail-on",
    type=click.Choice(SEVERITY_CHOICES),
    help="Lowest severity that makes the command fail (default from config)",
)
@click.option("--sequential", is_flag=True, help="Analyse files one at a time")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write debug logs to this file",
)
@common_options
def check(
    dumps,
    rule_ids,
    categories,
    output_format,
    fail_on,
    sequential,
    log_file,
    verbose,
    quiet,
    config_path,
):
    """Check syntax/type dumps produced by the Go front end.

    Exits with status 1 when a finding reaches the fail-on severity and
    status 2 when a dump or configuration cannot be loaded.
    """
    if quiet and verbose:
        click.echo("Error: --quiet and --verbose are mutually exclusive", err=True)
        sys.exit(2)

    setup_logging(quiet=quiet, verbose=verbose, log_file=log_file)

    try:
        config = RuleEngineConfigLoader(config_path=config_path).load()
        files = [load_dump(path) for path in dumps]
        engine = RuleEngine(config=config)
        result = engine.run_many(
            files,
            rule_ids=list(rule_ids) or None,
            categories=list(categories) or None,
            parallel=False if sequential else None,
        )
    except CLIError as e:
        click.echo(e.format(use_color=sys.stderr.isatty()), err=True)
        sys.exit(e.exit_code)

    if output_format == "json":
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _echo_text(result, quiet)

    threshold = Severity(fail_on) if fail_on else config.fail_on_severity
    if result.should_block(threshold):
        sys.exit(1)


@cli.command("rules")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)
@click.option("--category", "-c", help="Only list rules in this category")
def list_rules(output_format, category):
    """List the available rules."""
    rules = list(default_registry())
    if category:
        rules = [r for r in rules if r.category == category]

    if output_format == "json":
        data = [
            {
                "rule_id": r.rule_id,
                "name": r.name,
                "category": r.category,
                "severity": r.default_severity.value,
                "description": r.description,
                "parameters": r.parameters,
            }
            for r in rules
        ]
        click.echo(json.dumps(data, indent=2))
        return

    for rule in rules:
        click.echo(
            f"{rule.rule_id:<34} {rule.default_severity.value:<8} {rule.name}"
        )


def main() -> None:
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    main()
