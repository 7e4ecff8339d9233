# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Command line entry point running the bridge against an in-memory host."""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.table import Table

from ..bundle import DeployedBundle
from ..config import Config, load_config
from ..console import configure_logging, fail, get_console_manager, info, ok, section, warn
from ..discovery import ConfigUnitResolver, FilesystemDiscovery
from ..errors import BridgeError, ConfigError, UnmappedRuleKeyError
from ..models import Issue, JsonValue, RunOutcome
from ..orchestration import AnalysisOrchestrator
from ..projection import InMemoryHost
from ..protocol import MetricsProtocol, RuleCheckScope
from ..rules import RULE_CATALOG, SONAR_WAY_PROFILE, RuleActivation, parse_active_rules
from ..runtime import CommandOptions, ProcessInvoker
from .typer_ext import command_options, create_typer

app = create_typer(help="Bridge a static-analysis host to the external TypeScript engine.", no_args_is_help=True)

_CANCELLED_EXIT_CODE = 130


@app.command(**command_options())
def analyze(
    root: Path = typer.Argument(Path("."), help="Project root to analyse."),
    bundle_dir: Path | None = typer.Option(None, "--bundle-dir", "-b", help="Directory holding the deployed engine bundle."),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Configuration file overriding .tsbridge.toml."),
    node: str | None = typer.Option(None, "--node", help="Node.js executable used to run the engine."),
    jobs: int | None = typer.Option(None, "--jobs", "-j", min=1, help="Concurrent metrics invocations."),
    timeout: float | None = typer.Option(None, "--timeout", min=1.0, help="Per-process timeout in seconds."),
    metrics_protocol: MetricsProtocol | None = typer.Option(None, "--metrics-protocol", help="Metrics request shape."),
    rule_check_scope: RuleCheckScope | None = typer.Option(None, "--rule-check-scope", help="Rule-check addressing mode."),
    as_json: bool = typer.Option(False, "--json", help="Print the run outcome as JSON."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable ANSI colour output."),
    no_emoji: bool = typer.Option(False, "--no-emoji", help="Disable emoji output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug diagnostics to stderr."),
) -> None:
    """Discover sources, run the engine and report issues and metrics."""

    project_root = root.resolve()
    try:
        config = load_config(project_root, project_config=config_file)
    except ConfigError as exc:
        fail(str(exc), use_emoji=not no_emoji, use_color=not no_color)
        raise typer.Exit(code=1) from exc
    _apply_overrides(
        config,
        bundle_dir=bundle_dir,
        node=node,
        jobs=jobs,
        timeout=timeout,
        metrics_protocol=metrics_protocol,
        rule_check_scope=rule_check_scope,
        no_color=no_color,
        no_emoji=no_emoji,
    )
    use_color = config.output.color
    use_emoji = config.output.emoji
    configure_logging(verbose=verbose, use_color=use_color)

    if config.execution.bundle_dir is None:
        fail("No engine bundle directory configured; pass --bundle-dir", use_emoji=use_emoji, use_color=use_color)
        raise typer.Exit(code=1)

    host = InMemoryHost()
    orchestrator: AnalysisOrchestrator | None = None
    try:
        activation = _activation(config)
        analysis = config.analysis
        bundle = DeployedBundle(
            config.execution.bundle_dir,
            node=config.execution.node,
            metrics_protocol=analysis.metrics_protocol,
            rule_check_scope=analysis.rule_check_scope,
            config_file_name=analysis.config_file_name,
        )
        bundle.activate_rules(activation)
        files = FilesystemDiscovery().discover(analysis, project_root)
        orchestrator = AnalysisOrchestrator(
            mapper=activation.mapper(),
            host=host,
            invoker=ProcessInvoker(CommandOptions(cwd=project_root, timeout=config.execution.timeout_s)),
            resolver=ConfigUnitResolver(config_file_name=analysis.config_file_name),
            jobs=config.execution.jobs,
            lcov_report_paths=analysis.lcov_report_paths,
        )
        outcome = orchestrator.run(files, project_root, bundle)
    except KeyboardInterrupt as exc:
        if orchestrator is not None:
            orchestrator.cancel()
        fail("Analysis cancelled", use_emoji=use_emoji, use_color=use_color)
        raise typer.Exit(code=_CANCELLED_EXIT_CODE) from exc
    except (BridgeError, UnmappedRuleKeyError) as exc:
        fail(str(exc), use_emoji=use_emoji, use_color=use_color)
        raise typer.Exit(code=1) from exc

    if as_json:
        payload = outcome.to_dict()
        payload["issue_list"] = [_issue_payload(issue, outcome.root) for issue in host.issues]
        typer.echo(json.dumps(payload, indent=2))
        return
    _render_outcome(outcome, host, use_color=use_color, use_emoji=use_emoji)


@app.command(**command_options())
def rules(
    no_color: bool = typer.Option(False, "--no-color", help="Disable ANSI colour output."),
) -> None:
    """Print the rule mapping table and the default quality profile."""

    console = get_console_manager().get(color=not no_color, emoji=False)
    table = Table(title="Rule mapping")
    table.add_column("Host key")
    table.add_column("Engine key")
    table.add_column("Default profile")
    table.add_column("Name")
    for host_key in sorted(RULE_CATALOG):
        definition = RULE_CATALOG[host_key]
        table.add_row(
            host_key,
            definition.external_key,
            "yes" if host_key in SONAR_WAY_PROFILE else "",
            definition.name,
        )
    console.print(table)


def _apply_overrides(
    config: Config,
    *,
    bundle_dir: Path | None,
    node: str | None,
    jobs: int | None,
    timeout: float | None,
    metrics_protocol: MetricsProtocol | None,
    rule_check_scope: RuleCheckScope | None,
    no_color: bool,
    no_emoji: bool,
) -> None:
    execution = config.execution
    if bundle_dir is not None:
        execution.bundle_dir = bundle_dir.resolve()
    if node is not None:
        execution.node = node
    if jobs is not None:
        execution.jobs = jobs
    if timeout is not None:
        execution.timeout_s = timeout
    if metrics_protocol is not None:
        config.analysis.metrics_protocol = metrics_protocol
    if rule_check_scope is not None:
        config.analysis.rule_check_scope = rule_check_scope
    if no_color:
        config.output.color = False
    if no_emoji:
        config.output.emoji = False


def _activation(config: Config) -> RuleActivation:
    entries = config.analysis.active_rules
    if entries is None:
        return RuleActivation.default_profile()
    return RuleActivation.resolve(parse_active_rules(entries))


def _issue_payload(issue: Issue, root: Path) -> dict[str, JsonValue]:
    text_range = issue.text_range
    return {
        "rule": str(issue.rule_key),
        "file": issue.file.display(root),
        "line": text_range.start_line,
        "column": text_range.start_offset,
        "end_line": text_range.end_line,
        "end_column": text_range.end_offset,
        "message": issue.message,
    }


def _render_outcome(outcome: RunOutcome, host: InMemoryHost, *, use_color: bool, use_emoji: bool) -> None:
    section("tsbridge", use_color=use_color)
    info(
        f"{len(outcome.units)} configuration unit(s), {sum(len(unit.files) for unit in outcome.units)} file(s)",
        use_emoji=use_emoji,
        use_color=use_color,
    )
    issues = sorted(
        host.issues,
        key=lambda issue: (issue.file.key, issue.text_range.start_line, issue.text_range.start_offset),
    )
    if issues:
        table = Table(title="Issues")
        table.add_column("File")
        table.add_column("Line", justify="right")
        table.add_column("Rule")
        table.add_column("Message")
        for issue in issues:
            table.add_row(
                issue.file.display(outcome.root),
                str(issue.text_range.start_line),
                str(issue.rule_key),
                issue.message or "",
            )
        get_console_manager().get(color=use_color, emoji=use_emoji).print(table)
    for diagnostic in outcome.diagnostics:
        warn(diagnostic.message, use_emoji=use_emoji, use_color=use_color)
    ok(
        f"{outcome.issues} issue(s), metrics for {len(outcome.analyzed_files)} file(s), "
        f"{len(outcome.metrics_failures)} metrics failure(s)",
        use_emoji=use_emoji,
        use_color=use_color,
    )


__all__ = ["app"]
