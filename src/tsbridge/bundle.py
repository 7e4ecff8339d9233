# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Executable bundle abstraction supplying the engine command lines."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Final, Protocol, runtime_checkable

from .constants import CONFIG_FILE_NAME
from .errors import BundleNotDeployedError
from .models import Command, SourceFile
from .protocol import MetricsProtocol, RuleCheckScope
from .rules.activation import RuleActivation

CORE_DIR_NAME: Final[str] = "sonarts-core"
RULE_CHECK_ENTRY: Final[str] = "node_modules/tslint/bin/tslint"
METRICS_ENTRY: Final[str] = "node_modules/tslint-sonarts/bin/tsmetrics"
RULE_CONFIG_NAME: Final[str] = "tslint.json"


@runtime_checkable
class ExecutableBundle(Protocol):
    """Collaborator exposing the commands that drive the external engine.

    The bundle is expected to be deployed before the first invocation; the
    core only consumes the commands it hands out.
    """

    @property
    def metrics_protocol(self) -> MetricsProtocol:
        """Return the request shape accepted by :meth:`metrics_command`."""
        ...

    @property
    def rule_check_scope(self) -> RuleCheckScope:
        """Return whether the rule check runs once per project or once per unit."""
        ...

    def rule_check_command(self, target: Path, sources: Sequence[SourceFile]) -> Command:
        """Return the rule-check command for ``target``.

        Args:
            target: Project root, or a unit's configuration file in unit scope.
            sources: Files the invocation is expected to cover.

        Returns:
            Command: Command whose standard output is a JSON failure array.
        """
        ...

    def metrics_command(self) -> Command:
        """Return the metrics command reading requests from standard input."""
        ...


class DeployedBundle:
    """Bundle backed by an engine tree already extracted to ``bundle_dir``."""

    def __init__(
        self,
        bundle_dir: Path,
        *,
        node: str = "node",
        metrics_protocol: MetricsProtocol = MetricsProtocol.FILE_WITH_PATH,
        rule_check_scope: RuleCheckScope = RuleCheckScope.PROJECT,
        config_file_name: str = CONFIG_FILE_NAME,
    ) -> None:
        """Describe a deployed engine bundle.

        Args:
            bundle_dir: Directory the bundle archive was extracted into.
            node: Node.js executable used to launch the entry points.
            metrics_protocol: Request shape understood by the metrics entry point.
            rule_check_scope: Addressing mode of the rule-check entry point.
            config_file_name: Configuration file handed to ``--project``.
        """

        self._bundle_dir = bundle_dir
        self._node = node
        self._metrics_protocol = metrics_protocol
        self._rule_check_scope = rule_check_scope
        self._config_file_name = config_file_name

    @property
    def metrics_protocol(self) -> MetricsProtocol:
        return self._metrics_protocol

    @property
    def rule_check_scope(self) -> RuleCheckScope:
        return self._rule_check_scope

    @property
    def core_dir(self) -> Path:
        """Return the directory holding the engine's node modules."""

        return self._bundle_dir / CORE_DIR_NAME

    @property
    def rule_config_path(self) -> Path:
        """Return the path of the generated rule configuration."""

        return self.core_dir / RULE_CONFIG_NAME

    def ensure_deployed(self) -> Path:
        """Return :attr:`core_dir` after checking it exists.

        Raises:
            BundleNotDeployedError: If the bundle has not been extracted.
        """

        core = self.core_dir
        if not core.is_dir():
            raise BundleNotDeployedError(f"Engine bundle is not deployed at {core}")
        return core

    def rule_check_command(self, target: Path, sources: Sequence[SourceFile]) -> Command:
        """Return the tslint invocation type-checking the project at ``target``.

        Args:
            target: Project root directory or configuration file path.
            sources: Files covered by the invocation; the engine reads them
                through the project configuration.

        Returns:
            Command: Rule-check command.
        """

        core = self.ensure_deployed()
        project = target / self._config_file_name if target.is_dir() else target
        return Command.of(
            self._node,
            core / RULE_CHECK_ENTRY,
            "--config",
            self.rule_config_path,
            "--format",
            "json",
            "--type-check",
            "--project",
            project,
        )

    def metrics_command(self) -> Command:
        """Return the metrics invocation."""

        return Command.of(self._node, self.ensure_deployed() / METRICS_ENTRY)

    def activate_rules(self, activation: RuleActivation) -> Path:
        """Write the rule configuration consumed by the rule-check entry point.

        Args:
            activation: Rules activated by the host.

        Returns:
            Path: Written configuration file.

        Raises:
            BundleNotDeployedError: If the bundle has not been extracted.
        """

        self.ensure_deployed()
        return activation.write(self.rule_config_path)


__all__ = [
    "CORE_DIR_NAME",
    "DeployedBundle",
    "ExecutableBundle",
    "METRICS_ENTRY",
    "RULE_CHECK_ENTRY",
    "RULE_CONFIG_NAME",
]
