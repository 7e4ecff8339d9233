# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the deployed engine bundle."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from tsbridge.bundle import CORE_DIR_NAME, METRICS_ENTRY, RULE_CHECK_ENTRY, DeployedBundle, ExecutableBundle
from tsbridge.errors import BundleNotDeployedError
from tsbridge.protocol import MetricsProtocol, RuleCheckScope
from tsbridge.rules import RuleActivation


@pytest.fixture
def bundle_dir(tmp_path: Path) -> Path:
    (tmp_path / "bundle" / CORE_DIR_NAME).mkdir(parents=True)
    return tmp_path / "bundle"


def test_rule_check_command_targets_project_configuration(bundle_dir: Path, tmp_path: Path) -> None:
    bundle = DeployedBundle(bundle_dir, node="/opt/node/bin/node")
    core = bundle_dir / CORE_DIR_NAME

    command = bundle.rule_check_command(tmp_path, [])

    assert command.argv() == [
        "/opt/node/bin/node",
        str(core / RULE_CHECK_ENTRY),
        "--config",
        str(core / "tslint.json"),
        "--format",
        "json",
        "--type-check",
        "--project",
        str(tmp_path / "tsconfig.json"),
    ]


def test_unit_scope_passes_configuration_file_through(bundle_dir: Path, tmp_path: Path) -> None:
    config = tmp_path / "lib" / "tsconfig.app.json"
    bundle = DeployedBundle(bundle_dir, rule_check_scope=RuleCheckScope.UNIT, metrics_protocol=MetricsProtocol.BATCH)

    command = bundle.rule_check_command(config, [])

    assert command.arguments[-1] == str(config)
    assert bundle.rule_check_scope is RuleCheckScope.UNIT
    assert bundle.metrics_protocol is MetricsProtocol.BATCH
    assert isinstance(bundle, ExecutableBundle)


def test_metrics_command(bundle_dir: Path) -> None:
    command = DeployedBundle(bundle_dir).metrics_command()

    assert command.argv() == ["node", str(bundle_dir / CORE_DIR_NAME / METRICS_ENTRY)]


def test_missing_bundle_is_reported(tmp_path: Path) -> None:
    bundle = DeployedBundle(tmp_path / "absent")

    with pytest.raises(BundleNotDeployedError, match="absent"):
        bundle.metrics_command()
    with pytest.raises(BundleNotDeployedError):
        bundle.activate_rules(RuleActivation.default_profile())


def test_activate_rules_writes_engine_configuration(bundle_dir: Path) -> None:
    bundle = DeployedBundle(bundle_dir)

    written = bundle.activate_rules(RuleActivation.default_profile())

    assert written == bundle.rule_config_path
    assert json.loads(written.read_text(encoding="utf-8"))["rules"]["no-unconditional-jump"] is True
