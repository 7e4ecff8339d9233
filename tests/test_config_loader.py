# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for layered configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from tsbridge.config import AnalysisConfig, ConfigLoader, ExecutionConfig, load_config
from tsbridge.constants import DEFAULT_TIMEOUT_S
from tsbridge.errors import ConfigError
from tsbridge.protocol import MetricsProtocol, RuleCheckScope


def test_defaults_without_configuration_files(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert config.execution.timeout_s == DEFAULT_TIMEOUT_S
    assert config.execution.bundle_dir is None
    assert config.analysis.config_file_name == "tsconfig.json"
    assert config.analysis.rule_check_scope is RuleCheckScope.PROJECT
    assert config.analysis.metrics_protocol is MetricsProtocol.FILE_WITH_PATH
    assert config.analysis.active_rules is None


def test_project_file_overrides_pyproject(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text(
        '[project]\nname = "demo"\n\n'
        "[tool.tsbridge.execution]\njobs = 2\ntimeout_s = 30\n\n"
        '[tool.tsbridge.analysis]\nexcludes = ["dist"]\n',
        encoding="utf-8",
    )
    (tmp_path / ".tsbridge.toml").write_text(
        '[execution]\njobs = 5\nbundle_dir = "engine"\n\n'
        '[analysis]\nmetrics_protocol = "batch"\nactive_rules = ["S1751", { key = "S138", params = { max = 80 } }]\n',
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    root = tmp_path.resolve()
    assert config.execution.jobs == 5
    assert config.execution.timeout_s == 30
    assert config.execution.bundle_dir == root / "engine"
    assert config.analysis.excludes == [root / "dist"]
    assert config.analysis.metrics_protocol is MetricsProtocol.BATCH
    assert config.analysis.active_rules == ["S1751", {"key": "S138", "params": {"max": 80}}]


def test_later_layer_overrides_keys_within_a_section(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text(
        '[tool.tsbridge.analysis]\nfile_suffixes = ["ts"]\nconfig_file_name = "base.json"\n',
        encoding="utf-8",
    )
    (tmp_path / ".tsbridge.toml").write_text('[analysis]\nconfig_file_name = "app.json"\n', encoding="utf-8")

    config = load_config(tmp_path)

    assert config.analysis.file_suffixes == [".ts"]
    assert config.analysis.config_file_name == "app.json"


def test_pyproject_without_tsbridge_table_is_ignored(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text('[project]\nname = "demo"\n\n[tool.black]\nline-length = 99\n', encoding="utf-8")

    assert load_config(tmp_path).analysis.config_file_name == "tsconfig.json"


def test_explicit_project_config_path(tmp_path: Path) -> None:
    custom = tmp_path / "ci" / "bridge.toml"
    custom.parent.mkdir()
    custom.write_text('[analysis]\nlcov_report_paths = ["coverage/lcov.info"]\n', encoding="utf-8")

    config = load_config(tmp_path, project_config=custom)

    assert config.analysis.lcov_report_paths == [tmp_path.resolve() / "coverage" / "lcov.info"]


def test_unknown_section_is_rejected(tmp_path: Path) -> None:
    (tmp_path / ".tsbridge.toml").write_text("[excecution]\njobs = 2\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="excecution"):
        load_config(tmp_path)


@pytest.mark.parametrize(
    "document",
    [
        "[execution\n",
        "[execution]\njobs = 0\n",
        '[analysis]\nmetrics_protocol = "carrier-pigeon"\n',
        "[analysis]\nfile_suffixes = []\n",
        "include = 7\n",
        "analysis = 3\n",
    ],
)
def test_invalid_configuration_raises_config_error(tmp_path: Path, document: str) -> None:
    (tmp_path / ".tsbridge.toml").write_text(document, encoding="utf-8")

    with pytest.raises(ConfigError):
        ConfigLoader.for_root(tmp_path).load()


def test_suffix_normalisation_and_assignment_validation() -> None:
    analysis = AnalysisConfig(file_suffixes=["ts", " .tsx ", ""])

    assert analysis.file_suffixes == [".ts", ".tsx"]
    with pytest.raises(ValueError):
        ExecutionConfig(timeout_s=0)
