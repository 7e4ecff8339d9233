# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration models for tsbridge runs."""

from __future__ import annotations

import math
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import CONFIG_FILE_NAME, DEFAULT_FILE_SUFFIXES, DEFAULT_TIMEOUT_S
from ..models import JsonValue
from ..protocol import MetricsProtocol, RuleCheckScope


def default_parallel_jobs() -> int:
    """Return 75% of available CPU cores (minimum of 1)."""
    cores = os.cpu_count() or 1
    proposed = max(1, math.floor(cores * 0.75))
    return proposed


class ExecutionConfig(BaseModel):
    """Process execution behaviour."""

    model_config = ConfigDict(validate_assignment=True)

    jobs: int = Field(default_factory=default_parallel_jobs, ge=1)
    timeout_s: float = Field(default=DEFAULT_TIMEOUT_S, gt=0)
    bundle_dir: Path | None = None
    node: str = "node"


class AnalysisConfig(BaseModel):
    """What to analyse and how the engine is addressed."""

    model_config = ConfigDict(validate_assignment=True)

    config_file_name: str = CONFIG_FILE_NAME
    file_suffixes: list[str] = Field(default_factory=lambda: list(DEFAULT_FILE_SUFFIXES))
    excludes: list[Path] = Field(default_factory=list)
    rule_check_scope: RuleCheckScope = RuleCheckScope.PROJECT
    metrics_protocol: MetricsProtocol = MetricsProtocol.FILE_WITH_PATH
    lcov_report_paths: list[Path] = Field(default_factory=list)
    active_rules: list[str | dict[str, JsonValue]] | None = None

    @field_validator("file_suffixes")
    @classmethod
    def _dotted_suffixes(cls, value: list[str]) -> list[str]:
        """Normalise suffixes so each starts with a dot."""

        suffixes = [entry.strip() for entry in value if entry.strip()]
        if not suffixes:
            raise ValueError("at least one file suffix is required")
        return [entry if entry.startswith(".") else f".{entry}" for entry in suffixes]


class OutputConfig(BaseModel):
    """Console rendering preferences."""

    model_config = ConfigDict(validate_assignment=True)

    color: bool = True
    emoji: bool = True


class Config(BaseModel):
    """Top-level configuration combining every section."""

    model_config = ConfigDict(validate_assignment=True)

    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly representation of the configuration."""

        return self.model_dump(mode="json")


__all__ = [
    "AnalysisConfig",
    "Config",
    "ExecutionConfig",
    "OutputConfig",
    "default_parallel_jobs",
]
