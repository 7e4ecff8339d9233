# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration models and loaders."""

from __future__ import annotations

from .loader import ConfigLoader, TomlConfigSource, load_config
from .models import AnalysisConfig, Config, ExecutionConfig, OutputConfig, default_parallel_jobs

__all__ = [
    "AnalysisConfig",
    "Config",
    "ConfigLoader",
    "ExecutionConfig",
    "OutputConfig",
    "TomlConfigSource",
    "default_parallel_jobs",
    "load_config",
]
