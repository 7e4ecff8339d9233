# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Analysis run orchestration."""

from __future__ import annotations

from .orchestrator import AnalysisOrchestrator, MetricsResult, MetricsTarget

__all__ = ["AnalysisOrchestrator", "MetricsResult", "MetricsTarget"]
