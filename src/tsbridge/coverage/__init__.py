# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Coverage report import."""

from __future__ import annotations

from .lcov import import_lcov, parse_lcov

__all__ = ["import_lcov", "parse_lcov"]
