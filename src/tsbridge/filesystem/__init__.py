# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Filesystem helpers shared across discovery and result routing."""

from __future__ import annotations

from .paths import absolute_key, display_relative_path, is_within

__all__ = ["absolute_key", "display_relative_path", "is_within"]
