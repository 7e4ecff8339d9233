# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Runtime helpers for driving external engine processes."""

from __future__ import annotations

from .process import CommandOptions, ProcessInvoker

__all__ = ["CommandOptions", "ProcessInvoker"]
