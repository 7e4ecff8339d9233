# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Source discovery and configuration-unit resolution."""

from __future__ import annotations

from .config_units import ConfigUnitResolver, Resolution
from .filesystem import FilesystemDiscovery

__all__ = ["ConfigUnitResolver", "FilesystemDiscovery", "Resolution"]
