# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Projection of engine results onto host storage."""

from __future__ import annotations

from .host import FileRecord, HostSink, InMemoryHost
from .projector import FailureProjection, ResultProjector

__all__ = ["FailureProjection", "FileRecord", "HostSink", "InMemoryHost", "ResultProjector"]
