# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shared constants for the analysis bridge."""

from __future__ import annotations

from typing import Final

LANGUAGE_KEY: Final[str] = "ts"
REPOSITORY_KEY: Final[str] = "typescript"
CONFIG_FILE_NAME: Final[str] = "tsconfig.json"
DEFAULT_FILE_SUFFIXES: Final[tuple[str, ...]] = (".ts", ".tsx")
DEFAULT_TIMEOUT_S: Final[float] = 600.0
ALWAYS_EXCLUDE_DIRS: Final[frozenset[str]] = frozenset({".git", ".hg", ".svn", "node_modules"})

NCLOC_KEY: Final[str] = "ncloc"
COMMENT_LINES_KEY: Final[str] = "comment_lines"
FUNCTIONS_KEY: Final[str] = "functions"
STATEMENTS_KEY: Final[str] = "statements"
CLASSES_KEY: Final[str] = "classes"

NCLOC_DATA_KEY: Final[str] = "ncloc_data"
COMMENT_LINES_DATA_KEY: Final[str] = "comment_lines_data"
EXECUTABLE_LINES_DATA_KEY: Final[str] = "executable_lines_data"

__all__ = [
    "ALWAYS_EXCLUDE_DIRS",
    "CLASSES_KEY",
    "COMMENT_LINES_DATA_KEY",
    "COMMENT_LINES_KEY",
    "CONFIG_FILE_NAME",
    "DEFAULT_FILE_SUFFIXES",
    "DEFAULT_TIMEOUT_S",
    "EXECUTABLE_LINES_DATA_KEY",
    "FUNCTIONS_KEY",
    "LANGUAGE_KEY",
    "NCLOC_DATA_KEY",
    "NCLOC_KEY",
    "REPOSITORY_KEY",
    "STATEMENTS_KEY",
]
