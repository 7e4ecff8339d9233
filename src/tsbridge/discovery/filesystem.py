# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Filesystem discovery of analysable source files."""

from __future__ import annotations

import os
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from ..config.models import AnalysisConfig
from ..constants import ALWAYS_EXCLUDE_DIRS
from ..models import SourceFile


@dataclass(frozen=True, slots=True)
class WalkContext:
    """Parameters required to walk the filesystem hierarchy."""

    root: Path
    suffixes: tuple[str, ...]
    excludes: frozenset[Path]
    follow_symlinks: bool


class FilesystemDiscovery:
    """Traverse the project tree collecting files with analysable suffixes."""

    def __init__(self, *, follow_symlinks: bool = False) -> None:
        """Create a discovery strategy optionally following symlinks.

        Args:
            follow_symlinks: When ``True`` walk directories pointed to by
                symlinks instead of skipping them.
        """

        self.follow_symlinks = follow_symlinks

    def discover(self, config: AnalysisConfig, root: Path) -> list[SourceFile]:
        """Return source files under ``root`` matching ``config``.

        Args:
            config: Analysis configuration providing suffixes and excludes.
            root: Project root directory.

        Returns:
            list[SourceFile]: Discovered files ordered by path.
        """

        resolved_root = root.resolve()
        context = WalkContext(
            root=resolved_root,
            suffixes=tuple(suffix.lower() for suffix in config.file_suffixes),
            excludes=frozenset((resolved_root / path).resolve() for path in config.excludes),
            follow_symlinks=self.follow_symlinks,
        )
        found = {path.as_posix(): path for path in self._walk(context)}
        return [SourceFile(path=found[key]) for key in sorted(found)]

    def _walk(self, context: WalkContext) -> Iterator[Path]:
        """Walk ``context.root`` yielding files within scope.

        Args:
            context: Immutable walk context containing traversal settings.

        Yields:
            Path: Resolved files whose suffix is analysable.
        """

        for dirpath, dirnames, filenames in os.walk(context.root, followlinks=context.follow_symlinks):
            current = Path(dirpath)
            dirnames[:] = sorted(name for name in dirnames if not self._should_skip_directory(current / name, context))
            for filename in filenames:
                candidate = current / filename
                if not filename.lower().endswith(context.suffixes):
                    continue
                resolved = candidate.resolve()
                if resolved in context.excludes or any(parent in context.excludes for parent in resolved.parents):
                    continue
                yield resolved

    @staticmethod
    def _should_skip_directory(directory: Path, context: WalkContext) -> bool:
        """Return ``True`` when ``directory`` must not be traversed."""

        if directory.name in ALWAYS_EXCLUDE_DIRS:
            return True
        return directory.resolve() in context.excludes


__all__ = ["FilesystemDiscovery", "WalkContext"]
