# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Group source files by the nearest ancestor configuration file."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from ..constants import CONFIG_FILE_NAME
from ..filesystem.paths import absolute_key, is_within
from ..models import ConfigUnit, SourceFile


@dataclass(frozen=True, slots=True)
class Resolution:
    """Outcome of grouping a file set into configuration units."""

    units: tuple[ConfigUnit, ...]
    unresolved: tuple[SourceFile, ...]

    @property
    def files(self) -> tuple[SourceFile, ...]:
        """Return every resolved file in unit order."""

        return tuple(source for unit in self.units for source in unit.files)


@dataclass(slots=True)
class ConfigUnitResolver:
    """Associate each file with the closest configuration file above it.

    The upward walk starts at the file's directory and stops at the project
    root; directories above the root are never consulted.
    """

    config_file_name: str = CONFIG_FILE_NAME
    _owner_cache: dict[tuple[Path, Path], Path | None] = field(default_factory=dict, init=False, repr=False)

    def resolve(self, files: Iterable[SourceFile], project_root: Path) -> Resolution:
        """Group ``files`` into configuration units.

        Args:
            files: Source files discovered by the host.
            project_root: Upper bound of the ancestor walk.

        Returns:
            Resolution: Units ordered by configuration path with files ordered
            by path, plus the files that have no owning configuration.
        """

        root = Path(absolute_key(project_root))
        self._owner_cache.clear()
        grouped: dict[Path, dict[str, SourceFile]] = {}
        unresolved: dict[str, SourceFile] = {}
        for source in files:
            owner = self.owning_config(source, root)
            if owner is None:
                unresolved[source.key] = source
                continue
            grouped.setdefault(owner, {})[source.key] = source

        units = tuple(
            ConfigUnit(config_path=config, files=tuple(members[key] for key in sorted(members)))
            for config, members in sorted(grouped.items())
        )
        return Resolution(units=units, unresolved=tuple(unresolved[key] for key in sorted(unresolved)))

    def owning_config(self, source: SourceFile, project_root: Path) -> Path | None:
        """Return the configuration file owning ``source`` or ``None``.

        Args:
            source: File whose ancestry is inspected.
            project_root: Upper bound of the walk.

        Returns:
            Path | None: Absolute path of the nearest configuration file.
        """

        project_root = Path(absolute_key(project_root))
        if not is_within(source.path, project_root):
            return None
        visited: list[Path] = []
        owner: Path | None = None
        directory = source.path.parent
        while True:
            if (project_root, directory) in self._owner_cache:
                owner = self._owner_cache[project_root, directory]
                break
            visited.append(directory)
            candidate = directory / self.config_file_name
            if candidate.is_file():
                owner = candidate
                break
            if directory == project_root or directory.parent == directory:
                break
            directory = directory.parent
        for seen in visited:
            self._owner_cache[project_root, seen] = owner
        return owner


__all__ = ["ConfigUnitResolver", "Resolution"]
