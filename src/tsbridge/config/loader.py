# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Layered configuration loading from ``pyproject.toml`` and ``.tsbridge.toml``.

Both files carry the same three tables (``execution``, ``analysis`` and
``output``); in ``pyproject.toml`` they live under ``[tool.tsbridge]``. Values
missing from every file fall back to the model defaults.
"""

from __future__ import annotations

import tomllib
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Final, Protocol

from pydantic import ValidationError

from ..errors import ConfigError
from .models import Config

PROJECT_CONFIG_NAME: Final[str] = ".tsbridge.toml"
PYPROJECT_NAME: Final[str] = "pyproject.toml"
PYPROJECT_TABLE: Final[tuple[str, ...]] = ("tool", "tsbridge")
CONFIG_SECTIONS: Final[frozenset[str]] = frozenset(Config.model_fields)


class ConfigSource(Protocol):
    """Provide one layer of configuration values."""

    def load(self) -> Mapping[str, Any]:
        """Return the configuration sections supplied by this layer."""
        ...


def _merge_sections(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    merged: dict[str, Any] = {section: dict(values) for section, values in base.items()}
    for section, values in override.items():
        merged.setdefault(section, {}).update(values)
    return merged


class TomlConfigSource:
    """Read tsbridge sections from a TOML file, optionally below a nested table."""

    def __init__(self, path: Path, *, table: Sequence[str] = ()) -> None:
        """Describe a TOML configuration layer.

        Args:
            path: TOML document to read; a missing file contributes nothing.
            table: Keys leading to the tsbridge table inside the document.
        """

        self.path = path
        self.table = tuple(table)

    def load(self) -> Mapping[str, Any]:
        """Return the validated section mapping of the document.

        Raises:
            ConfigError: If the document is unreadable, not TOML, or contains
                keys that are not tsbridge sections.
        """

        if not self.path.is_file():
            return {}
        try:
            with self.path.open("rb") as handle:
                data: Mapping[str, Any] = tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in {self.path}: {exc}") from exc
        except OSError as exc:
            raise ConfigError(f"Cannot read {self.path}: {exc.strerror or exc}") from exc
        for key in self.table:
            nested = data.get(key)
            if not isinstance(nested, Mapping):
                return {}
            data = nested

        unknown = sorted(set(data) - CONFIG_SECTIONS)
        if unknown:
            raise ConfigError(f"Unknown configuration section(s) in {self.path}: {', '.join(unknown)}")
        for section, values in data.items():
            if not isinstance(values, Mapping):
                raise ConfigError(f"Configuration section '{section}' in {self.path} must be a table")
        return data


class ConfigLoader:
    """Apply layered configuration sources with predictable precedence."""

    def __init__(self, *, project_root: Path, sources: Sequence[ConfigSource]) -> None:
        """Initialise a loader merging ``sources`` in order.

        Args:
            project_root: Directory that anchors relative paths.
            sources: Ordered configuration layers; later layers override
                earlier ones key by key within each section.
        """

        self._sources = list(sources)
        self._project_root = project_root.resolve()

    @classmethod
    def for_root(cls, project_root: Path, *, project_config: Path | None = None) -> ConfigLoader:
        """Build a loader reading ``pyproject.toml`` then the project file.

        Args:
            project_root: Workspace root used to discover configuration files.
            project_config: Optional override for the ``.tsbridge.toml`` location.

        Returns:
            ConfigLoader: Loader configured with default precedence ordering.
        """

        root = project_root.resolve()
        project_file = project_config if project_config is not None else root / PROJECT_CONFIG_NAME
        return cls(
            project_root=root,
            sources=[
                TomlConfigSource(root / PYPROJECT_NAME, table=PYPROJECT_TABLE),
                TomlConfigSource(project_file),
            ],
        )

    @property
    def sources(self) -> list[ConfigSource]:
        """Return the configured sources in precedence order."""

        return list(self._sources)

    def load(self) -> Config:
        """Return the merged and validated configuration.

        Returns:
            Config: Configuration with relative paths anchored at the project root.

        Raises:
            ConfigError: If a source is unreadable or the merged data is invalid.
        """

        merged: dict[str, Any] = {}
        for source in self._sources:
            merged = _merge_sections(merged, source.load())
        try:
            config = Config.model_validate(merged)
        except ValidationError as exc:
            raise ConfigError(f"Invalid configuration: {exc}") from exc
        return self._anchor_paths(config)

    def _anchor_paths(self, config: Config) -> Config:
        analysis = config.analysis
        analysis.excludes = [self._anchor(path) for path in analysis.excludes]
        analysis.lcov_report_paths = [self._anchor(path) for path in analysis.lcov_report_paths]
        if config.execution.bundle_dir is not None:
            config.execution.bundle_dir = self._anchor(config.execution.bundle_dir)
        return config

    def _anchor(self, path: Path) -> Path:
        return path if path.is_absolute() else self._project_root / path


def load_config(project_root: Path, *, project_config: Path | None = None) -> Config:
    """Load configuration for ``project_root`` using the default source layering."""

    return ConfigLoader.for_root(project_root, project_config=project_config).load()


__all__ = [
    "CONFIG_SECTIONS",
    "ConfigLoader",
    "ConfigSource",
    "PROJECT_CONFIG_NAME",
    "TomlConfigSource",
    "load_config",
]
