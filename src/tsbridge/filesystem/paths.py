# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Helpers for reasoning about filesystem paths."""

from __future__ import annotations

from os import PathLike
from pathlib import Path

_Pathish = str | PathLike[str] | Path


def _best_effort_resolve(path: Path) -> Path:
    """Return ``path`` resolved where possible without raising.

    Args:
        path: Candidate path to resolve.

    Returns:
        Path: Absolute variant when resolution succeeds; otherwise the closest
        achievable approximation.

    """

    try:
        return path.resolve(strict=False)
    except (OSError, RuntimeError):
        return path.absolute() if not path.is_absolute() else path


def absolute_key(path: _Pathish) -> str:
    """Return the lookup key used to match engine-reported paths to source files.

    The external engine echoes absolute paths back in its responses. Both sides
    are resolved so that symlinked roots and ``..`` segments compare equal.

    Args:
        path: Path reported by the engine or owned by a source file.

    Returns:
        str: POSIX-style absolute representation.

    Raises:
        ValueError: If ``path`` is ``None``.

    """

    if path is None:
        raise ValueError("path must not be None")
    return _best_effort_resolve(Path(path).expanduser()).as_posix()


def is_within(path: _Pathish, root: _Pathish) -> bool:
    """Return whether ``path`` lies at or below ``root`` once both are resolved.

    Args:
        path: Candidate path.
        root: Directory acting as the upper bound.

    Returns:
        bool: ``True`` when ``path`` is ``root`` or one of its descendants.

    """

    candidate = _best_effort_resolve(Path(path))
    base = _best_effort_resolve(Path(root))
    return candidate == base or base in candidate.parents


def display_relative_path(path: _Pathish, root: _Pathish) -> str:
    """Return a display-friendly representation of ``path`` relative to ``root``.

    Args:
        path: Path to present to the user.
        root: Base directory used for relativisation.

    Returns:
        str: Relative POSIX path when ``path`` sits below ``root``, otherwise the
        resolved absolute representation.

    """

    candidate = _best_effort_resolve(Path(path))
    base = _best_effort_resolve(Path(root))
    try:
        return candidate.relative_to(base).as_posix()
    except ValueError:
        return candidate.as_posix()


__all__ = (
    "absolute_key",
    "display_relative_path",
    "is_within",
)
