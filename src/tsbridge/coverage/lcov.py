# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Import line and branch coverage from LCOV tracefiles."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Final

from ..filesystem.paths import absolute_key
from ..models import DiagnosticKind, LineCoverage, RunDiagnostic, SourceFile
from ..projection.host import HostSink
from ..projection.projector import dangling_reference

LOGGER = logging.getLogger(__name__)

_SOURCE_FILE: Final[str] = "SF:"
_LINE_DATA: Final[str] = "DA:"
_BRANCH_DATA: Final[str] = "BRDA:"
_END_OF_RECORD: Final[str] = "end_of_record"


def parse_lcov(text: str, project_root: Path) -> dict[str, LineCoverage]:
    """Parse an LCOV tracefile into coverage keyed by absolute file path.

    Records for the same file are merged. Malformed ``DA``/``BRDA`` lines are
    skipped.

    Args:
        text: Tracefile contents.
        project_root: Base directory for relative ``SF:`` paths.

    Returns:
        dict[str, LineCoverage]: Coverage per :func:`absolute_key`.
    """

    coverage: dict[str, LineCoverage] = {}
    current: LineCoverage | None = None
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if line.startswith(_SOURCE_FILE):
            path = Path(line[len(_SOURCE_FILE) :])
            if not path.is_absolute():
                path = project_root / path
            current = coverage.setdefault(absolute_key(path), LineCoverage())
        elif line == _END_OF_RECORD:
            current = None
        elif current is None:
            continue
        elif line.startswith(_LINE_DATA):
            _parse_line_data(current, line[len(_LINE_DATA) :], lineno)
        elif line.startswith(_BRANCH_DATA):
            _parse_branch_data(current, line[len(_BRANCH_DATA) :], lineno)
    return coverage


def _parse_line_data(coverage: LineCoverage, payload: str, lineno: int) -> None:
    parts = payload.split(",")
    try:
        coverage.add_hits(int(parts[0]), int(parts[1]))
    except (IndexError, ValueError):
        LOGGER.debug("Skipping malformed DA record on line %d: %s", lineno, payload)


def _parse_branch_data(coverage: LineCoverage, payload: str, lineno: int) -> None:
    parts = payload.split(",")
    if len(parts) < 4:
        LOGGER.debug("Skipping malformed BRDA record on line %d: %s", lineno, payload)
        return
    try:
        line = int(parts[0])
        taken = 0 if parts[3] == "-" else int(parts[3])
    except ValueError:
        LOGGER.debug("Skipping malformed BRDA record on line %d: %s", lineno, payload)
        return
    coverage.add_branch(line, taken > 0)


def import_lcov(
    report_paths: Iterable[Path],
    project_root: Path,
    index: Mapping[str, SourceFile],
    host: HostSink,
) -> list[RunDiagnostic]:
    """Save coverage from every report in ``report_paths`` onto ``host``.

    Args:
        report_paths: Tracefiles, relative paths resolved against ``project_root``.
        project_root: Project root directory.
        index: Known source files keyed by absolute path.
        host: Sink receiving the coverage.

    Returns:
        list[RunDiagnostic]: Missing reports and coverage naming unknown files.
    """

    diagnostics: list[RunDiagnostic] = []
    merged: dict[str, LineCoverage] = {}
    for report in report_paths:
        path = report if report.is_absolute() else project_root / report
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            reason = exc.strerror if isinstance(exc, OSError) and exc.strerror else exc
            message = f"Cannot read LCOV report {path}: {reason}"
            LOGGER.error(message)
            diagnostics.append(
                RunDiagnostic(kind=DiagnosticKind.COVERAGE_REPORT_MISSING, message=message, path=path.as_posix()),
            )
            continue
        for key, coverage in parse_lcov(text, project_root).items():
            target = merged.setdefault(key, LineCoverage())
            for line, hits in coverage.hits.items():
                target.add_hits(line, hits)
            for line, (total, covered) in coverage.conditions.items():
                previous_total, previous_covered = target.conditions.get(line, (0, 0))
                target.conditions[line] = (previous_total + total, previous_covered + covered)

    for key in sorted(merged):
        source = index.get(key)
        if source is None:
            diagnostic = dangling_reference(key, "coverage")
            LOGGER.debug(diagnostic.message)
            diagnostics.append(diagnostic)
            continue
        with host.lock_for(source):
            host.save_coverage(source, merged[key])
    return diagnostics


__all__ = ["import_lcov", "parse_lcov"]
