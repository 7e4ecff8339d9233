# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Host-side storage operations targeted by result projection."""

from __future__ import annotations

import threading
from collections import defaultdict
from collections.abc import Sequence
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from ..models import CpdTokenRange, HighlightRange, Issue, LineCoverage, SourceFile


@runtime_checkable
class HostSink(Protocol):
    """Mutating operations the analysis host exposes to the bridge.

    Implementations must tolerate calls from several worker threads as long
    as writes for one file happen while holding :meth:`lock_for`.
    """

    def lock_for(self, source: SourceFile) -> AbstractContextManager[object]:
        """Return the lock serialising writes for ``source``."""
        ...

    def create_issue(self, issue: Issue) -> None:
        """Store one rule violation."""
        ...

    def set_measure(self, source: SourceFile, metric: str, value: int) -> None:
        """Store the file-level measure ``metric``."""
        ...

    def set_line_value(self, source: SourceFile, metric: str, line: int, value: int) -> None:
        """Record a per-line value in the line-level store of ``source``."""
        ...

    def save_line_data(self, source: SourceFile) -> None:
        """Commit the line-level values recorded for ``source``."""
        ...

    def mark_nosonar(self, source: SourceFile, lines: Sequence[int]) -> None:
        """Suppress issues reported on ``lines`` of ``source``."""
        ...

    def save_highlighting(self, source: SourceFile, ranges: Sequence[HighlightRange]) -> None:
        """Store the syntax highlighting of ``source``."""
        ...

    def save_cpd_tokens(self, source: SourceFile, tokens: Sequence[CpdTokenRange]) -> None:
        """Store the duplication tokens of ``source``."""
        ...

    def save_coverage(self, source: SourceFile, coverage: LineCoverage) -> None:
        """Store the line and branch coverage of ``source``."""
        ...


@dataclass(slots=True)
class FileRecord:
    """Everything the in-memory host stored for one file."""

    measures: dict[str, int] = field(default_factory=dict)
    pending_lines: dict[str, dict[int, int]] = field(default_factory=lambda: defaultdict(dict))
    line_data: dict[str, dict[int, int]] = field(default_factory=dict)
    nosonar_lines: set[int] = field(default_factory=set)
    highlights: list[HighlightRange] = field(default_factory=list)
    cpd_tokens: list[CpdTokenRange] = field(default_factory=list)
    coverage: LineCoverage | None = None


class InMemoryHost:
    """Thread-safe :class:`HostSink` keeping every write in memory."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._records: dict[str, FileRecord] = {}
        self._issues: list[Issue] = []

    @property
    def issues(self) -> list[Issue]:
        """Return a snapshot of the stored issues."""

        with self._guard:
            return list(self._issues)

    def record(self, source: SourceFile) -> FileRecord:
        """Return the record for ``source``, creating an empty one on first use."""

        with self._guard:
            return self._records.setdefault(source.key, FileRecord())

    def has_record(self, source: SourceFile) -> bool:
        """Return ``True`` when anything other than issues was stored for ``source``."""

        with self._guard:
            return source.key in self._records

    def issues_for(self, source: SourceFile) -> list[Issue]:
        """Return the stored issues attached to ``source``."""

        return [issue for issue in self.issues if issue.file.key == source.key]

    def lock_for(self, source: SourceFile) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(source.key, threading.Lock())

    def create_issue(self, issue: Issue) -> None:
        with self._guard:
            self._issues.append(issue)

    def set_measure(self, source: SourceFile, metric: str, value: int) -> None:
        self.record(source).measures[metric] = value

    def set_line_value(self, source: SourceFile, metric: str, line: int, value: int) -> None:
        self.record(source).pending_lines[metric][line] = value

    def save_line_data(self, source: SourceFile) -> None:
        record = self.record(source)
        for metric, values in record.pending_lines.items():
            record.line_data.setdefault(metric, {}).update(values)
        record.pending_lines.clear()

    def mark_nosonar(self, source: SourceFile, lines: Sequence[int]) -> None:
        self.record(source).nosonar_lines.update(lines)

    def save_highlighting(self, source: SourceFile, ranges: Sequence[HighlightRange]) -> None:
        self.record(source).highlights.extend(ranges)

    def save_cpd_tokens(self, source: SourceFile, tokens: Sequence[CpdTokenRange]) -> None:
        self.record(source).cpd_tokens.extend(tokens)

    def save_coverage(self, source: SourceFile, coverage: LineCoverage) -> None:
        self.record(source).coverage = coverage


__all__ = ["FileRecord", "HostSink", "InMemoryHost"]
