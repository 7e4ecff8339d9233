# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Project decoded engine responses onto host storage operations.

The engine reports zero-based line numbers and zero-based columns. The host
uses one-based lines, so every line read from a failure, highlight or CPD
token is shifted by one; columns pass through unchanged. Line arrays in the
metrics response (``ncloc`` and friends) already use host numbering.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from ..constants import (
    CLASSES_KEY,
    COMMENT_LINES_DATA_KEY,
    COMMENT_LINES_KEY,
    EXECUTABLE_LINES_DATA_KEY,
    FUNCTIONS_KEY,
    NCLOC_DATA_KEY,
    NCLOC_KEY,
    STATEMENTS_KEY,
)
from ..filesystem.paths import absolute_key
from ..models import (
    CpdTokenRange,
    DiagnosticKind,
    HighlightRange,
    Issue,
    RunDiagnostic,
    SourceFile,
    TextRange,
    TypeOfText,
)
from ..protocol import AnalysisResponse, Failure
from ..rules.mapping import RuleKeyMapper
from .host import HostSink

LOGGER = logging.getLogger(__name__)

_LINE_MARKER = 1


def host_range(start_line: int, start_col: int, end_line: int, end_col: int) -> TextRange:
    """Return the host text range for an engine span given in zero-based lines."""

    return TextRange(start_line + 1, start_col, end_line + 1, end_col)


@dataclass(slots=True)
class FailureProjection:
    """Issues created from one rule-check response plus the dropped entries."""

    issues: list[Issue] = field(default_factory=list)
    diagnostics: list[RunDiagnostic] = field(default_factory=list)

    @property
    def files(self) -> set[str]:
        """Return the keys of the files that received at least one issue."""

        return {issue.file.key for issue in self.issues}


def dangling_reference(path: str, what: str) -> RunDiagnostic:
    """Return the diagnostic emitted for a result naming an unknown file."""

    return RunDiagnostic(
        kind=DiagnosticKind.DANGLING_RESULT_REFERENCE,
        message=f"Dropped {what} for unknown file {path}",
        path=path,
    )


class ResultProjector:
    """Translate decoded engine results into :class:`HostSink` calls."""

    def __init__(self, host: HostSink) -> None:
        self._host = host

    @property
    def host(self) -> HostSink:
        """Return the sink receiving projected results."""

        return self._host

    def project_failures(
        self,
        failures: Iterable[Failure],
        mapper: RuleKeyMapper,
        index: Mapping[str, SourceFile],
    ) -> FailureProjection:
        """Create one host issue per failure.

        Args:
            failures: Decoded rule-check failures.
            mapper: Rule key table covering the active rules.
            index: Known source files keyed by absolute path.

        Returns:
            FailureProjection: Created issues and dangling-reference diagnostics.

        Raises:
            UnmappedRuleKeyError: If a failure names a rule outside ``mapper``.
        """

        projection = FailureProjection()
        failures = list(failures)
        rule_keys = [mapper.to_host_key(failure.rule_name) for failure in failures]
        for failure, rule_key in zip(failures, rule_keys, strict=True):
            source = index.get(absolute_key(failure.name))
            if source is None:
                diagnostic = dangling_reference(failure.name, f"{failure.rule_name} issue")
                LOGGER.debug(diagnostic.message)
                projection.diagnostics.append(diagnostic)
                continue
            start, end = failure.start_position, failure.end_position
            issue = Issue(
                rule_key=rule_key,
                file=source,
                text_range=host_range(start.line, start.character, end.line, end.character),
                message=failure.failure,
            )
            with self._host.lock_for(source):
                self._host.create_issue(issue)
            projection.issues.append(issue)
        return projection

    def project_response(self, response: AnalysisResponse, source: SourceFile) -> None:
        """Project metrics, highlighting and duplication data for ``source``."""

        with self._host.lock_for(source):
            self._metrics(response, source)
            self._highlights(response, source)
            self._duplication(response, source)

    def project_metrics(self, response: AnalysisResponse, source: SourceFile) -> None:
        """Store measures, no-sonar lines and per-line markers for ``source``.

        Args:
            response: Decoded metrics response.
            source: File the response describes.
        """

        with self._host.lock_for(source):
            self._metrics(response, source)

    def project_highlights(self, response: AnalysisResponse, source: SourceFile) -> list[HighlightRange]:
        """Store the non-degenerate highlight spans of ``response``.

        Args:
            response: Decoded metrics response.
            source: File the response describes.

        Returns:
            list[HighlightRange]: Spans handed to the host.
        """

        with self._host.lock_for(source):
            return self._highlights(response, source)

    def project_duplication(self, response: AnalysisResponse, source: SourceFile) -> list[CpdTokenRange]:
        """Store the non-degenerate CPD tokens of ``response``.

        Args:
            response: Decoded metrics response.
            source: File the response describes.

        Returns:
            list[CpdTokenRange]: Tokens handed to the host.
        """

        with self._host.lock_for(source):
            return self._duplication(response, source)

    def _metrics(self, response: AnalysisResponse, source: SourceFile) -> None:
        host = self._host
        for metric, value in (
            (FUNCTIONS_KEY, response.functions),
            (STATEMENTS_KEY, response.statements),
            (CLASSES_KEY, response.classes),
        ):
            if value is not None:
                host.set_measure(source, metric, value)
        host.set_measure(source, NCLOC_KEY, len(response.ncloc))
        host.set_measure(source, COMMENT_LINES_KEY, len(response.comment_lines))
        if response.nosonar_lines:
            host.mark_nosonar(source, sorted(set(response.nosonar_lines)))
        self._line_markers(source, NCLOC_DATA_KEY, response.ncloc)
        self._line_markers(source, COMMENT_LINES_DATA_KEY, response.comment_lines)
        self._line_markers(source, EXECUTABLE_LINES_DATA_KEY, response.executable_lines)
        host.save_line_data(source)

    def _line_markers(self, source: SourceFile, metric: str, lines: Sequence[int]) -> None:
        for line in lines:
            self._host.set_line_value(source, metric, line, _LINE_MARKER)

    def _highlights(self, response: AnalysisResponse, source: SourceFile) -> list[HighlightRange]:
        ranges: list[HighlightRange] = []
        for span in response.highlights:
            try:
                type_of_text = TypeOfText.from_engine(span.text_type)
            except ValueError:
                LOGGER.debug("Skipping highlight with unknown text type '%s' in %s", span.text_type, source.key)
                continue
            text_range = host_range(span.start_line, span.start_col, span.end_line, span.end_col)
            if text_range.is_degenerate:
                LOGGER.debug("Skipping empty highlight %s in %s", text_range, source.key)
                continue
            ranges.append(HighlightRange(text_range=text_range, type_of_text=type_of_text))
        if ranges:
            self._host.save_highlighting(source, ranges)
        return ranges

    def _duplication(self, response: AnalysisResponse, source: SourceFile) -> list[CpdTokenRange]:
        tokens: list[CpdTokenRange] = []
        for token in response.cpd_tokens:
            text_range = host_range(token.start_line, token.start_col, token.end_line, token.end_col)
            if text_range.is_degenerate:
                continue
            tokens.append(CpdTokenRange(text_range=text_range, image=token.image))
        if tokens:
            self._host.save_cpd_tokens(source, tokens)
        return tokens


__all__ = [
    "FailureProjection",
    "ResultProjector",
    "dangling_reference",
    "host_range",
]
