# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Core data models shared across the tsbridge package."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator
from typing_extensions import TypeAliasType

from .constants import LANGUAGE_KEY
from .filesystem.paths import absolute_key, display_relative_path

JsonScalar = TypeAliasType("JsonScalar", str | int | float | bool | None)
JsonValue = TypeAliasType("JsonValue", "JsonScalar | list[JsonValue] | dict[str, JsonValue]")


class SourceFile(BaseModel):
    """Describe a discovered source file owned by the host file system."""

    model_config = ConfigDict(frozen=True)

    path: Path
    language: str = LANGUAGE_KEY
    encoding: str = "utf-8"

    @field_validator("path", mode="before")
    @classmethod
    def _absolute_path(cls, value: str | Path) -> Path:
        """Return ``value`` as an absolute, resolved path.

        Args:
            value: Path supplied by discovery or by the caller.

        Returns:
            Path: Absolute path used as the file identity.
        """

        return Path(absolute_key(value))

    @property
    def key(self) -> str:
        """Return the lookup key matched against engine-reported paths."""

        return self.path.as_posix()

    def contents(self) -> str:
        """Return the decoded file contents.

        Returns:
            str: File text decoded with :attr:`encoding`.
        """

        return self.path.read_text(encoding=self.encoding)

    def display(self, root: Path) -> str:
        """Return the path relative to ``root`` for user-facing output."""

        return display_relative_path(self.path, root)


@dataclass(frozen=True, slots=True)
class ConfigUnit:
    """Group of source files sharing one nearest-ancestor configuration file."""

    config_path: Path
    files: tuple[SourceFile, ...]

    @property
    def root(self) -> Path:
        """Return the directory holding the configuration file."""

        return self.config_path.parent


@dataclass(frozen=True, slots=True)
class Command:
    """Executable plus ordered argument list for an external process."""

    executable: str
    arguments: tuple[str, ...] = ()
    cwd: Path | None = None
    env: Mapping[str, str] | None = None

    @classmethod
    def of(cls, executable: str | Path, *arguments: str | Path) -> Command:
        """Build a command from positional parts.

        Args:
            executable: Program to launch.
            *arguments: Ordered arguments passed to the program.

        Returns:
            Command: Immutable command description.
        """

        return cls(executable=str(executable), arguments=tuple(str(arg) for arg in arguments))

    def argv(self) -> list[str]:
        """Return the argument vector passed to the operating system."""

        return [self.executable, *self.arguments]

    def command_line(self) -> str:
        """Return the literal command line used in diagnostics."""

        return " ".join(self.argv())


@dataclass(frozen=True, slots=True)
class RuleKey:
    """Host-side rule identity: a repository plus a rule key within it."""

    repository: str
    rule: str

    @classmethod
    def parse(cls, value: str) -> RuleKey:
        """Parse ``repository:rule`` notation.

        Args:
            value: Serialised rule key.

        Returns:
            RuleKey: Parsed key.

        Raises:
            ValueError: If ``value`` does not contain a repository separator.
        """

        repository, sep, rule = value.partition(":")
        if not sep or not repository or not rule:
            raise ValueError(f"Invalid rule key '{value}', expected 'repository:rule'")
        return cls(repository=repository, rule=rule)

    def __str__(self) -> str:
        return f"{self.repository}:{self.rule}"


@dataclass(frozen=True, slots=True, order=True)
class TextRange:
    """One-based line, zero-based column span inside a host file."""

    start_line: int
    start_offset: int
    end_line: int
    end_offset: int

    @property
    def is_degenerate(self) -> bool:
        """Return ``True`` when the span is zero-width or inverted."""

        return (self.end_line, self.end_offset) <= (self.start_line, self.start_offset)

    def contains(self, line: int, offset: int) -> bool:
        """Return whether the position ``(line, offset)`` falls inside the span."""

        return (self.start_line, self.start_offset) <= (line, offset) < (self.end_line, self.end_offset)


class TypeOfText(str, Enum):
    """Enumerate the highlight classifications understood by the host."""

    ANNOTATION = "annotation"
    CONSTANT = "constant"
    COMMENT = "comment"
    CPP_DOC = "cppd"
    STRUCTURED_COMMENT = "j"
    KEYWORD = "k"
    KEYWORD_LIGHT = "h"
    PREPROCESS_DIRECTIVE = "p"
    STRING = "s"

    @classmethod
    def from_engine(cls, label: str) -> TypeOfText:
        """Return the member named by the engine's ``textType`` label.

        Args:
            label: Classification emitted by the engine, e.g. ``"keyword"``.

        Returns:
            TypeOfText: Matching member.

        Raises:
            ValueError: If ``label`` names no known classification.
        """

        try:
            return cls[label.upper()]
        except KeyError as exc:
            raise ValueError(f"Unknown text type '{label}'") from exc


@dataclass(frozen=True, slots=True)
class Issue:
    """Rule violation ready to be stored by the host."""

    rule_key: RuleKey
    file: SourceFile
    text_range: TextRange
    message: str | None = None


@dataclass(frozen=True, slots=True)
class HighlightRange:
    """Syntax highlighting span in host coordinates."""

    text_range: TextRange
    type_of_text: TypeOfText


@dataclass(frozen=True, slots=True)
class CpdTokenRange:
    """Normalised token used for duplicate-code detection, in host coordinates."""

    text_range: TextRange
    image: str


@dataclass(slots=True)
class LineCoverage:
    """Coverage data for one file: line hits and branch conditions per line."""

    hits: dict[int, int] = field(default_factory=dict)
    conditions: dict[int, tuple[int, int]] = field(default_factory=dict)

    def add_hits(self, line: int, hits: int) -> None:
        """Accumulate ``hits`` for ``line``."""

        self.hits[line] = self.hits.get(line, 0) + hits

    def add_branch(self, line: int, covered: bool) -> None:
        """Record one branch on ``line``, counting it as covered when taken."""

        total, taken = self.conditions.get(line, (0, 0))
        self.conditions[line] = (total + 1, taken + (1 if covered else 0))

    @property
    def lines_to_cover(self) -> int:
        """Return the number of executable lines reported."""

        return len(self.hits)

    @property
    def uncovered_lines(self) -> int:
        """Return the number of executable lines never hit."""

        return sum(1 for hits in self.hits.values() if hits == 0)


class DiagnosticKind(str, Enum):
    """Enumerate recoverable conditions reported during a run."""

    UNRESOLVED_CONFIG_UNIT = "unresolved-config-unit"
    DANGLING_RESULT_REFERENCE = "dangling-result-reference"
    METRICS_FAILED = "metrics-failed"
    COVERAGE_REPORT_MISSING = "coverage-report-missing"


@dataclass(frozen=True, slots=True)
class RunDiagnostic:
    """Recoverable condition surfaced to the operator without aborting the run."""

    kind: DiagnosticKind
    message: str
    path: str | None = None

    def to_dict(self) -> dict[str, JsonValue]:
        """Return a JSON-friendly representation."""

        return {"kind": self.kind.value, "message": self.message, "path": self.path}


@dataclass(slots=True)
class RunOutcome:
    """Aggregate result of one orchestrated analysis run."""

    root: Path
    units: list[ConfigUnit] = field(default_factory=list)
    unresolved: list[SourceFile] = field(default_factory=list)
    issues: int = 0
    analyzed_files: set[str] = field(default_factory=set)
    metrics_failures: dict[str, str] = field(default_factory=dict)
    diagnostics: list[RunDiagnostic] = field(default_factory=list)

    def diagnostics_of(self, kind: DiagnosticKind) -> list[RunDiagnostic]:
        """Return the diagnostics of ``kind`` in emission order."""

        return [diagnostic for diagnostic in self.diagnostics if diagnostic.kind is kind]

    def to_dict(self) -> dict[str, JsonValue]:
        """Return a JSON-friendly summary of the run."""

        units: list[JsonValue] = [
            {
                "config": display_relative_path(unit.config_path, self.root),
                "files": [source.display(self.root) for source in unit.files],
            }
            for unit in self.units
        ]
        diagnostics: list[JsonValue] = [diagnostic.to_dict() for diagnostic in self.diagnostics]
        failures: dict[str, JsonValue] = dict(sorted(self.metrics_failures.items()))
        return {
            "root": self.root.as_posix(),
            "units": units,
            "unresolved": [source.display(self.root) for source in self.unresolved],
            "issues": self.issues,
            "analyzed_files": len(self.analyzed_files),
            "metrics_failures": failures,
            "diagnostics": diagnostics,
        }


def source_index(files: Sequence[SourceFile]) -> dict[str, SourceFile]:
    """Return ``files`` keyed by their absolute lookup key."""

    return {source.key: source for source in files}


__all__ = [
    "Command",
    "ConfigUnit",
    "CpdTokenRange",
    "DiagnosticKind",
    "HighlightRange",
    "Issue",
    "JsonScalar",
    "JsonValue",
    "LineCoverage",
    "RuleKey",
    "RunDiagnostic",
    "RunOutcome",
    "SourceFile",
    "TextRange",
    "TypeOfText",
    "source_index",
]
