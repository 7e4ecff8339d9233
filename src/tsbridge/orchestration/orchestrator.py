# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Coordinate rule-check and metrics passes across configuration units.

The rule-check pass is all-or-nothing: any invocation or decode failure aborts
the run before a single issue reaches the host. The metrics pass is best
effort: a failing unit or file is recorded on the outcome and the remaining
targets still run.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path

from ..bundle import ExecutableBundle
from ..coverage.lcov import import_lcov
from ..discovery.config_units import ConfigUnitResolver, Resolution
from ..errors import (
    AnalysisCancelledError,
    InvocationCancelledError,
    InvocationError,
    ResponseDecodeError,
)
from ..models import DiagnosticKind, RunDiagnostic, RunOutcome, SourceFile, source_index
from ..projection.host import HostSink
from ..projection.projector import ResultProjector, dangling_reference
from ..protocol import (
    Failure,
    RuleCheckScope,
    build_batch_request,
    build_file_request,
    decode_failures,
    decode_metrics,
    decode_metrics_batch,
)
from ..rules.mapping import RuleKeyMapper
from ..runtime.process import CommandOptions, ProcessInvoker

LOGGER = logging.getLogger(__name__)

_RULE_CHECK_REQUEST = ""


@dataclass(frozen=True, slots=True)
class MetricsTarget:
    """One metrics invocation: a whole unit in batch mode, else a single file."""

    label: str
    files: tuple[SourceFile, ...]


@dataclass(slots=True)
class MetricsResult:
    """Outcome of a single metrics invocation."""

    target: MetricsTarget
    analyzed: list[str] = field(default_factory=list)
    error: str | None = None
    diagnostics: list[RunDiagnostic] = field(default_factory=list)


class AnalysisOrchestrator:
    """Drive the external engine over a file set and project its results.

    An orchestrator owns one :class:`ProcessInvoker`; once :meth:`cancel` has
    been called it refuses further runs.
    """

    def __init__(
        self,
        *,
        mapper: RuleKeyMapper,
        host: HostSink,
        invoker: ProcessInvoker | None = None,
        resolver: ConfigUnitResolver | None = None,
        jobs: int = 1,
        lcov_report_paths: Sequence[Path] = (),
    ) -> None:
        """Create an orchestrator.

        Args:
            mapper: Rule key table for the host's active rules.
            host: Sink receiving issues, measures and highlighting.
            invoker: Process invoker; defaults to one with the 600 s timeout.
            resolver: Configuration unit resolver.
            jobs: Maximum number of concurrent metrics invocations.
            lcov_report_paths: LCOV reports imported after the metrics pass.
        """

        self._mapper = mapper
        self._host = host
        self._invoker = invoker or ProcessInvoker(CommandOptions())
        self._resolver = resolver or ConfigUnitResolver()
        self._jobs = max(1, jobs)
        self._lcov_report_paths = tuple(lcov_report_paths)
        self._projector = ResultProjector(host)
        self._cancelled = threading.Event()

    @property
    def invoker(self) -> ProcessInvoker:
        """Return the process invoker used for every engine call."""

        return self._invoker

    def cancel(self) -> None:
        """Abort the current run, killing every in-flight engine process."""

        self._cancelled.set()
        self._invoker.terminate_all()

    def run(self, files: Iterable[SourceFile], project_root: Path, bundle: ExecutableBundle) -> RunOutcome:
        """Analyse ``files`` under ``project_root`` with ``bundle``.

        Args:
            files: Source files discovered by the host.
            project_root: Project root bounding configuration lookup.
            bundle: Collaborator supplying the engine commands.

        Returns:
            RunOutcome: Units, issue count, metrics results and diagnostics.

        Raises:
            InvocationError: If the rule-check pass could not be completed.
            ResponseDecodeError: If the rule-check response is malformed.
            UnmappedRuleKeyError: If the engine reported a rule outside the mapping.
            AnalysisCancelledError: If :meth:`cancel` interrupted the run.
        """

        self._check_cancelled()
        root = project_root.resolve()
        resolution = self._resolver.resolve(files, root)
        outcome = RunOutcome(root=root, units=list(resolution.units), unresolved=list(resolution.unresolved))
        for source in resolution.unresolved:
            message = f"No {self._resolver.config_file_name} found for {source.display(root)}; file skipped"
            LOGGER.warning(message)
            outcome.diagnostics.append(
                RunDiagnostic(kind=DiagnosticKind.UNRESOLVED_CONFIG_UNIT, message=message, path=source.key),
            )
        if not resolution.units:
            LOGGER.debug("No configuration units under %s; nothing to analyse", root)
            return outcome

        index = source_index(resolution.files)
        try:
            failures = self._rule_check(resolution, root, bundle)
            self._check_cancelled()
            projection = self._projector.project_failures(failures, self._mapper, index)
            outcome.issues = len(projection.issues)
            outcome.diagnostics.extend(projection.diagnostics)

            targets = self._metrics_targets(resolution, bundle)
            for result in self._run_metrics(targets, bundle, index):
                outcome.analyzed_files.update(result.analyzed)
                outcome.diagnostics.extend(result.diagnostics)
                if result.error is not None:
                    outcome.metrics_failures[result.target.label] = result.error
            self._check_cancelled()
        except InvocationCancelledError as exc:
            raise AnalysisCancelledError("Analysis was cancelled") from exc
        except KeyboardInterrupt:
            self.cancel()
            raise

        if self._lcov_report_paths:
            outcome.diagnostics.extend(import_lcov(self._lcov_report_paths, root, index, self._host))
        return outcome

    def _check_cancelled(self) -> None:
        if self._cancelled.is_set():
            raise AnalysisCancelledError("Analysis was cancelled")

    def _rule_check(self, resolution: Resolution, root: Path, bundle: ExecutableBundle) -> list[Failure]:
        """Run the rule-check pass and return every decoded failure.

        Failures are only returned once every invocation succeeded, so a fatal
        error leaves the host untouched.
        """

        root_config = root / self._resolver.config_file_name
        if bundle.rule_check_scope is RuleCheckScope.PROJECT and root_config.is_file():
            invocations = [(root, resolution.files)]
        else:
            if bundle.rule_check_scope is RuleCheckScope.PROJECT:
                LOGGER.debug("No %s at %s; checking each configuration unit", root_config.name, root)
            invocations = [(unit.config_path, unit.files) for unit in resolution.units]
        failures: list[Failure] = []
        for target, members in invocations:
            command = bundle.rule_check_command(target, members)
            LOGGER.debug("Rule check for %s (%d files)", target, len(members))
            failures.extend(decode_failures(self._invoker.invoke(command, _RULE_CHECK_REQUEST)))
        return failures

    @staticmethod
    def _metrics_targets(resolution: Resolution, bundle: ExecutableBundle) -> list[MetricsTarget]:
        if bundle.metrics_protocol.is_batch:
            return [MetricsTarget(label=unit.config_path.as_posix(), files=unit.files) for unit in resolution.units]
        return [MetricsTarget(label=source.key, files=(source,)) for source in resolution.files]

    def _run_metrics(
        self,
        targets: Sequence[MetricsTarget],
        bundle: ExecutableBundle,
        index: Mapping[str, SourceFile],
    ) -> list[MetricsResult]:
        if self._jobs == 1 or len(targets) <= 1:
            return [self._metrics_for(target, bundle, index) for target in targets]
        results: list[MetricsResult] = []
        with ThreadPoolExecutor(max_workers=self._jobs) as executor:
            future_map = {executor.submit(self._metrics_for, target, bundle, index): target for target in targets}
            try:
                for future in as_completed(future_map):
                    results.append(future.result())
            except BaseException:
                # Executor shutdown waits for every worker; kill their children first.
                self.cancel()
                raise
        results.sort(key=lambda result: result.target.label)
        return results

    def _metrics_for(
        self,
        target: MetricsTarget,
        bundle: ExecutableBundle,
        index: Mapping[str, SourceFile],
    ) -> MetricsResult:
        """Run one metrics invocation, recording failures instead of raising.

        Raises:
            AnalysisCancelledError: If the run was cancelled before the invocation.
            InvocationCancelledError: If the invocation was killed by a cancellation.
        """

        self._check_cancelled()
        result = MetricsResult(target=target)
        try:
            if bundle.metrics_protocol.is_batch:
                self._batch_metrics(result, bundle, index)
            else:
                self._file_metrics(result, bundle)
        except InvocationCancelledError:
            raise
        except (InvocationError, ResponseDecodeError, OSError, UnicodeDecodeError) as exc:
            result.error = str(exc)
            LOGGER.error("Metrics failed for %s: %s", target.label, exc)
            result.diagnostics.append(
                RunDiagnostic(kind=DiagnosticKind.METRICS_FAILED, message=str(exc), path=target.label),
            )
        return result

    def _file_metrics(self, result: MetricsResult, bundle: ExecutableBundle) -> None:
        (source,) = result.target.files
        request = build_file_request(source, bundle.metrics_protocol)
        response = decode_metrics(self._invoker.invoke(bundle.metrics_command(), request))
        self._projector.project_response(response, source)
        result.analyzed.append(source.key)

    def _batch_metrics(self, result: MetricsResult, bundle: ExecutableBundle, index: Mapping[str, SourceFile]) -> None:
        request = build_batch_request(result.target.files)
        responses = decode_metrics_batch(self._invoker.invoke(bundle.metrics_command(), request))
        for key in sorted(responses):
            source = index.get(key)
            if source is None:
                diagnostic = dangling_reference(key, "metrics")
                LOGGER.debug(diagnostic.message)
                result.diagnostics.append(diagnostic)
                continue
            self._projector.project_response(responses[key], source)
            result.analyzed.append(source.key)


__all__ = ["AnalysisOrchestrator", "MetricsResult", "MetricsTarget"]
