# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Exception hierarchy raised by the analysis bridge.

Recoverable conditions (files without an owning configuration, results naming
unknown files) are not exceptions; they surface as
:class:`tsbridge.models.RunDiagnostic` records on the run outcome.
"""

from __future__ import annotations


class BridgeError(RuntimeError):
    """Base class for every error raised by the bridge."""


class ConfigError(BridgeError):
    """Raised when configuration input is invalid."""


class BundleNotDeployedError(BridgeError):
    """Raised when the engine bundle directory has not been deployed."""


class InvocationError(BridgeError):
    """Base class for failures while driving an external engine process."""

    def __init__(self, message: str, *, command_line: str) -> None:
        """Initialise the error with the command line that was attempted.

        Args:
            message: Human readable description of the failure.
            command_line: Literal command line of the external process.
        """

        super().__init__(message)
        self.command_line = command_line


class SpawnFailedError(InvocationError):
    """Raised when the external process could not be started at all."""

    def __init__(self, command_line: str, reason: str | None = None) -> None:
        """Initialise the error for ``command_line``.

        Args:
            command_line: Literal command line of the external process.
            reason: Optional operating-system level detail.
        """

        message = f"Failed to run external process `{command_line}`"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, command_line=command_line)
        self.reason = reason


class ToolReportedError(InvocationError):
    """Raised when the external process wrote anything to standard error."""

    def __init__(self, command_line: str, stderr: str, returncode: int | None) -> None:
        """Initialise the error with the captured diagnostics.

        Args:
            command_line: Literal command line of the external process.
            stderr: Captured standard error text.
            returncode: Exit status of the process.
        """

        super().__init__(
            f"External process `{command_line}` reported an error (exit {returncode}): {stderr.strip()}",
            command_line=command_line,
        )
        self.stderr = stderr
        self.returncode = returncode


class InvocationTimeoutError(InvocationError):
    """Raised when the external process exceeds its wall-clock budget."""

    def __init__(self, command_line: str, timeout_s: float) -> None:
        """Initialise the error with the exceeded bound.

        Args:
            command_line: Literal command line of the external process.
            timeout_s: Timeout that was exceeded, in seconds.
        """

        super().__init__(
            f"External process `{command_line}` timed out after {timeout_s:.1f}s",
            command_line=command_line,
        )
        self.timeout_s = timeout_s


class InvocationCancelledError(InvocationError):
    """Raised when an in-flight process was terminated by a cancellation request."""

    def __init__(self, command_line: str) -> None:
        super().__init__(f"External process `{command_line}` was cancelled", command_line=command_line)


class ResponseDecodeError(BridgeError):
    """Raised when an engine response is not valid for the expected wire shape."""


class UnmappedRuleKeyError(LookupError):
    """Raised when a rule key has no counterpart in the configured mapping.

    This signals a version mismatch between the host rule registry and the
    external engine and always aborts the run.
    """

    def __init__(self, key: str, *, direction: str) -> None:
        """Initialise the error for ``key``.

        Args:
            key: Rule key that could not be translated.
            direction: Either ``"external"`` or ``"host"``, naming the side ``key`` belongs to.
        """

        if direction == "external":
            message = f"Unknown tslint rule {key}"
        else:
            message = f"No tslint key mapping for {key}"
        super().__init__(message)
        self.key = key
        self.direction = direction


class AnalysisCancelledError(BridgeError):
    """Raised by a run that was aborted through :meth:`AnalysisOrchestrator.cancel`."""


__all__ = [
    "AnalysisCancelledError",
    "BridgeError",
    "BundleNotDeployedError",
    "ConfigError",
    "InvocationCancelledError",
    "InvocationError",
    "InvocationTimeoutError",
    "ResponseDecodeError",
    "SpawnFailedError",
    "ToolReportedError",
    "UnmappedRuleKeyError",
]
