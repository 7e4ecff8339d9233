# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Request/response wrapper around external engine processes.

The invoker proxies bytes only: it writes the request to standard input, closes
it, and returns standard output as text. Decoding is left to
:mod:`tsbridge.protocol`.
"""

from __future__ import annotations

import logging
import os
import shutil

# Bandit: subprocess usage is intentional; commands come from the engine bundle
# and are passed as argument vectors without ``shell=True``.
import subprocess  # nosec B404
import threading
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Final

from ..constants import DEFAULT_TIMEOUT_S
from ..errors import (
    InvocationCancelledError,
    InvocationTimeoutError,
    SpawnFailedError,
    ToolReportedError,
)
from ..models import Command

LOGGER = logging.getLogger(__name__)

_ENCODING: Final[str] = "utf-8"


@dataclass(frozen=True, slots=True)
class CommandOptions:
    """Immutable process execution options."""

    cwd: Path | None = None
    env: Mapping[str, str] | None = None
    timeout: float | None = DEFAULT_TIMEOUT_S

    def with_command(self, command: Command) -> CommandOptions:
        """Return options with the command's own ``cwd``/``env`` applied on top.

        Args:
            command: Command whose overrides take precedence.

        Returns:
            CommandOptions: Merged options.
        """

        env = self.env
        if command.env is not None:
            env = {**os.environ, **(self.env or {}), **command.env}
        return replace(self, cwd=command.cwd or self.cwd, env=env)


def _resolve_argv(command: Command) -> list[str]:
    """Return the argument vector with the executable resolved on ``PATH``.

    Args:
        command: Command to launch.

    Returns:
        list[str]: Argument vector suitable for :class:`subprocess.Popen`.

    Raises:
        SpawnFailedError: If a relative executable cannot be found on ``PATH``.
    """

    head = Path(command.executable)
    if head.is_absolute() or head.parent != Path():
        return command.argv()
    resolved = shutil.which(command.executable)
    if resolved is None:
        raise SpawnFailedError(command.command_line(), f"executable '{command.executable}' was not found on PATH")
    return [resolved, *command.arguments]


class ProcessInvoker:
    """Spawn one external process per request and collect its response.

    Every live child is tracked so :meth:`terminate_all` can kill in-flight
    processes when the host aborts the run.
    """

    def __init__(self, options: CommandOptions | None = None) -> None:
        """Create an invoker.

        Args:
            options: Baseline execution options; the timeout defaults to 600 s.
        """

        self._options = options or CommandOptions()
        self._lock = threading.Lock()
        self._live: set[subprocess.Popen[bytes]] = set()
        self._cancelled = threading.Event()

    @property
    def options(self) -> CommandOptions:
        """Return the baseline execution options."""

        return self._options

    @property
    def cancelled(self) -> bool:
        """Return ``True`` once :meth:`terminate_all` has been requested."""

        return self._cancelled.is_set()

    def invoke(self, command: Command, request_body: str, *, timeout: float | None = None) -> str:
        """Run ``command`` feeding ``request_body`` and return its standard output.

        Args:
            command: Executable and arguments to launch.
            request_body: Text written to standard input, UTF-8 encoded.
            timeout: Optional per-call override of the wall-clock timeout.

        Returns:
            str: Decoded standard output.

        Raises:
            SpawnFailedError: If the process cannot be started.
            ToolReportedError: If the process wrote to standard error.
            InvocationTimeoutError: If the process outlived the timeout.
            InvocationCancelledError: If the invocation was cancelled.
        """

        command_line = command.command_line()
        if self._cancelled.is_set():
            raise InvocationCancelledError(command_line)
        options = self._options.with_command(command)
        effective_timeout = options.timeout if timeout is None else timeout
        argv = _resolve_argv(command)
        LOGGER.debug("Launching `%s`", command_line)
        try:
            # Bandit: argument vector comes from the engine bundle, no shell expansion.
            process = subprocess.Popen(  # nosec B603
                argv,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                cwd=str(options.cwd) if options.cwd is not None else None,
                env=dict(options.env) if options.env is not None else None,
            )
        except OSError as exc:
            raise SpawnFailedError(command_line, exc.strerror or str(exc)) from exc

        self._track(process)
        try:
            stdout, stderr = self._communicate(process, request_body, effective_timeout, command_line)
        except BaseException:
            if process.poll() is None:
                LOGGER.debug("Killing interrupted process %s", process.pid)
                process.kill()
                process.communicate()
            raise
        finally:
            self._untrack(process)

        if self._cancelled.is_set():
            raise InvocationCancelledError(command_line)
        stderr_text = stderr.decode(_ENCODING, errors="replace")
        if stderr_text:
            raise ToolReportedError(command_line, stderr_text, process.returncode)
        if process.returncode != 0:
            LOGGER.debug("`%s` exited with status %s and an empty stderr", command_line, process.returncode)
        return stdout.decode(_ENCODING, errors="replace")

    def terminate_all(self) -> None:
        """Kill every in-flight child and refuse further invocations."""

        self._cancelled.set()
        with self._lock:
            live = list(self._live)
        for process in live:
            if process.poll() is None:
                LOGGER.debug("Killing in-flight process %s", process.pid)
                process.kill()

    def _communicate(
        self,
        process: subprocess.Popen[bytes],
        request_body: str,
        timeout: float | None,
        command_line: str,
    ) -> tuple[bytes, bytes]:
        """Exchange the request and response with ``process`` under ``timeout``.

        Args:
            process: Started child process.
            request_body: Request text written to standard input.
            timeout: Wall-clock bound in seconds, or ``None`` for no bound.
            command_line: Literal command line used in errors.

        Returns:
            tuple[bytes, bytes]: Captured standard output and standard error.

        Raises:
            InvocationTimeoutError: If ``timeout`` elapsed before the process exited.
        """

        try:
            return process.communicate(input=request_body.encode(_ENCODING), timeout=timeout)
        except subprocess.TimeoutExpired as exc:
            process.kill()
            process.communicate()
            raise InvocationTimeoutError(command_line, timeout or 0.0) from exc

    def _track(self, process: subprocess.Popen[bytes]) -> None:
        with self._lock:
            self._live.add(process)
        if self._cancelled.is_set() and process.poll() is None:
            process.kill()

    def _untrack(self, process: subprocess.Popen[bytes]) -> None:
        with self._lock:
            self._live.discard(process)


__all__ = [
    "CommandOptions",
    "ProcessInvoker",
]
