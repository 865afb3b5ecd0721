"""Run external commands under the central timeout policy.

Commands are argument lists executed without a shell. Every run is a single
attempt: a command that outlives its timeout is sent SIGTERM, then SIGKILL
once the grace period expires, and is reported as timed out.
"""

from __future__ import annotations

import logging
import os
import shlex
import signal
import subprocess
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from drupal_artifact_builder.runtime.timeout_policy import (
    TimeoutDomain,
    TimeoutPolicyRegistry,
    get_timeout_policy_registry,
)

logger = logging.getLogger(__name__)

# exit status reported for a command killed on timeout, as timeout(1) does
TIMEOUT_EXIT_CODE = 124


@dataclass(frozen=True, slots=True)
class CommandEvent:
    """Notification about a running command: warning, terminate or kill."""

    event_type: str
    domain: TimeoutDomain
    command: str
    timeout_seconds: float
    detail: str = ""


EventCallback = Callable[[CommandEvent], None]


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of one command run."""

    domain: TimeoutDomain
    command: str
    timeout_seconds: float
    duration_seconds: float
    timed_out: bool
    warning_emitted: bool
    exit_code: int | None
    stdout: str
    stderr: str
    signal_sequence: tuple[str, ...] = ()

    @property
    def effective_exit_code(self) -> int:
        if self.exit_code is not None:
            return self.exit_code
        return TIMEOUT_EXIT_CODE if self.timed_out else 1

    @property
    def ok(self) -> bool:
        return not self.timed_out and self.effective_exit_code == 0


@dataclass(slots=True)
class _Invocation:
    """Bookkeeping for a process while it runs."""

    process: subprocess.Popen[str]
    domain: TimeoutDomain
    command: str
    timeout_seconds: float
    process_group: bool
    on_event: EventCallback | None
    stdout: str = ""
    stderr: str = ""
    warning_emitted: bool = False
    signals: list[str] = field(default_factory=list)

    def collect(self, stdout: str | bytes | None, stderr: str | bytes | None) -> None:
        # Each read returns everything buffered so far; keep the latest.
        self.stdout = _decode_stream(stdout) or self.stdout
        self.stderr = _decode_stream(stderr) or self.stderr

    def notify(self, event_type: str, detail: str) -> None:
        if self.on_event is None:
            return
        self.on_event(
            CommandEvent(
                event_type=event_type,
                domain=self.domain,
                command=self.command,
                timeout_seconds=self.timeout_seconds,
                detail=detail,
            )
        )

    def send(self, sig: signal.Signals, label: str) -> bool:
        """Signal the process (or its group); False if it already exited."""
        if self.process.poll() is not None:
            return False
        try:
            if self.process_group:
                os.killpg(self.process.pid, sig)
            else:
                self.process.send_signal(sig)
        except ProcessLookupError:
            return False
        self.signals.append(label)
        return True


class CommandRunner:
    """Runs subprocesses with timeout policy enforcement."""

    def __init__(
        self,
        *,
        policy_registry: TimeoutPolicyRegistry | None = None,
    ) -> None:
        self._policy_registry = policy_registry or get_timeout_policy_registry()

    def run(
        self,
        *,
        command: Sequence[str],
        domain: TimeoutDomain,
        cwd: str | Path | None = None,
        env: Mapping[str, str] | None = None,
        requested_timeout_seconds: float | None = None,
        on_event: EventCallback | None = None,
    ) -> CommandResult:
        """Run ``command`` once and capture its output.

        Args:
            command: Program and arguments.
            domain: Selects the timeout policy.
            cwd: Working directory for the child; the caller's cwd is untouched.
            env: Full environment for the child, inherited when None.
            requested_timeout_seconds: Override, clamped to the policy bounds.
            on_event: Receives warning/terminate/kill notifications.
        """
        policy = self._policy_registry.policy_for(domain)
        timeout_seconds = self._policy_registry.timeout_for(
            domain, requested_timeout_seconds
        )
        warning_after = self._policy_registry.warning_after_seconds(
            domain, timeout_seconds
        )
        command_text = shlex.join(str(part) for part in command)
        workdir = Path(cwd).resolve() if cwd is not None else None
        logger.debug("Running: %s (cwd=%s)", command_text, workdir)

        started_at = time.perf_counter()
        process_group = policy.use_process_group and os.name != "nt"
        process = subprocess.Popen(
            list(command),
            cwd=workdir,
            env=dict(env) if env is not None else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            start_new_session=process_group,
        )
        invocation = _Invocation(
            process=process,
            domain=domain,
            command=command_text,
            timeout_seconds=timeout_seconds,
            process_group=process_group,
            on_event=on_event,
        )

        timed_out = not self._wait(invocation, warning_after)
        if timed_out:
            self._terminate(invocation, policy.signal.terminate_grace_seconds)
            logger.warning(
                "Command timed out after %.0fs: %s", timeout_seconds, command_text
            )

        return CommandResult(
            domain=domain,
            command=command_text,
            timeout_seconds=timeout_seconds,
            duration_seconds=time.perf_counter() - started_at,
            timed_out=timed_out,
            warning_emitted=invocation.warning_emitted,
            exit_code=process.returncode,
            stdout=invocation.stdout,
            stderr=invocation.stderr,
            signal_sequence=tuple(invocation.signals),
        )

    @staticmethod
    def _wait(invocation: _Invocation, warning_after: float | None) -> bool:
        """Wait for the process to exit; False if it outlived its timeout."""
        process = invocation.process
        remaining = invocation.timeout_seconds
        try:
            if warning_after is not None:
                try:
                    invocation.collect(*process.communicate(timeout=warning_after))
                    return True
                except subprocess.TimeoutExpired as exc:
                    invocation.collect(exc.stdout, exc.stderr)
                    invocation.warning_emitted = True
                    invocation.notify("warning", "Timeout threshold approaching")
                remaining = max(0.001, remaining - warning_after)
            invocation.collect(*process.communicate(timeout=remaining))
            return True
        except subprocess.TimeoutExpired as exc:
            invocation.collect(exc.stdout, exc.stderr)
            return False

    @staticmethod
    def _terminate(invocation: _Invocation, grace_seconds: float) -> None:
        """SIGTERM, wait out the grace period, then SIGKILL."""
        process = invocation.process
        if invocation.send(signal.SIGTERM, "SIGTERM"):
            invocation.notify("terminate", "Sent SIGTERM after timeout")
        try:
            invocation.collect(*process.communicate(timeout=grace_seconds))
            return
        except subprocess.TimeoutExpired as exc:
            invocation.collect(exc.stdout, exc.stderr)

        if invocation.send(signal.SIGKILL, "SIGKILL"):
            invocation.notify("kill", "Sent SIGKILL after terminate grace period")
        invocation.collect(*process.communicate())


def _decode_stream(data: str | bytes | None) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode(errors="replace")
    return data


_DEFAULT_COMMAND_RUNNER = CommandRunner()


def get_command_runner() -> CommandRunner:
    """Return the shared command runner."""
    return _DEFAULT_COMMAND_RUNNER
