"""Timeout limits for the external commands the builder runs.

Local git commands (status, add, commit) get short limits; anything that
talks to the artifact remote (ls-remote, clone, push) gets long ones, since
pushing a vendored codebase over a slow link can take minutes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TimeoutDomain(str, Enum):
    """Kinds of command with distinct timeout behavior."""

    GIT_LOCAL = "git_local"
    GIT_REMOTE = "git_remote"


@dataclass(frozen=True, slots=True)
class SignalPolicy:
    """When to warn before a timeout, and how long SIGTERM gets to work."""

    warning_fraction: float
    terminate_grace_seconds: float


@dataclass(frozen=True, slots=True)
class TimeoutPolicy:
    """Limits for one domain. Commands are never retried."""

    domain: TimeoutDomain
    default_timeout_seconds: float
    min_timeout_seconds: float
    max_timeout_seconds: float
    use_process_group: bool
    signal: SignalPolicy

    def clamp(self, timeout_seconds: float) -> float:
        return max(
            self.min_timeout_seconds, min(timeout_seconds, self.max_timeout_seconds)
        )

    def warning_after(self, timeout_seconds: float) -> float | None:
        fraction = self.signal.warning_fraction
        if not 0.0 < fraction < 1.0 or timeout_seconds <= 0.0:
            return None
        return timeout_seconds * fraction


DEFAULT_POLICIES: dict[TimeoutDomain, TimeoutPolicy] = {
    TimeoutDomain.GIT_LOCAL: TimeoutPolicy(
        domain=TimeoutDomain.GIT_LOCAL,
        default_timeout_seconds=60.0,
        min_timeout_seconds=3.0,
        max_timeout_seconds=300.0,
        use_process_group=False,
        signal=SignalPolicy(warning_fraction=0.85, terminate_grace_seconds=3.0),
    ),
    # ssh and credential helpers are children of git; signal the whole group
    TimeoutDomain.GIT_REMOTE: TimeoutPolicy(
        domain=TimeoutDomain.GIT_REMOTE,
        default_timeout_seconds=300.0,
        min_timeout_seconds=10.0,
        max_timeout_seconds=1800.0,
        use_process_group=True,
        signal=SignalPolicy(warning_fraction=0.75, terminate_grace_seconds=10.0),
    ),
}


class TimeoutPolicyRegistry:
    """Looks up the policy for a domain and resolves per-command timeouts."""

    def __init__(
        self,
        policies: dict[TimeoutDomain, TimeoutPolicy] | None = None,
    ) -> None:
        self._policies = dict(policies or DEFAULT_POLICIES)

    def policy_for(self, domain: TimeoutDomain) -> TimeoutPolicy:
        return self._policies[domain]

    def timeout_for(
        self,
        domain: TimeoutDomain,
        requested_timeout_seconds: float | None = None,
    ) -> float:
        """Timeout for one run: the request (or the default), clamped to bounds."""
        policy = self.policy_for(domain)
        if requested_timeout_seconds is None:
            return policy.clamp(policy.default_timeout_seconds)
        return policy.clamp(requested_timeout_seconds)

    def warning_after_seconds(
        self,
        domain: TimeoutDomain,
        timeout_seconds: float,
    ) -> float | None:
        """Seconds after which a slow command is reported, None if disabled."""
        return self.policy_for(domain).warning_after(timeout_seconds)


_DEFAULT_REGISTRY = TimeoutPolicyRegistry()


def get_timeout_policy_registry() -> TimeoutPolicyRegistry:
    """Return the shared registry."""
    return _DEFAULT_REGISTRY
