"""Runtime primitives shared by preflight, assembly and sync."""

from drupal_artifact_builder.runtime.command_runner import (
    CommandEvent,
    CommandResult,
    CommandRunner,
    get_command_runner,
)
from drupal_artifact_builder.runtime.timeout_policy import (
    TimeoutDomain,
    get_timeout_policy_registry,
)
from drupal_artifact_builder.runtime.workdir import preserve_cwd

__all__ = [
    "CommandEvent",
    "CommandResult",
    "CommandRunner",
    "TimeoutDomain",
    "get_command_runner",
    "get_timeout_policy_registry",
    "preserve_cwd",
]
