"""Path and command checks applied before a tool touches the system."""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)

# Paths that should never be accessible via tools
_BLOCKED_PATHS = {
    "/etc/shadow",
    "/etc/passwd",
    "/etc/sudoers",
}

_BLOCKED_PREFIXES = (
    "/proc/",
    "/sys/",
    "/dev/",
)

_ROOT_TARGETS = {"/", "/*"}
_FORK_BOMB = ":(){"


def _blocked_reason(resolved: str) -> str | None:
    for blocked in _BLOCKED_PATHS:
        if resolved in (blocked, os.path.realpath(blocked)):
            return "sensitive path"
    for prefix in _BLOCKED_PREFIXES:
        if resolved.startswith(prefix) or resolved.startswith(os.path.realpath(prefix)):
            return "system path"
    return None


def validate_path(path: str, working_dir: str) -> tuple[str, str | None]:
    """Resolve ``path`` against ``working_dir``.

    Returns (resolved_path, error_message); the path is unusable when
    error_message is not None.
    """
    if not path:
        return "", "'path' is required"
    if "\x00" in path:
        return "", "Path contains null bytes"

    resolved = os.path.realpath(path if os.path.isabs(path) else os.path.join(working_dir, path))
    reason = _blocked_reason(resolved)
    if reason:
        logger.warning("Blocked access to %s: %s", reason, resolved)
        return "", f"Access denied: {path}"
    return resolved, None


def _is_destructive(words: list[str]) -> bool:
    name, args = words[0], words[1:]
    if name.startswith(_FORK_BOMB) or name.startswith("mkfs"):
        return True
    if name == "dd":
        return "if=/dev/zero" in args
    if name == "rm":
        has_flags = any(a.startswith("-") for a in args)
        return has_flags and any(a in _ROOT_TARGETS for a in args)
    return False


def sanitize_command(command: str) -> tuple[str, str | None]:
    """Reject empty commands and the few that would wreck the machine.

    ``rm`` is refused only when it targets the filesystem root itself, so
    ``rm -rf /tmp/build`` still runs. Returns (command, error_message).
    """
    if "\x00" in command:
        return "", "Command contains null bytes"
    words = command.split()
    if not words:
        return "", "'command' is required"
    if _is_destructive(words):
        logger.warning("Blocked dangerous command: %s", command[:50])
        return "", f"Blocked: {words[0]} is not allowed"
    return command, None
