"""Shell command execution tool."""

from __future__ import annotations

import asyncio
import os
from typing import Any

from .security import sanitize_command

_MAX_OUTPUT = 100_000

_working_dir: str = os.getcwd()
_timeout: int = 120

DEFINITION: dict[str, Any] = {
    "name": "run_command",
    "description": "Executes a terminal command and returns its stdout and stderr",
    "parameters": {
        "type": "object",
        "properties": {
            "command": {"type": "string", "description": "The command to run"},
        },
        "required": ["command"],
    },
}


def set_working_dir(d: str) -> None:
    global _working_dir
    _working_dir = d


def set_timeout(seconds: int) -> None:
    global _timeout
    _timeout = max(1, seconds)


def _truncate(text: str) -> str:
    if len(text) > _MAX_OUTPUT:
        return text[:_MAX_OUTPUT] + "\n... (truncated)"
    return text


async def handle(command: str = "", **_: Any) -> dict[str, Any]:
    command, error = sanitize_command(command)
    if error:
        return {"error": error, "exit_code": -1}

    try:
        proc = await asyncio.create_subprocess_exec(
            "sh",
            "-c",
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=_working_dir,
        )
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=_timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            return {"error": f"Command timed out after {_timeout}s", "exit_code": -1}
    except OSError as e:
        return {"error": f"Failed to execute command: {e}", "exit_code": -1}

    return {
        "stdout": _truncate(stdout.decode("utf-8", errors="replace")),
        "stderr": _truncate(stderr.decode("utf-8", errors="replace")),
        "exit_code": proc.returncode or 0,
    }
