"""Append to an existing file."""

from __future__ import annotations

import os
from typing import Any

from .security import validate_path

_working_dir: str = os.getcwd()

DEFINITION: dict[str, Any] = {
    "name": "update_file",
    "description": "Updates an existing file by appending content",
    "parameters": {
        "type": "object",
        "properties": {
            "path": {"type": "string", "description": "File path"},
            "content": {"type": "string", "description": "Content to append"},
        },
        "required": ["path", "content"],
    },
}


def set_working_dir(d: str) -> None:
    global _working_dir
    _working_dir = d


async def handle(path: str = "", content: str = "", **_: Any) -> dict[str, Any]:
    resolved, error = validate_path(path, _working_dir)
    if error:
        return {"error": error}
    if not os.path.isfile(resolved):
        return {"error": f"Error opening file: {path} does not exist"}
    try:
        with open(resolved, "a", encoding="utf-8") as f:
            f.write(content)
    except OSError as e:
        return {"error": f"Error writing to file: {e}"}
    return {"message": f"Successfully updated {resolved}", "path": resolved}
