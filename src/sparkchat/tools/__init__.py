"""Built-in tools the model may call, and the registry that runs them."""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, Callable, Coroutine

logger = logging.getLogger(__name__)

ToolHandler = Callable[..., Coroutine[Any, Any, dict[str, Any]]]


class ToolName(str, Enum):
    RUN_COMMAND = "run_command"
    CREATE_FILE = "create_file"
    UPDATE_FILE = "update_file"
    DELETE_FILE = "delete_file"
    SEARCH = "search_google"


# Argument used when the model sends a bare string instead of a JSON object
_BARE_ARGUMENT = {
    ToolName.RUN_COMMAND: "command",
    ToolName.DELETE_FILE: "path",
    ToolName.SEARCH: "query",
}


def parse_arguments(name: ToolName, raw_args: str) -> dict[str, Any]:
    try:
        args = json.loads(raw_args)
    except json.JSONDecodeError:
        args = raw_args
    if isinstance(args, dict):
        return args
    key = _BARE_ARGUMENT.get(name)
    if key and isinstance(args, str) and args.strip():
        return {key: args}
    return {}


def format_result(result: dict[str, Any]) -> str:
    """Flatten a handler result into the text handed back to the model."""
    if "error" in result:
        return f"Error: {result['error']}"
    if "stdout" in result:
        text = f"STDOUT:\n{result['stdout']}\nSTDERR:\n{result.get('stderr', '')}"
        exit_code = result.get("exit_code", 0)
        if exit_code:
            text += f"\nEXIT CODE: {exit_code}"
        return text
    if "message" in result:
        return str(result["message"])
    return json.dumps(result, default=str)


class ToolRegistry:
    """Fixed set of built-in tools in Gemini function-declaration format."""

    def __init__(self) -> None:
        self._handlers: dict[ToolName, ToolHandler] = {}
        self._definitions: dict[ToolName, dict[str, Any]] = {}

    def register(self, name: ToolName, handler: ToolHandler, definition: dict[str, Any]) -> None:
        self._handlers[name] = handler
        self._definitions[name] = definition

    def has_tool(self, name: str) -> bool:
        try:
            return ToolName(name) in self._handlers
        except ValueError:
            return False

    def list_tools(self) -> list[str]:
        return [name.value for name in self._handlers]

    def get_function_declarations(self) -> list[dict[str, Any]]:
        return [
            {
                "name": name.value,
                "description": defn.get("description", ""),
                "parameters": defn.get("parameters", {}),
            }
            for name, defn in self._definitions.items()
        ]

    async def execute(self, name: str, raw_args: str) -> str:
        """Run one tool call and return its result as text.

        Never raises: unknown tools, bad arguments and failures inside the
        handler all come back as an ``Error: ...`` string for the model.
        """
        try:
            tool = ToolName(name)
        except ValueError:
            return f"Error: Unknown tool '{name}'"
        handler = self._handlers.get(tool)
        if handler is None:
            return f"Error: Tool '{name}' is not enabled"

        args = parse_arguments(tool, raw_args)
        logger.debug("Running tool %s with %s", name, args)
        try:
            result = await handler(**args)
        except Exception as e:
            logger.warning("Tool %s failed", name, exc_info=True)
            return f"Error: {name} failed: {e}"
        return format_result(result)


def register_default_tools(
    registry: ToolRegistry,
    working_dir: str | None = None,
    command_timeout: int | None = None,
) -> None:
    """Register all built-in tools."""
    from . import append, bash, delete, search, write

    for module in [bash, write, append, delete, search]:
        defn = module.DEFINITION
        if working_dir and hasattr(module, "set_working_dir"):
            module.set_working_dir(working_dir)
        registry.register(ToolName(defn["name"]), module.handle, defn)
    if command_timeout:
        bash.set_timeout(command_timeout)
