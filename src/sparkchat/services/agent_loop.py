"""Tool-call loop: stream a turn, run requested tools, stream the follow-up."""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncGenerator, Protocol

from ..events import ContentDelta, StreamEnd, StreamError, StreamEvent, ToolCall, ToolResult
from ..tools import ToolRegistry

logger = logging.getLogger(__name__)


class ChatService(Protocol):
    def stream_turn(
        self,
        contents: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
    ) -> AsyncGenerator[StreamEvent, None]: ...


def user_content(text: str) -> dict[str, Any]:
    return {"role": "user", "parts": [{"text": text}]}


def model_content(text: str, calls: list[ToolCall]) -> dict[str, Any] | None:
    """History entry for what the model said; None when it said nothing."""
    parts: list[dict[str, Any]] = []
    if text:
        parts.append({"text": text})
    for call in calls:
        try:
            args = json.loads(call.arguments)
        except json.JSONDecodeError:
            args = {}
        parts.append({"functionCall": {"name": call.name, "args": args if isinstance(args, dict) else {}}})
    if not parts:
        return None
    return {"role": "model", "parts": parts}


def function_response_content(results: list[ToolResult]) -> dict[str, Any]:
    return {
        "role": "user",
        "parts": [
            {"functionResponse": {"name": r.name, "response": {"result": r.output}}}
            for r in results
        ],
    }


async def run_agent_loop(
    service: ChatService,
    contents: list[dict[str, Any]],
    registry: ToolRegistry | None = None,
    max_iterations: int = 10,
) -> AsyncGenerator[StreamEvent, None]:
    """Yield every event of a turn, ending with exactly one ``StreamEnd``.

    ``contents`` is extended in place with the model's replies and the tool
    results, so it can be sent again as the next request.
    """
    tools = registry.get_function_declarations() if registry else None

    for iteration in range(max_iterations):
        text = ""
        calls: list[ToolCall] = []
        failed = False

        async for event in service.stream_turn(contents, tools=tools):
            if isinstance(event, StreamEnd):
                break
            if isinstance(event, ContentDelta):
                text += event.text
            elif isinstance(event, ToolCall):
                calls.append(event)
            elif isinstance(event, StreamError):
                failed = True
            yield event

        reply = model_content(text, calls)
        if reply:
            contents.append(reply)
        if failed or not calls:
            yield StreamEnd()
            return

        results: list[ToolResult] = []
        for call in calls:
            if registry is None:
                output = f"Error: Tools are disabled; cannot run '{call.name}'"
            else:
                output = await registry.execute(call.name, call.arguments)
            logger.debug("Tool %s returned %d chars (iteration %d)", call.name, len(output), iteration + 1)
            result = ToolResult(name=call.name, output=output)
            results.append(result)
            yield result
        contents.append(function_response_content(results))

    yield StreamError(f"Max tool iterations ({max_iterations}) reached")
    yield StreamEnd()
