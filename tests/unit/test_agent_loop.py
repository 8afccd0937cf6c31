"""Tests for the tool-call loop."""

from __future__ import annotations

import json
from typing import Any, AsyncGenerator

import pytest

from sparkchat.events import ContentDelta, StreamEnd, StreamError, StreamEvent, ToolCall, ToolResult, UsageReport
from sparkchat.services.agent_loop import model_content, run_agent_loop, user_content
from sparkchat.tools import ToolName, ToolRegistry


class ScriptedService:
    """Replays one scripted list of events per turn and records requests."""

    def __init__(self, *turns: list[StreamEvent]) -> None:
        self._turns = list(turns)
        self.requests: list[list[dict[str, Any]]] = []
        self.tools: list[Any] = []

    async def stream_turn(
        self, contents: list[dict[str, Any]], tools: list[dict[str, Any]] | None = None
    ) -> AsyncGenerator[StreamEvent, None]:
        self.requests.append(json.loads(json.dumps(contents)))
        self.tools.append(tools)
        for event in self._turns.pop(0):
            yield event


def _echo_registry() -> ToolRegistry:
    reg = ToolRegistry()

    async def run(command: str = "", **_: Any) -> dict[str, Any]:
        return {"message": f"ran {command}"}

    reg.register(ToolName.RUN_COMMAND, run, {"name": "run_command", "description": "run"})
    return reg


async def _collect(gen: AsyncGenerator[StreamEvent, None]) -> list[StreamEvent]:
    return [event async for event in gen]


class TestHistoryHelpers:
    def test_model_content_text_and_calls(self) -> None:
        content = model_content("hi", [ToolCall("run_command", '{"command": "ls"}')])
        assert content == {
            "role": "model",
            "parts": [{"text": "hi"}, {"functionCall": {"name": "run_command", "args": {"command": "ls"}}}],
        }

    def test_model_content_empty(self) -> None:
        assert model_content("", []) is None

    def test_model_content_bad_args(self) -> None:
        content = model_content("", [ToolCall("run_command", "null")])
        assert content["parts"][0]["functionCall"]["args"] == {}


class TestRunAgentLoop:
    @pytest.mark.asyncio
    async def test_plain_turn(self) -> None:
        service = ScriptedService([ContentDelta("Hi"), UsageReport(1, 2, 3), StreamEnd()])
        contents = [user_content("hello")]
        events = await _collect(run_agent_loop(service, contents))
        assert events == [ContentDelta("Hi"), UsageReport(1, 2, 3), StreamEnd()]
        assert contents[-1] == {"role": "model", "parts": [{"text": "Hi"}]}
        assert service.tools == [None]

    @pytest.mark.asyncio
    async def test_tool_call_runs_and_feeds_back(self) -> None:
        service = ScriptedService(
            [ContentDelta("Let me check."), ToolCall("run_command", '{"command":"ls"}'), StreamEnd()],
            [ContentDelta("Done."), StreamEnd()],
        )
        contents = [user_content("list files")]
        events = await _collect(run_agent_loop(service, contents, registry=_echo_registry()))

        assert events == [
            ContentDelta("Let me check."),
            ToolCall("run_command", '{"command":"ls"}'),
            ToolResult("run_command", "ran ls"),
            ContentDelta("Done."),
            StreamEnd(),
        ]
        second_request = service.requests[1]
        assert second_request[-1] == {
            "role": "user",
            "parts": [{"functionResponse": {"name": "run_command", "response": {"result": "ran ls"}}}],
        }
        assert second_request[-2]["role"] == "model"
        assert service.tools[0][0]["name"] == "run_command"

    @pytest.mark.asyncio
    async def test_unknown_tool_result_fed_back(self) -> None:
        service = ScriptedService(
            [ToolCall("teleport", "{}"), StreamEnd()],
            [ContentDelta("Sorry."), StreamEnd()],
        )
        events = await _collect(run_agent_loop(service, [user_content("go")], registry=_echo_registry()))
        assert ToolResult("teleport", "Error: Unknown tool 'teleport'") in events
        assert events[-1] == StreamEnd()

    @pytest.mark.asyncio
    async def test_tools_disabled(self) -> None:
        service = ScriptedService(
            [ToolCall("run_command", '{"command":"ls"}'), StreamEnd()],
            [StreamEnd()],
        )
        events = await _collect(run_agent_loop(service, [user_content("go")]))
        result = next(e for e in events if isinstance(e, ToolResult))
        assert "disabled" in result.output

    @pytest.mark.asyncio
    async def test_error_stops_turn(self) -> None:
        service = ScriptedService([ContentDelta("par"), StreamError("Error: reset"), StreamEnd()])
        events = await _collect(run_agent_loop(service, [user_content("x")], registry=_echo_registry()))
        assert events == [ContentDelta("par"), StreamError("Error: reset"), StreamEnd()]
        assert len(service.requests) == 1

    @pytest.mark.asyncio
    async def test_max_iterations(self) -> None:
        call = [ToolCall("run_command", '{"command":"ls"}'), StreamEnd()]
        service = ScriptedService(call, list(call))
        events = await _collect(
            run_agent_loop(service, [user_content("loop")], registry=_echo_registry(), max_iterations=2)
        )
        assert events[-2] == StreamError("Max tool iterations (2) reached")
        assert events[-1] == StreamEnd()
        assert sum(isinstance(e, StreamEnd) for e in events) == 1
