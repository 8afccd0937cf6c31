"""Application state owned by the REPL's consumer loop.

Only the consumer mutates this object. Producer tasks (the input reader and
the per-turn stream task) hand their work over through the event queue.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from ..events import (
    ContentDelta,
    Message,
    Role,
    StreamEnd,
    StreamError,
    StreamEvent,
    ToolCall,
    ToolResult,
    UsageReport,
)
from ..services.agent_loop import function_response_content, model_content, user_content
from ..services.usage import UsageAccumulator, UsageTotals

WELCOME_MESSAGES = (
    "Welcome to sparkchat!",
    "Set GEMINI_API_KEY env var for real AI.",
)


class TurnInProgressError(RuntimeError):
    """A message was sent while the previous reply is still streaming."""


@dataclass
class AppState:
    messages: list[Message] = field(default_factory=list)
    history: list[dict[str, Any]] = field(default_factory=list)
    usage: UsageAccumulator = field(default_factory=UsageAccumulator)
    busy: bool = False
    _open: Message | None = field(default=None, repr=False)
    _reply_text: str = field(default="", repr=False)
    _reply_calls: list[ToolCall] = field(default_factory=list, repr=False)
    _results: list[ToolResult] = field(default_factory=list, repr=False)

    @classmethod
    def with_welcome(cls, demo_mode: bool) -> AppState:
        state = cls()
        state.add_system(WELCOME_MESSAGES[0])
        if demo_mode:
            state.add_system(WELCOME_MESSAGES[1])
        return state

    @property
    def totals(self) -> UsageTotals:
        return self.usage.totals

    @property
    def open_message(self) -> Message | None:
        """The assistant message still receiving text, if any."""
        return self._open

    def add_system(self, text: str) -> Message:
        msg = Message(Role.SYSTEM, text, frozen=True)
        self.messages.append(msg)
        return msg

    def begin_turn(self, text: str) -> list[dict[str, Any]]:
        """Record a user message and return the request history for the turn."""
        if self.busy:
            raise TurnInProgressError("A response is still streaming; wait for it to finish.")
        self.busy = True
        self.messages.append(Message(Role.USER, text, frozen=True))
        self.history.append(user_content(text))
        return list(self.history)

    def clear(self) -> None:
        """Drop the transcript and history; usage totals are kept."""
        if self.busy:
            raise TurnInProgressError("Cannot clear while a response is streaming.")
        self.messages.clear()
        self.history.clear()

    def apply(self, event: StreamEvent) -> Message | None:
        """Fold one stream event into the state; returns the message it touched."""
        if isinstance(event, UsageReport):
            self.usage.apply(event)
            return None

        if isinstance(event, ContentDelta):
            self._flush_results()
            self._reply_text += event.text
            if self._open is None:
                self._open = Message(Role.ASSISTANT)
                self.messages.append(self._open)
            self._open.append(event.text)
            return self._open

        if isinstance(event, ToolCall):
            self._flush_results()
            self._reply_calls.append(event)
            self._close_open()
            return self.add_system(f"> {event.name}({_short_args(event.arguments)})")

        if isinstance(event, ToolResult):
            self._flush_reply()
            self._results.append(event)
            return self.add_system(f"< {event.name}: {_first_line(event.output)}")

        if isinstance(event, StreamError):
            self._close_open()
            msg = Message(Role.ERROR, event.message, frozen=True)
            self.messages.append(msg)
            return msg

        if isinstance(event, StreamEnd):
            msg = self._close_open()
            self._flush_reply()
            self._flush_results()
            self.busy = False
            return msg

        return None

    def _close_open(self) -> Message | None:
        msg = self._open
        if msg is not None:
            msg.frozen = True
            self._open = None
        return msg

    def _flush_reply(self) -> None:
        reply = model_content(self._reply_text, self._reply_calls)
        if reply:
            self.history.append(reply)
        self._reply_text = ""
        self._reply_calls = []

    def _flush_results(self) -> None:
        if self._results:
            self.history.append(function_response_content(self._results))
            self._results = []


def _short_args(arguments: str, limit: int = 120) -> str:
    try:
        text = json.dumps(json.loads(arguments), ensure_ascii=False)
    except json.JSONDecodeError:
        text = arguments
    return text if len(text) <= limit else text[:limit] + "..."


def _first_line(output: str, limit: int = 120) -> str:
    line = output.strip().splitlines()[0] if output.strip() else "(no output)"
    return line if len(line) <= limit else line[:limit] + "..."
