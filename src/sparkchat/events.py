"""Events decoded from the model stream, and chat messages."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class StreamEvent:
    """Base for all events produced by a stream session."""


@dataclass(frozen=True)
class ContentDelta(StreamEvent):
    text: str


@dataclass(frozen=True)
class ToolCall(StreamEvent):
    """A function invocation requested by the model.

    ``arguments`` is the raw argument object re-serialized as JSON text.
    """

    name: str
    arguments: str


@dataclass(frozen=True)
class UsageReport(StreamEvent):
    prompt: int = 0
    response: int = 0
    total: int = 0


@dataclass(frozen=True)
class StreamError(StreamEvent):
    message: str


@dataclass(frozen=True)
class StreamEnd(StreamEvent):
    """Terminal event; always the last event of a turn."""


@dataclass(frozen=True)
class ToolResult(StreamEvent):
    """Text produced by running a tool, fed back to the model."""

    name: str
    output: str


class Role(str, Enum):
    USER = "You"
    ASSISTANT = "AI"
    SYSTEM = "System"
    ERROR = "Error"


@dataclass
class Message:
    role: Role
    text: str = ""
    frozen: bool = False

    def append(self, text: str) -> None:
        if self.frozen:
            raise ValueError("Cannot append to a finished message")
        self.text += text
