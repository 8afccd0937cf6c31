"""Incremental decoder for the server-sent event stream of a chat turn.

Network chunks arrive with arbitrary boundaries. The decoder keeps the
undelimited tail in a buffer, splits off complete lines as they appear and
turns every ``data:`` line into zero or more events. A payload that does not
parse is dropped: a JSON object is not guaranteed to line up with a chunk, and
the next complete line decodes independently of it.
"""

from __future__ import annotations

import codecs
import json
import logging
from typing import Any

from ..events import ContentDelta, StreamEnd, StreamError, StreamEvent, ToolCall, UsageReport

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "


def _int_field(block: dict[str, Any], key: str) -> int:
    value = block.get(key, 0)
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return value


def decode_payload(payload: Any) -> list[StreamEvent]:
    """Extract events from one decoded ``data:`` object.

    Parts of the first candidate are inspected independently: a part may
    carry text, a function call, or both. A ``usageMetadata`` block always
    yields one usage report, missing counters defaulting to zero.
    """
    if not isinstance(payload, dict):
        return []

    events: list[StreamEvent] = []
    candidates = payload.get("candidates")
    if isinstance(candidates, list) and candidates:
        first = candidates[0]
        content = first.get("content") if isinstance(first, dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if isinstance(parts, list):
            for part in parts:
                if not isinstance(part, dict):
                    continue
                text = part.get("text")
                if isinstance(text, str) and text:
                    events.append(ContentDelta(text))
                call = part.get("functionCall")
                if isinstance(call, dict) and isinstance(call.get("name"), str):
                    arguments = json.dumps(call.get("args"), separators=(",", ":"))
                    events.append(ToolCall(name=call["name"], arguments=arguments))

    usage = payload.get("usageMetadata")
    if isinstance(usage, dict):
        events.append(
            UsageReport(
                prompt=_int_field(usage, "promptTokenCount"),
                response=_int_field(usage, "candidatesTokenCount"),
                total=_int_field(usage, "totalTokenCount"),
            )
        )
    return events


class StreamDecoder:
    """Turns raw byte chunks of one stream session into events."""

    def __init__(self) -> None:
        self._text = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> str:
        """The retained partial line, not yet terminated by a line feed."""
        return self._buffer

    def ingest(self, chunk: bytes) -> list[StreamEvent]:
        if self._closed:
            logger.debug("Ignoring %d bytes after the stream was closed", len(chunk))
            return []

        self._buffer += self._text.decode(chunk)
        events: list[StreamEvent] = []
        while True:
            pos = self._buffer.find("\n")
            if pos < 0:
                break
            line = self._buffer[:pos]
            self._buffer = self._buffer[pos + 1 :]
            if line.endswith("\r"):
                line = line[:-1]
            events.extend(self._decode_line(line))
        return events

    def finalize(self) -> list[StreamEvent]:
        """Close the session; any partial line left in the buffer is discarded."""
        if self._closed:
            return []
        self._closed = True
        if self._buffer:
            logger.debug("Discarding %d chars of unterminated input", len(self._buffer))
        self._buffer = ""
        self._text.reset()
        return [StreamEnd()]

    def fail(self, message: str) -> list[StreamEvent]:
        """Record a transport failure; no further input is decoded."""
        if self._closed:
            return []
        self._closed = True
        self._buffer = ""
        self._text.reset()
        return [StreamError(message)]

    def _decode_line(self, line: str) -> list[StreamEvent]:
        if not line.startswith(DATA_PREFIX):
            return []
        body = line[len(DATA_PREFIX) :]
        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            logger.debug("Dropping malformed event line: %.80s", body)
            return []
        return decode_payload(payload)
