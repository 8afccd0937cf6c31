"""REPL loop and one-shot mode for the sparkchat CLI."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any

from ..config import AppConfig
from ..events import ContentDelta, StreamEnd, StreamError, StreamEvent, ToolCall, ToolResult
from ..services.agent_loop import ChatService, run_agent_loop
from ..services.ai_service import create_ai_service
from ..tools import ToolRegistry, register_default_tools
from . import renderer
from .app_state import AppState, TurnInProgressError

logger = logging.getLogger(__name__)

# Queue items: ("input", str) | ("event", StreamEvent) | ("eof", None)
QueueItem = tuple[str, Any]


def build_registry(config: AppConfig, no_tools: bool = False) -> ToolRegistry | None:
    if no_tools or not config.cli.builtin_tools:
        return None
    registry = ToolRegistry()
    register_default_tools(registry, working_dir=os.getcwd(), command_timeout=config.cli.command_timeout)
    return registry


class ChatSession:
    """Single consumer of the event queue; the only writer of ``AppState``."""

    def __init__(
        self,
        config: AppConfig,
        service: ChatService,
        registry: ToolRegistry | None,
    ) -> None:
        self.config = config
        self.service = service
        self.registry = registry
        self.state = AppState.with_welcome(config.ai.demo_mode)
        self.queue: asyncio.Queue[QueueItem] = asyncio.Queue()
        self.live = renderer.LiveMessage()
        self._turn_task: asyncio.Task[None] | None = None

    async def _run_turn(self, contents: list[dict[str, Any]]) -> None:
        """Producer: pushes every event of one turn onto the queue, in order."""
        try:
            async for event in run_agent_loop(
                self.service,
                contents,
                registry=self.registry,
                max_iterations=self.config.cli.max_tool_iterations,
            ):
                await self.queue.put(("event", event))
        except Exception as e:
            logger.exception("Turn failed")
            await self.queue.put(("event", StreamError(f"Error: {e}")))
            await self.queue.put(("event", StreamEnd()))

    def send(self, text: str) -> bool:
        """Start a turn for ``text``; False if one is still outstanding."""
        try:
            contents = self.state.begin_turn(text)
        except TurnInProgressError as e:
            renderer.render_notice(str(e))
            return False
        self._turn_task = asyncio.create_task(self._run_turn(contents))
        return True

    def handle_event(self, event: StreamEvent) -> None:
        msg = self.state.apply(event)
        if isinstance(event, ContentDelta) and msg is not None:
            self.live.update(msg)
        elif isinstance(event, (ToolCall, ToolResult)) and msg is not None:
            self.live.stop()
            renderer.render_message(msg)
        elif isinstance(event, StreamError):
            self.live.stop()
            renderer.render_error(event.message)
        elif isinstance(event, StreamEnd):
            self.live.stop()
            renderer.render_usage(self.state.totals)

    def handle_command(self, text: str) -> bool:
        """Run a slash command; returns False when the session should end."""
        cmd = text.lower().split()[0]
        if cmd in ("/quit", "/exit"):
            return False
        if cmd == "/help":
            renderer.render_help()
        elif cmd == "/clear":
            try:
                self.state.clear()
                renderer.render_notice("Conversation cleared.")
            except TurnInProgressError as e:
                renderer.render_notice(str(e))
        elif cmd == "/usage":
            renderer.render_usage(self.state.totals)
        elif cmd == "/tools":
            renderer.render_tools(self.registry.list_tools() if self.registry else [])
        else:
            renderer.render_notice(f"Unknown command: {cmd} (type /help)")
        return True

    async def consume(self) -> None:
        while True:
            kind, payload = await self.queue.get()
            if kind == "eof":
                return
            if kind == "event":
                self.handle_event(payload)
                continue
            text = payload.strip()
            if not text:
                continue
            if text.startswith("/"):
                if not self.handle_command(text):
                    return
                continue
            self.send(text)

    async def shutdown(self) -> None:
        self.live.stop()
        if self._turn_task and not self._turn_task.done():
            self._turn_task.cancel()
            try:
                await self._turn_task
            except asyncio.CancelledError:
                pass
        aclose = getattr(self.service, "aclose", None)
        if aclose:
            await aclose()


async def _collect_input(session: Any, queue: asyncio.Queue[QueueItem]) -> None:
    """Producer: reads lines from the terminal onto the queue."""
    while True:
        try:
            text = await session.prompt_async("> ")
        except EOFError:
            await queue.put(("eof", None))
            return
        except KeyboardInterrupt:
            continue
        await queue.put(("input", text))


async def run_cli(config: AppConfig, prompt: str | None = None, no_tools: bool = False) -> None:
    service = create_ai_service(config.ai)
    registry = build_registry(config, no_tools=no_tools)
    chat = ChatSession(config, service, registry)

    if prompt is not None:
        await run_once(chat, prompt)
        return

    from prompt_toolkit import PromptSession
    from prompt_toolkit.history import FileHistory
    from prompt_toolkit.patch_stdout import patch_stdout

    renderer.render_welcome(config.ai.model, config.ai.demo_mode, len(registry.list_tools()) if registry else 0)
    for msg in chat.state.messages:
        renderer.render_message(msg)

    session: PromptSession[str] = PromptSession(history=FileHistory(str(config.data_dir / "history")))
    with patch_stdout(raw=True):
        input_task = asyncio.create_task(_collect_input(session, chat.queue))
        try:
            await chat.consume()
        finally:
            input_task.cancel()
            try:
                await input_task
            except asyncio.CancelledError:
                pass
            await chat.shutdown()


async def run_once(chat: ChatSession, prompt: str) -> None:
    """Send a single prompt, print the reply and return."""
    chat.send(prompt)
    try:
        while chat.state.busy:
            _kind, event = await chat.queue.get()
            chat.handle_event(event)
    finally:
        await chat.shutdown()
