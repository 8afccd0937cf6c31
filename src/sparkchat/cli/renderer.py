"""Rich-based terminal output for the chat."""

from __future__ import annotations

from rich.console import Console, Group
from rich.live import Live
from rich.markup import escape
from rich.padding import Padding
from rich.style import Style
from rich.text import Text

from ..events import Message, Role
from ..services.usage import UsageTotals
from .markdown import render
from .spans import RenderLine, SpanStyle

console = Console()

ROLE_COLORS = {
    Role.USER: "blue",
    Role.ASSISTANT: "green",
    Role.ERROR: "red",
    Role.SYSTEM: "yellow",
}

FENCE_COLOR = "grey50"


def _rich_style(style: SpanStyle) -> Style:
    if style.dim:
        return Style(color=FENCE_COLOR)
    return Style(bold=style.bold or None, color=style.color)


def to_text(line: RenderLine) -> Text:
    text = Text(no_wrap=False)
    for span in line.spans:
        text.append(span.text, style=_rich_style(span.style))
    return text


def _header(msg: Message) -> Text:
    return Text(f"{msg.role.value}: ", style=Style(bold=True, color=ROLE_COLORS[msg.role]))


def message_renderable(msg: Message, streaming: bool = False) -> Group:
    """Header line plus the rendered body of one message."""
    if msg.role in (Role.USER, Role.ERROR, Role.SYSTEM):
        # only the assistant writes markdown
        body = [Text(line) for line in msg.text.splitlines()] or [Text("")]
    else:
        body = [to_text(line) for line in render(msg.text)]
    header = _header(msg)
    if streaming:
        header.append("...", style="yellow")
    return Group(header, Padding(Group(*body), (0, 0, 0, 2)))


def render_message(msg: Message) -> None:
    console.print(message_renderable(msg))
    console.print()


class LiveMessage:
    """Redraws the open assistant message in place after every delta."""

    def __init__(self) -> None:
        self._live: Live | None = None
        self._message: Message | None = None

    @property
    def active(self) -> bool:
        return self._live is not None

    def update(self, msg: Message) -> None:
        self._message = msg
        renderable = message_renderable(msg, streaming=True)
        if self._live is None:
            self._live = Live(renderable, console=console, auto_refresh=False, transient=False)
            self._live.start()
        self._live.update(renderable, refresh=True)

    def stop(self) -> None:
        """Draw the message one last time without the streaming marker."""
        if self._live is None:
            return
        if self._message is not None:
            self._live.update(message_renderable(self._message), refresh=True)
        self._live.stop()
        self._live = None
        self._message = None
        console.print()


def render_error(message: str) -> None:
    console.print(f"\n[red bold]Error:[/red bold] {escape(message)}")


def render_notice(message: str) -> None:
    console.print(f"[grey62]{escape(message)}[/grey62]")


def render_usage(totals: UsageTotals) -> None:
    console.print(
        f"[grey62]  tokens | prompt: {totals.prompt:,} | response: {totals.response:,} "
        f"| total: {totals.total:,}[/grey62]"
    )


def render_welcome(model: str, demo_mode: bool, tool_count: int) -> None:
    mode = "offline demo" if demo_mode else escape(model)
    console.print(f"\n[bold]sparkchat[/bold] - {mode} | Tools: {tool_count}")
    console.print("  Type [bold]/help[/bold] for commands, [bold]Ctrl+D[/bold] to exit\n")


def render_help() -> None:
    console.print("\n[bold]Commands:[/bold]")
    console.print("  /help       - Show this help")
    console.print("  /clear      - Clear the conversation")
    console.print("  /usage      - Show token usage for this session")
    console.print("  /tools      - List available tools")
    console.print("  /quit       - Exit")
    console.print("  Ctrl+D      - Exit\n")


def render_tools(tool_names: list[str]) -> None:
    console.print("\n[bold]Available tools:[/bold]")
    for name in sorted(tool_names):
        console.print(f"  - {name}")
    console.print()
