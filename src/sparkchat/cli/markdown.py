"""Render the text of a (possibly still streaming) message into styled lines.

``render`` is a pure function of the full message text. It is called again
after every content delta, so a code block that is still open at the end of
the text is coloured with what has arrived so far and recoloured as a whole
on the next call.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .highlight import highlight
from .spans import BOLD, DIM, PLAIN, RenderLine, Span

FENCE = "```"
EMPHASIS_MARKER = "**"


@dataclass
class _Fence:
    language: str
    source: list[str] = field(default_factory=list)


def _split_lines(text: str) -> list[str]:
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def _fence_language(marker_line: str) -> str:
    rest = marker_line.strip()[len(FENCE) :].strip()
    return rest.split()[0] if rest else ""


def parse_inline_styles(line: str) -> list[Span]:
    """Split a line into plain and bold spans on ``**`` toggles.

    The bold flag starts off for every line; an unmatched marker leaves the
    rest of that line bold.
    """
    spans: list[Span] = []
    bold = False
    pos = 0
    while True:
        idx = line.find(EMPHASIS_MARKER, pos)
        if idx < 0:
            break
        if idx > pos:
            spans.append(Span(line[pos:idx], BOLD if bold else PLAIN))
        bold = not bold
        pos = idx + len(EMPHASIS_MARKER)
    if pos < len(line):
        spans.append(Span(line[pos:], BOLD if bold else PLAIN))
    return spans


def _code_lines(fence: _Fence) -> list[RenderLine]:
    source = "".join(line + "\n" for line in fence.source)
    return [RenderLine(tuple(spans)) for spans in highlight(fence.language, source)]


def render(full_text: str) -> list[RenderLine]:
    lines: list[RenderLine] = []
    fence: _Fence | None = None

    for line in _split_lines(full_text):
        if line.strip().startswith(FENCE):
            if fence is None:
                fence = _Fence(_fence_language(line))
                lines.append(RenderLine((Span(line, DIM),)))
            else:
                lines.extend(_code_lines(fence))
                lines.append(RenderLine((Span(FENCE, DIM),)))
                fence = None
        elif fence is not None:
            fence.source.append(line)
        else:
            lines.append(RenderLine(tuple(parse_inline_styles(line))))

    # unterminated block: the rest of it has not streamed in yet
    if fence is not None and fence.source:
        lines.extend(_code_lines(fence))
    return lines
