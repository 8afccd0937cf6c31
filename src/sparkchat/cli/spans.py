"""Styled text primitives shared by the markdown renderer and highlighter."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SpanStyle:
    bold: bool = False
    dim: bool = False
    color: str | None = None  # "#rrggbb", foreground only


PLAIN = SpanStyle()
BOLD = SpanStyle(bold=True)
DIM = SpanStyle(dim=True)


@dataclass(frozen=True)
class Span:
    text: str
    style: SpanStyle = PLAIN


@dataclass(frozen=True)
class RenderLine:
    spans: tuple[Span, ...] = field(default_factory=tuple)

    @property
    def plain(self) -> str:
        return "".join(span.text for span in self.spans)


def coalesce(spans: list[Span]) -> list[Span]:
    """Merge neighbouring spans that share a style; drop empty ones."""
    merged: list[Span] = []
    for span in spans:
        if not span.text:
            continue
        if merged and merged[-1].style == span.style:
            merged[-1] = Span(merged[-1].text + span.text, span.style)
        else:
            merged.append(span)
    return merged
