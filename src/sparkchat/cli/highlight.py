"""Pygments-backed syntax colouring for fenced code blocks."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name
from pygments.lexers.special import TextLexer
from pygments.style import Style
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

from .spans import Span, SpanStyle, coalesce

THEME = "monokai"

# Pygments turns a bare "\r" into a line break; carry it through as this instead
_CR_STANDIN = "\ue000"


@lru_cache(maxsize=64)
def get_lexer(language: str) -> Lexer:
    """Lexer for a fence tag such as ``py`` or ``rust``; plain text if unknown."""
    options = {"stripnl": False, "ensurenl": True}
    if language:
        try:
            return get_lexer_by_name(language.lower(), **options)
        except ClassNotFound:
            pass
    return TextLexer(**options)


@lru_cache(maxsize=1)
def _get_style() -> type[Style]:
    return get_style_by_name(THEME)


@lru_cache(maxsize=256)
def _style_for(token_type: Any) -> SpanStyle:
    color = _get_style().style_for_token(token_type).get("color")
    return SpanStyle(color=f"#{color}" if color else None)


def highlight(language: str, source: str) -> list[list[Span]]:
    """Colour ``source`` and return one span list per source line.

    Token values that cross a newline are split so each line stands on its
    own; the newline characters themselves are not part of any span. Carriage
    returns inside a line stay in that line's text.
    """
    if not source:
        return []

    lines: list[list[Span]] = []
    current: list[Span] = []
    for token_type, value in get_lexer(language).get_tokens(source.replace("\r", _CR_STANDIN)):
        style = _style_for(token_type)
        pieces = value.replace(_CR_STANDIN, "\r").split("\n")
        for i, piece in enumerate(pieces):
            if i > 0:
                lines.append(coalesce(current))
                current = []
            if piece:
                current.append(Span(piece, style))
    if current:
        lines.append(coalesce(current))

    # the lexer guarantees a trailing newline; keep the line count of the input
    expected = source.count("\n") + (0 if source.endswith("\n") else 1)
    return lines[:expected]
