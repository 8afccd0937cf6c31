"""Sparkchat - a terminal chat client for streaming Gemini models."""

__version__ = "0.3.0"
