"""CLI entry point for sparkchat."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from . import __version__
from .config import AppConfig, _get_config_path, load_config


def _print_setup_guide(config_path: Path) -> None:
    print(
        f"\nTo use a real model, create {config_path} with:\n\n"
        "ai:\n"
        '  api_key: "your-gemini-api-key"\n'
        '  model: "gemini-3-flash-preview"\n'
        "\nOr set environment variables:\n"
        "  GEMINI_API_KEY=your-gemini-api-key\n"
        "  SPARKCHAT_MODEL=gemini-3-flash-preview\n",
        file=sys.stderr,
    )


def _load_config_or_exit(config_path: Path | None) -> AppConfig:
    path = config_path or _get_config_path()
    try:
        return load_config(path)
    except (ValueError, OSError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        _print_setup_guide(path)
        sys.exit(1)


def _setup_logging(config: AppConfig, debug: bool) -> None:
    """Log records go to a file; the terminal belongs to the chat."""
    if not (debug or config.cli.debug_log):
        logging.getLogger().addHandler(logging.NullHandler())
        return
    handler = logging.FileHandler(config.data_dir / "debug.log", encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG)


def main() -> None:
    parser = argparse.ArgumentParser(prog="sparkchat", description="sparkchat - chat with Gemini in your terminal")
    parser.add_argument("prompt", nargs="?", default=None, help="One-shot prompt (omit for REPL)")
    parser.add_argument("--model", default=None, help="Model name (overrides config)")
    parser.add_argument("--no-tools", action="store_true", help="Disable built-in tools")
    parser.add_argument("--debug", action="store_true", help="Write a debug log to the data directory")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args()

    config = _load_config_or_exit(args.config)
    if args.model:
        config.ai.model = args.model
    _setup_logging(config, args.debug)

    from .cli.repl import run_cli

    try:
        asyncio.run(run_cli(config, prompt=args.prompt, no_tools=args.no_tools))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
