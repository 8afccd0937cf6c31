"""HTTP transport for streamed Gemini responses, plus the offline demo."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncGenerator

import httpx

from ..config import AIConfig
from ..events import ContentDelta, StreamEnd, StreamEvent, UsageReport
from .stream_decoder import StreamDecoder

logger = logging.getLogger(__name__)


class AIService:
    """Streams one model turn per request; every turn ends with ``StreamEnd``.

    There is no retry and no read timeout: a failed turn reports one error
    event, and a stalled connection waits until the transport gives up.
    """

    def __init__(self, config: AIConfig, http_client: httpx.AsyncClient | None = None) -> None:
        self.config = config
        if http_client is None:
            # SECURITY-REVIEW: verify=False only when user explicitly sets verify_ssl: false in config
            http_client = httpx.AsyncClient(
                verify=config.verify_ssl,
                timeout=httpx.Timeout(None, connect=float(config.connect_timeout)),
            )
        self.client = http_client

    @property
    def stream_url(self) -> str:
        return f"{self.config.base_url}/models/{self.config.model}:streamGenerateContent"

    def build_request_body(
        self,
        contents: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"contents": contents}
        if self.config.system_prompt:
            body["systemInstruction"] = {"parts": [{"text": self.config.system_prompt}]}
        if tools:
            body["tools"] = [{"functionDeclarations": tools}]
        return body

    async def stream_turn(
        self,
        contents: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
    ) -> AsyncGenerator[StreamEvent, None]:
        decoder = StreamDecoder()
        params = {"key": self.config.api_key, "alt": "sse"}
        body = self.build_request_body(contents, tools)

        try:
            async with self.client.stream("POST", self.stream_url, params=params, json=body) as response:
                if not response.is_success:
                    text = (await response.aread()).decode("utf-8", errors="replace")
                    logger.warning("API returned %d for %s", response.status_code, self.config.model)
                    for event in decoder.fail(f"API Error {response.status_code}: {text}"):
                        yield event
                    yield StreamEnd()
                    return

                async for chunk in response.aiter_bytes():
                    logger.debug("Chunk: %r", chunk)
                    for event in decoder.ingest(chunk):
                        yield event
        except (httpx.HTTPError, OSError) as e:
            logger.warning("Stream read failed: %s", e)
            for event in decoder.fail(f"Error: {e}"):
                yield event
            yield StreamEnd()
            return

        for event in decoder.finalize():
            yield event

    async def aclose(self) -> None:
        await self.client.aclose()


def _last_user_text(contents: list[dict[str, Any]]) -> str:
    for content in reversed(contents):
        if content.get("role") != "user":
            continue
        texts = [p["text"] for p in content.get("parts", []) if isinstance(p.get("text"), str)]
        if texts:
            return "".join(texts)
    return ""


class DemoService:
    """Scripted stand-in used when no API key is configured."""

    def __init__(self, delay: float = 0.2) -> None:
        self.delay = delay

    async def stream_turn(
        self,
        contents: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
    ) -> AsyncGenerator[StreamEvent, None]:
        prompt = _last_user_text(contents)
        await asyncio.sleep(self.delay * 2.5)
        yield ContentDelta("(Mock AI): ")
        await asyncio.sleep(self.delay)
        yield ContentDelta(f"I received: '{prompt}'.\n")
        await asyncio.sleep(self.delay)
        yield ContentDelta("Set GEMINI_API_KEY for real responses.")
        yield UsageReport(prompt=10, response=20, total=30)
        yield StreamEnd()

    async def aclose(self) -> None:
        pass


def create_ai_service(config: AIConfig) -> AIService | DemoService:
    if config.demo_mode:
        logger.info("No API key configured; using the offline demo")
        return DemoService()
    return AIService(config)
