"""Web search through the DuckDuckGo HTML endpoint."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

SEARCH_URL = "https://html.duckduckgo.com/html/"
_MAX_RESULTS = 5
_TIMEOUT = 15.0
_RESULT_LINK = "a.result__a"

DEFINITION: dict[str, Any] = {
    "name": "search_google",
    "description": "Performs a simple web search",
    "parameters": {
        "type": "object",
        "properties": {
            "query": {"type": "string", "description": "The search query"},
        },
        "required": ["query"],
    },
}


def extract_titles(page: str, limit: int = _MAX_RESULTS) -> list[str]:
    soup = BeautifulSoup(page, "html.parser")
    titles = []
    for link in soup.select(_RESULT_LINK):
        title = link.get_text(" ", strip=True)
        if title:
            titles.append(title)
        if len(titles) >= limit:
            break
    return titles


async def handle(query: str = "", **_: Any) -> dict[str, Any]:
    if not query.strip():
        return {"error": "'query' is required"}
    try:
        async with httpx.AsyncClient(timeout=_TIMEOUT, follow_redirects=True) as client:
            response = await client.get(SEARCH_URL, params={"q": query})
            response.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning("Search request failed: %s", e)
        return {"error": f"Search request failed: {e}"}

    page = response.text
    titles = extract_titles(page)
    lines = [f"Search returned {len(page)} bytes."]
    lines.extend(f"- {t}" for t in titles)
    if not titles:
        lines.append("No results found.")
    return {"message": "\n".join(lines), "results": titles}
