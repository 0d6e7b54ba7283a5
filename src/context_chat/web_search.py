"""Web search client — instant answers first, encyclopedia search as fallback.

Failure model:
    Nothing here raises to the caller. A provider that errors, times out,
    or answers with nothing usable hands over to the next one; when every
    provider comes back empty the result is an empty list. Each provider
    is attempted once with its own timeout, never retried.
"""

import asyncio
import html
import logging
import re
from typing import Any
from urllib.parse import quote

import httpx

from context_chat.models import WebResult

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")


def _clean_snippet(text: str) -> str:
    """Strip markup and collapse whitespace into one readable line."""
    text = html.unescape(_TAG_RE.sub(" ", text))
    return _WHITESPACE_RE.sub(" ", text).strip()


class WebSearchClient:
    """Queries public search APIs and normalizes their results.

    Args:
        http_client: Shared async client. One is created per instance
            when not supplied; call :meth:`aclose` to release it.
        timeout_s: Budget for each provider stage.
        user_agent: Sent with every request.
    """

    DDG_URL = "https://api.duckduckgo.com/"
    WIKIPEDIA_URL = "https://en.wikipedia.org/w/api.php"
    WIKIPEDIA_ARTICLE_URL = "https://en.wikipedia.org/wiki/"
    DDG_FALLBACK_TITLE = "DuckDuckGo Related Topic"

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        timeout_s: float = 10.0,
        user_agent: str = "context-chat/1.0",
    ) -> None:
        self._owns_client = http_client is None
        self._client = (
            http_client
            if http_client is not None
            else httpx.AsyncClient(follow_redirects=True)
        )
        self.timeout_s = timeout_s
        self.user_agent = user_agent

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def search(
        self, query: str, top_k: int, timeout_s: float | None = None
    ) -> list[WebResult]:
        """Return up to *top_k* results for *query*, or an empty list.

        *timeout_s* overrides the per-stage budget for this call.
        """
        budget = timeout_s if timeout_s is not None else self.timeout_s
        safe_query = (query or "").strip()
        if not safe_query or top_k <= 0:
            return []

        try:
            results = await asyncio.wait_for(
                self._search_duckduckgo(safe_query, top_k, budget), budget
            )
            if results:
                return results
            logger.debug("DuckDuckGo returned no topics, falling back to Wikipedia")
        except (httpx.HTTPError, ValueError, asyncio.TimeoutError) as exc:
            logger.info("DuckDuckGo search failed (%s), falling back", type(exc).__name__)

        try:
            return await asyncio.wait_for(
                self._search_wikipedia(safe_query, top_k, budget), budget
            )
        except (httpx.HTTPError, ValueError, asyncio.TimeoutError) as exc:
            logger.info("Wikipedia search failed (%s)", type(exc).__name__)
            return []

    async def _get_json(
        self, url: str, params: dict[str, Any], timeout_s: float
    ) -> Any:
        response = await self._client.get(
            url,
            params=params,
            timeout=timeout_s,
            headers={"User-Agent": self.user_agent, "Accept": "application/json"},
        )
        response.raise_for_status()
        return response.json()

    async def _search_duckduckgo(
        self, query: str, top_k: int, timeout_s: float
    ) -> list[WebResult]:
        data = await self._get_json(
            self.DDG_URL,
            {"q": query, "format": "json", "no_redirect": 1, "no_html": 1},
            timeout_s,
        )
        topics = data.get("RelatedTopics") if isinstance(data, dict) else None
        if not isinstance(topics, list):
            return []

        out: list[WebResult] = []
        for topic in topics:
            if len(out) >= top_k:
                break
            if not isinstance(topic, dict):
                continue

            result = self._parse_ddg_topic(topic)
            if result is not None:
                out.append(result)
                continue

            nested = topic.get("Topics")
            if isinstance(nested, list):
                for nested_topic in nested:
                    if len(out) >= top_k:
                        break
                    if isinstance(nested_topic, dict):
                        result = self._parse_ddg_topic(nested_topic)
                        if result is not None:
                            out.append(result)

        return out[:top_k]

    def _parse_ddg_topic(self, topic: dict[str, Any]) -> WebResult | None:
        text = topic.get("Text")
        url = topic.get("FirstURL")
        if not text or not url:
            return None
        text = str(text)
        return WebResult(
            title=text.split(" - ")[0].strip() or self.DDG_FALLBACK_TITLE,
            link=str(url),
            snippet=_clean_snippet(text),
        )

    async def _search_wikipedia(
        self, query: str, top_k: int, timeout_s: float
    ) -> list[WebResult]:
        data = await self._get_json(
            self.WIKIPEDIA_URL,
            {
                "action": "query",
                "list": "search",
                "srsearch": query,
                "format": "json",
                "utf8": 1,
                "srlimit": top_k,
            },
            timeout_s,
        )
        query_block = data.get("query") if isinstance(data, dict) else None
        hits = query_block.get("search") if isinstance(query_block, dict) else None
        if not isinstance(hits, list):
            return []

        out: list[WebResult] = []
        for item in hits:
            if not isinstance(item, dict):
                continue
            title = str(item.get("title") or "").strip()
            if not title:
                continue
            link = self.WIKIPEDIA_ARTICLE_URL + quote(
                _WHITESPACE_RE.sub("_", title), safe=""
            )
            out.append(
                WebResult(
                    title=title,
                    link=link,
                    snippet=_clean_snippet(str(item.get("snippet") or "")),
                )
            )
        return out[:top_k]
