"""
Web Search - destination information from Tavily, with Brave as fallback
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

import httpx
from loguru import logger
from tavily import AsyncTavilyClient

from ..config import settings
from ..errors import ProviderNotConfiguredError, SearchProviderError
from ..schemas.chat_schemas import WebSource


@dataclass
class SearchOutcome:
    """Answer text (when the provider writes one) plus the pages it used"""
    answer: str = ""
    sources: List[WebSource] = field(default_factory=list)
    provider: Optional[str] = None

    @property
    def empty(self) -> bool:
        return not self.answer and not self.sources


class TavilyClient:
    """
    Tavily search through the tavily-python async client.
    The SDK client is created lazily; tests can pass one in.
    """

    def __init__(self, api_key: Optional[str] = None, client: Optional[Any] = None):
        self.api_key = api_key if api_key is not None else settings.TAVILY_API_KEY
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.api_key) or self._client is not None

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = AsyncTavilyClient(api_key=self.api_key)
        return self._client

    async def search(
        self,
        query: str,
        max_results: int = 5,
        search_depth: str = "basic",
        include_answer: bool = True
    ) -> SearchOutcome:
        """
        Search the web with Tavily

        Raises:
            ProviderNotConfiguredError: no API key
            SearchProviderError: the SDK call failed or returned something unusable
        """
        if not self.configured:
            raise ProviderNotConfiguredError("Tavily")

        try:
            data = await self._get_client().search(
                query=query,
                search_depth=search_depth,
                max_results=max_results,
                include_answer=include_answer,
            )
            results = data.get("results") or []
            sources = [
                WebSource(title=r.get("title", ""), url=r.get("url", ""), content=r.get("content", ""))
                for r in results
            ]
        except Exception as e:
            raise SearchProviderError("Tavily", f"search failed: {e!r}")

        return SearchOutcome(answer=data.get("answer") or "", sources=sources, provider="tavily")


class BraveSearchClient:
    BASE_URL = "https://api.search.brave.com/res/v1"

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_key = api_key if api_key is not None else settings.BRAVE_SEARCH_API_KEY
        self.timeout = timeout or settings.HTTP_TIMEOUT
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def search(self, query: str, count: int = 10, safesearch: str = "moderate") -> SearchOutcome:
        """Brave web search; Brave writes no answer, only results"""
        if not self.configured:
            raise ProviderNotConfiguredError("Brave")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(
                    f"{self.BASE_URL}/web/search",
                    params={"q": query, "count": count, "safesearch": safesearch},
                    headers={
                        "X-Subscription-Token": self.api_key,
                        "Accept": "application/json",
                    }
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise SearchProviderError("Brave", f"search returned {e.response.status_code}", e.response.status_code)
        except httpx.HTTPError as e:
            raise SearchProviderError("Brave", f"search failed: {e}")

        try:
            results = (response.json().get("web") or {}).get("results", [])
            sources = [
                WebSource(title=r.get("title", ""), url=r.get("url", ""), content=r.get("description", ""))
                for r in results
            ]
        except (ValueError, AttributeError) as e:
            raise SearchProviderError("Brave", f"unusable response: {e!r}")
        return SearchOutcome(sources=sources, provider="brave")


class WebSearch:
    """
    Tries Tavily first, then Brave.
    Never raises: failures are logged and an empty outcome is returned.
    """

    def __init__(
        self,
        tavily: Optional[TavilyClient] = None,
        brave: Optional[BraveSearchClient] = None
    ):
        self.tavily = tavily or TavilyClient()
        self.brave = brave or BraveSearchClient()

    @property
    def available(self) -> bool:
        return self.tavily.configured or self.brave.configured

    async def search(self, query: str, max_results: int = 3) -> SearchOutcome:
        if self.tavily.configured:
            try:
                outcome = await self.tavily.search(query, max_results=max_results)
                if not outcome.empty:
                    return outcome
            except SearchProviderError as e:
                logger.warning(f"Tavily search failed: {e.message}")

        if self.brave.configured:
            try:
                outcome = await self.brave.search(query, count=max_results)
                outcome.sources = outcome.sources[:max_results]
                return outcome
            except SearchProviderError as e:
                logger.warning(f"Brave search failed: {e.message}")

        if not self.available:
            logger.warning("No web search provider configured")
        return SearchOutcome()


# Singleton instance
_search_instance: Optional[WebSearch] = None


def get_web_search() -> WebSearch:
    """Get singleton instance of WebSearch"""
    global _search_instance
    if _search_instance is None:
        _search_instance = WebSearch()
    return _search_instance
