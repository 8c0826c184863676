"""Clearly Politics Backend — News Search via a provider fallback chain.

Providers are tried in priority order (Mediastack, GNews, Newsdata, NYT);
the first one to return articles wins. Providers without an API key are
skipped. All providers normalise to ``NewsArticle``.
"""

import logging
from typing import Optional

import httpx

from config import (
    MEDIASTACK_API_KEY, GNEWS_API_KEY, NEWSDATA_API_KEY, NYT_API_KEY,
    MEDIASTACK_REQUEST_LIMIT,
)
from cache import TTLCache, news_cache
from models import NewsArticle

logger = logging.getLogger("clearly.news")

_news_client = httpx.AsyncClient(timeout=10.0)

MAX_ARTICLES = 5


class NewsProvider:
    """One news search API. Subclasses implement ``_search``."""

    name = "base"

    def __init__(self, api_key: str = ""):
        self.api_key = api_key
        self.request_count = 0

    def is_available(self) -> bool:
        return bool(self.api_key)

    async def search(self, query: str) -> list[NewsArticle]:
        self.request_count += 1
        return await self._search(query)

    async def _search(self, query: str) -> list[NewsArticle]:
        raise NotImplementedError


class MediastackProvider(NewsProvider):
    name = "mediastack"

    def is_available(self) -> bool:
        return bool(self.api_key) and self.request_count < MEDIASTACK_REQUEST_LIMIT

    async def _search(self, query: str) -> list[NewsArticle]:
        r = await _news_client.get("http://api.mediastack.com/v1/news", params={
            "access_key": self.api_key,
            "keywords": query,
            "languages": "en",
            "sort": "published_desc",
            "limit": MAX_ARTICLES,
        })
        r.raise_for_status()
        return [
            NewsArticle(
                title=a.get("title") or "",
                description=a.get("description") or "",
                content=a.get("description") or "",
                url=a.get("url") or "",
                publishedAt=a.get("published_at") or "",
                source=a.get("source") or "",
            )
            for a in r.json().get("data", [])
        ]


class GNewsProvider(NewsProvider):
    name = "gnews"

    async def _search(self, query: str) -> list[NewsArticle]:
        r = await _news_client.get("https://gnews.io/api/v4/search", params={
            "q": query,
            "lang": "en",
            "country": "us",
            "max": MAX_ARTICLES,
            "apikey": self.api_key,
        })
        r.raise_for_status()
        return [
            NewsArticle(
                title=a.get("title") or "",
                description=a.get("description") or "",
                content=a.get("content") or "",
                url=a.get("url") or "",
                publishedAt=a.get("publishedAt") or "",
                source=(a.get("source") or {}).get("name", ""),
            )
            for a in r.json().get("articles", [])
        ]


class NewsdataProvider(NewsProvider):
    name = "newsdata"

    async def _search(self, query: str) -> list[NewsArticle]:
        r = await _news_client.get("https://newsdata.io/api/1/news", params={
            "apikey": self.api_key,
            "q": query,
            "language": "en",
            "country": "us",
        })
        r.raise_for_status()
        return [
            NewsArticle(
                title=a.get("title") or "",
                description=a.get("description") or "",
                content=a.get("content") or "",
                url=a.get("link") or "",
                publishedAt=a.get("pubDate") or "",
                source=a.get("source_id") or "",
            )
            for a in r.json().get("results", [])[:MAX_ARTICLES]
        ]


class NYTProvider(NewsProvider):
    """Article Search, falling back to filtering the Most Popular list."""

    name = "nyt"

    async def _search(self, query: str) -> list[NewsArticle]:
        try:
            r = await _news_client.get(
                "https://api.nytimes.com/svc/search/v2/articlesearch.json",
                params={"api-key": self.api_key, "q": query, "sort": "newest"},
            )
            r.raise_for_status()
            docs = r.json().get("response", {}).get("docs", [])
            return [
                NewsArticle(
                    title=(d.get("headline") or {}).get("main", ""),
                    description=d.get("abstract") or "",
                    content=d.get("lead_paragraph") or "",
                    url=d.get("web_url") or "",
                    publishedAt=d.get("pub_date") or "",
                    source="The New York Times",
                )
                for d in docs[:MAX_ARTICLES]
            ]
        except httpx.HTTPError as e:
            logger.info(f"NYT article search failed ({e}), trying most popular")

        r = await _news_client.get(
            "https://api.nytimes.com/svc/mostpopular/v2/viewed/1.json",
            params={"api-key": self.api_key},
        )
        r.raise_for_status()
        needle = query.lower()
        matches = [a for a in r.json().get("results", []) if needle in (a.get("title") or "").lower()]
        return [
            NewsArticle(
                title=a.get("title") or "",
                description=a.get("abstract") or "",
                content=a.get("abstract") or "",
                url=a.get("url") or "",
                publishedAt=a.get("published_date") or "",
                source="The New York Times",
            )
            for a in matches[:MAX_ARTICLES]
        ]


def default_providers() -> list[NewsProvider]:
    return [
        MediastackProvider(MEDIASTACK_API_KEY),
        GNewsProvider(GNEWS_API_KEY),
        NewsdataProvider(NEWSDATA_API_KEY),
        NYTProvider(NYT_API_KEY),
    ]


class MultiNewsService:
    """Search news across providers in priority order, with result caching."""

    def __init__(self, providers: Optional[list[NewsProvider]] = None, cache: Optional[TTLCache] = None):
        self.providers = default_providers() if providers is None else providers
        self.cache = news_cache if cache is None else cache

    @staticmethod
    def _cache_key(query: str) -> str:
        return "news_" + "_".join(query.lower().split())

    async def get_articles(self, query: str) -> list[NewsArticle]:
        key = self._cache_key(query)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        for provider in self.providers:
            if not provider.is_available():
                continue
            try:
                articles = await provider.search(query)
            except Exception as e:
                logger.warning(f"News provider {provider.name} failed: {e}")
                continue
            if articles:
                logger.info(f"News: {len(articles)} articles from {provider.name} for '{query}'")
                self.cache.set(key, articles)
                return articles

        logger.info(f"News: no articles found for '{query}'")
        return []
