"""
Endpoint resolution loop for the Nest API

The API's effective address is discovered lazily through 307 redirects and
cached across polling cycles. A 404 means the cached address went stale and
we fall back to the defaults. Rate limits and empty bodies are retried
immediately. Every retry counts against the redirect ceiling.
"""

import logging
from typing import Any, Optional

from exceptions import TooManyRedirects
from .endpoint_cache import EndpointCache
from .fetcher import NestFetcher
from .models import Data, RateLimited, Redirect, Reset

logger = logging.getLogger(__name__)

DEFAULT_MAX_REDIRECTS = 10


class EndpointResolver:
    """Wraps the fetcher with a bounded retry loop that keeps the endpoint cache current"""

    def __init__(self, fetcher: NestFetcher, cache: EndpointCache, max_redirects: int = DEFAULT_MAX_REDIRECTS):
        self.fetcher = fetcher
        self.cache = cache
        self.max_redirects = max_redirects

    async def resolve_and_fetch(self, bearer_token: str, max_redirects: Optional[int] = None) -> Any:
        """Return the first non-empty payload; TransportError/DecodeError propagate unchanged"""
        if max_redirects is None:
            max_redirects = self.max_redirects

        attempts = 0
        while attempts <= max_redirects:
            host, port = self.cache.get()
            logger.info(f"[GET] https://{host}:{port}")

            result = await self.fetcher.fetch(host, port, bearer_token)

            if isinstance(result, Redirect):
                self.cache.set(result.host, result.port)
                logger.info(f"[NestAPI] Redirect detected, using https://{result.host}:{result.port}")
            elif isinstance(result, Reset):
                self.cache.clear()
                default_host, default_port = self.cache.get()
                logger.info(f"[NestAPI] URL Not Found (404) detected, reverting to default https://{default_host}:{default_port}")
            elif isinstance(result, RateLimited):
                logger.info("[NestAPI] Too Many Requests (429) detected, retrying")
            elif isinstance(result, Data):
                if result.payload:
                    return result.payload
                logger.debug("[NestAPI] No data in response, retrying")

            attempts += 1

        raise TooManyRedirects(f"[NestAPI] Redirected too many times ({attempts} attempts, limit {max_redirects})")
