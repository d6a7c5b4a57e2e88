"""
Single authenticated request against the Nest API
"""

import asyncio
import json
import logging
from typing import Tuple

import aiohttp
from yarl import URL

from exceptions import DecodeError, TransportError
from .models import Data, FetchResult, RateLimited, Redirect, Reset

logger = logging.getLogger(__name__)


def parse_redirect_location(location: str) -> Tuple[str, int]:
    """Turn a Location header like https://host:port/path into (host, port)"""
    if not location:
        raise DecodeError("[NestAPI] Redirect without Location header")

    location = location.strip()
    if "://" not in location:
        location = f"https://{location}"

    try:
        url = URL(location)
        host, port = url.host, url.port
    except ValueError as e:
        raise DecodeError(f"[NestAPI] Malformed redirect location {location!r}: {e}") from e

    if not host:
        raise DecodeError(f"[NestAPI] Redirect location has no host: {location!r}")
    return host, port or 443


class NestFetcher:
    """Performs one GET against a resolved host/port and classifies the response

    Never touches the endpoint cache; the caller acts on the returned variant.
    """

    def __init__(self, session: aiohttp.ClientSession, path: str = "/"):
        self.session = session
        self.path = path

    async def fetch(self, host: str, port: int, bearer_token: str) -> FetchResult:
        url = f"https://{host}:{port}{self.path}"
        headers = {
            'Content-Type': 'application/json',
            'Authorization': f'Bearer {bearer_token}'
        }

        try:
            async with self.session.get(url, headers=headers, allow_redirects=False) as response:
                if response.status == 307:
                    return Redirect(*parse_redirect_location(response.headers.get('Location', '')))

                if response.status == 404:
                    return Reset()

                if response.status == 429:
                    return RateLimited()

                body = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            message = str(e) or e.__class__.__name__
            raise TransportError(f"[NestAPI] Request to {url} failed: {message}") from e
        except UnicodeDecodeError as e:
            raise DecodeError(f"[NestAPI] Response from {url} is not valid text: {e}") from e

        if not body.strip():
            logger.debug(f"[NestAPI] Empty response body (HTTP {response.status})")
            return Data({})

        try:
            return Data(json.loads(body))
        except ValueError as e:
            raise DecodeError(f"[NestAPI] Could not decode response (HTTP {response.status}): {e}") from e
