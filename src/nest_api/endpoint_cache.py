"""
In-memory cache of the effective Nest API endpoint
"""

import logging
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_NEST_HOST = "developer-api.nest.com"
DEFAULT_NEST_PORT = 443


class EndpointCache:
    """Remembers the host/port the API last redirected us to

    Both fields are set together or not at all. When unset, get() falls back
    to the configured defaults. Lives for the process lifetime only.
    """

    def __init__(self, default_host: str = DEFAULT_NEST_HOST, default_port: int = DEFAULT_NEST_PORT):
        self.default_host = default_host
        self.default_port = default_port
        self.host: Optional[str] = None
        self.port: Optional[int] = None

    @property
    def is_set(self) -> bool:
        return self.host is not None and self.port is not None

    def get(self) -> Tuple[str, int]:
        """Return the cached endpoint, or the defaults when nothing is cached"""
        if self.is_set:
            return self.host, self.port
        return self.default_host, self.default_port

    def set(self, host: str, port: int) -> None:
        self.host, self.port = host, port

    def clear(self) -> None:
        self.host, self.port = None, None

    def __repr__(self) -> str:
        return f"EndpointCache(host={self.host!r}, port={self.port!r})"
