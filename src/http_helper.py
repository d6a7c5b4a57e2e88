# HTTP Helper for Nest API Connections
# TLS-aware session configuration for the cloud thermostat API

import aiohttp
import ssl
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

def create_nest_api_session(
    timeout_seconds: float = 300,
    ssl_verify: bool = True,
    ca_cert_path: str = None
) -> aiohttp.ClientSession:
    """
    Create properly configured aiohttp session for Nest API connections
    The API host changes via redirects, so the pool is not pinned to one host
    """
    ssl_context = ssl.create_default_context()

    if not ssl_verify:
        # Disable certificate verification (for debugging proxies only)
        ssl_context.check_hostname = False
        ssl_context.verify_mode = ssl.CERT_NONE
        logger.warning("SSL verification disabled for Nest API session")
    elif ca_cert_path:
        ca_path = Path(ca_cert_path)
        if ca_path.exists():
            ssl_context.load_verify_locations(ca_path)
            logger.info(f"Loaded custom CA certificate: {ca_path}")
        else:
            logger.warning(f"CA certificate not found: {ca_path}")

    connector = aiohttp.TCPConnector(
        ssl=ssl_context,
        limit=10,                   # Total connection pool limit
        limit_per_host=2,           # Overlapping cycles may share a host
        enable_cleanup_closed=True
    )

    return aiohttp.ClientSession(
        connector=connector,
        timeout=aiohttp.ClientTimeout(total=timeout_seconds)
    )
