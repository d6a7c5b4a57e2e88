"""
Nest API module: endpoint resolution, fetching and telemetry extraction
"""

from .endpoint_cache import EndpointCache, DEFAULT_NEST_HOST, DEFAULT_NEST_PORT
from .extractor import extract, device_measurements
from .fetcher import NestFetcher, parse_redirect_location
from .models import Data, FetchResult, RateLimited, Redirect, Reset, ThermostatReading
from .resolver import EndpointResolver

__all__ = [
    'EndpointCache', 'DEFAULT_NEST_HOST', 'DEFAULT_NEST_PORT',
    'extract', 'device_measurements',
    'NestFetcher', 'parse_redirect_location',
    'Data', 'FetchResult', 'RateLimited', 'Redirect', 'Reset', 'ThermostatReading',
    'EndpointResolver',
]
