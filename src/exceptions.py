"""
Exception hierarchy for the Nest telemetry poller
"""


class PollerError(Exception):
    """Base class for all poller errors"""


class ConfigurationError(PollerError):
    """Invalid or incomplete configuration - fatal at startup"""


class TransportError(PollerError):
    """Network or connection failure talking to the Nest API"""


class DecodeError(PollerError):
    """Nest API returned a body (or header) that could not be decoded"""


class TooManyRedirects(PollerError):
    """Endpoint resolution gave up after exceeding the redirect ceiling"""


class UnexpectedPayloadShape(PollerError):
    """Nest API payload does not contain devices.thermostats"""


class SinkWriteError(PollerError):
    """A measurement could not be written to InfluxDB"""
