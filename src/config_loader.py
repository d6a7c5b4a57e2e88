"""
Configuration loader for the Nest telemetry poller
Loads configuration from an optional YAML file, applies environment overrides,
validates required settings and fills in defaults
"""

import os
import yaml
import logging
from typing import Dict, Any, Optional
from pathlib import Path
from datetime import datetime
import pytz

from exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/config.yaml"

# Environment variable -> (section, key, converter)
ENV_OVERRIDES = {
    'NEST_TOKEN': ('nest', 'token', str),
    'NEST_API_HOST': ('nest', 'default_host', str),
    'NEST_API_PORT': ('nest', 'default_port', int),
    'INFLUXDB_HOST': ('influxdb', 'host', str),
    'INFLUXDB_PORT': ('influxdb', 'port', int),
    'INFLUXDB_DATABASE': ('influxdb', 'database', str),
    'INFLUXDB_USERNAME': ('influxdb', 'username', str),
    'INFLUXDB_PASSWORD': ('influxdb', 'password', str),
    'INFLUXDB_TOKEN': ('influxdb', 'token', str),
    'INFLUXDB_ORG': ('influxdb', 'org', str),
    'POLLING_FREQUENCY': ('polling', 'interval_ms', int),
    'LOG_LEVEL': ('logging', 'level', str),
}


def load_config(config_path: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """
    Load configuration from YAML file and environment with validation

    A config file that was explicitly requested must exist; the default
    path is optional so the poller can run from environment variables alone.
    """
    environ = os.environ if environ is None else environ
    explicit = config_path is not None
    config_file = Path(config_path or DEFAULT_CONFIG_PATH)

    config: Dict[str, Any] = {}
    if config_file.exists():
        try:
            with open(config_file, 'r') as f:
                config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to read config file {config_file}: {e}") from e
        if not isinstance(config, dict):
            raise ConfigurationError(f"Config file {config_file} must contain a mapping")
        logger.info(f"Configuration loaded from {config_file}")
    elif explicit:
        logger.error(f"Configuration file not found: {config_file}")
        raise ConfigurationError(f"Config file not found: {config_file}")
    else:
        logger.info("No configuration file found - using environment only")

    _apply_env_overrides(config, environ)

    # Validate required settings
    _validate_config(config)

    # Apply defaults
    return _apply_defaults(config)


def _apply_env_overrides(config: Dict, environ) -> None:
    """Environment variables win over values from the config file"""
    for env_name, (section, key, convert) in ENV_OVERRIDES.items():
        raw = environ.get(env_name)
        if raw is None or raw == "":
            continue
        try:
            value = convert(raw)
        except ValueError as e:
            raise ConfigurationError(f"Invalid value for {env_name}: {raw!r}") from e
        config.setdefault(section, {})
        if config[section] is None:
            config[section] = {}
        config[section][key] = value


def _validate_config(config: Dict) -> None:
    """Validate that required settings exist"""
    for section in ('nest', 'influxdb', 'polling', 'logging'):
        value = config.get(section)
        if value is not None and not isinstance(value, dict):
            raise ConfigurationError(f"Configuration section '{section}' must be a mapping")

    nest = config.get('nest') or {}
    if not nest.get('token'):
        logger.error("Missing Nest API token")
        raise ConfigurationError("Missing Nest API token (nest.token / NEST_TOKEN)")

    influxdb = config.get('influxdb') or {}
    if not influxdb.get('host'):
        logger.error("Missing InfluxDB Host URL")
        raise ConfigurationError("Missing InfluxDB host (influxdb.host / INFLUXDB_HOST)")

    polling = config.get('polling') or {}
    interval = polling.get('interval_ms')
    if interval is not None and (not isinstance(interval, int) or isinstance(interval, bool) or interval <= 0):
        raise ConfigurationError(f"polling.interval_ms must be a positive integer, got {interval!r}")

    max_redirects = nest.get('max_redirects')
    if max_redirects is not None and (not isinstance(max_redirects, int) or max_redirects < 0):
        raise ConfigurationError(f"nest.max_redirects must be a non-negative integer, got {max_redirects!r}")


def _apply_defaults(config: Dict) -> Dict:
    """Apply default values to configuration"""

    # Nest API defaults
    nest_defaults = {
        'default_host': 'developer-api.nest.com',
        'default_port': 443,
        'max_redirects': 10,
        'request_timeout_seconds': 300,
        'ssl_verify': True,
        'ca_cert_path': None
    }
    for key, default_value in nest_defaults.items():
        if key not in config['nest']:
            config['nest'][key] = default_value

    # InfluxDB defaults
    influxdb_defaults = {
        'port': 8086,
        'ssl': False,
        'database': 'environment',
        'username': None,
        'password': None,
        'token': None,
        'org': '-',
        'timeout_ms': 10000,
        'device_type': 'nest'
    }
    for key, default_value in influxdb_defaults.items():
        if key not in config['influxdb']:
            config['influxdb'][key] = default_value

    # Polling defaults
    if not config.get('polling'):
        config['polling'] = {}
    if 'interval_ms' not in config['polling']:
        config['polling']['interval_ms'] = 60000

    # Logging defaults
    if not config.get('logging'):
        config['logging'] = {}
    logging_defaults = {
        'level': 'INFO',
        'file': None,
        'console_output': True,
        'timezone': 'UTC'
    }
    for key, default_value in logging_defaults.items():
        if key not in config['logging']:
            config['logging'][key] = default_value

    return config


def get_nest_ssl_config(config: Dict) -> Dict[str, Any]:
    """Get TLS and timeout settings for Nest API connections"""
    nest = config.get('nest', {})
    return {
        'ssl_verify': nest.get('ssl_verify', True),
        'ca_cert_path': nest.get('ca_cert_path'),
        'timeout_seconds': nest.get('request_timeout_seconds', 300)
    }


class TimezoneFormatter(logging.Formatter):
    """Formatter that renders timestamps in a configured timezone"""

    def __init__(self, fmt=None, tz_name: str = 'UTC'):
        super().__init__(fmt)
        try:
            self.tz = pytz.timezone(tz_name)
        except pytz.UnknownTimeZoneError as e:
            raise ConfigurationError(f"Unknown logging timezone: {tz_name}") from e

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, tz=self.tz)
        if datefmt:
            return dt.strftime(datefmt)
        else:
            # Default format: YYYY-MM-DD HH:MM:SS TZ
            return dt.strftime('%Y-%m-%d %H:%M:%S %Z')


def setup_logging(config: Dict) -> None:
    """Setup logging based on configuration"""
    log_config = config.get('logging', {})
    level = log_config.get('level', 'INFO')

    numeric_level = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric_level, int):
        raise ConfigurationError(f"Unknown log level: {level}")

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    formatter = TimezoneFormatter(log_format, log_config.get('timezone', 'UTC'))

    root = logging.getLogger()
    root.setLevel(numeric_level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    # Console handler
    if log_config.get('console_output', True):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    # File handler
    log_file = log_config.get('file')
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    logger.info(f"Logging configured: level={level}, console={log_config.get('console_output', True)}, file={log_file}")

