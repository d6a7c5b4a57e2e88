"""
Database manager for InfluxDB writes
"""

import logging
from typing import Dict, Iterable, Optional

from influxdb_client.client.influxdb_client_async import InfluxDBClientAsync

from exceptions import ConfigurationError, SinkWriteError
from .models import Measurement

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Manages the InfluxDB connection and measurement writes"""

    def __init__(self, config: Dict):
        influx = config['influxdb']
        scheme = 'https' if influx.get('ssl') else 'http'
        self.url = f"{scheme}://{influx['host']}:{influx['port']}"
        self.database = influx['database']
        self.org = influx.get('org') or '-'
        self.timeout_ms = influx.get('timeout_ms', 10000)

        # InfluxDB 1.8 compatibility: username:password doubles as the token
        if influx.get('token'):
            self.token = influx['token']
        elif influx.get('username'):
            self.token = f"{influx['username']}:{influx.get('password') or ''}"
        else:
            self.token = ''

        self.client: Optional[InfluxDBClientAsync] = None
        self.write_api = None

    async def initialize(self):
        """Connect, then make sure the target database exists - failures are fatal"""
        self.client = InfluxDBClientAsync(
            url=self.url,
            token=self.token,
            org=self.org,
            timeout=self.timeout_ms
        )
        self.write_api = self.client.write_api()
        logger.info("[InfluxDB] Schema loaded")

        try:
            reachable = await self.client.ping()
        except Exception as e:
            raise ConfigurationError(f"Could not connect to InfluxDB at {self.url}: {e}") from e
        if not reachable:
            raise ConfigurationError(f"Could not connect to InfluxDB at {self.url}")

        try:
            exists = await self.database_exists()
        except Exception as e:
            raise ConfigurationError(f"Could not list InfluxDB databases at {self.url}: {e}") from e
        if not exists:
            logger.error(f"Missing InfluxDB database called `{self.database}`")
            raise ConfigurationError(f"Missing InfluxDB database called `{self.database}`")

        logger.info(f"[InfluxDB] Found `{self.database}` database")

    async def database_exists(self) -> bool:
        """Check the bucket list; 1.8 reports databases as 'db/retention_policy'"""
        tables = await self.client.query_api().query('buckets()', org=self.org)
        for table in tables:
            for record in table.records:
                name = record['name']
                if name == self.database or name.startswith(f"{self.database}/"):
                    return True
        return False

    async def write_measurement(self, measurement: Measurement) -> None:
        """Write a single measurement; raises SinkWriteError on failure"""
        if self.write_api is None:
            raise SinkWriteError("InfluxDB client not initialized")
        try:
            await self.write_api.write(bucket=self.database, org=self.org, record=measurement.to_point())
        except Exception as e:
            raise SinkWriteError(f"[InfluxDB] Error saving {measurement.measurement}: {e}") from e

    async def write_measurements(self, measurements: Iterable[Measurement]) -> Dict[str, int]:
        """Write each measurement independently; one failure does not stop the rest"""
        counts = {'written': 0, 'failed': 0}
        current_device = None
        for measurement in measurements:
            device_id = measurement.tags.get('device_id')
            if device_id != current_device:
                current_device = device_id
                logger.info(f"[InfluxDB] Writing data for {device_id} ({measurement.tags.get('room')})")

            try:
                await self.write_measurement(measurement)
                counts['written'] += 1
            except SinkWriteError as e:
                counts['failed'] += 1
                logger.error(f"{e} (device {measurement.tags.get('device_id')})")
        return counts

    async def close(self):
        """Close the InfluxDB client"""
        if self.client:
            await self.client.close()
            self.client = None
            self.write_api = None
            logger.info("InfluxDB client closed")
