"""
Nest Poller - Main orchestrator for the telemetry pipeline
"""

import asyncio
import logging
from typing import Dict, Optional, Set

import aiohttp

# Local imports
from config_loader import get_nest_ssl_config
from database.manager import DatabaseManager
from exceptions import PollerError
from http_helper import create_nest_api_session
from nest_api import EndpointCache, EndpointResolver, NestFetcher, extract

logger = logging.getLogger(__name__)

class NestPoller:
    """Fires resolve -> fetch -> extract -> write on a fixed interval"""

    def __init__(self, config: Dict, db: Optional[DatabaseManager] = None,
                 resolver: Optional[EndpointResolver] = None):
        self.config = config
        nest = config['nest']

        self.token = nest['token']
        self.max_redirects = nest['max_redirects']
        self.poll_interval = config['polling']['interval_ms'] / 1000
        self.device_type = config['influxdb'].get('device_type', 'nest')

        self.db = db or DatabaseManager(config)
        self.endpoint_cache = EndpointCache(nest['default_host'], nest['default_port'])
        self.resolver = resolver
        self.session: Optional[aiohttp.ClientSession] = None

        self.running = False
        self._stopped = False
        self._stop_complete = asyncio.Event()
        self._scheduler_task: Optional[asyncio.Task] = None
        self._cycle_tasks: Set[asyncio.Task] = set()

        self.stats = {
            'cycles_started': 0,
            'cycles_succeeded': 0,
            'cycles_failed': 0,
            'measurements_written': 0,
            'write_failures': 0
        }

    async def start(self):
        """Connect to InfluxDB and start the polling scheduler"""
        logger.info("Starting Nest telemetry poller...")

        # Sink problems surface here as ConfigurationError and are fatal
        await self.db.initialize()

        if self.resolver is None:
            ssl_config = get_nest_ssl_config(self.config)
            self.session = create_nest_api_session(
                timeout_seconds=ssl_config['timeout_seconds'],
                ssl_verify=ssl_config['ssl_verify'],
                ca_cert_path=ssl_config['ca_cert_path']
            )
            self.resolver = EndpointResolver(NestFetcher(self.session), self.endpoint_cache, self.max_redirects)

        self.running = True
        self._scheduler_task = asyncio.create_task(self._polling_service())
        logger.info(f"Begin Polling in {self.poll_interval:g}s")

    async def serve(self):
        """Start and block until stop() is called"""
        await self.start()
        try:
            await self._scheduler_task
        except asyncio.CancelledError:
            if self.running:
                raise

    async def stop(self):
        """Stop the scheduler, cancel in-flight cycles and release connections"""
        if self._stopped:
            # A shutdown is already in progress; wait for its cleanup
            await self._stop_complete.wait()
            return
        self._stopped = True
        logger.info("Stopping poller...")
        self.running = False

        stats = self.stats
        if stats['cycles_started'] > 0:
            logger.info(f"Polling stats: {stats['cycles_succeeded']}/{stats['cycles_started']} cycles succeeded, "
                        f"{stats['cycles_failed']} failed, {stats['measurements_written']} measurements written, "
                        f"{stats['write_failures']} write failures")

        tasks = list(self._cycle_tasks)
        if self._scheduler_task:
            tasks.append(self._scheduler_task)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._cycle_tasks.clear()

        if self.session:
            await self.session.close()
            self.session = None

        try:
            await self.db.close()
        finally:
            self._stop_complete.set()
        logger.info("Poller stopped")

    async def _polling_service(self):
        """Fire a cycle every interval on the loop clock, never waiting for the previous one"""
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self.poll_interval

        while self.running:
            await asyncio.sleep(max(0, next_tick - loop.time()))
            if not self.running:
                break
            next_tick += self.poll_interval

            if self._cycle_tasks:
                logger.debug(f"{len(self._cycle_tasks)} previous cycle(s) still running")

            task = asyncio.create_task(self._run_cycle())
            self._cycle_tasks.add(task)
            task.add_done_callback(self._cycle_tasks.discard)

    async def _run_cycle(self):
        """One scheduled cycle; every error stays inside the cycle"""
        self.stats['cycles_started'] += 1
        try:
            await self.poll_once()
            self.stats['cycles_succeeded'] += 1
        except asyncio.CancelledError:
            raise
        except PollerError as e:
            self.stats['cycles_failed'] += 1
            logger.error(f"Polling cycle failed: {e}")
        except Exception:
            self.stats['cycles_failed'] += 1
            logger.exception("Polling cycle failed with unexpected error")

    async def poll_once(self) -> Dict[str, int]:
        """Resolve the endpoint, fetch, extract and write one telemetry snapshot"""
        if self.resolver is None:
            raise PollerError("Poller not started")

        payload = await self.resolver.resolve_and_fetch(self.token, self.max_redirects)
        measurements = extract(payload, device_type=self.device_type)

        counts = await self.db.write_measurements(measurements)

        self.stats['measurements_written'] += counts['written']
        self.stats['write_failures'] += counts['failed']
        return counts
