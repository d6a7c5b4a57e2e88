"""
Nest Telemetry Poller - Main Entry Point
"""

import asyncio
import signal
import sys
import logging
import os

from dotenv import load_dotenv

from config_loader import load_config, setup_logging
from exceptions import ConfigurationError
from services.nest_poller import NestPoller

logger = logging.getLogger(__name__)

async def main():
    """Main entry point"""

    poller = None

    def signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, shutting down...")
        if poller:
            asyncio.create_task(poller.stop())

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        # Config file is optional; CONFIG_FILE makes it mandatory
        config_path = os.environ.get('CONFIG_FILE')
        config = load_config(config_path)
        setup_logging(config)

        poller = NestPoller(config)
        await poller.serve()

    except ConfigurationError as e:
        logger.error(f"Startup failed: {e}")
        return 1
    except Exception as e:
        logger.error(f"Poller failed: {e}")
        return 1
    finally:
        if poller:
            await poller.stop()

    return 0

def run():
    """Console script entry point"""
    load_dotenv()
    logging.basicConfig(level=logging.INFO)

    try:
        exit_code = asyncio.run(main())
        sys.exit(exit_code)
    except KeyboardInterrupt:
        print("\nPoller stopped by user")
        sys.exit(0)

if __name__ == "__main__":
    run()
