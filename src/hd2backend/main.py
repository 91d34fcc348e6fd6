"""
Main polling loop for the status backend

Builds one snapshot per polling interval and hands it to registered
callbacks. Handles startup, shutdown and error recovery; a failed cycle
keeps the previous snapshot and records the error for the caller.
"""

import asyncio
import inspect
import json
import logging
import signal
import sys
import time
from typing import Any, Callable, Dict, List, Optional

from .config import BackendConfig, load_config
from .errors import OrchestrationError
from .fetcher import Fetcher
from .models import AggregateSnapshot
from .orchestrator import Orchestrator, create_orchestrator
from .presenter import snapshot_summary
from .rate_limiter import RateLimiter, create_rate_limiter

logger = logging.getLogger(__name__)


class StatusBackend:
    """Owns the shared rate limiter, the HTTP fetcher and the polling task"""

    def __init__(self, config_path: str = "config/hd2backend.yaml",
                 config: Optional[BackendConfig] = None):
        self.config_path = config_path
        self.config: Optional[BackendConfig] = config
        self.rate_limiter: Optional[RateLimiter] = None
        self.fetcher: Optional[Fetcher] = None
        self.orchestrator: Optional[Orchestrator] = None

        # Runtime state
        self.running = False
        self.startup_complete = False
        self.latest_snapshot: Optional[AggregateSnapshot] = None
        self.last_error: Optional[str] = None
        self.poll_task: Optional[asyncio.Task] = None
        self.snapshot_callbacks: List[Callable] = []

        self.start_time = 0
        self.stats = {
            'total_polls': 0,
            'successful_polls': 0,
            'failed_polls': 0,
            'degraded_polls': 0
        }

    async def initialize(self):
        """Initialize all backend components"""
        logger.info("Initializing Galactic War status backend...")
        self.start_time = time.time()

        if self.config is None:
            self.config = load_config(self.config_path)
            logger.info(f"Loaded configuration from {self.config_path}")
        self._setup_logging()

        # One limiter for the whole process; every request goes through it
        if self.rate_limiter is None:
            self.rate_limiter = create_rate_limiter(self.config.rate_limit)
        logger.info(f"Rate limit: {self.config.rate_limit.max_calls} calls per {self.config.rate_limit.time_window}s")

        self.fetcher = Fetcher(self.config.api)
        await self.fetcher.open()
        logger.info(f"Upstream API: {self.config.api.base_url}")

        self.orchestrator = create_orchestrator(self.config, self.fetcher, self.rate_limiter)
        self.startup_complete = True

    async def poll_once(self) -> Optional[AggregateSnapshot]:
        """Build one snapshot and notify callbacks; None if the cycle failed"""
        if not self.startup_complete:
            await self.initialize()

        self.stats['total_polls'] += 1
        try:
            snapshot = await self.orchestrator.build_snapshot()
        except OrchestrationError as e:
            self.stats['failed_polls'] += 1
            self.last_error = str(e)
            logger.error(f"Polling cycle failed, keeping previous snapshot: {e}")
            return None

        self.stats['successful_polls'] += 1
        if snapshot.degraded:
            self.stats['degraded_polls'] += 1

        self.latest_snapshot = snapshot
        self.last_error = None
        logger.info(f"Snapshot: {snapshot_summary(snapshot)}")

        await self._notify_snapshot_callbacks(snapshot)
        return snapshot

    async def _poll_loop(self):
        """Poll at a fixed interval until stopped"""
        while self.running:
            try:
                await self.poll_once()
                await asyncio.sleep(self.config.polling.interval)
            except asyncio.CancelledError:
                logger.info("Polling cancelled")
                break
            except Exception as e:
                logger.error(f"Error in polling loop: {e}")
                await asyncio.sleep(self.config.polling.error_pause)

    async def _notify_snapshot_callbacks(self, snapshot: AggregateSnapshot):
        """Notify registered callbacks of a new snapshot"""
        for callback in self.snapshot_callbacks:
            try:
                if inspect.iscoroutinefunction(callback):
                    await callback(snapshot)
                else:
                    callback(snapshot)
            except Exception as e:
                logger.error(f"Error in snapshot callback: {e}")

    def register_snapshot_callback(self, callback: Callable):
        """Register a callback for new snapshots"""
        self.snapshot_callbacks.append(callback)

    async def start(self):
        """Start the polling loop"""
        if self.running:
            logger.warning("Backend already running")
            return

        if not self.startup_complete:
            await self.initialize()

        self.running = True
        self.poll_task = asyncio.create_task(self._poll_loop())
        logger.info(f"Polling every {self.config.polling.interval}s")

        # Setup signal handlers
        if sys.platform != 'win32':
            loop = asyncio.get_running_loop()
            for sig in (signal.SIGTERM, signal.SIGINT):
                loop.add_signal_handler(sig, lambda: asyncio.create_task(self.stop()))

    async def stop(self):
        """Stop polling and close the HTTP session"""
        if not self.running and self.fetcher is None:
            return

        logger.info("Stopping status backend...")
        self.running = False

        if self.poll_task:
            self.poll_task.cancel()
            await asyncio.gather(self.poll_task, return_exceptions=True)
            self.poll_task = None

        if self.fetcher:
            await self.fetcher.close()
            self.fetcher = None
        self.startup_complete = False

        logger.info("Status backend stopped")

    async def run_forever(self):
        """Run the backend until stopped"""
        await self.start()

        try:
            while self.running:
                await asyncio.sleep(1)
        finally:
            await self.stop()

    def _setup_logging(self):
        """Setup logging configuration"""
        log_level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=log_level,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        logging.getLogger('aiohttp').setLevel(logging.WARNING)

        if self.config.log_file:
            file_handler = logging.FileHandler(self.config.log_file)
            file_handler.setFormatter(
                logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
            )
            logging.getLogger().addHandler(file_handler)

    def get_status(self) -> Dict[str, Any]:
        """Get backend status"""
        status = {
            'running': self.running,
            'startup_complete': self.startup_complete,
            'config_path': self.config_path,
            'stats': self.stats.copy(),
            'last_error': self.last_error,
            'last_updated': None
        }

        if self.latest_snapshot:
            status['last_updated'] = self.latest_snapshot.last_updated.isoformat()
            status['degraded'] = list(self.latest_snapshot.degraded)

        if self.startup_complete:
            status['uptime'] = time.time() - self.start_time

        if self.rate_limiter:
            status['recent_calls'] = len(self.rate_limiter.recent_calls())

        return status


async def main():
    """Main entry point for the status backend"""
    import argparse

    parser = argparse.ArgumentParser(description='Helldivers 2 Galactic War status backend')
    parser.add_argument('--config', default='config/hd2backend.yaml',
                        help='Configuration file path')
    parser.add_argument('--create-config', action='store_true',
                        help='Create sample configuration file and exit')
    parser.add_argument('--once', action='store_true',
                        help='Build one snapshot, print it as JSON and exit')

    args = parser.parse_args()

    if args.create_config:
        from .config import create_sample_config
        create_sample_config(args.config)
        print(f"Sample configuration created at {args.config}")
        return

    backend = StatusBackend(args.config)

    if args.once:
        try:
            snapshot = await backend.poll_once()
        finally:
            await backend.stop()

        if snapshot is None:
            print(f"Error: {backend.last_error}", file=sys.stderr)
            sys.exit(1)
        print(json.dumps(snapshot.to_dict(), indent=2))
        return

    try:
        await backend.run_forever()
    except KeyboardInterrupt:
        print("\nShutdown requested")
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)


def run():
    """Console script entry point"""
    asyncio.run(main())


if __name__ == "__main__":
    run()
