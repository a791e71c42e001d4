#!/usr/bin/env python3
"""
MongoDB Bridge
Main Entry Point
"""

import asyncio
import signal
from datetime import datetime
from typing import Any, Optional

from config import MONGODB_URL, MONGODB_DATABASE, NOTIFY_REJECTED_CALLS, LOG_LEVEL, LOG_DIR
from database.mongodb import MongoDB
from plugins.core.constants import EVENT_DATABASE_CONNECT
from plugins.core.utils import setup_logging, get_logger
from plugins.handlers.exports import ExportRegistry, register_database_exports
from plugins.services.events import EventBus

logger = get_logger(__name__)


class MongoResource:
    """Owns the event bus, the export registry and the database facade"""

    def __init__(self, url: str = MONGODB_URL, db_name: str = MONGODB_DATABASE,
                 notify_rejected: bool = NOTIFY_REJECTED_CALLS, **db_kwargs: Any):
        self.events = EventBus()
        self.exports = ExportRegistry()
        self.db = MongoDB(url, db_name, events=self.events, **db_kwargs)
        register_database_exports(self.exports, self.db, notify_rejected)

        self.start_time = datetime.now()
        self.events.on(EVENT_DATABASE_CONNECT, self._on_database_connect)

    async def _on_database_connect(self, db_name: str) -> None:
        logger.info(f"Database {db_name} ready after {self.get_uptime()}")

    def start(self) -> asyncio.Task:
        """Start the background connection"""
        logger.info("Starting MongoDB bridge...")
        return self.db.start()

    async def stop(self) -> None:
        """Stop the bridge gracefully"""
        logger.info("Shutting down MongoDB bridge...")
        await self.db.disconnect()

    async def call(self, name: str, *args: Any, **kwargs: Any) -> Any:
        return await self.exports.call(name, *args, **kwargs)

    def get_uptime(self) -> str:
        """Get formatted uptime string"""
        delta = datetime.now() - self.start_time
        hours, remainder = divmod(int(delta.total_seconds()), 3600)
        minutes, seconds = divmod(remainder, 60)

        parts = []
        if hours > 0:
            parts.append(f"{hours}h")
        if minutes > 0:
            parts.append(f"{minutes}m")
        parts.append(f"{seconds}s")

        return " ".join(parts)


async def serve(resource: MongoResource, stop_event: Optional[asyncio.Event] = None) -> None:
    """Run until stop_event is set or a termination signal arrives"""
    stop_event = stop_event or asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            # Windows event loops do not support signal handlers
            pass

    resource.start()
    try:
        await stop_event.wait()
    finally:
        await resource.stop()


def main():
    """Main entry point"""
    setup_logging(LOG_LEVEL, LOG_DIR)

    try:
        asyncio.run(serve(MongoResource()))
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
    except Exception as e:
        logger.critical(f"Fatal error: {e}", exc_info=True)
        raise
    finally:
        logger.info("MongoDB bridge process ended")


if __name__ == "__main__":
    main()
