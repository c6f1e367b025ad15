"""Entry point for the affiliate swap monitor"""
import json
import logging
import signal
import sys
import threading
import traceback
from dataclasses import dataclass
from typing import Optional

from pydantic import ValidationError

from uswap_monitor.config import Settings
from uswap_monitor.db import Database
from uswap_monitor.poller import Poller
from uswap_monitor.services.cursors import CursorStore
from uswap_monitor.services.explorer import ExplorerAPI
from uswap_monitor.services.log_buffer import LogBuffer
from uswap_monitor.services.notifier import Notifier
from uswap_monitor.services.reporting import Reporter
from uswap_monitor.services.stats import StatsAggregator
from uswap_monitor.services.telegram import TelegramAPI

logger = logging.getLogger(__name__)

@dataclass
class Monitor:
    """Components wired together for one process"""
    database: Database
    poller: Poller
    reporter: Reporter

def build_monitor(settings: Settings) -> Monitor:
    """Construct and connect every component. Nothing is started."""
    database = Database(settings.DATABASE_URL)
    database.init()

    affiliates = settings.AFFILIATES
    aggregator = StatsAggregator(a.affiliate for a in affiliates)
    log_buffer = LogBuffer(settings.LOG_CAPACITY)
    explorer = ExplorerAPI(settings.EXPLORER_BASE_URL, settings.EXPLORER_JWT, settings.EXPLORER_TIMEOUT)

    notifier: Optional[Notifier] = None
    if settings.notifications_enabled:
        telegram = TelegramAPI(settings.TELEGRAM_BOT_TOKEN, settings.TELEGRAM_API_URL, settings.TELEGRAM_TIMEOUT)
        notifier = Notifier(telegram, settings.MONITOR_GROUP_ID, settings.MONITOR_MAIN_CHAT_ID, affiliates)

    poller = Poller(settings, explorer, CursorStore(database), aggregator, log_buffer, notifier)
    reporter = Reporter(affiliates, aggregator, log_buffer, is_active=lambda: poller.is_running)
    return Monitor(database=database, poller=poller, reporter=reporter)

def run() -> None:
    """Run the monitor until SIGINT/SIGTERM."""
    try:
        settings = Settings()
    except ValidationError as e:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    # Log config (excluding sensitive data)
    logger.info("Using configuration:")
    logger.info(json.dumps(settings.safe_dump(), indent=2))

    if not settings.MONITOR_ENABLED:
        logger.info("Monitor disabled, nothing to do")
        return
    if not settings.AFFILIATES:
        logger.warning("No affiliates configured, nothing to monitor")
        return

    try:
        monitor = build_monitor(settings)
        monitor.poller.restore()
        for affiliate, cursor in monitor.poller.cursors.positions().items():
            logger.info(f"Resuming {affiliate} after {cursor.deposit_address or 'start'}")
    except Exception as e:
        logger.error(f"Error during startup: {e}")
        traceback.print_exc()
        sys.exit(1)

    stopped = threading.Event()

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, shutting down")
        stopped.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    monitor.poller.start()
    try:
        while not stopped.wait(1.0):
            pass
    finally:
        monitor.poller.stop()
        monitor.database.dispose()

if __name__ == "__main__":
    run()
