"""Affiliate polling loop: explorer -> stats/log -> cursor -> notifications"""
import logging
import threading
from typing import Callable, Dict, List, Optional

from uswap_monitor.config import AffiliateSettings, Settings
from uswap_monitor.fees import fee_usd
from uswap_monitor.models.explorer import ExplorerTransaction
from uswap_monitor.models.stats import LogEntry, StatsSnapshot
from uswap_monitor.services.cursors import CursorStore, CursorStoreError
from uswap_monitor.services.explorer import ExplorerAPI, ExplorerError
from uswap_monitor.services.log_buffer import LogBuffer
from uswap_monitor.services.notifier import Notifier
from uswap_monitor.services.stats import StatsAggregator

logger = logging.getLogger(__name__)

class Poller:
    """
    Pulls new swaps for every registered affiliate and commits them.

    Per page the order is fixed: record stats and append to the log for each
    transaction, then advance the cursor. If the cursor write fails the page
    is fetched again on the next cycle, so its transactions may be counted
    twice (at-least-once). Transactions already behind a committed cursor are
    never fetched again.

    Each affiliate runs in its own thread; cycles for the same affiliate never
    overlap.
    """

    def __init__(self, settings: Settings, explorer: ExplorerAPI, cursors: CursorStore,
                 aggregator: StatsAggregator, log_buffer: LogBuffer, notifier: Optional[Notifier] = None):
        self.affiliates: List[AffiliateSettings] = list(settings.AFFILIATES)
        self.page_size = settings.PAGE_SIZE
        self.poll_interval = settings.POLL_INTERVAL
        self.backfill_notify = settings.BACKFILL_NOTIFY
        self.description_interval = settings.DESCRIPTION_UPDATE_INTERVAL

        self.explorer = explorer
        self.cursors = cursors
        self.aggregator = aggregator
        self.log_buffer = log_buffer
        self.notifier = notifier

        self._cycle_locks: Dict[str, threading.Lock] = {a.affiliate: threading.Lock() for a in self.affiliates}
        self._stop = threading.Event()
        self._backfilled = threading.Event()
        self._pending_backfills = len(self.affiliates)
        self._pending_lock = threading.Lock()
        self._threads: List[threading.Thread] = []

    def restore(self) -> None:
        """Seed live stats from the totals committed with each cursor"""
        for affiliate in self.affiliates:
            totals = self.cursors.load_totals(affiliate.affiliate)
            if totals.swap_count:
                self.aggregator.seed(affiliate.affiliate, totals)

    def run_cycle(self, affiliate: AffiliateSettings, notify: bool = True) -> int:
        """
        Drain every new page for one affiliate.

        Returns the number of transactions processed. Returns 0 without doing
        anything if a cycle for this affiliate is already running.
        """
        lock = self._cycle_locks[affiliate.affiliate]
        if not lock.acquire(blocking=False):
            logger.debug(f"Cycle for {affiliate.name} still running, skipping")
            return 0
        try:
            processed = self._drain(affiliate, notify)
        finally:
            lock.release()

        if processed:
            totals = self.aggregator.snapshot(affiliate.affiliate)
            logger.info(
                f"{affiliate.name}: {processed} new swaps, total {totals.swap_count} swaps, "
                f"${totals.fee_usd:.2f} fees, ${totals.volume_usd:.2f} volume"
            )
            if self.notifier is not None:
                self.notifier.update_thread_title(affiliate.affiliate, totals.fee_usd)
        return processed

    def backfill(self, affiliate: AffiliateSettings) -> int:
        """Catch up on everything since the stored cursor"""
        logger.info(f"Backfilling {affiliate.name}")
        processed = self.run_cycle(affiliate, notify=self.backfill_notify)
        logger.info(f"Backfill for {affiliate.name} complete: {processed} swaps")
        return processed

    def _drain(self, affiliate: AffiliateSettings, notify: bool) -> int:
        processed = 0
        try:
            cursor = self.cursors.get(affiliate.affiliate)
        except CursorStoreError as e:
            logger.error(f"Cannot load cursor for {affiliate.name}, skipping cycle: {e}")
            return processed

        while not self._stop.is_set():
            try:
                page = self.explorer.fetch_page(affiliate.affiliate, cursor, self.page_size)
            except ExplorerError as e:
                logger.warning(f"Explorer fetch failed for {affiliate.name}, retrying next cycle: {e}")
                break

            if page.size == 0:
                break

            for tx in page.transactions:
                self._process(affiliate, tx, notify)
                processed += 1

            try:
                self.cursors.advance(affiliate.affiliate, page.next_cursor,
                                     self.aggregator.snapshot(affiliate.affiliate))
            except CursorStoreError as e:
                logger.error(f"Cursor not advanced for {affiliate.name}, page will be fetched again: {e}")
                break
            cursor = page.next_cursor

            if page.size < self.page_size:
                break
        return processed

    def _process(self, affiliate: AffiliateSettings, tx: ExplorerTransaction, notify: bool) -> None:
        fee = fee_usd(tx)
        stats = self.aggregator.record(affiliate.affiliate, fee, tx.amount_in_usd)
        self.log_buffer.append(LogEntry(
            affiliate=affiliate.affiliate,
            reseller=affiliate.name,
            tx=tx,
            fee_usd=fee
        ))
        if notify:
            self._notify(affiliate, tx, fee, stats)

    def _notify(self, affiliate: AffiliateSettings, tx: ExplorerTransaction, fee: float,
                stats: StatsSnapshot) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.notify(affiliate.affiliate, tx, fee, stats)
        except Exception:
            logger.exception(f"Notification failed for {affiliate.name} swap {tx.deposit_address}")

    def update_description(self) -> None:
        if self.notifier is not None:
            self.notifier.update_aggregate_description(self.aggregator.total_fee_usd())

    def _guarded(self, func: Callable, *args) -> None:
        """Run one unit of loop work; nothing raised here may end the thread"""
        try:
            func(*args)
        except Exception:
            logger.exception(f"Unexpected error in {func.__name__}")

    def _backfill_done(self) -> None:
        with self._pending_lock:
            self._pending_backfills -= 1
            if self._pending_backfills <= 0:
                self._backfilled.set()

    def _affiliate_loop(self, affiliate: AffiliateSettings) -> None:
        try:
            self._guarded(self.backfill, affiliate)
        finally:
            self._backfill_done()
        while not self._stop.wait(self.poll_interval):
            self._guarded(self.run_cycle, affiliate)

    def _description_loop(self) -> None:
        while not self._backfilled.wait(1.0):
            if self._stop.is_set():
                return
        self._guarded(self.update_description)
        while not self._stop.wait(self.description_interval):
            self._guarded(self.update_description)

    @property
    def is_running(self) -> bool:
        return not self._stop.is_set() and any(t.is_alive() for t in self._threads)

    def start(self) -> None:
        """Start one thread per affiliate, plus the description refresher"""
        if self._threads:
            raise RuntimeError("Poller already started")
        if not self.affiliates:
            self._backfilled.set()
        for affiliate in self.affiliates:
            self._threads.append(threading.Thread(
                target=self._affiliate_loop, args=(affiliate,), name=f"poller-{affiliate.affiliate}"
            ))
        if self.notifier is not None and self.notifier.main_chat_id is not None:
            self._threads.append(threading.Thread(target=self._description_loop, name="description"))
        for thread in self._threads:
            thread.start()
        logger.info(f"Poller started for {len(self.affiliates)} affiliates every {self.poll_interval:g}s")

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Signal all loops to stop and wait for them.

        A cycle in progress finishes committing its current page first.
        """
        self._stop.set()
        for thread in self._threads:
            thread.join(timeout)
        logger.info("Poller stopped")
