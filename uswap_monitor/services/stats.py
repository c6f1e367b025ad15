"""Live per-affiliate swap statistics"""
import logging
import threading
from typing import Dict, Iterable, List

from uswap_monitor.models.stats import StatsSnapshot

logger = logging.getLogger(__name__)

class LiveStats:
    """Running fee/volume/swap counters for one affiliate, guarded by their own lock"""

    def __init__(self):
        self._lock = threading.Lock()
        self._fee_usd = 0.0
        self._volume_usd = 0.0
        self._swap_count = 0

    def record(self, fee_usd: float, volume_usd: float) -> StatsSnapshot:
        """Count one swap and return the counters as of that swap"""
        with self._lock:
            self._fee_usd += fee_usd
            self._volume_usd += volume_usd
            self._swap_count += 1
            return StatsSnapshot(self._fee_usd, self._volume_usd, self._swap_count)

    def snapshot(self) -> StatsSnapshot:
        with self._lock:
            return StatsSnapshot(self._fee_usd, self._volume_usd, self._swap_count)

    def seed(self, totals: StatsSnapshot) -> None:
        """Replace the counters with previously committed totals"""
        with self._lock:
            self._fee_usd = totals.fee_usd
            self._volume_usd = totals.volume_usd
            self._swap_count = totals.swap_count

class StatsAggregator:
    """
    Counters for every registered affiliate.

    The affiliate map is fixed at construction, so lookups need no lock and
    writers for different affiliates never contend.
    """

    def __init__(self, affiliates: Iterable[str]):
        self._stats: Dict[str, LiveStats] = {affiliate: LiveStats() for affiliate in affiliates}

    def _get(self, affiliate: str) -> LiveStats:
        try:
            return self._stats[affiliate]
        except KeyError:
            raise KeyError(f"Unknown affiliate: {affiliate}") from None

    def record(self, affiliate: str, fee_usd: float, volume_usd: float) -> StatsSnapshot:
        return self._get(affiliate).record(fee_usd, volume_usd)

    def snapshot(self, affiliate: str) -> StatsSnapshot:
        return self._get(affiliate).snapshot()

    def seed(self, affiliate: str, totals: StatsSnapshot) -> None:
        self._get(affiliate).seed(totals)
        logger.info(
            f"Restored {affiliate}: {totals.swap_count} swaps, "
            f"${totals.fee_usd:.2f} fees, ${totals.volume_usd:.2f} volume"
        )

    def affiliates(self) -> List[str]:
        return list(self._stats)

    def total_fee_usd(self) -> float:
        return sum(stats.snapshot().fee_usd for stats in self._stats.values())
