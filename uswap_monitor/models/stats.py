"""Domain models for aggregated affiliate statistics"""
from dataclasses import dataclass

from uswap_monitor.models.explorer import ExplorerTransaction

@dataclass(frozen=True)
class StatsSnapshot:
    """Point-in-time view of one affiliate's counters"""
    fee_usd: float = 0.0
    volume_usd: float = 0.0
    swap_count: int = 0

@dataclass(frozen=True)
class LogEntry:
    """A transaction observed by the poller, annotated for display and search"""
    affiliate: str
    reseller: str
    tx: ExplorerTransaction
    fee_usd: float

@dataclass
class LogRow:
    """Display-ready log row for the reporting surface"""
    reseller: str
    amount_in: str
    token_in: str
    chain_in: str
    amount_out: str
    token_out: str
    chain_out: str
    fee_usd: str
    timestamp: str
    sender: str
    recipient: str
    near_tx_hash: str
    near_tx_url: str

@dataclass
class AffiliateStatsRow:
    """Per-reseller totals for the reporting surface"""
    name: str
    fee_usd: float
    volume_usd: float
    swap_count: int
