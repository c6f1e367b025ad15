"""Read-only reporting over live stats and the transaction log"""
from typing import Callable, Iterable, List

from uswap_monitor.config import AffiliateSettings
from uswap_monitor.fees import asset_label, chain_label
from uswap_monitor.formatting import format_log_time, format_usd, trim_amount
from uswap_monitor.models.stats import AffiliateStatsRow, LogEntry, LogRow
from uswap_monitor.services.log_buffer import LogBuffer, LogPredicate
from uswap_monitor.services.notifier import NEARBLOCKS_TX_URL
from uswap_monitor.services.stats import StatsAggregator

DEFAULT_LOG_LIMIT = 500

def _searchable_text(entry: LogEntry) -> List[str]:
    tx = entry.tx
    return [
        entry.reseller,
        tx.recipient,
        tx.deposit_address,
        asset_label(tx.origin_asset),
        asset_label(tx.destination_asset),
        chain_label(tx.origin_asset),
        chain_label(tx.destination_asset),
        *tx.all_tx_hashes(),
    ]

def make_filter(query: str = "", affiliate: str = "") -> LogPredicate:
    """
    Predicate for LogBuffer.snapshot.

    affiliate matches the display name or identifier exactly (ignoring case);
    query is a case-insensitive substring of any searchable field.
    """
    query = query.strip().lower()
    affiliate = affiliate.strip().lower()

    def predicate(entry: LogEntry) -> bool:
        if affiliate and affiliate not in (entry.reseller.lower(), entry.affiliate.lower()):
            return False
        if query:
            return any(query in text.lower() for text in _searchable_text(entry) if text)
        return True

    return predicate

def to_row(entry: LogEntry) -> LogRow:
    tx = entry.tx
    near_hash = tx.near_tx_hashes[0] if tx.near_tx_hashes else ""
    return LogRow(
        reseller=entry.reseller,
        amount_in=trim_amount(tx.amount_in_formatted, 6),
        token_in=asset_label(tx.origin_asset),
        chain_in=chain_label(tx.origin_asset),
        amount_out=trim_amount(tx.amount_out_formatted, 6),
        token_out=asset_label(tx.destination_asset),
        chain_out=chain_label(tx.destination_asset),
        fee_usd=format_usd(entry.fee_usd),
        timestamp=format_log_time(tx.created_at_timestamp),
        sender=tx.senders[0] if tx.senders else "",
        recipient=tx.recipient,
        near_tx_hash=near_hash,
        near_tx_url=NEARBLOCKS_TX_URL + near_hash if near_hash else "",
    )

class Reporter:
    """Queries used by the web layer. Never touches the poller or the network."""

    def __init__(self, affiliates: Iterable[AffiliateSettings], aggregator: StatsAggregator,
                 log_buffer: LogBuffer, is_active: Callable[[], bool] = lambda: False):
        self.affiliates = list(affiliates)
        self.aggregator = aggregator
        self.log_buffer = log_buffer
        self._is_active = is_active

    @property
    def monitor_active(self) -> bool:
        return self._is_active()

    def snapshot(self, limit: int = DEFAULT_LOG_LIMIT, filter_text: str = "",
                 affiliate_filter: str = "") -> List[LogRow]:
        entries = self.log_buffer.snapshot(limit, make_filter(filter_text, affiliate_filter))
        return [to_row(entry) for entry in entries]

    def per_affiliate_stats(self) -> List[AffiliateStatsRow]:
        rows = []
        for affiliate in self.affiliates:
            stats = self.aggregator.snapshot(affiliate.affiliate)
            rows.append(AffiliateStatsRow(
                name=affiliate.name,
                fee_usd=stats.fee_usd,
                volume_usd=stats.volume_usd,
                swap_count=stats.swap_count
            ))
        return rows

    def total_fee_usd(self) -> float:
        return self.aggregator.total_fee_usd()
