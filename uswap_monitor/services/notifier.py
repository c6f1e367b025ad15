"""Swap cards and Telegram notifications for reseller activity"""
import html
import logging
from typing import Dict, Iterable, List, Optional

from uswap_monitor.config import AffiliateSettings
from uswap_monitor.fees import asset_label, chain_label
from uswap_monitor.formatting import (
    format_card_time, format_commas, format_usd, pad_right, safe_runes, trim_amount
)
from uswap_monitor.models.explorer import ExplorerTransaction
from uswap_monitor.models.stats import StatsSnapshot
from uswap_monitor.services.telegram import TelegramAPI, TelegramError

logger = logging.getLogger(__name__)

CARD_INNER = 31
DESCRIPTION_PLACEHOLDER = "$"
NEARBLOCKS_TX_URL = "https://nearblocks.io/txns/"

def _top() -> str:
    return "╔" + "═" * CARD_INNER + "╗"

def _mid() -> str:
    return "╠" + "═" * CARD_INNER + "╣"

def _bottom() -> str:
    return "╚" + "═" * CARD_INNER + "╝"

def _row(s: str) -> str:
    return "║" + pad_right(s, CARD_INNER) + "║"

def _row_lr(left: str, right: str) -> str:
    """Row with left- and right-aligned content, at least one space between"""
    space = max(CARD_INNER - len(left) - len(right), 1)
    return "║" + left + " " * space + right + "║"

def render_card(display_name: str, tx: ExplorerTransaction, fee_usd: float, stats: StatsSnapshot) -> str:
    """
    Double-border card for one reseller swap:

        ╔═══════════════════════════════╗
        ║ SWAP.MY         $18.42 PROFIT ║
        ╠═══════════════════════════════╣
        ║ 0.5 ETH  ──►  1842 USDT       ║
        ║ Ethereum                 TRON ║
        ╠═══════════════════════════════╣
        ║ #5,214  ·  26 Feb · 02:41z    ║
        ╚═══════════════════════════════╝
    """
    header = _row_lr(" " + display_name, format_usd(fee_usd) + " PROFIT ")

    in_tok = safe_runes(asset_label(tx.origin_asset), 6)
    out_tok = safe_runes(asset_label(tx.destination_asset), 6)
    in_amt = safe_runes(trim_amount(tx.amount_in_formatted, 6), 10)
    out_amt = safe_runes(trim_amount(tx.amount_out_formatted, 6), 10)
    amounts = _row(f" {in_amt} {in_tok}  ──►  {out_amt} {out_tok}")

    in_chain = safe_runes(chain_label(tx.origin_asset), 12)
    out_chain = safe_runes(chain_label(tx.destination_asset), 12)
    chains = _row_lr(" " + in_chain, out_chain + " ")

    swap_num = safe_runes(format_commas(stats.swap_count), 7)
    footer = _row(f" #{swap_num}  ·  {format_card_time(tx.created_at_timestamp)}")

    return "\n".join([_top(), header, _mid(), amounts, chains, _mid(), footer, _bottom()])

def _first(values: List[str]) -> str:
    return values[0] if values and values[0] else ""

def build_message(card: str, tx: ExplorerTransaction) -> str:
    """Card plus sender/recipient addresses and chain transaction hashes, as Telegram HTML"""
    parts = [f"<pre>{html.escape(card, quote=False)}</pre>"]

    sender = _first(tx.senders)
    if sender:
        parts.append(f"\nFrom: <code>{html.escape(sender)}</code>")
    if tx.recipient:
        parts.append(f"\nTo:   <code>{html.escape(tx.recipient)}</code>")

    src = _first(tx.origin_chain_tx_hashes)
    if src:
        parts.append(f"\n\nSRC:  <code>{html.escape(src)}</code>")
    dst = _first(tx.destination_chain_tx_hashes)
    if dst:
        parts.append(f"\nDST:  <code>{html.escape(dst)}</code>")
    near = _first(tx.near_tx_hashes)
    if near:
        near = html.escape(near)
        parts.append(f'\nNEAR: <a href="{NEARBLOCKS_TX_URL}{near}">{near}</a>')

    return "".join(parts)

def thread_title(display_name: str, total_fee_usd: float) -> str:
    """Forum topic title, e.g. "$24,210 Profit · Swap.my" """
    return f"{format_usd(total_fee_usd)} Profit · {display_name}"

class Notifier:
    """
    Posts swap cards and keeps topic titles and the main chat description current.

    Every call is best-effort: Telegram failures are logged and reported
    through the return value, never raised, and never retried.
    """

    def __init__(self, telegram: TelegramAPI, group_id: Optional[int], main_chat_id: Optional[int],
                 affiliates: Iterable[AffiliateSettings]):
        self.telegram = telegram
        self.group_id = group_id
        self.main_chat_id = main_chat_id
        self._affiliates: Dict[str, AffiliateSettings] = {a.affiliate: a for a in affiliates}

    def _thread_for(self, affiliate: str) -> Optional[AffiliateSettings]:
        registered = self._affiliates.get(affiliate)
        if self.group_id is None or registered is None or registered.thread_id is None:
            return None
        return registered

    def post(self, thread_id: int, card: str, tx: ExplorerTransaction) -> bool:
        """Send a rendered card with its addresses and hashes to a group thread"""
        if self.group_id is None:
            return False
        try:
            self.telegram.send_message(self.group_id, build_message(card, tx), thread_id=thread_id)
            return True
        except TelegramError as e:
            logger.warning(f"Failed to post card for {tx.deposit_address}: {e}")
            return False

    def notify(self, affiliate: str, tx: ExplorerTransaction, fee_usd: float, stats: StatsSnapshot) -> bool:
        """Render and post the card for one swap, if the affiliate has a thread"""
        registered = self._thread_for(affiliate)
        if registered is None:
            return False
        card = render_card(registered.name, tx, fee_usd, stats)
        return self.post(registered.thread_id, card, tx)

    def update_thread_title(self, affiliate: str, total_fee_usd: float) -> bool:
        registered = self._thread_for(affiliate)
        if registered is None:
            return False
        try:
            self.telegram.edit_forum_topic(
                self.group_id, registered.thread_id, thread_title(registered.name, total_fee_usd)
            )
            return True
        except TelegramError as e:
            logger.warning(f"Failed to update thread title for {affiliate}: {e}")
            return False

    def update_aggregate_description(self, total_fee_usd: float) -> bool:
        """
        Replace the first "$" in the main chat description with the grand total.

        Once the placeholder has been consumed the description is left alone,
        so later totals are not written until an operator restores the "$".
        """
        if self.main_chat_id is None:
            return False
        try:
            chat = self.telegram.get_chat(self.main_chat_id)
            description = chat.get('description') or ''
            if DESCRIPTION_PLACEHOLDER not in description:
                logger.debug("Main chat description has no placeholder, leaving it unchanged")
                return False
            updated = description.replace(DESCRIPTION_PLACEHOLDER, format_usd(total_fee_usd), 1)
            self.telegram.set_chat_description(self.main_chat_id, updated)
            return True
        except TelegramError as e:
            logger.warning(f"Failed to update main chat description: {e}")
            return False
