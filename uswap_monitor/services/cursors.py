"""Durable per-affiliate pagination cursors"""
import logging
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from uswap_monitor.db import Database
from uswap_monitor.models.db import AffiliateCursor
from uswap_monitor.models.explorer import Cursor
from uswap_monitor.models.stats import StatsSnapshot

logger = logging.getLogger(__name__)

class CursorStoreError(Exception):
    """Raised when a cursor cannot be read or persisted"""
    pass

class CursorStore:
    """
    Stores the last committed explorer position for each affiliate.

    advance() commits before returning, so a restart resumes from the last
    committed page. Only the affiliate's own poller thread writes its row.
    """

    def __init__(self, database: Database):
        self.database = database

    def get(self, affiliate: str) -> Cursor:
        """Return the stored cursor, or the empty cursor if none was recorded"""
        try:
            with self.database.session() as session:
                row = session.get(AffiliateCursor, affiliate)
                if row is None:
                    return Cursor()
                return Cursor(row.last_deposit_address or '', row.last_deposit_memo or '')
        except SQLAlchemyError as e:
            logger.error(f"Database error loading cursor for {affiliate}: {e}")
            raise CursorStoreError(f"Failed to load cursor for {affiliate}: {e}") from e

    def load_totals(self, affiliate: str) -> StatsSnapshot:
        """Return the totals committed alongside the cursor"""
        try:
            with self.database.session() as session:
                row = session.get(AffiliateCursor, affiliate)
                if row is None:
                    return StatsSnapshot()
                return StatsSnapshot(
                    fee_usd=row.fee_usd or 0.0,
                    volume_usd=row.volume_usd or 0.0,
                    swap_count=row.swap_count or 0
                )
        except SQLAlchemyError as e:
            logger.error(f"Database error loading totals for {affiliate}: {e}")
            raise CursorStoreError(f"Failed to load totals for {affiliate}: {e}") from e

    def advance(self, affiliate: str, cursor: Cursor, totals: Optional[StatsSnapshot] = None) -> None:
        """
        Persist a new cursor (and optionally the totals it corresponds to).

        Raises:
            CursorStoreError: If the write could not be committed. The caller
                must treat the page as unprocessed.
        """
        try:
            with self.database.session() as session:
                row = session.get(AffiliateCursor, affiliate)
                if row is None:
                    row = AffiliateCursor(affiliate=affiliate)
                    session.add(row)
                row.last_deposit_address = cursor.deposit_address
                row.last_deposit_memo = cursor.deposit_memo
                if totals is not None:
                    row.fee_usd = totals.fee_usd
                    row.volume_usd = totals.volume_usd
                    row.swap_count = totals.swap_count
        except SQLAlchemyError as e:
            logger.error(f"Database error advancing cursor for {affiliate}: {e}")
            raise CursorStoreError(f"Failed to advance cursor for {affiliate}: {e}") from e

    def positions(self) -> Dict[str, Cursor]:
        """All stored cursors, for diagnostics"""
        try:
            with self.database.session() as session:
                return {
                    row.affiliate: Cursor(row.last_deposit_address or '', row.last_deposit_memo or '')
                    for row in session.query(AffiliateCursor).all()
                }
        except SQLAlchemyError as e:
            logger.error(f"Database error listing cursors: {e}")
            raise CursorStoreError(f"Failed to list cursors: {e}") from e
