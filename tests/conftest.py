import pytest

from uswap_monitor.config import Settings
from uswap_monitor.db import Database
from uswap_monitor.models.explorer import ExplorerPage, ExplorerTransaction
from uswap_monitor.services.cursors import CursorStore, CursorStoreError
from uswap_monitor.services.log_buffer import LogBuffer
from uswap_monitor.services.stats import StatsAggregator

AFFILIATES = [
    {"affiliate": "eagle", "name": "EagleSwap", "thread_id": 11},
    {"affiliate": "lizard", "name": "LizardSwap", "thread_id": 12},
]

def make_tx(n: int = 1, amount_in_usd: float = 100.0, bps=(30, 20), status: str = "SUCCESS",
            origin: str = "nep141:eth.omft.near",
            destination: str = "nep141:tron-d28a265909efecdcee7c5028585214ea0b96f015.omft.near",
            **overrides) -> ExplorerTransaction:
    record = {
        "depositAddress": f"dep{n:04d}",
        "depositMemo": f"memo{n}",
        "recipient": f"TRecipient{n}",
        "status": status,
        "amountInFormatted": "0.0500000000",
        "amountOutFormatted": "184.2",
        "amountInUsd": amount_in_usd,
        "amountOutUsd": amount_in_usd * 0.995,
        "originAsset": origin,
        "destinationAsset": destination,
        "senders": [f"0xsender{n}"],
        "nearTxHashes": [f"NearHash{n}"],
        "originChainTxHashes": [f"0xsrc{n}"],
        "destinationChainTxHashes": [f"dst{n}"],
        "appFees": [{"recipient": "fees.near", "fee": b} for b in bps],
        "createdAt": "2025-02-26T02:41:00.000Z",
        "createdAtTimestamp": 1740537660,
    }
    record.update(overrides)
    return ExplorerTransaction.model_validate(record)

class FakeExplorer:
    """In-memory feed: returns records strictly after the cursor, in order"""

    def __init__(self, transactions=None):
        self.transactions = {k: list(v) for k, v in (transactions or {}).items()}
        self.calls = []
        self.errors = []

    def fetch_page(self, affiliate, cursor, page_size):
        self.calls.append((affiliate, cursor, page_size))
        if self.errors:
            raise self.errors.pop(0)
        records = self.transactions.get(affiliate, [])
        start = 0
        if not cursor.is_empty:
            start = [tx.cursor for tx in records].index(cursor) + 1
        chunk = records[start:start + page_size]
        return ExplorerPage(
            transactions=[tx for tx in chunk if tx.is_success],
            size=len(chunk),
            next_cursor=chunk[-1].cursor if chunk else None
        )

class FlakyCursorStore(CursorStore):
    """CursorStore whose next `fail_advances` writes fail"""

    def __init__(self, database):
        super().__init__(database)
        self.fail_advances = 0

    def advance(self, affiliate, cursor, totals=None):
        if self.fail_advances:
            self.fail_advances -= 1
            raise CursorStoreError("disk full")
        super().advance(affiliate, cursor, totals)

class RecordingNotifier:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.main_chat_id = None
        self.cards = []
        self.titles = []
        self.descriptions = []

    def notify(self, affiliate, tx, fee_usd, stats):
        if self.fail:
            raise RuntimeError("telegram down")
        self.cards.append((affiliate, tx.deposit_address, fee_usd, stats.swap_count))
        return True

    def update_thread_title(self, affiliate, total_fee_usd):
        self.titles.append((affiliate, total_fee_usd))
        return True

    def update_aggregate_description(self, total_fee_usd):
        self.descriptions.append(total_fee_usd)
        return True

@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        AFFILIATES=AFFILIATES,
        PAGE_SIZE=3,
        POLL_INTERVAL=5,
        LOG_CAPACITY=50,
        DATABASE_URL=f"sqlite:///{tmp_path}/cursors.db",
    )

@pytest.fixture
def database(settings):
    db = Database(settings.DATABASE_URL)
    db.init()
    yield db
    db.dispose()

@pytest.fixture
def cursors(database):
    return FlakyCursorStore(database)

@pytest.fixture
def aggregator(settings):
    return StatsAggregator(a.affiliate for a in settings.AFFILIATES)

@pytest.fixture
def log_buffer(settings):
    return LogBuffer(settings.LOG_CAPACITY)
