"""Explorer API integration service"""
import logging
from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError

from uswap_monitor.models.explorer import Cursor, ExplorerPage, ExplorerTransaction, SUCCESS_STATUS

logger = logging.getLogger(__name__)

MAX_ERROR_BODY = 300

class ExplorerError(Exception):
    """Transport or HTTP failure talking to the explorer"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

class ExplorerResponseError(ExplorerError):
    """The explorer answered with a body that could not be parsed"""
    pass

class ExplorerAPI:
    """
    Read-only client for the explorer transactions endpoint.

    The client never retries: a failed fetch is reported to the caller,
    which decides when to try again.
    """

    def __init__(self, base_url: str, token: Optional[str] = None, timeout: float = 30.0,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {'Accept': 'application/json'}
        if self.token:
            headers['Authorization'] = f'Bearer {self.token}'
        return headers

    def _make_request(self, endpoint: str, params: Dict[str, Any]) -> Any:
        """GET an endpoint and return the decoded JSON body"""
        url = f'{self.base_url}/{endpoint}'
        try:
            response = self.session.get(url, params=params, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as e:
            raise ExplorerError(f"Explorer request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise ExplorerError(
                f"Explorer {response.status_code}: {response.text[:MAX_ERROR_BODY]}",
                status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            raise ExplorerResponseError(
                f"Explorer returned invalid JSON ({len(response.content)} bytes)",
                status_code=response.status_code
            ) from e

    @staticmethod
    def _page_params(affiliate: str, cursor: Cursor, page_size: int) -> Dict[str, Any]:
        params = {
            'affiliate': affiliate,
            'statuses': SUCCESS_STATUS,
            'numberOfTransactions': page_size,
            'direction': 'next',
        }
        if cursor.deposit_address:
            params['lastDepositAddress'] = cursor.deposit_address
            if cursor.deposit_memo:
                params['lastDepositMemo'] = cursor.deposit_memo
        return params

    def fetch_page(self, affiliate: str, cursor: Cursor, page_size: int) -> ExplorerPage:
        """
        Fetch the page of transactions after cursor, oldest first.

        Args:
            affiliate: Affiliate identifier
            cursor: Last processed position; empty for the oldest page
            page_size: Maximum number of records to request

        Returns:
            ExplorerPage with the SUCCESS transactions and the position of the
            last record on the page

        Raises:
            ExplorerError: On transport errors and non-2xx responses
            ExplorerResponseError: If the body does not match the expected shape
        """
        data = self._make_request('v0/transactions', self._page_params(affiliate, cursor, page_size))

        if not isinstance(data, dict) or 'transactions' not in data:
            raise ExplorerResponseError(f"Explorer response has no transactions list ({len(str(data))} bytes)")

        # null means no activity yet
        records = data['transactions'] or []
        if not isinstance(records, list):
            raise ExplorerResponseError(f"Explorer transactions field is not a list ({len(str(data))} bytes)")

        try:
            parsed: List[ExplorerTransaction] = [ExplorerTransaction.model_validate(r) for r in records]
        except ValidationError as e:
            raise ExplorerResponseError(
                f"Explorer returned {len(records)} malformed transaction records: {e.error_count()} errors"
            ) from e

        page = ExplorerPage(size=len(parsed), next_cursor=parsed[-1].cursor if parsed else None)
        for tx in parsed:
            if tx.is_success:
                page.transactions.append(tx)
            else:
                logger.warning(
                    f"Skipping {affiliate} transaction {tx.deposit_address} with status {tx.status!r}"
                )
        return page
