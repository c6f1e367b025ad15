"""Telegram Bot API integration service"""
import logging
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

class TelegramError(Exception):
    """Telegram request failed or returned ok=false"""
    pass

class TelegramAPI:
    """Minimal Bot API client: JSON POST to /bot<token>/<method>"""

    def __init__(self, token: str, base_url: str = "https://api.telegram.org", timeout: float = 10.0,
                 session: Optional[requests.Session] = None):
        self.token = token
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    def _make_request(self, method: str, payload: Dict[str, Any]) -> Any:
        """Call a Bot API method and return its result field"""
        url = f'{self.base_url}/bot{self.token}/{method}'
        try:
            response = self.session.post(url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            # exception text includes the URL, which contains the token
            raise TelegramError(f"{method} failed: {type(e).__name__}") from e

        try:
            body = response.json()
        except ValueError:
            raise TelegramError(f"{method} returned {response.status_code} with non-JSON body") from None

        if response.status_code >= 300 or not body.get('ok'):
            raise TelegramError(f"{method} {response.status_code}: {body.get('description', 'unknown error')}")
        return body.get('result')

    def send_message(self, chat_id: int, text: str, thread_id: Optional[int] = None) -> Any:
        payload = {
            'chat_id': chat_id,
            'text': text,
            'parse_mode': 'HTML',
            'link_preview_options': {'is_disabled': True},
        }
        if thread_id is not None:
            payload['message_thread_id'] = thread_id
        return self._make_request('sendMessage', payload)

    def edit_forum_topic(self, chat_id: int, thread_id: int, name: str) -> Any:
        return self._make_request('editForumTopic', {
            'chat_id': chat_id,
            'message_thread_id': thread_id,
            'name': name,
        })

    def get_chat(self, chat_id: int) -> Dict[str, Any]:
        return self._make_request('getChat', {'chat_id': chat_id}) or {}

    def set_chat_description(self, chat_id: int, description: str) -> Any:
        return self._make_request('setChatDescription', {
            'chat_id': chat_id,
            'description': description,
        })
