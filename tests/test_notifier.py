from unittest import mock

import pytest

from uswap_monitor.config import AffiliateSettings
from uswap_monitor.models.stats import StatsSnapshot
from uswap_monitor.services.notifier import CARD_INNER, Notifier, build_message, render_card, thread_title
from uswap_monitor.services.telegram import TelegramAPI, TelegramError
from conftest import make_tx

GROUP_ID = -1001
MAIN_CHAT_ID = -1002

@pytest.fixture
def telegram():
    return mock.Mock(spec=TelegramAPI)

@pytest.fixture
def notifier(telegram):
    affiliates = [
        AffiliateSettings(affiliate="eagle", name="EagleSwap", thread_id=11),
        AffiliateSettings(affiliate="quiet", name="Quiet"),
    ]
    return Notifier(telegram, GROUP_ID, MAIN_CHAT_ID, affiliates)

def test_card_layout():
    tx = make_tx(1, amount_in_usd=100.0)
    card = render_card("EagleSwap", tx, 0.5, StatsSnapshot(0.5, 100.0, 5214))
    lines = card.split("\n")

    assert len(lines) == 8
    assert lines[0] == "╔" + "═" * CARD_INNER + "╗"
    assert lines[-1] == "╚" + "═" * CARD_INNER + "╝"
    assert lines[1].startswith("║ EagleSwap")
    assert lines[1].endswith("$0.50 PROFIT ║")
    assert lines[3] == "║" + " 0.05 ETH  ──►  184.2 USDT".ljust(CARD_INNER) + "║"
    assert lines[4].startswith("║ Ethereum") and lines[4].endswith("TRON ║")
    assert "#5,214" in lines[6]
    assert "26 Feb · 02:41z" in lines[6]
    for line in (lines[0], lines[1], lines[4], lines[6], lines[7]):
        assert len(line) == CARD_INNER + 2

def test_card_without_timestamp():
    tx = make_tx(1, createdAtTimestamp=0)
    card = render_card("EagleSwap", tx, 0.0, StatsSnapshot(swap_count=1))
    assert "unknown" in card

def test_message_lists_addresses_and_hashes():
    text = build_message("CARD", make_tx(7))
    assert text.startswith("<pre>CARD</pre>")
    assert "From: <code>0xsender7</code>" in text
    assert "To:   <code>TRecipient7</code>" in text
    assert "SRC:  <code>0xsrc7</code>" in text
    assert "DST:  <code>dst7</code>" in text
    assert '<a href="https://nearblocks.io/txns/NearHash7">NearHash7</a>' in text

def test_message_skips_missing_fields():
    tx = make_tx(1, senders=[], recipient="", nearTxHashes=[], originChainTxHashes=[""],
                 destinationChainTxHashes=[])
    assert build_message("CARD", tx) == "<pre>CARD</pre>"

def test_message_escapes_html():
    assert build_message("a<b>&c", make_tx(1, senders=[])).startswith("<pre>a&lt;b&gt;&amp;c</pre>")

def test_notify_posts_to_affiliate_thread(notifier, telegram):
    assert notifier.notify("eagle", make_tx(1), 0.5, StatsSnapshot(0.5, 100.0, 1))

    telegram.send_message.assert_called_once()
    args, kwargs = telegram.send_message.call_args
    assert args[0] == GROUP_ID
    assert "EagleSwap" in args[1]
    assert kwargs["thread_id"] == 11

def test_notify_without_thread_is_noop(notifier, telegram):
    assert not notifier.notify("quiet", make_tx(1), 0.5, StatsSnapshot(0.5, 100.0, 1))
    assert not notifier.notify("unknown", make_tx(1), 0.5, StatsSnapshot(0.5, 100.0, 1))
    telegram.send_message.assert_not_called()

def test_post_failure_is_swallowed_without_retry(notifier, telegram):
    telegram.send_message.side_effect = TelegramError("sendMessage 429: Too Many Requests")

    assert notifier.notify("eagle", make_tx(1), 0.5, StatsSnapshot(0.5, 100.0, 1)) is False
    assert telegram.send_message.call_count == 1

def test_thread_title(notifier, telegram):
    assert thread_title("Swap.my", 24210.4) == "$24,210 Profit · Swap.my"

    assert notifier.update_thread_title("eagle", 18.42)
    telegram.edit_forum_topic.assert_called_once_with(GROUP_ID, 11, "$18.42 Profit · EagleSwap")

    telegram.edit_forum_topic.side_effect = TelegramError("editForumTopic 400: TOPIC_NOT_MODIFIED")
    assert notifier.update_thread_title("eagle", 18.42) is False

def test_description_placeholder_is_replaced_once(notifier, telegram):
    telegram.get_chat.return_value = {"description": "Resellers made $ in fees. Prices in $."}

    assert notifier.update_aggregate_description(1234.4)
    telegram.set_chat_description.assert_called_once_with(
        MAIN_CHAT_ID, "Resellers made $1,234 in fees. Prices in $."
    )

def test_description_without_placeholder_is_left_alone(notifier, telegram):
    telegram.get_chat.return_value = {"description": "Resellers made lots in fees."}

    assert notifier.update_aggregate_description(99.0) is False
    telegram.set_chat_description.assert_not_called()

    telegram.get_chat.return_value = {}
    assert notifier.update_aggregate_description(99.0) is False
    telegram.set_chat_description.assert_not_called()

def test_description_failure_is_swallowed(notifier, telegram):
    telegram.get_chat.side_effect = TelegramError("getChat 403: Forbidden")
    assert notifier.update_aggregate_description(1.0) is False

def test_unconfigured_destinations(telegram):
    notifier = Notifier(telegram, None, None, [AffiliateSettings(affiliate="eagle", name="EagleSwap", thread_id=11)])
    assert not notifier.notify("eagle", make_tx(1), 0.5, StatsSnapshot(0.5, 100.0, 1))
    assert not notifier.update_thread_title("eagle", 1.0)
    assert not notifier.update_aggregate_description(1.0)
    telegram.send_message.assert_not_called()
    telegram.get_chat.assert_not_called()
