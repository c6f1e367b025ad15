"""Display formatting shared by cards and reporting rows"""
from datetime import datetime, timezone

def format_commas(n: int) -> str:
    return f"{n:,}"

def format_usd(value: float) -> str:
    """$1,234 for amounts of a thousand or more, $12.34 below that"""
    sign = "-" if value < 0 else ""
    value = abs(value)
    if round(value, 2) >= 1000:
        return f"{sign}${value:,.0f}"
    return f"{sign}${value:,.2f}"

def trim_amount(amount: str, max_decimals: int) -> str:
    """Cut a formatted decimal to max_decimals and drop trailing zeros"""
    amount = amount.strip()
    if "." not in amount:
        return amount
    whole, frac = amount.split(".", 1)
    frac = frac[:max_decimals].rstrip("0")
    return f"{whole}.{frac}" if frac else whole

def safe_runes(s: str, n: int) -> str:
    return s[:n]

def pad_right(s: str, n: int) -> str:
    return s + " " * max(n - len(s), 0)

def format_card_time(ts: int) -> str:
    """Unix seconds as "26 Feb · 02:41z" """
    if not ts:
        return "unknown"
    t = datetime.fromtimestamp(ts, tz=timezone.utc)
    return f"{t.day} {t.strftime('%b')} · {t.hour:02d}:{t.minute:02d}z"

def format_log_time(ts: int) -> str:
    """Unix seconds as "02 Jan 2006 15:04z" """
    if not ts:
        return "—"
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%d %b %Y %H:%Mz")
