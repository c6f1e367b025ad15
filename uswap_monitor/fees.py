"""Fee computation and asset/chain labels for explorer transactions"""
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple

from uswap_monitor.models.explorer import ExplorerTransaction

BPS_DENOMINATOR = 10000

@dataclass(frozen=True)
class TokenInfo:
    """Known token: display ticker and chain code"""
    ticker: str
    chain: str

# Exact asset id -> token. Checked before any heuristic.
KNOWN_TOKENS: Dict[str, TokenInfo] = {
    "nep141:wrap.near": TokenInfo("wNEAR", "near"),
    "nep141:btc.omft.near": TokenInfo("BTC", "btc"),
    "nep141:eth.omft.near": TokenInfo("ETH", "eth"),
    "nep141:sol.omft.near": TokenInfo("SOL", "sol"),
    "nep141:base.omft.near": TokenInfo("ETH", "base"),
    "nep141:arb.omft.near": TokenInfo("ETH", "arb"),
    "nep141:doge.omft.near": TokenInfo("DOGE", "doge"),
    "nep141:zec.omft.near": TokenInfo("ZEC", "zec"),
    "nep141:eth-0xdac17f958d2ee523a2206206994597c13d831ec7.omft.near": TokenInfo("USDT", "eth"),
    "nep141:eth-0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48.omft.near": TokenInfo("USDC", "eth"),
    "nep141:tron-d28a265909efecdcee7c5028585214ea0b96f015.omft.near": TokenInfo("USDT", "tron"),
    "nep141:sol-5ce3bf3a31af18be40ba30f721101b4341690186.omft.near": TokenInfo("USDC", "sol"),
    "nep141:usdt.tether-token.near": TokenInfo("USDT", "near"),
    "nep141:17208628f84f5d6ad33f0da3bbbeb27ffcb398eac501a31bd6ad2011e36133a1": TokenInfo("USDC", "near"),
}

# Chain code (lower case) -> display name. Unknown codes are upper-cased.
CHAIN_NAMES: Dict[str, str] = {
    "eth": "Ethereum", "btc": "Bitcoin", "sol": "Solana", "base": "Base",
    "arb": "Arbitrum", "ton": "TON", "tron": "TRON", "trx": "TRON",
    "bsc": "BNB Chain", "pol": "Polygon", "op": "Optimism",
    "avax": "Avalanche", "near": "NEAR", "sui": "Sui",
    "doge": "Dogecoin", "ltc": "Litecoin", "xrp": "XRP",
    "bch": "Bitcoin Cash", "xlm": "Stellar", "nep141": "NEAR",
}

# nep141 account suffixes of bridged assets: "<chain>[-<contract>]<suffix>"
BRIDGE_SUFFIXES: Tuple[str, ...] = (".omft.near",)

NATIVE_NAMESPACE = "nep141"

def total_bps(tx: ExplorerTransaction) -> int:
    """Sum of all app-fee basis points on a transaction"""
    return sum(fee.fee_bps for fee in tx.app_fees)

def fee_usd(tx: ExplorerTransaction) -> float:
    """USD fee taken from a transaction: notional * bps / 10000"""
    bps = total_bps(tx)
    if bps == 0 or tx.amount_in_usd == 0:
        return 0.0
    return tx.amount_in_usd * bps / BPS_DENOMINATOR

def _split_asset(asset_id: str) -> Tuple[str, str]:
    """
    Derive (ticker, chain code) from an asset id with no table entry.

    Rules, in order:
      - no "namespace:" prefix: the id itself is both ticker and chain code
      - nep141 bridged asset ("<chain>[-<contract>].omft.near"): the leading
        chain segment is both ticker and chain code
      - other nep141 asset: first dot segment of the account is the ticker,
        chain is NEAR
      - any other namespace: the namespace is both ticker and chain code
    """
    namespace, sep, rest = asset_id.partition(":")
    if not sep:
        return asset_id.upper(), asset_id

    if namespace.lower() != NATIVE_NAMESPACE:
        return namespace.upper(), namespace

    for suffix in BRIDGE_SUFFIXES:
        if rest.endswith(suffix):
            head = rest[:-len(suffix)]
            chain = head.split("-", 1)[0].split(".", 1)[0]
            return chain.upper(), chain

    return rest.split(".", 1)[0].upper(), namespace

def chain_name(code: str) -> str:
    """Display name for a chain code"""
    return CHAIN_NAMES.get(code.lower(), code.upper())

def asset_label(asset_id: str, tokens: Optional[Mapping[str, TokenInfo]] = None) -> str:
    """Token symbol for an asset id"""
    table = KNOWN_TOKENS if tokens is None else tokens
    token = table.get(asset_id)
    if token and token.ticker:
        return token.ticker
    return _split_asset(asset_id)[0]

def chain_label(asset_id: str, tokens: Optional[Mapping[str, TokenInfo]] = None) -> str:
    """Display chain name for an asset id"""
    table = KNOWN_TOKENS if tokens is None else tokens
    token = table.get(asset_id)
    if token and token.chain:
        return chain_name(token.chain)
    return chain_name(_split_asset(asset_id)[1])
