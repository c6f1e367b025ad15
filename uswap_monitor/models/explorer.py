"""Explorer API transaction models"""
from dataclasses import dataclass, field
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

SUCCESS_STATUS = "SUCCESS"

def _drop_nulls(data: Any) -> Any:
    """Explorer sends null for absent values; let the field default apply instead"""
    if isinstance(data, dict):
        return {key: value for key, value in data.items() if value is not None}
    return data

class AppFee(BaseModel):
    """Fee-schedule entry attached to a swap"""
    model_config = ConfigDict(populate_by_name=True)

    recipient: str = ""
    fee_bps: int = Field(0, alias="fee")

    @model_validator(mode='before')
    @classmethod
    def null_as_default(cls, data: Any) -> Any:
        return _drop_nulls(data)

class ExplorerTransaction(BaseModel):
    """
    A settled swap as reported by the explorer.

    (deposit_address, deposit_memo) identifies the transaction within an
    affiliate's history and is the pagination key.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    deposit_address: str = Field("", alias="depositAddress")
    deposit_memo: str = Field("", alias="depositMemo")
    recipient: str = ""
    status: str = ""
    amount_in_formatted: str = Field("", alias="amountInFormatted")
    amount_out_formatted: str = Field("", alias="amountOutFormatted")
    amount_in_usd: float = Field(0.0, alias="amountInUsd")
    amount_out_usd: float = Field(0.0, alias="amountOutUsd")
    origin_asset: str = Field("", alias="originAsset")
    destination_asset: str = Field("", alias="destinationAsset")
    senders: List[str] = Field(default_factory=list)
    near_tx_hashes: List[str] = Field(default_factory=list, alias="nearTxHashes")
    origin_chain_tx_hashes: List[str] = Field(default_factory=list, alias="originChainTxHashes")
    destination_chain_tx_hashes: List[str] = Field(default_factory=list, alias="destinationChainTxHashes")
    app_fees: List[AppFee] = Field(default_factory=list, alias="appFees")
    created_at: str = Field("", alias="createdAt")
    created_at_timestamp: int = Field(0, alias="createdAtTimestamp")

    @model_validator(mode='before')
    @classmethod
    def null_as_default(cls, data: Any) -> Any:
        return _drop_nulls(data)

    @property
    def cursor(self) -> 'Cursor':
        return Cursor(self.deposit_address, self.deposit_memo)

    @property
    def is_success(self) -> bool:
        return self.status == SUCCESS_STATUS

    def all_tx_hashes(self) -> List[str]:
        return self.near_tx_hashes + self.origin_chain_tx_hashes + self.destination_chain_tx_hashes

@dataclass(frozen=True)
class Cursor:
    """Pagination position: the last processed transaction's key. Empty means oldest."""
    deposit_address: str = ""
    deposit_memo: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.deposit_address

@dataclass
class ExplorerPage:
    """One page fetched from the explorer"""
    transactions: List[ExplorerTransaction] = field(default_factory=list)  # SUCCESS only, in page order
    size: int = 0  # raw record count, including anything filtered out
    next_cursor: Optional[Cursor] = None  # key of the last raw record
