from typing import Any, Literal

from pydantic import BaseModel, model_validator


class FeeQuote(BaseModel):
    max_fee_per_gas: int
    max_priority_fee_per_gas: int
    source: Literal["gas_oracle", "provider", "legacy_gas_price"] = "provider"

    @model_validator(mode="after")
    def _check_ordering(self) -> "FeeQuote":
        if self.max_priority_fee_per_gas < 0:
            raise ValueError("max_priority_fee_per_gas must be non-negative")
        if self.max_fee_per_gas < self.max_priority_fee_per_gas:
            raise ValueError("max_fee_per_gas must be >= max_priority_fee_per_gas")
        return self

    def as_transaction_fields(self) -> dict[str, int]:
        return {
            "maxFeePerGas": self.max_fee_per_gas,
            "maxPriorityFeePerGas": self.max_priority_fee_per_gas,
        }


class PriorityFeeTier(BaseModel):
    max_priority_fee_per_gas: int | None = None


class GasPriceEstimates(BaseModel):
    safe_low: PriorityFeeTier | None = None
    average: PriorityFeeTier | None = None
    fast: PriorityFeeTier | None = None
    estimated_base_fee: int | None = None
    fallback_gas_price: int | None = None


class PendingTransaction(BaseModel):
    hash: str
    from_address: str
    to: str | None = None
    value: int = 0
    chain_id: int
    nonce: int | None = None
    data: str | None = None
    logs: list[dict[str, Any]] | None = None
