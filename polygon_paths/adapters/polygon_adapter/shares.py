from __future__ import annotations

from polygon_paths.core.clients.NetworkClientPair import NetworkClientPair
from polygon_paths.core.constants.base import UNDELEGATE_SLIPPAGE_DIVISOR
from polygon_paths.core.constants.chains import ROOT
from polygon_paths.core.constants.polygon_abi import VALIDATOR_SHARE_ABI
from polygon_paths.core.constants.polygon_contracts import (
    LEGACY_SHARE_PRECISION,
    LEGACY_VALIDATOR_ID_CEILING,
    SHARE_PRECISION,
)
from polygon_paths.core.errors import InvalidExchangeRate


def share_precision(validator_id: int) -> int:
    # Foundation validators (ids 1-7) were deployed with a precision of 100.
    if int(validator_id) < LEGACY_VALIDATOR_ID_CEILING:
        return LEGACY_SHARE_PRECISION
    return SHARE_PRECISION


def amount_to_shares(validator_id: int, amount: int, exchange_rate: int) -> int:
    if exchange_rate <= 0:
        raise InvalidExchangeRate(
            f"Exchange rate for validator {validator_id} must be positive",
            validator_id=validator_id,
            exchange_rate=exchange_rate,
        )
    return int(amount) * share_precision(validator_id) // int(exchange_rate)


def max_shares_to_burn(shares: int) -> int:
    """``shares`` plus 0.1% plus one unit of headroom for exchange-rate drift."""
    return int(shares) + int(shares) // UNDELEGATE_SLIPPAGE_DIVISOR + 1


async def get_exchange_rate(clients: NetworkClientPair, validator_contract: str) -> int:
    rate = await clients.read(
        validator_contract, VALIDATOR_SHARE_ABI, "exchangeRate", network=ROOT
    )
    return int(rate)


async def matic_to_shares(
    clients: NetworkClientPair,
    validator_contract: str,
    validator_id: int,
    amount: int,
) -> int:
    rate = await get_exchange_rate(clients, validator_contract)
    return amount_to_shares(validator_id, amount, rate)
