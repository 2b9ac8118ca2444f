from __future__ import annotations

from loguru import logger

from polygon_paths.core.adapters.models import FeeQuote, GasPriceEstimates
from polygon_paths.core.clients.GasOracleClient import GasOracleClient
from polygon_paths.core.clients.NetworkClientPair import NetworkClientPair
from polygon_paths.core.constants.base import MAX_FEE_SANITY_CEILING_GWEI, ONE_GWEI
from polygon_paths.core.constants.chains import ROOT, Network
from polygon_paths.core.errors import (
    FeeUnavailable,
    PolygonPathsError,
    describe_error,
)
from polygon_paths.core.utils.units import format_gas_price


def quote_from_estimates(estimates: GasPriceEstimates | None) -> FeeQuote | None:
    """``baseFee + average priority`` when the oracle supplied both, else ``None``."""
    if estimates is None or estimates.average is None:
        return None
    base_fee = estimates.estimated_base_fee
    priority_fee = estimates.average.max_priority_fee_per_gas
    if base_fee is None or priority_fee is None:
        return None
    return FeeQuote(
        max_fee_per_gas=base_fee + priority_fee,
        max_priority_fee_per_gas=priority_fee,
        source="gas_oracle",
    )


class FeeEstimator:
    """EIP-1559 fee quotes for root-chain transactions.

    Order of preference: gas oracle (base fee + average priority tier), then the
    root provider's fee data, then the provider's legacy gas price used for both
    fields. A quote is derived fresh for every transaction.
    """

    def __init__(
        self,
        clients: NetworkClientPair,
        gas_oracle: GasOracleClient | None = None,
        *,
        sanity_ceiling_wei: int = MAX_FEE_SANITY_CEILING_GWEI * ONE_GWEI,
    ) -> None:
        self.clients = clients
        self.gas_oracle = gas_oracle
        self.sanity_ceiling_wei = sanity_ceiling_wei

    async def get_gas_price_estimates(self) -> GasPriceEstimates:
        estimates = await self.gas_oracle.fetch() if self.gas_oracle else None
        if estimates is not None:
            return estimates
        gas_price = await self.clients.get_gas_price(ROOT)
        return GasPriceEstimates(fallback_gas_price=gas_price)

    async def get_fee_quote(self, network: Network = ROOT) -> FeeQuote:
        if network == ROOT:
            return await self.get_root_fee_quote()
        return await self._provider_quote(network)

    async def get_root_fee_quote(self) -> FeeQuote:
        estimates = await self.gas_oracle.fetch() if self.gas_oracle else None
        quote = quote_from_estimates(estimates)
        if quote is None:
            if self.gas_oracle is not None:
                logger.warning(
                    "Gas oracle data incomplete, falling back to provider fee data"
                )
            quote = await self._provider_quote(ROOT)

        if quote.max_fee_per_gas > self.sanity_ceiling_wei:
            logger.warning(
                f"maxFeePerGas {format_gas_price(quote.max_fee_per_gas)} is above "
                f"the {format_gas_price(self.sanity_ceiling_wei)} sanity ceiling"
            )
        logger.debug(
            f"Root fee quote ({quote.source}): "
            f"maxFee={format_gas_price(quote.max_fee_per_gas)} "
            f"priority={format_gas_price(quote.max_priority_fee_per_gas)}"
        )
        return quote

    async def _provider_quote(self, network: Network) -> FeeQuote:
        try:
            fee_data = await self.clients.get_fee_data(network)
        except PolygonPathsError:
            raise
        except Exception as exc:
            raise FeeUnavailable(
                f"Could not fetch fee data from {network} provider: "
                f"{describe_error(exc)}",
                network=network,
            ) from exc

        max_fee = fee_data.get("max_fee_per_gas")
        priority_fee = fee_data.get("max_priority_fee_per_gas")
        if max_fee is not None and priority_fee is not None:
            return FeeQuote(
                max_fee_per_gas=max(int(max_fee), int(priority_fee)),
                max_priority_fee_per_gas=int(priority_fee),
                source="provider",
            )

        gas_price = fee_data.get("gas_price")
        if gas_price:
            return FeeQuote(
                max_fee_per_gas=int(gas_price),
                max_priority_fee_per_gas=int(gas_price),
                source="legacy_gas_price",
            )
        raise FeeUnavailable(
            f"{network} provider returned no usable fee data", network=network
        )
