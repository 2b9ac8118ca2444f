from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from polygon_paths.core.adapters.models import GasPriceEstimates, PriorityFeeTier
from polygon_paths.core.config import (
    get_etherscan_api_key,
    get_gas_oracle_url,
    get_root_chain_id,
)
from polygon_paths.core.constants.base import DEFAULT_HTTP_TIMEOUT
from polygon_paths.core.utils.units import gwei_to_wei

_TIER_FIELDS = {
    "safe_low": "SafeGasPrice",
    "average": "ProposeGasPrice",
    "fast": "FastGasPrice",
}


def _gwei_field(result: dict[str, Any], key: str) -> int | None:
    value = result.get(key)
    if value is None or str(value).strip() == "":
        return None
    try:
        return gwei_to_wei(value)
    except ValueError:
        logger.warning(f"Gas oracle returned non-numeric {key}: {value!r}")
        return None


def parse_gas_oracle_result(result: dict[str, Any]) -> GasPriceEstimates:
    """Map an Etherscan ``gastracker/gasoracle`` result (gwei strings) to wei."""
    tiers = {
        tier: PriorityFeeTier(max_priority_fee_per_gas=_gwei_field(result, field))
        for tier, field in _TIER_FIELDS.items()
    }
    return GasPriceEstimates(
        **tiers, estimated_base_fee=_gwei_field(result, "suggestBaseFee")
    )


class GasOracleClient:
    """Etherscan V2 gas tracker for the root chain.

    Only the HTTP leg lives here. Falling back to the provider's own gas price
    when the oracle is unusable is the caller's job (see ``FeeEstimator``).
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        chain_id: int | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else get_etherscan_api_key()
        self.base_url = str(base_url or get_gas_oracle_url()).rstrip("/")
        self.chain_id = int(chain_id or get_root_chain_id())
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(DEFAULT_HTTP_TIMEOUT)
        )

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def fetch(self) -> GasPriceEstimates | None:
        """Return oracle estimates, or ``None`` when the oracle can't be used.

        ``None`` covers a missing API key, HTTP/transport failures and payloads
        whose ``status`` is not ``"1"``.
        """
        if not self.enabled:
            logger.debug("No Etherscan API key configured, skipping gas oracle")
            return None

        params = {
            "chainid": str(self.chain_id),
            "module": "gastracker",
            "action": "gasoracle",
            "apikey": self.api_key,
        }
        try:
            resp = await self.client.get(self.base_url, params=params)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(f"Gas oracle request failed: {exc}")
            return None

        if not isinstance(data, dict) or str(data.get("status")) != "1":
            message = data.get("message") if isinstance(data, dict) else None
            logger.warning(f"Gas oracle returned an error payload: {message}")
            return None
        result = data.get("result")
        if not isinstance(result, dict):
            logger.warning("Gas oracle result is not an object")
            return None

        estimates = parse_gas_oracle_result(result)
        logger.debug(f"Gas oracle estimates: {estimates.model_dump()}")
        return estimates

    async def close(self) -> None:
        await self.client.aclose()
