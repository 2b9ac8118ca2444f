from __future__ import annotations

from typing import Any

from loguru import logger
from web3 import AsyncWeb3
from web3.exceptions import BlockNotFound, TransactionNotFound

from polygon_paths.core.config import (
    get_child_chain_id,
    get_root_chain_id,
    get_rpc_urls,
)
from polygon_paths.core.constants.chains import CHILD, NETWORKS, ROOT, Network
from polygon_paths.core.errors import ConfigurationError, NetworkUnavailable
from polygon_paths.core.utils.web3 import get_web3


class NetworkClientPair:
    """Read/write access to the root (L1) and child (L2) networks.

    No retries happen here; callers own retry policy. Every method raises
    ``NetworkUnavailable`` when the addressed network was never configured.
    """

    def __init__(
        self,
        root: AsyncWeb3 | None = None,
        child: AsyncWeb3 | None = None,
    ) -> None:
        self._web3s: dict[str, AsyncWeb3 | None] = {ROOT: root, CHILD: child}

    @classmethod
    def from_config(cls) -> NetworkClientPair:
        urls = get_rpc_urls()
        missing = [network for network in NETWORKS if not urls.get(network)]
        if missing:
            raise ConfigurationError(
                f"Missing RPC URL for network(s): {', '.join(missing)}",
                networks=missing,
            )
        return cls(
            root=get_web3(str(urls[ROOT]), get_root_chain_id()),
            child=get_web3(str(urls[CHILD]), get_child_chain_id()),
        )

    def web3(self, network: Network) -> AsyncWeb3:
        if network not in self._web3s:
            raise NetworkUnavailable(f"Unknown network: {network}", network=network)
        web3 = self._web3s[network]
        if web3 is None:
            raise NetworkUnavailable(
                f"Network client for {network} is not initialized", network=network
            )
        return web3

    def contract(self, address: str, abi: list[dict[str, Any]], network: Network):
        web3 = self.web3(network)
        return web3.eth.contract(address=web3.to_checksum_address(address), abi=abi)

    async def read(
        self,
        address: str,
        abi: list[dict[str, Any]],
        fn_name: str,
        args: list[Any] | None = None,
        *,
        network: Network = ROOT,
        block_identifier: str | int = "latest",
    ) -> Any:
        contract = self.contract(address, abi, network)
        fn = getattr(contract.functions, fn_name)
        logger.debug(f"eth_call {fn_name}{tuple(args or [])} on {address} ({network})")
        return await fn(*(args or [])).call(block_identifier=block_identifier)

    async def get_chain_id(self, network: Network) -> int:
        return int(await self.web3(network).eth.chain_id)

    async def get_block_number(self, network: Network) -> int:
        return int(await self.web3(network).eth.block_number)

    async def get_balance(self, address: str, network: Network) -> int:
        web3 = self.web3(network)
        return int(await web3.eth.get_balance(web3.to_checksum_address(address)))

    async def get_transaction(
        self, tx_hash: str, network: Network
    ) -> dict[str, Any] | None:
        try:
            return dict(await self.web3(network).eth.get_transaction(tx_hash))
        except TransactionNotFound:
            return None

    async def get_transaction_receipt(
        self, tx_hash: str, network: Network
    ) -> dict[str, Any] | None:
        try:
            return dict(await self.web3(network).eth.get_transaction_receipt(tx_hash))
        except TransactionNotFound:
            return None

    async def get_block(
        self, block_identifier: str | int, network: Network
    ) -> dict[str, Any] | None:
        try:
            return dict(await self.web3(network).eth.get_block(block_identifier))
        except BlockNotFound:
            return None

    async def call(self, transaction: dict[str, Any], network: Network) -> bytes:
        return bytes(await self.web3(network).eth.call(transaction))

    async def estimate_gas(self, transaction: dict[str, Any], network: Network) -> int:
        return int(await self.web3(network).eth.estimate_gas(transaction))

    async def get_nonce(self, address: str, network: Network) -> int:
        web3 = self.web3(network)
        return int(
            await web3.eth.get_transaction_count(
                web3.to_checksum_address(address), block_identifier="pending"
            )
        )

    async def get_gas_price(self, network: Network) -> int:
        return int(await self.web3(network).eth.gas_price)

    async def get_fee_data(self, network: Network) -> dict[str, int | None]:
        """EIP-1559 fee suggestion plus legacy gas price.

        ``max_fee_per_gas`` is ``2 * baseFee + priority`` and is ``None`` when the
        latest block has no base fee (pre-London or non-1559 chain).
        """
        web3 = self.web3(network)
        gas_price = int(await web3.eth.gas_price)
        block = await web3.eth.get_block("latest")
        base_fee = block.get("baseFeePerGas")
        if base_fee is None:
            return {
                "gas_price": gas_price,
                "max_fee_per_gas": None,
                "max_priority_fee_per_gas": None,
            }
        priority_fee = int(await web3.eth.max_priority_fee)
        return {
            "gas_price": gas_price,
            "max_fee_per_gas": int(base_fee) * 2 + priority_fee,
            "max_priority_fee_per_gas": priority_fee,
        }

    async def broadcast_raw(self, signed_transaction: bytes, network: Network) -> str:
        tx_hash = await self.web3(network).eth.send_raw_transaction(signed_transaction)
        tx_hash = tx_hash.hex() if hasattr(tx_hash, "hex") else str(tx_hash)
        return tx_hash if tx_hash.startswith("0x") else f"0x{tx_hash}"

    async def wait_for_receipt(
        self,
        tx_hash: str,
        network: Network,
        *,
        timeout: float,
        poll_interval: float,
    ) -> dict[str, Any]:
        """Raises ``web3.exceptions.TimeExhausted`` when no receipt arrives in time."""
        receipt = await self.web3(network).eth.wait_for_transaction_receipt(
            tx_hash, timeout=timeout, poll_latency=poll_interval
        )
        return dict(receipt)

    async def close(self) -> None:
        for network, web3 in self._web3s.items():
            if web3 is None:
                continue
            try:
                await web3.provider.disconnect()
            except Exception as exc:  # noqa: BLE001
                logger.warning(f"Failed to disconnect {network} provider: {exc}")
