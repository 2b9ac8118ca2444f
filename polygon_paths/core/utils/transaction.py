import asyncio
import math
from typing import Any

from loguru import logger
from web3 import AsyncWeb3
from web3.exceptions import TimeExhausted

from polygon_paths.core.adapters.models import PendingTransaction
from polygon_paths.core.clients.NetworkClientPair import NetworkClientPair
from polygon_paths.core.constants.base import (
    CONFIRMATION_POLL_INTERVAL,
    GAS_BUFFER_MULTIPLIER,
)
from polygon_paths.core.constants.chains import ROOT, Network
from polygon_paths.core.errors import (
    BroadcastFailed,
    PolygonPathsError,
    describe_error,
)
from polygon_paths.core.utils.fees import FeeEstimator
from polygon_paths.core.utils.signer import Signer

_FEE_FIELDS = ("gas", "gasPrice", "maxFeePerGas", "maxPriorityFeePerGas", "nonce")


class TransactionRevertedError(RuntimeError):
    def __init__(
        self,
        txn_hash: str,
        receipt: dict[str, Any] | None = None,
        message: str | None = None,
    ):
        self.txn_hash = txn_hash
        self.receipt = receipt or {}
        super().__init__(message or f"Transaction reverted: {txn_hash}")


class TransactionTimeoutError(TimeoutError):
    def __init__(self, txn_hash: str, timeout: float):
        self.txn_hash = txn_hash
        self.timeout = timeout
        super().__init__(f"Transaction {txn_hash} not confirmed within {timeout}s")


def _raise_revert_error(
    txn_hash: str,
    receipt: dict[str, Any],
    gas_limit: int | None = None,
) -> None:
    gas_used = int(receipt.get("gasUsed") or 0)
    gas_limit = int(gas_limit or 0)

    oogs = bool(gas_used and gas_limit and gas_used >= gas_limit)
    suffix = (
        f" gasUsed={gas_used} gasLimit={gas_limit}"
        + (" (likely out of gas)" if oogs else "")
        if gas_used or gas_limit
        else ""
    )
    raise TransactionRevertedError(
        txn_hash,
        receipt,
        message=f"Transaction reverted (status=0): {txn_hash}{suffix}",
    )


def _normalize_hash(txn_hash: str) -> str:
    if isinstance(txn_hash, str) and not txn_hash.startswith("0x"):
        return f"0x{txn_hash}"
    return txn_hash


class TransactionSender:
    """Build, sign and broadcast transactions for one signer.

    ``send`` returns as soon as the node accepts the raw transaction;
    ``await_confirmation`` is the separate blocking primitive. Nothing here
    retries: a rejected broadcast surfaces as ``BroadcastFailed``.
    """

    def __init__(
        self,
        clients: NetworkClientPair,
        signer: Signer,
        fee_estimator: FeeEstimator,
    ) -> None:
        self.clients = clients
        self.signer = signer
        self.fee_estimator = fee_estimator

    async def encode_call(
        self,
        *,
        target: str,
        abi: list[dict[str, Any]],
        fn_name: str,
        args: list[Any],
        network: Network = ROOT,
        value: int = 0,
    ) -> dict[str, Any]:
        contract = self.clients.contract(target, abi, network)
        try:
            data = contract.encode_abi(fn_name, args)
        except (ValueError, TypeError) as exc:
            raise ValueError(f"Failed to encode {fn_name}: {exc}") from exc

        transaction: dict[str, Any] = {
            "chainId": await self.clients.get_chain_id(network),
            "from": AsyncWeb3.to_checksum_address(self.signer.address),
            "to": AsyncWeb3.to_checksum_address(target),
            "data": data,
        }
        # value is only ever set for native transfers
        if value > 0:
            transaction["value"] = int(value)
        logger.debug(f"Encoded {fn_name}{tuple(args)} for {target} ({network})")
        return transaction

    async def build(
        self,
        transaction: dict[str, Any],
        *,
        network: Network = ROOT,
        gas_multiplier: float = GAS_BUFFER_MULTIPLIER,
    ) -> dict[str, Any]:
        """Estimate gas without fee fields, apply the buffer and attach fees."""
        transaction = {
            k: v for k, v in transaction.items() if k not in _FEE_FIELDS
        }
        try:
            estimate = await self.signer.estimate_gas(dict(transaction), network)
        except PolygonPathsError:
            raise
        except Exception as exc:
            raise BroadcastFailed(
                f"Gas estimation failed: {describe_error(exc)}",
                to=transaction.get("to"),
                network=network,
            ) from exc

        transaction["gas"] = int(math.ceil(estimate * gas_multiplier))
        quote = await self.fee_estimator.get_fee_quote(network)
        transaction.update(quote.as_transaction_fields())
        return transaction

    async def sign_and_broadcast(
        self, transaction: dict[str, Any], *, network: Network = ROOT
    ) -> PendingTransaction:
        transaction = transaction.copy()
        transaction["nonce"] = await self.signer.get_nonce(network)
        signed_transaction = await self.signer.sign_transaction(transaction)

        try:
            txn_hash = await self.clients.broadcast_raw(signed_transaction, network)
        except PolygonPathsError:
            raise
        except Exception as exc:
            raise BroadcastFailed(
                f"Broadcast rejected: {describe_error(exc)}",
                to=transaction.get("to"),
                nonce=transaction["nonce"],
                network=network,
            ) from exc

        txn_hash = _normalize_hash(txn_hash)
        logger.info(
            f"Transaction broadcasted on {network}: {txn_hash} "
            f"(to={transaction.get('to')}, nonce={transaction['nonce']})"
        )
        return PendingTransaction(
            hash=txn_hash,
            from_address=str(transaction["from"]),
            to=transaction.get("to"),
            value=int(transaction.get("value") or 0),
            chain_id=int(transaction["chainId"]),
            nonce=transaction["nonce"],
            data=transaction.get("data"),
        )

    async def send(
        self,
        transaction: dict[str, Any],
        *,
        network: Network = ROOT,
        gas_multiplier: float = GAS_BUFFER_MULTIPLIER,
    ) -> PendingTransaction:
        built = await self.build(
            transaction, network=network, gas_multiplier=gas_multiplier
        )
        return await self.sign_and_broadcast(built, network=network)

    async def await_confirmation(
        self,
        txn_hash: str,
        *,
        timeout: float,
        network: Network = ROOT,
        confirmations: int = 1,
        poll_interval: float = CONFIRMATION_POLL_INTERVAL,
        gas_limit: int | None = None,
    ) -> dict[str, Any]:
        """Block until ``txn_hash`` is mined with ``confirmations`` blocks.

        Raises ``TransactionTimeoutError`` when no receipt arrives within
        ``timeout`` and ``TransactionRevertedError`` for a status-0 receipt.
        """
        txn_hash = _normalize_hash(txn_hash)
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        try:
            receipt = await self.clients.wait_for_receipt(
                txn_hash, network, timeout=timeout, poll_interval=poll_interval
            )
        except TimeExhausted as exc:
            raise TransactionTimeoutError(txn_hash, timeout) from exc

        if receipt.get("status") == 0:
            _raise_revert_error(txn_hash, receipt, gas_limit)

        target_block = int(receipt["blockNumber"]) + confirmations - 1
        while await self.clients.get_block_number(network) < target_block:
            if loop.time() >= deadline:
                raise TransactionTimeoutError(txn_hash, timeout)
            await asyncio.sleep(poll_interval)

        logger.info(f"Transaction confirmed on {network}: {txn_hash}")
        return receipt
