from typing import Any

from eth_utils import to_checksum_address
from loguru import logger

from polygon_paths.core.clients.NetworkClientPair import NetworkClientPair
from polygon_paths.core.constants.base import (
    APPROVAL_CONFIRMATION_TIMEOUT,
    APPROVAL_GAS_BUFFER_MULTIPLIER,
    MAX_UINT256,
)
from polygon_paths.core.constants.chains import ROOT, Network
from polygon_paths.core.constants.erc20_abi import ERC20_ABI
from polygon_paths.core.errors import ApprovalFailed, ApprovalTimeout
from polygon_paths.core.utils.transaction import (
    TransactionRevertedError,
    TransactionSender,
    TransactionTimeoutError,
)


async def get_token_balance(
    clients: NetworkClientPair,
    token_address: str,
    wallet_address: str,
    *,
    network: Network = ROOT,
) -> int:
    balance = await clients.read(
        token_address,
        ERC20_ABI,
        "balanceOf",
        [to_checksum_address(wallet_address)],
        network=network,
    )
    return int(balance)


async def get_token_allowance(
    clients: NetworkClientPair,
    token_address: str,
    owner_address: str,
    spender_address: str,
    *,
    network: Network = ROOT,
) -> int:
    allowance = await clients.read(
        token_address,
        ERC20_ABI,
        "allowance",
        [
            to_checksum_address(owner_address),
            to_checksum_address(spender_address),
        ],
        network=network,
        block_identifier="pending",
    )
    return int(allowance)


async def build_approve_transaction(
    sender: TransactionSender,
    token_address: str,
    spender_address: str,
    amount: int,
    *,
    network: Network = ROOT,
) -> dict[str, Any]:
    return await sender.encode_call(
        target=token_address,
        abi=ERC20_ABI,
        fn_name="approve",
        args=[
            to_checksum_address(spender_address),
            int(amount),
        ],
        network=network,
    )


async def _send_approval(
    sender: TransactionSender,
    token_address: str,
    spender: str,
    amount: int,
    *,
    network: Network,
    timeout: float,
) -> str:
    approve_tx = await build_approve_transaction(
        sender, token_address, spender, amount, network=network
    )
    pending = await sender.send(
        approve_tx, network=network, gas_multiplier=APPROVAL_GAS_BUFFER_MULTIPLIER
    )
    context = {"token": token_address, "spender": spender, "tx_hash": pending.hash}
    try:
        await sender.await_confirmation(pending.hash, timeout=timeout, network=network)
    except TransactionTimeoutError as exc:
        logger.error(f"Approval {pending.hash} not confirmed within {timeout}s")
        raise ApprovalTimeout(
            f"Approval transaction {pending.hash} was not confirmed within "
            f"{timeout}s",
            **context,
        ) from exc
    except TransactionRevertedError as exc:
        logger.error(f"Approval {pending.hash} reverted")
        raise ApprovalFailed(
            f"Approval transaction {pending.hash} failed on-chain", **context
        ) from exc
    return pending.hash


async def ensure_allowance(
    sender: TransactionSender,
    *,
    token_address: str,
    spender: str,
    amount: int,
    network: Network = ROOT,
    approval_amount: int = MAX_UINT256,
    timeout: float = APPROVAL_CONFIRMATION_TIMEOUT,
) -> str | None:
    """Make sure ``spender`` may pull ``amount`` of ``token_address`` from the signer.

    Returns ``None`` when the current allowance already covers ``amount``.
    Otherwise a nonzero-but-short allowance is first reset to zero, then
    ``approval_amount`` is approved; each approval is confirmed before the
    next step and the final approval hash is returned.
    """
    owner = sender.signer.address
    allowance = await get_token_allowance(
        sender.clients, token_address, owner, spender, network=network
    )
    if allowance >= amount:
        logger.info(
            f"Allowance {allowance} for {spender} covers {amount}, skipping approval"
        )
        return None

    if allowance > 0:
        logger.info(f"Resetting allowance {allowance} for {spender} to zero")
        await _send_approval(
            sender, token_address, spender, 0, network=network, timeout=timeout
        )

    return await _send_approval(
        sender,
        token_address,
        spender,
        approval_amount,
        network=network,
        timeout=timeout,
    )
