from __future__ import annotations

from eth_utils import to_checksum_address
from loguru import logger

from polygon_paths.core.constants.chains import ROOT
from polygon_paths.core.constants.polygon_abi import ROOT_CHAIN_MANAGER_ABI
from polygon_paths.core.utils.tokens import ensure_allowance
from polygon_paths.core.utils.transaction import TransactionSender
from polygon_paths.core.utils.units import format_units

from .validation import require_amount, validate_address


def encode_deposit_data(amount: int) -> str:
    """32-byte big-endian, left-zero-padded hex encoding of ``amount``."""
    return "0x" + int(amount).to_bytes(32, "big").hex()


async def bridge_deposit(
    sender: TransactionSender,
    *,
    root_chain_manager: str,
    token_address: str,
    amount: int,
    recipient: str | None = None,
) -> str:
    """Approve the root chain manager and call ``depositFor`` on the root chain.

    Returns the deposit transaction hash. The recipient on the child chain
    defaults to the signer.
    """
    token = validate_address(token_address, "token_address")
    if recipient is not None:
        recipient = validate_address(recipient, "recipient")
    amount = require_amount(amount)
    user = recipient or to_checksum_address(sender.signer.address)

    logger.info(
        f"Bridging {format_units(amount)} units of {token} to {user} on the child chain"
    )
    await ensure_allowance(
        sender,
        token_address=token,
        spender=root_chain_manager,
        amount=amount,
        network=ROOT,
    )

    deposit_data = encode_deposit_data(amount)
    tx = await sender.encode_call(
        target=root_chain_manager,
        abi=ROOT_CHAIN_MANAGER_ABI,
        fn_name="depositFor",
        args=[user, token, bytes.fromhex(deposit_data[2:])],
        network=ROOT,
    )
    pending = await sender.send(tx, network=ROOT)
    return pending.hash
