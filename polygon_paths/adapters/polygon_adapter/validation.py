from __future__ import annotations

from typing import Any

from eth_utils import is_address, to_checksum_address

from polygon_paths.core.constants import MAX_UINT256, ZERO_ADDRESS
from polygon_paths.core.errors import (
    InvalidAddress,
    InvalidAmount,
    InvalidBlockNumber,
    InvalidValidatorId,
)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def require_amount(amount: Any, field: str = "amount") -> int:
    """A uint256 amount strictly above zero; floats are rejected, not truncated."""
    if not _is_int(amount) or not 0 < amount <= MAX_UINT256:
        raise InvalidAmount(
            f"{field} must be an integer in (0, 2**256 - 1]", **{field: amount}
        )
    return amount


def require_validator_id(validator_id: Any) -> int:
    if not _is_int(validator_id) or validator_id <= 0:
        raise InvalidValidatorId(
            "validator_id must be a positive integer", validator_id=validator_id
        )
    return validator_id


def require_block_number(block_number: Any) -> int:
    if not _is_int(block_number) or block_number < 0:
        raise InvalidBlockNumber(
            "block_number must be a non-negative integer", block_number=block_number
        )
    return block_number


def validate_address(value: str | None, field: str) -> str:
    if not value or not is_address(value) or str(value).lower() == ZERO_ADDRESS:
        raise InvalidAddress(f"{field} is not a valid address: {value!r}", field=field)
    return to_checksum_address(value)
