"""Types for PolygonAdapter (dataclasses)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any

from polygon_paths.core.constants import ZERO_ADDRESS


class ValidatorStatus(IntEnum):
    INACTIVE = 0
    ACTIVE = 1
    UNBONDING = 2
    JAILED = 3

    @classmethod
    def from_raw(cls, value: Any) -> ValidatorStatus:
        """Map the StakeManager status (Inactive, Active, Locked, Unstaked)."""
        try:
            raw = int(value)
        except (TypeError, ValueError):
            return cls.INACTIVE
        return _STAKE_MANAGER_STATUS.get(raw, cls.INACTIVE)


_STAKE_MANAGER_STATUS = {
    0: ValidatorStatus.INACTIVE,
    1: ValidatorStatus.ACTIVE,
    # Locked: the validator was slashed or jailed
    2: ValidatorStatus.JAILED,
    # Unstaked: exit requested, stake is unbonding
    3: ValidatorStatus.UNBONDING,
}


@dataclass(frozen=True)
class ValidatorInfo:
    """Point-in-time snapshot of one validator, never cached."""

    validator_id: int
    status: ValidatorStatus
    total_stake: int
    commission_rate: float
    signer_address: str
    contract_address: str
    # Epoch markers are best-effort and stay 0 when unreadable.
    activation_epoch: int = 0
    deactivation_epoch: int = 0
    jail_end_epoch: int = 0
    last_reward_update_epoch: int = 0


@dataclass(frozen=True)
class DelegatorInfo:
    validator_id: int
    delegator_address: str
    delegated_amount: int
    pending_rewards: int


@dataclass(frozen=True)
class HeaderBlock:
    """One checkpoint record from the root-chain checkpoint registry."""

    root: str
    start: int
    end: int
    created_at: int
    proposer: str = ZERO_ADDRESS


@dataclass(frozen=True)
class CheckpointState:
    last_checkpointed_block: int
    header_block_index: int | None = None
    registry_address: str | None = None


@dataclass(frozen=True)
class CheckpointStatus:
    block_number: int
    is_checkpointed: bool
    last_checkpointed_block: int
    current_child_block: int | None = None


@dataclass(frozen=True)
class Allowance:
    owner: str
    spender: str
    amount: int


@dataclass(frozen=True)
class TransactionDetails:
    transaction: dict[str, Any] | None
    receipt: dict[str, Any] | None

    @property
    def is_pending(self) -> bool:
        return self.transaction is not None and self.receipt is None

    @property
    def succeeded(self) -> bool | None:
        if self.receipt is None:
            return None
        return int(self.receipt.get("status", 0)) == 1
