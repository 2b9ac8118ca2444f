"""Polygon Adapter - PoS staking, checkpoint verification and root-to-child bridging."""

from .adapter import PolygonAdapter
from .types import (
    Allowance,
    CheckpointState,
    CheckpointStatus,
    DelegatorInfo,
    HeaderBlock,
    TransactionDetails,
    ValidatorInfo,
    ValidatorStatus,
)

__all__ = [
    "PolygonAdapter",
    "Allowance",
    "CheckpointState",
    "CheckpointStatus",
    "DelegatorInfo",
    "HeaderBlock",
    "TransactionDetails",
    "ValidatorInfo",
    "ValidatorStatus",
]
