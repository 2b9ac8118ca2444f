"""Typed errors raised by the staking, checkpoint and bridge operations.

Every error carries a human-readable message, a machine-readable ``kind`` and a
``context`` dict (validator id, contract address, amount, tx hash, ...) so the
calling layer can render a specific remediation.
"""

from __future__ import annotations

from typing import Any


class PolygonPathsError(Exception):
    kind: str = "polygon_paths_error"

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context = {k: v for k, v in context.items() if v is not None}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "message": self.message, **self.context}


# --- Configuration -----------------------------------------------------------


class ConfigurationError(PolygonPathsError):
    kind = "configuration"


class NetworkUnavailable(ConfigurationError):
    kind = "network_unavailable"


class SignerUnavailable(ConfigurationError):
    kind = "signer_unavailable"


# --- Resolution --------------------------------------------------------------


class ResolutionError(PolygonPathsError):
    kind = "resolution"


class ValidatorNotFound(ResolutionError):
    kind = "validator_not_found"


class CheckpointRegistryUnavailable(ResolutionError):
    kind = "checkpoint_registry_unavailable"


class InvalidExchangeRate(ResolutionError):
    kind = "invalid_exchange_rate"


# --- Input -------------------------------------------------------------------


class InputError(PolygonPathsError, ValueError):
    kind = "input"


class InvalidAmount(InputError):
    kind = "invalid_amount"


class InvalidAddress(InputError):
    kind = "invalid_address"


class InvalidValidatorId(InputError):
    kind = "invalid_validator_id"


class InvalidBlockNumber(InputError):
    kind = "invalid_block_number"


# --- Funding -----------------------------------------------------------------


class FundingError(PolygonPathsError):
    kind = "funding"


class InsufficientGasFunds(FundingError):
    kind = "insufficient_gas_funds"


# --- Network -----------------------------------------------------------------


class NetworkError(PolygonPathsError):
    kind = "network"


class FeeUnavailable(NetworkError):
    kind = "fee_unavailable"


class BroadcastFailed(NetworkError):
    kind = "broadcast_failed"


# --- Sequencing --------------------------------------------------------------


class SequencingError(PolygonPathsError):
    kind = "sequencing"


class ApprovalTimeout(SequencingError):
    kind = "approval_timeout"


class ApprovalFailed(SequencingError):
    kind = "approval_failed"


class RestakeFailed(SequencingError):
    kind = "restake_failed"


# --- Checkpoint --------------------------------------------------------------


class CheckpointDataUnavailable(PolygonPathsError):
    kind = "checkpoint_data_unavailable"


def describe_error(error: BaseException) -> str:
    """Pull the most useful text out of a web3 / JSON-RPC exception."""
    message = getattr(error, "message", None)
    if not isinstance(message, str) or not message:
        message = None

    # web3 raises ValueError({"code": ..., "message": ...}) for RPC errors
    if message is None and error.args and isinstance(error.args[0], dict):
        payload = error.args[0]
        nested = payload.get("error") if isinstance(payload.get("error"), dict) else {}
        message = payload.get("message") or nested.get("message")
        data = payload.get("data") or nested.get("data")
        if message and isinstance(data, str):
            return f"{message} ({data})"

    if message is None:
        message = str(error) or error.__class__.__name__

    data = getattr(error, "data", None)
    if isinstance(data, str) and data and data not in message:
        return f"{message} ({data})"
    return message
