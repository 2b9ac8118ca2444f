from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from loguru import logger

from polygon_paths.core.clients.NetworkClientPair import NetworkClientPair
from polygon_paths.core.constants import ZERO_ADDRESS
from polygon_paths.core.constants.chains import ROOT
from polygon_paths.core.constants.polygon_abi import CHECKPOINT_MANAGER_ABI
from polygon_paths.core.errors import (
    CheckpointDataUnavailable,
    PolygonPathsError,
    describe_error,
)

from .resolver import ContractResolver
from .types import CheckpointState, HeaderBlock
from .validation import require_block_number

_HEADER_FIELDS = ("root", "start", "end", "createdAt", "proposer")
_END_ALIASES = ("end", "endBlock")


def _hex(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    return str(value)


def parse_header_block(raw: Any) -> HeaderBlock:
    """Normalize a ``headerBlocks`` return into a ``HeaderBlock``.

    Accepts the positional tuple web3 returns for the struct as well as a
    mapping keyed by field name (``end`` or ``endBlock``).
    """
    if raw is None:
        raise CheckpointDataUnavailable("Header block record is empty")

    if isinstance(raw, Mapping):
        fields = dict(raw)
        end = next((fields[k] for k in _END_ALIASES if fields.get(k) is not None), None)
    elif isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
        fields = dict(zip(_HEADER_FIELDS, raw, strict=False))
        end = fields.get("end")
    else:
        raise CheckpointDataUnavailable(
            f"Unexpected header block shape: {type(raw).__name__}"
        )

    if end is None:
        raise CheckpointDataUnavailable(
            "Header block record has no end block", record=str(raw)
        )
    return HeaderBlock(
        root=_hex(fields.get("root", "")),
        start=int(fields.get("start") or 0),
        end=int(end),
        created_at=int(fields.get("createdAt") or 0),
        proposer=str(fields.get("proposer") or ZERO_ADDRESS),
    )


class CheckpointVerifier:
    """Answers whether a child-chain block is covered by a root-chain checkpoint.

    The registry is re-resolved and re-read on every call. Failures always
    propagate as ``CheckpointDataUnavailable``; nothing defaults to "false".
    """

    def __init__(self, clients: NetworkClientPair, resolver: ContractResolver) -> None:
        self.clients = clients
        self.resolver = resolver

    async def get_checkpoint_state(self) -> CheckpointState:
        registry = await self.resolver.resolve_checkpoint_registry()
        try:
            header_index = await self.clients.read(
                registry, CHECKPOINT_MANAGER_ABI, "currentHeaderBlock", network=ROOT
            )
        except PolygonPathsError:
            raise
        except Exception as exc:
            raise CheckpointDataUnavailable(
                f"currentHeaderBlock read failed: {describe_error(exc)}",
                registry=registry,
            ) from exc
        if header_index is None:
            raise CheckpointDataUnavailable(
                "currentHeaderBlock returned nothing", registry=registry
            )

        try:
            raw = await self.clients.read(
                registry,
                CHECKPOINT_MANAGER_ABI,
                "headerBlocks",
                [int(header_index)],
                network=ROOT,
            )
        except PolygonPathsError:
            raise
        except Exception as exc:
            raise CheckpointDataUnavailable(
                f"headerBlocks({header_index}) read failed: {describe_error(exc)}",
                registry=registry,
                header_block_index=int(header_index),
            ) from exc

        header = parse_header_block(raw)
        logger.info(f"Last child block checkpointed on root: {header.end}")
        return CheckpointState(
            last_checkpointed_block=header.end,
            header_block_index=int(header_index),
            registry_address=registry,
        )

    async def last_checkpointed_block(self) -> int:
        return (await self.get_checkpoint_state()).last_checkpointed_block

    async def is_checkpointed(self, block_number: int) -> bool:
        block_number = require_block_number(block_number)
        last = await self.last_checkpointed_block()
        return block_number <= last
