from __future__ import annotations

from eth_utils import to_checksum_address
from loguru import logger
from web3.exceptions import BadFunctionCallOutput, ContractLogicError

from polygon_paths.core.clients.NetworkClientPair import NetworkClientPair
from polygon_paths.core.constants import ZERO_ADDRESS
from polygon_paths.core.constants.chains import ROOT
from polygon_paths.core.constants.polygon_abi import (
    ROOT_CHAIN_MANAGER_ABI,
    STAKE_MANAGER_ABI,
)
from polygon_paths.core.errors import (
    CheckpointRegistryUnavailable,
    ValidatorNotFound,
    describe_error,
)


def _is_zero_address(address: str | None) -> bool:
    return not address or str(address).lower() == ZERO_ADDRESS


class ContractResolver:
    """Resolves per-validator and checkpoint contracts on the root chain.

    Nothing is cached: every operation re-resolves so a migrated contract is
    picked up immediately.
    """

    def __init__(
        self,
        clients: NetworkClientPair,
        *,
        stake_manager: str,
        root_chain_manager: str,
    ) -> None:
        self.clients = clients
        self.stake_manager = stake_manager
        self.root_chain_manager = root_chain_manager

    async def resolve_validator_contract(self, validator_id: int) -> str:
        address = await self.clients.read(
            self.stake_manager,
            STAKE_MANAGER_ABI,
            "getValidatorContract",
            [int(validator_id)],
            network=ROOT,
        )
        if _is_zero_address(address):
            raise ValidatorNotFound(
                f"Validator {validator_id} has no staking contract",
                validator_id=validator_id,
                stake_manager=self.stake_manager,
            )
        address = to_checksum_address(address)
        logger.debug(f"Validator {validator_id} share contract: {address}")
        return address

    async def resolve_checkpoint_registry(self) -> str:
        try:
            address = await self.clients.read(
                self.root_chain_manager,
                ROOT_CHAIN_MANAGER_ABI,
                "checkpointManagerAddress",
                network=ROOT,
            )
        except (ContractLogicError, BadFunctionCallOutput) as exc:
            raise CheckpointRegistryUnavailable(
                f"checkpointManagerAddress call failed: {describe_error(exc)}",
                root_chain_manager=self.root_chain_manager,
            ) from exc
        if _is_zero_address(address):
            raise CheckpointRegistryUnavailable(
                "Root chain manager returned the zero checkpoint manager address",
                root_chain_manager=self.root_chain_manager,
            )
        return to_checksum_address(address)
