from __future__ import annotations

from typing import Any

from eth_utils import to_checksum_address
from web3.exceptions import ContractLogicError

from polygon_paths.core.adapters.BaseAdapter import BaseAdapter
from polygon_paths.core.adapters.models import FeeQuote, GasPriceEstimates
from polygon_paths.core.clients.GasOracleClient import GasOracleClient
from polygon_paths.core.clients.NetworkClientPair import NetworkClientPair
from polygon_paths.core.config import get_polygon_contracts
from polygon_paths.core.constants import ZERO_ADDRESS
from polygon_paths.core.constants.base import (
    GAS_FUNDS_SAFETY_MARGIN_WEI,
    RESTAKE_CONFIRMATION_TIMEOUT,
)
from polygon_paths.core.constants.chains import CHILD, ROOT
from polygon_paths.core.constants.polygon_abi import (
    STAKE_MANAGER_ABI,
    VALIDATOR_SHARE_ABI,
)
from polygon_paths.core.errors import (
    ConfigurationError,
    InsufficientGasFunds,
    RestakeFailed,
    ValidatorNotFound,
)
from polygon_paths.core.utils.fees import FeeEstimator
from polygon_paths.core.utils.signer import LocalSigner, Signer
from polygon_paths.core.utils.tokens import (
    ensure_allowance,
    get_token_allowance,
    get_token_balance,
)
from polygon_paths.core.utils.transaction import (
    TransactionRevertedError,
    TransactionSender,
    TransactionTimeoutError,
)
from polygon_paths.core.utils.units import format_units

from .bridge import bridge_deposit
from .checkpoint import CheckpointVerifier
from .resolver import ContractResolver
from .shares import matic_to_shares, max_shares_to_burn
from .types import (
    Allowance,
    CheckpointState,
    CheckpointStatus,
    DelegatorInfo,
    TransactionDetails,
    ValidatorInfo,
    ValidatorStatus,
)
from .validation import (
    require_amount,
    require_block_number,
    require_validator_id,
    validate_address,
)

_REQUIRED_CONTRACTS = ("stake_manager", "root_chain_manager", "staking_token")


class PolygonAdapter(BaseAdapter):
    """Polygon PoS staking, checkpoint and bridge operations.

    Staking and bridging happen on the root chain (Ethereum); the child chain
    (Polygon PoS) is only read. Every public operation either returns its
    result or raises a ``PolygonPathsError`` subclass.
    """

    adapter_type = "POLYGON"

    def __init__(
        self,
        clients: NetworkClientPair,
        signer: Signer,
        fee_estimator: FeeEstimator,
        *,
        contracts: dict[str, str],
        config: dict[str, Any] | None = None,
    ) -> None:
        super().__init__("polygon_adapter", config or {})
        missing = [k for k in _REQUIRED_CONTRACTS if not contracts.get(k)]
        if missing:
            raise ConfigurationError(
                f"Missing Polygon contract address(es): {', '.join(missing)}",
                contracts=missing,
            )
        self.clients = clients
        self.signer = signer
        self.fee_estimator = fee_estimator
        self.contracts = {k: to_checksum_address(v) for k, v in contracts.items()}
        self.sender = TransactionSender(clients, signer, fee_estimator)
        self.resolver = ContractResolver(
            clients,
            stake_manager=self.contracts["stake_manager"],
            root_chain_manager=self.contracts["root_chain_manager"],
        )
        self.checkpoints = CheckpointVerifier(clients, self.resolver)

    @classmethod
    def from_config(cls, config: dict[str, Any] | None = None) -> PolygonAdapter:
        clients = NetworkClientPair.from_config()
        signer = LocalSigner.from_config(clients)
        fee_estimator = FeeEstimator(clients, GasOracleClient())
        return cls(
            clients,
            signer,
            fee_estimator,
            contracts=get_polygon_contracts(),
            config=config,
        )

    @property
    def wallet_address(self) -> str:
        return self.signer.address

    # --- Reads -------------------------------------------------------------

    async def _read_stake_manager(self, fn_name: str, *args: Any) -> Any:
        return await self.clients.read(
            self.contracts["stake_manager"],
            STAKE_MANAGER_ABI,
            fn_name,
            list(args),
            network=ROOT,
        )

    async def _read_validator_share(
        self, validator_contract: str, fn_name: str, *args: Any
    ) -> Any:
        return await self.clients.read(
            validator_contract, VALIDATOR_SHARE_ABI, fn_name, list(args), network=ROOT
        )

    async def _validator_struct(self, validator_id: int) -> dict[str, Any] | None:
        fields = (
            "amount",
            "reward",
            "activationEpoch",
            "deactivationEpoch",
            "jailTime",
            "signer",
            "contractAddress",
            "status",
            "commissionRate",
        )
        try:
            raw = await self._read_stake_manager("validators", validator_id)
        except Exception as exc:  # noqa: BLE001 - enrichment only
            self.logger.debug(f"validators({validator_id}) unavailable: {exc}")
            return None
        return dict(zip(fields, raw, strict=False))

    async def get_validator_info(self, validator_id: int) -> ValidatorInfo | None:
        """Snapshot of a validator, or ``None`` if it does not exist."""
        validator_id = require_validator_id(validator_id)
        try:
            own_stake = int(
                await self._read_stake_manager("validatorStake", validator_id)
            )
            contract = await self.resolver.resolve_validator_contract(validator_id)
        except (ContractLogicError, ValidatorNotFound) as exc:
            self.logger.warning(f"Validator {validator_id} not found: {exc}")
            return None

        delegated = 0
        try:
            delegated = int(
                await self._read_stake_manager("delegatedAmount", validator_id)
            )
        except ContractLogicError as exc:
            self.logger.warning(
                f"Could not read delegated amount for validator {validator_id}: {exc}"
            )
        total_stake = own_stake + delegated

        struct = await self._validator_struct(validator_id)
        if struct is not None:
            return ValidatorInfo(
                validator_id=validator_id,
                status=ValidatorStatus.from_raw(struct.get("status")),
                total_stake=total_stake,
                commission_rate=int(struct.get("commissionRate") or 0) / 100,
                signer_address=str(struct.get("signer") or ZERO_ADDRESS),
                contract_address=contract,
                activation_epoch=int(struct.get("activationEpoch") or 0),
                deactivation_epoch=int(struct.get("deactivationEpoch") or 0),
                jail_end_epoch=int(struct.get("jailTime") or 0),
            )

        signer_address = ZERO_ADDRESS
        try:
            signer_address = str(await self._read_validator_share(contract, "owner"))
        except Exception as exc:  # noqa: BLE001 - enrichment only
            self.logger.debug(
                f"owner() unavailable for validator {validator_id}: {exc}"
            )
        status = ValidatorStatus.ACTIVE if total_stake > 0 else ValidatorStatus.INACTIVE
        return ValidatorInfo(
            validator_id=validator_id,
            status=status,
            total_stake=total_stake,
            commission_rate=0.0,
            signer_address=signer_address,
            contract_address=contract,
        )

    async def get_delegator_info(
        self, validator_id: int, delegator_address: str | None = None
    ) -> DelegatorInfo | None:
        """Stake and pending rewards of ``delegator_address`` (default: signer).

        ``None`` means the validator-share reads reverted; a delegator with no
        stake gets a zero record.
        """
        validator_id = require_validator_id(validator_id)
        delegator = (
            validate_address(delegator_address, "delegator_address")
            if delegator_address is not None
            else to_checksum_address(self.wallet_address)
        )
        contract = await self.resolver.resolve_validator_contract(validator_id)
        try:
            total_stake = await self._read_validator_share(
                contract, "getTotalStake", delegator
            )
            rewards = await self._read_validator_share(
                contract, "getLiquidRewards", delegator
            )
        except ContractLogicError as exc:
            self.logger.info(
                f"No delegation from {delegator} to validator {validator_id}: {exc}"
            )
            return None

        # getTotalStake returns (amount, exchangeRate)
        if isinstance(total_stake, (list, tuple)):
            total_stake = total_stake[0]
        return DelegatorInfo(
            validator_id=validator_id,
            delegator_address=delegator,
            delegated_amount=int(total_stake),
            pending_rewards=int(rewards),
        )

    async def matic_to_shares(self, validator_id: int, amount: int) -> int:
        validator_id = require_validator_id(validator_id)
        amount = require_amount(amount)
        contract = await self.resolver.resolve_validator_contract(validator_id)
        return await matic_to_shares(self.clients, contract, validator_id, amount)

    async def get_allowance(
        self, token_address: str, spender: str, owner: str | None = None
    ) -> Allowance:
        token = validate_address(token_address, "token_address")
        spender = validate_address(spender, "spender")
        owner = validate_address(owner or self.wallet_address, "owner")
        amount = await get_token_allowance(self.clients, token, owner, spender)
        return Allowance(owner=owner, spender=spender, amount=amount)

    # --- Staking writes ----------------------------------------------------

    async def delegate(self, validator_id: int, amount: int) -> str:
        """Buy validator shares with ``amount`` of the staking token."""
        validator_id = require_validator_id(validator_id)
        amount = require_amount(amount)

        contract = await self.resolver.resolve_validator_contract(validator_id)
        self.logger.info(
            f"Delegating {format_units(amount)} to validator {validator_id} "
            f"({contract})"
        )
        await ensure_allowance(
            self.sender,
            token_address=self.contracts["staking_token"],
            spender=contract,
            amount=amount,
        )

        tx = await self.sender.encode_call(
            target=contract,
            abi=VALIDATOR_SHARE_ABI,
            fn_name="buyVoucher",
            args=[amount, 0],
        )
        built = await self.sender.build(tx)
        await self._check_gas_funds(built, validator_id=validator_id)
        pending = await self.sender.sign_and_broadcast(built)
        return pending.hash

    async def _check_gas_funds(self, built: dict[str, Any], **context: Any) -> None:
        balance = await self.clients.get_balance(self.wallet_address, ROOT)
        required = int(built["gas"]) * int(built["maxFeePerGas"])
        required += GAS_FUNDS_SAFETY_MARGIN_WEI
        if balance < required:
            raise InsufficientGasFunds(
                f"Insufficient native balance for gas: have {format_units(balance)}, "
                f"need about {format_units(required)}",
                balance=balance,
                required=required,
                **context,
            )

    async def undelegate(self, validator_id: int, shares_amount: int) -> str:
        validator_id = require_validator_id(validator_id)
        shares_amount = require_amount(shares_amount, "shares_amount")

        contract = await self.resolver.resolve_validator_contract(validator_id)
        max_burn = max_shares_to_burn(shares_amount)
        self.logger.info(
            f"Undelegating {shares_amount} shares from validator {validator_id} "
            f"(max burn {max_burn})"
        )
        tx = await self.sender.encode_call(
            target=contract,
            abi=VALIDATOR_SHARE_ABI,
            fn_name="sellVoucher",
            args=[shares_amount, max_burn],
        )
        pending = await self.sender.send(tx)
        return pending.hash

    async def withdraw_rewards(self, validator_id: int) -> str:
        validator_id = require_validator_id(validator_id)
        contract = await self.resolver.resolve_validator_contract(validator_id)
        tx = await self.sender.encode_call(
            target=contract,
            abi=VALIDATOR_SHARE_ABI,
            fn_name="withdrawRewards",
            args=[],
        )
        pending = await self.sender.send(tx)
        return pending.hash

    async def restake_rewards(self, validator_id: int) -> str | None:
        """Withdraw pending rewards and delegate exactly that amount again.

        Returns the delegate transaction hash, or ``None`` when there is
        nothing to restake.
        """
        validator_id = require_validator_id(validator_id)
        delegation = await self.get_delegator_info(validator_id)
        rewards = delegation.pending_rewards if delegation is not None else 0
        if rewards <= 0:
            self.logger.info(f"No rewards to restake for validator {validator_id}")
            return None

        withdraw_hash = await self.withdraw_rewards(validator_id)
        try:
            await self.sender.await_confirmation(
                withdraw_hash, timeout=RESTAKE_CONFIRMATION_TIMEOUT
            )
        except (TransactionTimeoutError, TransactionRevertedError) as exc:
            self.logger.error(f"Reward withdrawal {withdraw_hash} did not confirm")
            raise RestakeFailed(
                f"Reward withdrawal {withdraw_hash} did not confirm: {exc}",
                validator_id=validator_id,
                tx_hash=withdraw_hash,
            ) from exc

        return await self.delegate(validator_id, rewards)

    # --- Checkpoints -------------------------------------------------------

    async def last_checkpointed_block(self) -> int:
        return await self.checkpoints.last_checkpointed_block()

    async def is_checkpointed(self, block_number: int) -> bool:
        return await self.checkpoints.is_checkpointed(block_number)

    async def get_checkpoint_state(self) -> CheckpointState:
        return await self.checkpoints.get_checkpoint_state()

    async def get_checkpoint_status(self, block_number: int) -> CheckpointStatus:
        block_number = require_block_number(block_number)
        last = await self.checkpoints.last_checkpointed_block()
        current = await self.clients.get_block_number(CHILD)
        return CheckpointStatus(
            block_number=block_number,
            is_checkpointed=block_number <= last,
            last_checkpointed_block=last,
            current_child_block=current,
        )

    # --- Bridge ------------------------------------------------------------

    async def bridge_deposit(
        self, token_address: str, amount: int, recipient: str | None = None
    ) -> str:
        return await bridge_deposit(
            self.sender,
            root_chain_manager=self.contracts["root_chain_manager"],
            token_address=token_address,
            amount=amount,
            recipient=recipient,
        )

    # --- Fees --------------------------------------------------------------

    async def get_root_fee_quote(self) -> FeeQuote:
        return await self.fee_estimator.get_root_fee_quote()

    async def get_gas_price_estimates(self) -> GasPriceEstimates:
        return await self.fee_estimator.get_gas_price_estimates()

    # --- Child chain -------------------------------------------------------

    async def get_current_block_number(self) -> int:
        return await self.clients.get_block_number(CHILD)

    async def get_block_details(
        self, block_identifier: str | int
    ) -> dict[str, Any] | None:
        return await self.clients.get_block(block_identifier, CHILD)

    async def get_transaction_details(self, tx_hash: str) -> TransactionDetails | None:
        transaction = await self.clients.get_transaction(tx_hash, CHILD)
        receipt = await self.clients.get_transaction_receipt(tx_hash, CHILD)
        if transaction is None and receipt is None:
            return None
        return TransactionDetails(transaction=transaction, receipt=receipt)

    async def get_native_balance(self, address: str) -> int:
        address = validate_address(address, "address")
        return await self.clients.get_balance(address, CHILD)

    async def get_erc20_balance(self, token_address: str, address: str) -> int:
        token = validate_address(token_address, "token_address")
        address = validate_address(address, "address")
        return await get_token_balance(self.clients, token, address, network=CHILD)

    # --- Lifecycle ---------------------------------------------------------

    async def check_connection(self) -> dict[str, int]:
        epoch = int(await self._read_stake_manager("epoch"))
        root_block = await self.clients.get_block_number(ROOT)
        child_block = await self.clients.get_block_number(CHILD)
        self.logger.info(
            f"Connected: epoch={epoch} root_block={root_block} "
            f"child_block={child_block}"
        )
        return {"epoch": epoch, "root_block": root_block, "child_block": child_block}

    async def close(self) -> None:
        await self.clients.close()
        if self.fee_estimator.gas_oracle is not None:
            await self.fee_estimator.gas_oracle.close()
