from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from web3.exceptions import ContractLogicError

from polygon_paths.adapters.polygon_adapter.adapter import PolygonAdapter
from polygon_paths.adapters.polygon_adapter.types import (
    CheckpointStatus,
    TransactionDetails,
    ValidatorStatus,
)
from polygon_paths.core.adapters.models import PendingTransaction
from polygon_paths.core.constants import ZERO_ADDRESS
from polygon_paths.core.constants.polygon_contracts import POLYGON_BY_ROOT_CHAIN
from polygon_paths.core.errors import (
    ConfigurationError,
    InsufficientGasFunds,
    InvalidAmount,
    InvalidBlockNumber,
    InvalidExchangeRate,
    InvalidValidatorId,
    RestakeFailed,
)
from polygon_paths.core.utils.transaction import (
    TransactionRevertedError,
    TransactionTimeoutError,
)

WALLET = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
VALIDATOR_CONTRACT = "0xfB6916095ca1df60bB79Ce92cE3Ea74c37c5d359"
CONTRACTS = POLYGON_BY_ROOT_CHAIN[1]


def _fake_read(responses: dict):
    async def _read(address, abi, fn_name, args=None, **kwargs):
        value = responses[fn_name]
        if isinstance(value, Exception):
            raise value
        return value

    return AsyncMock(side_effect=_read)


@pytest.fixture
def clients():
    clients = MagicMock()
    clients.read = _fake_read({"getValidatorContract": VALIDATOR_CONTRACT})
    clients.get_balance = AsyncMock(return_value=10**18)
    clients.get_block_number = AsyncMock(return_value=2_000)
    return clients


@pytest.fixture
def signer():
    signer = MagicMock()
    signer.address = WALLET
    return signer


@pytest.fixture
def adapter(clients, signer):
    return PolygonAdapter(clients, signer, MagicMock(), contracts=dict(CONTRACTS))


def _pending(tx_hash: str) -> PendingTransaction:
    return PendingTransaction(hash=tx_hash, from_address=WALLET, chain_id=1)


def test_adapter_type(adapter):
    assert adapter.adapter_type == "POLYGON"


def test_missing_contract_address_is_configuration_error(clients, signer):
    contracts = dict(CONTRACTS)
    contracts.pop("staking_token")
    with pytest.raises(ConfigurationError, match="staking_token"):
        PolygonAdapter(clients, signer, MagicMock(), contracts=contracts)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method,args,error",
    [
        ("delegate", (12, 0), InvalidAmount),
        ("delegate", (12, -5), InvalidAmount),
        ("delegate", (12, 1.5), InvalidAmount),
        ("delegate", (12, 2**256), InvalidAmount),
        ("delegate", (12, True), InvalidAmount),
        ("undelegate", (12, 2**256), InvalidAmount),
        ("bridge_deposit", (CONTRACTS["staking_token"], 2**256), InvalidAmount),
        ("get_checkpoint_status", (-1,), InvalidBlockNumber),
        ("is_checkpointed", ("x",), InvalidBlockNumber),
        ("delegate", (0, 10), InvalidValidatorId),
        ("undelegate", (12, 0), InvalidAmount),
        ("withdraw_rewards", (-1,), InvalidValidatorId),
        ("restake_rewards", (0,), InvalidValidatorId),
        ("matic_to_shares", (12, 0), InvalidAmount),
    ],
)
async def test_invalid_input_makes_no_network_calls(
    adapter, clients, signer, method, args, error
):
    with pytest.raises(error):
        await getattr(adapter, method)(*args)
    assert clients.method_calls == []
    assert signer.method_calls == []


class TestDelegate:
    @pytest.fixture
    def wired(self, adapter):
        adapter.sender.encode_call = AsyncMock(return_value={"to": VALIDATOR_CONTRACT})
        adapter.sender.build = AsyncMock(
            return_value={
                "to": VALIDATOR_CONTRACT,
                "gas": 120_000,
                "maxFeePerGas": 22 * 10**9,
            }
        )
        adapter.sender.sign_and_broadcast = AsyncMock(return_value=_pending("0xd1"))
        return adapter

    @pytest.mark.asyncio
    async def test_delegate_approves_then_buys_voucher(self, wired):
        with patch(
            "polygon_paths.adapters.polygon_adapter.adapter.ensure_allowance",
            new_callable=AsyncMock,
            return_value=None,
        ) as mock_allowance:
            tx_hash = await wired.delegate(12, 5 * 10**18)

        assert tx_hash == "0xd1"
        mock_allowance.assert_awaited_once()
        kwargs = mock_allowance.await_args.kwargs
        assert kwargs["token_address"] == CONTRACTS["staking_token"]
        assert kwargs["spender"] == VALIDATOR_CONTRACT
        assert kwargs["amount"] == 5 * 10**18

        encode_kwargs = wired.sender.encode_call.await_args.kwargs
        assert encode_kwargs["fn_name"] == "buyVoucher"
        assert encode_kwargs["args"] == [5 * 10**18, 0]
        assert "value" not in encode_kwargs

    @pytest.mark.asyncio
    async def test_low_balance_fails_before_broadcast(self, wired, clients):
        # 120_000 * 22 gwei + 0.002 = 0.00464 native
        clients.get_balance.return_value = 4 * 10**15
        with patch(
            "polygon_paths.adapters.polygon_adapter.adapter.ensure_allowance",
            new_callable=AsyncMock,
        ):
            with pytest.raises(InsufficientGasFunds) as exc_info:
                await wired.delegate(12, 10**18)

        assert exc_info.value.context["required"] == 4_640_000_000_000_000
        assert exc_info.value.context["validator_id"] == 12
        wired.sender.sign_and_broadcast.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_exact_balance_is_enough(self, wired, clients):
        clients.get_balance.return_value = 4_640_000_000_000_000
        with patch(
            "polygon_paths.adapters.polygon_adapter.adapter.ensure_allowance",
            new_callable=AsyncMock,
        ):
            assert await wired.delegate(12, 10**18) == "0xd1"


@pytest.mark.asyncio
async def test_undelegate_adds_slippage_buffer(adapter):
    adapter.sender.encode_call = AsyncMock(return_value={})
    adapter.sender.send = AsyncMock(return_value=_pending("0xu1"))

    assert await adapter.undelegate(12, 1_000_000) == "0xu1"
    kwargs = adapter.sender.encode_call.await_args.kwargs
    assert kwargs["fn_name"] == "sellVoucher"
    assert kwargs["args"] == [1_000_000, 1_001_001]


@pytest.mark.asyncio
async def test_withdraw_rewards(adapter):
    adapter.sender.encode_call = AsyncMock(return_value={})
    adapter.sender.send = AsyncMock(return_value=_pending("0xw1"))

    assert await adapter.withdraw_rewards(12) == "0xw1"
    kwargs = adapter.sender.encode_call.await_args.kwargs
    assert kwargs["fn_name"] == "withdrawRewards"
    assert kwargs["target"] == VALIDATOR_CONTRACT


class TestRestake:
    @pytest.mark.asyncio
    async def test_zero_rewards_is_noop(self, adapter, clients):
        clients.read = _fake_read(
            {
                "getValidatorContract": VALIDATOR_CONTRACT,
                "getTotalStake": (10**18, 10**29),
                "getLiquidRewards": 0,
            }
        )
        adapter.sender.send = AsyncMock()

        assert await adapter.restake_rewards(12) is None
        adapter.sender.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_withdraw_confirmed_then_delegates_pending_amount(
        self, adapter, clients
    ):
        clients.read = _fake_read(
            {
                "getValidatorContract": VALIDATOR_CONTRACT,
                "getTotalStake": (10**18, 10**29),
                "getLiquidRewards": 7 * 10**17,
            }
        )
        order: list[str] = []

        async def _withdraw(validator_id):
            order.append("withdraw")
            return "0xw1"

        async def _confirm(tx_hash, **kwargs):
            order.append(f"confirm:{tx_hash}:{kwargs['timeout']}")
            return {"status": 1}

        async def _delegate(validator_id, amount):
            order.append(f"delegate:{amount}")
            return "0xd1"

        adapter.sender.await_confirmation = AsyncMock(side_effect=_confirm)
        with (
            patch.object(adapter, "withdraw_rewards", side_effect=_withdraw),
            patch.object(adapter, "delegate", side_effect=_delegate),
        ):
            result = await adapter.restake_rewards(12)

        assert result == "0xd1"
        assert order == ["withdraw", "confirm:0xw1:120", f"delegate:{7 * 10**17}"]

    @pytest.mark.asyncio
    async def test_unconfirmed_withdraw_fails(self, adapter, clients):
        clients.read = _fake_read(
            {
                "getValidatorContract": VALIDATOR_CONTRACT,
                "getTotalStake": (10**18, 10**29),
                "getLiquidRewards": 5,
            }
        )
        adapter.sender.await_confirmation = AsyncMock(
            side_effect=TransactionTimeoutError("0xw1", 120)
        )
        with (
            patch.object(adapter, "withdraw_rewards", AsyncMock(return_value="0xw1")),
            patch.object(adapter, "delegate", AsyncMock()) as mock_delegate,
        ):
            with pytest.raises(RestakeFailed) as exc_info:
                await adapter.restake_rewards(12)

        assert exc_info.value.context["tx_hash"] == "0xw1"
        mock_delegate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_reverted_withdraw_fails(self, adapter, clients):
        clients.read = _fake_read(
            {
                "getValidatorContract": VALIDATOR_CONTRACT,
                "getTotalStake": (10**18, 10**29),
                "getLiquidRewards": 5,
            }
        )
        adapter.sender.await_confirmation = AsyncMock(
            side_effect=TransactionRevertedError("0xw1")
        )
        with (
            patch.object(adapter, "withdraw_rewards", AsyncMock(return_value="0xw1")),
            patch.object(adapter, "delegate", AsyncMock()) as mock_delegate,
        ):
            with pytest.raises(RestakeFailed) as exc_info:
                await adapter.restake_rewards(12)

        assert isinstance(exc_info.value.__cause__, TransactionRevertedError)
        assert exc_info.value.context["validator_id"] == 12
        mock_delegate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_never_delegated_is_noop(self, adapter, clients):
        reverted = ContractLogicError("execution reverted")
        clients.read = _fake_read(
            {
                "getValidatorContract": VALIDATOR_CONTRACT,
                "getTotalStake": reverted,
                "getLiquidRewards": reverted,
            }
        )
        adapter.sender.send = AsyncMock()

        assert await adapter.restake_rewards(12) is None
        adapter.sender.send.assert_not_awaited()


class TestMaticToShares:
    @pytest.mark.asyncio
    async def test_foundation_validator_precision(self, adapter, clients):
        clients.read = _fake_read(
            {"getValidatorContract": VALIDATOR_CONTRACT, "exchangeRate": 100}
        )
        assert await adapter.matic_to_shares(7, 5 * 10**18) == 5 * 10**18

    @pytest.mark.asyncio
    async def test_regular_validator_precision(self, adapter, clients):
        clients.read = _fake_read(
            {"getValidatorContract": VALIDATOR_CONTRACT, "exchangeRate": 2 * 10**27}
        )
        assert await adapter.matic_to_shares(50, 10 * 10**18) == 5 * 10**20

    @pytest.mark.asyncio
    async def test_zero_rate_rejected(self, adapter, clients):
        clients.read = _fake_read(
            {"getValidatorContract": VALIDATOR_CONTRACT, "exchangeRate": 0}
        )
        with pytest.raises(InvalidExchangeRate):
            await adapter.matic_to_shares(50, 10)


class TestValidatorInfo:
    @pytest.mark.asyncio
    async def test_full_snapshot(self, adapter, clients):
        struct = (
            100,
            0,
            10,
            0,
            0,
            WALLET,
            VALIDATOR_CONTRACT,
            1,
            1000,
            0,
            0,
            0,
            0,
        )
        clients.read = _fake_read(
            {
                "getValidatorContract": VALIDATOR_CONTRACT,
                "validatorStake": 100,
                "delegatedAmount": 50,
                "validators": struct,
            }
        )
        info = await adapter.get_validator_info(12)

        assert info.total_stake == 150
        assert info.status is ValidatorStatus.ACTIVE
        assert info.commission_rate == 10.0
        assert info.signer_address == WALLET
        assert info.contract_address == VALIDATOR_CONTRACT
        assert info.activation_epoch == 10

    @pytest.mark.asyncio
    async def test_reverted_stake_is_none(self, adapter, clients):
        clients.read = _fake_read(
            {
                "getValidatorContract": VALIDATOR_CONTRACT,
                "validatorStake": ContractLogicError("execution reverted"),
            }
        )
        assert await adapter.get_validator_info(12) is None

    @pytest.mark.asyncio
    async def test_zero_contract_is_none(self, adapter, clients):
        clients.read = _fake_read(
            {"getValidatorContract": ZERO_ADDRESS, "validatorStake": 0}
        )
        assert await adapter.get_validator_info(9999) is None

    @pytest.mark.asyncio
    async def test_struct_unavailable_falls_back(self, adapter, clients):
        clients.read = _fake_read(
            {
                "getValidatorContract": VALIDATOR_CONTRACT,
                "validatorStake": 100,
                "delegatedAmount": ContractLogicError("execution reverted"),
                "validators": ContractLogicError("execution reverted"),
                "owner": WALLET,
            }
        )
        info = await adapter.get_validator_info(12)

        assert info.total_stake == 100
        assert info.status is ValidatorStatus.ACTIVE
        assert info.commission_rate == 0.0
        assert info.signer_address == WALLET
        assert info.activation_epoch == 0


class TestDelegatorInfo:
    @pytest.mark.asyncio
    async def test_record(self, adapter, clients):
        clients.read = _fake_read(
            {
                "getValidatorContract": VALIDATOR_CONTRACT,
                "getTotalStake": (10**18, 10**29),
                "getLiquidRewards": 3 * 10**16,
            }
        )
        info = await adapter.get_delegator_info(12)

        assert info.delegator_address == WALLET
        assert info.delegated_amount == 10**18
        assert info.pending_rewards == 3 * 10**16

    @pytest.mark.asyncio
    async def test_zero_stake_is_a_record(self, adapter, clients):
        clients.read = _fake_read(
            {
                "getValidatorContract": VALIDATOR_CONTRACT,
                "getTotalStake": (0, 10**29),
                "getLiquidRewards": 0,
            }
        )
        info = await adapter.get_delegator_info(12, VALIDATOR_CONTRACT.lower())

        assert info is not None
        assert info.delegated_amount == 0
        assert info.delegator_address == VALIDATOR_CONTRACT

    @pytest.mark.asyncio
    async def test_revert_is_none(self, adapter, clients):
        clients.read = _fake_read(
            {
                "getValidatorContract": VALIDATOR_CONTRACT,
                "getTotalStake": ContractLogicError("execution reverted"),
            }
        )
        assert await adapter.get_delegator_info(12) is None

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self, adapter, clients):
        clients.read = _fake_read(
            {
                "getValidatorContract": VALIDATOR_CONTRACT,
                "getTotalStake": ConnectionError("rpc down"),
            }
        )
        with pytest.raises(ConnectionError):
            await adapter.get_delegator_info(12)


@pytest.mark.asyncio
async def test_checkpoint_status(adapter, clients):
    with patch.object(
        adapter.checkpoints,
        "last_checkpointed_block",
        AsyncMock(return_value=1_000),
    ):
        status = await adapter.get_checkpoint_status(1_500)

    assert status == CheckpointStatus(
        block_number=1_500,
        is_checkpointed=False,
        last_checkpointed_block=1_000,
        current_child_block=2_000,
    )


@pytest.mark.asyncio
async def test_transaction_details(adapter, clients):
    clients.get_transaction = AsyncMock(return_value={"hash": "0x01"})
    clients.get_transaction_receipt = AsyncMock(return_value=None)

    details = await adapter.get_transaction_details("0x01")
    assert details == TransactionDetails(transaction={"hash": "0x01"}, receipt=None)
    assert details.is_pending is True
    assert details.succeeded is None
    clients.get_transaction.assert_awaited_once_with("0x01", "child")


@pytest.mark.asyncio
async def test_unknown_transaction_is_none(adapter, clients):
    clients.get_transaction = AsyncMock(return_value=None)
    clients.get_transaction_receipt = AsyncMock(return_value=None)
    assert await adapter.get_transaction_details("0x01") is None


@pytest.mark.asyncio
async def test_get_allowance_defaults_owner_to_signer(adapter, clients):
    clients.read = AsyncMock(return_value=25)
    allowance = await adapter.get_allowance(
        CONTRACTS["staking_token"], VALIDATOR_CONTRACT
    )

    assert allowance.owner == WALLET
    assert allowance.spender == VALIDATOR_CONTRACT
    assert allowance.amount == 25


@pytest.mark.asyncio
async def test_check_connection(adapter, clients):
    clients.read = _fake_read({"epoch": 42})
    clients.get_block_number = AsyncMock(side_effect=[19_000_000, 55_000_000])

    assert await adapter.check_connection() == {
        "epoch": 42,
        "root_block": 19_000_000,
        "child_block": 55_000_000,
    }


@pytest.mark.asyncio
async def test_close_releases_clients_and_oracle(adapter, clients):
    clients.close = AsyncMock()
    adapter.fee_estimator.gas_oracle.close = AsyncMock()

    await adapter.close()

    clients.close.assert_awaited_once()
    adapter.fee_estimator.gas_oracle.close.assert_awaited_once()


@pytest.mark.parametrize(
    "raw,expected",
    [
        (0, ValidatorStatus.INACTIVE),
        (1, ValidatorStatus.ACTIVE),
        (2, ValidatorStatus.JAILED),
        (3, ValidatorStatus.UNBONDING),
        (9, ValidatorStatus.INACTIVE),
        (None, ValidatorStatus.INACTIVE),
    ],
)
def test_stake_manager_status_mapping(raw, expected):
    assert ValidatorStatus.from_raw(raw) is expected
