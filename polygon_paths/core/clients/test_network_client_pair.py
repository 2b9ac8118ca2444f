from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from web3 import AsyncWeb3
from web3.exceptions import BlockNotFound, TransactionNotFound

from polygon_paths.core.clients.NetworkClientPair import NetworkClientPair
from polygon_paths.core.errors import ConfigurationError, NetworkUnavailable

WALLET = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"


async def _value(v):
    return v


def _mock_web3():
    web3 = MagicMock()
    web3.to_checksum_address = AsyncWeb3.to_checksum_address
    web3.eth = MagicMock()
    web3.provider.disconnect = AsyncMock()
    return web3


@pytest.mark.asyncio
class TestUninitializedNetwork:
    async def test_missing_child_raises(self):
        pair = NetworkClientPair(root=_mock_web3())
        with pytest.raises(NetworkUnavailable) as exc_info:
            await pair.get_block_number("child")
        assert exc_info.value.context["network"] == "child"

    async def test_unknown_network_raises(self):
        pair = NetworkClientPair(root=_mock_web3(), child=_mock_web3())
        with pytest.raises(NetworkUnavailable):
            await pair.get_balance(WALLET, "sidechain")


@pytest.mark.asyncio
class TestLookups:
    async def test_block_number(self):
        web3 = _mock_web3()
        web3.eth.block_number = _value(123)
        pair = NetworkClientPair(child=web3)
        assert await pair.get_block_number("child") == 123

    async def test_missing_transaction_is_none(self):
        web3 = _mock_web3()
        web3.eth.get_transaction = AsyncMock(side_effect=TransactionNotFound("nope"))
        web3.eth.get_transaction_receipt = AsyncMock(
            side_effect=TransactionNotFound("nope")
        )
        pair = NetworkClientPair(child=web3)

        assert await pair.get_transaction("0x01", "child") is None
        assert await pair.get_transaction_receipt("0x01", "child") is None

    async def test_missing_block_is_none(self):
        web3 = _mock_web3()
        web3.eth.get_block = AsyncMock(side_effect=BlockNotFound("nope"))
        pair = NetworkClientPair(child=web3)
        assert await pair.get_block(10**12, "child") is None

    async def test_nonce_uses_pending_block(self):
        web3 = _mock_web3()
        web3.eth.get_transaction_count = AsyncMock(return_value=4)
        pair = NetworkClientPair(root=web3)

        assert await pair.get_nonce(WALLET.lower(), "root") == 4
        web3.eth.get_transaction_count.assert_awaited_once_with(
            WALLET, block_identifier="pending"
        )


@pytest.mark.asyncio
class TestFeeData:
    async def test_eip1559_fields(self):
        web3 = _mock_web3()
        web3.eth.gas_price = _value(25)
        web3.eth.get_block = AsyncMock(return_value={"baseFeePerGas": 10})
        web3.eth.max_priority_fee = _value(2)
        pair = NetworkClientPair(root=web3)

        fee_data = await pair.get_fee_data("root")
        assert fee_data == {
            "gas_price": 25,
            "max_fee_per_gas": 22,
            "max_priority_fee_per_gas": 2,
        }

    async def test_legacy_block_has_no_eip1559_fields(self):
        web3 = _mock_web3()
        web3.eth.gas_price = _value(25)
        web3.eth.get_block = AsyncMock(return_value={"number": 1})
        pair = NetworkClientPair(root=web3)

        fee_data = await pair.get_fee_data("root")
        assert fee_data["gas_price"] == 25
        assert fee_data["max_fee_per_gas"] is None
        assert fee_data["max_priority_fee_per_gas"] is None


@pytest.mark.asyncio
async def test_broadcast_raw_returns_prefixed_hash():
    web3 = _mock_web3()
    web3.eth.send_raw_transaction = AsyncMock(return_value=bytes.fromhex("ab" * 32))
    pair = NetworkClientPair(root=web3)

    tx_hash = await pair.broadcast_raw(b"signed", "root")
    assert tx_hash == "0x" + "ab" * 32


@pytest.mark.asyncio
async def test_read_calls_contract_function():
    web3 = _mock_web3()
    call = AsyncMock(return_value=42)
    contract = MagicMock()
    contract.functions.epoch.return_value.call = call
    web3.eth.contract.return_value = contract
    pair = NetworkClientPair(root=web3)

    out = await pair.read(WALLET, [], "epoch", network="root")

    assert out == 42
    call.assert_awaited_once_with(block_identifier="latest")


@pytest.mark.asyncio
async def test_close_disconnects_both_providers():
    root, child = _mock_web3(), _mock_web3()
    pair = NetworkClientPair(root=root, child=child)
    await pair.close()

    root.provider.disconnect.assert_awaited_once()
    child.provider.disconnect.assert_awaited_once()


def test_from_config_requires_both_rpc_urls():
    with patch(
        "polygon_paths.core.clients.NetworkClientPair.get_rpc_urls",
        return_value={"root": "https://eth.invalid", "child": None},
    ):
        with pytest.raises(ConfigurationError, match="child"):
            NetworkClientPair.from_config()


def test_from_config_builds_clients():
    with (
        patch(
            "polygon_paths.core.clients.NetworkClientPair.get_rpc_urls",
            return_value={"root": "https://eth.invalid", "child": "https://pol.invalid"},
        ),
        patch("polygon_paths.core.clients.NetworkClientPair.get_web3") as mock_get_web3,
    ):
        pair = NetworkClientPair.from_config()

    assert mock_get_web3.call_count == 2
    assert pair.web3("root") is not None
    assert pair.web3("child") is not None


@pytest.mark.asyncio
async def test_call_returns_raw_bytes_from_selected_network():
    root, child = _mock_web3(), _mock_web3()
    child.eth.call = AsyncMock(return_value=bytes.fromhex("00" * 31 + "2a"))
    root.eth.call = AsyncMock()
    pair = NetworkClientPair(root=root, child=child)
    tx = {"to": WALLET, "data": "0x18160ddd"}

    out = await pair.call(tx, "child")

    assert out == bytes.fromhex("00" * 31 + "2a")
    assert int.from_bytes(out, "big") == 42
    child.eth.call.assert_awaited_once_with(tx)
    root.eth.call.assert_not_awaited()


@pytest.mark.asyncio
async def test_call_on_missing_network_raises():
    pair = NetworkClientPair(root=_mock_web3())
    with pytest.raises(NetworkUnavailable):
        await pair.call({"to": WALLET}, "child")
