from __future__ import annotations

from typing import Any, Protocol

from eth_account import Account
from eth_account.signers.local import LocalAccount

from polygon_paths.core.clients.NetworkClientPair import NetworkClientPair
from polygon_paths.core.config import get_private_key
from polygon_paths.core.constants.chains import Network
from polygon_paths.core.errors import SignerUnavailable


class Signer(Protocol):
    @property
    def address(self) -> str: ...

    async def get_nonce(self, network: Network) -> int: ...

    async def estimate_gas(
        self, transaction: dict[str, Any], network: Network
    ) -> int: ...

    async def sign_transaction(self, transaction: dict[str, Any]) -> bytes: ...


class LocalSigner:
    """Private-key signer; chain reads go through the shared client pair."""

    def __init__(self, account: LocalAccount, clients: NetworkClientPair) -> None:
        self._account = account
        self.clients = clients

    @classmethod
    def from_private_key(
        cls, private_key: str, clients: NetworkClientPair
    ) -> LocalSigner:
        try:
            account = Account.from_key(private_key)
        except (ValueError, TypeError) as exc:
            raise SignerUnavailable("Configured private key is not valid") from exc
        return cls(account, clients)

    @classmethod
    def from_config(cls, clients: NetworkClientPair) -> LocalSigner:
        private_key = get_private_key()
        if not private_key:
            raise SignerUnavailable(
                "No private key configured. Set main_wallet.private_key_hex in "
                "config.json or the PRIVATE_KEY env var."
            )
        return cls.from_private_key(private_key, clients)

    @property
    def address(self) -> str:
        return self._account.address

    async def get_nonce(self, network: Network) -> int:
        return await self.clients.get_nonce(self.address, network)

    async def estimate_gas(self, transaction: dict[str, Any], network: Network) -> int:
        return await self.clients.estimate_gas(transaction, network)

    async def sign_transaction(self, transaction: dict[str, Any]) -> bytes:
        signed = self._account.sign_transaction(transaction)
        return bytes(signed.raw_transaction)
