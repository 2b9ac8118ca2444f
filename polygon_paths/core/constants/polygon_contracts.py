from __future__ import annotations

from eth_utils import to_checksum_address

from polygon_paths.core.constants.chains import CHAIN_ID_ETHEREUM

# Polygon PoS root-chain deployments.
#
# Deployed contracts:
# - https://docs.polygon.technology/pos/reference/contracts/genesis-contracts/
#
# Notes:
# - Keyed by the root chain id.
# - "staking_token" is the ERC-20 pulled by buyVoucher (MATIC on mainnet).
POLYGON_BY_ROOT_CHAIN: dict[int, dict[str, str]] = {
    CHAIN_ID_ETHEREUM: {
        "stake_manager": to_checksum_address(
            "0x5e3Ef299fDDf15eAa0432E6e66473ace8c13D908"
        ),
        "root_chain_manager": to_checksum_address(
            "0xA0c68C638235ee32657e8f720a23ceC1bFc77C77"
        ),
        "staking_token": to_checksum_address(
            "0x7D1AfA7B718fb893dB30A3aBc0Cfc608AaCfeBB0"
        ),
    }
}

# Validators below this id were onboarded with a different share precision.
LEGACY_VALIDATOR_ID_CEILING = 8
LEGACY_SHARE_PRECISION = 100
SHARE_PRECISION = 10**29
