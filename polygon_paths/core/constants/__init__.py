from polygon_paths.core.constants.base import MAX_UINT256
from polygon_paths.core.constants.chains import (
    CHAIN_ID_ETHEREUM,
    CHAIN_ID_POLYGON,
    CHILD,
    NETWORKS,
    ROOT,
)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

__all__ = [
    "CHAIN_ID_ETHEREUM",
    "CHAIN_ID_POLYGON",
    "CHILD",
    "MAX_UINT256",
    "NETWORKS",
    "ROOT",
    "ZERO_ADDRESS",
]
