from typing import Literal

CHAIN_ID_ETHEREUM = 1
CHAIN_ID_POLYGON = 137
CHAIN_ID_AMOY = 80002

Network = Literal["root", "child"]
ROOT: Network = "root"
CHILD: Network = "child"
NETWORKS: tuple[Network, ...] = (ROOT, CHILD)

# Polygon PoS blocks carry a long extraData field that web3.py rejects without
# the POA middleware.
POA_MIDDLEWARE_CHAIN_IDS: set[int] = {
    CHAIN_ID_POLYGON,
    CHAIN_ID_AMOY,
}

ETHERSCAN_V2_API_URL = "https://api.etherscan.io/v2/api"
