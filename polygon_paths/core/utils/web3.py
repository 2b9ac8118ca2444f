from loguru import logger
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.middleware import ExtraDataToPOAMiddleware

from polygon_paths.core.constants.chains import POA_MIDDLEWARE_CHAIN_IDS


def _default_rpc_headers() -> dict[str, str]:
    return AsyncHTTPProvider.get_request_headers()


def get_web3(rpc: str, chain_id: int) -> AsyncWeb3:
    provider = AsyncHTTPProvider(
        rpc, request_kwargs={"headers": _default_rpc_headers()}
    )
    web3 = AsyncWeb3(provider)
    if chain_id in POA_MIDDLEWARE_CHAIN_IDS:
        web3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
    logger.debug(f"Created web3 client for chain {chain_id}")
    return web3

