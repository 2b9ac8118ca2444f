from polygon_paths.core.clients.GasOracleClient import GasOracleClient
from polygon_paths.core.clients.NetworkClientPair import NetworkClientPair

__all__ = ["GasOracleClient", "NetworkClientPair"]
