from .base import BaseRpcProvider
from .endpoints import ProviderEndpoint
from .failover import FailoverRpcProvider
from .near_rpc import JsonRpcProvider

__all__ = [
    "BaseRpcProvider",
    "FailoverRpcProvider",
    "JsonRpcProvider",
    "ProviderEndpoint",
]
