"""NEAR network constants."""

from typing import TypedDict


class NetworkEndpoints(TypedDict):
    rpc_urls: list[str]
    explorer_url: str


YOCTO_DECIMALS = 24  # 1 NEAR = 10**24 yoctoNEAR
YOCTO_PER_NEAR = 10**YOCTO_DECIMALS

DEFAULT_FRACTION_DIGITS = 4
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0
DEFAULT_RPC_CALL_TIMEOUT_SECONDS = 10.0

ACCOUNT_SUFFIXES = ("near", "testnet")

MAINNET: NetworkEndpoints = {
    "rpc_urls": [
        "https://rpc.mainnet.near.org",
        "https://free.rpc.fastnear.com",
        "https://near.blockpi.network/v1/rpc/public",
    ],
    "explorer_url": "https://explorer.mainnet.near.org",
}

TESTNET: NetworkEndpoints = {
    "rpc_urls": [
        "https://rpc.testnet.near.org",
        "https://test.rpc.fastnear.com",
        "https://near-testnet.blockpi.network/v1/rpc/public",
    ],
    "explorer_url": "https://explorer.testnet.near.org",
}

# Third-party explorers shown next to a fetched balance (mainnet only)
PIKESPEAK_MONEY_FLOW_URL = "https://pikespeak.ai/wallet-explorer/{account_id}/money-flow"
NEARBLOCKS_ACCOUNT_URL = "https://nearblocks.io/address/{account_id}"

# Staking pool view method queried for delegated stake
STAKING_POOL_BALANCE_METHOD = "get_account_total_balance"
