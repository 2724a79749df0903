"""Configuration constants for tenderly-deployments library."""

TENDERLY_API_URL = "https://api.tenderly.co"

# Endpoint templates relative to TENDERLY_API_URL
SIMPLE_VERIFY_PATH = "/api/v1/account/{account}/project/{project}/address"
PUBLIC_VERIFY_PATH = "/api/v1/account/me/verify-contracts"
PRIVATE_VERIFY_PATH = "/api/v1/account/{account}/project/{project}/contracts"
FORK_VERIFY_PATH = "/api/v1/account/{account}/project/{project}/fork/{fork_id}/verify"

REQUEST_TIMEOUT = 30

DEFAULT_COMPILER_VERSION = "0.8.9"
DEFAULT_SOURCES_DIR = "contracts"
DEFAULT_ARTIFACTS_DIR = "artifacts"

# Hardhat networks used by the deployment scripts
NETWORK_CONFIG = {
    "ropsten": {
        "chain_id": 3,
        "rpc_url": "https://ropsten.infura.io/v3/{ROPSTEN_INFURA_KEY}",
        "private_key_env": "ROPSTEN_PRIVATE_KEY",
        "fork": False,
    },
    "tenderly": {
        "chain_id": 1,
        "rpc_url": "https://rpc.tenderly.co/fork/{TENDERLY_FORK_ID}",
        "private_key_env": None,
        "fork": True,
    },
    "localhost": {
        "chain_id": 31337,
        "rpc_url": "http://127.0.0.1:8545",
        "private_key_env": None,
        "fork": False,
    },
}
