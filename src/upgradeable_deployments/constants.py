"""Configuration constants for upgradeable-deployments library."""

# Format version of network records written by this library (the "zosversion")
SCHEMA_VERSION = "2.2"

# Records older than SCHEMA_VERSION but at least this old are migrated in place;
# anything else is rejected at load time
OLDEST_MIGRATABLE_SCHEMA_VERSION = "2"

# Project file names, relative to the project root
MANIFEST_FILE_NAME = "zos.json"
NETWORK_FILE_TEMPLATE = "zos.{network}.json"
DEPENDENCIES_DIR_NAME = "node_modules"
BUILD_ARTIFACTS_DIR = ("build", "contracts")

# JSON-RPC endpoint used for read-only chain inspection
RPC_URL_ENV = "DEPLOYMENTS_RPC_URL"
RPC_TIMEOUT_SECONDS = 30

# Storage slots of zos AdminUpgradeabilityProxy
# keccak256("org.zeppelinos.proxy.implementation") and keccak256("org.zeppelinos.proxy.admin")
IMPLEMENTATION_SLOT = "0x7050c9e0f4ca769c69bd3a8ef740bc37934f8e2c036e5a723fd8ee048ed3f8c3"
ADMIN_SLOT = "0x10d6a54a4754c8869d6886b5f5d7fbfa5b4522237ea5c60d11bc4e7a1ff9390b"

# EIP-1167 minimal proxy runtime code surrounding the 20-byte target address
MINIMAL_PROXY_PREFIX = "363d3d373d3d3d363d73"
MINIMAL_PROXY_SUFFIX = "5af43d82803e903d91602b57fd5bf3"

# eth_getCode result for addresses without code
EMPTY_CODE = "0x"

# Address that Solidity leaves in storage slots never written
ZERO_ADDRESS = "0x" + "0" * 40
