"""CREATE2 deployment-address recomputation for Uniswap V2 pairs and V3 pools.

A pool is genuine only if its address equals the one the canonical factory
would deploy for its token pair. Forks use other factories or init-code
hashes and fail this check.
"""

from eth_abi import encode
from eth_utils import decode_hex, is_address, keccak, to_canonical_address, to_checksum_address

from ghostflow.parser.defi.uniswap_constants import (
    UNISWAP_V2_FACTORY,
    UNISWAP_V2_INIT_CODE_HASH,
    UNISWAP_V3_FACTORY,
    UNISWAP_V3_INIT_CODE_HASH,
    V3_FEE_TIERS,
)


def sort_tokens(token_a: str, token_b: str) -> tuple[str, str]:
    """Order two token addresses numerically (token0 < token1), checksummed."""
    a = to_checksum_address(token_a)
    b = to_checksum_address(token_b)
    return (a, b) if int(a, 16) < int(b, 16) else (b, a)


def compute_create2_address(deployer: str, salt: bytes, init_code_hash: str) -> str:
    """keccak256(0xff ++ deployer ++ salt ++ init_code_hash)[12:], lowercased."""
    digest = keccak(b"\xff" + to_canonical_address(deployer) + salt + decode_hex(init_code_hash))
    return "0x" + digest[-20:].hex()


def compute_v2_pair_address(token_a: str, token_b: str) -> str:
    token0, token1 = sort_tokens(token_a, token_b)
    salt = keccak(to_canonical_address(token0) + to_canonical_address(token1))
    return compute_create2_address(UNISWAP_V2_FACTORY, salt, UNISWAP_V2_INIT_CODE_HASH)


def compute_v3_pool_address(token_a: str, token_b: str, fee: int) -> str:
    token0, token1 = sort_tokens(token_a, token_b)
    salt = keccak(encode(["address", "address", "uint24"], [token0, token1, fee]))
    return compute_create2_address(UNISWAP_V3_FACTORY, salt, UNISWAP_V3_INIT_CODE_HASH)


def _valid_pair(pool: str, token_a: str, token_b: str) -> bool:
    if not (is_address(pool) and is_address(token_a) and is_address(token_b)):
        return False
    return token_a.lower() != token_b.lower()


def verify_v2_pair(pair_address: str, token_a: str, token_b: str) -> bool:
    if not _valid_pair(pair_address, token_a, token_b):
        return False
    return compute_v2_pair_address(token_a, token_b) == pair_address.lower()


def verify_v3_pool(pool_address: str, token_a: str, token_b: str) -> bool:
    """True if any standard fee tier reproduces ``pool_address``."""
    if not _valid_pair(pool_address, token_a, token_b):
        return False
    expected = pool_address.lower()
    return any(compute_v3_pool_address(token_a, token_b, fee) == expected for fee in V3_FEE_TIERS)
