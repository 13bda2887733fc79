"""Display helpers. Integer arithmetic only, amounts can exceed 2**256."""

import re

TX_HASH_RE = re.compile(r"^0x[a-fA-F0-9]{64}$")


def format_transfer_amount(amount: str, decimals: int) -> str:
    """Render a raw integer amount in whole units, trimming trailing zeros.

    >>> format_transfer_amount("1500000000000000000", 18)
    '1.5'
    """
    raw = int(amount)
    if decimals <= 0:
        return str(raw)

    whole, remainder = divmod(raw, 10 ** decimals)
    if remainder == 0:
        return str(whole)

    fraction = str(remainder).rjust(decimals, "0").rstrip("0")
    return f"{whole}.{fraction}"


def truncate_address(address: str) -> str:
    return f"{address[:6]}...{address[-4:]}"


def validate_tx_hash(tx_hash: str) -> str | None:
    """Return a user-facing error message, or None if the hash is well formed."""
    if not tx_hash:
        return "Please enter a transaction hash"
    if not tx_hash.startswith("0x"):
        return "Transaction hash must start with 0x"
    if len(tx_hash) != 66:
        return f"Transaction hash must be 66 characters (got {len(tx_hash)})"
    if not TX_HASH_RE.match(tx_hash):
        return "Transaction hash contains invalid characters"
    return None
