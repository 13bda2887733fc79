"""Helpers for reading topics and data words out of raw logs."""

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# keccak("Transfer(address,address,uint256)")
ERC20_TRANSFER_TOPIC0 = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
ERC20_TRANSFER_SIGNATURE = "Transfer(address,address,uint256)"

_WORD_HEX_LEN = 64


def address_from_topic(topic: str) -> str:
    """Low 20 bytes of a 32-byte topic, lowercased and 0x-prefixed."""
    return "0x" + topic[-40:].lower()


def decode_uint256_word(data: str | None, position: int) -> str:
    """Decode the ``position``-th 32-byte word of ``data`` as a decimal string.

    A missing or truncated word decodes as "0".
    """
    if not data:
        return "0"
    start = 2 + _WORD_HEX_LEN * position
    word = data[start:start + _WORD_HEX_LEN]
    if len(word) != _WORD_HEX_LEN:
        return "0"
    return str(int(word, 16))


def decode_address_word(data: str | None, position: int) -> str | None:
    """Decode the ``position``-th data word as an address, or None if absent."""
    if not data:
        return None
    start = 2 + _WORD_HEX_LEN * position
    word = data[start:start + _WORD_HEX_LEN]
    if len(word) != _WORD_HEX_LEN:
        return None
    return address_from_topic(word)


def decode_uint256_data(data: str | None) -> str:
    """Whole data field as one big-endian integer. Empty data is zero."""
    if not data or data in ("0x", "0X"):
        return "0"
    body = data[2:] if data[:2].lower() == "0x" else data
    return str(int(body, 16))


def same_address(a: str | None, b: str | None) -> bool:
    if a is None or b is None:
        return False
    return a.lower() == b.lower()
