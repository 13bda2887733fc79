"""Core data types for the decoding engine.

Every record here is created fresh per decode and never mutated afterwards.
Amounts are base-10 strings of unbounded unsigned integers.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict


class DecodedEventParam(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: str = ""
    value: Any = None


class DecodedEvent(BaseModel):
    """Provider-side ABI decoding of a log. May be absent or wrong."""

    model_config = ConfigDict(frozen=True)

    label: str | None = None
    signature: str | None = None
    type: str | None = None
    params: list[DecodedEventParam] = []

    def param(self, *names: str) -> Any:
        """Return the value of the first param matching any of ``names``, else None."""
        for name in names:
            for p in self.params:
                if p.name == name and p.value is not None:
                    return p.value
        return None


class RawEventLog(BaseModel):
    """A single receipt log as delivered by the receipt provider."""

    model_config = ConfigDict(frozen=True)

    address: str
    topic0: str | None = None
    topic1: str | None = None
    topic2: str | None = None
    topic3: str | None = None
    data: str | None = "0x"
    log_index: int
    decoded_event: DecodedEvent | None = None


class InternalCall(BaseModel):
    """An internal call (trace) of the transaction. Only value-bearing ones matter."""

    model_config = ConfigDict(frozen=True)

    from_address: str
    to_address: str
    value: str = "0"
    error: str | None = None


class PlainTransfer(BaseModel):
    """An ERC-20 Transfer event, before metadata is attached."""

    model_config = ConfigDict(frozen=True)

    from_address: str
    to_address: str
    token_address: str  # emitting contract, case preserved
    value: str
    log_index: int


class TokenMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    address: str
    name: str
    symbol: str
    decimals: int = 18
    logo: str | None = None


class TokenTransfer(PlainTransfer):
    """PlainTransfer plus token metadata. The unit every detector works on."""

    token_name: str
    token_symbol: str
    token_logo: str | None = None
    decimals: int = 18


class NativeTransfer(BaseModel):
    """ETH movement. ``log_index`` is a synthetic position in the log-index ordering space."""

    model_config = ConfigDict(frozen=True)

    from_address: str
    to_address: str
    amount: str
    log_index: int


class TransactionReceipt(BaseModel):
    """Everything needed to decode one transaction: header, logs and internal calls."""

    model_config = ConfigDict(frozen=True)

    hash: str
    from_address: str
    to_address: str | None = None
    contract_address: str | None = None  # set for contract creations
    value: str = "0"
    logs: list[RawEventLog] = []
    internal_calls: list[InternalCall] = []
