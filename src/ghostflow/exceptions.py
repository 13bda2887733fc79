class GhostFlowError(Exception):
    """Base for errors raised outside the decoding core."""


class ExternalServiceError(GhostFlowError):
    """A provider call failed in a way worth retrying."""


class RateLimitedError(ExternalServiceError):
    """The provider reported a rate limit."""


class TransactionNotFoundError(GhostFlowError):
    def __init__(self, tx_hash: str) -> None:
        super().__init__(f"Transaction not found: {tx_hash}")
        self.tx_hash = tx_hash


class InvalidTransactionHashError(GhostFlowError, ValueError):
    """Hash failed validation before any provider call."""
