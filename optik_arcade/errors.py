"""Error kinds raised by the reward core.

Routers translate these into HTTP status codes; services never return
error dicts for them.
"""


class ArcadeError(Exception):
    """Base class for all arcade reward errors."""


class ValidationError(ArcadeError, ValueError):
    """Malformed wallet, unknown game, negative score/duration.

    Raised before any state is touched.
    """


class NothingToClaimError(ArcadeError):
    """No unclaimed, unexpired pending rewards for the wallet."""

    def __init__(self, wallet_address: str, message: str = "No rewards to claim"):
        super().__init__(message)
        self.wallet_address = wallet_address


class PersistenceError(ArcadeError, RuntimeError):
    """A storage operation failed; the transaction was rolled back."""


class DuplicateSourceEventError(ArcadeError):
    """A pending reward for this (source, source_id) already exists."""

    def __init__(self, source: str, source_id: str):
        super().__init__(f"Duplicate {source} event {source_id}")
        self.source = source
        self.source_id = source_id
