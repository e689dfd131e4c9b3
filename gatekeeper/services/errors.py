"""Exception hierarchy for token lifecycle and webhook forwarding."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gatekeeper.services.auth_gate import TokenStatus


class GatekeeperError(Exception):
    """Base error for gatekeeper services."""

    pass


class InvalidInputError(GatekeeperError):
    """Caller supplied missing or malformed input. Never retried."""

    pass


class GeneratorExhaustionError(GatekeeperError):
    """The secure random source is unavailable.

    Fatal for the process: tokens are never minted from a weaker source.
    """

    pass


class TokenStateError(GatekeeperError):
    """A refresh or revoke found the token no longer live.

    Raised when a concurrent refresh/revoke on the same token won the race,
    or the token expired between the gate check and the mutation.
    """

    def __init__(self, status: "TokenStatus"):
        super().__init__(status.message)
        self.status = status


class WebhookError(GatekeeperError):
    """Base webhook forwarding error."""

    pass


class WebhookNotConfiguredError(WebhookError):
    """No downstream webhook URL is configured."""

    pass


class WebhookDeliveryError(WebhookError):
    """The downstream webhook rejected the payload or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
