# Gatekeeper Services
from gatekeeper.services.auth_gate import AuthenticationGate, GateResult, TokenStatus
from gatekeeper.services.blacklist import Blacklist, InMemoryBlacklist
from gatekeeper.services.errors import (
    GatekeeperError,
    GeneratorExhaustionError,
    InvalidInputError,
    TokenStateError,
    WebhookDeliveryError,
    WebhookError,
    WebhookNotConfiguredError,
)
from gatekeeper.services.reclaimer import ExpiryReclaimer, ReclaimResult
from gatekeeper.services.token_generator import generate_token
from gatekeeper.services.token_lifecycle import IssuedToken, TokenLifecycleController
from gatekeeper.services.token_store import InMemoryTokenStore, SessionRecord, TokenStore
from gatekeeper.services.tokens import TokenServices, get_token_services

__all__ = [
    "AuthenticationGate",
    "Blacklist",
    "ExpiryReclaimer",
    "GateResult",
    "GatekeeperError",
    "GeneratorExhaustionError",
    "InMemoryBlacklist",
    "InMemoryTokenStore",
    "InvalidInputError",
    "IssuedToken",
    "ReclaimResult",
    "SessionRecord",
    "TokenLifecycleController",
    "TokenServices",
    "TokenStateError",
    "TokenStatus",
    "TokenStore",
    "WebhookDeliveryError",
    "WebhookError",
    "WebhookNotConfiguredError",
    "generate_token",
    "get_token_services",
]
