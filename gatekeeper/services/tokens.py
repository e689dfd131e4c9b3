"""Process-wide token state: store, blacklist, controller, gate and reclaimer."""

import threading
from datetime import timedelta
from typing import Optional

from gatekeeper.core.config import settings
from gatekeeper.services.auth_gate import AuthenticationGate
from gatekeeper.services.blacklist import InMemoryBlacklist
from gatekeeper.services.reclaimer import ExpiryReclaimer
from gatekeeper.services.token_lifecycle import TokenLifecycleController
from gatekeeper.services.token_store import InMemoryTokenStore


class TokenServices:
    """Wires the in-memory token components together.

    Tokens live only in this process; a restart invalidates all of them.
    """

    _instance: Optional["TokenServices"] = None
    _instance_lock: threading.Lock = threading.Lock()

    def __init__(
        self,
        lifetime_seconds: int = 3600,
        reclaim_interval_seconds: float = 60.0,
        prune_blacklist: bool = False,
    ) -> None:
        self.store = InMemoryTokenStore()
        self.blacklist = InMemoryBlacklist()
        self.controller = TokenLifecycleController(
            self.store,
            self.blacklist,
            lifetime=timedelta(seconds=lifetime_seconds),
        )
        self.gate = AuthenticationGate(self.store, self.blacklist)
        self.reclaimer = ExpiryReclaimer(
            self.store,
            self.blacklist,
            interval_seconds=reclaim_interval_seconds,
            prune_blacklist=prune_blacklist,
        )

    @classmethod
    def get_instance(cls) -> "TokenServices":
        """Get the singleton instance, built from settings (thread-safe)."""
        if cls._instance is None:
            with cls._instance_lock:
                # Double-check locking pattern
                if cls._instance is None:
                    cls._instance = cls(
                        lifetime_seconds=settings.token_lifetime_seconds,
                        reclaim_interval_seconds=settings.reclaim_interval_seconds,
                        prune_blacklist=settings.blacklist_prune_expired,
                    )
        return cls._instance

    def reset(self) -> None:
        """Forget every issued and revoked token."""
        self.store.clear()
        self.blacklist.clear()


def get_token_services() -> TokenServices:
    """FastAPI dependency returning the shared token services."""
    return TokenServices.get_instance()
