"""Expiry reclaimer - periodically evicts expired session records."""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from gatekeeper.core.logging import get_logger
from gatekeeper.services.blacklist import Blacklist
from gatekeeper.services.token_store import SessionRecord, TokenStore, utc_now

logger = get_logger("reclaimer")

DEFAULT_INTERVAL_SECONDS = 60.0


@dataclass(frozen=True)
class ReclaimResult:
    tokens_reclaimed: int = 0
    blacklist_pruned: int = 0


class ExpiryReclaimer:
    """Background task that removes expired records from the token store.

    Validity never depends on this task: the authentication gate compares
    expiry against the clock on every check, so a missed or partial sweep
    only delays memory reclamation.
    """

    def __init__(
        self,
        store: TokenStore,
        blacklist: Blacklist,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        prune_blacklist: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("Reclaim interval must be positive")
        self._store = store
        self._blacklist = blacklist
        self._interval_seconds = interval_seconds
        self._prune_blacklist = prune_blacklist
        self._clock = clock
        self._running = False
        self._task: asyncio.Task | None = None

    @property
    def interval_seconds(self) -> float:
        return self._interval_seconds

    @property
    def running(self) -> bool:
        return self._running

    def sweep(self) -> ReclaimResult:
        """Run one reclamation pass.

        Iterates a snapshot and deletes with compare-and-delete, so records
        refreshed or revoked concurrently are neither resurrected nor counted
        twice.
        """
        now = self._clock()
        reclaimed = 0

        def visit(record: SessionRecord) -> None:
            nonlocal reclaimed
            if record.is_expired(now) and self._store.delete(record.token, expected=record):
                reclaimed += 1

        self._store.for_each(visit)

        pruned = self._blacklist.prune_expired(now) if self._prune_blacklist else 0
        return ReclaimResult(tokens_reclaimed=reclaimed, blacklist_pruned=pruned)

    async def start(self) -> None:
        """Start the background reclamation task."""
        if self._running:
            logger.warning("Expiry reclaimer is already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._reclaim_loop(), name="expiry-reclaimer")
        logger.info(
            f"Expiry reclaimer started (interval: {self._interval_seconds}s, "
            f"prune blacklist: {self._prune_blacklist})"
        )

    async def stop(self) -> None:
        """Stop the background reclamation task."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Expiry reclaimer stopped")

    async def _reclaim_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self._interval_seconds)
            try:
                self.run_now()
            except Exception:
                logger.exception("Error during expired token cleanup")

    def run_now(self) -> ReclaimResult:
        """Run a sweep immediately and log what it reclaimed."""
        result = self.sweep()
        if result.tokens_reclaimed > 0:
            logger.info(f"Cleaned up {result.tokens_reclaimed} expired token(s)")
        if result.blacklist_pruned > 0:
            logger.info(f"Pruned {result.blacklist_pruned} expired blacklist entries")
        return result
