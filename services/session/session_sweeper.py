"""Background removal of expired sessions."""

import asyncio
import logging

from services.session.session_store import SessionStore

LOGGER = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 5 * 60


class SessionSweeper:
    """Delete sessions idle for longer than the store's TTL."""

    def __init__(self, store: SessionStore, interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS) -> None:
        """
        Args:
            store: Session store to sweep.
            interval_seconds: Seconds to sleep between sweeps.
        """
        self._store = store
        self.interval_seconds = interval_seconds

    def sweep_once(self) -> int:
        """Run a single sweep and return the number of sessions removed."""
        removed = self._store.sweep()
        if removed:
            LOGGER.info("Swept %d expired session(s)", removed)
        return removed

    async def run_periodic_sweep(self) -> None:
        """Sweep at the configured interval until cancelled."""
        while True:
            try:
                await asyncio.sleep(self.interval_seconds)
                self.sweep_once()
            except asyncio.CancelledError:
                break
            except Exception:  # pylint: disable=broad-exception-caught
                LOGGER.exception("Session sweep failed; retrying next interval")
