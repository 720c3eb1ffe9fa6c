"""Background task expiring sessions that outlived the session lifetime."""

import asyncio
import logging

from coordinator.config import SESSION_SWEEP_INTERVAL
from coordinator.session_registry import ActiveSessionRegistry

logger = logging.getLogger(__name__)


class SessionExpiryTask:
    """
    Periodically removes expired sessions (and, through the registry's
    cascade, the file records they owned).
    """

    def __init__(self, registry: ActiveSessionRegistry, interval_seconds: int = SESSION_SWEEP_INTERVAL):
        self.registry = registry
        self.interval_seconds = interval_seconds
        self._running = False
        self._task = None

    async def start(self) -> None:
        """Start the background sweep."""
        if self._running:
            logger.warning("Session expiry task already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info(f"Started session expiry task (interval: {self.interval_seconds}s)")

    async def stop(self) -> None:
        """Stop the background sweep."""
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        logger.info("Stopped session expiry task")

    async def _run(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self.interval_seconds)

                if not self._running:
                    break

                expired = await self.registry.expire_stale()
                if expired:
                    logger.info(f"Expired {expired} session(s)")

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in session expiry task: {e}", exc_info=True)
