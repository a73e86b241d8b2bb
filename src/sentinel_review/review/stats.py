"""Aggregate metrics snapshot, fetched independently of the queue."""

import logging
from typing import TYPE_CHECKING, Optional

from .models import Stats

if TYPE_CHECKING:
    from ..gateway.client import FirewallClient

logger = logging.getLogger(__name__)


class StatsSynchronizer:
    """
    Keeps the latest Stats snapshot from the gateway.

    Each refresh replaces the whole value from a single response; nothing
    is patched field by field. Transport failures propagate as
    FirewallAPIError so the caller decides how to surface them.
    """

    def __init__(self, gateway: "FirewallClient"):
        self.gateway = gateway
        self.stats: Optional[Stats] = None
        self._closed = False

    async def refresh(self) -> bool:
        """
        Fetch and apply one snapshot.

        Returns:
            True if the snapshot was applied, False if the gateway
            reported failure or the synchronizer was closed meanwhile

        Raises:
            FirewallAPIError: If the request fails
        """
        snapshot = await self.gateway.get_stats()

        if self._closed:
            logger.debug("Discarding stats received after close")
            return False

        if not snapshot.success or snapshot.stats is None:
            logger.warning("Stats endpoint reported failure; keeping previous snapshot")
            return False

        self.stats = snapshot.stats
        return True

    @property
    def retraining_in_progress(self) -> bool:
        return bool(self.stats and self.stats.retraining_in_progress)

    def close(self) -> None:
        self._closed = True
