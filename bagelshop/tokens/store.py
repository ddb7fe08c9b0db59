"""
Revoked token store.

Superseded cart tokens are remembered by jti until their own expiry, after
which the signature check rejects them anyway and the entry is evicted.
The store lives for the process lifetime: start() launches the periodic
purge task and stop() cancels it and drops all entries.
"""

import asyncio
import logging
import threading
import time
from typing import Optional

logger = logging.getLogger(__name__)


class RevokedTokenStore:
    """Map of revoked token IDs to their expiry (epoch seconds)"""

    def __init__(self, purge_interval_seconds: int = 60):
        self.purge_interval = purge_interval_seconds
        self._entries: dict[str, int] = {}
        self._lock = threading.Lock()
        self._purge_task: Optional[asyncio.Task] = None

    def revoke(self, jti: str, expires: int) -> None:
        """Revoke a token until its expiry"""
        with self._lock:
            self._entries[jti] = expires

    def is_revoked(self, jti: str, now: Optional[int] = None) -> bool:
        now = int(time.time()) if now is None else now
        with self._lock:
            expires = self._entries.get(jti)
            if expires is None:
                return False
            if expires < now:
                # Expired tokens fail verification on their own
                del self._entries[jti]
                return False
            return True

    def purge_expired(self, now: Optional[int] = None) -> int:
        """Drop entries whose tokens have expired; returns the number removed"""
        now = int(time.time()) if now is None else now
        with self._lock:
            expired = [jti for jti, expires in self._entries.items() if expires < now]
            for jti in expired:
                del self._entries[jti]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)

    async def _purge_loop(self) -> None:
        while True:
            await asyncio.sleep(self.purge_interval)
            removed = self.purge_expired()
            if removed:
                logger.debug(f"Purged {removed} expired revoked tokens")

    def start(self) -> None:
        """Start the periodic purge task on the running event loop"""
        if self._purge_task is None or self._purge_task.done():
            self._purge_task = asyncio.get_running_loop().create_task(self._purge_loop())

    async def stop(self) -> None:
        """Cancel the purge task and clear all entries"""
        if self._purge_task is not None:
            self._purge_task.cancel()
            try:
                await self._purge_task
            except asyncio.CancelledError:
                pass
            self._purge_task = None
        self.clear()

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
