"""
Per-operator serialization of browser-driving operations
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Dict

logger = logging.getLogger(__name__)


class OperatorLocks:
    """One asyncio.Lock per operator; different operators never wait on each other"""

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}

    def lock_for(self, operator_id: str) -> asyncio.Lock:
        lock = self._locks.get(operator_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[operator_id] = lock
        return lock

    def is_busy(self, operator_id: str) -> bool:
        lock = self._locks.get(operator_id)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, operator_id: str):
        lock = self.lock_for(operator_id)
        if lock.locked():
            logger.info(f"Waiting for running operation of {operator_id} to finish")
        async with lock:
            yield
