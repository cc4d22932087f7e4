from __future__ import annotations

import asyncio
from dataclasses import dataclass

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine


@dataclass(slots=True)
class DatabaseHealthCheck:
    """Explicit connectivity check against the workflow database."""

    engine: AsyncEngine
    timeout: float = 5.0

    async def _select_one(self) -> bool:
        async with self.engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
        return True

    async def test_connection(self) -> bool:
        return await asyncio.wait_for(self._select_one(), timeout=self.timeout)
