from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from ..core.exceptions import StorageUnavailable
from .schema import metadata

logger = logging.getLogger(__name__)


@dataclass
class DBConfig:
    url: str
    echo: bool = False


class DatabaseConnection:
    """Holds the async engine for the local store.

    Note: The engine exists only between open() and close(); using the store
    outside that window raises StorageUnavailable.
    """

    def __init__(self, config: DBConfig):
        self._config = config
        self._engine: Optional[AsyncEngine] = None

    async def open(self) -> None:
        if self._engine is not None:
            return
        url = make_url(self._config.url)
        if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
            Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)

        engine = create_async_engine(self._config.url, echo=self._config.echo)
        try:
            async with engine.begin() as conn:
                await conn.run_sync(metadata.create_all)
        except SQLAlchemyError as exc:
            await engine.dispose()
            raise StorageUnavailable(f"Cannot open local store: {exc}") from exc
        self._engine = engine
        logger.debug("Local store opened at %s", self._config.url)

    async def close(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None

    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise StorageUnavailable("Local store has not been opened")
        return self._engine
