"""Async database manager.

Thin wrapper around an SQLAlchemy asyncio engine. Services build Core
statements from the schema tables and run them through ``read``/``write``,
or group several statements atomically inside ``transaction()``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import bittensor as bt
from sqlalchemy import event
from sqlalchemy.engine import Result
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.sql import Executable

from judgeflow.config.core import DatabaseSettings

from .schema import Base


def _rows(result: Result, mappings: bool) -> list[Any]:
    if not result.returns_rows:
        return []
    if mappings:
        return [dict(m) for m in result.mappings().all()]
    return list(result.all())


class DBM:
    """Owns the engine; hands out connections and transactions."""

    def __init__(self, settings: DatabaseSettings):
        self.settings = settings
        self.engine: AsyncEngine = self._create_engine(settings)

    @staticmethod
    def _create_engine(settings: DatabaseSettings) -> AsyncEngine:
        connect_args: dict[str, Any] = {}
        is_sqlite = settings.url.startswith("sqlite")
        if is_sqlite:
            connect_args["timeout"] = settings.busy_timeout_seconds
        engine = create_async_engine(settings.url, echo=settings.echo, connect_args=connect_args)

        if is_sqlite:
            @event.listens_for(engine.sync_engine, "connect")
            def _sqlite_pragmas(dbapi_conn, _record):
                cursor = dbapi_conn.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

        return engine

    async def create_schema(self) -> None:
        """Create all tables (idempotent). Production deployments use Alembic."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def read(
        self,
        query: Executable,
        params: dict[str, Any] | None = None,
        mappings: bool = False,
    ) -> list[Any]:
        async with self.engine.connect() as conn:
            result = await conn.execute(query, params or {})
            return _rows(result, mappings)

    async def write(self, query: Executable, params: dict[str, Any] | None = None) -> int:
        """Execute a single statement in its own transaction. Returns rowcount."""
        async with self.engine.begin() as conn:
            result = await conn.execute(query, params or {})
            return result.rowcount

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncConnection]:
        """Commit on clean exit, roll back on any exception."""
        async with self.engine.begin() as conn:
            yield conn

    async def dispose(self) -> None:
        await self.engine.dispose()
        bt.logging.debug({"dbm": "disposed"})


async def fetch_all(
    conn: AsyncConnection,
    query: Executable,
    params: dict[str, Any] | None = None,
) -> list[dict[str, Any]]:
    """Run a query on an open connection and return plain dict rows."""
    result = await conn.execute(query, params or {})
    return _rows(result, mappings=True)


async def fetch_one(
    conn: AsyncConnection,
    query: Executable,
    params: dict[str, Any] | None = None,
) -> dict[str, Any] | None:
    rows = await fetch_all(conn, query, params)
    return rows[0] if rows else None


__all__ = ["DBM", "fetch_all", "fetch_one"]
