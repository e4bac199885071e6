# SPDX-License-Identifier: Apache-2.0
"""DB connection, session and transaction management."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import event
from sqlmodel import Session, SQLModel, create_engine

from campusconnect import models  # noqa: F401  registers all tables on SQLModel.metadata
from campusconnect.config import settings

logger = logging.getLogger(__name__)


def _on_sqlite_connect(dbapi_connection, connection_record) -> None:
    # Hand transaction control to SQLAlchemy so BEGIN is emitted by _on_sqlite_begin.
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _on_sqlite_begin(conn) -> None:
    if conn.get_execution_options().get("immediate"):
        conn.exec_driver_sql("BEGIN IMMEDIATE")
    else:
        conn.exec_driver_sql("BEGIN")


class Store:
    """Handle on the relational store, passed explicitly to every service.

    ``session()`` is for reads. ``transaction()`` is for any check-then-write
    sequence: on SQLite it opens with ``BEGIN IMMEDIATE``, so the store's write
    lock is held from the first read and concurrent writers queue behind it.
    """

    def __init__(self, url: str, busy_timeout: float | None = None) -> None:
        self.url = url
        connect_args: dict = {}
        if url.startswith("sqlite"):
            connect_args = {
                "check_same_thread": False,
                "timeout": busy_timeout if busy_timeout is not None else settings.sqlite_busy_timeout,
            }
        self.engine = create_engine(url, connect_args=connect_args)
        if url.startswith("sqlite"):
            event.listen(self.engine, "connect", _on_sqlite_connect)
            event.listen(self.engine, "begin", _on_sqlite_begin)

    @contextmanager
    def session(self) -> Iterator[Session]:
        with Session(self.engine, expire_on_commit=False) as session:
            yield session

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        with Session(self.engine, expire_on_commit=False) as session:
            session.connection(execution_options={"immediate": True})
            try:
                yield session
                session.commit()
            except Exception:
                session.rollback()
                raise

    def create_all(self) -> None:
        """Create all tables and seed the badge catalog."""
        from campusconnect.services.badge_service import seed_catalog

        SQLModel.metadata.create_all(self.engine)
        with self.transaction() as session:
            added = seed_catalog(session)
        if added:
            logger.info("Seeded %d badge(s) into the catalog", added)

    def dispose(self) -> None:
        self.engine.dispose()


def get_store(request: Request) -> Store:
    """The app's Store (for FastAPI Depends)."""
    return request.app.state.store
