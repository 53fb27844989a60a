# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from blog.infra.models import Base

_logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = os.getenv("BLOG_DATABASE_URL", "sqlite:///data/blog.db")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


class Database:
    """Shared persistence handle.

    One instance per process: ``init()`` at startup, ``close()`` at shutdown.
    Services receive it explicitly instead of importing a global engine.
    """

    def __init__(self, url: str = DEFAULT_DATABASE_URL):
        self.url = url
        self._engine: Optional[Engine] = None
        self._sessionmaker: Optional[sessionmaker] = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database not initialised; call init() first")
        return self._engine

    def init(self) -> None:
        if self._engine is not None:
            return
        url = make_url(self.url)
        connect_args = {}
        if url.get_backend_name() == "sqlite":
            connect_args["check_same_thread"] = False
            if url.database and url.database != ":memory:":
                Path(url.database).parent.mkdir(parents=True, exist_ok=True)

        engine = create_engine(url, connect_args=connect_args)
        if url.get_backend_name() == "sqlite":
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)

        Base.metadata.create_all(bind=engine)
        self._engine = engine
        self._sessionmaker = sessionmaker(bind=engine, autocommit=False, autoflush=False)
        _logger.info("Database initialised at %s", url.render_as_string(hide_password=True))

    def close(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._sessionmaker = None
        _logger.info("Database closed")

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Unit of work: commit on success, roll back and re-raise on error."""
        if self._sessionmaker is None:
            raise RuntimeError("Database not initialised; call init() first")
        db = self._sessionmaker()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
