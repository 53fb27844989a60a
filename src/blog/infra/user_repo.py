# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from blog.infra.db import Database
from blog.infra.models import User


@dataclass(frozen=True)
class UserRecord:
    id: int
    email: str
    name: Optional[str]
    password_hash: str


def _to_record(row: User) -> UserRecord:
    return UserRecord(id=row.id, email=row.email, name=row.name, password_hash=row.password)


class UserRepository:
    def __init__(self, db: Database):
        self.db = db

    def get_by_id(self, user_id: int) -> Optional[UserRecord]:
        with self.db.session() as s:
            row = s.get(User, user_id)
            return _to_record(row) if row else None

    def get_by_email(self, email: str) -> Optional[UserRecord]:
        # Exact match: emails are compared case-sensitively.
        with self.db.session() as s:
            row = s.query(User).filter(User.email == email).first()
            return _to_record(row) if row else None

    def create(self, *, email: str, password_hash: str, name: Optional[str] = None) -> UserRecord:
        """Insert a user row.

        A duplicate email raises ``sqlalchemy.exc.IntegrityError``; callers are
        expected to have checked uniqueness first.
        """
        with self.db.session() as s:
            row = User(email=email, password=password_hash, name=name)
            s.add(row)
            s.flush()
            return _to_record(row)
