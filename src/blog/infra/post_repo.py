# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import joinedload

from blog.infra.db import Database
from blog.infra.models import Post

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PostRecord:
    id: int
    title: str
    content: str
    published: bool
    author_id: int
    created_at: datetime
    author_name: Optional[str] = None
    author_email: str = ""

    @property
    def status(self) -> str:
        return "published" if self.published else "draft"


def _to_record(row: Post) -> PostRecord:
    author = row.author
    return PostRecord(
        id=row.id,
        title=row.title,
        content=row.content,
        published=bool(row.published),
        author_id=row.author_id,
        created_at=row.created_at,
        author_name=author.name if author else None,
        author_email=author.email if author else "",
    )


class PostRepository:
    """CRUD over posts. Ownership checks live with the callers."""

    def __init__(self, db: Database):
        self.db = db

    def _newest_first(self, s):
        return (
            s.query(Post)
            .options(joinedload(Post.author))
            .order_by(Post.created_at.desc(), Post.id.desc())
        )

    def list_published(self, limit: Optional[int] = None) -> List[PostRecord]:
        with self.db.session() as s:
            q = self._newest_first(s).filter(Post.published.is_(True))
            if limit is not None:
                q = q.limit(limit)
            return [_to_record(r) for r in q.all()]

    def list_by_author(self, user_id: int) -> List[PostRecord]:
        with self.db.session() as s:
            q = self._newest_first(s).filter(Post.author_id == user_id)
            return [_to_record(r) for r in q.all()]

    def get_by_id(self, post_id: int) -> Optional[PostRecord]:
        with self.db.session() as s:
            row = s.query(Post).options(joinedload(Post.author)).filter(Post.id == post_id).first()
            return _to_record(row) if row else None

    def create(self, *, title: str, content: str, author_id: int, published: bool = False) -> PostRecord:
        # Not retried on failure: a repeated create would duplicate the post.
        with self.db.session() as s:
            row = Post(title=title, content=content, author_id=author_id, published=bool(published))
            s.add(row)
            s.flush()
            s.refresh(row)
            rec = _to_record(row)
        _logger.info("Created post %s by user %s (published=%s)", rec.id, author_id, rec.published)
        return rec

    def update(
        self,
        post_id: int,
        *,
        title: Optional[str] = None,
        content: Optional[str] = None,
        published: Optional[bool] = None,
    ) -> PostRecord:
        """Partial update; fields left as None keep their stored value."""
        with self.db.session() as s:
            row = s.get(Post, post_id)
            if row is None:
                raise LookupError(f"Post {post_id} not found")
            if title is not None:
                row.title = title
            if content is not None:
                row.content = content
            if published is not None:
                row.published = bool(published)
            s.flush()
            rec = _to_record(row)
        _logger.info("Updated post %s", post_id)
        return rec

    def delete(self, post_id: int) -> None:
        with self.db.session() as s:
            row = s.get(Post, post_id)
            if row is None:
                return
            s.delete(row)
        _logger.info("Deleted post %s", post_id)
