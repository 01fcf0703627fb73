"""Published news articles."""

from __future__ import annotations

import re
import time
from typing import Any

from darkheim.contracts import DatabaseInterface


def slugify(title: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")
    return slug or "article"


class NewsService:
    def __init__(self, db: DatabaseInterface) -> None:
        self._db = db

    def create(self, title: str, body: str = "", *, publish: bool = False) -> int:
        base = slugify(title)
        slug, n = base, 1
        while self._db.fetch("SELECT id FROM news WHERE slug = ?", (slug,)) is not None:
            n += 1
            slug = f"{base}-{n}"
        self._db.execute(
            "INSERT INTO news (title, slug, body, published, published_at) VALUES (?, ?, ?, ?, ?)",
            (title, slug, body, int(publish), time.time() if publish else None),
        )
        return self._db.last_insert_id()

    def publish(self, article_id: int) -> bool:
        return (
            self._db.execute(
                "UPDATE news SET published = 1, published_at = ? WHERE id = ? AND published = 0",
                (time.time(), article_id),
            )
            > 0
        )

    def get_by_slug(self, slug: str) -> dict[str, Any] | None:
        return self._db.fetch("SELECT * FROM news WHERE slug = ? AND published = 1", (slug,))

    def latest(self, limit: int = 10) -> list[dict[str, Any]]:
        return self._db.fetch_all(
            "SELECT * FROM news WHERE published = 1 ORDER BY published_at DESC, id DESC LIMIT ?",
            (limit,),
        )
