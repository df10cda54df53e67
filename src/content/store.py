"""JSON-backed article store.

Persists all Articles in a single JSON file, loaded on init and saved
after every write operation.  Records are keyed by ``Article.id``; every
write replaces the file atomically, so a crash mid-batch never leaves a
half-written record behind.  A file that cannot be read is renamed to a
timestamped ``.corrupt`` backup before the store starts over.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, Field

from notemaster.article.models import Article, ArticleStatus

logger = logging.getLogger(__name__)

STORE_FILENAME = ".notemaster-articles.json"

# Alias to avoid shadowing by ArticleStore.list method
_list = list


class _StoreData(BaseModel):
    """Internal wrapper for JSON serialization."""

    articles: list[Article] = Field(default_factory=list)


def _atomic_write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=path.name, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


class ArticleStore:
    """Key-by-id CRUD store for generated articles."""

    def __init__(self, output_dir: Path) -> None:
        self._path = output_dir / STORE_FILENAME
        self._data = self._load()

    @property
    def path(self) -> Path:
        return self._path

    # ── Private helpers ──────────────────────────────────────────

    def _load(self) -> _StoreData:
        if not self._path.exists():
            return _StoreData()
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            return _StoreData.model_validate(raw)
        except (json.JSONDecodeError, ValueError, KeyError):
            backup = self._quarantine()
            logger.warning(
                "Corrupt article store at %s, moved to %s, starting fresh", self._path, backup
            )
            return _StoreData()

    def _quarantine(self) -> Path:
        """Move an unreadable store file aside so the next save cannot overwrite it."""
        stamp = datetime.now(tz=UTC).strftime("%Y%m%dT%H%M%S%f")
        backup = self._path.with_name(f"{self._path.name}.{stamp}.corrupt")
        os.replace(self._path, backup)
        return backup

    def _save(self) -> None:
        _atomic_write(self._path, self._data.model_dump_json(indent=2))

    def _find(self, article_id: str) -> Article | None:
        for article in self._data.articles:
            if article.id == article_id:
                return article
        return None

    def _require(self, article_id: str) -> Article:
        article = self._find(article_id)
        if article is None:
            raise KeyError(article_id)
        return article

    # ── Write operations ─────────────────────────────────────────

    def save(self, article: Article) -> None:
        """Insert or replace an article by id."""
        self._data.articles = [a for a in self._data.articles if a.id != article.id]
        self._data.articles.append(article)
        self._save()
        logger.debug("Saved article %s (%s)", article.id, article.title)

    def delete(self, article_id: str) -> bool:
        """Remove an article.  Returns False if the id was unknown."""
        before = len(self._data.articles)
        self._data.articles = [a for a in self._data.articles if a.id != article_id]
        if len(self._data.articles) == before:
            return False
        self._save()
        return True

    def update_status(self, article_id: str, status: ArticleStatus) -> Article:
        """Update the lifecycle status of an article.

        Raises KeyError if the id does not exist.
        """
        article = self._require(article_id)
        article.status = status
        self._save()
        return article

    # ── Read operations ──────────────────────────────────────────

    def get(self, article_id: str) -> Article | None:
        """Return an article by id, or None if not found."""
        return self._find(article_id)

    def get_all(self) -> _list[Article]:
        """All articles, most recently created first."""
        return sorted(self._data.articles, key=lambda a: a.created_at, reverse=True)

    def list(self, status: ArticleStatus | None = None) -> _list[Article]:
        """Articles (most recent first), optionally filtered by status."""
        results = self.get_all()
        if status is not None:
            results = [a for a in results if a.status == status]
        return results

    def scheduled(self) -> _list[Article]:
        """Scheduled articles ordered by publish time."""
        pending = [a for a in self._data.articles if a.status == ArticleStatus.SCHEDULED]
        return sorted(pending, key=lambda a: (a.scheduled_at is None, a.scheduled_at or a.created_at))

    def exists(self, article_id: str) -> bool:
        """Check whether an article with this id exists."""
        return self._find(article_id) is not None
