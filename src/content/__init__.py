"""Content persistence — the JSON-backed article store."""

from notemaster.content.store import STORE_FILENAME, ArticleStore

__all__ = ["STORE_FILENAME", "ArticleStore"]
