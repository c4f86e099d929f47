"""Key-value storage for persisted snapshots, with memory / file / Redis swap.

Values are stored as raw strings (serialised JSON snapshots). Decoding is left
to the caller so that a corrupt entry can be detected and replaced by an empty
collection instead of failing here.

Usage:
    from storage_backend import create_backend
    backend = create_backend(app.config)
    backend.set("acad_subjects", "[]")
    raw = backend.get("acad_subjects")
"""

from __future__ import annotations

import logging
import re
import threading
from pathlib import Path
from typing import Any, Mapping, Protocol

logger = logging.getLogger(__name__)

# ── Protocol ───────────────────────────────────────────────

class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...
    def delete(self, key: str) -> None: ...


# ── In-Memory Implementation ──────────────────────────────

class InMemoryStore:
    """Process-local dict. Used by tests and as a last resort."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


# ── File Implementation ───────────────────────────────────

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class FileStore:
    """One file per key under a directory: <dir>/<key>.json."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning("Could not read %s: %s", path, e)
            return None

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


# ── Redis Implementation ──────────────────────────────────

class RedisStore:
    """Wraps redis.Redis. Keys are namespaced with a prefix."""

    def __init__(self, redis_client, prefix: str = "studytracker:") -> None:
        self._redis = redis_client
        self._prefix = prefix

    def get(self, key: str) -> str | None:
        raw = self._redis.get(self._prefix + key)
        if raw is None:
            return None
        return raw.decode("utf-8") if isinstance(raw, bytes) else raw

    def set(self, key: str, value: str) -> None:
        self._redis.set(self._prefix + key, value)

    def delete(self, key: str) -> None:
        self._redis.delete(self._prefix + key)


# ── Factory ───────────────────────────────────────────────

def create_backend(config: Mapping[str, Any]) -> KeyValueStore:
    """Build the backend named by STORAGE_BACKEND.

    "redis" falls back to the file backend when REDIS_URL is empty, the redis
    package is missing or the server does not answer.
    """
    kind = (config.get("STORAGE_BACKEND") or "file").lower()
    storage_dir = config.get("STORAGE_DIR") or "storage"

    if kind == "memory":
        logger.info("Storage backend: in-memory")
        return InMemoryStore()

    if kind == "redis":
        redis_url = config.get("REDIS_URL", "")
        if redis_url:
            try:
                import redis
                client = redis.Redis.from_url(redis_url)
                client.ping()
                logger.info("Storage backend: Redis (%s)", redis_url)
                return RedisStore(client)
            except ImportError:
                logger.info("redis package not installed — falling back to file storage.")
            except Exception as e:
                logger.warning("Redis connection failed (%s) — falling back to file storage.", e)
        else:
            logger.warning("STORAGE_BACKEND=redis but REDIS_URL is empty — using file storage.")

    elif kind != "file":
        logger.warning("Unknown STORAGE_BACKEND %r — using file storage.", kind)

    logger.info("Storage backend: files in %s", storage_dir)
    return FileStore(storage_dir)
