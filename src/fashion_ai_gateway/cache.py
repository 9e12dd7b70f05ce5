"""Keyed, time-expiring result cache over a pluggable key/value store."""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, Generic, Protocol, TypeVar

from pydantic import BaseModel, Field, ValidationError

from .config import AppConfig
from .schemas import ImageInput

logger = logging.getLogger("fashion_ai_gateway.cache")

CRITIQUE_NAMESPACE = "critique"
DESIGN_NAMESPACE = "design"
STYLIST_NAMESPACE = "stylist"
FIT_NAMESPACE = "fit_analysis"
IMAGE_TRANSFORM_NAMESPACE = "image_transform"
ANALYSIS_NAMESPACES = (CRITIQUE_NAMESPACE, DESIGN_NAMESPACE, STYLIST_NAMESPACE, FIT_NAMESPACE)

T = TypeVar("T", bound=BaseModel)


class KeyValueStore(Protocol):
    """Minimal persistent key/value contract with JSON-serializable values."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...

    def remove(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...


class MemoryStore:
    """Process-local store; safe for concurrent readers and writers."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            raw = self._data.get(key)
        return None if raw is None else json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        # Serialize eagerly so stored entries are immutable snapshots.
        raw = json.dumps(value)
        with self._lock:
            self._data[key] = raw

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._data)


class JsonFileStore:
    """One JSON document per key under ``directory``; writes replace atomically."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.directory / f"{digest}.json"

    def get(self, key: str) -> Any | None:
        path = self._path(key)
        if not path.exists():
            return None
        document = json.loads(path.read_text(encoding="utf-8"))
        return document.get("value")

    def set(self, key: str, value: Any) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        payload = json.dumps({"key": key, "value": value})
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, self._path(key))
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def keys(self) -> list[str]:
        if not self.directory.exists():
            return []
        found: list[str] = []
        for path in sorted(self.directory.glob("*.json")):
            try:
                document = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError):
                continue
            key = document.get("key")
            if isinstance(key, str):
                found.append(key)
        return found


class CacheEntry(BaseModel):
    """Stored envelope around a cached payload."""

    key: str
    payload: Any
    inserted_at: float = Field(..., description="Insertion time (epoch seconds).")


class ResultCache(Generic[T]):
    """Namespaced TTL cache; expired entries are evicted lazily on lookup."""

    def __init__(
        self,
        store: KeyValueStore,
        namespace: str,
        ttl_s: float,
        model: type[T] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.namespace = namespace
        self.ttl_s = ttl_s
        self.model = model
        self._clock = clock

    def _full_key(self, key: str) -> str:
        return f"{self.namespace}_{key}"

    def get(self, key: str) -> T | Any | None:
        full_key = self._full_key(key)
        try:
            raw = self.store.get(full_key)
            if raw is None:
                return None
            entry = CacheEntry.model_validate(raw)
            if self._clock() - entry.inserted_at > self.ttl_s:
                self.store.remove(full_key)
                return None
            if self.model is None:
                return entry.payload
            return self.model.model_validate(entry.payload)
        except (OSError, ValueError, ValidationError) as exc:
            logger.warning("cache_read_failed namespace=%s error=%s", self.namespace, exc)
            return None

    def put(self, key: str, value: T | Any) -> None:
        payload = value.model_dump(mode="json") if isinstance(value, BaseModel) else value
        entry = CacheEntry(key=key, payload=payload, inserted_at=self._clock())
        try:
            self.store.set(self._full_key(key), entry.model_dump(mode="json"))
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("cache_write_failed namespace=%s error=%s", self.namespace, exc)

    def remove(self, key: str) -> None:
        try:
            self.store.remove(self._full_key(key))
        except OSError as exc:
            logger.warning("cache_remove_failed namespace=%s error=%s", self.namespace, exc)

    def clear(self) -> int:
        """Remove every entry in this namespace; returns how many were removed."""

        prefix = f"{self.namespace}_"
        removed = 0
        try:
            for key in self.store.keys():
                if key.startswith(prefix):
                    self.store.remove(key)
                    removed += 1
        except OSError as exc:
            logger.warning("cache_clear_failed namespace=%s error=%s", self.namespace, exc)
        return removed


class CacheRegistry:
    """Hands out one ``ResultCache`` per namespace over a shared store."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        analysis_ttl_s: float,
        transform_ttl_s: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.analysis_ttl_s = analysis_ttl_s
        self.transform_ttl_s = transform_ttl_s
        self._clock = clock
        self._caches: dict[str, ResultCache[Any]] = {}

    def for_namespace(self, namespace: str, model: type[T] | None = None) -> ResultCache[T]:
        cache = self._caches.get(namespace)
        if cache is None:
            cache = ResultCache(self.store, namespace, self.ttl_for(namespace), model=model, clock=self._clock)
            self._caches[namespace] = cache
        elif model is not None and cache.model is None:
            cache.model = model
        return cache

    def ttl_for(self, namespace: str) -> float:
        return self.transform_ttl_s if namespace == IMAGE_TRANSFORM_NAMESPACE else self.analysis_ttl_s

    def clear(self, namespaces: tuple[str, ...] = (*ANALYSIS_NAMESPACES, IMAGE_TRANSFORM_NAMESPACE)) -> int:
        return sum(self.for_namespace(namespace).clear() for namespace in namespaces)


def file_key(image: ImageInput) -> str:
    """Identity of an uploaded image: name, byte size, and modification time."""

    return f"{image.name}_{image.size}_{int(image.last_modified)}"


def make_key(*params: Any) -> str:
    """Join key parameters with ``_``; ``None`` contributes an empty segment."""

    return "_".join("" if param is None else str(param) for param in params)


def build_cache(app_config: AppConfig) -> CacheRegistry | None:
    """Create the configured cache, or ``None`` when caching is disabled."""

    if not app_config.cache_enabled:
        return None
    store: KeyValueStore
    if app_config.cache_backend == "file":
        store = JsonFileStore(app_config.cache_dir)
    else:
        store = MemoryStore()
    return CacheRegistry(
        store,
        analysis_ttl_s=app_config.analysis_ttl_s,
        transform_ttl_s=app_config.transform_ttl_s,
    )
