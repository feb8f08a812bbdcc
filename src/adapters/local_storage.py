"""
Local Cache Adapter.

Implements the LocalCachePort interface on the local filesystem.
Provides the fallback tier for remote collections and the sole store for
preferences and last-good snapshots.

Key layout:
- Every key is namespaced as "{key_prefix}:{key}"
- One JSON file per namespaced key: {base_path}/{safe_name}-{digest}.json
- Collections are stored as a single JSON array under one key

Invariants:
- Writes go to a temp file first and are moved into place with os.replace,
  so a crashed write never leaves a half-written value behind
- A corrupt or unreadable file is treated as absent (logged, never raised)
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any

from src.core.errors import LocalCacheError

logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "affiliate-console"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def namespaced(prefix: str, key: str) -> str:
    """Full cache key for a prefix and a logical key."""
    return f"{prefix}:{key}"


class JsonFileLocalCache:
    """
    JSON-file implementation of LocalCachePort.

    Example: key "blog_posts" with prefix "affiliate-console"
    -> {base_path}/affiliate-console_blog_posts-1a2b3c4d.json
    """

    def __init__(
        self,
        base_path: str | Path,
        *,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        create_dirs: bool = True,
    ) -> None:
        """
        Initialize the file cache.

        Args:
            base_path: Directory holding one file per key
            key_prefix: Namespace prepended to every key
            create_dirs: Whether to create the directory if it doesn't exist
        """
        self.base_path = Path(base_path)
        self.key_prefix = key_prefix

        if create_dirs:
            self.base_path.mkdir(parents=True, exist_ok=True)

    def _key_to_path(self, key: str) -> Path:
        """Convert a logical key to its file path."""
        full_key = namespaced(self.key_prefix, key)
        # Readable stem plus digest; the digest keeps distinct keys distinct
        safe = _UNSAFE_CHARS.sub("_", full_key).strip("_")[:80]
        digest = hashlib.sha256(full_key.encode("utf-8")).hexdigest()[:8]
        return self.base_path / f"{safe}-{digest}.json"

    def _read_entry(self, path: Path) -> dict[str, Any] | None:
        try:
            with open(path, encoding="utf-8") as f:
                entry = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable cache file %s: %s", path.name, e)
            return None

        if not isinstance(entry, dict) or "value" not in entry:
            logger.warning("Ignoring malformed cache file %s", path.name)
            return None
        return entry

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._read_entry(self._key_to_path(key))
        if entry is None:
            return default
        return entry["value"]

    def set(self, key: str, value: Any) -> None:
        path = self._key_to_path(key)
        entry = {"key": namespaced(self.key_prefix, key), "value": value}

        try:
            payload = json.dumps(entry)
        except (TypeError, ValueError) as e:
            raise LocalCacheError(key, f"value is not JSON-serializable: {e}") from e

        try:
            fd, tmp_name = tempfile.mkstemp(dir=self.base_path, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise LocalCacheError(key, str(e)) from e

    def delete(self, key: str) -> bool:
        path = self._key_to_path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise LocalCacheError(key, str(e)) from e
        return True

    def keys(self) -> list[str]:
        prefix = f"{self.key_prefix}:"
        found = []
        for path in sorted(self.base_path.glob("*.json")):
            entry = self._read_entry(path)
            if entry is None:
                continue
            full_key = str(entry.get("key", ""))
            if full_key.startswith(prefix):
                found.append(full_key[len(prefix) :])
        return found


class InMemoryLocalCache:
    """
    In-memory LocalCachePort for development and tests.

    Values are held as JSON text so callers never share mutable state with
    the cache, matching the file-backed behavior.
    """

    def __init__(self, *, key_prefix: str = DEFAULT_KEY_PREFIX) -> None:
        self.key_prefix = key_prefix
        self._data: dict[str, str] = {}

    def get(self, key: str, default: Any = None) -> Any:
        raw = self._data.get(namespaced(self.key_prefix, key))
        if raw is None:
            return default
        return json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        try:
            self._data[namespaced(self.key_prefix, key)] = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise LocalCacheError(key, f"value is not JSON-serializable: {e}") from e

    def delete(self, key: str) -> bool:
        return self._data.pop(namespaced(self.key_prefix, key), None) is not None

    def keys(self) -> list[str]:
        prefix = f"{self.key_prefix}:"
        return [k[len(prefix) :] for k in self._data if k.startswith(prefix)]

    def clear(self) -> None:
        self._data.clear()


def create_local_cache(
    base_path: str | Path | None = None,
    *,
    key_prefix: str = DEFAULT_KEY_PREFIX,
    env_var: str = "CACHE_PATH",
    default_path: str = "./data/cache",
) -> JsonFileLocalCache:
    """
    Factory function to create JsonFileLocalCache from config.

    Args:
        base_path: Explicit cache directory (overrides env var)
        key_prefix: Namespace prepended to every key
        env_var: Environment variable name for the cache directory
        default_path: Default directory if not configured

    Returns:
        Configured JsonFileLocalCache instance
    """
    if base_path is None:
        base_path = os.environ.get(env_var, default_path)

    return JsonFileLocalCache(base_path, key_prefix=key_prefix)
