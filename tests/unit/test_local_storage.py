"""
Tests for the local cache adapters.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from src.adapters.local_storage import (
    InMemoryLocalCache,
    JsonFileLocalCache,
    create_local_cache,
)
from src.core.errors import LocalCacheError


@pytest.fixture
def cache(tmp_path: Path) -> JsonFileLocalCache:
    return JsonFileLocalCache(tmp_path / "cache", key_prefix="test")


class TestJsonFileLocalCache:
    """Tests for JsonFileLocalCache."""

    def test_set_and_get(self, cache: JsonFileLocalCache) -> None:
        cache.set("dashboard.period", "30d")

        assert cache.get("dashboard.period") == "30d"

    def test_missing_key_returns_default(self, cache: JsonFileLocalCache) -> None:
        assert cache.get("nope") is None
        assert cache.get("nope", []) == []

    def test_structured_values(self, cache: JsonFileLocalCache) -> None:
        posts = [{"id": "a", "title": "Hello", "tags": ["x"]}]
        cache.set("blog_posts", posts)

        assert cache.get("blog_posts") == posts

    def test_overwrite_leaves_no_temp_files(
        self, cache: JsonFileLocalCache, tmp_path: Path
    ) -> None:
        cache.set("k", 1)
        cache.set("k", 2)

        assert cache.get("k") == 2
        assert list((tmp_path / "cache").glob("*.tmp")) == []
        assert len(list((tmp_path / "cache").glob("*.json"))) == 1

    def test_delete(self, cache: JsonFileLocalCache) -> None:
        cache.set("k", 1)

        assert cache.delete("k") is True
        assert cache.delete("k") is False
        assert cache.get("k") is None

    def test_keys_are_namespaced(self, tmp_path: Path) -> None:
        ours = JsonFileLocalCache(tmp_path, key_prefix="ours")
        theirs = JsonFileLocalCache(tmp_path, key_prefix="theirs")
        ours.set("metrics.7d.daily", {})
        ours.set("blog_posts", [])
        theirs.set("blog_posts", ["other"])

        assert sorted(ours.keys()) == ["blog_posts", "metrics.7d.daily"]
        assert ours.get("blog_posts") == []
        assert theirs.get("blog_posts") == ["other"]

    def test_similar_keys_do_not_collide(self, cache: JsonFileLocalCache) -> None:
        cache.set("a/b", 1)
        cache.set("a_b", 2)

        assert cache.get("a/b") == 1
        assert cache.get("a_b") == 2

    def test_corrupt_file_treated_as_absent(
        self, cache: JsonFileLocalCache, tmp_path: Path
    ) -> None:
        cache.set("k", {"ok": True})
        (path,) = (tmp_path / "cache").glob("*.json")
        path.write_text("{not json", encoding="utf-8")

        assert cache.get("k", "fallback") == "fallback"
        assert cache.keys() == []

    def test_unserializable_value_raises(self, cache: JsonFileLocalCache) -> None:
        with pytest.raises(LocalCacheError):
            cache.set("k", object())

    def test_unwritable_directory_raises(self, tmp_path: Path) -> None:
        cache = JsonFileLocalCache(tmp_path / "missing", create_dirs=False)

        with pytest.raises(LocalCacheError):
            cache.set("k", 1)


class TestInMemoryLocalCache:
    """Tests for InMemoryLocalCache."""

    def test_values_are_copies(self) -> None:
        cache = InMemoryLocalCache()
        value = {"items": [1]}
        cache.set("k", value)
        value["items"].append(2)

        stored = cache.get("k")
        stored["items"].append(3)

        assert cache.get("k") == {"items": [1]}

    def test_keys_and_clear(self) -> None:
        cache = InMemoryLocalCache(key_prefix="p")
        cache.set("a", 1)
        cache.set("b", 2)

        assert sorted(cache.keys()) == ["a", "b"]

        cache.clear()
        assert cache.keys() == []


class TestFactory:
    """Tests for create_local_cache."""

    def test_env_var_sets_directory(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CACHE_PATH", str(tmp_path / "from-env"))

        cache = create_local_cache()

        assert cache.base_path == tmp_path / "from-env"

    def test_explicit_path_wins(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CACHE_PATH", str(tmp_path / "from-env"))

        cache = create_local_cache(tmp_path / "explicit", key_prefix="x")

        assert cache.base_path == tmp_path / "explicit"
        assert cache.key_prefix == "x"
