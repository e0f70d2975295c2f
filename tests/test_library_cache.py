"""
Tests for the LibraryCache persistent store.
"""
import asyncio
import json
from pathlib import Path

import pytest

from steam_library.cache import library_cache
from steam_library.cache.library_cache import LibraryCache
from steam_library.stores.base import LibraryItem


def make_item(app_id: int, title: str = "Game", **kwargs) -> LibraryItem:
    return LibraryItem(app_id=app_id, title=title, **kwargs)


@pytest.mark.asyncio
async def test_load_missing_cache_returns_empty(cache):
    assert await cache.load() == {}


@pytest.mark.asyncio
async def test_save_then_load(cache):
    collection = {
        1: make_item(1, "Foo", playtime_minutes=30, description="A game."),
        2: make_item(2, "Bar"),
    }
    assert await cache.save(collection) is True

    loaded = await cache.load()
    assert set(loaded) == {1, 2}
    assert loaded[1].title == "Foo"
    assert loaded[1].playtime_minutes == 30
    assert loaded[1].description == "A game."


@pytest.mark.asyncio
async def test_save_creates_missing_directory(tmp_path: Path):
    cache = LibraryCache(tmp_path / "deep" / "nested" / "dir")
    assert await cache.save({1: make_item(1)}) is True
    assert cache.cache_path.exists()


@pytest.mark.asyncio
async def test_cache_document_layout(cache):
    await cache.save({7: make_item(7, "Seven")})
    with open(cache.cache_path) as f:
        data = json.load(f)
    assert data["version"] == 1
    assert data["games"][0]["app_id"] == 7
    assert data["games"][0]["title"] == "Seven"


@pytest.mark.asyncio
async def test_malformed_json_treated_as_no_cache(cache):
    cache.cache_path.parent.mkdir(parents=True)
    cache.cache_path.write_text("{not json")
    assert await cache.load() == {}


@pytest.mark.asyncio
async def test_unexpected_layout_treated_as_no_cache(cache):
    cache.cache_path.parent.mkdir(parents=True)
    cache.cache_path.write_text(json.dumps({"games": "nope"}))
    assert await cache.load() == {}


@pytest.mark.asyncio
async def test_legacy_list_layout_is_loaded(cache):
    cache.cache_path.parent.mkdir(parents=True)
    cache.cache_path.write_text(json.dumps([
        {"AppId": 10, "Title": "Legacy", "PlaytimeMinutes": 5, "Description": "Old", "ImagePath": ""},
        {"Title": "No id"},
    ]))

    loaded = await cache.load()
    assert list(loaded) == [10]
    assert loaded[10].title == "Legacy"
    assert loaded[10].playtime_minutes == 5


@pytest.mark.asyncio
async def test_load_clears_image_path_for_missing_file(cache, tmp_path):
    existing = tmp_path / "cover.jpg"
    existing.write_bytes(b"x")
    await cache.save({
        1: make_item(1, image_path=str(existing)),
        2: make_item(2, image_path=str(tmp_path / "gone.jpg")),
    })

    loaded = await cache.load()
    assert loaded[1].image_path == str(existing)
    assert loaded[2].image_path == ""


@pytest.mark.asyncio
async def test_save_failure_is_swallowed(tmp_path: Path):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file where the data dir should be")
    cache = LibraryCache(blocker)

    assert await cache.save({1: make_item(1)}) is False


@pytest.mark.asyncio
async def test_save_leaves_no_temp_files(cache):
    await cache.save({1: make_item(1)})
    await cache.save({2: make_item(2)})
    leftovers = [p.name for p in cache.data_dir.iterdir() if p.name.endswith(".tmp")]
    assert leftovers == []


@pytest.mark.asyncio
async def test_concurrent_saves_and_loads_never_see_partial_document(cache):
    big = {i: make_item(i, f"Game {i}", description="x" * 200) for i in range(300)}
    small = {1: make_item(1, "Only")}

    results = await asyncio.gather(
        cache.save(big),
        cache.load(),
        cache.save(small),
        cache.load(),
        cache.save(big),
        cache.load(),
    )

    for loaded in results[1::2]:
        assert len(loaded) in (0, 1, 300)
    # Last save wins
    assert len(await cache.load()) == 300


@pytest.mark.asyncio
async def test_sync_state_defaults_to_false(cache):
    assert await cache.load_sync_state() is False


@pytest.mark.asyncio
async def test_sync_state_round_trip(cache):
    assert await cache.save_sync_state(True) is True
    assert await cache.load_sync_state() is True
    await cache.save_sync_state(False)
    assert await cache.load_sync_state() is False


@pytest.mark.asyncio
async def test_malformed_sync_state_reads_false(cache):
    cache.sync_state_path.parent.mkdir(parents=True)
    cache.sync_state_path.write_text("garbage")
    assert await cache.load_sync_state() is False


def test_resolve_image_path_is_keyed_by_app_id(cache):
    path = cache.resolve_image_path(440)
    assert path.name == "440_cover.jpg"
    assert path.parent == cache.images_dir


@pytest.mark.asyncio
async def test_save_and_delete_image(cache):
    path = await cache.save_image(440, b"image-bytes")
    assert path == str(cache.resolve_image_path(440))
    assert Path(path).read_bytes() == b"image-bytes"

    assert await cache.delete_image(440) is True
    assert not Path(path).exists()
    # Deleting again is fine
    assert await cache.delete_image(440) is True


@pytest.mark.asyncio
async def test_clear_removes_everything(cache):
    await cache.save({1: make_item(1)})
    await cache.save_sync_state(True)
    await cache.save_image(1, b"img")

    assert await cache.clear() is True
    assert await cache.load() == {}
    assert await cache.load_sync_state() is False
    assert list(cache.images_dir.glob("*")) == []


@pytest.mark.asyncio
async def test_failed_write_leaves_no_temp_files(cache, monkeypatch):
    assert await cache.save({1: make_item(1, "Foo")}) is True

    def broken_fsync(fd):
        raise OSError("disk full")

    monkeypatch.setattr(library_cache.os, "fsync", broken_fsync)

    assert await cache.save({2: make_item(2, "Bar")}) is False
    assert await cache.save_image(2, b"\x00" * 2048) is None

    monkeypatch.undo()
    assert set(await cache.load()) == {1}
    assert list(cache.data_dir.glob("*.tmp")) == []
    assert list(cache.images_dir.glob("*")) == []
