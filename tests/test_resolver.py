import asyncio
from zipfile import BadZipFile

import pytest

from conftest import build_zip
from datapack_editor.errors import EntryNotFoundError
from datapack_editor.models import ArchiveWrapper, DirectoryContents
from datapack_editor.vfs import ContentResolver, OverlayStore


@pytest.fixture
def archive():
    data = build_zip(
        {
            "Pack/": None,
            "Pack/teams.csv": "1,Alpha",
            "Pack/club_logos/1.png": b"png-1",
            "Pack/club_logos/2.JPG": b"jpg-2",
            "Pack/club_logos/readme.txt": "not an image",
            "Pack/club_logos/old/3.png": b"nested",
            "Pack/latin1.txt": "Équipe".encode("latin-1"),
        }
    )
    archive = ArchiveWrapper.from_bytes(data, "Pack.zip")
    try:
        yield archive
    finally:
        archive.close()


@pytest.fixture
def overlay():
    return OverlayStore()


@pytest.fixture
def resolver(archive, overlay, settings, logger):
    return ContentResolver(archive, overlay, settings, logger)


@pytest.mark.asyncio
async def test_reads_original_on_overlay_miss(resolver):
    assert await resolver.resolve("Pack/teams.csv") == b"1,Alpha"


@pytest.mark.asyncio
async def test_overlay_shadows_original(resolver, overlay):
    overlay.write("Pack/teams.csv", "1,Alpha Rebranded")

    assert await resolver.resolve("Pack/teams.csv") == "1,Alpha Rebranded"


@pytest.mark.asyncio
async def test_overlay_hit_does_not_touch_archive(resolver, overlay, archive, monkeypatch):
    def fail(path):
        raise AssertionError(f"archive read for {path}")

    monkeypatch.setattr(archive, "read_bytes", fail)
    overlay.write("Pack/teams.csv", b"edited")

    assert await resolver.resolve("Pack/teams.csv") == b"edited"


@pytest.mark.asyncio
async def test_overlay_only_path_resolves(resolver, overlay):
    overlay.write("Pack/new.csv", "2,Beta")

    assert await resolver.resolve("Pack/new.csv") == "2,Beta"


@pytest.mark.asyncio
async def test_missing_path_raises_not_found(resolver):
    with pytest.raises(EntryNotFoundError) as exc_info:
        await resolver.resolve("Pack/missing.csv")

    assert exc_info.value.path == "Pack/missing.csv"
    assert isinstance(exc_info.value, LookupError)


@pytest.mark.asyncio
async def test_directory_resolves_direct_child_images(resolver):
    contents = await resolver.resolve("Pack/club_logos/")

    assert isinstance(contents, DirectoryContents)
    assert contents.path == "Pack/club_logos/"
    assert contents.items == {
        "Pack/club_logos/1.png": b"png-1",
        "Pack/club_logos/2.JPG": b"jpg-2",
    }
    assert not contents.partial


@pytest.mark.asyncio
async def test_implied_directory_without_trailing_slash(resolver):
    contents = await resolver.resolve("Pack/club_logos")

    assert set(contents.items) == {"Pack/club_logos/1.png", "Pack/club_logos/2.JPG"}


@pytest.mark.asyncio
async def test_directory_includes_overlay_images(resolver, overlay):
    overlay.write("Pack/club_logos/1.png", b"edited-1")
    overlay.write("Pack/club_logos/99.webp", b"new-99")

    contents = await resolver.resolve_directory("Pack/club_logos/")

    assert contents.items == {
        "Pack/club_logos/1.png": b"edited-1",
        "Pack/club_logos/2.JPG": b"jpg-2",
        "Pack/club_logos/99.webp": b"new-99",
    }


@pytest.mark.asyncio
async def test_failed_child_does_not_abort_the_others(resolver, archive, monkeypatch):
    read_bytes = archive.read_bytes

    def flaky(path):
        if path.endswith("2.JPG"):
            raise BadZipFile("Bad CRC-32")
        return read_bytes(path)

    monkeypatch.setattr(archive, "read_bytes", flaky)

    contents = await resolver.resolve_directory("Pack/club_logos")

    assert contents.items == {"Pack/club_logos/1.png": b"png-1"}
    assert list(contents.failed) == ["Pack/club_logos/2.JPG"]
    assert contents.partial
    assert contents.expected == 2


@pytest.mark.asyncio
async def test_unknown_directory_raises_not_found(resolver):
    with pytest.raises(EntryNotFoundError):
        await resolver.resolve_directory("Pack/adboards/")


@pytest.mark.asyncio
async def test_resolve_text_decodes_and_drops_invalid_bytes(resolver, overlay):
    assert await resolver.resolve_text("Pack/teams.csv") == "1,Alpha"
    assert await resolver.resolve_text("Pack/latin1.txt") == "quipe"

    overlay.write("Pack/teams.csv", "1,Ålpha")
    assert await resolver.resolve_text("Pack/teams.csv") == "1,Ålpha"


@pytest.mark.asyncio
async def test_concurrent_resolutions_of_the_same_path(resolver):
    results = await asyncio.gather(
        *(resolver.resolve("Pack/teams.csv") for _ in range(10))
    )

    assert results == [b"1,Alpha"] * 10


@pytest.mark.asyncio
async def test_repeated_slashes_resolve_like_the_tree(overlay, settings, logger):
    data = build_zip({"Pack/": None, "Pack//teams.csv": "1,Alpha"})

    with ArchiveWrapper.from_bytes(data, "Pack.zip") as archive:
        resolver = ContentResolver(archive, overlay, settings, logger)

        assert await resolver.resolve("Pack/teams.csv") == b"1,Alpha"
        assert await resolver.resolve("Pack//teams.csv") == b"1,Alpha"

        overlay.write("Pack//teams.csv", "1,Alpha Rebranded")
        assert overlay.all_paths() == {"Pack/teams.csv"}
        assert await resolver.resolve("Pack/teams.csv") == "1,Alpha Rebranded"
