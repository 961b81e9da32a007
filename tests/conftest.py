from io import BytesIO
from zipfile import ZIP_DEFLATED, ZipFile

import pytest

from datapack_editor.config import Settings
from datapack_editor.helpers import init_logger
from datapack_editor.models import ArchiveWrapper


def build_zip(entries: dict[str, bytes | str | None]) -> bytes:
    """Build a zip in memory; ``None`` values become directory entries."""
    buffer = BytesIO()
    with ZipFile(buffer, "w", compression=ZIP_DEFLATED) as archive:
        for name, content in entries.items():
            if content is None:
                archive.writestr(name if name.endswith("/") else f"{name}/", b"")
            else:
                archive.writestr(name, content)
    return buffer.getvalue()


def read_zip(data: bytes) -> dict[str, bytes]:
    with ZipFile(BytesIO(data)) as archive:
        return {name: archive.read(name) for name in archive.namelist()}


@pytest.fixture
def logger():
    return init_logger("test", "INFO")


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def pack_archive():
    data = build_zip(
        {
            "Pack/": None,
            "Pack/teams.csv": "1,Alpha",
            "Pack/logos/": None,
        }
    )
    archive = ArchiveWrapper.from_bytes(data, "Pack.zip")
    try:
        yield archive
    finally:
        archive.close()
