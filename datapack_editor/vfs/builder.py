"""Staged construction of the output zip archive."""
from __future__ import annotations

import asyncio
import time
import zlib
from dataclasses import dataclass
from io import BytesIO
from zipfile import ZIP_DEFLATED, ZIP_STORED, BadZipFile, LargeZipFile, ZipFile, ZipInfo

from verboselogs import VerboseLogger

from datapack_editor.errors import ExportFailedError
from datapack_editor.models import ExportProgress, ProgressCallback

COMPRESSION_METHODS = {
    "deflated": ZIP_DEFLATED,
    "stored": ZIP_STORED,
}

# drwxrwxr-x plus the MS-DOS directory bit.
DIRECTORY_ATTRIBUTES = (0o40775 << 16) | 0x10
FILE_ATTRIBUTES = 0o100664 << 16

DateTime = tuple[int, int, int, int, int, int]


@dataclass
class StagedEntry:
    path: str
    data: bytes | None
    date_time: DateTime

    @property
    def is_directory(self) -> bool:
        return self.data is None


class ArchiveBuilder:
    """Collect entries, then serialize them into a zip blob in one pass.

    Parameters
    ----------
    logger : VerboseLogger
        The program's logger.
    compression : str
        ``deflated`` or ``stored``.
    compress_level : int, optional
        Deflate level, ``None`` for the zlib default.

    """

    def __init__(
        self,
        logger: VerboseLogger,
        compression: str = "deflated",
        compress_level: int | None = None,
    ) -> None:
        try:
            self.compression = COMPRESSION_METHODS[compression.lower()]
        except KeyError as err:
            raise ValueError(f"Unknown compression method: {compression}") from err

        self.compress_level = compress_level
        self.logger = logger
        self._entries: dict[str, StagedEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def add_directory(self, path: str, date_time: DateTime | None = None) -> None:
        if not path.endswith("/"):
            path = f"{path}/"
        self._entries[path] = StagedEntry(path, None, date_time or _now())

    def add_file(self, path: str, data: bytes, date_time: DateTime | None = None) -> None:
        self._entries[path] = StagedEntry(path, bytes(data), date_time or _now())

    async def generate(
        self, on_progress: ProgressCallback | None = None, yield_every: int = 20
    ) -> bytes:
        """Compress every staged entry and return the archive bytes.

        Raises
        ------
        datapack_editor.errors.ExportFailedError
            If an entry can't be written. Nothing is returned in that case.

        """
        total = len(self._entries)
        buffer = BytesIO()
        current: str | None = None

        try:
            with ZipFile(buffer, "w", compression=self.compression) as archive:
                for index, entry in enumerate(self._entries.values()):
                    current = entry.path
                    _report(on_progress, index * 100 / total, f"Compressing {entry.path}")

                    self._write(archive, entry)

                    if yield_every > 0 and (index + 1) % yield_every == 0:
                        await asyncio.sleep(0)

        except (BadZipFile, LargeZipFile, zlib.error, OSError, ValueError) as err:
            self.logger.error(f"Failed to compress {current}: {err}")
            buffer.close()
            raise ExportFailedError(err, path=current) from err

        data = buffer.getvalue()
        buffer.close()

        _report(on_progress, 100, f"Compressed {total} entries")
        self.logger.verbose(f"Serialized {total} entries ({len(data)} bytes)")
        return data

    def _write(self, archive: ZipFile, entry: StagedEntry) -> None:
        info = ZipInfo(entry.path, date_time=entry.date_time)

        if entry.is_directory:
            info.external_attr = DIRECTORY_ATTRIBUTES
            info.compress_type = ZIP_STORED
            archive.writestr(info, b"")
            return

        info.external_attr = FILE_ATTRIBUTES
        info.compress_type = self.compression
        archive.writestr(info, entry.data, compresslevel=self.compress_level)
        self.logger.spam(f"Compressed {entry.path} ({len(entry.data)} bytes)")


def _now() -> DateTime:
    return time.localtime()[:6]  # type: ignore[return-value]


def _report(on_progress: ProgressCallback | None, percent: float, label: str) -> None:
    if on_progress is not None:
        on_progress(ExportProgress(percent=min(max(percent, 0.0), 100.0), label=label))
