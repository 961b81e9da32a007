"""Read-only access to the original datapack archive."""
from __future__ import annotations

import zlib
from io import BytesIO
from pathlib import Path
from zipfile import BadZipFile, ZipFile, ZipInfo

from datapack_editor.errors import MalformedArchiveError
from datapack_editor.helpers import canonical_path, normalize_path


class ArchiveWrapper:
    """Wrap an opened zip archive behind the interface the editor relies on.

    Only ``filename``, ``namelist()``, ``entries()``, ``read_bytes()`` and
    ``read_file()`` are needed by the virtual filesystem; the archive is never
    written to.

    Entries are keyed by canonical path: empty segments are dropped and
    folders keep their trailing slash, so ``Pack//teams.csv`` is listed and
    read as ``Pack/teams.csv``. When two raw names collapse to the same
    path, the last one wins, as with ``ZipFile.getinfo``.

    Parameters
    ----------
    archive : zipfile.ZipFile
        The opened archive.
    filename : str
        The archive filename.

    """

    def __init__(self, archive: ZipFile, filename: str) -> None:
        self._archive = archive
        self._filename = filename
        self._infos: dict[str, ZipInfo] = {}
        for info in archive.infolist():
            name = canonical_path(info.filename)
            if name:
                self._infos[name] = info
        self._directories = self._collect_directories()

    @classmethod
    def from_bytes(cls, data: bytes, filename: str) -> ArchiveWrapper:
        """Open an archive blob.

        Parameters
        ----------
        data : bytes
            The archive content.
        filename : str
            The archive filename.

        Returns
        -------
        ArchiveWrapper

        Raises
        ------
        NotImplementedError
            If the file extension is not handled.
        datapack_editor.errors.MalformedArchiveError
            If the blob can't be read as a zip archive.

        """
        match Path(filename).suffix.lower():
            case ".zip":
                pass

            case other_ext:
                raise NotImplementedError(f"{other_ext or filename} not handled.")

        try:
            archive = ZipFile(BytesIO(data))
            # Reading the central directory is enough to reject most garbage,
            # testzip() would decompress everything.
            archive.infolist()

        except (BadZipFile, EOFError, OSError, ValueError) as err:
            raise MalformedArchiveError(filename, str(err)) from err

        return cls(archive, filename=filename)

    def _collect_directories(self) -> set[str]:
        directories: set[str] = set()

        for name in self._infos:
            parts = name.rstrip("/").split("/")
            for i in range(1, len(parts)):
                directories.add("/".join(parts[:i]))
            if name.endswith("/"):
                directories.add(name.rstrip("/"))

        return directories

    @property
    def filename(self) -> str:
        return self._filename

    def namelist(self) -> list[str]:
        return list(self._infos)

    def entries(self) -> list[tuple[str, bool]]:
        """Return ``(path, is_explicit_directory)`` pairs in archive order."""
        return [(name, info.is_dir()) for name, info in self._infos.items()]

    def _lookup(self, path: str) -> ZipInfo | None:
        name = canonical_path(path)
        return self._infos.get(name) or self._infos.get(f"{name}/")

    def has(self, path: str) -> bool:
        return canonical_path(path) in self._infos

    def is_directory(self, path: str) -> bool:
        """Tell whether a path is an explicit or implied directory."""
        return normalize_path(path) in self._directories

    def date_time(self, path: str) -> tuple[int, int, int, int, int, int] | None:
        info = self._lookup(path)
        return info.date_time if info else None

    def read_bytes(self, path: str) -> bytes:
        """Decompress an entry.

        Raises
        ------
        KeyError
            If the entry is not in the archive.
        zipfile.BadZipFile, zlib.error
            If the entry is corrupted.

        """
        info = self._infos.get(canonical_path(path))
        if info is None or info.is_dir():
            raise KeyError("Not found.")
        return self._archive.read(info)

    def read_file(self, path: str, encoding: str = "utf-8") -> str:
        """Read an entry as text, dropping undecodable bytes."""
        data = self.read_bytes(path)
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            return data.decode(encoding, errors="ignore")

    def close(self) -> None:
        self._archive.close()

    def __enter__(self) -> ArchiveWrapper:
        return self

    def __exit__(self, *args) -> None:
        self.close()


READ_ERRORS = (KeyError, BadZipFile, zlib.error, EOFError, OSError, NotImplementedError)
"""Errors ``ArchiveWrapper.read_bytes`` may raise for a single entry."""
