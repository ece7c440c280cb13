"""Extraction of single files from downloaded tool release archives."""

from __future__ import annotations

import enum
import os
import shutil
import tarfile
import zipfile
from pathlib import Path, PurePosixPath
from typing import BinaryIO

_ZIP_UNIX = 3


class ArchiveError(Exception):
    """Raised when a file cannot be located in or extracted from an archive."""


class _Kind(enum.Enum):
    TAR_GZ = "tar.gz"
    ZIP = "zip"
    PLAIN = "plain"


def _components(name: str) -> tuple[str, ...]:
    parts = PurePosixPath(name).parts
    if name == "." or name.startswith("./"):
        parts = (".", *parts)
    return parts


def _matches(entry_name: str, wanted: str) -> bool:
    # The first component is dropped: it is usually the folder the archive was made from.
    return _components(entry_name)[1:] == PurePosixPath(wanted).parts


def _set_permissions(path: Path, mode: int) -> None:
    if os.name == "posix":
        try:
            os.chmod(path, mode & 0o7777)
        except OSError as err:
            raise ArchiveError("failed setting file permissions") from err


def _write_out(source: BinaryIO, file: str, target: Path) -> Path:
    out = target / file
    try:
        out.parent.mkdir(parents=True, exist_ok=True)
    except OSError as err:
        raise ArchiveError("failed creating output directory") from err
    try:
        with out.open("wb") as handle:
            shutil.copyfileobj(source, handle)
    except OSError as err:
        raise ArchiveError("failed copying over final output file from archive") from err
    return out


class Archive:
    """An open release archive: gzipped tar, zip, or a bare executable."""

    def __init__(self, kind: _Kind, handle: BinaryIO, zip_file: zipfile.ZipFile | None = None):
        self._kind = kind
        self._handle = handle
        self._zip = zip_file

    @classmethod
    def tar_gz(cls, path: Path | str) -> Archive:
        return cls(_Kind.TAR_GZ, open(path, "rb"))

    @classmethod
    def zip(cls, path: Path | str) -> Archive:
        handle = open(path, "rb")
        try:
            zip_file = zipfile.ZipFile(handle)
        except (zipfile.BadZipFile, OSError) as err:
            handle.close()
            raise ArchiveError(f"invalid zip archive {str(path)!r}") from err
        return cls(_Kind.ZIP, handle, zip_file)

    @classmethod
    def plain(cls, path: Path | str) -> Archive:
        return cls(_Kind.PLAIN, open(path, "rb"))

    def __enter__(self) -> Archive:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Release the underlying file."""
        if self._zip is not None:
            self._zip.close()
        self._handle.close()

    def extract_file(self, file: str, target: Path | str) -> None:
        """Extract ``file`` (path inside the archive's top folder) into ``target``."""
        target = Path(target)
        if self._kind is _Kind.TAR_GZ:
            self._extract_tar(file, target)
        elif self._kind is _Kind.ZIP:
            self._extract_zip(file, target)
        else:
            self._extract_plain(file, target)

    def _extract_tar(self, file: str, target: Path) -> None:
        self._handle.seek(0)
        try:
            with tarfile.open(fileobj=self._handle, mode="r:gz") as tar:
                member = next((m for m in tar if _matches(m.name, file)), None)
                if member is None:
                    raise ArchiveError("file not found in archive")
                source = tar.extractfile(member)
                if source is None:
                    out = _write_out(_EmptyReader(), file, target)
                else:
                    with source:
                        out = _write_out(source, file, target)
                _set_permissions(out, member.mode)
        except (tarfile.TarError, OSError, EOFError) as err:
            raise ArchiveError("failed getting archive entries") from err

    def _extract_zip(self, file: str, target: Path) -> None:
        assert self._zip is not None
        found = None
        for info in self._zip.infolist():
            name = PurePosixPath(info.filename)
            if name.is_absolute() or ".." in name.parts:
                raise ArchiveError("invalid entry path")
            if _matches(info.filename, file):
                found = info
                break
        if found is None:
            raise ArchiveError("file not found in archive")
        try:
            with self._zip.open(found) as source:
                out = _write_out(source, file, target)
        except (zipfile.BadZipFile, OSError) as err:
            raise ArchiveError("error while getting archive entry") from err
        mode = _zip_unix_mode(found)
        if mode is not None:
            _set_permissions(out, mode)

    def _extract_plain(self, file: str, target: Path) -> None:
        try:
            target.mkdir(exist_ok=True)
        except OSError as err:
            raise ArchiveError(f"failed to create directory {str(target)!r}") from err
        out = target / file
        self._handle.seek(0)
        try:
            with out.open("wb") as handle:
                shutil.copyfileobj(self._handle, handle)
        except OSError as err:
            raise ArchiveError("failed to copy binary") from err
        _set_permissions(out, 0o755)


class _EmptyReader:
    def read(self, _size: int = -1) -> bytes:
        return b""


def _zip_unix_mode(info: zipfile.ZipInfo) -> int | None:
    if info.create_system == _ZIP_UNIX:
        mode = info.external_attr >> 16
        return mode or None
    mode = 0o444 if info.external_attr & 0x01 else 0o644
    if info.external_attr & 0x10:
        mode |= 0o111
    return mode