"""Host files for disk images, with transparent gzip handling.

A file whose name marks it as compressed is inflated into a temporary
file next to it when opened, and written back compressed on close if it
was modified.
"""

from __future__ import annotations

import gzip
import os
from enum import IntEnum
from typing import BinaryIO

_COMPRESSED_SUFFIXES_3 = (".gz", "-gz")
_COMPRESSED_SUFFIXES_2 = (".z", "-z", "_z", ".Z")

_GZIP_MAGIC = b"\x1f\x8b"
_BUFFER_SIZE = 16 * 1024 * 1024
_PROGRESS_INCREMENT = 128 * 1024 * 1024
_MIB = 1024 * 1024
_TEMP_SUFFIX = ".tmp"


class Origin(IntEnum):
    """Reference point for :meth:`X16File.seek`."""

    SET = 0
    END = 1
    CUR = 2


def is_compressed_type(path: str | os.PathLike) -> bool:
    """Tell whether the file name marks a gzip-compressed file."""
    name = os.fspath(path)
    return name.endswith(_COMPRESSED_SUFFIXES_3) or name.endswith(_COMPRESSED_SUFFIXES_2)


def find_extension(path: str | None, mark: int | None = None) -> str | None:
    """Return the tail of ``path`` from the last '.' at or before ``mark``.

    Without a mark the search starts at the end of the path, three
    characters earlier for a compressed name. The first character is
    never taken as the dot. Returns None when no dot is found.
    """
    if path is None:
        return None
    if mark is None:
        mark = len(path)
        if is_compressed_type(path):
            mark -= 3
    for index in range(mark, 0, -1):
        if index < len(path) and path[index] == ".":
            return path[index:]
    return None


def _temp_path(path: str) -> str:
    return path + _TEMP_SUFFIX


def _decompress(path: str, tmp_path: str) -> int:
    """Inflate ``path`` into ``tmp_path``; uncompressed data is copied as is."""
    with open(path, "rb") as probe:
        compressed = probe.read(2) == _GZIP_MAGIC
    opener = gzip.open if compressed else open
    total = 0
    threshold = _PROGRESS_INCREMENT
    with opener(path, "rb") as source, open(tmp_path, "wb") as target:
        print(f"Decompressing {path}")
        while chunk := source.read(_BUFFER_SIZE):
            total += len(chunk)
            if total > threshold:
                print(f"{total // _MIB} MB")
                threshold += _PROGRESS_INCREMENT
            target.write(chunk)
    print(f"{total // _MIB} MB")
    return total


class X16File:
    """An open host file with its own position and size bookkeeping."""

    def __init__(self, path: str, handle: BinaryIO, size: int,
                 registry: FileRegistry | None = None) -> None:
        self.path = path
        self.modified = False
        self.closed = False
        self._handle = handle
        self._size = size
        self._pos = 0
        self._registry = registry

    def __enter__(self) -> X16File:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def close(self) -> None:
        """Close the file, recompressing it first if it was changed."""
        if self.closed:
            return
        self.closed = True
        self._handle.close()
        try:
            if is_compressed_type(self.path):
                tmp_path = _temp_path(self.path)
                try:
                    if self.modified:
                        self._recompress(tmp_path)
                finally:
                    if os.path.exists(tmp_path):
                        os.remove(tmp_path)
        finally:
            if self._registry is not None:
                self._registry._forget(self)

    def _recompress(self, tmp_path: str) -> None:
        with gzip.open(self.path, "wb", compresslevel=6) as target, \
                open(tmp_path, "rb") as source:
            print(f"Recompressing {self.path}")
            total = 0
            threshold = _PROGRESS_INCREMENT
            while chunk := source.read(_BUFFER_SIZE):
                total += len(chunk)
                if total > threshold:
                    print(f"{total * 100 // max(self._size, 1)}%")
                    threshold += _PROGRESS_INCREMENT
                target.write(chunk)

    def size(self) -> int:
        """Size of the file when it was opened."""
        return self._size

    def seek(self, pos: int, origin: Origin = Origin.SET) -> int:
        """Move the position, clamping to the file size; return the new offset."""
        if origin == Origin.SET:
            self._pos = min(pos, self._size)
        elif origin == Origin.CUR:
            self._pos += pos
            if self._pos > self._size or self._pos < 0:
                self._pos = self._size
        elif origin == Origin.END:
            self._pos = self._size - pos
            if self._pos < 0:
                self._pos = self._size
        else:
            raise ValueError(f"unknown seek origin: {origin!r}")
        return self._handle.seek(self._pos)

    def tell(self) -> int:
        """Current position."""
        return self._pos

    def write8(self, value: int) -> int:
        """Write one byte; return the number of bytes written."""
        written = self._handle.write(bytes([value & 0xFF]))
        self._pos += written
        return written

    def read8(self) -> int:
        """Read one byte; 0 at the end of the file."""
        data = self._handle.read(1)
        self._pos += len(data)
        return data[0] if data else 0

    def write(self, data: bytes) -> int:
        """Write ``data``; return the number of bytes written."""
        written = self._handle.write(data)
        if written:
            self.modified = True
        self._pos += written
        return written

    def read(self, size: int) -> bytes:
        """Read up to ``size`` bytes."""
        data = self._handle.read(size)
        self._pos += len(data)
        return data


class FileRegistry:
    """Keeps track of open files so they can all be closed together."""

    def __init__(self) -> None:
        self.files: list[X16File] = []

    def open(self, path: str | os.PathLike, mode: str = "rb") -> X16File:
        """Open ``path`` with a C-style ``mode``; raise OSError on failure."""
        name = os.fspath(path)
        if is_compressed_type(name):
            tmp_path = _temp_path(name)
            size = _decompress(name, tmp_path)
            try:
                handle = open(tmp_path, mode)
            except OSError:
                os.remove(tmp_path)
                raise
        else:
            handle = open(name, mode)
            size = os.fstat(handle.fileno()).st_size
        opened = X16File(name, handle, size, self)
        self.files.insert(0, opened)
        return opened

    def shutdown(self) -> None:
        """Close every open file."""
        for opened in list(self.files):
            opened.close()

    def _forget(self, opened: X16File) -> None:
        if opened in self.files:
            self.files.remove(opened)