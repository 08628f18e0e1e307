"""Drive status, KERNAL flag access and host path resolution for the host-FS drive.

Names coming from the emulated machine are ISO 8859-15 bytes. They are
resolved against a host directory tree ("fsroot") that the drive may not
leave. Matching is case-insensitive and supports the ``*`` and ``?``
wildcards.
"""

from __future__ import annotations

import os
from enum import IntEnum
from typing import NamedTuple, Protocol

from .iso8859_15 import iso8859_15_from_unicode, unicode_from_iso8859_15


class Memory(Protocol):
    """Byte-addressed view of the machine's memory."""

    def read(self, address: int, bank: int = 0) -> int: ...

    def write(self, address: int, value: int, bank: int = 0) -> None: ...


class DosError(IntEnum):
    """Status codes reported on the command channel."""

    OK = 0x00
    FILES_SCRATCHED = 0x01
    PARTITION_SELECTED = 0x02
    TELL = 0x07
    READ_ERROR = 0x20
    WRITE_ERROR = 0x25
    WRITE_PROTECT_ON = 0x26
    SYNTAX_ERROR = 0x30
    INVALID_COMMAND = 0x31
    COMMAND_TOO_LONG = 0x32
    ILLEGAL_FILENAME = 0x33
    EMPTY_FILENAME = 0x34
    SUBDIRECTORY_NOT_FOUND = 0x39
    INVALID_FORMAT = 0x49
    FILE_NOT_FOUND = 0x62
    FILE_EXISTS = 0x63
    NO_CHANNEL = 0x70
    DIRECTORY_ERROR = 0x71
    PARTITION_FULL = 0x72
    DOS_VERSION = 0x73
    DRIVE_NOT_READY = 0x74
    FORMAT_ERROR = 0x75
    ILLEGAL_PARTITION = 0x77


_ERROR_STRINGS = {
    0x00: " OK",
    0x01: " FILES SCRATCHED",
    0x02: "PARTITION SELECTED",
    0x20: "READ ERROR",
    0x25: "WRITE ERROR",
    0x26: "WRITE PROTECT ON",
    0x30: "SYNTAX ERROR",
    0x31: "SYNTAX ERROR",
    0x32: "SYNTAX ERROR",
    0x33: "ILLEGAL FILENAME",
    0x34: "EMPTY FILENAME",
    0x39: "SUBDIRECTORY NOT FOUND",
    0x49: "INVALID FORMAT",
    0x62: " FILE NOT FOUND",
    0x63: "FILE EXISTS",
    0x70: "NO CHANNEL",
    0x71: "DIRECTORY ERROR",
    0x72: "PARTITION FULL",
    0x73: "HOST FS V1.0 X16",
    0x74: "DRIVE NOT READY",
    0x75: "FORMAT ERROR",
    0x77: "SELECTED PARTITION ILLEGAL",
}

_ACTIVITY_FLAG = 0x10
_ERROR_FLAG = 0x20
_MAX_MESSAGE = 255

_SEPARATORS = ("/", "\\")
_FAT_INVALID = frozenset(',"*:\\<>|')


class Wildcard(IntEnum):
    """Kind of directory entry a wildcard match may select."""

    ALL = 0
    PRG = 1
    DIR = 2


def error_string(code: int) -> str:
    """Message text for a status code; empty for unknown codes."""
    return _ERROR_STRINGS.get(code, "")


def locate_cbdos_flags(memory: Memory) -> int:
    """Find the KERNAL's ``cbdos_flags`` variable; 0 if it cannot be found.

    The KERNAL's ACPTR vector must be a JMP to a routine in ROM whose
    first instruction is ``BIT cbdos_flags``.
    """
    if memory.read(0xFFA5) == 0x4C:
        acptr = memory.read(0xFFA6) | memory.read(0xFFA7) << 8
        if acptr >= 0xC000 and memory.read(acptr) == 0x2C:
            address = memory.read((acptr + 1) & 0xFFFF) | memory.read((acptr + 2) & 0xFFFF) << 8
            if 0x0200 <= address < 0x0400:
                return address
    print("Unable to find KERNAL cbdos_flags")
    return 0


class KernalFlags:
    """The KERNAL's ``cbdos_flags`` byte; inert when no address is known."""

    def __init__(self, memory: Memory | None, address: int = 0) -> None:
        self.memory = memory
        self.address = address if memory is not None else 0

    def get(self) -> int:
        if not self.address:
            return 0
        return self.memory.read(self.address) & 0xFF

    def set(self, value: int) -> None:
        if self.address:
            self.memory.write(self.address, value & 0xFF)

    def set_activity(self, active: bool) -> None:
        """Turn the drive activity flag on or off."""
        flags = self.get()
        if active:
            flags |= _ACTIVITY_FLAG
        else:
            flags &= ~_ACTIVITY_FLAG
        self.set(flags)


class DosStatus:
    """The status message read back from the command channel."""

    def __init__(self, flags: KernalFlags | None = None) -> None:
        self.flags = flags if flags is not None else KernalFlags(None)
        self.code = 0
        self.message = b""
        self._pos = 0

    def set_error_text(self, code: int, text: str, track: int = 0, sector: int = 0) -> None:
        """Set the status to ``code`` with an explicit message text."""
        line = f"{code:02x},{text},{track:02d},{sector:02d}\r"
        self.message = line.encode("latin-1", "replace")[:_MAX_MESSAGE]
        self.code = code
        self._pos = 0
        flags = self.flags.get()
        if code < 0x10 or code == DosError.DOS_VERSION:
            flags &= ~_ERROR_FLAG
        else:
            flags |= _ERROR_FLAG
        self.flags.set(flags)

    def set_error(self, code: int, track: int = 0, sector: int = 0) -> None:
        """Set the status to ``code`` with its standard message."""
        self.set_error_text(code, error_string(code), track, sector)

    def clear_error(self) -> None:
        self.set_error(DosError.OK)

    def read_byte(self) -> tuple[int, bool]:
        """Return the next message byte and whether it was the last one.

        After the last byte the status goes back to OK.
        """
        byte = self.message[self._pos] if self._pos < len(self.message) else 0
        self._pos += 1
        if self._pos >= len(self.message):
            self.clear_error()
            return byte, True
        return byte, False


def case_fold_unicode(cp: int) -> int:
    """Fold a code point to lower case the way FAT32 names compare."""
    if 0x41 <= cp <= 0x5A or 0xC0 <= cp <= 0xDE:
        return cp + 0x20
    return {0x160: 0x161, 0x17D: 0x17E, 0x152: 0x153, 0x178: 0xFF}.get(cp, cp)


def case_fold_iso(c: int) -> int:
    """Fold an ISO 8859-15 byte to lower case."""
    if 0x41 <= c <= 0x5A or 0xC0 <= c <= 0xDE:
        return c + 0x20
    return {0xA6: 0xA8, 0xB4: 0xB8, 0xBC: 0xBD, 0xBE: 0xFF}.get(c, c)


def utf8_to_iso(text: str | bytes) -> bytes:
    """Convert a host file name to ISO 8859-15.

    Characters that are invalid in FAT32 names, undecodable bytes and
    characters outside Latin-9 become '?'.
    """
    if isinstance(text, bytes):
        text = text.decode("utf-8", "replace")
    out = bytearray()
    for ch in text:
        if ch in _FAT_INVALID:
            out.append(ord("?"))
        else:
            out.append(iso8859_15_from_unicode(ord(ch)))
    return bytes(out)


class ParsedName(NamedTuple):
    """A DOS file name with its prefix folded in."""

    name: bytes
    overwrite: bool


def parse_dos_filename(name: bytes, dirhandling: bool = False) -> ParsedName:
    """Parse ``[[@][medium][/rel/ | //abs/]:]path`` into a plain path.

    ``@`` requests overwriting and the medium number is ignored; both
    are only recognised outside directory handling. A directory prefix
    is attached to the name. Raises ValueError for a malformed prefix.
    """
    colon = name.find(b":")
    if colon < 0 and dirhandling:
        colon = len(name)
    if colon < 0:
        return ParsedName(name, False)

    tail = name[colon + 1:]
    overwrite = False
    i = 0
    if not dirhandling:
        if name[i:i + 1] == b"@":
            overwrite = True
            i += 1
        while name[i:i + 1].isdigit():
            i += 1

    directory = b""
    if name[i:i + 1] == b"/":
        directory = name[i + 1:colon]
        if not directory:
            raise ValueError(f"empty directory in {name!r}")
        if not directory.endswith(b"/"):
            raise ValueError(f"directory must end with '/' in {name!r}")
    return ParsedName(directory + tail, overwrite)


def _matches(pattern: str, filename: str) -> bool:
    i = j = 0
    while j < len(pattern) and i < len(filename):
        p = pattern[j]
        if p == "*":
            return True
        if p != "?" and case_fold_unicode(ord(p)) != case_fold_unicode(ord(filename[i])):
            break
        i += 1
        j += 1
    if i == len(filename):
        return j == len(pattern) or pattern[j] == "*"
    return False


def _last_separator(path: str) -> int:
    return max(path.rfind("/"), path.rfind("\\"))


def _real(path: str) -> str | None:
    try:
        return os.path.realpath(path, strict=True)
    except (OSError, ValueError):
        return None


class HostPaths:
    """Emulated working directory inside a jailing host root directory."""

    def __init__(self, status: DosStatus, fsroot: str | os.PathLike | None = None,
                 startin: str | os.PathLike | None = None) -> None:
        self.status = status
        self.fsroot = self._normalise(fsroot, "-fsroot")
        start = self._normalise(startin, "-startin")
        if not start.startswith(self.fsroot):
            start = self.fsroot
        self.startin = start
        self.cwd = start
        self.path_exists = False

    @staticmethod
    def _normalise(path: str | os.PathLike | None, option: str) -> str:
        if path is None:
            return os.getcwd()
        resolved = _real(os.fspath(path))
        if resolved is None:
            raise ValueError(f"Failed to resolve argument to {option}")
        return resolved

    def reset_cwd(self) -> None:
        """Go back to the starting directory."""
        self.cwd = self.startin

    def display_cwd(self, length: int = 16) -> bytes:
        """The working directory relative to the root, padded to ``length`` bytes."""
        root = os.fsencode(self.fsroot)
        cwd = os.fsencode(self.cwd)
        offset = -1 if root[-1:] in (b"/", b"\\") else 0
        shown = b"/" if len(root) == len(cwd) else cwd[len(root) + offset:]
        shown = shown.split(b"\0", 1)[0][:length].ljust(length, b" ")
        return shown.replace(b"\\", b"/")

    def resolve_utf8(self, name: str, must_exist: bool = True,
                     wildcard: Wildcard = Wildcard.ALL) -> str | None:
        """Resolve a host-encoded name against the working directory.

        Returns the host path, or None with the drive status set to the
        error. ``path_exists`` tells whether the path exists.
        """
        self.path_exists = False
        self.status.clear_error()

        absolute = name.startswith(_SEPARATORS)
        original = self.fsroot + name if absolute else self.cwd + "/" + name
        has_wildcards = "*" in original or "?" in original

        sep = _last_separator(original)
        if sep < 0:
            self.status.set_error(DosError.FILE_NOT_FOUND)
            return None
        directory, pattern = original[:sep], original[sep + 1:]

        try:
            entries = [".", ".."] + os.listdir(directory)
        except (OSError, ValueError):
            self.status.set_error(DosError.FILE_NOT_FOUND)
            return None

        match = None
        for entry in entries:
            if pattern[:1] in ("*", "?") and entry.startswith("."):
                continue
            if not _matches(pattern, entry):
                continue
            candidate = directory + "/" + entry
            if wildcard == Wildcard.DIR and not os.path.isdir(candidate):
                continue
            if wildcard == Wildcard.PRG and not os.path.isfile(candidate):
                continue
            match = candidate
            break

        if match is None and has_wildcards:
            self.status.set_error(DosError.FILE_NOT_FOUND)
            return None
        target = match if match is not None else original

        result = _real(target)
        if result is not None:
            self.path_exists = True
        elif must_exist:
            self.status.set_error(DosError.FILE_NOT_FOUND)
            return None
        else:
            result = self._nonexistent(name, absolute)
            if result is None:
                return None

        return self._jailed(result)

    def _nonexistent(self, name: str, absolute: bool) -> str | None:
        sep = _last_separator(name)
        parent = name[:sep] if sep >= 0 else name
        if absolute:
            if sep == 0:
                return self.fsroot + name
            assembled = self.fsroot + parent
        else:
            assembled = self.cwd + "/" + parent
        if sep < 0:
            return assembled
        if _real(assembled) is None:
            self.status.set_error(DosError.FILE_NOT_FOUND)
            return None
        return self.cwd + "/" + name

    def _jailed(self, path: str) -> str | None:
        root = self.fsroot
        if (len(root) > len(path)
                or not path.startswith(root)
                or (len(root) < len(path)
                    and root[-1] not in _SEPARATORS
                    and path[len(root)] not in _SEPARATORS)):
            self.status.set_error(DosError.FILE_NOT_FOUND)
            return None
        return path

    def resolve_iso(self, name: bytes, must_exist: bool = True,
                    wildcard: Wildcard = Wildcard.ALL) -> str | None:
        """Resolve an ISO 8859-15 name from the machine; see :meth:`resolve_utf8`."""
        name = name.split(b"\0", 1)[0]
        text = "".join(chr(unicode_from_iso8859_15(byte)) for byte in name)
        return self.resolve_utf8(text, must_exist, wildcard)