"""Detached extended attributes and metadata headers in exported tar streams.

Extended attributes travel as separate objects: ``.file-xattrs`` entries hold
the serialized xattrs and are keyed by the SHA-256 of that content, while a
``.file-xattrs-link`` (or the older ``.file.xattrs``) entry announces which
xattrs belong to the content object that follows it in the stream.
"""

from __future__ import annotations

import hashlib
import tarfile
from dataclasses import dataclass, field
from pathlib import PurePosixPath

from .tarpaths import parse_xattrs_link_target, validate_sha256

MAX_XATTR_SIZE = 1024 * 1024
"""Limit on xattrs content, to avoid exhausting memory."""

MAX_METADATA_SIZE = 10 * 1024 * 1024
"""Limit on dirtree and dirmeta objects."""

SMALL_REGFILE_SIZE = 127 * 1024
"""Upper size limit for "small" regular files."""

_U32_MAX = 0xFFFFFFFF
_REGULAR_TYPES = (tarfile.REGTYPE, tarfile.AREGTYPE)


class XattrsError(ValueError):
    """An xattrs entry or reference in a tar stream is invalid."""


def _is_regular(member: tarfile.TarInfo) -> bool:
    return member.type in _REGULAR_TYPES


def _type_name(member: tarfile.TarInfo) -> str:
    names = {
        tarfile.REGTYPE: "Regular",
        tarfile.AREGTYPE: "Regular",
        tarfile.LNKTYPE: "Link",
        tarfile.SYMTYPE: "Symlink",
        tarfile.CHRTYPE: "Char",
        tarfile.BLKTYPE: "Block",
        tarfile.DIRTYPE: "Directory",
        tarfile.FIFOTYPE: "Fifo",
        tarfile.CONTTYPE: "Continuous",
    }
    return names.get(member.type, repr(member.type))


def validate_metadata_header(member: tarfile.TarInfo, desc: str) -> int:
    """Check that ``member`` is a regular metadata object of acceptable size.

    Returns its size.
    """
    if not _is_regular(member):
        raise XattrsError(f"Invalid non-regular metadata object {desc}")
    if member.size > MAX_METADATA_SIZE:
        raise XattrsError(
            f"object of size {member.size} exceeds {MAX_METADATA_SIZE} bytes"
        )
    return member.size


def header_attrs(member: tarfile.TarInfo) -> tuple[int, int, int]:
    """Return ``(uid, gid, mode)`` from a tar header, checking their range."""
    for label, value in (("uid", member.uid), ("gid", member.gid), ("mode", member.mode)):
        if not 0 <= value <= _U32_MAX:
            raise XattrsError(f"Invalid {label} {value}: out of range")
    return member.uid, member.gid, member.mode


@dataclass
class ImportStats:
    """Counts of the objects written during an import."""

    dirtree: int = 0
    dirmeta: int = 0
    regfile_small: int = 0
    regfile_large: int = 0
    symlinks: int = 0


@dataclass
class XattrsCache:
    """Xattrs content keyed by checksum, plus the pending reference for the next file."""

    contents: dict[str, bytes] = field(default_factory=dict)
    pending: tuple[str, str] | None = None

    def cache_content(
        self,
        member: tarfile.TarInfo,
        data: bytes,
        expected_checksum: str | None = None,
    ) -> str:
        """Store the xattrs content of a regular entry and return its checksum.

        ``data`` is the entry's content; when ``expected_checksum`` is given
        the computed checksum must equal it.
        """
        if not _is_regular(member):
            raise XattrsError(f"Invalid xattr entry of type {_type_name(member)}")
        size = member.size
        if size > MAX_XATTR_SIZE:
            raise XattrsError(f"Invalid xattr size {size}")
        if len(data) < size:
            raise XattrsError(
                f"Short xattrs content: expected {size} bytes, got {len(data)}"
            )
        contents = bytes(data[:size])
        checksum = hashlib.sha256(contents).hexdigest()
        if expected_checksum is not None and expected_checksum != checksum:
            raise XattrsError(
                f"Checksum mismatch, expected '{expected_checksum}' "
                f"but computed '{checksum}'"
            )
        self.contents[checksum] = contents
        return checksum

    def _ensure_no_pending(self) -> None:
        if self.pending is not None:
            raise XattrsError(
                f"Found previous dangling xattrs for file object '{self.pending[0]}'"
            )

    def process_file_xattrs_link(
        self,
        member: tarfile.TarInfo,
        data: bytes | None,
        checksum: str,
    ) -> str:
        """Handle a ``.file-xattrs-link`` entry for the file object ``checksum``.

        A hardlink names its xattrs object by target; a regular file carries
        the xattrs content itself in ``data``.  Returns the xattrs checksum.
        """
        self._ensure_no_pending()
        if member.type == tarfile.LNKTYPE:
            if not member.linkname:
                raise XattrsError(f"No xattrs link content for {checksum}")
            xattrs_checksum = parse_xattrs_link_target(member.linkname)
        elif _is_regular(member):
            xattrs_checksum = self.cache_content(member, data or b"")
        else:
            raise XattrsError(
                f"Unexpected xattrs type '{_type_name(member)}' found for {checksum}"
            )
        self.pending = (checksum, xattrs_checksum)
        return xattrs_checksum

    def process_xattr_ref(self, member: tarfile.TarInfo, target: str) -> str:
        """Handle an older ``.file.xattrs`` hardlink for the file object ``target``.

        Returns the xattrs checksum named by the link.
        """
        self._ensure_no_pending()
        if member.type != tarfile.LNKTYPE:
            raise XattrsError(f"Non-hardlink xattrs reference found for {target}")
        if not member.linkname:
            raise XattrsError(f"No xattrs link content for {target}")
        name = PurePosixPath(member.linkname).name
        if not name or name in (".", ".."):
            raise XattrsError(f"Invalid xattrs link {target}")
        try:
            xattrs_checksum = validate_sha256(name)
        except ValueError as e:
            raise XattrsError(str(e)) from e
        self.pending = (target, xattrs_checksum)
        return xattrs_checksum

    def take_for(self, checksum: str) -> str:
        """Consume the pending reference, which must be for ``checksum``.

        Returns the xattrs checksum it names.
        """
        if self.pending is None:
            raise XattrsError("Missing xattrs reference")
        file_checksum, xattrs_checksum = self.pending
        self.pending = None
        if file_checksum != checksum:
            raise XattrsError(f"Object mismatch, found xattrs for {file_checksum}")
        return xattrs_checksum

    def get(self, checksum: str) -> bytes:
        """Return cached xattrs content by its checksum."""
        try:
            return self.contents[checksum]
        except KeyError:
            raise XattrsError(f"Failed to find xattrs content {checksum}") from None