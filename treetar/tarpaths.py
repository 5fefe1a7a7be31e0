"""Parsing of object paths found in exported tar streams.

Objects live under ``sysroot/ostree/repo/objects/`` in a sharded layout such
as ``a8/6d80...64.commit``; content objects may also carry the detached
xattrs forms ``.file-xattrs``, ``.file-xattrs-link`` and ``.file.xattrs``.
"""

from __future__ import annotations

import enum
import tarfile

REPO_PREFIX = "sysroot/ostree/repo/"
_REPO_PREFIX_PARTS = ("sysroot", "ostree", "repo")
_HEX_LOWER = frozenset("0123456789abcdef")


class ObjectType(enum.Enum):
    """Kinds of ostree objects, valued by their file suffix."""

    COMMIT = "commit"
    COMMIT_META = "commitmeta"
    DIR_TREE = "dirtree"
    DIR_META = "dirmeta"
    FILE = "file"

    def __str__(self) -> str:
        return self.value


def objtype_from_string(t: str) -> ObjectType | None:
    """Map an object suffix to its type, or None when it is unknown."""
    try:
        return ObjectType(t)
    except ValueError:
        return None


def validate_sha256(value: str) -> str:
    """Return ``value`` if it is a lowercase hexadecimal SHA-256 digest."""
    if len(value.encode("utf-8")) != 64:
        raise ValueError(f"Invalid sha256 checksum (len) {value}")
    if not all(c in _HEX_LOWER for c in value):
        raise ValueError(f"Invalid sha256 checksum {value}")
    return value


def _components(path: str) -> list[str]:
    """Split a path the way a path library iterates over its components.

    A leading ``/`` becomes the component ``/`` and a leading ``.`` is kept;
    empty segments and interior ``.`` segments are dropped.
    """
    parts: list[str] = []
    if path.startswith("/"):
        parts.append("/")
    for position, segment in enumerate(path.split("/")):
        if not segment:
            continue
        if segment == "." and (position != 0 or parts):
            continue
        parts.append(segment)
    return parts


def _is_normal(component: str) -> bool:
    return component not in ("/", ".", "..")


def _file_name(parts: list[str]) -> str | None:
    if parts and _is_normal(parts[-1]):
        return parts[-1]
    return None


def _split_extension(name: str) -> tuple[str, str | None]:
    """Return ``(stem, extension)`` for a file name."""
    if name == "..":
        return name, None
    before, dot, after = name.rpartition(".")
    if not dot or not before:
        return name, None
    return before, after


def parse_object_entry_path(path: str) -> tuple[str, str, str]:
    """Split an object path into ``(shard directory, file name, suffix)``."""
    parts = _components(path)
    parent = parts[:-1] if parts and parts != ["/"] else None
    parentname = _file_name(parent) if parent is not None else None
    if parentname is None:
        raise ValueError(f"Invalid path (no parent) {path}")
    if len(parentname.encode("utf-8")) != 2:
        raise ValueError(f"Invalid checksum parent {parentname}")
    name = _file_name(parts)
    if name is None:
        raise ValueError(f"Invalid path (dir) {path}")
    _, objtype = _split_extension(name)
    if objtype is None:
        raise ValueError(f"Invalid objpath {path}")
    return parentname, name, objtype


def parse_checksum(parent: str, name: str) -> str:
    """Reassemble a full checksum from the shard directory and file name."""
    file_name = _file_name(_components(name))
    if file_name is None:
        raise ValueError(f"Invalid object path part {name}")
    rest, _ = _split_extension(file_name)
    while rest.endswith(".file"):
        rest = rest[: -len(".file")]
    if len(rest.encode("utf-8")) != 62:
        raise ValueError(f"Invalid checksum part {rest}")
    return validate_sha256(f"{parent}{rest}")


def parse_xattrs_link_target(path: str) -> str:
    """Extract the xattrs checksum from a ``.file-xattrs-link`` target."""
    parent, rest, _ = parse_object_entry_path(path)
    return parse_checksum(parent, rest)


def parse_metadata_entry(path: str) -> tuple[str, ObjectType]:
    """Parse an object path into its checksum and object type."""
    parentname, name, suffix = parse_object_entry_path(path)
    checksum = parse_checksum(parentname, name)
    objtype = objtype_from_string(suffix)
    if objtype is None:
        raise ValueError(f"Invalid object type {suffix}")
    return checksum, objtype


def repo_relative_path(member: tarfile.TarInfo) -> str | None:
    """Return a member's path relative to the embedded repository.

    Directories, anything outside ``sysroot/ostree/repo/``, the repository
    ``config`` file and anything under ``refs`` give None.
    """
    if member.isdir():
        return None
    parts = _components(member.name)
    prefix_len = len(_REPO_PREFIX_PARTS)
    if tuple(parts[:prefix_len]) != _REPO_PREFIX_PARTS:
        return None
    rest = parts[prefix_len:]
    if _file_name(rest) == "config":
        return None
    if rest and rest[0] == "refs":
        return None
    return "/".join(rest)