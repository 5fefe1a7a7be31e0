"""Object paths and path rewriting used in exported tar streams."""

from __future__ import annotations

from .tarpaths import ObjectType

SYSROOT = "sysroot"
"""Special both in the tar stream and in the commit."""

OSTREEDIR = "sysroot/ostree"
"""Location of the embedded repository's parent, so ``ostree -> sysroot/ostree`` works."""

TAR_PATH_PREFIX_V0 = "./"
"""Relative path prefix used for the checkout part of version 0 streams."""


def _components(path: str) -> list[str]:
    """Split a path into components.

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


def _strip_prefix(path: str, prefix: str) -> str | None:
    """Remove ``prefix`` from ``path`` component-wise, or None if it does not match."""
    parts = _components(path)
    prefix_parts = _components(prefix)
    if parts[: len(prefix_parts)] != prefix_parts:
        return None
    return "/".join(parts[len(prefix_parts):])


def _split_checksum(checksum: str) -> tuple[str, str]:
    if len(checksum) < 2:
        raise ValueError(f"Invalid checksum {checksum!r}")
    return checksum[:2], checksum[2:]


def object_path(objtype: ObjectType, checksum: str) -> str:
    """Path of an object inside the embedded repository."""
    if not isinstance(objtype, ObjectType):
        raise ValueError(f"Unexpected object type: {objtype!r}")
    first, rest = _split_checksum(checksum)
    return f"{OSTREEDIR}/repo/objects/{first}/{rest}.{objtype.value}"


def v1_xattrs_object_path(checksum: str) -> str:
    """Path of a ``.file-xattrs`` object holding xattrs content."""
    first, rest = _split_checksum(checksum)
    return f"{OSTREEDIR}/repo/objects/{first}/{rest}.file-xattrs"


def v1_xattrs_link_object_path(checksum: str) -> str:
    """Path of the ``.file-xattrs-link`` tying a file object to its xattrs."""
    first, rest = _split_checksum(checksum)
    return f"{OSTREEDIR}/repo/objects/{first}/{rest}.file-xattrs-link"


def symlink_is_denormal(target: str) -> bool:
    """Whether a symlink target contains ``//``."""
    return "//" in target


def map_path(path: str) -> str:
    """Convert ``./usr/etc`` back to ``./etc``; other paths are unchanged."""
    rest = _strip_prefix(path, "./usr/etc")
    if rest is None:
        return path
    return f"./etc/{rest}"


def map_path_v1(path: str) -> str:
    """Convert ``usr/etc`` back to ``etc`` for the tar stream."""
    if _strip_prefix(path, "usr/etc") is None:
        return path
    rest = _strip_prefix(path, "usr/")
    assert rest is not None
    return rest


def path_for_tar_v1(path: str) -> str:
    """Path for chunked (version 1) streams, which have no leading ``/`` or ``./``."""
    rest = _strip_prefix(path, "/")
    return map_path_v1(path if rest is None else rest)