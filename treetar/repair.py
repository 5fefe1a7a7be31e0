"""Detecting objects that may have been wrongly linked due to inode truncation."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from typing import Any

_U32_MAX = 0xFFFFFFFF


@dataclass
class InodeCheck:
    """Result of checking repository objects for inode collisions."""

    inode64: int = 0
    """Number of inodes wider than 32 bits."""
    inode32: int = 0
    """Number of inodes that fit in 32 bits."""
    collisions: set[int] = field(default_factory=set)
    """Wide inodes whose truncation matches a 32-bit inode."""

    def __str__(self) -> str:
        return (
            "ostree inode check:\n"
            f"  64bit inodes: {self.inode64}\n"
            f"  32 bit inodes: {self.inode32}\n"
            f"  collisions: {len(self.collisions)}\n"
        )

    def is_ok(self) -> bool:
        """Whether no collisions were found."""
        return not self.collisions

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain mapping with kebab-case keys."""
        return {
            "inode64": self.inode64,
            "inode32": self.inode32,
            "collisions": sorted(self.collisions),
        }


def _require(data: dict[str, Any], key: str) -> Any:
    if key not in data:
        raise ValueError(f"missing field `{key}`")
    return data[key]


def _require_uint(data: dict[str, Any], key: str) -> int:
    v = _require(data, key)
    if isinstance(v, bool) or not isinstance(v, int) or v < 0:
        raise ValueError(f"invalid value for `{key}`: expected an unsigned integer")
    return v


def _require_bool(data: dict[str, Any], key: str) -> bool:
    v = _require(data, key)
    if not isinstance(v, bool):
        raise ValueError(f"invalid type for `{key}`: expected a boolean")
    return v


def _inode_check_from_dict(data: dict[str, Any]) -> InodeCheck:
    if not isinstance(data, dict):
        raise ValueError("invalid type for `inodes`: expected a mapping")
    raw = _require(data, "collisions")
    if not isinstance(raw, (list, tuple, set)):
        raise ValueError("invalid type for `collisions`: expected a sequence")
    collisions: set[int] = set()
    for v in raw:
        if isinstance(v, bool) or not isinstance(v, int) or v < 0:
            raise ValueError(f"invalid collision inode {v!r}")
        collisions.add(v)
    return InodeCheck(
        inode64=_require_uint(data, "inode64"),
        inode32=_require_uint(data, "inode32"),
        collisions=collisions,
    )


@dataclass
class RepairResult:
    """Outcome of analyzing a system for corruption."""

    inodes: InodeCheck = field(default_factory=InodeCheck)
    likely_corrupted_container_image_merges: list[str] = field(default_factory=list)
    booted_is_likely_corrupted: bool = False
    staged_is_likely_corrupted: bool = False

    def check(self) -> None:
        """Print warnings and raise ValueError if any image is likely corrupted."""
        if self.booted_is_likely_corrupted:
            print("warning: booted deployment is likely corrupted", file=sys.stderr)
        if self.booted_is_likely_corrupted:
            print("warning: staged deployment is likely corrupted", file=sys.stderr)
        n = len(self.likely_corrupted_container_image_merges)
        if n == 0:
            print("OK no corruption found")
            return
        raise ValueError(f"Found corruption in images: {n}")

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain mapping with kebab-case keys."""
        return {
            "inodes": self.inodes.to_dict(),
            "likely-corrupted-container-image-merges": list(
                self.likely_corrupted_container_image_merges
            ),
            "booted-is-likely-corrupted": self.booted_is_likely_corrupted,
            "staged-is-likely-corrupted": self.staged_is_likely_corrupted,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RepairResult:
        """Deserialize from a mapping with kebab-case keys."""
        merges = _require(data, "likely-corrupted-container-image-merges")
        if not isinstance(merges, list) or not all(isinstance(m, str) for m in merges):
            raise ValueError(
                "invalid type for `likely-corrupted-container-image-merges`"
            )
        return cls(
            inodes=_inode_check_from_dict(_require(data, "inodes")),
            likely_corrupted_container_image_merges=list(merges),
            booted_is_likely_corrupted=_require_bool(data, "booted-is-likely-corrupted"),
            staged_is_likely_corrupted=_require_bool(data, "staged-is-likely-corrupted"),
        )


def _checked_name(name: str) -> str:
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        raise ValueError(f"Invalid {name!r}") from None
    return name


def gather_inodes(
    prefix: str,
    directory: str | os.PathLike,
    little_inodes: dict[int, str],
    big_inodes: dict[int, str],
) -> None:
    """Record the inode of every file or symlink object in ``directory``.

    Inodes that fit in 32 bits go into ``little_inodes``, the others into
    ``big_inodes``; values are full object checksums.
    """
    with os.scandir(directory) as entries:
        for entry in entries:
            st = entry.stat(follow_symlinks=False)
            if not (entry.is_file(follow_symlinks=False) or entry.is_symlink()):
                continue
            name = _checked_name(entry.name)
            stem, dot, _ = name.partition(".")
            if not dot:
                raise ValueError(f"Invalid object {name}")
            checksum = f"{prefix}{stem}"
            if st.st_ino <= _U32_MAX:
                little_inodes[st.st_ino] = checksum
            else:
                big_inodes[st.st_ino] = checksum


def check_inode_collision(repo_path: str | os.PathLike, verbose: bool = False) -> InodeCheck:
    """Find objects whose 64-bit inode truncates to another object's 32-bit inode."""
    objects = os.path.join(os.fspath(repo_path), "objects")
    print(
        "Attempting analysis of ostree state for files that may be incorrectly linked.\n"
    )
    print("Gathering inodes for ostree objects...")
    little_inodes: dict[int, str] = {}
    big_inodes: dict[int, str] = {}

    with os.scandir(objects) as entries:
        children = [e for e in entries if e.is_dir(follow_symlinks=False)]
    for child in children:
        if len(os.fsencode(child.name)) != 2:
            continue
        name = _checked_name(child.name)
        try:
            gather_inodes(name, child.path, little_inodes, big_inodes)
        except ValueError as e:
            raise ValueError(f"Processing {name!r}: {e}") from e

    collisions: set[int] = set()
    for big_inum in sorted(big_inodes):
        truncated = big_inum & _U32_MAX
        small_object = little_inodes.get(truncated)
        if small_object is None:
            continue
        if verbose:
            print(
                "collision:\n"
                f"  inode (>32 bit): {big_inum}\n"
                f"  object: {big_inodes[big_inum]}\n"
                f"  inode (truncated): {truncated}\n"
                f"  object: {small_object}\n",
                file=sys.stderr,
            )
        collisions.add(big_inum)

    return InodeCheck(
        inode64=len(big_inodes),
        inode32=len(little_inodes),
        collisions=collisions,
    )