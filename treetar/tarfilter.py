"""Filtering tar streams and committing them into an ostree repository.

Incoming layer tarballs are rewritten before they are committed:

* ``/etc`` is moved to ``/usr/etc``;
* everything outside ``/usr`` is dropped and counted per top-level directory;
* paths are normalized, and ``..`` components are rejected;
* modified regular files under ``sysroot/ostree/repo/`` are held back, and
  the first modified hardlink to one of them becomes the real file.
"""

from __future__ import annotations

import asyncio
import contextlib
import copy
import logging
import os
import shutil
import tarfile
import tempfile
from dataclasses import dataclass, field
from importlib import metadata
from pathlib import Path
from typing import BinaryIO

logger = logging.getLogger(__name__)

_REPO_PREFIX_PARTS = ["sysroot", "ostree", "repo"]
_SEPOLICY_PATH = "usr/etc/selinux"


class TarFilterError(ValueError):
    """A tar stream holds an entry that cannot be accepted."""


class CommitError(RuntimeError):
    """Committing a tar stream into the repository failed."""


@dataclass(frozen=True)
class NormalizedPath:
    """Result of normalizing a tar entry path.

    When ``filtered`` is true the entry is discarded and ``path`` holds the
    top-level directory it belonged to; otherwise ``path`` is the rewritten path.
    """

    path: str
    filtered: bool = False


@dataclass
class WriteTarOptions:
    """Configuration for committing a tar layer."""

    base: str | None = None
    """Base commit checksum."""
    selinux: bool = False
    """Label files using the SELinux policy of ``base``; requires ``base``."""


@dataclass
class WriteTarResult:
    """The commit written, and how many paths were dropped per top-level directory."""

    commit: str = ""
    filtered: dict[str, int] = field(default_factory=dict)


def _components(path: str) -> list[str]:
    """Split a path into components.

    A leading ``/`` becomes ``/`` and a leading ``.`` is kept; empty
    segments and interior ``.`` segments are dropped.
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


def _path_key(path: str) -> str:
    return "/".join(_components(path))


def _under_repo(path: str) -> bool:
    return _components(path)[: len(_REPO_PREFIX_PARTS)] == _REPO_PREFIX_PARTS


def normalize_validate_path(path: str) -> NormalizedPath:
    """Normalize a tar path, moving ``etc`` under ``usr`` and filtering the rest.

    ``foo//bar/./baz`` becomes ``./foo/bar/baz``; absolute paths become
    relative; ``..`` raises :class:`TarFilterError`.
    """
    parts = _components(path)
    ret: list[str] = []
    if parts and _is_normal(parts[0]):
        ret.append(".")
    found_first = False
    for part in parts:
        if part == "/":
            part = "."
        elif part == "..":
            raise TarFilterError(f"Invalid path: {path}")
        if not found_first and _is_normal(part):
            found_first = True
            if part == "usr":
                ret.append("usr")
            elif part == "etc":
                ret.append("usr/etc")
            else:
                return NormalizedPath(part, filtered=True)
        else:
            ret.append(part)
    return NormalizedPath("/".join(ret))


def _clean_header(member: tarfile.TarInfo, name: str) -> tarfile.TarInfo:
    header = copy.copy(member)
    header.name = name
    header.pax_headers = {
        k: v for k, v in member.pax_headers.items() if k not in ("path", "linkpath")
    }
    return header


def copy_entry(
    src: tarfile.TarFile,
    member: tarfile.TarInfo,
    dest: tarfile.TarFile,
    path: str | None = None,
) -> None:
    """Copy ``member`` of ``src`` into ``dest``, optionally under a different path."""
    header = _clean_header(member, member.name if path is None else path)
    if member.islnk() or member.issym():
        if not member.linkname:
            raise TarFilterError("Invalid link")
        header.size = 0
        dest.addfile(header)
    elif member.isreg():
        dest.addfile(header, src.extractfile(member))
    else:
        header.size = 0
        dest.addfile(header)


def filter_tar(src: BinaryIO, dest: BinaryIO) -> dict[str, int]:
    """Filter the tar stream ``src`` into ``dest``.

    Returns the number of discarded entries per top-level directory, sorted
    by name.
    """
    filtered: dict[str, int] = {}
    changed_sysroot_objects: dict[str, tuple[tarfile.TarInfo, BinaryIO]] = {}
    new_sysroot_link_targets: dict[str, str] = {}

    with contextlib.ExitStack() as stack:
        reader = stack.enter_context(tarfile.open(fileobj=src, mode="r|"))
        writer = stack.enter_context(
            tarfile.open(fileobj=dest, mode="w|", format=tarfile.GNU_FORMAT)
        )
        for member in reader:
            path = member.name
            is_modified = (member.mtime or 0) > 0
            is_regular = member.type in (tarfile.REGTYPE, tarfile.AREGTYPE)
            if _under_repo(path):
                if is_modified and is_regular:
                    logger.debug("Processing modified sysroot file %s", path)
                    tmpf = stack.enter_context(tempfile.TemporaryFile())
                    data = reader.extractfile(member)
                    if data is not None:
                        shutil.copyfileobj(data, tmpf)
                    tmpf.seek(0)
                    changed_sysroot_objects[_path_key(path)] = (copy.copy(member), tmpf)
                    continue
            elif member.type == tarfile.LNKTYPE and is_modified:
                target = member.linkname
                if not target:
                    raise TarFilterError("Invalid empty hardlink")
                if _under_repo(target):
                    target_key = _path_key(target)
                    cached = changed_sysroot_objects.pop(target_key, None)
                    relinked = new_sysroot_link_targets.get(_path_key(path))
                    if cached is not None:
                        logger.debug("Making %s canonical for sysroot link %s", path, target)
                        header, data = cached
                        writer.addfile(_clean_header(header, path), data)
                        new_sysroot_link_targets[target_key] = path
                    elif relinked is not None:
                        logger.debug("Relinking %s to %s", path, relinked)
                        header = _clean_header(member, path)
                        header.linkname = relinked
                        header.size = 0
                        writer.addfile(header)
                    else:
                        logger.debug(
                            "Found unhandled modified link from %s to %s", path, target
                        )
                    continue

            normalized = normalize_validate_path(path)
            if normalized.filtered:
                filtered[normalized.path] = filtered.get(normalized.path, 0) + 1
                continue
            copy_entry(reader, member, writer, normalized.path)
    dest.flush()
    return dict(sorted(filtered.items()))


def _importer_version() -> str:
    try:
        return metadata.version("treetar")
    except metadata.PackageNotFoundError:
        return "unknown"


async def _run(*args: str) -> tuple[int, bytes, bytes]:
    proc = await asyncio.create_subprocess_exec(
        *args,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await proc.communicate()
    return proc.returncode or 0, stdout, stderr


async def _sepolicy_from_base(repo_path: str, base: str, destdir: Path) -> None:
    """Check out the SELinux policy of ``base`` into ``destdir``, if it has one."""
    code, _, _ = await _run("ostree", "ls", f"--repo={repo_path}", base, _SEPOLICY_PATH)
    if code != 0:
        return
    policydest = destdir / _SEPOLICY_PATH
    policydest.parent.mkdir(parents=True, exist_ok=True)
    code, _, stderr = await _run(
        "ostree",
        "checkout",
        f"--repo={repo_path}",
        "--user-mode",
        f"--subpath={_SEPOLICY_PATH}",
        base,
        str(policydest),
    )
    if code != 0:
        raise CommitError(
            "tar: Preparing sepolicy: " + stderr.decode("utf-8", errors="replace")
        )


async def write_tar(
    repo_path: str | os.PathLike,
    src: BinaryIO,
    refname: str,
    options: WriteTarOptions | None = None,
) -> WriteTarResult:
    """Filter the tar stream ``src`` and commit it to ``refname`` with ``ostree commit``."""
    options = options or WriteTarOptions()
    repo = os.fspath(repo_path)
    with contextlib.ExitStack() as stack:
        sepolicy: str | None = None
        if options.selinux and options.base is not None:
            sepolicy = stack.enter_context(tempfile.TemporaryDirectory())
            await _sepolicy_from_base(repo, options.base, Path(sepolicy))

        args = ["ostree", "commit", f"--repo={repo}"]
        if sepolicy is not None:
            args += ["--selinux-policy", sepolicy]
        args.append(f"--add-metadata-string=ostree.importer.version={_importer_version()}")
        args += [
            "--no-bindings",
            "--tar-autocreate-parents",
            "--tree=tar=/proc/self/fd/0",
            "--branch",
            refname,
        ]

        read_fd, write_fd = os.pipe()
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdin=read_fd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except BaseException:
            os.close(write_fd)
            raise
        finally:
            os.close(read_fd)

        def feed() -> dict[str, int]:
            with open(write_fd, "wb") as pipe:
                return filter_tar(src, pipe)

        loop = asyncio.get_running_loop()
        filter_result, output = await asyncio.gather(
            loop.run_in_executor(None, feed),
            proc.communicate(),
            return_exceptions=True,
        )
        if isinstance(output, BaseException):
            raise output
        stdout, stderr = output
        returncode = await proc.wait()

        if isinstance(filter_result, BaseException) and not isinstance(
            filter_result, BrokenPipeError
        ):
            raise filter_result
        if returncode != 0:
            raise CommitError(
                f"Failed to commit tar: exit status {returncode}: "
                f"{stderr.decode('utf-8', errors='replace')}"
            )
        if isinstance(filter_result, BaseException):
            raise filter_result
        return WriteTarResult(
            commit=stdout.decode("utf-8", errors="replace").strip(),
            filtered=filter_result,
        )