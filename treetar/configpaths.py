"""Runtime and persistent configuration directories."""

from __future__ import annotations

import functools
import os
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

_CONFIG_SUBDIR = "ostree"
AUTHFILE_NAME = "auth.json"


@dataclass(frozen=True)
class ConfigPaths:
    """A persistent and a runtime configuration directory."""

    persistent: Path
    runtime: Path

    def open_file(self, name: str | os.PathLike) -> tuple[Path, BinaryIO] | None:
        """Open ``name`` from the runtime directory, else the persistent one.

        Returns the path and an open binary file, or None if neither exists.
        """
        for base in (self.runtime, self.persistent):
            path = base / name
            try:
                return path, open(path, "rb")
            except FileNotFoundError:
                continue
        return None


def _user_config_dir() -> Path:
    env = os.environ.get("XDG_CONFIG_HOME")
    if env:
        return Path(env)
    return Path.home() / ".config"


def _user_runtime_dir() -> Path:
    env = os.environ.get("XDG_RUNTIME_DIR")
    if env:
        return Path(env)
    cache = os.environ.get("XDG_CACHE_HOME")
    if cache:
        return Path(cache)
    return Path.home() / ".cache"


@functools.cache
def get_config_paths() -> ConfigPaths:
    """Return the configuration directories for the current user.

    root: ``/run/ostree`` and ``/etc/ostree``; others: the user runtime
    directory and ``~/.config/ostree``.
    """
    if os.getuid() == 0:
        persistent, runtime = Path("/etc"), Path("/run")
    else:
        persistent, runtime = _user_config_dir(), _user_runtime_dir()
    return ConfigPaths(
        persistent=persistent / _CONFIG_SUBDIR,
        runtime=runtime / _CONFIG_SUBDIR,
    )


def get_global_authfile_path(paths: ConfigPaths | None = None) -> Path | None:
    """Return the path of the global container authentication file, if any."""
    if paths is None:
        paths = get_config_paths()
    found = paths.open_file(AUTHFILE_NAME)
    if found is None:
        return None
    path, handle = found
    handle.close()
    return path