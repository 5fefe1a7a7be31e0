"""SELinux-related helpers."""

from __future__ import annotations

import os
from pathlib import Path

SELINUX_MNT = "/sys/fs/selinux"
SELF_ATTR_CURRENT = "/proc/self/attr/current"
INSTALL_T = "install_t"


class SELinuxDomainError(RuntimeError):
    """The process is not running in the expected SELinux domain."""


def is_selinux_enabled(mount: str | os.PathLike = SELINUX_MNT) -> bool:
    """Whether SELinux appears to be enabled."""
    return (Path(mount) / "access").exists()


def verify_install_domain(
    mount: str | os.PathLike = SELINUX_MNT,
    attr_path: str | os.PathLike = SELF_ATTR_CURRENT,
) -> str | None:
    """Check that this process runs in the ``install_t`` domain.

    Returns the current context when it was checked, or None when the check
    does not apply (SELinux disabled or not root).
    """
    if not is_selinux_enabled(mount):
        return None
    if os.getuid() != 0:
        return None
    try:
        self_domain = Path(attr_path).read_text()
    except OSError as e:
        raise SELinuxDomainError(
            f"Verifying self is install_t SELinux domain: {e}"
        ) from e
    if INSTALL_T not in self_domain.split(":"):
        raise SELinuxDomainError(
            "Detected SELinux enabled system, but the executing binary is not "
            "labeled install_exec_t"
        )
    return self_domain