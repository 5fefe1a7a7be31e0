"""Helpers for tar streams of content-addressed filesystem trees: ref escaping, object paths, tar filtering and inode checks."""

__version__ = "0.1.0"

__all__ = [
    "configpaths",
    "keyfile",
    "objectsource",
    "refescape",
    "repair",
    "selinux",
    "statistics",
    "tarfilter",
    "tarlayout",
    "tarpaths",
    "tarxattrs",
    "utils",
]