import pytest

from treetar.tarlayout import (
    map_path,
    map_path_v1,
    object_path,
    path_for_tar_v1,
    symlink_is_denormal,
    v1_xattrs_link_object_path,
    v1_xattrs_object_path,
)
from treetar.tarpaths import ObjectType, parse_metadata_entry

CHECKSUM = "b8627e3ef0f255a322d2bd9610cfaaacc8f122b7f8d17c0e7e3caafa160f9fc7"


def test_map_path():
    assert map_path("/") == "/"
    assert map_path("./usr/etc/blah") == "./etc/blah"


@pytest.mark.parametrize("unchanged", ["boot", "usr/bin", "usr/lib/foo"])
def test_map_path_v1_unchanged(unchanged):
    assert map_path_v1(unchanged) == unchanged


def test_map_path_v1_etc():
    assert map_path_v1("usr/etc") == "etc"
    assert map_path_v1("usr/etc/foo") == "etc/foo"


def test_map_path_v1_component_match():
    assert map_path_v1("usr/etcfoo") == "usr/etcfoo"


def test_path_for_tar_v1():
    assert path_for_tar_v1("/usr/etc/foo") == "etc/foo"
    assert path_for_tar_v1("/usr/bin/bash") == "usr/bin/bash"
    assert path_for_tar_v1("usr/lib/foo") == "usr/lib/foo"


@pytest.mark.parametrize("path", ["/", "/usr", "../usr/bin/blah"])
def test_normal_symlink(path):
    assert not symlink_is_denormal(path)


@pytest.mark.parametrize("path", ["../../usr/sbin//chkconfig", "foo//bar/baz"])
def test_denormal_symlink(path):
    assert symlink_is_denormal(path)


def test_v1_xattrs_object_path():
    expected = (
        "sysroot/ostree/repo/objects/b8/"
        "627e3ef0f255a322d2bd9610cfaaacc8f122b7f8d17c0e7e3caafa160f9fc7.file-xattrs"
    )
    assert v1_xattrs_object_path(CHECKSUM) == expected


def test_v1_xattrs_link_object_path():
    expected = (
        "sysroot/ostree/repo/objects/b8/"
        "627e3ef0f255a322d2bd9610cfaaacc8f122b7f8d17c0e7e3caafa160f9fc7.file-xattrs-link"
    )
    assert v1_xattrs_link_object_path(CHECKSUM) == expected


@pytest.mark.parametrize("objtype", list(ObjectType))
def test_object_path_roundtrip(objtype):
    path = object_path(objtype, CHECKSUM)
    assert path.startswith("sysroot/ostree/repo/objects/b8/")
    assert parse_metadata_entry(path) == (CHECKSUM, objtype)


def test_object_path_short_checksum():
    with pytest.raises(ValueError):
        object_path(ObjectType.COMMIT, "a")