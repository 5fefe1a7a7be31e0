import tarfile

import pytest

from treetar.tarpaths import (
    ObjectType,
    objtype_from_string,
    parse_checksum,
    parse_metadata_entry,
    parse_object_entry_path,
    parse_xattrs_link_target,
    repo_relative_path,
    validate_sha256,
)

CHECKSUM = "b8627e3ef0f255a322d2bd9610cfaaacc8f122b7f8d17c0e7e3caafa160f9fc7"


def _member(name, kind=tarfile.REGTYPE):
    info = tarfile.TarInfo(name)
    info.type = kind
    return info


def test_parse_metadata_entry_errors():
    c = "a8/6d80a3e9ff77c2e3144c787b7769b300f91ffd770221aac27bab854960b964"
    for k in ["", "42", c, f"{c}.blah"]:
        with pytest.raises(ValueError):
            parse_metadata_entry(k)


def test_parse_metadata_entry_valid():
    c = "a8/6d80a3e9ff77c2e3144c787b7769b300f91ffd770221aac27bab854960b964"
    checksum, objtype = parse_metadata_entry(f"{c}.commit")
    assert checksum == c.replace("/", "")
    assert objtype is ObjectType.COMMIT


def test_parse_metadata_entry_dirtree():
    checksum, objtype = parse_metadata_entry(f"objects/b8/{CHECKSUM[2:]}.dirtree")
    assert checksum == CHECKSUM
    assert objtype is ObjectType.DIR_TREE


@pytest.mark.parametrize(
    "value",
    [
        "a86d80a3e9ff77c2e3144c787b7769b300f91ffd770221aac27bab854960b9644",
        "a86d80a3E9ff77c2e3144c787b7769b300f91ffd770221aac27bab854960b964",
    ],
)
def test_validate_sha256_errors(value):
    with pytest.raises(ValueError):
        validate_sha256(value)


def test_validate_sha256_ok():
    value = "a86d80a3e9ff77c2e3144c787b7769b300f91ffd770221aac27bab854960b964"
    assert validate_sha256(value) == value


def test_parse_object_entry_path():
    path = f"sysroot/ostree/repo/objects/b8/{CHECKSUM[2:]}.file.xattrs"
    parent, rest, objtype = parse_object_entry_path(path)
    assert parent == "b8"
    assert rest == f"{CHECKSUM[2:]}.file.xattrs"
    assert objtype == "xattrs"


def test_parse_object_entry_path_bad_parent():
    with pytest.raises(ValueError, match="Invalid checksum parent"):
        parse_object_entry_path(f"abc/{CHECKSUM[2:]}.file")


def test_parse_checksum():
    name = f"{CHECKSUM[2:]}.file.xattrs"
    assert parse_checksum("b8", name) == CHECKSUM


def test_parse_checksum_short():
    with pytest.raises(ValueError, match="Invalid checksum part"):
        parse_checksum("b8", "62.file")


@pytest.mark.parametrize(
    "value",
    ["", f"{CHECKSUM}.file-xattrs", "../b8/62.file-xattrs"],
)
def test_parse_xattrs_link_target_errors(value):
    with pytest.raises(ValueError):
        parse_xattrs_link_target(value)


@pytest.mark.parametrize(
    "value",
    [
        f"../b8/{CHECKSUM[2:]}.file-xattrs",
        f"sysroot/ostree/repo/objects/b8/{CHECKSUM[2:]}.file-xattrs",
    ],
)
def test_parse_xattrs_link_target_ok(value):
    assert parse_xattrs_link_target(value) == CHECKSUM


def test_objtype_from_string():
    assert objtype_from_string("commitmeta") is ObjectType.COMMIT_META
    assert objtype_from_string("dirmeta") is ObjectType.DIR_META
    assert objtype_from_string("file") is ObjectType.FILE
    assert objtype_from_string("xattrs") is None


def test_repo_relative_path_object():
    member = _member(f"sysroot/ostree/repo/objects/b8/{CHECKSUM[2:]}.file")
    assert repo_relative_path(member) == f"objects/b8/{CHECKSUM[2:]}.file"


def test_repo_relative_path_filtered():
    assert repo_relative_path(_member("sysroot/ostree/repo/config")) is None
    assert repo_relative_path(_member("sysroot/ostree/repo/refs/heads/x")) is None
    assert repo_relative_path(_member("usr/bin/bash")) is None
    assert repo_relative_path(_member("./sysroot/ostree/repo/objects/b8/x.file")) is None
    directory = _member("sysroot/ostree/repo/objects/b8", tarfile.DIRTYPE)
    assert repo_relative_path(directory) is None


def test_repo_relative_path_xattrs_dir():
    member = _member(f"sysroot/ostree/repo/xattrs/{CHECKSUM}")
    assert repo_relative_path(member) == f"xattrs/{CHECKSUM}"