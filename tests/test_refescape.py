import random
import re

import pytest

from treetar.refescape import (
    escape_for_ref,
    prefix_escape_for_ref,
    unescape_for_ref,
    unprefix_unescape_ref,
)

TESTPREFIX = "testprefix/blah"

UNCHANGED = ["foo", "foo/bar/baz-blah/foo"]
ROUNDTRIP = [
    "localhost:5000/foo:latest",
    "fedora/x86_64/coreos",
    "/foo/bar/foo.oci-archive",
    "docker://quay.io/exampleos/blah:latest",
    "oci-archive:/path/to/foo.ociarchive",
]
CORNERCASES = ["/", "blah/", "/foo/"]

_REF_RE = re.compile(r"^[\w\d][-._\w\d]*(/[\w\d][-._\w\d]*)*$", re.ASCII)


def _is_valid_rev(ref):
    return _REF_RE.match(ref) is not None


@pytest.mark.parametrize("value", UNCHANGED)
def test_unchanged(value):
    escaped = escape_for_ref(value)
    assert _is_valid_rev(escaped)
    assert escaped == value


@pytest.mark.parametrize("value", UNCHANGED + ROUNDTRIP + CORNERCASES)
def test_roundtrip_cases(value):
    escaped = prefix_escape_for_ref(TESTPREFIX, value)
    assert _is_valid_rev(escaped)
    assert unprefix_unescape_ref(TESTPREFIX, escaped) == value


def test_explicit():
    assert escape_for_ref(ROUNDTRIP[0]) == "localhost_3A_5000/foo_3A_latest"


def test_doc_example():
    s = "registry:quay.io/coreos/fedora:latest"
    escaped = "container/registry_3A_quay_2E_io/coreos/fedora_3A_latest"
    assert prefix_escape_for_ref("container", s) == escaped
    assert unprefix_unescape_ref("container", escaped) == s


def test_empty_rejected():
    with pytest.raises(ValueError):
        escape_for_ref("")


def test_nul_rejected():
    with pytest.raises(ValueError):
        prefix_escape_for_ref(TESTPREFIX, "a\0b")


def test_wrong_prefix():
    with pytest.raises(ValueError):
        unprefix_unescape_ref("other", "container/foo")


def test_invalid_character_in_unescape():
    with pytest.raises(ValueError):
        unescape_for_ref("foo:bar")