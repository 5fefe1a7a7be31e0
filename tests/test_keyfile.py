import configparser

import pytest

from treetar.keyfile import optional_bool, optional_string


def test_optional():
    kf = configparser.ConfigParser()
    assert optional_string(kf, "foo", "bar") is None
    kf.add_section("foo")
    kf.set("foo", "baz", "someval")
    assert optional_string(kf, "foo", "bar") is None
    assert optional_string(kf, "foo", "baz") == "someval"

    with pytest.raises(ValueError):
        optional_bool(kf, "foo", "baz")
    assert optional_bool(kf, "foo", "bar") is None
    kf.set("foo", "somebool", "false")
    assert optional_bool(kf, "foo", "somebool") is False


def test_optional_bool_true():
    kf = configparser.ConfigParser()
    kf.read_string("[core]\nflag=true\n")
    assert optional_bool(kf, "core", "flag") is True
    assert optional_bool(kf, "missing", "flag") is None