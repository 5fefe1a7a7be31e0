from pathlib import Path
from unittest import mock

import pytest

from treetar.configpaths import ConfigPaths, get_config_paths, get_global_authfile_path


@pytest.fixture(autouse=True)
def _clear_cache():
    get_config_paths.cache_clear()
    yield
    get_config_paths.cache_clear()


@pytest.fixture
def paths(tmp_path):
    p = ConfigPaths(persistent=tmp_path / "etc" / "ostree", runtime=tmp_path / "run" / "ostree")
    p.persistent.mkdir(parents=True)
    p.runtime.mkdir(parents=True)
    return p


def test_missing_file(paths):
    assert paths.open_file("auth.json") is None
    assert get_global_authfile_path(paths) is None


def test_persistent_found(paths):
    (paths.persistent / "auth.json").write_text("{}")
    path, handle = paths.open_file("auth.json")
    with handle:
        assert handle.read() == b"{}"
    assert path == paths.persistent / "auth.json"


def test_runtime_takes_precedence(paths):
    (paths.persistent / "auth.json").write_text("{}")
    (paths.runtime / "auth.json").write_text("{}")
    assert get_global_authfile_path(paths) == paths.runtime / "auth.json"


def test_root_paths():
    with mock.patch("os.getuid", return_value=0):
        p = get_config_paths()
    assert p.persistent == Path("/etc/ostree")
    assert p.runtime == Path("/run/ostree")


def test_user_paths(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
    monkeypatch.setenv("XDG_RUNTIME_DIR", str(tmp_path / "rt"))
    with mock.patch("os.getuid", return_value=1000):
        p = get_config_paths()
    assert p.persistent == tmp_path / "cfg" / "ostree"
    assert p.runtime == tmp_path / "rt" / "ostree"