import logging

from treetar.utils import log_err_default, log_err_or_else


def _boom():
    raise RuntimeError("boom happened")


def test_ok_value_passes_through():
    assert log_err_or_else(lambda: 42, lambda: 0) == 42


def test_error_uses_default(caplog):
    with caplog.at_level(logging.DEBUG, logger="treetar.utils"):
        assert log_err_or_else(_boom, lambda: "fallback") == "fallback"
    assert "boom happened" in caplog.text


def test_default_not_called_on_success():
    calls = []

    def default():
        calls.append(1)
        return None

    assert log_err_or_else(lambda: "x", default) == "x"
    assert calls == []


def test_log_err_default():
    assert log_err_default(_boom, list) == []
    assert log_err_default(lambda: [1, 2], list) == [1, 2]