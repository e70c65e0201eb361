"""Tests for Settings."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from oeee_bridge.client.config import Settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("OEEE_BASE_URL", raising=False)
    s = Settings(_env_file=None)
    assert s.base_url == "https://oeee.cafe"
    assert s.backend_host == "oeee.cafe"
    assert s.timeout_s == 30.0


def test_trailing_slash_stripped():
    s = Settings(base_url="  https://staging.oeee.cafe/  ", _env_file=None)
    assert s.base_url == "https://staging.oeee.cafe"
    assert s.backend_host == "staging.oeee.cafe"


@pytest.mark.parametrize("url", ["oeee.cafe", "ftp://oeee.cafe", "https://", ""])
def test_invalid_base_url(url):
    with pytest.raises(ValidationError):
        Settings(base_url=url, _env_file=None)


def test_env_prefix(monkeypatch, tmp_path):
    monkeypatch.setenv("OEEE_BASE_URL", "http://localhost:8080")
    monkeypatch.setenv("OEEE_STATE_DIR", str(tmp_path))
    monkeypatch.setenv("OEEE_DEBUG_LOG_HTTP", "1")

    s = Settings(_env_file=None)
    assert s.backend_host == "localhost"
    assert s.debug_log_http is True
    assert s.cookie_file == Path(tmp_path) / "cookies.lwp"
    assert s.push_token_file == Path(tmp_path) / "push_token.json"
