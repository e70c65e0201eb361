"""Tests for the oeee command-line shell."""

import asyncio

import pytest

from oeee_bridge import cli

from .conftest import USER


@pytest.fixture
def session(monkeypatch, settings, store, api):
    monkeypatch.setattr(cli, "open_session", lambda s: (settings, store, api))
    return settings


def _run(argv, settings):
    return asyncio.run(cli.run(cli.build_parser().parse_args(argv), settings))


def test_parser_publish_flags():
    args = cli.build_parser().parse_args(
        ["publish", "p-1", "--title", "Hi", "--sensitive", "--parent-post-id", "p-0"]
    )
    assert args.cmd == "publish"
    assert args.sensitive is True
    assert args.allow_relay is False
    assert args.parent_post_id == "p-0"


def test_login_and_whoami(session, backend, capsys):
    backend.add(
        "POST",
        "/api/v1/auth/login",
        body={"success": True, "user": USER},
        headers=[("Set-Cookie", "id=sess; Path=/")],
    )
    backend.add("GET", "/api/v1/auth/me", body=USER)

    assert _run(["login", "alice", "--password", "pw"], session) == 0
    assert _run(["whoami"], session) == 0
    out = capsys.readouterr().out
    assert "Logged in as Alice (@alice)" in out
    assert "Alice (@alice)" in out.splitlines()[-1]


def test_whoami_signed_out(session, backend, capsys):
    backend.add("GET", "/api/v1/auth/me", status=401, body={"error": "Unauthorized"})
    assert _run(["whoami"], session) == 1
    assert "Not logged in" in capsys.readouterr().out


def test_publish(session, backend, capsys):
    backend.add("POST", "/posts/publish", status=303)
    assert _run(["publish", "p-1", "--title", "Hi", "--allow-relay"], session) == 0
    assert backend.requests[0].form()["allow_relay"] == ["on"]
    assert "Published p-1" in capsys.readouterr().out


def test_main_reports_api_errors(monkeypatch, settings, session, backend, capsys):
    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    backend.add("GET", "/api/v1/notifications/unread-count", status=500)

    assert cli.main(["unread"]) == 1
    assert "error: Request failed (Status 500)" in capsys.readouterr().err
