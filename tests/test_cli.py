"""Tests for cli: commands and aliases via CliRunner against a fake API."""

from __future__ import annotations

from datetime import timedelta

import pytest
from click.testing import CliRunner

from dblebox.cli import main
from dblebox.config import Store
from dblebox.models import format_timestamp, utcnow

FULL_ID = "abcdef12-0000-4000-8000-000000000000"


def _listing(api, *items):
    api.add("GET", "/api/secure/threads", {"threadWithMember": list(items)})


# --- login / logout / whoami ---


def test_login_success(cli_api, dblebox_home):
    cli_api.add("POST", "/api/auth/email/begin", {"auth_email_verify_id": "v-1"})
    cli_api.add(
        "POST",
        "/api/auth/email/verify",
        {"session_token": "tok", "user": {"id": "u-1", "username": "ada", "email": "ada@x.io"}},
    )
    runner = CliRunner()
    result = runner.invoke(main, ["login", "--email", "ada@x.io"], input=" 123456 \n")

    assert result.exit_code == 0, result.output
    assert "Logged in as ada" in result.output
    assert cli_api.body() == {"email": "ada@x.io", "code": "123456", "auth_email_verify_id": "v-1"}
    saved = Store.load(dblebox_home)
    assert saved.cookies.session_token == "tok"
    assert saved.config.email == "ada@x.io"
    assert saved.config.user_id == "u-1"


def test_login_prompts_for_email(cli_api):
    cli_api.add("POST", "/api/auth/email/begin", {"auth_email_verify_id": "v-1"})
    cli_api.add("POST", "/api/auth/email/verify", {"user": {"id": "u-1"}})
    runner = CliRunner()
    result = runner.invoke(main, ["login"], input="ada@x.io\n123456\n")
    assert result.exit_code == 0, result.output
    assert cli_api.body(0) == {"email": "ada@x.io"}
    assert "Logged in as ada@x.io" in result.output


def test_login_begin_rejected(cli_api):
    cli_api.add("POST", "/api/auth/email/begin", {"error": "unknown email"}, status=400)
    runner = CliRunner()
    result = runner.invoke(main, ["login", "-e", "nobody@x.io"])
    assert result.exit_code == 1
    assert "unknown email" in result.output
    assert cli_api.paths() == [("POST", "/api/auth/email/begin")]


def test_login_bad_code(cli_api, dblebox_home):
    cli_api.add("POST", "/api/auth/email/begin", {"auth_email_verify_id": "v-1"})
    cli_api.add("POST", "/api/auth/email/verify", {"error": "invalid code"}, status=401)
    runner = CliRunner()
    result = runner.invoke(main, ["login", "-e", "ada@x.io"], input="000000\n")
    assert result.exit_code == 1
    assert "invalid code" in result.output
    assert Store.load(dblebox_home).cookies.session_token is None


def test_logout(cli_api, dblebox_home):
    store = Store.load(dblebox_home)
    store.cookies.set("session", "tok")
    store.save_cookies()
    cli_api.add("POST", "/api/logout", {})

    runner = CliRunner()
    result = runner.invoke(main, ["logout"])
    assert result.exit_code == 0
    assert "Logged out" in result.output
    assert Store.load(dblebox_home).cookies.session_token is None


def test_whoami_logged_in(cli_api):
    cli_api.add(
        "GET", "/api/secure/threads", {"user": {"id": "u-1", "username": "ada", "email": "ada@x.io"}}
    )
    runner = CliRunner()
    result = runner.invoke(main, ["whoami"])
    assert result.exit_code == 0
    assert "ada" in result.output
    assert "ada@x.io" in result.output


def test_whoami_not_logged_in(cli_api):
    cli_api.add("GET", "/api/secure/threads", {"error": "unauthorized"}, status=401)
    runner = CliRunner()
    result = runner.invoke(main, ["whoami"])
    assert result.exit_code == 1
    assert "Not logged in" in result.output


# --- threads ---


def test_threads_hides_archived_and_snoozed(cli_api):
    future = format_timestamp(utcnow() + timedelta(days=1))
    _listing(
        cli_api,
        {"thread": {"id": FULL_ID, "body": "line one\nline two"}, "member": {}},
        {"thread": {"id": "99999999-x", "body": "old"}, "member": {"archived_at": "2026-01-01T00:00:00Z"}},
        {"thread": {"id": "77777777-x", "body": "later"}, "member": {"snooze_until": future}},
    )
    runner = CliRunner()
    result = runner.invoke(main, ["threads"])
    assert result.exit_code == 0
    assert "abcdef12  line one line two" in result.output
    assert "99999999" not in result.output
    assert "77777777" not in result.output


@pytest.mark.parametrize("args", [["threads", "--all"], ["ls", "--all"], ["ls", "-a", "-s"]])
def test_threads_all_shows_flags(cli_api, args):
    future = format_timestamp(utcnow() + timedelta(days=1))
    _listing(
        cli_api,
        {"thread": {"id": "99999999-x", "body": "old"}, "member": {"archived_at": "2026-01-01T00:00:00Z"}},
        {"thread": {"id": "77777777-x", "body": "later"}, "member": {"snooze_until": future}},
    )
    runner = CliRunner()
    result = runner.invoke(main, args)
    assert result.exit_code == 0
    assert "99999999  old  [archived]" in result.output
    assert "77777777  later  [snoozed]" in result.output


def test_threads_truncates_long_body(cli_api):
    _listing(cli_api, {"thread": {"id": FULL_ID, "body": "x" * 80}, "member": {}})
    runner = CliRunner()
    result = runner.invoke(main, ["ls"])
    assert "x" * 55 + "…" in result.output
    assert "x" * 56 not in result.output


def test_threads_empty(cli_api):
    _listing(cli_api)
    runner = CliRunner()
    result = runner.invoke(main, ["threads"])
    assert result.exit_code == 0
    assert "No threads." in result.output


def test_threads_server_error(cli_api):
    cli_api.add("GET", "/api/secure/threads", {"error": "unauthorized"}, status=401)
    runner = CliRunner()
    result = runner.invoke(main, ["threads"])
    assert result.exit_code == 1
    assert "Error: unauthorized" in result.output


# --- thread view ---


@pytest.mark.parametrize("command", ["thread", "view"])
def test_view_resolves_short_id(cli_api, command):
    _listing(cli_api, {"thread": {"id": FULL_ID}, "member": {"archived_at": "2026-01-01T00:00:00Z"}})
    cli_api.add(
        "GET",
        f"/api/secure/thread/{FULL_ID}",
        {
            "data": {
                "thread": {"id": FULL_ID, "body": "The body"},
                "thread_comments": [
                    {"id": "c1", "body": "kept", "created_at": "2026-10-01T09:00:00Z"},
                    {"id": "c2", "body": "gone", "created_at": "2026-10-02T09:00:00Z", "deleted_at": "x"},
                ],
            }
        },
    )
    runner = CliRunner()
    result = runner.invoke(main, [command, "abcdef"])
    assert result.exit_code == 0, result.output
    assert "The body" in result.output
    assert "[2026-10-01] kept" in result.output
    assert "gone" not in result.output


def test_view_unknown_short_id(cli_api):
    _listing(cli_api)
    runner = CliRunner()
    result = runner.invoke(main, ["view", "zzz"])
    assert result.exit_code == 1
    assert cli_api.paths()[-1] == ("GET", "/api/secure/thread/zzz")
    assert "Error: not found" in result.output


# --- mutations ---


@pytest.mark.parametrize("command", ["new", "create"])
def test_new_thread(cli_api, command):
    cli_api.add("POST", "/api/secure/threads", {"thread": {"id": FULL_ID}})
    runner = CliRunner()
    result = runner.invoke(main, [command, "hello", "world"])
    assert result.exit_code == 0
    assert cli_api.body()["thread"]["body"] == "hello world"
    assert "Created thread: abcdef12" in result.output


@pytest.mark.parametrize("command", ["comment", "reply"])
def test_comment(cli_api, command):
    _listing(cli_api, {"thread": {"id": FULL_ID}, "member": {}})
    cli_api.add("PUT", "/api/secure/comment", {})
    runner = CliRunner()
    result = runner.invoke(main, [command, "abc", "looks", "good"])
    assert result.exit_code == 0
    assert cli_api.body()["threadId"] == FULL_ID
    assert cli_api.body()["body"] == "looks good"


@pytest.mark.parametrize(("command", "archived"), [("archive", True), ("unarchive", False)])
def test_archive_unarchive(cli_api, command, archived):
    cli_api.add("PUT", "/api/secure/threads/archive", {})
    runner = CliRunner()
    result = runner.invoke(main, [command, FULL_ID])
    assert result.exit_code == 0
    assert cli_api.paths() == [("PUT", "/api/secure/threads/archive")]
    assert cli_api.body() == {"threadId": FULL_ID, "archived": archived}


def test_snooze_default_duration(cli_api):
    cli_api.add("PUT", "/api/secure/threads/snooze", {})
    runner = CliRunner()
    result = runner.invoke(main, ["snooze", FULL_ID])
    assert result.exit_code == 0
    assert "Snoozed for 1d" in result.output
    assert cli_api.body()["threadId"] == FULL_ID


def test_snooze_invalid_duration_makes_no_request(cli_api):
    runner = CliRunner()
    result = runner.invoke(main, ["snooze", "abc", "5x"])
    assert result.exit_code == 1
    assert "Invalid duration format" in result.output
    assert cli_api.requests == []


@pytest.mark.parametrize("command", ["invite", "add", "tag"])
def test_invite_aliases(cli_api, command):
    cli_api.add("POST", "/api/secure/threads/invite", {})
    runner = CliRunner()
    result = runner.invoke(main, [command, FULL_ID, "alice"])
    assert result.exit_code == 0
    assert "Invited @alice" in result.output
    assert cli_api.body() == {"thread_id": FULL_ID, "invitee": "alice"}


@pytest.mark.parametrize("command", ["uninvite", "remove"])
def test_uninvite_aliases(cli_api, command):
    cli_api.add("POST", "/api/secure/threads/uninvite", {})
    runner = CliRunner()
    result = runner.invoke(main, [command, FULL_ID, "alice"])
    assert result.exit_code == 0
    assert cli_api.body() == {"thread_id": FULL_ID, "member_id": "alice"}


def test_invite_failure_exits_nonzero(cli_api):
    cli_api.add("POST", "/api/secure/threads/invite", {"error": "no such user"}, status=400)
    runner = CliRunner()
    result = runner.invoke(main, ["invite", FULL_ID, "ghost"])
    assert result.exit_code == 1
    assert "no such user" in result.output


def test_snooze_out_of_range_duration_makes_no_request(cli_api):
    runner = CliRunner()
    result = runner.invoke(main, ["snooze", "abc", "99999999d"])
    assert result.exit_code == 1
    assert "Error: Duration too long: 99999999d" in result.output
    assert not isinstance(result.exception, OverflowError)
    assert cli_api.requests == []
