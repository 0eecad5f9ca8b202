"""Email one-time-code login.

The flow has three states: unauthenticated, verification pending (a code
was mailed and ``verify_id`` identifies the attempt) and authenticated (a
session token is stored). Every step is a single request; none is retried.
Functions here return result objects instead of raising so the CLI can
branch on ``success``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from dblebox.client import SessionClient
from dblebox.config import SESSION_COOKIE
from dblebox.exceptions import TransportError
from dblebox.models import User

log = logging.getLogger("dblebox.auth")


@dataclass(frozen=True)
class BeginResult:
    success: bool
    verify_id: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class VerifyResult:
    success: bool
    user: User | None = None
    error: str | None = None


@dataclass(frozen=True)
class SessionStatus:
    authenticated: bool
    user: User | None = None


def _payload(response: httpx.Response) -> dict:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _error(response: httpx.Response, data: dict) -> str:
    return data.get("error") or f"HTTP {response.status_code}"


def begin_email_verification(client: SessionClient, email: str) -> BeginResult:
    """Ask the server to mail a one-time code to ``email``.

    On success the email is remembered in config.json.
    """
    response = client.request("/api/auth/email/begin", method="POST", json={"email": email})
    data = _payload(response)
    if not response.is_success:
        log.debug("begin verification rejected status=%s", response.status_code)
        return BeginResult(success=False, error=_error(response, data))

    client.store.config.email = email
    client.store.save_config()
    return BeginResult(success=True, verify_id=data.get("auth_email_verify_id"))


def verify_email_code(
    client: SessionClient, email: str, code: str, verify_id: str
) -> VerifyResult:
    """Exchange the mailed code for a session."""
    response = client.request(
        "/api/auth/email/verify",
        method="POST",
        json={"email": email, "code": code, "auth_email_verify_id": verify_id},
    )
    data = _payload(response)
    if not response.is_success:
        log.debug("code verification rejected status=%s", response.status_code)
        return VerifyResult(success=False, error=_error(response, data))

    store = client.store
    if data.get("session_token"):
        store.cookies.set(SESSION_COOKIE, data["session_token"])
        store.save_cookies()

    user = User.from_dict(data["user"]) if data.get("user") else None
    if user is not None:
        store.config.user_id = user.id
        store.save_config()

    log.info("logged in user_id=%s", user.id if user else None)
    return VerifyResult(success=True, user=user)


def check_session(client: SessionClient) -> SessionStatus:
    """Report whether the stored session is accepted. Never raises."""
    try:
        response = client.request("/api/secure/threads")
    except TransportError:
        return SessionStatus(authenticated=False)
    if not response.is_success:
        return SessionStatus(authenticated=False)
    data = _payload(response)
    user = User.from_dict(data["user"]) if data.get("user") else None
    return SessionStatus(authenticated=True, user=user)


def logout(client: SessionClient) -> None:
    """Log out on the server if possible, then always drop the local session."""
    try:
        client.request("/api/logout", method="POST")
    except TransportError:
        log.warning("server logout failed, clearing local session anyway")
    finally:
        client.store.clear_cookies()
