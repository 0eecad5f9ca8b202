"""Thread, comment and membership operations.

Each operation is one request through :class:`SessionClient`. Responses are
decoded here: successful bodies are returned (parsed into models where the
CLI needs them), a 404 raises :class:`NotFoundError` and any other non-2xx
raises :class:`ApiError`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import httpx

from dblebox.client import SessionClient
from dblebox.duration import snooze_until
from dblebox.exceptions import ApiError, NotFoundError
from dblebox.models import Comment, Thread, ThreadDetail, ThreadEntry, utcnow

log = logging.getLogger("dblebox.threads")


@dataclass(frozen=True)
class ThreadFilter:
    """Which hidden threads to include in a listing.

    By default archived threads and threads snoozed into the future are
    left out. ``archived`` and ``snoozed`` each lift one exclusion; ``all``
    lifts both.
    """

    archived: bool = False
    snoozed: bool = False
    all: bool = False


def is_visible(entry: ThreadEntry, flt: ThreadFilter, now: datetime) -> bool:
    if flt.all:
        return True
    if entry.member.archived and not flt.archived:
        return False
    if entry.member.snoozed(now) and not flt.snoozed:
        return False
    return True


def _json(response: httpx.Response) -> Any:
    try:
        data = response.json()
    except ValueError:
        data = None
    if response.is_success:
        return data if data is not None else {}

    message = ""
    if isinstance(data, dict):
        message = data.get("error") or data.get("message") or ""
    message = message or f"HTTP {response.status_code}"
    log.debug("request rejected status=%s error=%s", response.status_code, message)
    if response.status_code == 404:
        raise NotFoundError(response.status_code, message)
    raise ApiError(response.status_code, message)


def _creator_id(client: SessionClient) -> str:
    return client.store.config.user_id or ""


def get_threads(
    client: SessionClient,
    flt: ThreadFilter | None = None,
    now: datetime | None = None,
) -> list[ThreadEntry]:
    """List the viewer's threads, hiding archived and snoozed ones by default."""
    flt = flt or ThreadFilter()
    now = now or utcnow()
    data = _json(client.request("/api/secure/threads"))
    items = (data.get("threadWithMember") or []) if isinstance(data, dict) else []
    entries = [ThreadEntry.from_dict(item) for item in items]
    return [e for e in entries if is_visible(e, flt, now)]


def get_thread(client: SessionClient, thread_id: str) -> ThreadDetail:
    data = _json(client.request(f"/api/secure/thread/{thread_id}"))
    return ThreadDetail.from_dict(data)


def create_thread(client: SessionClient, body: str) -> dict:
    """Create a thread; its ID is generated here and kept by the server."""
    thread = Thread.new(body, _creator_id(client))
    log.debug("creating thread id=%s", thread.id)
    data = _json(client.request("/api/secure/threads", method="POST", json={"thread": thread.to_dict()}))
    if isinstance(data, dict) and not (data.get("thread") or data.get("id")):
        data = {**data, "thread": thread.to_dict()}
    return data


def add_comment(client: SessionClient, thread_id: str, body: str) -> dict:
    comment = Comment.new(thread_id, body, _creator_id(client))
    log.debug("adding comment id=%s thread=%s", comment.id, thread_id)
    return _json(
        client.request(
            "/api/secure/comment",
            method="PUT",
            json={"commentId": comment.id, "threadId": thread_id, "body": body},
        )
    )


def archive_thread(client: SessionClient, thread_id: str, archived: bool = True) -> dict:
    return _json(
        client.request(
            "/api/secure/threads/archive",
            method="PUT",
            json={"threadId": thread_id, "archived": archived},
        )
    )


def snooze_thread(
    client: SessionClient, thread_id: str, duration: str, now: datetime | None = None
) -> dict:
    """Hide a thread until ``duration`` from now.

    Raises:
        InvalidDurationError: Before any request, if ``duration`` is malformed.
    """
    until = snooze_until(duration, now)
    return _json(
        client.request(
            "/api/secure/threads/snooze",
            method="PUT",
            json={"threadId": thread_id, "snoozeUntil": until},
        )
    )


def invite_to_thread(client: SessionClient, thread_id: str, invitee: str) -> dict:
    return _json(
        client.request(
            "/api/secure/threads/invite",
            method="POST",
            json={"thread_id": thread_id, "invitee": invitee},
        )
    )


def uninvite_from_thread(client: SessionClient, thread_id: str, member_id: str) -> dict:
    return _json(
        client.request(
            "/api/secure/threads/uninvite",
            method="POST",
            json={"thread_id": thread_id, "member_id": member_id},
        )
    )
