"""Entities exchanged with the dblebox API."""

from __future__ import annotations

import logging
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone

log = logging.getLogger("dblebox.models")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Format as UTC ISO-8601 with milliseconds and a ``Z`` suffix."""
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse a server timestamp; values without an offset are taken as UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class User:
    id: str
    username: str = ""
    email: str = ""
    firstname: str | None = None
    lastname: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> User:
        return cls(
            id=data.get("id", ""),
            username=data.get("username", ""),
            email=data.get("email", ""),
            firstname=data.get("firstname"),
            lastname=data.get("lastname"),
        )


@dataclass(frozen=True)
class Thread:
    id: str
    body: str
    created_at: str
    creator_id: str
    deleted_at: str | None = None
    parent_thread_id: str | None = None
    parent_assigned_at: str | None = None
    block_note_id: str | None = None

    @classmethod
    def new(cls, body: str, creator_id: str, now: datetime | None = None) -> Thread:
        """Build a thread with a fresh UUID4; the server keeps the client's ID."""
        return cls(
            id=str(uuid.uuid4()),
            body=body,
            created_at=format_timestamp(now or utcnow()),
            creator_id=creator_id,
        )

    @classmethod
    def from_dict(cls, data: dict) -> Thread:
        return cls(
            id=data.get("id") or "",
            body=data.get("body") or "",
            created_at=data.get("created_at") or "",
            creator_id=data.get("creator_id") or "",
            deleted_at=data.get("deleted_at"),
            parent_thread_id=data.get("parent_thread_id"),
            parent_assigned_at=data.get("parent_assigned_at"),
            block_note_id=data.get("block_note_id"),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ThreadMember:
    """Per-viewer state of a thread."""

    archived_at: str | None = None
    snooze_until: str | None = None

    @classmethod
    def from_dict(cls, data: dict | None) -> ThreadMember:
        data = data or {}
        return cls(archived_at=data.get("archived_at"), snooze_until=data.get("snooze_until"))

    @property
    def archived(self) -> bool:
        return bool(self.archived_at)

    def snoozed(self, now: datetime) -> bool:
        """True while ``snooze_until`` is strictly after ``now``."""
        if not self.snooze_until:
            return False
        try:
            until = parse_timestamp(self.snooze_until)
        except ValueError:
            log.debug("unparseable snooze_until %r, treating as not snoozed", self.snooze_until)
            return False
        return until > now


@dataclass(frozen=True)
class ThreadEntry:
    """One item of the thread list: the thread and the viewer's member record."""

    thread: Thread
    member: ThreadMember = field(default_factory=ThreadMember)

    @classmethod
    def from_dict(cls, data: dict) -> ThreadEntry:
        # Some list items are the bare thread, without the member envelope.
        thread = data.get("thread") or data
        return cls(thread=Thread.from_dict(thread), member=ThreadMember.from_dict(data.get("member")))


@dataclass(frozen=True)
class Comment:
    id: str
    thread_id: str
    body: str
    created_at: str
    creator_id: str
    deleted_at: str | None = None

    @classmethod
    def new(cls, thread_id: str, body: str, creator_id: str, now: datetime | None = None) -> Comment:
        return cls(
            id=str(uuid.uuid4()),
            thread_id=thread_id,
            body=body,
            created_at=format_timestamp(now or utcnow()),
            creator_id=creator_id,
        )

    @classmethod
    def from_dict(cls, data: dict) -> Comment:
        return cls(
            id=data.get("id") or "",
            thread_id=data.get("thread_id") or "",
            body=data.get("body") or "",
            created_at=data.get("created_at") or "",
            creator_id=data.get("creator_id") or "",
            deleted_at=data.get("deleted_at"),
        )


@dataclass(frozen=True)
class ThreadDetail:
    """A single thread with its comments."""

    thread: Thread
    comments: list[Comment] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> ThreadDetail:
        data = data.get("data") or data
        thread = data.get("thread") or data
        comments = [Comment.from_dict(c) for c in data.get("thread_comments") or []]
        return cls(thread=Thread.from_dict(thread), comments=comments)
