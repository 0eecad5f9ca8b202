"""CLI entry point for dblebox."""

from __future__ import annotations

import contextlib
import functools
from collections.abc import Iterator
from datetime import datetime

import click

from dblebox import __version__, auth
from dblebox import threads as api
from dblebox.client import SessionClient
from dblebox.config import DBLEBOX_HOME, Store, setup_logging
from dblebox.duration import DEFAULT_SNOOZE, snooze_until
from dblebox.exceptions import AuthError, DbleboxError
from dblebox.models import ThreadEntry, utcnow
from dblebox.resolver import resolve_thread_id
from dblebox.threads import ThreadFilter

_BODY_WIDTH = 55
_RULE = "─" * 60


@contextlib.contextmanager
def _session() -> Iterator[SessionClient]:
    """Load state once for this invocation and flush it on the way out."""
    with Store.load() as store, SessionClient(store) as client:
        yield client


def _handle_errors(func):
    """Print dblebox errors to stderr and exit 1 instead of a traceback."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DbleboxError as e:
            click.echo(f"Error: {e}", err=True)
            raise SystemExit(1)

    return wrapper


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """dblebox: thread-based communication from the terminal."""
    setup_logging()


@main.command()
@click.option("-e", "--email", default=None, help="Email address.")
@_handle_errors
def login(email: str | None) -> None:
    """Log in with an emailed one-time code."""
    if not email:
        email = click.prompt("Email")

    with _session() as client:
        click.echo(f"\nSending verification code to {email}...")
        begin = auth.begin_email_verification(client, email)
        if not begin.success:
            raise AuthError(begin.error)
        click.echo("Code sent! Check your inbox.\n")

        code = click.prompt("Enter 6-digit code")
        click.echo("\nVerifying...")
        result = auth.verify_email_code(client, email, code.strip(), begin.verify_id or "")
        if not result.success:
            raise AuthError(result.error)

    name = result.user.username if result.user and result.user.username else email
    click.echo(f"\nLogged in as {name}")
    click.echo(f"   Session saved to {DBLEBOX_HOME}\n")


@main.command()
def logout() -> None:
    """Log out and clear the stored session."""
    with _session() as client:
        auth.logout(client)
    click.echo("Logged out. Session cleared.")


@main.command()
def whoami() -> None:
    """Show the logged-in user."""
    with _session() as client:
        status = auth.check_session(client)
    if not status.authenticated:
        click.echo("Not logged in. Run: dblebox login")
        raise SystemExit(1)
    if status.user:
        click.echo(f"User:   {status.user.username}")
        click.echo(f"Email:  {status.user.email}")


def _format_entry(entry: ThreadEntry, now: datetime) -> str:
    short_id = entry.thread.id[:8]
    body = entry.thread.body.replace("\n", " ")
    if len(body) > _BODY_WIDTH:
        body = body[:_BODY_WIDTH] + "…"
    flags = []
    if entry.member.archived:
        flags.append("[archived]")
    if entry.member.snoozed(now):
        flags.append("[snoozed]")
    return f"  {short_id}  {body}  {' '.join(flags)}".rstrip()


@main.command()
@click.option("-a", "--archived", is_flag=True, help="Include archived threads.")
@click.option("-s", "--snoozed", is_flag=True, help="Include snoozed threads.")
@click.option("--all", "show_all", is_flag=True, help="Show all threads.")
@_handle_errors
def threads(archived: bool, snoozed: bool, show_all: bool) -> None:
    """List threads."""
    now = utcnow()
    flt = ThreadFilter(archived=archived, snoozed=snoozed, all=show_all)
    with _session() as client:
        entries = api.get_threads(client, flt, now=now)

    if not entries:
        click.echo("No threads.")
        return
    click.echo()
    for entry in entries:
        click.echo(_format_entry(entry, now))
    click.echo()


@main.command()
@click.argument("thread_id")
@_handle_errors
def thread(thread_id: str) -> None:
    """View a thread and its comments."""
    with _session() as client:
        detail = api.get_thread(client, resolve_thread_id(client, thread_id))

    click.echo("\n" + _RULE)
    click.echo(detail.thread.body)
    click.echo(_RULE)

    comments = [c for c in detail.comments if not c.deleted_at]
    if comments:
        click.echo("\nComments:\n")
        for c in comments:
            click.echo(f"  [{c.created_at[:10]}] {c.body}")
    click.echo()


@main.command()
@click.argument("body", nargs=-1, required=True)
@_handle_errors
def new(body: tuple[str, ...]) -> None:
    """Create a new thread."""
    with _session() as client:
        result = api.create_thread(client, " ".join(body))
    created = result.get("thread") or result
    click.echo(f"Created thread: {(created.get('id') or '')[:8]}")


@main.command()
@click.argument("thread_id")
@click.argument("body", nargs=-1, required=True)
@_handle_errors
def comment(thread_id: str, body: tuple[str, ...]) -> None:
    """Add a comment to a thread."""
    with _session() as client:
        api.add_comment(client, resolve_thread_id(client, thread_id), " ".join(body))
    click.echo("Comment added")


@main.command()
@click.argument("thread_id")
@_handle_errors
def archive(thread_id: str) -> None:
    """Archive a thread."""
    with _session() as client:
        api.archive_thread(client, resolve_thread_id(client, thread_id), True)
    click.echo("Thread archived")


@main.command()
@click.argument("thread_id")
@_handle_errors
def unarchive(thread_id: str) -> None:
    """Unarchive a thread."""
    with _session() as client:
        api.archive_thread(client, resolve_thread_id(client, thread_id), False)
    click.echo("Thread unarchived")


@main.command()
@click.argument("thread_id")
@click.argument("duration", default=DEFAULT_SNOOZE)
@_handle_errors
def snooze(thread_id: str, duration: str) -> None:
    """Snooze a thread (1h, 1d, 1w, 1m)."""
    # Reject a bad duration before resolving the ID.
    snooze_until(duration)
    with _session() as client:
        api.snooze_thread(client, resolve_thread_id(client, thread_id), duration)
    click.echo(f"Snoozed for {duration}")


@main.command()
@click.argument("thread_id")
@click.argument("username")
@_handle_errors
def invite(thread_id: str, username: str) -> None:
    """Invite or tag someone on a thread."""
    with _session() as client:
        api.invite_to_thread(client, resolve_thread_id(client, thread_id), username)
    click.echo(f"Invited @{username} to thread")


@main.command()
@click.argument("thread_id")
@click.argument("username")
@_handle_errors
def uninvite(thread_id: str, username: str) -> None:
    """Remove someone from a thread."""
    with _session() as client:
        api.uninvite_from_thread(client, resolve_thread_id(client, thread_id), username)
    click.echo(f"Removed @{username} from thread")


_ALIASES = {
    "ls": threads,
    "view": thread,
    "create": new,
    "reply": comment,
    "add": invite,
    "tag": invite,
    "remove": uninvite,
}

for _alias, _command in _ALIASES.items():
    main.add_command(_command, name=_alias)
