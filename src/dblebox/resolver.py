"""Short thread ID resolution.

Users may type the first few characters of a thread ID, as shown by
``dblebox threads``. Anything shorter than a full UUID is treated as a
prefix and matched against every thread, archived and snoozed included.
"""

from __future__ import annotations

import logging

from dblebox.client import SessionClient
from dblebox.models import ThreadEntry
from dblebox.threads import ThreadFilter, get_threads

SHORT_ID_LENGTH = 36

log = logging.getLogger("dblebox.resolver")


def match_prefix(entries: list[ThreadEntry], prefix: str) -> str | None:
    """Return the ID of the first thread starting with ``prefix``, in list order."""
    matches = [e.thread.id for e in entries if e.thread.id and e.thread.id.startswith(prefix)]
    if not matches:
        return None
    if len(matches) > 1:
        log.warning("prefix %r is ambiguous (%d threads), using %s", prefix, len(matches), matches[0])
    return matches[0]


def resolve_thread_id(client: SessionClient, value: str) -> str:
    """Expand a short thread ID; full IDs and unmatched prefixes pass through.

    An unmatched prefix is returned unchanged, so the following request
    fails on the server with a not-found error.
    """
    if len(value) >= SHORT_ID_LENGTH:
        return value
    entries = get_threads(client, ThreadFilter(all=True))
    resolved = match_prefix(entries, value)
    if resolved is None:
        log.debug("no thread matches prefix %r", value)
        return value
    return resolved
