"""Authenticated HTTP access to the dblebox API.

Every remote call goes through :class:`SessionClient`. It attaches the
stored session token as a cookie and captures renewed tokens from
``Set-Cookie`` response headers, writing them to disk straight away so the
next invocation picks them up.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from dblebox import config
from dblebox.config import SESSION_COOKIE, Store
from dblebox.exceptions import TransportError

log = logging.getLogger("dblebox.client")


class SessionClient:
    """Thin wrapper around :class:`httpx.Client` bound to a :class:`Store`.

    The client never classifies responses; callers inspect the status code.

    Usage::

        with Store.load() as store, SessionClient(store) as client:
            response = client.request("/api/secure/threads")
    """

    def __init__(
        self,
        store: Store,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.store = store
        self.base_url = (base_url or config.BASE_URL).rstrip("/")
        self._http = httpx.Client(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else config.TIMEOUT,
            transport=transport,
        )

    def __enter__(self) -> SessionClient:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def _headers(self, extra: dict[str, str] | None) -> httpx.Headers:
        headers = httpx.Headers({"Content-Type": "application/json"})
        cookie = self.store.cookies.header()
        if cookie:
            headers["Cookie"] = cookie
        if extra:
            headers.update(extra)
        return headers

    def request(
        self,
        path: str,
        method: str = "GET",
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Send a JSON request and return the raw response.

        Raises:
            TransportError: If the request failed before a response arrived.
        """
        try:
            response = self._http.request(method, path, json=json, headers=self._headers(headers))
        except httpx.HTTPError as e:
            log.debug("request failed method=%s path=%s error=%s", method, path, e)
            raise TransportError(f"{method} {path} failed: {e}") from e
        finally:
            # The store is the only cookie source; don't let httpx replay its own jar.
            self._http.cookies.clear()

        log.debug("request method=%s path=%s status=%s", method, path, response.status_code)
        self._capture_session(response)
        return response

    def _capture_session(self, response: httpx.Response) -> None:
        token = None
        for cookie in response.cookies.jar:
            if cookie.name == SESSION_COOKIE and cookie.value:
                token = cookie.value
        if token is None:
            return
        self.store.cookies.set(SESSION_COOKIE, token)
        self.store.save_cookies()
        log.debug("session token renewed from Set-Cookie")
