"""Configuration and persistent state for dblebox.

All persistent state lives under ~/.dblebox/:
  config.json  : email and user ID of the logged-in operator
  cookies.json : session token and raw cookies (chmod 600)
  logs/        : debug logs
"""

from __future__ import annotations

import json
import logging
import os
import stat
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_BASE_URL = "https://app.dblebox.com"
DEFAULT_TIMEOUT = 30.0
SESSION_COOKIE = "session"

DBLEBOX_HOME = Path(os.environ.get("DBLEBOX_HOME", "~/.dblebox")).expanduser()
BASE_URL = os.environ.get("DBLEBOX_URL", DEFAULT_BASE_URL).rstrip("/")
TIMEOUT = float(os.environ.get("DBLEBOX_TIMEOUT", DEFAULT_TIMEOUT))

log = logging.getLogger("dblebox")


def setup_logging() -> None:
    """Configure logging to write to ~/.dblebox/logs/dblebox.log."""
    ensure_home()
    log_path = DBLEBOX_HOME / "logs" / "dblebox.log"
    handler = logging.FileHandler(log_path)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    root = logging.getLogger("dblebox")
    root.setLevel(logging.DEBUG)
    if not root.handlers:
        root.addHandler(handler)


def ensure_home(home: Path | None = None) -> None:
    """Create the ~/.dblebox directory structure if it doesn't exist."""
    home = home or DBLEBOX_HOME
    home.mkdir(parents=True, exist_ok=True)
    (home / "logs").mkdir(parents=True, exist_ok=True)


def _read_json(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError):
        log.debug("ignoring unreadable state file %s", path)
        return {}
    return data if isinstance(data, dict) else {}


def _write_json(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
        f.write("\n")


@dataclass
class Config:
    """Operator identity, persisted as config.json."""

    email: str | None = None
    user_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> Config:
        return cls(email=data.get("email"), user_id=data.get("userId"))

    def to_dict(self) -> dict:
        data = {}
        if self.email is not None:
            data["email"] = self.email
        if self.user_id is not None:
            data["userId"] = self.user_id
        return data


@dataclass
class CookieJar:
    """Cookies carried between invocations, persisted as cookies.json.

    Only the ``session`` cookie is ever sent; it is kept apart from the
    raw ``name=value`` strings in ``cookies``.
    """

    cookies: list[str] = field(default_factory=list)
    session_token: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> CookieJar:
        cookies = data.get("cookies", [])
        if not isinstance(cookies, list):
            cookies = []
        return cls(cookies=[str(c) for c in cookies], session_token=data.get("sessionToken"))

    def to_dict(self) -> dict:
        data: dict = {"cookies": list(self.cookies)}
        if self.session_token is not None:
            data["sessionToken"] = self.session_token
        return data

    def get(self, name: str) -> str | None:
        if name == SESSION_COOKIE:
            return self.session_token
        prefix = f"{name}="
        for raw in self.cookies:
            if raw.startswith(prefix):
                return raw[len(prefix) :]
        return None

    def set(self, name: str, value: str) -> None:
        if name == SESSION_COOKIE:
            self.session_token = value
            return
        prefix = f"{name}="
        self.cookies = [raw for raw in self.cookies if not raw.startswith(prefix)]
        self.cookies.append(f"{name}={value}")

    def header(self) -> str | None:
        """Return the Cookie header value for an authenticated request."""
        if not self.session_token:
            return None
        return f"{SESSION_COOKIE}={self.session_token}"


class Store:
    """Config and cookie jar of one invocation.

    Loaded once at startup and written back at every mutation point. Used as
    a context manager, both documents are flushed again on exit, whether the
    block finished normally or raised.

    Usage::

        with Store.load() as store:
            store.config.email = "me@example.com"
            store.save_config()
    """

    def __init__(self, home: Path, config: Config, cookies: CookieJar) -> None:
        self.home = home
        self.config = config
        self.cookies = cookies

    @property
    def config_path(self) -> Path:
        return self.home / "config.json"

    @property
    def cookie_path(self) -> Path:
        return self.home / "cookies.json"

    @classmethod
    def load(cls, home: Path | None = None) -> Store:
        """Load both documents, falling back to empty state on any read error."""
        home = home or DBLEBOX_HOME
        config = Config.from_dict(_read_json(home / "config.json"))
        cookies = CookieJar.from_dict(_read_json(home / "cookies.json"))
        return cls(home, config, cookies)

    def save_config(self) -> None:
        _write_json(self.config_path, self.config.to_dict())

    def save_cookies(self) -> None:
        """Persist the cookie jar with restricted permissions."""
        _write_json(self.cookie_path, self.cookies.to_dict())
        os.chmod(self.cookie_path, stat.S_IRUSR | stat.S_IWUSR)  # 600

    def clear_cookies(self) -> None:
        self.cookies = CookieJar()
        self.save_cookies()

    def flush(self) -> None:
        self.save_config()
        self.save_cookies()

    def __enter__(self) -> Store:
        return self

    def __exit__(self, *exc) -> None:
        self.flush()
