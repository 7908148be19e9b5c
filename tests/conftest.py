from __future__ import annotations

import asyncio
import re
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

# Flat layout: make top-level packages importable without installing
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from database.db_manager import ProfileStore  # noqa: E402
from database.session_store import SessionStore  # noqa: E402
from models.session import Cookie, Session  # noqa: E402
from utils.config import Config  # noqa: E402

OPERATOR = "op-1"


def result_card(profile_id: str, headline: str = "VP Sales at Acme", location: str = "Berlin, Germany") -> str:
    return f"""
    <div data-view-name="people-search-result">
      <img src="https://media.example.com/{profile_id}.jpg">
      <div>
        <p><a data-view-name="search-result-lockup-title"
              href="https://www.linkedin.com/in/{profile_id}/?miniProfileUrn=abc">Person {profile_id}</a></p>
        <p>{headline}</p>
        <p>{location}</p>
      </div>
    </div>
    """


def results_page(profile_ids: List[str]) -> str:
    return "<html><body><main>" + "".join(result_card(i) for i in profile_ids) + "</main></body></html>"


EMPTY_PAGE = "<html><body><main><h2>No results found</h2></main></body></html>"


class FakeBrowser:
    """Stands in for BrowserController; pages are served by a callable keyed on page number"""

    def __init__(self, page_for: Callable[[int], Optional[str]] = lambda n: EMPTY_PAGE,
                 visible_text: str = "", contact_text: Optional[str] = None,
                 fail_pages: Optional[Dict[int, str]] = None, landing_url: Optional[str] = None):
        self.page_for = page_for
        self.visible_text = visible_text
        self.contact_text = contact_text
        # page number -> "fail" | "cancel" | "blocked"
        self.fail_pages = fail_pages or {}
        self.landing_url = landing_url
        self.visited: List[str] = []
        self.keys: List[str] = []
        self.panel_open = False
        self.entered = False
        self.closed = False
        self._url = ""
        self._html = ""

    async def __aenter__(self):
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.closed = True
        return False

    @property
    def current_url(self) -> str:
        return self._url

    @staticmethod
    def page_number(url: str) -> int:
        match = re.search(r"[?&]page=(\d+)", url)
        return int(match.group(1)) if match else 1

    async def navigate(self, url, wait_until="domcontentloaded", timeout=30000, max_retries=2):
        self.visited.append(url)
        number = self.page_number(url)
        outcome = self.fail_pages.get(number)
        if outcome == "cancel":
            raise asyncio.CancelledError()
        if outcome == "blocked":
            self._url = "https://www.linkedin.com/authwall?trk=x"
            return False
        if outcome == "fail":
            self._url = "about:blank"
            return False
        self._url = self.landing_url or url
        self._html = self.page_for(number) or ""
        return self.landing_url is None or "/in/" in self.landing_url

    async def get_page_content(self) -> str:
        return self._html

    async def get_visible_text(self) -> str:
        if self.panel_open and self.contact_text:
            return self.visible_text + "\n" + self.contact_text
        return self.visible_text

    async def settle(self, min_seconds, max_seconds):
        return None

    async def wait_for_selector(self, selector, timeout=10000) -> bool:
        return True

    async def humanize(self):
        return None

    async def click_first(self, selectors) -> bool:
        if self.contact_text is None:
            return False
        self.panel_open = True
        return True

    async def wait_for_text(self, text, timeout=5000) -> bool:
        return bool(self.panel_open and self.contact_text and text in self.contact_text)

    async def press_key(self, key):
        self.keys.append(key)
        self.panel_open = False


class BrowserFactory:
    """Hands out one prepared FakeBrowser per call and remembers them"""

    def __init__(self, make: Callable[[], FakeBrowser]):
        self.make = make
        self.created: List[FakeBrowser] = []
        self.sessions: List[Session] = []

    def __call__(self, session: Session) -> FakeBrowser:
        self.sessions.append(session)
        browser = self.make()
        self.created.append(browser)
        return browser


@pytest.fixture
def config(tmp_path, monkeypatch):
    for var in ("OPERATOR_ID", "HEADLESS", "USE_PROXY", "PROXY_SERVER", "FALLBACK_EMAIL", "LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    return Config(config_file=str(tmp_path / "settings.yaml"), write_defaults=False)


@pytest.fixture
def db_path(tmp_path) -> str:
    return str(tmp_path / "prospector.db")


@pytest.fixture
def profile_store(db_path) -> ProfileStore:
    return ProfileStore(db_path)


@pytest.fixture
def session_store(db_path) -> SessionStore:
    return SessionStore(db_path)


@pytest.fixture
def logged_in(session_store) -> Session:
    session = Session(operator_id=OPERATOR, cookies=[Cookie(name="li_at", value="token")])
    session_store.store_session(session)
    return session
