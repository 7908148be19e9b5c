from __future__ import annotations

import sqlite3
from datetime import timedelta

from models.profile import utc_now
from models.session import Cookie, Session

from conftest import OPERATOR


def test_store_and_get_marks_session_used(session_store):
    session_store.store_session(Session(
        operator_id=OPERATOR,
        cookies=[Cookie(name="li_at", value="token", http_only=True, same_site="None")],
    ))

    session = session_store.get_session(OPERATOR)

    assert session is not None
    assert session.last_used_at is not None
    assert session.cookies[0].name == "li_at"
    assert session.cookies[0].same_site == "None"
    assert session.is_usable()


def test_unknown_operator_has_no_session(session_store):
    assert session_store.get_session("nobody") is None
    assert not session_store.is_session_valid("nobody")


def test_expired_session_is_flagged_invalid(session_store, db_path):
    session_store.store_session(Session(
        operator_id=OPERATOR,
        cookies=[Cookie(name="li_at", value="token")],
        expires_at=utc_now() - timedelta(minutes=1),
    ))

    assert session_store.get_session(OPERATOR) is None

    conn = sqlite3.connect(db_path)
    try:
        is_valid = conn.execute("SELECT is_valid FROM sessions WHERE operator_id = ?", (OPERATOR,)).fetchone()[0]
    finally:
        conn.close()
    assert is_valid == 0


def test_import_cookies_normalizes_browser_export(session_store):
    raw = [
        {"name": "li_at", "value": "a", "httpOnly": False, "sameSite": "no_restriction", "hostOnly": True},
        {"name": "JSESSIONID", "value": "b", "domain": "www.linkedin.com", "sameSite": "strict"},
    ]

    session = session_store.import_cookies(OPERATOR, raw)
    cookies = session_store.get_session(OPERATOR).browser_cookies()

    assert len(session.cookies) == 2
    assert cookies[0] == {
        "name": "li_at", "value": "a", "domain": ".linkedin.com", "path": "/",
        "httpOnly": False, "secure": True, "sameSite": "Lax",
    }
    assert cookies[1]["domain"] == "www.linkedin.com"
    assert cookies[1]["sameSite"] == "Strict"


def test_reimport_replaces_previous_session(session_store, logged_in):
    session_store.import_cookies(OPERATOR, [{"name": "li_at", "value": "fresh"}])
    assert [c.value for c in session_store.get_session(OPERATOR).cookies] == ["fresh"]


def test_invalidate_and_delete(session_store, logged_in):
    session_store.invalidate_session(OPERATOR)
    assert session_store.get_session(OPERATOR) is None

    assert session_store.delete_session(OPERATOR)
    assert not session_store.delete_session(OPERATOR)


def test_session_without_cookies_is_not_usable():
    assert not Session(operator_id=OPERATOR).is_usable()
    assert Session(operator_id=OPERATOR, cookies=[Cookie(name="a", value="b")]).is_usable()
