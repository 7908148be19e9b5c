"""
Session Store: per-operator cookie sets kept in SQLite
"""

import json
import sqlite3
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from models.session import Cookie, Session
from database.db_manager import to_db_timestamp, from_db_timestamp

logger = logging.getLogger(__name__)


class SessionStore:
    """Holds the authenticated cookie set for each operator"""

    def __init__(self, db_path: str = 'data/prospector.db'):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_database()

    def _init_database(self):
        conn = self._get_connection()
        try:
            conn.execute('''
                CREATE TABLE IF NOT EXISTS sessions (
                    operator_id TEXT PRIMARY KEY,
                    cookies TEXT NOT NULL,
                    captured_at TEXT NOT NULL,
                    expires_at TEXT NOT NULL,
                    last_used_at TEXT,
                    is_valid INTEGER NOT NULL DEFAULT 1
                )
            ''')
            conn.commit()
        finally:
            conn.close()

    def _get_connection(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self.db_path))

    def store_session(self, session: Session) -> None:
        """Replace whatever session the operator had before"""
        conn = self._get_connection()
        try:
            conn.execute('''
                INSERT OR REPLACE INTO sessions
                (operator_id, cookies, captured_at, expires_at, last_used_at, is_valid)
                VALUES (?, ?, ?, ?, ?, ?)
            ''', (
                session.operator_id,
                json.dumps([c.model_dump(by_alias=True, exclude_none=True) for c in session.cookies]),
                to_db_timestamp(session.captured_at),
                to_db_timestamp(session.expires_at),
                to_db_timestamp(session.last_used_at) if session.last_used_at else None,
                1 if session.is_valid else 0,
            ))
            conn.commit()
        finally:
            conn.close()

        logger.info(f"[OK] Stored session for {session.operator_id} ({len(session.cookies)} cookies)")

    def import_cookies(self, operator_id: str, raw_cookies: List[dict]) -> Session:
        """Build and store a fresh session from an exported cookie list"""
        cookies = [Cookie.model_validate(raw) for raw in raw_cookies]
        session = Session(operator_id=operator_id, cookies=cookies)
        self.store_session(session)
        return session

    def get_session(self, operator_id: str) -> Optional[Session]:
        """Valid, unexpired session for the operator, or None; marks it as used"""
        if not self.is_session_valid(operator_id):
            return None

        now = datetime.now(timezone.utc)
        conn = self._get_connection()
        conn.row_factory = sqlite3.Row
        try:
            row = conn.execute(
                'SELECT * FROM sessions WHERE operator_id = ?', (operator_id,)
            ).fetchone()
            if row is None:
                return None
            conn.execute(
                'UPDATE sessions SET last_used_at = ? WHERE operator_id = ?',
                (to_db_timestamp(now), operator_id),
            )
            conn.commit()
        finally:
            conn.close()

        return Session(
            operator_id=row['operator_id'],
            cookies=[Cookie.model_validate(c) for c in json.loads(row['cookies'])],
            captured_at=from_db_timestamp(row['captured_at']),
            expires_at=from_db_timestamp(row['expires_at']),
            last_used_at=now,
            is_valid=bool(row['is_valid']),
        )

    def is_session_valid(self, operator_id: str) -> bool:
        """True when a valid session exists; an expired one is flagged invalid"""
        conn = self._get_connection()
        try:
            row = conn.execute(
                'SELECT expires_at, is_valid FROM sessions WHERE operator_id = ?', (operator_id,)
            ).fetchone()
            if row is None:
                return False

            expires_at, is_valid = row
            if not is_valid:
                return False

            if from_db_timestamp(expires_at) <= datetime.now(timezone.utc):
                conn.execute('UPDATE sessions SET is_valid = 0 WHERE operator_id = ?', (operator_id,))
                conn.commit()
                logger.info(f"Session for {operator_id} expired")
                return False
            return True
        finally:
            conn.close()

    def invalidate_session(self, operator_id: str) -> None:
        conn = self._get_connection()
        try:
            conn.execute('UPDATE sessions SET is_valid = 0 WHERE operator_id = ?', (operator_id,))
            conn.commit()
        finally:
            conn.close()

    def delete_session(self, operator_id: str) -> bool:
        conn = self._get_connection()
        try:
            cursor = conn.execute('DELETE FROM sessions WHERE operator_id = ?', (operator_id,))
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()
