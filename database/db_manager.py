"""
Profile Store: SQLite persistence for view history and scraped profiles
"""

import json
import sqlite3
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Dict, Optional

from models.profile import (
    HistoryGroup, HistoryStats, ProfileDetail, SearchCriteria, ViewedProfileRecord,
)
from scraper.errors import ProfileStoreError

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = '%Y-%m-%dT%H:%M:%S.%f+00:00'


def to_db_timestamp(value: datetime) -> str:
    """Fixed-width UTC text so timestamps sort and compare as strings"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def from_db_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)


class ProfileStore:
    """History of profiles shown to each operator plus their scraped detail records"""

    def __init__(self, db_path: str = 'data/prospector.db'):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_database()

    def _init_database(self):
        """Initialize database schema"""
        conn = self._get_connection()
        cursor = conn.cursor()

        # One row per (operator, profile); later sightings are ignored
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS viewed_profiles (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                operator_id TEXT NOT NULL,
                profile_id TEXT NOT NULL,
                profile_url TEXT NOT NULL,
                name TEXT NOT NULL DEFAULT '',
                headline TEXT,
                location TEXT,
                avatar_url TEXT,
                search_criteria TEXT NOT NULL,
                search_key TEXT NOT NULL,
                viewed_at TEXT NOT NULL,
                UNIQUE(operator_id, profile_id)
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS scraped_profiles (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                operator_id TEXT NOT NULL,
                profile_url TEXT NOT NULL,
                profile_id TEXT NOT NULL,
                name TEXT NOT NULL,
                headline TEXT,
                company TEXT,
                location TEXT,
                email TEXT NOT NULL,
                email_source TEXT NOT NULL,
                data TEXT NOT NULL,
                scraped_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                UNIQUE(operator_id, profile_url)
            )
        ''')

        cursor.execute('CREATE INDEX IF NOT EXISTS idx_viewed_sorted_ids ON viewed_profiles(operator_id, profile_id ASC)')
        cursor.execute('CREATE INDEX IF NOT EXISTS idx_viewed_at ON viewed_profiles(operator_id, viewed_at DESC)')
        cursor.execute('CREATE INDEX IF NOT EXISTS idx_viewed_search ON viewed_profiles(operator_id, search_key, viewed_at DESC)')
        cursor.execute('CREATE INDEX IF NOT EXISTS idx_scraped_operator ON scraped_profiles(operator_id, scraped_at DESC)')

        conn.commit()
        conn.close()

        logger.info("Profile store initialized")

    def _get_connection(self) -> sqlite3.Connection:
        """Get database connection"""
        return sqlite3.connect(str(self.db_path))

    # ------------------------------------------------------------------
    # View history
    # ------------------------------------------------------------------

    def append_viewed_batch(self, operator_id: str, records: List[ViewedProfileRecord]) -> int:
        """Insert history rows in one transaction; existing (operator, profile) pairs are skipped"""
        if not records:
            return 0

        rows = [
            (
                operator_id,
                record.profile_id,
                record.profile_url,
                record.name or '',
                record.headline,
                record.location,
                record.avatar_url,
                record.search_criteria.model_dump_json(),
                record.search_key,
                to_db_timestamp(record.viewed_at),
            )
            for record in records
        ]

        conn = self._get_connection()
        try:
            before = conn.total_changes
            conn.executemany('''
                INSERT OR IGNORE INTO viewed_profiles
                (operator_id, profile_id, profile_url, name, headline, location,
                 avatar_url, search_criteria, search_key, viewed_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ''', rows)
            conn.commit()
            added = conn.total_changes - before
        except sqlite3.Error as e:
            conn.rollback()
            raise ProfileStoreError(f"Failed to record {len(rows)} viewed profiles: {e}") from e
        finally:
            conn.close()

        logger.debug(f"Recorded {added}/{len(rows)} viewed profiles for {operator_id}")
        return added

    def list_known_ids(self, operator_id: str) -> List[str]:
        """All profile ids ever shown to the operator, ascending"""
        conn = self._get_connection()
        try:
            cursor = conn.execute('''
                SELECT profile_id FROM viewed_profiles
                WHERE operator_id = ?
                ORDER BY profile_id ASC
            ''', (operator_id,))
            return [row[0] for row in cursor.fetchall()]
        finally:
            conn.close()

    def count_viewed(self, operator_id: str) -> int:
        conn = self._get_connection()
        try:
            cursor = conn.execute('SELECT COUNT(*) FROM viewed_profiles WHERE operator_id = ?', (operator_id,))
            return cursor.fetchone()[0]
        finally:
            conn.close()

    def get_history(self, operator_id: str, start: Optional[datetime] = None,
                    end: Optional[datetime] = None) -> List[ViewedProfileRecord]:
        """History rows, newest first, optionally bounded by viewed_at"""
        query = 'SELECT * FROM viewed_profiles WHERE operator_id = ?'
        params: list = [operator_id]
        if start:
            query += ' AND viewed_at >= ?'
            params.append(to_db_timestamp(start))
        if end:
            query += ' AND viewed_at <= ?'
            params.append(to_db_timestamp(end))
        query += ' ORDER BY viewed_at DESC, id DESC'

        conn = self._get_connection()
        conn.row_factory = sqlite3.Row
        try:
            rows = conn.execute(query, params).fetchall()
        finally:
            conn.close()

        return [self._row_to_record(row) for row in rows]

    def get_history_grouped(self, operator_id: str, start: Optional[datetime] = None,
                            end: Optional[datetime] = None) -> List[HistoryGroup]:
        """History grouped by search key, most recently viewed group first"""
        grouped: Dict[str, HistoryGroup] = {}

        for record in self.get_history(operator_id, start, end):
            group = grouped.get(record.search_key)
            if group is None:
                group = HistoryGroup(
                    search_key=record.search_key,
                    search_criteria=record.search_criteria,
                    viewed_at=record.viewed_at,
                )
                grouped[record.search_key] = group
            group.profiles.append(record)
            group.count += 1
            if record.viewed_at > group.viewed_at:
                group.viewed_at = record.viewed_at

        return sorted(grouped.values(), key=lambda g: g.viewed_at, reverse=True)

    def get_history_stats(self, operator_id: str) -> HistoryStats:
        conn = self._get_connection()
        try:
            cursor = conn.execute('''
                SELECT COUNT(*), COUNT(DISTINCT search_key), MAX(viewed_at)
                FROM viewed_profiles WHERE operator_id = ?
            ''', (operator_id,))
            total, unique_searches, last_viewed = cursor.fetchone()
        finally:
            conn.close()

        return HistoryStats(
            total=total or 0,
            unique_searches=unique_searches or 0,
            last_viewed=from_db_timestamp(last_viewed),
        )

    def delete_history_older_than(self, operator_id: str, days: int) -> int:
        """Retention purge; returns number of deleted rows"""
        cutoff = datetime.now(timezone.utc) - timedelta(days=days)
        conn = self._get_connection()
        try:
            cursor = conn.execute('''
                DELETE FROM viewed_profiles
                WHERE operator_id = ? AND viewed_at <= ?
            ''', (operator_id, to_db_timestamp(cutoff)))
            deleted_count = cursor.rowcount
            conn.commit()
        finally:
            conn.close()

        logger.info(f"Purged {deleted_count} history rows older than {days} days for {operator_id}")
        return deleted_count

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> ViewedProfileRecord:
        return ViewedProfileRecord(
            operator_id=row['operator_id'],
            profile_id=row['profile_id'],
            profile_url=row['profile_url'],
            name=row['name'],
            headline=row['headline'],
            location=row['location'],
            avatar_url=row['avatar_url'],
            search_criteria=SearchCriteria.model_validate_json(row['search_criteria']),
            search_key=row['search_key'],
            viewed_at=from_db_timestamp(row['viewed_at']),
        )

    # ------------------------------------------------------------------
    # Scraped profiles
    # ------------------------------------------------------------------

    def upsert_profile(self, operator_id: str, profile: ProfileDetail) -> None:
        """Create or replace the operator's record for this profile URL"""
        now = to_db_timestamp(datetime.now(timezone.utc))
        conn = self._get_connection()
        try:
            conn.execute('''
                INSERT INTO scraped_profiles
                (operator_id, profile_url, profile_id, name, headline, company, location,
                 email, email_source, data, scraped_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(operator_id, profile_url) DO UPDATE SET
                    profile_id = excluded.profile_id,
                    name = excluded.name,
                    headline = excluded.headline,
                    company = excluded.company,
                    location = excluded.location,
                    email = excluded.email,
                    email_source = excluded.email_source,
                    data = excluded.data,
                    scraped_at = excluded.scraped_at,
                    updated_at = excluded.updated_at
            ''', (
                operator_id,
                profile.profile_url,
                profile.id,
                profile.name,
                profile.headline,
                profile.current_company,
                profile.location,
                profile.email,
                profile.email_source,
                profile.model_dump_json(),
                to_db_timestamp(profile.scraped_at),
                now,
            ))
            conn.commit()
            logger.debug(f"Saved profile data: {profile.name}")
        except sqlite3.Error as e:
            conn.rollback()
            raise ProfileStoreError(f"Failed to save profile {profile.profile_url}: {e}") from e
        finally:
            conn.close()

    def get_profile(self, operator_id: str, profile_url: str) -> Optional[ProfileDetail]:
        conn = self._get_connection()
        try:
            cursor = conn.execute('''
                SELECT data FROM scraped_profiles
                WHERE operator_id = ? AND profile_url = ?
            ''', (operator_id, profile_url))
            row = cursor.fetchone()
        finally:
            conn.close()

        return ProfileDetail.model_validate_json(row[0]) if row else None

    def list_profiles(self, operator_id: str, verified_email_only: bool = False) -> List[ProfileDetail]:
        """Scraped profiles for the operator, newest first"""
        query = 'SELECT data FROM scraped_profiles WHERE operator_id = ?'
        if verified_email_only:
            query += " AND email_source = 'extracted'"
        query += ' ORDER BY scraped_at DESC'

        conn = self._get_connection()
        try:
            rows = conn.execute(query, (operator_id,)).fetchall()
        finally:
            conn.close()

        profiles = []
        for row in rows:
            try:
                profiles.append(ProfileDetail.model_validate_json(row[0]))
            except ValueError as e:
                logger.warning(f"[WARN] Skipping unreadable profile row: {e}")
        return profiles

    def get_db_size(self) -> str:
        """Get database file size"""
        try:
            size_bytes = self.db_path.stat().st_size
            size_mb = size_bytes / (1024 * 1024)
            return f"{size_mb:.2f} MB"
        except OSError:
            return "Unknown"

    def dump_history_json(self, operator_id: str) -> str:
        """History rows as a JSON array, for the console export"""
        return json.dumps(
            [json.loads(r.model_dump_json()) for r in self.get_history(operator_id)],
            indent=2, ensure_ascii=False,
        )
