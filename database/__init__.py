"""
Database module initialization
"""

from .db_manager import ProfileStore
from .session_store import SessionStore
from .dedup_index import DedupIndex, build_search_key

__all__ = ["ProfileStore", "SessionStore", "DedupIndex", "build_search_key"]
