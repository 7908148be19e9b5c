"""
Typed records shared by the search and scrape pipelines
"""

from .profile import (
    SearchCriteria, ProfileSummary, ProfileDetail, Experience, ActivityIndicators,
    ViewedProfileRecord, Pagination, SearchResponse, HistoryGroup, HistoryStats,
)
from .session import Cookie, Session

__all__ = [
    "SearchCriteria", "ProfileSummary", "ProfileDetail", "Experience",
    "ActivityIndicators", "ViewedProfileRecord", "Pagination", "SearchResponse",
    "HistoryGroup", "HistoryStats", "Cookie", "Session",
]
