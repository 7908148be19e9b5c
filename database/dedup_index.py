"""
Dedup Index: which profiles an operator has already been shown
"""

import logging
from typing import List, Sequence

from models.profile import ProfileSummary, SearchCriteria, ViewedProfileRecord, utc_now
from database.ports import ProfileStorePort

logger = logging.getLogger(__name__)

SEARCH_KEY_SEPARATOR = " • "
EMPTY_SEARCH_KEY = "Unknown Search"


def build_search_key(criteria: SearchCriteria) -> str:
    """Human-readable grouping key for history"""
    parts = [p for p in (criteria.job_title, criteria.industry, criteria.location_keyword, criteria.company) if p]
    return SEARCH_KEY_SEPARATOR.join(parts) if parts else EMPTY_SEARCH_KEY


class DedupIndex:
    """Thin layer over the profile store for per-operator dedup"""

    def __init__(self, store: ProfileStorePort):
        self.store = store

    def known_ids(self, operator_id: str) -> List[str]:
        """Ascending list of every profile id the operator has seen"""
        return self.store.list_known_ids(operator_id)

    @staticmethod
    def is_known(profile_id: str, sorted_ids: Sequence[str]) -> bool:
        """Binary search over an ascending id list"""
        left, right = 0, len(sorted_ids) - 1
        while left <= right:
            mid = (left + right) // 2
            candidate = sorted_ids[mid]
            if candidate == profile_id:
                return True
            if candidate < profile_id:
                left = mid + 1
            else:
                right = mid - 1
        return False

    def record_batch(self, operator_id: str, criteria: SearchCriteria,
                     profiles: List[ProfileSummary]) -> int:
        """Append history rows for profiles just shown; already-known ids are ignored"""
        if not profiles:
            return 0

        search_key = build_search_key(criteria)
        viewed_at = utc_now()
        records = [
            ViewedProfileRecord(
                operator_id=operator_id,
                profile_id=profile.id,
                profile_url=profile.profile_url,
                name=profile.name,
                headline=profile.headline,
                location=profile.location,
                avatar_url=profile.avatar_url,
                search_criteria=criteria,
                search_key=search_key,
                viewed_at=viewed_at,
            )
            for profile in profiles
        ]

        added = self.store.append_viewed_batch(operator_id, records)
        logger.info(f"Recorded {added} new viewed profiles under '{search_key}'")
        return added
