"""
Interfaces the pipeline needs from its external collaborators
"""

from typing import List, Optional, Protocol

from models.profile import ProfileDetail, ViewedProfileRecord
from models.session import Session


class SessionStorePort(Protocol):
    def get_session(self, operator_id: str) -> Optional[Session]:
        ...


class ProfileStorePort(Protocol):
    def upsert_profile(self, operator_id: str, profile: ProfileDetail) -> None:
        ...

    def append_viewed_batch(self, operator_id: str, records: List[ViewedProfileRecord]) -> int:
        ...

    def list_known_ids(self, operator_id: str) -> List[str]:
        ...
