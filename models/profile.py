"""
Profile data model: search criteria, search rows, history rows and
fully-extracted profile records
"""

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from utils.helpers import extract_url_profile_id


EmailSource = Literal["extracted", "fallback"]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SearchCriteria(BaseModel):
    """Immutable input to one people search"""

    job_title: Optional[str] = None
    industry: Optional[str] = None
    location_keyword: Optional[str] = None
    company: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("job_title", "industry", "location_keyword", "company", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    def is_empty(self) -> bool:
        return not any([self.job_title, self.industry, self.location_keyword, self.company])


class ProfileSummary(BaseModel):
    """Lightweight row parsed from one search results page"""

    id: str
    name: str = ""
    headline: Optional[str] = None
    location: Optional[str] = None
    summary: Optional[str] = None
    current_company: Optional[str] = None
    avatar_url: Optional[str] = None
    profile_url: str

    model_config = ConfigDict(extra="ignore")

    @field_validator("id")
    @classmethod
    def _id_required(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("profile id must be non-empty")
        return value.strip()

    @classmethod
    def from_url(cls, profile_url: str, **fields) -> Optional["ProfileSummary"]:
        """Build a summary whose id comes from the URL; None when the URL has no handle"""
        profile_id = extract_url_profile_id(profile_url)
        if not profile_id:
            return None
        return cls(id=profile_id, profile_url=profile_url, **fields)


class Experience(BaseModel):
    title: str
    company: str = ""


class ActivityIndicators(BaseModel):
    has_recent_posts: bool
    post_count: int
    skill_count: int
    interest_count: int


class ProfileDetail(ProfileSummary):
    """Fully extracted profile, including contact email"""

    about: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    posts: List[str] = Field(default_factory=list)
    experiences: List[Experience] = Field(default_factory=list)
    interests: List[str] = Field(default_factory=list)
    education: Optional[str] = None
    email: str
    email_source: EmailSource
    scraped_at: datetime = Field(default_factory=utc_now)

    @field_validator("email")
    @classmethod
    def _email_required(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("email must never be empty")
        return value.strip()

    @computed_field
    @property
    def activity_indicators(self) -> ActivityIndicators:
        return ActivityIndicators(
            has_recent_posts=len(self.posts) > 0,
            post_count=len(self.posts),
            skill_count=len(self.skills),
            interest_count=len(self.interests),
        )

    @property
    def has_verified_email(self) -> bool:
        return self.email_source == "extracted"


class ViewedProfileRecord(BaseModel):
    """Append-only history row: one per (operator_id, profile_id)"""

    operator_id: str
    profile_id: str
    profile_url: str
    name: str = ""
    headline: Optional[str] = None
    location: Optional[str] = None
    avatar_url: Optional[str] = None
    search_criteria: SearchCriteria
    search_key: str
    viewed_at: datetime = Field(default_factory=utc_now)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    has_more: bool


class SearchResponse(BaseModel):
    results: List[ProfileSummary] = Field(default_factory=list)
    pagination: Pagination
    total_fetched: int = 0
    message: Optional[str] = None


class HistoryGroup(BaseModel):
    search_key: str
    search_criteria: SearchCriteria
    profiles: List[ViewedProfileRecord] = Field(default_factory=list)
    viewed_at: datetime
    count: int = 0


class HistoryStats(BaseModel):
    total: int = 0
    unique_searches: int = 0
    last_viewed: Optional[datetime] = None
