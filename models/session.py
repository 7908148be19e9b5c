"""
Authenticated operator session (cookie set) as handed out by the Session Store
"""

from datetime import datetime, timedelta
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.profile import utc_now


DEFAULT_COOKIE_DOMAIN = ".linkedin.com"
SESSION_LIFETIME = timedelta(days=30)


class Cookie(BaseModel):
    name: str
    value: str
    domain: Optional[str] = None
    path: Optional[str] = None
    http_only: Optional[bool] = Field(default=None, alias="httpOnly")
    secure: Optional[bool] = None
    same_site: Optional[Literal["Strict", "Lax", "None"]] = Field(default=None, alias="sameSite")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("same_site", mode="before")
    @classmethod
    def _normalize_same_site(cls, value):
        # Browser exports use values like "no_restriction" or "unspecified"
        if isinstance(value, str):
            return {'strict': 'Strict', 'lax': 'Lax', 'none': 'None'}.get(value.strip().lower())
        return value

    def to_browser_cookie(self) -> Dict:
        """Cookie dict for BrowserContext.add_cookies, with missing fields defaulted"""
        return {
            'name': self.name,
            'value': self.value,
            'domain': self.domain or DEFAULT_COOKIE_DOMAIN,
            'path': self.path or '/',
            'httpOnly': True if self.http_only is None else self.http_only,
            'secure': True if self.secure is None else self.secure,
            'sameSite': self.same_site or 'Lax',
        }


class Session(BaseModel):
    operator_id: str
    cookies: List[Cookie] = Field(default_factory=list)
    captured_at: datetime = Field(default_factory=utc_now)
    expires_at: datetime = Field(default_factory=lambda: utc_now() + SESSION_LIFETIME)
    last_used_at: Optional[datetime] = None
    is_valid: bool = True

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utc_now()) >= self.expires_at

    def is_usable(self, now: Optional[datetime] = None) -> bool:
        return self.is_valid and bool(self.cookies) and not self.is_expired(now)

    def browser_cookies(self) -> List[Dict]:
        return [cookie.to_browser_cookie() for cookie in self.cookies]
