"""
Utility helper functions
"""

import re
from urllib.parse import quote, unquote

SITE_ROOT = 'https://www.linkedin.com'

_PROFILE_PATH = re.compile(r'/in/([^/?#]+)')


def format_time(seconds: float) -> str:
    """Format seconds to readable format"""
    if seconds < 60:
        return f"{seconds:.0f}s"
    elif seconds < 3600:
        return f"{seconds/60:.1f}m"
    else:
        return f"{seconds/3600:.1f}h"


def extract_url_profile_id(url: str) -> str:
    """Extract profile ID from LinkedIn URL"""
    if not url:
        return ''
    match = _PROFILE_PATH.search(url)
    return unquote(match.group(1)).strip() if match else ''


def normalize_profile_url(href: str) -> str:
    """Canonical profile URL (SITE_ROOT/in/<id>/), or '' when the link has no profile handle"""
    profile_id = extract_url_profile_id(href)
    if not profile_id:
        return ''
    return f"{SITE_ROOT}/in/{quote(profile_id)}/"


def is_profile_url(url: str) -> bool:
    return bool(extract_url_profile_id(url))


def clean_text(text) -> str:
    """Collapse whitespace runs to single spaces"""
    if not text:
        return ''
    return re.sub(r'\s+', ' ', str(text)).strip()
