"""
People-search URL builder
"""

from typing import Optional
from urllib.parse import quote

from models.profile import SearchCriteria

SEARCH_BASE_URL = 'https://www.linkedin.com/search/results/people/'

# geoUrn codes for common countries and cities; keys are lower-cased
LOCATIONS = {
    'us': '103644278',
    'usa': '103644278',
    'united states': '103644278',
    'india': '102713980',
    'uk': '101165590',
    'united kingdom': '101165590',
    'canada': '101174742',
    'australia': '101452733',
    'singapore': '102454443',
    'uae': '104305776',
    'dubai': '104305776',
    'mumbai': '105214831',
    'bangalore': '105214077',
    'bengaluru': '105214077',
    'delhi': '106156739',
    'new delhi': '106156739',
    'hyderabad': '105193085',
    'chennai': '102713982',
    'pune': '106057199',
    'kolkata': '105193567',
    'new york': '102571732',
    'san francisco': '102277331',
    'los angeles': '102448103',
    'chicago': '103112676',
    'boston': '100293800',
    'seattle': '104116018',
    'austin': '100975049',
    'london': '102257491',
    'toronto': '100025096',
    'sydney': '104769905',
}


def location_code(location: Optional[str]) -> Optional[str]:
    if not location:
        return None
    return LOCATIONS.get(location.strip().lower())


def build_search_url(criteria: SearchCriteria, page: int = 1) -> str:
    """Search URL for one results page of the given criteria"""
    keywords = [k for k in (criteria.job_title, criteria.industry, criteria.company) if k]

    geo = location_code(criteria.location_keyword)
    if criteria.location_keyword and not geo:
        keywords.append(criteria.location_keyword)

    params = [f"keywords={quote(' '.join(keywords))}"]
    if geo:
        params.append(f'geoUrn=%5B%22{geo}%22%5D')
    if page > 1:
        params.append(f'page={page}')

    return f"{SEARCH_BASE_URL}?{'&'.join(params)}"
