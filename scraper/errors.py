"""
Errors raised by the search and scrape pipelines
"""


class ScraperError(Exception):
    """Base class for pipeline failures surfaced to the caller"""


class NotAuthenticated(ScraperError):
    """Operator has no usable session (absent, expired or invalidated)"""

    def __init__(self, operator_id: str):
        self.operator_id = operator_id
        super().__init__(
            f"Operator '{operator_id}' is not authenticated. Connect the LinkedIn account first."
        )


class SourceBlocked(ScraperError):
    """Navigation ended somewhere that is not a search or profile page"""

    def __init__(self, url: str, landed_on: str = ''):
        self.url = url
        self.landed_on = landed_on
        super().__init__(
            f"Source blocked access to {url} (landed on {landed_on or 'unknown page'}). "
            "The session may have been invalidated."
        )


class SearchFailed(ScraperError):
    """First results page could not be fetched or parsed"""


class BrowserUnavailable(ScraperError):
    """Browser could not be launched"""


class ProfileStoreError(ScraperError):
    """Persistence failure in the profile store"""
