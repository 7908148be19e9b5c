"""
Search Agent: paginated people search with per-operator dedup
"""

import logging
from dataclasses import dataclass, replace
from typing import Callable, FrozenSet, List, Optional, Sequence, Tuple

from agents.operator_lock import OperatorLocks
from database.dedup_index import DedupIndex, build_search_key
from database.ports import ProfileStorePort, SessionStorePort
from models.profile import Pagination, ProfileSummary, SearchCriteria, SearchResponse
from models.session import Session
from scraper.browser_controller import BrowserController, is_auth_wall
from scraper.errors import NotAuthenticated, ScraperError, SearchFailed, SourceBlocked
from scraper.page_extractor import PageExtractor
from scraper.search_query import build_search_url
from utils.config import Config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchProgress:
    """Accumulated state of one search run; each page yields a new value"""

    unique: Tuple[ProfileSummary, ...] = ()
    seen_ids: FrozenSet[str] = frozenset()
    total_fetched: int = 0
    duplicates: int = 0
    pages: int = 0
    exhausted: bool = False

    def absorb(self, page_rows: Sequence[ProfileSummary], known_ids: Sequence[str]) -> 'SearchProgress':
        """Fold one page in; rows seen before (history or this run) count as duplicates"""
        if not page_rows:
            return replace(self, pages=self.pages + 1, exhausted=True)

        seen = set(self.seen_ids)
        fresh = []
        duplicates = 0
        for row in page_rows:
            if row.id in seen or DedupIndex.is_known(row.id, known_ids):
                duplicates += 1
                continue
            seen.add(row.id)
            fresh.append(row)

        return SearchProgress(
            unique=self.unique + tuple(fresh),
            seen_ids=frozenset(seen),
            total_fetched=self.total_fetched + len(page_rows),
            duplicates=self.duplicates + duplicates,
            pages=self.pages + 1,
            exhausted=False,
        )

    def should_continue(self, quota: int, max_pages: int) -> bool:
        return len(self.unique) < quota and self.pages < max_pages and not self.exhausted


def summarize(progress: SearchProgress, results: List[ProfileSummary]) -> Optional[str]:
    """Operator-facing outcome message"""
    if progress.total_fetched > 0 and not progress.unique:
        return (f"All {progress.total_fetched} profiles have been viewed previously. "
                "Try different search criteria.")
    if progress.total_fetched == 0:
        return "No profiles found. Try broader search terms or different location."
    if progress.duplicates > 0:
        return f"Found {len(results)} new profile(s). {progress.duplicates} duplicate(s) filtered."
    return None


class SearchAgent:
    """Agent for collecting never-seen profiles for an operator"""

    def __init__(self, session_store: SessionStorePort, profile_store: ProfileStorePort,
                 browser_factory: Callable[[Session], BrowserController], config: Config,
                 locks: Optional[OperatorLocks] = None, page_extractor: Optional[PageExtractor] = None):
        self.session_store = session_store
        self.dedup = DedupIndex(profile_store)
        self.browser_factory = browser_factory
        self.config = config
        self.locks = locks or OperatorLocks()
        self.page_extractor = page_extractor or PageExtractor()

    @property
    def quota(self) -> int:
        return int(self.config.scraping['target_unique_profiles'])

    @property
    def max_pages(self) -> int:
        return int(self.config.scraping['max_search_pages'])

    async def search(self, operator_id: str, criteria: SearchCriteria) -> SearchResponse:
        """Run one search until the quota of new profiles, exhaustion or the page cap"""
        session = self.session_store.get_session(operator_id)
        if session is None or not session.is_usable():
            raise NotAuthenticated(operator_id)

        logger.info(f"Searching for profiles: '{build_search_key(criteria)}' (operator {operator_id})")

        async with self.locks.hold(operator_id):
            async with self.browser_factory(session) as browser:
                first_page = await self._fetch_page(browser, criteria, 1)

                known_ids = self.dedup.known_ids(operator_id)
                logger.info(f"Operator has viewed {len(known_ids)} profiles previously")

                progress = SearchProgress().absorb(first_page, known_ids)
                self._log_page(progress, len(first_page))

                while progress.should_continue(self.quota, self.max_pages):
                    page = progress.pages + 1
                    try:
                        rows = await self._fetch_page(browser, criteria, page)
                    except ScraperError as e:
                        logger.warning(f"[WARN] Stopping at page {page}, keeping results so far: {e}")
                        break
                    progress = progress.absorb(rows, known_ids)
                    self._log_page(progress, len(rows))

            results = list(progress.unique[:self.quota])
            self.dedup.record_batch(operator_id, criteria, results)

        response = SearchResponse(
            results=results,
            pagination=Pagination(
                page=progress.pages,
                limit=self.quota,
                total=len(results),
                has_more=not progress.exhausted and len(results) > 0,
            ),
            total_fetched=progress.total_fetched,
            message=summarize(progress, results),
        )
        logger.info(
            f"[OK] Search completed: {len(results)} new of {progress.total_fetched} fetched "
            f"over {progress.pages} page(s)"
        )
        return response

    async def _fetch_page(self, browser: BrowserController, criteria: SearchCriteria,
                          page: int) -> List[ProfileSummary]:
        """Navigate to one results page and parse it"""
        url = build_search_url(criteria, page)
        scraping = self.config.scraping
        logger.info(f"Collecting profiles from page {page}...")

        loaded = await browser.navigate(
            url,
            wait_until='domcontentloaded',
            timeout=scraping['search_timeout'],
            max_retries=scraping['navigation_retries'],
        )
        if is_auth_wall(browser.current_url):
            raise SourceBlocked(url, browser.current_url)
        if not loaded:
            raise SearchFailed(f"Could not load search results page {page}")

        await browser.settle(*self.config.delay_range('page_settle_delay'))

        html = await browser.get_page_content()
        try:
            return self.page_extractor.extract(html)
        except (ValueError, TypeError, AttributeError) as e:
            raise SearchFailed(f"Could not parse search results page {page}: {e}") from e

    @staticmethod
    def _log_page(progress: SearchProgress, row_count: int):
        if row_count == 0:
            logger.info(f"Page {progress.pages} returned no results, source exhausted")
        else:
            logger.info(
                f"Page {progress.pages}: {row_count} rows, {len(progress.unique)} unique so far"
            )
