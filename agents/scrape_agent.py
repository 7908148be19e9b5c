"""
Scrape Agent: deep extraction of a single profile
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from agents.operator_lock import OperatorLocks
from agents.validation_agent import ValidationAgent
from database.ports import ProfileStorePort, SessionStorePort
from models.profile import ProfileDetail
from models.session import Session
from scraper.browser_controller import BrowserController, is_auth_wall
from scraper.detail_extractor import DetailExtractor, PLACEHOLDER_NAME, find_email
from scraper.errors import NotAuthenticated, ProfileStoreError, SourceBlocked
from utils.config import Config
from utils.helpers import extract_url_profile_id, normalize_profile_url

logger = logging.getLogger(__name__)

CONTACT_INFO_SELECTORS = [
    '#top-card-text-details-contact-info',
    'a:has-text("Contact info")',
]


class ExtractionState(str, Enum):
    INIT = 'init'
    SESSION_VERIFIED = 'session_verified'
    NAVIGATED = 'navigated'
    CONTACT_PANEL_OPENED = 'contact_panel_opened'
    CONTACT_PANEL_CLOSED = 'contact_panel_closed'
    FIELDS_EXTRACTED = 'fields_extracted'
    PERSISTED = 'persisted'
    FAILED = 'failed'


@dataclass
class ExtractionResult:
    detail: Optional[ProfileDetail] = None
    states: List[ExtractionState] = field(default_factory=lambda: [ExtractionState.INIT])
    failure: Optional[str] = None

    @property
    def state(self) -> ExtractionState:
        return self.states[-1]

    def advance(self, state: ExtractionState):
        self.states.append(state)

    def fail(self, reason: str):
        self.failure = reason
        self.states.append(ExtractionState.FAILED)


class ScrapeAgent:
    """Agent for scraping profile data"""

    def __init__(self, session_store: SessionStorePort, profile_store: ProfileStorePort,
                 browser_factory: Callable[[Session], BrowserController], config: Config,
                 locks: Optional[OperatorLocks] = None, validator: Optional[ValidationAgent] = None):
        self.session_store = session_store
        self.profile_store = profile_store
        self.browser_factory = browser_factory
        self.config = config
        self.locks = locks or OperatorLocks()
        self.validator = validator or ValidationAgent()
        self.extractor = DetailExtractor(config.FALLBACK_EMAIL)

    async def extract_detail(self, operator_id: str, profile_url: str,
                             name_hint: Optional[str] = None) -> ProfileDetail:
        """Scrape and persist one profile; returns the best-effort record"""
        result = await self.run_extraction(operator_id, profile_url, name_hint)
        return result.detail

    async def run_extraction(self, operator_id: str, profile_url: str,
                             name_hint: Optional[str] = None) -> ExtractionResult:
        """Scrape one profile, recording every state the flow passes through"""
        result = ExtractionResult()
        canonical_url = normalize_profile_url(profile_url)
        if not canonical_url:
            raise ValueError(f"Not a profile URL: {profile_url!r}")
        profile_url = canonical_url

        session = self.session_store.get_session(operator_id)
        if session is None or not session.is_usable():
            result.fail('not authenticated')
            raise NotAuthenticated(operator_id)
        result.advance(ExtractionState.SESSION_VERIFIED)

        logger.info(f"[SCRAPE] Scraping profile: {profile_url}")
        scraping = self.config.scraping

        async with self.locks.hold(operator_id):
            async with self.browser_factory(session) as browser:
                loaded = await browser.navigate(
                    profile_url,
                    wait_until='domcontentloaded',
                    timeout=scraping['profile_timeout'],
                    max_retries=scraping['navigation_retries'],
                )
                landed = browser.current_url
                if is_auth_wall(landed) or (not loaded and '/in/' not in landed):
                    result.fail(f'blocked, landed on {landed}')
                    raise SourceBlocked(profile_url, landed)
                if not loaded:
                    logger.warning(f"[WARN] Navigation incomplete for {profile_url}, continuing with partial page")
                result.advance(ExtractionState.NAVIGATED)

                await browser.wait_for_selector('main', timeout=scraping['main_content_timeout'])
                await browser.settle(*self.config.delay_range('profile_settle_delay'))
                await browser.humanize()

                email = await self._read_contact_panel(browser, result)

                html = await browser.get_page_content()
                visible_text = await browser.get_visible_text()

        try:
            result.detail = self.extractor.extract(html, visible_text, profile_url, name_hint, email)
            result.advance(ExtractionState.FIELDS_EXTRACTED)
        except ValueError as e:
            logger.error(f"[X] Field extraction failed for {profile_url}: {e}")
            result.detail = self._minimal_record(profile_url, name_hint, email)
            result.fail(f'extraction failed: {e}')

        self.validator.validate_profile(result.detail)

        try:
            self.profile_store.upsert_profile(operator_id, result.detail)
            if result.state != ExtractionState.FAILED:
                result.advance(ExtractionState.PERSISTED)
        except ProfileStoreError as e:
            logger.error(f"[X] Could not save profile {profile_url}: {e}")
            result.fail(str(e))

        logger.info(f"Successfully scraped: {result.detail.name} ({result.detail.email_source} email)")
        return result

    async def _read_contact_panel(self, browser: BrowserController, result: ExtractionResult) -> Optional[str]:
        """Open the contact overlay, scan it for an email and close it; None on any miss"""
        if not await browser.click_first(CONTACT_INFO_SELECTORS):
            logger.debug("Contact info link not found")
            return None
        result.advance(ExtractionState.CONTACT_PANEL_OPENED)

        if not await browser.wait_for_text('Email', timeout=self.config.scraping['contact_panel_timeout']):
            logger.debug("Contact panel has no Email entry")

        email = find_email(await browser.get_visible_text())
        if email:
            logger.info(f"[OK] Contact email found: {email}")

        await browser.press_key('Escape')
        result.advance(ExtractionState.CONTACT_PANEL_CLOSED)
        return email

    def _minimal_record(self, profile_url: str, name_hint: Optional[str],
                        email: Optional[str]) -> ProfileDetail:
        return ProfileDetail(
            id=extract_url_profile_id(profile_url),
            name=name_hint or PLACEHOLDER_NAME,
            profile_url=profile_url,
            email=email or self.config.FALLBACK_EMAIL,
            email_source='extracted' if email else 'fallback',
        )
