"""
Browser Controller with Anti-Detection
- Fingerprint randomization and stealth init script
- Session cookies injected into a fresh context
- Bounded navigation with retry, block and CAPTCHA detection
- Scoped lifetime: always released on exit, error or cancellation
"""

import asyncio
import random
from typing import Any, Callable, Dict, List, Optional
from pathlib import Path
from playwright.async_api import (
    async_playwright, Page, Browser, BrowserContext,
    Error as PlaywrightError, TimeoutError as PlaywrightTimeoutError,
)
import logging

from models.session import Session
from scraper.errors import BrowserUnavailable
from scraper.human_behavior import HumanBehavior, PROFILE_POINTER_PATH

logger = logging.getLogger(__name__)

AUTH_WALL_MARKERS = ('/login', '/authwall', '/checkpoint', '/uas/login', '/signup')
BLOCK_SIGNALS = ['access denied', 'unusual traffic', 'verify you are human', 'we suspect unusual activity']


def is_auth_wall(url: str) -> bool:
    """True when the browser landed on a login, auth-wall or checkpoint page"""
    return any(marker in (url or '') for marker in AUTH_WALL_MARKERS)


class BrowserController:
    """One Chromium instance carrying one operator's session"""

    # Realistic user agents for fingerprinting
    USER_AGENTS = [
        'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36',
        'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36',
        'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36',
        'Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36',
    ]

    TIMEZONES = ['America/New_York', 'America/Chicago', 'America/Los_Angeles', 'Europe/London', 'Asia/Kolkata']

    LOCALES = ['en-US', 'en-GB', 'en-CA', 'en-AU']

    SCREEN_RESOLUTIONS = [
        {'width': 1920, 'height': 1080},
        {'width': 1366, 'height': 768},
        {'width': 1440, 'height': 900},
        {'width': 2560, 'height': 1440},
    ]

    LAUNCH_ARGS = [
        '--disable-blink-features=AutomationControlled',
        '--disable-dev-shm-usage',
        '--no-sandbox',
        '--disable-background-timer-throttling',
        '--disable-backgrounding-occluded-windows',
        '--disable-ipc-flooding-protection',
        '--disable-popup-blocking',
        '--disable-extensions',
        '--disable-default-apps',
        '--disable-sync',
        '--disable-translate',
    ]

    STEALTH_SCRIPT = """
        Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
        Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });
        Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });
        Object.defineProperty(navigator, 'vendor', { get: () => 'Google Inc.' });
        window.chrome = { runtime: {}, loadTimes: function() {}, csi: function() {} };
        const originalQuery = window.navigator.permissions.query;
        window.navigator.permissions.query = (parameters) => (
            parameters.name === 'notifications' ?
                Promise.resolve({ state: Notification.permission }) :
                originalQuery(parameters)
        );
    """

    def __init__(self, session: Session, headless: bool = True, proxy: Optional[str] = None,
                 use_stealth: bool = True, human_behavior: bool = True, random_delays: bool = True):
        """
        Args:
            session: operator session whose cookies are loaded into the context
            headless: Run in headless mode
            proxy: Proxy server URL (e.g., http://proxy:8080)
            use_stealth: Inject the anti-automation init script
            human_behavior: Enable pointer movement and scroll passes
            random_delays: Jitter settle waits, with occasional longer pauses
        """
        self.session = session
        self.headless = headless
        self.proxy = proxy
        self.use_stealth = use_stealth
        self.human_behavior = human_behavior
        self.random_delays = random_delays

        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None
        self._playwright = None

    async def __aenter__(self) -> 'BrowserController':
        if not await self.initialize():
            raise BrowserUnavailable("Browser could not be launched")
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.cleanup()
        return False

    async def initialize(self) -> bool:
        """Launch browser, build a fingerprinted context and load session cookies"""
        try:
            logger.info(f"Initializing browser for operator {self.session.operator_id}...")

            self._playwright = await async_playwright().start()
            self.browser = await self._playwright.chromium.launch(
                headless=self.headless,
                args=self.LAUNCH_ARGS,
                ignore_default_args=['--enable-automation'],
            )

            self.context = await self.browser.new_context(**self._get_context_args())
            await self.context.add_cookies(self.session.browser_cookies())
            self.page = await self.context.new_page()

            if self.use_stealth:
                await self.page.add_init_script(self.STEALTH_SCRIPT)
                logger.debug("Stealth mode applied")

            logger.info(f"[OK] Browser initialized with {len(self.session.cookies)} session cookies")
            return True

        except PlaywrightError as e:
            logger.error(f"[X] Browser initialization failed: {e}")
            await self.cleanup()
            return False

    def _get_context_args(self) -> Dict[str, Any]:
        """Generate realistic context arguments"""
        context_args = {
            'viewport': random.choice(self.SCREEN_RESOLUTIONS),
            'user_agent': random.choice(self.USER_AGENTS),
            'locale': random.choice(self.LOCALES),
            'timezone_id': random.choice(self.TIMEZONES),
            'color_scheme': random.choice(['light', 'dark']),
            'device_scale_factor': random.choice([1, 1.25, 1.5, 2]),
        }
        if self.proxy:
            context_args['proxy'] = {'server': self.proxy}
        return context_args

    @property
    def current_url(self) -> str:
        return self.page.url if self.page else ''

    async def navigate(self, url: str, wait_until: str = 'domcontentloaded', timeout: int = 30000,
                       max_retries: int = 2) -> bool:
        """Navigate with retry/backoff.

        Returns True once the page is loaded or the final attempt timed out
        (callers continue with whatever DOM rendered). Returns False on hard
        navigation errors and when a block or CAPTCHA page is detected.
        """
        await asyncio.sleep(random.uniform(0.5, 2))

        current_timeout = timeout
        for attempt in range(1, max_retries + 1):
            try:
                logger.debug(f"Navigating to {url} (attempt {attempt}/{max_retries}, timeout={current_timeout})")
                await self.page.goto(url, wait_until=wait_until, timeout=current_timeout)
                await asyncio.sleep(random.uniform(0.2, 0.8))
                break

            except PlaywrightTimeoutError:
                logger.warning(f"[TIME] Navigation timeout for {url} on attempt {attempt}")
                if attempt == max_retries:
                    logger.warning("[WARN] Continuing with partially loaded page")
                    return True
                current_timeout = int(current_timeout * 1.8) + random.randint(2000, 5000)
                await asyncio.sleep(random.uniform(1, 3))

            except PlaywrightError as e:
                logger.error(f"[X] Navigation failed: {e}")
                await self._save_screenshot('nav_error')
                return False

        if await self._detect_captcha():
            logger.warning("[WARN] CAPTCHA detected during navigation")
            return False

        content = (await self.get_page_content()).lower()
        if any(sig in content for sig in BLOCK_SIGNALS):
            logger.warning(f"[WARN] Navigation may be blocked for {url}, retrying once after a pause")
            try:
                await asyncio.sleep(random.uniform(3, 6))
                await self.page.reload(timeout=12000)
                await asyncio.sleep(random.uniform(2, 4))
            except PlaywrightError as e:
                logger.debug(f"Reload note: {e}")
            content = (await self.get_page_content()).lower()
            if any(sig in content for sig in BLOCK_SIGNALS):
                return False
            logger.info("[OK] Remediation succeeded after reload")

        logger.info(f"[OK] Navigated to {url}")
        return True

    async def _detect_captcha(self) -> bool:
        """Explicit CAPTCHA widgets only"""
        captcha_selectors = [
            'iframe[src*="recaptcha"]',
            'iframe[src*="hcaptcha"]',
            'div.g-recaptcha',
            '[data-captcha]',
        ]
        try:
            for selector in captcha_selectors:
                if await self.page.query_selector(selector):
                    return True
        except PlaywrightError as e:
            logger.debug(f"CAPTCHA check note: {e}")
        return False

    async def _save_screenshot(self, prefix: str):
        try:
            screenshot_path = Path('logs') / f"{prefix}_{int(asyncio.get_running_loop().time())}.png"
            screenshot_path.parent.mkdir(parents=True, exist_ok=True)
            await self.page.screenshot(path=str(screenshot_path))
            logger.info(f"[OK] Saved screenshot: {screenshot_path}")
        except PlaywrightError as e:
            logger.debug(f"Screenshot note: {e}")

    async def get_page_content(self) -> str:
        """Get full HTML content"""
        try:
            return await self.page.content()
        except PlaywrightError as e:
            logger.error(f"Error getting page content: {e}")
            return ""

    async def get_visible_text(self) -> str:
        """Rendered text of the page body"""
        try:
            return await self.page.evaluate('() => document.body ? document.body.innerText : ""') or ''
        except PlaywrightError as e:
            logger.warning(f"[WARN] Error reading visible text: {e}")
            return ''

    async def settle(self, min_seconds: float, max_seconds: float):
        """Wait for dynamic content"""
        if self.random_delays:
            await HumanBehavior.random_delay(min_seconds, max_seconds)
        else:
            await asyncio.sleep(min_seconds)

    async def wait_for_selector(self, selector: str, timeout: int = 10000) -> bool:
        try:
            await self.page.wait_for_selector(selector, timeout=timeout)
            return True
        except PlaywrightTimeoutError:
            logger.debug(f"{selector} did not appear within {timeout}ms, continuing")
            return False
        except PlaywrightError as e:
            logger.debug(f"Wait for {selector} failed: {e}")
            return False

    async def humanize(self):
        """Pointer movement plus a scroll pass"""
        if not self.human_behavior:
            return
        await HumanBehavior.mouse_path(self.page, PROFILE_POINTER_PATH)
        await HumanBehavior.human_scroll(self.page, scroll_pattern='natural')

    async def click_first(self, selectors: List[str]) -> bool:
        """Click the first selector that matches; False when none does"""
        for selector in selectors:
            if await HumanBehavior.human_click(self.page, selector, delay_before=(0.2, 0.6),
                                               delay_after=(0.3, 0.8)):
                return True
        return False

    async def wait_for_text(self, text: str, timeout: int = 5000) -> bool:
        """True once the body text contains `text`, False on timeout"""
        try:
            await self.page.wait_for_function(
                't => document.body && document.body.innerText.includes(t)',
                arg=text,
                timeout=timeout,
            )
            return True
        except PlaywrightTimeoutError:
            return False
        except PlaywrightError as e:
            logger.debug(f"Wait for text '{text}' failed: {e}")
            return False

    async def press_key(self, key: str):
        try:
            await self.page.keyboard.press(key)
        except PlaywrightError as e:
            logger.debug(f"Key press {key} failed: {e}")

    async def cleanup(self):
        """Close page, context, browser and driver; each step is independent"""
        for label, closer in (
            ('Page', self.page.close if self.page else None),
            ('Context', self.context.close if self.context else None),
            ('Browser', self.browser.close if self.browser else None),
            ('Playwright', self._playwright.stop if self._playwright else None),
        ):
            if closer is None:
                continue
            try:
                await closer()
            except PlaywrightError as e:
                logger.debug(f"{label} close note: {type(e).__name__}")

        self.page = self.context = self.browser = None
        self._playwright = None
        logger.info("Browser cleanup completed")


def make_browser_factory(config) -> Callable[[Session], BrowserController]:
    """Factory turning a session into a configured, not yet launched, controller"""
    def factory(session: Session) -> BrowserController:
        return BrowserController(
            session,
            headless=config.HEADLESS,
            proxy=config.proxy,
            use_stealth=config.scraping.get('use_stealth', True),
            human_behavior=config.anti_detection.get('human_behavior', True),
            random_delays=config.anti_detection.get('random_delays', True),
        )
    return factory
