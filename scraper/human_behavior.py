"""
Human-Like Behavior Simulation
- Random delays with occasional longer pauses
- Gradual scrolling passes
- Pointer movement along fixed or random paths
- Clicks with human-like timing
"""

import asyncio
import random
from typing import Iterable, Optional, Tuple
from playwright.async_api import Page, Error as PlaywrightError
import logging

logger = logging.getLogger(__name__)

# Pointer path used before reading a profile
PROFILE_POINTER_PATH = [(100, 100), (400, 300), (200, 500)]


class HumanBehavior:
    """Simulate human-like browser behavior"""

    @staticmethod
    async def random_delay(min_seconds: float = 0.5, max_seconds: float = 3.0):
        """Random delay between actions with occasional longer pauses"""
        # Roughly one pause in five runs long
        if random.random() < 0.2:
            delay = random.uniform(max_seconds * 1.5, max_seconds * 2.5)
        else:
            delay = random.uniform(min_seconds, max_seconds)
        await asyncio.sleep(delay)

    @staticmethod
    async def human_scroll(page: Page, scroll_pattern: str = 'natural', passes: int = 1) -> bool:
        """Scroll the page top to bottom so lazy sections render"""
        try:
            for pass_num in range(passes):
                total_height = await page.evaluate('document.body.scrollHeight')
                viewport_height = await page.evaluate('window.innerHeight')

                if total_height <= viewport_height:
                    logger.debug(f"Page is fully visible (pass {pass_num + 1})")
                    return True

                current_position = 0
                while current_position < total_height:
                    if scroll_pattern == 'fast':
                        scroll_amount = random.randint(800, 1200)
                    elif scroll_pattern == 'slow':
                        scroll_amount = random.randint(150, 400)
                    else:
                        scroll_amount = random.randint(300, 800)

                    current_position += scroll_amount
                    await page.evaluate(f'window.scrollTo(0, {current_position})')
                    await asyncio.sleep(random.uniform(0.4, 1.2))

                    # Sometimes scroll back up a little
                    if random.random() < 0.08:
                        current_position -= random.randint(100, 250)
                        await page.evaluate(f'window.scrollTo(0, {current_position})')
                        await asyncio.sleep(random.uniform(0.4, 1.0))

                if pass_num < passes - 1:
                    await page.evaluate('window.scrollTo(0, 0)')
                    await asyncio.sleep(random.uniform(1, 2))

            logger.debug("Human-like scrolling completed")
            return True

        except PlaywrightError as e:
            logger.warning(f"[WARN] Error during scroll: {e}")
            return False

    @staticmethod
    async def mouse_path(page: Page, points: Optional[Iterable[Tuple[int, int]]] = None):
        """Move the pointer through the given points, or a few random ones"""
        try:
            if points is None:
                viewport = await page.evaluate('() => ({width: window.innerWidth, height: window.innerHeight})')
                points = [
                    (random.randint(100, viewport['width'] - 100), random.randint(100, viewport['height'] - 100))
                    for _ in range(random.randint(3, 8))
                ]

            for x, y in points:
                await page.mouse.move(x, y)
                await asyncio.sleep(random.uniform(0.1, 0.3))

            logger.debug("Mouse movements completed")

        except PlaywrightError as e:
            logger.debug(f"Mouse movement note: {e}")

    @staticmethod
    async def human_click(page: Page, selector: str, delay_before: Tuple[float, float] = (0.5, 1.5),
                          delay_after: Tuple[float, float] = (0.5, 2.0)) -> bool:
        """Click with human-like timing; False when the element is missing or not clickable"""
        try:
            element = await page.query_selector(selector)
            if element is None:
                return False

            await asyncio.sleep(random.uniform(*delay_before))
            await element.scroll_into_view_if_needed()
            await asyncio.sleep(random.uniform(0.1, 0.3))
            await element.click()
            await asyncio.sleep(random.uniform(*delay_after))

            logger.debug(f"Human-like click on {selector}")
            return True

        except PlaywrightError as e:
            logger.debug(f"Click on {selector} failed: {e}")
            return False
