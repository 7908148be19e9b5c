"""
Page Extractor: search-results HTML -> ProfileSummary rows

Selector strategies are tried in order; the first one that yields any
candidate wins.
"""

import re
import logging
from typing import Callable, List, Optional

from bs4 import BeautifulSoup, Tag

from models.profile import ProfileSummary
from utils.helpers import clean_text, normalize_profile_url

logger = logging.getLogger(__name__)

_AT_COMPANY = re.compile(r'(?:^|\s)(?:at\s+|@\s*)(.+?)$', re.IGNORECASE)
_ROLE_COMPANY = re.compile(
    r'(?:CEO|CTO|CFO|COO|VP|Vice President|Director|Manager|Head|Lead|Senior|'
    r'Engineer|Developer|Designer|Analyst)\s+(?:of\s+)?(.+?)$',
    re.IGNORECASE,
)


def company_from_headline(headline: Optional[str]) -> str:
    """Best-effort employer from a headline such as 'VP Sales at Acme'"""
    if not headline:
        return ''
    match = _AT_COMPANY.search(headline) or _ROLE_COMPANY.search(headline)
    return match.group(1).strip() if match else ''


def _text(element: Optional[Tag]) -> str:
    return clean_text(element.get_text(' ', strip=True)) if element else ''


def _img_src(container: Tag) -> Optional[str]:
    img = container.find('img')
    if img is None:
        return None
    src = img.get('src') or img.get('data-delayed-url')
    return src if src and src.startswith('http') else None


class PageExtractor:
    """Parses one rendered search results page"""

    def __init__(self):
        self.strategies: List[Callable[[BeautifulSoup], List[ProfileSummary]]] = [
            self._from_result_cards,
            self._from_legacy_containers,
            self._from_profile_links,
        ]

    def extract(self, html: str) -> List[ProfileSummary]:
        """Rows in page order, one per profile id"""
        if not html:
            return []

        soup = BeautifulSoup(html, 'html.parser')
        for strategy in self.strategies:
            rows = strategy(soup)
            if rows:
                logger.debug(f"{strategy.__name__} matched {len(rows)} rows")
                return self._unique(rows)

        logger.debug("No search result rows found on page")
        return []

    @staticmethod
    def _unique(rows: List[ProfileSummary]) -> List[ProfileSummary]:
        seen = set()
        unique = []
        for row in rows:
            if row.id in seen:
                continue
            seen.add(row.id)
            unique.append(row)
        return unique

    @staticmethod
    def _summary(href: str, name: str, headline: str = '', location: str = '',
                 summary: str = '', current_company: str = '',
                 avatar_url: Optional[str] = None) -> Optional[ProfileSummary]:
        return ProfileSummary.from_url(
            normalize_profile_url(href),
            name=name,
            headline=headline or None,
            location=location or None,
            summary=summary or None,
            current_company=current_company or company_from_headline(headline),
            avatar_url=avatar_url,
        )

    def _from_result_cards(self, soup: BeautifulSoup) -> List[ProfileSummary]:
        rows = []
        for card in soup.select('div[data-view-name="people-search-result"]'):
            link = card.select_one('a[data-view-name="search-result-lockup-title"]')
            if link is None or not link.get('href'):
                continue

            headline = location = summary = current = ''
            title_paragraph = link.find_parent('p')
            if title_paragraph is not None and title_paragraph.parent is not None:
                paragraphs = [_text(p) for p in title_paragraph.parent.find_all('p')]
                if len(paragraphs) > 1:
                    headline = paragraphs[1]
                if len(paragraphs) > 2:
                    location = paragraphs[2]
                for text in paragraphs[3:]:
                    if text.startswith('Summary:'):
                        summary = text[len('Summary:'):].strip()
                    elif text.startswith('Current:'):
                        current = text[len('Current:'):].strip()
                    elif not summary and len(text) > 20:
                        summary = text

            row = self._summary(link['href'], _text(link), headline, location, summary,
                                current, _img_src(card))
            if row:
                rows.append(row)
        return rows

    def _from_legacy_containers(self, soup: BeautifulSoup) -> List[ProfileSummary]:
        rows = []
        for container in soup.select('.entity-result__item, .reusable-search__result-container'):
            link = container.select_one('.entity-result__title-text a')
            if link is None or not link.get('href'):
                continue

            name_el = link.select_one('span[aria-hidden="true"]')
            current = ''
            for insight in container.select('.entity-result__simple-insight-text'):
                text = _text(insight)
                if text.startswith('Current:'):
                    current = text[len('Current:'):].strip()
                    break

            row = self._summary(
                link['href'],
                _text(name_el) if name_el else _text(link),
                _text(container.select_one('.entity-result__primary-subtitle')),
                _text(container.select_one('.entity-result__secondary-subtitle')),
                _text(container.select_one('.entity-result__summary')),
                current,
                _img_src(container),
            )
            if row:
                rows.append(row)
        return rows

    def _from_profile_links(self, soup: BeautifulSoup) -> List[ProfileSummary]:
        rows = []
        for link in soup.select('a[href*="/in/"]'):
            container = self._result_container(link)
            if container is None:
                continue

            name = _text(container.select_one('span[aria-hidden="true"]'))
            if not name:
                link_text = link.get_text(strip=True)
                if 2 < len(link_text) < 100 and '\n' not in link_text:
                    name = link_text
            if len(name) < 2:
                continue

            row = self._summary(
                link['href'],
                name,
                _text(container.select_one('.entity-result__primary-subtitle, [class*="subtitle"]')),
                _text(container.select_one('.entity-result__secondary-subtitle')),
                _text(container.select_one('.entity-result__summary')),
                avatar_url=_img_src(container),
            )
            if row:
                rows.append(row)
        return rows

    @staticmethod
    def _result_container(link: Tag) -> Optional[Tag]:
        """Nearest li or result div within ten ancestors"""
        container = link
        for _ in range(10):
            container = container.parent
            if container is None or not isinstance(container, Tag):
                return None
            if container.name == 'li':
                return container
            if container.name == 'div' and 'result' in ' '.join(container.get('class', [])):
                return container
        return container
