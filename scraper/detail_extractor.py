"""
Profile Detail Extractor
- Field cascades: ordered selector strategies, first plausible value wins
- Text-based fallbacks over the visible page text for unstable markup
- Skill cleanup (self-repeated tokens, case-insensitive dedup)
"""

import re
import logging
from typing import Callable, Iterable, List, Optional, TypeVar

from bs4 import BeautifulSoup, Tag

from models.profile import EmailSource, Experience, ProfileDetail
from scraper.page_extractor import company_from_headline
from utils.helpers import clean_text, extract_url_profile_id

logger = logging.getLogger(__name__)

T = TypeVar('T')

PLACEHOLDER_NAME = 'LinkedIn Member'
PLACEHOLDER_MARKERS = ('privacy', 'linkedin')

EMAIL_PATTERN = re.compile(r'[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}')

MAX_ABOUT_CHARS = 1000
MAX_POSTS = 5
MAX_EXPERIENCES = 3
MAX_INTERESTS = 10

NAME_SELECTORS = [
    'h1.text-heading-xlarge',
    'h1.inline.t-24.v-align-middle.break-words',
    '.pv-text-details__left-panel h1',
    'div.ph5 h1',
]

IMAGE_SELECTORS = [
    'img.pv-top-card-profile-picture__image--show',
    'img.pv-top-card-profile-picture__image',
    'div.pv-top-card img[width="200"]',
    'img.profile-photo',
    'img[data-delayed-url*="profile"]',
    '.pv-top-card--photo img',
    'button.pv-top-card-profile-picture img',
]

SKILL_SELECTOR = (
    '[data-field="skill_card_skill_topic"] .mr1, '
    '.pv-skill-category-entity__name, '
    '.artdeco-list__item .display-flex.align-items-center.mr1.hoverable-link-text'
)
POST_SELECTOR = '.feed-shared-update-v2__description, .feed-shared-text, .update-components-text'
EXPERIENCE_SELECTOR = '#experience ~ .pvs-list__outer-container .pvs-entity, .pv-entity__position-group-pager li'
INTEREST_SELECTOR = '.pv-interest-entity__name, [data-field="interests_entity_name"]'
SCHOOL_SELECTOR = '.pv-entity__school-name, [data-field="school_name"]'
LOCATION_SELECTOR = '.text-body-small.inline.t-black--light.break-words, [data-field="location_name"]'
ABOUT_TEXT_SELECTOR = '.inline-show-more-text, .pv-shared-text-with-see-more, .display-flex .visibly-hidden'

SECTION_HEADERS = ['About', 'Activity', 'Experience', 'Education', 'Skills', 'Licenses & certifications',
                   'Projects', 'Languages', 'Recommendations', 'Interests', 'Volunteering']
NOISE_WORDS = ['http', 'button', 'follow', 'endorse', 'show all', 'see more']


class ProfileDocument:
    """Parsed profile page plus its rendered visible text"""

    def __init__(self, html: str, visible_text: Optional[str] = None):
        self.soup = BeautifulSoup(html or '', 'html.parser')
        title = self.soup.title
        self.title = title.get_text(strip=True) if title else ''
        if visible_text is None:
            visible_text = self.soup.get_text('\n')
        self.lines = [line.strip() for line in visible_text.split('\n') if line.strip()]

    def text_of(self, selector: str) -> str:
        return node_text(self.soup.select_one(selector))

    def texts_of(self, selector: str) -> List[str]:
        return [t for t in (node_text(el) for el in self.soup.select(selector)) if t]

    def heading(self, label: str) -> Optional[Tag]:
        """First h2/span/p/div whose whole text is the label"""
        for tag in ('h2', 'span', 'p', 'div'):
            for element in self.soup.find_all(tag):
                if element.get_text(strip=True) == label:
                    return element
        return None

    def section(self, label: str) -> Optional[Tag]:
        """Section or card enclosing the labelled heading"""
        header = self.heading(label)
        if header is None:
            return None
        container = header.parent
        for _ in range(5):
            if container is None:
                return None
            if container.name == 'section' or 'card' in ' '.join(container.get('class', [])):
                break
            container = container.parent
        return container

    def section_lines(self, header: str, limit: int = 40) -> List[str]:
        """Visible-text lines between a section header and the next known header"""
        try:
            start = self.lines.index(header) + 1
        except ValueError:
            return []
        collected = []
        for line in self.lines[start:]:
            if line in SECTION_HEADERS:
                break
            if any(noise in line.lower() for noise in NOISE_WORDS):
                continue
            collected.append(line)
            if len(collected) >= limit:
                break
        return collected


def node_text(element: Optional[Tag]) -> str:
    return clean_text(element.get_text(' ', strip=True)) if element else ''


def first_present(doc: ProfileDocument, cascade: Iterable[Callable[[ProfileDocument], Optional[T]]]) -> Optional[T]:
    """Run strategies in order, returning the first non-empty value"""
    for strategy in cascade:
        try:
            value = strategy(doc)
        except (AttributeError, TypeError, ValueError, KeyError, IndexError) as e:
            logger.debug(f"{getattr(strategy, '__name__', 'strategy')} failed: {e}")
            continue
        if value:
            return value
    return None


def is_placeholder(text: str) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in PLACEHOLDER_MARKERS)


def find_email(text: str) -> Optional[str]:
    match = EMAIL_PATTERN.search(text or '')
    return match.group(0) if match else None


# ----------------------------------------------------------------------
# Name
# ----------------------------------------------------------------------

def name_from_top_card(doc: ProfileDocument) -> Optional[str]:
    for selector in NAME_SELECTORS:
        text = doc.text_of(selector)
        if len(text) > 2 and not is_placeholder(text):
            return text
    return None


def name_from_title(doc: ProfileDocument) -> Optional[str]:
    name = re.sub(r'\s*\|.*$', '', doc.title).strip()
    name = re.sub(r'^\(\d+\)\s+', '', name)
    if name and not is_placeholder(name):
        return name
    return None


def name_from_any_heading(doc: ProfileDocument) -> Optional[str]:
    text = node_text(doc.soup.find('h1'))
    if text and not is_placeholder(text):
        return text
    return None


NAME_CASCADE = [name_from_top_card, name_from_title, name_from_any_heading]


# ----------------------------------------------------------------------
# Headline
# ----------------------------------------------------------------------

def headline_from_class(doc: ProfileDocument) -> Optional[str]:
    return doc.text_of('.text-body-medium') or None


def headline_after_heading(doc: ProfileDocument) -> Optional[str]:
    h1 = doc.soup.find('h1')
    if h1 is None:
        return None
    return node_text(h1.find_next_sibling()) or None


def headline_after_name(doc: ProfileDocument, name: str) -> Optional[str]:
    if not name:
        return None
    for element in doc.soup.find_all(['h1', 'div', 'span', 'p']):
        if element.get_text(strip=True) == name:
            following = node_text(element.find_next_sibling())
            if len(following) > 5:
                return following
    return None


# ----------------------------------------------------------------------
# About
# ----------------------------------------------------------------------

def _unique_lines(text: str) -> str:
    lines = [line.strip() for line in text.split('\n') if line.strip()]
    return '\n'.join(dict.fromkeys(lines))


def about_from_section(doc: ProfileDocument) -> Optional[str]:
    container = doc.section('About')
    if container is None:
        return None
    text_el = container.select_one(ABOUT_TEXT_SELECTOR)
    if text_el is not None:
        about = text_el.get_text('\n', strip=True)
    else:
        about = re.sub(r'About', '', container.get_text('\n', strip=True), count=1, flags=re.IGNORECASE)
    return _unique_lines(about) or None


def about_from_text(doc: ProfileDocument) -> Optional[str]:
    lines = doc.section_lines('About')
    return _unique_lines('\n'.join(lines)) or None


ABOUT_CASCADE = [about_from_section, about_from_text]


# ----------------------------------------------------------------------
# Skills
# ----------------------------------------------------------------------

def skills_from_cards(doc: ProfileDocument) -> List[str]:
    return [s for s in doc.texts_of(SKILL_SELECTOR) if len(s) < 50]


def skills_from_section(doc: ProfileDocument) -> List[str]:
    container = doc.section('Skills')
    if container is None:
        return []
    skills = []
    for item in container.select('li, .pvs-list__item--line-separated, .artdeco-list__item'):
        text_el = item.select_one('span[aria-hidden="true"]') or item.select_one('.mr1') or item
        text = node_text(text_el)
        if text and text != 'Skills' and len(text) > 1 and 'Endorsed' not in text:
            skills.append(text)
    return skills


def skills_from_text(doc: ProfileDocument) -> List[str]:
    skills = []
    for line in doc.section_lines('Skills'):
        skill = re.sub(r'\d+\s*(endorsements?)?', '', line, flags=re.IGNORECASE).strip()
        if 1 < len(skill) < 50:
            skills.append(skill)
    return skills


SKILLS_CASCADE = [skills_from_cards, skills_from_section, skills_from_text]


def fold_repeated(text: str) -> str:
    """'AB'+'AB' -> 'AB' (markup often renders a label twice)"""
    text = text.strip()
    half = len(text) // 2
    if half and text[:half] == text[half:]:
        return text[:half]
    return text


def dedupe_skills(skills: Iterable[str]) -> List[str]:
    cleaned = []
    seen = set()
    for skill in skills:
        skill = fold_repeated(skill)
        key = skill.lower()
        if key in seen or not (1 < len(skill) < 50):
            continue
        seen.add(key)
        cleaned.append(skill)
    return cleaned


# ----------------------------------------------------------------------
# Posts, experience, interests, education, location, image
# ----------------------------------------------------------------------

def extract_posts(doc: ProfileDocument) -> List[str]:
    posts = []
    seen = set()
    for text in doc.texts_of(POST_SELECTOR):
        if len(posts) >= MAX_POSTS:
            break
        if len(text) <= 20:
            continue
        key = text[:100]
        if key in seen:
            continue
        seen.add(key)
        posts.append(text)
    return posts


def experiences_from_entities(doc: ProfileDocument) -> List[Experience]:
    experiences = []
    for entity in doc.soup.select(EXPERIENCE_SELECTOR)[:MAX_EXPERIENCES]:
        title = node_text(entity.select_one('.mr1 span[aria-hidden="true"]'))
        if title:
            company = node_text(entity.select_one('.t-14.t-normal span[aria-hidden="true"]'))
            experiences.append(Experience(title=title, company=company))
    return experiences


def experiences_from_text(doc: ProfileDocument) -> List[Experience]:
    """Alternating title/company lines under the Experience header"""
    experiences = []
    lines = [line for line in doc.section_lines('Experience') if len(line) > 2]
    for i in range(0, len(lines), 2):
        if len(experiences) >= MAX_EXPERIENCES:
            break
        title = lines[i]
        company = lines[i + 1] if i + 1 < len(lines) else ''
        experiences.append(Experience(title=title, company=company.split(' · ')[0]))
    return experiences


EXPERIENCE_CASCADE = [experiences_from_entities, experiences_from_text]


def extract_interests(doc: ProfileDocument) -> List[str]:
    return doc.texts_of(INTEREST_SELECTOR)[:MAX_INTERESTS]


def education_from_selector(doc: ProfileDocument) -> Optional[str]:
    return doc.text_of(SCHOOL_SELECTOR) or None


def education_from_text(doc: ProfileDocument) -> Optional[str]:
    lines = doc.section_lines('Education', limit=1)
    return lines[0] if lines else None


EDUCATION_CASCADE = [education_from_selector, education_from_text]


def location_from_selector(doc: ProfileDocument) -> Optional[str]:
    return doc.text_of(LOCATION_SELECTOR) or None


def location_from_text(doc: ProfileDocument) -> Optional[str]:
    """'City, Region' shaped line near the top of the page"""
    skip = ['http', 'button', 'follow', 'message', 'skill', 'education', 'experience', '@']
    for line in doc.lines[:50]:
        if ',' not in line or not 3 < len(line) < 150:
            continue
        if any(x in line.lower() for x in skip):
            continue
        parts = [p.strip() for p in line.split(',')]
        if len(parts) >= 2 and all(parts) and all(len(p.split()) <= 4 for p in parts):
            return line
    return None


LOCATION_CASCADE = [location_from_selector, location_from_text]


def extract_image(doc: ProfileDocument) -> Optional[str]:
    for selector in IMAGE_SELECTORS:
        img = doc.soup.select_one(selector)
        if img is None:
            continue
        src = img.get('src') or img.get('data-delayed-url')
        if src and src.startswith('http'):
            return src
    return None


class DetailExtractor:
    """Assemble a ProfileDetail from one rendered profile page"""

    def __init__(self, fallback_email: str):
        if not fallback_email:
            raise ValueError("fallback_email must be configured")
        self.fallback_email = fallback_email

    def extract(self, html: str, visible_text: Optional[str], profile_url: str,
                name_hint: Optional[str] = None, email: Optional[str] = None) -> ProfileDetail:
        doc = ProfileDocument(html, visible_text)

        name = first_present(doc, NAME_CASCADE)
        if not name:
            name = name_hint if name_hint and not is_placeholder(name_hint) else PLACEHOLDER_NAME

        headline = first_present(doc, [
            headline_from_class,
            headline_after_heading,
            lambda d: headline_after_name(d, name),
        ])

        about = first_present(doc, ABOUT_CASCADE)
        experiences = first_present(doc, EXPERIENCE_CASCADE) or []

        current_company = company_from_headline(headline)
        if not current_company and experiences:
            current_company = experiences[0].company

        email_source: EmailSource = 'extracted' if email else 'fallback'

        detail = ProfileDetail(
            id=extract_url_profile_id(profile_url),
            name=name,
            headline=headline,
            location=first_present(doc, LOCATION_CASCADE),
            current_company=current_company or None,
            avatar_url=extract_image(doc),
            profile_url=profile_url,
            about=about[:MAX_ABOUT_CHARS] if about else None,
            skills=dedupe_skills(first_present(doc, SKILLS_CASCADE) or []),
            posts=extract_posts(doc),
            experiences=experiences[:MAX_EXPERIENCES],
            interests=extract_interests(doc),
            education=first_present(doc, EDUCATION_CASCADE),
            email=email or self.fallback_email,
            email_source=email_source,
        )

        logger.info(
            f"Profile extraction completed: {detail.name} "
            f"({len(detail.skills)} skills, {len(detail.posts)} posts, email {detail.email_source})"
        )
        return detail
