"""
Validation Agent: quality report for extracted profile records
"""

import logging
from typing import Dict, List, Tuple

from models.profile import ProfileDetail
from scraper.detail_extractor import PLACEHOLDER_NAME
from utils.helpers import SITE_ROOT

logger = logging.getLogger(__name__)


class ValidationAgent:
    """Scores how complete and trustworthy an extracted profile is"""

    MIN_ABOUT_LENGTH = 20

    COMPLETENESS_FIELDS = ['headline', 'about', 'location', 'current_company',
                           'experiences', 'education', 'skills', 'avatar_url']

    def validate_profile(self, profile: ProfileDetail) -> Tuple[bool, Dict]:
        """
        Validate profile data quality

        Returns:
            (is_valid, validation_report)
        """
        report = {
            'is_valid': True,
            'errors': [],
            'warnings': [],
            'score': 100,
            'data_completeness': self._calculate_completeness(profile),
        }

        if not profile.profile_url.startswith(SITE_ROOT):
            report['errors'].append("Invalid LinkedIn URL")
            report['is_valid'] = False
            report['score'] -= 20

        if profile.name == PLACEHOLDER_NAME:
            report['warnings'].append("Name could not be extracted")
            report['score'] -= 15
        elif not self._is_valid_name(profile.name):
            report['warnings'].append("Invalid name format")
            report['score'] -= 5

        if not profile.has_verified_email:
            report['warnings'].append("No contact email found, fallback address used")
            report['score'] -= 10

        if profile.about and len(profile.about) < self.MIN_ABOUT_LENGTH:
            report['warnings'].append("Very short about section")
            report['score'] -= 10

        report['score'] = max(0, report['score'])

        logger.info(
            f"Validation report for {profile.name}: score {report['score']}, "
            f"{report['data_completeness']}% complete, {len(report['warnings'])} warnings"
        )
        return report['is_valid'], report

    @staticmethod
    def _is_valid_name(name: str) -> bool:
        name = name.strip()
        if len(name) < 2 or len(name) > 200:
            return False
        if not any(c.isalpha() for c in name):
            return False
        # Should not contain too many numbers
        return sum(1 for c in name if c.isdigit()) <= len(name) * 0.3

    def _calculate_completeness(self, profile: ProfileDetail) -> float:
        filled = sum(1 for field in self.COMPLETENESS_FIELDS if getattr(profile, field))
        return round(filled / len(self.COMPLETENESS_FIELDS) * 100, 2)

    def batch_validate(self, profiles: List[ProfileDetail]) -> Dict:
        """Aggregate report over several profiles"""
        results = {
            'total': len(profiles),
            'valid': 0,
            'invalid': 0,
            'verified_emails': 0,
            'avg_completeness': 0,
            'avg_score': 0,
        }

        total_completeness = 0
        total_score = 0
        for profile in profiles:
            is_valid, report = self.validate_profile(profile)
            results['valid' if is_valid else 'invalid'] += 1
            if profile.has_verified_email:
                results['verified_emails'] += 1
            total_completeness += report['data_completeness']
            total_score += report['score']

        if profiles:
            results['avg_completeness'] = round(total_completeness / len(profiles), 2)
            results['avg_score'] = round(total_score / len(profiles), 2)

        logger.info(f"Batch validation: {results['valid']}/{results['total']} valid")
        return results
