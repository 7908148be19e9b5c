"""
Configuration management
"""

import copy
import logging
import os
from pathlib import Path
from typing import Dict, Any, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS: Dict[str, Any] = {
    'scraping': {
        'headless': True,
        'target_unique_profiles': 30,
        'max_search_pages': 20,
        'search_timeout': 60000,
        'profile_timeout': 120000,
        'navigation_retries': 2,
        'page_settle_delay': [5, 8],
        'profile_settle_delay': [1, 3],
        'contact_panel_timeout': 5000,
        'main_content_timeout': 10000,
        'fallback_email': 'no-reply@example.com',
        'use_stealth': True,
    },
    'browser': {
        'viewport_width': 1920,
        'viewport_height': 1080,
        'use_proxy': False,
        'proxy_server': '',
    },
    'database': {
        'path': 'data/prospector.db',
    },
    'history': {
        'retention_days': 180,
    },
    'logging': {
        'level': 'INFO',
        'file': 'logs/prospector.log',
        'max_size_mb': 10,
    },
    'anti_detection': {
        'random_delays': True,
        'human_behavior': True,
    },
}


class Config:
    """Centralized configuration management"""

    def __init__(self, config_file: str = 'config/settings.yaml', write_defaults: bool = True):
        self.config_file = Path(config_file)
        self.write_defaults = write_defaults
        self.settings = self._load_config()
        self._load_env_vars()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML"""
        default_config = copy.deepcopy(DEFAULT_SETTINGS)

        if self.config_file.exists():
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    user_config = yaml.safe_load(f) or {}
                return self._deep_merge(default_config, user_config)
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"[WARN] Could not read {self.config_file}, using defaults: {e}")
                return default_config

        if self.write_defaults:
            # Create default config file
            try:
                self.config_file.parent.mkdir(parents=True, exist_ok=True)
                with open(self.config_file, 'w', encoding='utf-8') as f:
                    yaml.safe_dump(default_config, f, default_flow_style=False, sort_keys=False)
            except OSError as e:
                logger.debug(f"Could not write default config: {e}")
        return default_config

    def _load_env_vars(self):
        """Load environment variables"""
        self.OPERATOR_ID = os.getenv('OPERATOR_ID', 'default')
        self.HEADLESS = os.getenv('HEADLESS', str(self.scraping['headless'])).lower() == 'true'
        self.USE_PROXY = os.getenv('USE_PROXY', str(self.browser['use_proxy'])).lower() == 'true'
        self.PROXY_SERVER = os.getenv('PROXY_SERVER', self.browser.get('proxy_server', ''))
        self.FALLBACK_EMAIL = os.getenv('FALLBACK_EMAIL', self.scraping['fallback_email'])
        self.LOG_LEVEL = os.getenv('LOG_LEVEL', self.logging_config['level'])

    def _deep_merge(self, base: Dict, update: Dict) -> Dict:
        """Deep merge dictionaries"""
        result = base.copy()
        for key, value in update.items():
            if isinstance(value, dict) and key in result and isinstance(result[key], dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    @property
    def scraping(self) -> Dict:
        return self.settings['scraping']

    @property
    def browser(self) -> Dict:
        return self.settings['browser']

    @property
    def database(self) -> Dict:
        return self.settings['database']

    @property
    def history(self) -> Dict:
        return self.settings['history']

    @property
    def logging_config(self) -> Dict:
        return self.settings['logging']

    @property
    def anti_detection(self) -> Dict:
        return self.settings['anti_detection']

    @property
    def proxy(self) -> Optional[str]:
        if self.USE_PROXY and self.PROXY_SERVER:
            return self.PROXY_SERVER
        return None

    def delay_range(self, key: str) -> Tuple[float, float]:
        """(min, max) seconds for a scraping delay setting stored as a 2-item list"""
        low, high = self.scraping[key]
        return float(low), float(high)

    def get(self, key: str, default=None):
        """Get configuration value by dot notation"""
        keys = key.split('.')
        value = self.settings
        for k in keys:
            if isinstance(value, dict):
                value = value.get(k, {})
            else:
                return default
        return value if value != {} else default
