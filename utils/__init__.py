"""
Utils module initialization
"""

from .logger import setup_logging, get_logger
from .config import Config
from .helpers import (
    format_time, extract_url_profile_id, normalize_profile_url, is_profile_url, clean_text
)

__all__ = [
    "setup_logging", "get_logger", "Config",
    "format_time", "extract_url_profile_id", "normalize_profile_url",
    "is_profile_url", "clean_text",
]
