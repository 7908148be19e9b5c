"""
Agents for the prospecting pipeline
- Search Agent: finds never-seen profiles
- Scrape Agent: extracts one profile in depth
- Validation Agent: reports extraction quality
"""

from .operator_lock import OperatorLocks
from .search_agent import SearchAgent, SearchProgress
from .scrape_agent import ScrapeAgent, ExtractionResult, ExtractionState
from .validation_agent import ValidationAgent

__all__ = [
    "OperatorLocks",
    "SearchAgent",
    "SearchProgress",
    "ScrapeAgent",
    "ExtractionResult",
    "ExtractionState",
    "ValidationAgent",
]
