"""
Prospector console
Interactive entry point for the profile discovery and scraping pipeline

Features:
- People search that only returns profiles the operator has never seen
- Deep extraction of a single profile with contact email lookup
- Session cookie import from a browser export
- Grouped view history, statistics and retention purge
"""

import asyncio
import json
from pathlib import Path
from datetime import datetime
from typing import List, Optional
import logging

from dotenv import load_dotenv

from utils.logger import setup_logging
from utils.config import Config
from utils.helpers import format_time, is_profile_url
from scraper.browser_controller import make_browser_factory
from scraper.errors import ScraperError
from agents.operator_lock import OperatorLocks
from agents.search_agent import SearchAgent
from agents.scrape_agent import ScrapeAgent
from agents.validation_agent import ValidationAgent
from database.db_manager import ProfileStore
from database.session_store import SessionStore
from models.profile import ProfileSummary, SearchCriteria

logger = logging.getLogger(__name__)


def print_banner():
    print("\n" + "=" * 60)
    print("  PROSPECTOR - profile discovery and scraping")
    print("=" * 60)


def print_config_info(config: Config):
    print(f"Operator:        {config.OPERATOR_ID}")
    print(f"Headless:        {config.HEADLESS}")
    print(f"Proxy:           {config.proxy or 'none'}")
    print(f"Quota / cap:     {config.scraping['target_unique_profiles']} new profiles, "
          f"{config.scraping['max_search_pages']} pages")
    print(f"Database:        {config.database['path']}")


class ProspectorApp:
    """Main application with the operator menu"""

    def __init__(self, config: Optional[Config] = None):
        self.config = config or Config()
        self.operator_id = self.config.OPERATOR_ID
        self.profile_store = ProfileStore(self.config.database['path'])
        self.session_store = SessionStore(self.config.database['path'])
        self.locks = OperatorLocks()
        self.validation_agent = ValidationAgent()

        browser_factory = make_browser_factory(self.config)
        self.search_agent = SearchAgent(self.session_store, self.profile_store, browser_factory,
                                        self.config, locks=self.locks)
        self.scrape_agent = ScrapeAgent(self.session_store, self.profile_store, browser_factory,
                                        self.config, locks=self.locks, validator=self.validation_agent)
        self.last_results: List[ProfileSummary] = []
        self.start_time = None

    async def workflow_search(self):
        """Search for new profiles"""
        print("\nLeave a field empty to skip it.")
        criteria = SearchCriteria(
            job_title=input("Job title: "),
            industry=input("Industry: "),
            location_keyword=input("Location: "),
            company=input("Company: "),
        )
        if criteria.is_empty():
            print("[X] Enter at least one search field.")
            return

        started = datetime.now()
        try:
            response = await self.search_agent.search(self.operator_id, criteria)
        except ScraperError as e:
            logger.error(f"[X] Search failed: {e}")
            return

        self.last_results = response.results
        print("\n" + "=" * 60)
        for i, profile in enumerate(response.results, 1):
            company = f" @ {profile.current_company}" if profile.current_company else ""
            print(f"{i:>3}. {profile.name or profile.id}{company}")
            if profile.headline:
                print(f"     {profile.headline}")
            print(f"     {profile.profile_url}")
        print("=" * 60)
        if response.message:
            print(response.message)
        print(f"{response.pagination.total} new of {response.total_fetched} fetched over "
              f"{response.pagination.page} page(s) in {format_time((datetime.now() - started).total_seconds())}"
              f"{' (more available)' if response.pagination.has_more else ''}")

    async def workflow_scrape(self):
        """Scrape one profile, picked from the last search or given as a URL"""
        choice = input("\nResult number from last search, or profile URL: ").strip()
        name_hint = None
        if choice.isdigit() and 0 < int(choice) <= len(self.last_results):
            summary = self.last_results[int(choice) - 1]
            profile_url, name_hint = summary.profile_url, summary.name
        elif is_profile_url(choice):
            profile_url = choice
        else:
            print("[X] Not a result number or profile URL.")
            return

        try:
            result = await self.scrape_agent.run_extraction(self.operator_id, profile_url, name_hint)
        except ScraperError as e:
            logger.error(f"[X] Scrape failed: {e}")
            return

        detail = result.detail
        print("\n" + "=" * 60)
        print(json.dumps(json.loads(detail.model_dump_json()), indent=2, ensure_ascii=False))
        print("=" * 60)
        print(f"States: {' -> '.join(s.value for s in result.states)}")
        if result.failure:
            print(f"[WARN] {result.failure}")

    async def workflow_import_session(self):
        """Import session cookies exported from a logged-in browser"""
        path = Path(input("\nPath to cookies JSON file: ").strip())
        try:
            raw = json.loads(path.read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            logger.error(f"[X] Could not read {path}: {e}")
            return

        cookies = raw.get('cookies', []) if isinstance(raw, dict) else raw
        try:
            session = self.session_store.import_cookies(self.operator_id, cookies)
        except ValueError as e:
            logger.error(f"[X] Invalid cookie file: {e}")
            return
        print(f"[OK] Session stored ({len(session.cookies)} cookies), valid until "
              f"{session.expires_at:%Y-%m-%d}")

    async def show_history(self):
        """Show view history grouped by search"""
        groups = self.profile_store.get_history_grouped(self.operator_id)
        if not groups:
            print("\nNo history yet.")
            return

        print("\n" + "=" * 60)
        for group in groups:
            print(f"{group.search_key}  ({group.count} profiles, last {group.viewed_at:%Y-%m-%d %H:%M})")
            for record in group.profiles[:5]:
                print(f"   - {record.name or record.profile_id}: {record.profile_url}")
            if group.count > 5:
                print(f"   ... and {group.count - 5} more")
        print("=" * 60)

        if input("Export history to JSON? (y/N): ").strip().lower() == 'y':
            output = Path('output') / f"history_{self.operator_id}_{datetime.now():%Y%m%d_%H%M%S}.json"
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(self.profile_store.dump_history_json(self.operator_id), encoding='utf-8')
            print(f"[OK] History exported to {output}")

    async def show_statistics(self):
        """Show history and scrape statistics"""
        stats = self.profile_store.get_history_stats(self.operator_id)
        profiles = self.profile_store.list_profiles(self.operator_id)
        quality = self.validation_agent.batch_validate(profiles)

        print("\n" + "=" * 60)
        print("DATABASE STATISTICS")
        print("=" * 60)
        print(f"Profiles viewed:      {stats.total}")
        print(f"Unique searches:      {stats.unique_searches}")
        print(f"Last viewed:          {stats.last_viewed or 'never'}")
        print(f"Profiles scraped:     {quality['total']}")
        print(f"Verified emails:      {quality['verified_emails']}")
        print(f"Avg completeness:     {quality['avg_completeness']}%")
        print(f"Session valid:        {self.session_store.is_session_valid(self.operator_id)}")
        print(f"Database size:        {self.profile_store.get_db_size()}")
        print("=" * 60)

    async def cleanup_data(self):
        """Purge old view history"""
        default_days = self.config.history['retention_days']
        answer = input(f"Delete history older than (days, default {default_days}): ").strip()
        try:
            days = int(answer) if answer else default_days
        except ValueError:
            print("[X] Enter a number of days.")
            return
        deleted = self.profile_store.delete_history_older_than(self.operator_id, days)
        print(f"[OK] Deleted {deleted} old records")

    async def show_menu(self) -> int:
        """Show interactive menu"""
        print("\n" + "=" * 60)
        print("[MENU] SELECT MODE")
        print("=" * 60)
        print("1. Search New Profiles")
        print("2. Scrape a Profile")
        print("3. Import Session Cookies")
        print("4. View Search History")
        print("5. View Statistics")
        print("6. Cleanup Old History")
        print("0. Exit")
        print("=" * 60)

        while True:
            choice = input("\nEnter your choice (0-6): ").strip()
            if choice in ['0', '1', '2', '3', '4', '5', '6']:
                return int(choice)
            print("[X] Invalid choice. Please try again.")

    async def run(self):
        """Run main application loop"""
        self.start_time = datetime.now()
        print_banner()
        print_config_info(self.config)

        if not self.session_store.is_session_valid(self.operator_id):
            logger.warning("[WARN] No valid session for this operator. Import session cookies first (option 3).")

        actions = {
            1: self.workflow_search,
            2: self.workflow_scrape,
            3: self.workflow_import_session,
            4: self.show_history,
            5: self.show_statistics,
            6: self.cleanup_data,
        }

        try:
            while True:
                choice = await self.show_menu()
                if choice == 0:
                    break
                await actions[choice]()
            logger.info("Goodbye!")
        except (KeyboardInterrupt, EOFError):
            logger.info("Interrupted by user")
        finally:
            elapsed = datetime.now() - self.start_time
            logger.info(f"Total execution time: {format_time(elapsed.total_seconds())}")


async def main():
    """Main entry point"""
    config = Config()
    setup_logging(
        log_file=config.logging_config['file'],
        level=config.LOG_LEVEL,
        max_size_mb=config.logging_config['max_size_mb'],
    )

    app = ProspectorApp(config)
    await app.run()


def cli():
    # Load environment variables before Config reads them
    load_dotenv(Path('.env'))
    asyncio.run(main())


if __name__ == "__main__":
    cli()
