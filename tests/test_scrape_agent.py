from __future__ import annotations

import pytest

from agents.scrape_agent import ExtractionState, ScrapeAgent
from scraper.errors import NotAuthenticated, ProfileStoreError, SourceBlocked

from conftest import OPERATOR, BrowserFactory, FakeBrowser

PROFILE_URL = "https://www.linkedin.com/in/jane-doe/"

PROFILE_HTML = """
<html>
<head><title>(3) Jane Doe | LinkedIn</title></head>
<body><main>
  <section>
    <div class="ph5">
      <h1 class="text-heading-xlarge">Jane Doe</h1>
      <div class="text-body-medium">Head of Growth at Acme Robotics</div>
      <span class="text-body-small inline t-black--light break-words">Austin, Texas, United States</span>
    </div>
    <img class="pv-top-card-profile-picture__image--show" src="https://media.example.com/jane.jpg">
  </section>
  <section>
    <div><h2>About</h2></div>
    <div class="inline-show-more-text">Building go-to-market teams for hardware startups.</div>
  </section>
  <section>
    <div><h2>Skills</h2></div>
    <ul>
      <li><span aria-hidden="true">Go-to-market StrategyGo-to-market Strategy</span></li>
      <li><span aria-hidden="true">Leadership</span></li>
      <li><span aria-hidden="true">leadership</span></li>
    </ul>
  </section>
</main></body>
</html>
"""


def make_agent(session_store, profile_store, config, **browser_kwargs):
    browser_kwargs.setdefault("page_for", lambda n: PROFILE_HTML)
    factory = BrowserFactory(lambda: FakeBrowser(**browser_kwargs))
    return ScrapeAgent(session_store, profile_store, factory, config), factory


@pytest.mark.asyncio
async def test_missing_contact_email_uses_fallback(session_store, profile_store, config, logged_in):
    agent, factory = make_agent(session_store, profile_store, config)

    result = await agent.run_extraction(OPERATOR, PROFILE_URL)

    detail = result.detail
    assert detail.email == config.FALLBACK_EMAIL
    assert detail.email_source == "fallback"
    assert not detail.has_verified_email
    assert detail.name == "Jane Doe"
    assert detail.headline == "Head of Growth at Acme Robotics"
    assert detail.current_company == "Acme Robotics"
    assert detail.skills == ["Go-to-market Strategy", "Leadership"]
    assert detail.avatar_url == "https://media.example.com/jane.jpg"
    assert result.states == [
        ExtractionState.INIT,
        ExtractionState.SESSION_VERIFIED,
        ExtractionState.NAVIGATED,
        ExtractionState.FIELDS_EXTRACTED,
        ExtractionState.PERSISTED,
    ]
    assert factory.created[0].closed


@pytest.mark.asyncio
async def test_contact_panel_email_is_extracted(session_store, profile_store, config, logged_in):
    agent, factory = make_agent(session_store, profile_store, config,
                                contact_text="Contact info\nEmail\njane.doe@acme-robotics.com")

    result = await agent.run_extraction(OPERATOR, PROFILE_URL)

    assert result.detail.email == "jane.doe@acme-robotics.com"
    assert result.detail.email_source == "extracted"
    assert ExtractionState.CONTACT_PANEL_OPENED in result.states
    assert ExtractionState.CONTACT_PANEL_CLOSED in result.states
    assert factory.created[0].keys == ["Escape"]


@pytest.mark.asyncio
async def test_record_is_upserted_by_profile_url(session_store, profile_store, config, logged_in):
    agent, _ = make_agent(session_store, profile_store, config)
    await agent.extract_detail(OPERATOR, PROFILE_URL)

    agent, _ = make_agent(session_store, profile_store, config,
                          contact_text="Email\njane.doe@acme-robotics.com")
    await agent.extract_detail(OPERATOR, PROFILE_URL)

    stored = profile_store.list_profiles(OPERATOR)
    assert len(stored) == 1
    assert stored[0].email_source == "extracted"
    assert profile_store.get_profile(OPERATOR, PROFILE_URL).email == "jane.doe@acme-robotics.com"


@pytest.mark.asyncio
async def test_auth_wall_raises_source_blocked(session_store, profile_store, config, logged_in):
    agent, factory = make_agent(session_store, profile_store, config,
                                landing_url="https://www.linkedin.com/authwall?sessionRedirect=x")

    with pytest.raises(SourceBlocked):
        await agent.extract_detail(OPERATOR, PROFILE_URL)
    assert profile_store.list_profiles(OPERATOR) == []
    assert factory.created[0].closed


@pytest.mark.asyncio
async def test_navigation_failure_off_profile_raises_source_blocked(session_store, profile_store, config, logged_in):
    agent, _ = make_agent(session_store, profile_store, config, fail_pages={1: "fail"})

    with pytest.raises(SourceBlocked):
        await agent.extract_detail(OPERATOR, PROFILE_URL)


@pytest.mark.asyncio
async def test_partial_page_still_yields_record_with_name_hint(session_store, profile_store, config, logged_in):
    agent, _ = make_agent(session_store, profile_store, config,
                          page_for=lambda n: "<html><head><title>LinkedIn</title></head><body></body></html>")

    detail = await agent.extract_detail(OPERATOR, PROFILE_URL, name_hint="Jane Doe")

    assert detail.name == "Jane Doe"
    assert detail.id == "jane-doe"
    assert detail.skills == []
    assert detail.email_source == "fallback"


@pytest.mark.asyncio
async def test_missing_session_raises(session_store, profile_store, config):
    agent, factory = make_agent(session_store, profile_store, config)

    with pytest.raises(NotAuthenticated):
        await agent.extract_detail(OPERATOR, PROFILE_URL)
    assert factory.created == []


class FailingStore:
    def upsert_profile(self, operator_id, profile):
        raise ProfileStoreError("disk full")


@pytest.mark.asyncio
async def test_persist_failure_still_returns_record(session_store, config, logged_in):
    factory = BrowserFactory(lambda: FakeBrowser(page_for=lambda n: PROFILE_HTML))
    agent = ScrapeAgent(session_store, FailingStore(), factory, config)

    result = await agent.run_extraction(OPERATOR, PROFILE_URL)

    assert result.detail.name == "Jane Doe"
    assert result.state == ExtractionState.FAILED
    assert result.failure == "disk full"


@pytest.mark.asyncio
async def test_url_spellings_upsert_one_record(session_store, profile_store, config, logged_in):
    for url in ("https://www.linkedin.com/in/jane-doe/", "https://www.linkedin.com/in/jane-doe",
                "http://linkedin.com/in/jane-doe?trk=people-search"):
        agent, _ = make_agent(session_store, profile_store, config)
        detail = await agent.extract_detail(OPERATOR, url)
        assert detail.profile_url == "https://www.linkedin.com/in/jane-doe/"

    assert len(profile_store.list_profiles(OPERATOR)) == 1


@pytest.mark.asyncio
async def test_url_without_profile_handle_is_rejected(session_store, profile_store, config, logged_in):
    agent, factory = make_agent(session_store, profile_store, config)

    with pytest.raises(ValueError):
        await agent.extract_detail(OPERATOR, "https://www.linkedin.com/company/acme-robotics/")
    assert factory.created == []
    assert profile_store.list_profiles(OPERATOR) == []
