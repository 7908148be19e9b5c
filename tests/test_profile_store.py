from __future__ import annotations

import json
from datetime import timedelta

import pytest

from models.profile import ProfileDetail, SearchCriteria, ViewedProfileRecord, utc_now

from conftest import OPERATOR


def record(profile_id, search_key, viewed_at, operator_id=OPERATOR):
    return ViewedProfileRecord(
        operator_id=operator_id,
        profile_id=profile_id,
        profile_url=f"https://www.linkedin.com/in/{profile_id}",
        name=f"Person {profile_id}",
        search_criteria=SearchCriteria(job_title=search_key),
        search_key=search_key,
        viewed_at=viewed_at,
    )


def detail(slug, email_source="fallback"):
    return ProfileDetail(
        id=slug,
        name=f"Person {slug}",
        profile_url=f"https://www.linkedin.com/in/{slug}",
        email=f"{slug}@example.org" if email_source == "extracted" else "no-reply@example.com",
        email_source=email_source,
    )


@pytest.fixture
def history(profile_store):
    now = utc_now()
    times = {"t1": now - timedelta(hours=3), "t2": now - timedelta(hours=2), "t3": now - timedelta(hours=1)}
    profile_store.append_viewed_batch(OPERATOR, [
        record("alice", "CTO", times["t1"]),
        record("bob", "CEO", times["t2"]),
        record("carol", "CTO", times["t3"]),
    ])
    profile_store.append_viewed_batch("op-2", [record("dan", "CTO", times["t3"], operator_id="op-2")])
    return times


def test_history_is_newest_first_and_scoped(profile_store, history):
    assert [r.profile_id for r in profile_store.get_history(OPERATOR)] == ["carol", "bob", "alice"]
    assert [r.profile_id for r in profile_store.get_history("op-2")] == ["dan"]


def test_history_time_bounds(profile_store, history):
    window = profile_store.get_history(OPERATOR, start=history["t2"], end=history["t2"])
    assert [r.profile_id for r in window] == ["bob"]

    since = profile_store.get_history(OPERATOR, start=history["t2"])
    assert [r.profile_id for r in since] == ["carol", "bob"]


def test_history_grouped_by_search_key(profile_store, history):
    groups = profile_store.get_history_grouped(OPERATOR)

    assert [(g.search_key, g.count) for g in groups] == [("CTO", 2), ("CEO", 1)]
    assert [p.profile_id for p in groups[0].profiles] == ["carol", "alice"]
    assert groups[0].viewed_at == history["t3"]
    assert groups[0].search_criteria == SearchCriteria(job_title="CTO")


def test_history_stats(profile_store, history):
    stats = profile_store.get_history_stats(OPERATOR)

    assert stats.total == 3
    assert stats.unique_searches == 2
    assert stats.last_viewed == history["t3"]


def test_history_stats_when_empty(profile_store):
    stats = profile_store.get_history_stats(OPERATOR)
    assert (stats.total, stats.unique_searches, stats.last_viewed) == (0, 0, None)


def test_retention_purge(profile_store):
    profile_store.append_viewed_batch(OPERATOR, [
        record("old", "CTO", utc_now() - timedelta(days=200)),
        record("new", "CTO", utc_now()),
    ])

    assert profile_store.delete_history_older_than(OPERATOR, 180) == 1
    assert profile_store.list_known_ids(OPERATOR) == ["new"]


def test_upsert_and_filter_verified(profile_store):
    profile_store.upsert_profile(OPERATOR, detail("erin"))
    profile_store.upsert_profile(OPERATOR, detail("finn", "extracted"))
    profile_store.upsert_profile(OPERATOR, detail("erin", "extracted"))

    assert {p.id for p in profile_store.list_profiles(OPERATOR)} == {"erin", "finn"}
    assert {p.id for p in profile_store.list_profiles(OPERATOR, verified_email_only=True)} == {"erin", "finn"}
    assert profile_store.list_profiles("op-2") == []
    assert profile_store.get_profile(OPERATOR, "https://www.linkedin.com/in/missing") is None


def test_verified_filter_excludes_fallback(profile_store):
    profile_store.upsert_profile(OPERATOR, detail("gus"))
    assert profile_store.list_profiles(OPERATOR, verified_email_only=True) == []


def test_dump_history_json(profile_store, history):
    rows = json.loads(profile_store.dump_history_json(OPERATOR))

    assert [r["profile_id"] for r in rows] == ["carol", "bob", "alice"]
    assert rows[0]["search_criteria"]["job_title"] == "CTO"


def test_db_size_is_reported(profile_store):
    assert profile_store.get_db_size().endswith("MB")
