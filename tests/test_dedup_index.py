from __future__ import annotations

import random

import pytest

from database.dedup_index import DedupIndex, build_search_key
from models.profile import ProfileSummary, SearchCriteria
from scraper.errors import ProfileStoreError

from conftest import OPERATOR


def summary(profile_id: str) -> ProfileSummary:
    return ProfileSummary(id=profile_id, name=f"Person {profile_id}",
                          profile_url=f"https://www.linkedin.com/in/{profile_id}")


def test_is_known_matches_membership():
    rng = random.Random(7)
    pool = [f"user-{rng.randint(0, 500)}" for _ in range(200)]
    known = sorted(set(pool[:120]))

    for candidate in pool + ["", "zzz", "aaa", "user-"]:
        assert DedupIndex.is_known(candidate, known) == (candidate in known)


def test_is_known_on_empty_and_single_lists():
    assert not DedupIndex.is_known("a", [])
    assert DedupIndex.is_known("a", ["a"])
    assert not DedupIndex.is_known("b", ["a"])


@pytest.mark.parametrize("criteria, expected", [
    (SearchCriteria(job_title="CTO", industry="Fintech", location_keyword="London", company="Monzo"),
     "CTO • Fintech • London • Monzo"),
    (SearchCriteria(job_title="CTO", location_keyword="London"), "CTO • London"),
    (SearchCriteria(job_title="  ", company=""), "Unknown Search"),
    (SearchCriteria(), "Unknown Search"),
])
def test_build_search_key(criteria, expected):
    assert build_search_key(criteria) == expected


def test_record_batch_is_idempotent(profile_store):
    index = DedupIndex(profile_store)
    criteria = SearchCriteria(job_title="CTO")
    batch = [summary("carol"), summary("alice"), summary("bob")]

    assert index.record_batch(OPERATOR, criteria, batch) == 3
    assert index.record_batch(OPERATOR, criteria, batch) == 0
    assert index.known_ids(OPERATOR) == ["alice", "bob", "carol"]
    assert profile_store.count_viewed(OPERATOR) == 3


def test_record_batch_keeps_first_sighting(profile_store):
    index = DedupIndex(profile_store)
    index.record_batch(OPERATOR, SearchCriteria(job_title="CTO"), [summary("alice")])
    index.record_batch(OPERATOR, SearchCriteria(job_title="CEO"), [summary("alice"), summary("dan")])

    history = {r.profile_id: r.search_key for r in profile_store.get_history(OPERATOR)}
    assert history == {"alice": "CTO", "dan": "CEO"}


def test_record_batch_empty_is_noop(profile_store):
    assert DedupIndex(profile_store).record_batch(OPERATOR, SearchCriteria(), []) == 0


def test_record_batch_rolls_back_on_store_error(profile_store, monkeypatch):
    import sqlite3

    index = DedupIndex(profile_store)
    index.record_batch(OPERATOR, SearchCriteria(job_title="CTO"), [summary("alice")])

    real_connect = profile_store._get_connection

    class BrokenConnection:
        def __init__(self):
            self._conn = real_connect()
            self.total_changes = self._conn.total_changes

        def executemany(self, *args):
            raise sqlite3.OperationalError("database is locked")

        def rollback(self):
            self._conn.rollback()

        def close(self):
            self._conn.close()

    monkeypatch.setattr(profile_store, "_get_connection", BrokenConnection)

    with pytest.raises(ProfileStoreError):
        index.record_batch(OPERATOR, SearchCriteria(job_title="CTO"), [summary("bob")])

    monkeypatch.undo()
    assert index.known_ids(OPERATOR) == ["alice"]
