"""
Tests for the append-only scoring record store (temporary SQLite via scoring_db).
"""

import pytest


def test_version_increments_per_wallet_chain_and_score_type(scoring_db):
    first = scoring_db.save_scoring_record("vitalik.eth", "0xABC", 1, "finance", 0.5, "{}")
    second = scoring_db.save_scoring_record("0xabc", "0xabc", 1, "finance", 0.6, "{}")
    other_chain = scoring_db.save_scoring_record("0xabc", "0xabc", 137, "finance", 0.1, "{}")
    token = scoring_db.save_scoring_record("0xabc", "0xabc", 1, "token", 0.2, "{}")

    assert first["version"] == 1
    assert second["version"] == 2
    assert other_chain["version"] == 1
    assert token["version"] == 1
    assert first["resolved_address"] == "0xabc"
    assert first["request_address"] == "vitalik.eth"


def test_records_are_never_overwritten(scoring_db):
    scoring_db.save_scoring_record("0xabc", "0xabc", 1, "finance", 0.5, '{"wallet_age":1}')
    scoring_db.save_scoring_record("0xabc", "0xabc", 1, "finance", 0.7, '{"wallet_age":2}')

    records = scoring_db.list_scoring_records("0xABC", chain_id=1)
    assert len(records) == 2
    # newest first
    assert [r["version"] for r in records] == [2, 1]
    assert records[1]["score"] == 0.5
    assert records[1]["stat_data"] == '{"wallet_age":1}'


def test_list_filters_by_chain(scoring_db):
    scoring_db.save_scoring_record("0xabc", "0xabc", 1, "finance", 0.5, "{}")
    scoring_db.save_scoring_record("0xabc", "0xabc", 10, "finance", 0.5, "{}")

    assert len(scoring_db.list_scoring_records("0xabc")) == 2
    assert [r["chain_id"] for r in scoring_db.list_scoring_records("0xabc", chain_id=10)] == [10]
    assert scoring_db.list_scoring_records("0xdef") == []


def test_concurrent_saves_get_distinct_versions(scoring_db):
    from concurrent.futures import ThreadPoolExecutor

    def save(i):
        return scoring_db.save_scoring_record("0xabc", "0xabc", 1, "finance", i / 100, "{}")["version"]

    with ThreadPoolExecutor(max_workers=8) as pool:
        versions = sorted(pool.map(save, range(16)))

    assert versions == list(range(1, 17))


def test_duplicate_version_violates_constraint(scoring_db):
    from sqlalchemy.exc import IntegrityError

    def row():
        return scoring_db.ScoringRecord(
            request_address="0xabc",
            resolved_address="0xabc",
            chain_id=1,
            score_type="finance",
            score=0.5,
            stat_data="{}",
            version=1,
            created_at=0,
        )

    with pytest.raises(IntegrityError):
        with scoring_db._session_scope() as session:
            session.add(row())
            session.add(row())
    assert scoring_db.list_scoring_records("0xabc") == []


def test_version_conflict_is_retried(scoring_db, monkeypatch):
    from sqlalchemy.exc import IntegrityError

    insert = scoring_db._insert_next_version
    attempts = []

    def conflicting_once(*args):
        attempts.append(args)
        if len(attempts) == 1:
            raise IntegrityError("INSERT INTO scoring_records", {}, Exception("UNIQUE constraint failed"))
        return insert(*args)

    monkeypatch.setattr(scoring_db, "_insert_next_version", conflicting_once)
    saved = scoring_db.save_scoring_record("0xabc", "0xabc", 1, "finance", 0.5, "{}")

    assert len(attempts) == 2
    assert saved["version"] == 1
