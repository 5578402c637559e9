"""Unit tests for the counter store's atomic updates."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from unittest.mock import MagicMock
from sqlalchemy.exc import IntegrityError, OperationalError
from app.models.counter import CounterRecord
from app.models.history import HistoryRecord
from app.services.counter_store import CounterStore
from app.services.errors import StorageUnavailable

SERVICE = "Văn thư"


class TestCounterStore:
    def test_get_or_create_inserts_zeroed_record_once(self, db, clock):
        store = CounterStore(db, clock=clock)
        first = store.get_or_create(SERVICE)
        second = store.get_or_create(SERVICE)

        assert first.id == second.id
        assert (first.issued_count, first.called_count) == (0, 0)
        assert db.query(CounterRecord).count() == 1

    def test_get_or_create_rereads_after_losing_insert_race(self):
        winner = CounterRecord(service=SERVICE, issued_count=0, called_count=0)
        session = MagicMock()
        # First lookup misses, insert conflicts, second lookup sees the winner's row
        session.execute.return_value.scalar_one_or_none.side_effect = [None, winner]
        session.commit.side_effect = IntegrityError("INSERT", {}, Exception("unique"))

        assert CounterStore(session).get_or_create(SERVICE) is winner
        session.rollback.assert_called_once()

    def test_get_or_create_gives_up_after_retries(self):
        session = MagicMock()
        session.execute.return_value.scalar_one_or_none.return_value = None
        session.commit.side_effect = IntegrityError("INSERT", {}, Exception("unique"))

        with pytest.raises(StorageUnavailable):
            CounterStore(session).get_or_create(SERVICE)

    def test_increment_issued_respects_limit(self, db, clock):
        store = CounterStore(db, clock=clock)
        store.get_or_create(SERVICE)
        with store.transaction():
            assert store.increment_issued(SERVICE, limit=2) == 1
            assert store.increment_issued(SERVICE, limit=2) == 2
            assert store.increment_issued(SERVICE, limit=2) is None

    def test_advance_called_never_passes_issued(self, db, clock):
        store = CounterStore(db, clock=clock)
        store.get_or_create(SERVICE)
        with store.transaction():
            store.increment_issued(SERVICE, limit=999)
            assert store.advance_called(SERVICE) == (1, 1)
            assert store.advance_called(SERVICE) is None
        record = store.get(SERVICE)
        assert record.called_count <= record.issued_count

    def test_advance_called_on_missing_record(self, db, clock):
        store = CounterStore(db, clock=clock)
        with store.transaction():
            assert store.advance_called(SERVICE) is None

    def test_reset_all_zeroes_counts_but_keeps_history(self, db, clock):
        store = CounterStore(db, clock=clock)
        store.get_or_create(SERVICE)
        with store.transaction():
            store.increment_issued(SERVICE, limit=999)
            store.advance_called(SERVICE)
            db.add(HistoryRecord(service=SERVICE, display_number=2001, raw_sequence=1,
                                 is_recall=False, called_at=clock()))
        with store.transaction():
            assert store.reset_all() == 1

        record = store.get(SERVICE)
        assert (record.issued_count, record.called_count) == (0, 0)
        assert db.query(HistoryRecord).count() == 1

    def test_wipe_all_recreates_one_record_per_service(self, db, clock):
        store = CounterStore(db, clock=clock)
        store.get_or_create("stale-service")
        store.get_or_create(SERVICE)
        with store.transaction():
            deleted, created = store.wipe_all(["A", "B", "C"])

        assert (deleted, created) == (2, 3)
        assert sorted(r.service for r in store.all()) == ["A", "B", "C"]
        assert all(r.issued_count == 0 for r in store.all())

    def test_transaction_rolls_back_and_maps_db_errors(self, db, clock):
        store = CounterStore(db, clock=clock)
        store.get_or_create(SERVICE)
        with pytest.raises(StorageUnavailable):
            with store.transaction():
                store.increment_issued(SERVICE, limit=999)
                raise OperationalError("UPDATE", {}, Exception("disk I/O error"))

        assert store.get(SERVICE).issued_count == 0

    def test_transaction_rolls_back_on_domain_errors(self, db, clock):
        store = CounterStore(db, clock=clock)
        store.get_or_create(SERVICE)
        with pytest.raises(ValueError):
            with store.transaction():
                store.increment_issued(SERVICE, limit=999)
                raise ValueError("boom")

        assert store.get(SERVICE).issued_count == 0
