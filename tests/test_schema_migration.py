"""Startup migration: old counters tables and legacy service names."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sqlalchemy import inspect, text
from sqlalchemy.orm import sessionmaker
from app.database import build_engine
from app.models.counter import CounterRecord
from app.services.schema_migration import migrate_schema


def legacy_engine(tmp_path):
    """A counters table as written before called_count / last_updated existed."""
    engine = build_engine(f"sqlite:///{tmp_path / 'legacy.db'}")
    with engine.begin() as conn:
        conn.execute(text(
            "CREATE TABLE counters (id INTEGER PRIMARY KEY, service VARCHAR(100) UNIQUE NOT NULL, "
            "issued_count INTEGER NOT NULL DEFAULT 0)"
        ))
        conn.execute(text("INSERT INTO counters (service, issued_count) VALUES ('Văn thư', 12)"))
        conn.execute(text("INSERT INTO counters (service, issued_count) VALUES ('Ch?ng th?c H? t?ch', 4)"))
        conn.execute(text("INSERT INTO counters (service, issued_count) VALUES ('Chứng thực - Hộ tịch', 9)"))
        conn.execute(text("INSERT INTO counters (service, issued_count) VALUES ('Đất Đai', 2)"))
        conn.execute(text("INSERT INTO counters (service, issued_count) VALUES ('Phòng cũ', 1)"))
    return engine


class TestSchemaMigration:
    def test_backfills_columns_and_folds_names(self, tmp_path):
        engine = legacy_engine(tmp_path)
        summary = migrate_schema(engine)

        assert summary["columns_added"] == ["called_count", "last_updated"]
        assert (summary["merged"], summary["renamed"], summary["seeded"]) == (1, 1, 1)

        db = sessionmaker(bind=engine)()
        rows = {r.service: r for r in db.query(CounterRecord).all()}
        assert rows["Văn thư"].called_count == 0
        assert rows["Chứng thực - Hộ tịch"].issued_count == 9
        assert rows["Đất đai"].issued_count == 2
        assert rows["Lao động - Thương binh và Xã hội"].issued_count == 0
        assert "Phòng cũ" in rows                 # unknown names are kept, not guessed
        assert "Ch?ng th?c H? t?ch" not in rows
        db.close()

        tables = set(inspect(engine).get_table_names())
        assert {"call_history", "reset_state", "ratings"} <= tables
        engine.dispose()

    def test_second_run_is_a_no_op(self, tmp_path):
        engine = legacy_engine(tmp_path)
        migrate_schema(engine)
        summary = migrate_schema(engine)

        assert summary == {"columns_added": [], "merged": 0, "renamed": 0, "seeded": 0}
        engine.dispose()

    def test_fresh_database_gets_one_row_per_service(self, db_engine):
        summary = migrate_schema(db_engine)
        assert summary["seeded"] == 4
        db = sessionmaker(bind=db_engine)()
        assert db.query(CounterRecord).count() == 4
        db.close()
