"""
Initialize database — creates all tables and runs the counters migration.
Run once before first launch, or after upgrading from an older release.
Usage: python scripts/setup/init_db.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from app.database import engine
from app.config import settings
from app.services.schema_migration import migrate_schema
from sqlalchemy import inspect, text


def main():
    print("🗄️  Queue DB Initialization")
    print("=" * 40)
    print(f"📡 Database: {settings.DATABASE_URL}")

    # Test connection
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")
    except Exception as e:
        print(f"❌ Cannot connect to database: {e}")
        print("\nCheck DATABASE_URL in .env")
        sys.exit(1)

    print("\n📋 Creating tables + migrating counters...")
    summary = migrate_schema(engine)
    print(f"✅ Done: columns added={summary['columns_added'] or 'none'}, "
          f"merged={summary['merged']}, renamed={summary['renamed']}, seeded={summary['seeded']}")

    tables = sorted(inspect(engine).get_table_names())
    print(f"\n📊 Tables in database ({len(tables)} total):")
    for t in tables:
        print(f"   ✓ {t}")

    print("\n🎉 Database ready! You can now start the backend:")
    print(f"   uvicorn app.main:app --host {settings.BACKEND_IP} --port {settings.BACKEND_PORT}")


if __name__ == "__main__":
    main()
