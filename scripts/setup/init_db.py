"""
Initialize database: creates the documents table and seeds the settings singleton.
Run once before first launch.
Usage: python scripts/setup/init_db.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from gatehouse.database import SessionLocal, create_tables, engine
from gatehouse.config import settings
from gatehouse.services import collection_names as names
from gatehouse.services.access_rules import SERVICE_ACCOUNT
from gatehouse.services.directory_service import default_settings
from gatehouse.services.document_store import DocumentStore
from sqlalchemy import inspect, text


def main():
    print("🗄️  Gatehouse DB Initialization")
    print("=" * 40)
    print(f"📡 Database: {settings.DATABASE_URL}")

    # Test connection
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")
    except Exception as e:
        print(f"❌ Cannot connect to database: {e}")
        sys.exit(1)

    print("\n📋 Creating tables...")
    create_tables()
    print(f"✅ Tables: {', '.join(inspect(engine).get_table_names())}")

    # Seed settings/app so the admin screen has something to edit
    store = DocumentStore(SessionLocal)
    ref = store.document(names.SETTINGS, names.SETTINGS_DOC_ID)
    if store.get(ref, auth=SERVICE_ACCOUNT).exists:
        print(f"✓ {ref.path} already present")
    else:
        store.set(ref, default_settings(), auth=SERVICE_ACCOUNT)
        print(f"✅ Seeded {ref.path}")

    print("\n🎉 Database ready! You can now start the backend:")
    print(f"   uvicorn gatehouse.main:app --host {settings.BACKEND_IP} --port {settings.BACKEND_PORT} --reload")


if __name__ == "__main__":
    main()
