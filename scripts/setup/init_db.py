# scripts/setup/init_db.py
"""
Initialize database — creates all tables and, optionally, the first admin.
Run once before first launch, or after adding new models.
Usage: python scripts/setup/init_db.py [--admin-barcode 1001 --admin-pin 1234 --admin-name "Gate Admin"]
"""

import argparse
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from datetime import datetime
from app.database import SessionLocal, create_tables, engine
from app.config import settings
from app.models.person import Person
from app.services.identity_service import PIN_PATTERN
from app.services.scan_normalizer import normalize_token
from sqlalchemy import inspect, text


def seed_admin(barcode: str, pin: str, name: str):
    token = normalize_token(barcode)
    if token is None or not PIN_PATTERN.fullmatch(pin):
        print("❌ Admin barcode must be non-empty and PIN exactly 4 digits")
        sys.exit(1)

    db = SessionLocal()
    try:
        if db.query(Person).filter(Person.barcode == token).first():
            print(f"ℹ️  Person with barcode {token} already exists — not touched")
            return
        now = datetime.utcnow()
        db.add(Person(barcode=token, pin=pin, name=name, role="admin", department="Security",
                      status="active", created_at=now, updated_at=now))
        db.commit()
        print(f"✅ Admin '{name}' created (barcode {token})")
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description="Create tables and seed the first admin")
    parser.add_argument("--admin-barcode")
    parser.add_argument("--admin-pin", default="1234")
    parser.add_argument("--admin-name", default="Gate Admin")
    args = parser.parse_args()

    print("🗄️  Gate Custody DB Initialization")
    print("=" * 40)
    print(f"📡 Database: {settings.DATABASE_URL}")

    # Test connection
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")
    except Exception as e:
        print(f"❌ Cannot connect to database: {e}")
        print("\nMake sure PostgreSQL is running:")
        print("  docker-compose up -d db")
        print("  # or: sudo systemctl start postgresql")
        sys.exit(1)

    print("\n📋 Creating tables...")
    create_tables()
    tables = sorted(inspect(engine).get_table_names())
    print(f"\n📊 Tables in database ({len(tables)} total):")
    for t in tables:
        print(f"   ✓ {t}")

    if args.admin_barcode:
        print("\n👤 Seeding admin...")
        seed_admin(args.admin_barcode, args.admin_pin, args.admin_name)

    print("\n🎉 Database ready! You can now start the backend:")
    print("   uvicorn app.main:app --host 0.0.0.0 --port 8080 --reload")


if __name__ == "__main__":
    main()
