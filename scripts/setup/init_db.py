# scripts/setup/init_db.py
"""
Initialize database — creates all tables, optionally loads the member list.
Run once before first launch, or after adding new models.
Usage:
  python scripts/setup/init_db.py
  python scripts/setup/init_db.py --members members.csv

CSV header: email,name,member_type,area,jhf_no,expiry,equipment,color
(expiry as YYYY/MM/DD or YYYY-MM-DD; existing emails are updated in place)
"""

import argparse
import csv
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from datetime import datetime
from sqlalchemy import inspect, text
from app.database import create_tables, engine, SessionLocal
from app.config import settings
from app.exceptions import InvalidInput
from app.models.member import Member
from app.utils.dates import normalize_day_marker

MEMBER_FIELDS = ("name", "member_type", "area", "jhf_no", "equipment", "color")


def parse_expiry(value):
    if not value or not value.strip():
        return None
    return datetime.strptime(normalize_day_marker(value), "%Y/%m/%d").date()


def load_members(path):
    created = updated = skipped = 0
    db = SessionLocal()
    try:
        with open(path, newline="", encoding="utf-8-sig") as f:
            for line_no, row in enumerate(csv.DictReader(f), start=2):
                email = (row.get("email") or "").strip()
                if "@" not in email or not (row.get("name") or "").strip():
                    print(f"   ⚠️  line {line_no}: missing email or name — skipped")
                    skipped += 1
                    continue
                try:
                    expiry = parse_expiry(row.get("expiry"))
                except InvalidInput as e:
                    print(f"   ⚠️  line {line_no}: {e} — skipped")
                    skipped += 1
                    continue

                member = db.query(Member).filter(Member.email == email).first()
                if member:
                    updated += 1
                else:
                    member = Member(email=email)
                    db.add(member)
                    created += 1
                for field in MEMBER_FIELDS:
                    setattr(member, field, (row.get(field) or "").strip() or None)
                member.expiry = expiry
        db.commit()
    finally:
        db.close()
    return created, updated, skipped


def main():
    parser = argparse.ArgumentParser(description="Create tables and load members")
    parser.add_argument("--members", help="CSV export of the member list")
    args = parser.parse_args()

    print("🗄️  Yamalog DB Initialization")
    print("=" * 40)
    print(f"📡 Database: {settings.DATABASE_URL}")

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")
    except Exception as e:
        print(f"❌ Cannot connect to database: {e}")
        sys.exit(1)

    print("\n📋 Creating tables...")
    create_tables()
    tables = sorted(inspect(engine).get_table_names())
    print(f"✅ Tables in database ({len(tables)} total):")
    for t in tables:
        print(f"   ✓ {t}")

    if args.members:
        print(f"\n👥 Loading members from {args.members}...")
        created, updated, skipped = load_members(args.members)
        print(f"✅ {created} created, {updated} updated, {skipped} skipped")

    print("\n🎉 Database ready! You can now start the backend:")
    print("   uvicorn app.main:app --host 0.0.0.0 --port 8080 --reload")


if __name__ == "__main__":
    main()
