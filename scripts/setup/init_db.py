# scripts/setup/init_db.py
"""
Initialize database: creates all tables and, with --seed, the default
car/wash types and board prices.
Run once before first launch, or after adding new models.
Usage: python scripts/setup/init_db.py [--seed]
"""

import argparse
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError

from glossapp.database import SessionLocal, create_tables, engine
from glossapp.config import settings
from glossapp.seed import seed_defaults


def main():
    parser = argparse.ArgumentParser(description="Create GlossApp tables")
    parser.add_argument("--seed", action="store_true", help="Insert default car/wash types and board prices")
    args = parser.parse_args()

    print("GlossApp DB Initialization")
    print("=" * 40)
    print(f"Database: {settings.DATABASE_URL}")

    # Test connection
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("Database connection OK")
    except SQLAlchemyError as e:
        print(f"Cannot connect to database: {e}")
        print("\nMake sure PostgreSQL is running:")
        print("  sudo systemctl start postgresql")
        sys.exit(1)

    print("\nCreating tables...")
    create_tables()

    tables = sorted(inspect(engine).get_table_names())
    print(f"\nTables in database ({len(tables)} total):")
    for t in tables:
        print(f"   - {t}")

    if args.seed:
        db = SessionLocal()
        try:
            counts = seed_defaults(db)
        finally:
            db.close()
        print(f"\nSeeded: {counts}")

    print("\nDatabase ready! You can now start the backend:")
    print(f"   uvicorn glossapp.main:app --host {settings.BACKEND_IP} --port {settings.BACKEND_PORT} --reload")


if __name__ == "__main__":
    main()
