"""
Seed the SQL backend with the fixture catalog.

Usage:
  python -m storefront.data.seed                       # uses DATABASE_URL
  python -m storefront.data.seed --database-url sqlite:///storefront.db
  python -m storefront.data.seed --force               # wipe products first
"""
import argparse
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.engine import Engine

from storefront.data.database import Base, make_engine, make_session_factory
from storefront.data.fixtures import fixture_products
from storefront.data.models import ProductRow
from storefront.utils.logger import get_logger

logger = get_logger("data.seed")


def seed_products(engine: Engine, force: bool = False) -> int:
    """Create tables and insert the fixture products; returns rows inserted."""
    Base.metadata.create_all(bind=engine)
    sessions = make_session_factory(engine)
    with sessions() as session:
        existing = session.scalar(select(func.count()).select_from(ProductRow)) or 0
        if existing and not force:
            logger.info("Products already exist (%d rows), skipping seed", existing)
            return 0
        if force:
            session.execute(delete(ProductRow))
        rows = [ProductRow(**row) for row in fixture_products()]
        session.add_all(rows)
        session.commit()
    logger.info("Seeded %d products", len(rows))
    return len(rows)


def main(argv: Optional[list] = None) -> None:
    parser = argparse.ArgumentParser(description="Seed the storefront SQL database")
    parser.add_argument("--database-url", default=None,
                        help="SQLAlchemy URL (defaults to DATABASE_URL)")
    parser.add_argument("--force", action="store_true",
                        help="Delete existing products before seeding")
    args = parser.parse_args(argv)

    engine = make_engine(args.database_url)
    inserted = seed_products(engine, force=args.force)
    print(f"Inserted {inserted} products")


if __name__ == "__main__":
    main()
