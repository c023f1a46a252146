import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from esperto.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

# SQLite needs different config than PostgreSQL
if settings.database_url.startswith("sqlite"):
    engine = create_engine(
        settings.database_url,
        connect_args={"check_same_thread": False}  # Needed for SQLite
    )
else:
    engine = create_engine(
        settings.database_url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

DEFAULT_STORES = ["Mercado Bom Preço", "Mercado Economia"]


def get_db():
    """Dependency for getting database sessions."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def seed_default_stores(db) -> int:
    """Create the default stores when the table is empty."""
    from esperto.models import Store

    if db.query(Store).count() > 0:
        return 0

    for name in DEFAULT_STORES:
        db.add(Store(name=name))
    db.commit()
    logger.info(f"Seeded {len(DEFAULT_STORES)} stores")
    return len(DEFAULT_STORES)


def init_db():
    """Initialize database tables and seed default data."""
    import esperto.models  # noqa: F401  (registers all tables on Base.metadata)

    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        seed_default_stores(db)
    finally:
        db.close()
