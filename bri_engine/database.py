"""
Database engine + session factory.

Always initializes — defaults to SQLite for local dev, Postgres in production.
get_session() always returns a real session.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from bri_engine.config import DATABASE_URL, BATCH_MAX_WORKERS


class Base(DeclarativeBase):
    pass


# Hosted Postgres injects postgres:// but SQLAlchemy 2.x requires postgresql://
url = DATABASE_URL.replace('postgres://', 'postgresql://', 1)

# SQLite needs different engine kwargs than Postgres
if url.startswith('sqlite'):
    engine = create_engine(url, connect_args={'check_same_thread': False})
else:
    # One connection per batch worker plus headroom for request handlers
    engine = create_engine(
        url, pool_pre_ping=True,
        pool_size=max(5, BATCH_MAX_WORKERS + 1), max_overflow=10,
    )

# Snapshots are handed back to callers after the session closes
SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)


def get_session():
    """Return a new DB session."""
    return SessionLocal()
