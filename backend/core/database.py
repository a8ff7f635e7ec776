"""
Metadata database: SQLAlchemy engine, session factory and declarative base.
The same engine is introspected by the table catalog.
"""
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()

engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None) -> None:
    """Create the generator's metadata tables if they do not exist yet."""
    import models.gen_table  # noqa: F401  (registers the ORM tables on Base)

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Metadata tables ready (%s, %s)", settings.gen_table_name, settings.gen_column_table_name)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
