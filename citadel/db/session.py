from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from citadel.core.config import get_settings

settings = get_settings()

connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine = create_engine(settings.database_url, connect_args=connect_args, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """Create all tables that do not exist yet."""
    # Import models so they are registered on the metadata
    from citadel.db import models  # noqa: F401
    from citadel.db.base import Base

    Base.metadata.create_all(bind=engine)
