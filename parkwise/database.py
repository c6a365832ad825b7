import logging
import os
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from parkwise.errors import StoreError

logger = logging.getLogger(__name__)

# DATABASE_URL comes from the environment, local SQLite file otherwise
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./parkwise.db")
SQLITE_BUSY_TIMEOUT = float(os.getenv("PARKWISE_SQLITE_TIMEOUT", "30"))


def make_engine(url: str):
    # SQLite needs check_same_thread and a busy timeout so that writers
    # queue on the database lock instead of failing straight away
    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT},
        )
    return create_engine(url)


engine = make_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


@contextmanager
def atomic(db: Session):
    """Run one unit of work: commit on success, roll back on any error.

    Driver-level failures (lock timeouts, lost connections, aborted
    transactions) surface as StoreError; domain errors pass through as is.
    """
    try:
        yield db
        db.commit()
    except DBAPIError as exc:
        db.rollback()
        logger.error("Store failure, transaction rolled back", exc_info=True)
        raise StoreError("The reservation store is temporarily unavailable") from exc
    except Exception:
        db.rollback()
        raise
