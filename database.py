from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
import config
from sqlalchemy.exc import OperationalError
import logging
import time

logger = logging.getLogger(__name__)

DATABASE_URL = config.SQLALCHEMY_DATABASE_URL

if DATABASE_URL.startswith("sqlite"):
    # in-memory sqlite must share one connection across request threads
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool if DATABASE_URL in ("sqlite://", "sqlite:///:memory:") else None,
    )
else:
    engine = create_engine(
        DATABASE_URL,
        pool_pre_ping=True,
        pool_recycle=3600,
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_db(max_retries: int = 3):
    retry_count = 0
    while True:
        try:
            Base.metadata.create_all(bind=engine)
            return
        except OperationalError:
            retry_count += 1
            if retry_count == max_retries:
                raise
            logger.warning(f"Database not reachable, retrying ({retry_count}/{max_retries})")
            time.sleep(2)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
