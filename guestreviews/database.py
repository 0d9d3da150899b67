from typing import Iterator
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base
import os

DB_URL = os.getenv("GUESTREVIEWS_DB_URL", "sqlite:///./guestreviews.db")

engine = create_engine(DB_URL, connect_args={"check_same_thread": False} if DB_URL.startswith("sqlite") else {})
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db() -> Iterator[Session]:
    """Request-scoped store session; every route and service receives it as an argument."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
