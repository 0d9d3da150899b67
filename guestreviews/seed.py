"""Load the bundled Hostaway fixture into the configured database.

    python -m guestreviews.seed
"""
import logging
from .database import Base, SessionLocal, engine
from .services.review_service import count_reviews, ingest_reviews

logger = logging.getLogger(__name__)


def main():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        result = ingest_reviews(db, "mock")
        logger.info("Seed complete: %d fixture reviews, %d in store", result["ingested"], count_reviews(db))
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    main()
