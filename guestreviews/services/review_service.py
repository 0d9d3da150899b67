import datetime as dt
import logging
from typing import Dict, List, Optional, Tuple
from sqlalchemy.orm import Session, joinedload
from ..models import Listing, Review
from ..schemas import NormalizedReview, ReviewOut
from ..utils.dates import parse_instant, to_iso, to_naive_utc
from ..utils.text import safe_json_record
from ..collectors.hostaway_client import HostawayClient, HostawaySourceError, load_mock_payload
from .normalizer import PayloadValidationError, normalize_hostaway

logger = logging.getLogger(__name__)

SORT_FIELDS = {"submittedAt": Review.submitted_at, "rating": Review.rating}


class ReviewNotFoundError(LookupError):
    def __init__(self, ext_id: str):
        self.ext_id = ext_id
        super().__init__(f"Review {ext_id} not found")


def parse_sort(sort: Optional[str]) -> Tuple[str, str]:
    field, _, direction = (sort or "").partition(":")
    field = "rating" if field == "rating" else "submittedAt"
    direction = "asc" if direction == "asc" else "desc"
    return field, direction


def fetch_normalized(source: str, client: Optional[HostawayClient] = None) -> List[NormalizedReview]:
    if source == "api":
        payload = (client or HostawayClient()).fetch()
    else:
        payload = load_mock_payload()
    return normalize_hostaway(payload)


def upsert_listings(db: Session, reviews: List[NormalizedReview]) -> Dict[str, Listing]:
    grouped: Dict[str, NormalizedReview] = {}
    for r in reviews:
        grouped.setdefault(r.listing_slug, r)

    listings = {}
    for slug, first in grouped.items():
        listing = db.query(Listing).filter_by(slug=slug).first()
        if listing:
            listing.name = first.listing_name
            listing.channel = first.channel
        else:
            listing = Listing(slug=slug, name=first.listing_name, channel=first.channel)
            db.add(listing)
        # one commit per listing, ahead of the review batch
        db.commit()
        listings[slug] = listing
    return listings


def upsert_reviews(db: Session, reviews: List[NormalizedReview]) -> int:
    """Insert or update reviews keyed by external id.

    Listings are upserted first, each in its own commit. The review rows then
    go in as one transaction. `approved` is only set when a row is created.
    """
    listings = upsert_listings(db, reviews)
    inserted = 0
    try:
        for r in reviews:
            submitted = to_naive_utc(parse_instant(r.submitted_at))
            rv = db.query(Review).filter_by(ext_id=r.ext_id).first()
            if rv is None:
                rv = Review(ext_id=r.ext_id, provider=r.provider.value, approved=False)
                db.add(rv)
                inserted += 1
            rv.type = r.type
            rv.status = r.status
            rv.rating = r.rating
            rv.categories = r.categories
            rv.submitted_at = submitted
            rv.author = r.author
            rv.text = r.text
            rv.listing_id = listings[r.listing_slug].id
            db.flush()
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Upserted %d reviews (%d new) across %d listings", len(reviews), inserted, len(listings))
    return inserted


def ingest_reviews(db: Session, source: str = "mock", client: Optional[HostawayClient] = None) -> Dict:
    """Pull reviews from the requested source and persist them.

    An `api` request that cannot be fetched or validated falls back to the
    fixture, and the upstream error message comes back as `error`.
    """
    requested = "api" if source == "api" else "mock"
    used = requested
    error = None
    try:
        reviews = fetch_normalized(requested, client)
    except (HostawaySourceError, PayloadValidationError) as e:
        if requested != "api":
            raise
        logger.warning("Hostaway API unavailable, ingesting fixture instead: %s", e)
        used = "mock"
        error = str(e) or "Unable to reach Hostaway API."
        reviews = fetch_normalized("mock")

    upsert_reviews(db, reviews)
    logger.info("Ingested %d reviews from %s (requested %s)", len(reviews), used, requested)
    return {"requested_source": requested, "source": used, "error": error, "ingested": len(reviews)}


def to_review_out(row: Review) -> ReviewOut:
    return ReviewOut(
        ext_id=row.ext_id,
        provider=row.provider,
        channel=row.listing.channel,
        type=row.type or "",
        status=row.status or "",
        rating=row.rating,
        categories=safe_json_record(row.categories),
        submitted_at=to_iso(row.submitted_at),
        author=row.author,
        text=row.text,
        listing_name=row.listing.name,
        listing_slug=row.listing.slug,
        approved=bool(row.approved),
    )


def query_reviews(db: Session, listing_slug: Optional[str] = None, approved: Optional[bool] = None,
                  date_from: Optional[dt.datetime] = None, date_to: Optional[dt.datetime] = None,
                  sort: str = "submittedAt:desc") -> List[ReviewOut]:
    q = db.query(Review).join(Review.listing).options(joinedload(Review.listing))
    if listing_slug:
        q = q.filter(Listing.slug == listing_slug)
    if approved is not None:
        q = q.filter(Review.approved == approved)
    if date_from is not None:
        q = q.filter(Review.submitted_at >= to_naive_utc(date_from))
    if date_to is not None:
        q = q.filter(Review.submitted_at <= to_naive_utc(date_to))
    field, direction = parse_sort(sort)
    col = SORT_FIELDS[field]
    q = q.order_by(col.asc().nullslast() if direction == "asc" else col.desc().nullslast(), Review.id)
    return [to_review_out(r) for r in q.all()]


def count_reviews(db: Session) -> int:
    return db.query(Review).count()


def set_approval(db: Session, ext_id: str, approved: bool) -> Review:
    rv = db.query(Review).filter_by(ext_id=ext_id).first()
    if rv is None:
        raise ReviewNotFoundError(ext_id)
    rv.approved = approved
    db.commit()
    logger.info("Review %s marked %s", ext_id, "approved" if approved else "pending")
    return rv


def get_listing(db: Session, slug: str) -> Optional[Listing]:
    return db.query(Listing).filter_by(slug=slug).first()


def read_from_source(source: str, client: Optional[HostawayClient] = None) -> List[ReviewOut]:
    """Normalize straight from a source without touching the store."""
    return [ReviewOut(**r.model_dump(), approved=False) for r in fetch_normalized(source, client)]
