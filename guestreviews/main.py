from fastapi import FastAPI, Depends, HTTPException, Query, Body
from fastapi.responses import HTMLResponse, JSONResponse
from sqlalchemy.orm import Session
from typing import Optional
from .database import Base, engine, get_db
from .schemas import (ApproveOut, ApproveRequest, IngestOut, IngestRequest, PropertyOut,
                      ReviewFilters, ReviewsOut)
from .collectors.hostaway_client import HostawaySourceError
from .services.normalizer import PayloadValidationError
from .services.review_service import (ReviewNotFoundError, count_reviews, get_listing, ingest_reviews,
                                      parse_sort, query_reviews, read_from_source, set_approval)
from .services.summary_service import average_rating, build_summary, category_averages
from .utils.dates import parse_instant
import base64, html, io, logging, os, matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"),
                    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

Base.metadata.create_all(bind=engine)

app = FastAPI(title="Guest Reviews API", version="1.0.0")


def _parse_bool(value: Optional[str]) -> Optional[bool]:
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def _parse_date_param(name: str, value: Optional[str]):
    if not value:
        return None
    try:
        return parse_instant(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid '{name}' date: {value}")


def _dump(model) -> dict:
    return model.model_dump(mode="json", by_alias=True)


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/api/reviews/hostaway", response_model=ReviewsOut)
def list_reviews(source: Optional[str] = None, raw: Optional[str] = None,
                 listing_slug: Optional[str] = Query(default=None, alias="listingSlug"),
                 approved: Optional[str] = None,
                 date_from: Optional[str] = Query(default=None, alias="from"),
                 date_to: Optional[str] = Query(default=None, alias="to"),
                 sort: str = "submittedAt:desc",
                 db: Session = Depends(get_db)):
    try:
        if raw == "1" or source == "mock":
            reviews = read_from_source("mock")
            return ReviewsOut(source="mock", count=len(reviews), reviews=reviews, summary=build_summary(reviews))

        if source == "api":
            try:
                reviews = read_from_source("api")
                return ReviewsOut(source="api", count=len(reviews), reviews=reviews, summary=build_summary(reviews))
            except (HostawaySourceError, PayloadValidationError) as e:
                logger.warning("Hostaway API read failed, serving fixture: %s", e)
                reviews = read_from_source("mock")
                body = ReviewsOut(source="mock", fallback="api", error=str(e) or "Unable to fetch Hostaway API.",
                                  count=len(reviews), reviews=reviews, summary=build_summary(reviews))
                return JSONResponse(status_code=502, content=_dump(body))
    except PayloadValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    start = _parse_date_param("from", date_from)
    end = _parse_date_param("to", date_to)
    approved_filter = _parse_bool(approved)
    field, direction = parse_sort(sort)
    reviews = query_reviews(db, listing_slug=listing_slug, approved=approved_filter,
                            date_from=start, date_to=end, sort=f"{field}:{direction}")
    filters = ReviewFilters(listing_slug=listing_slug, approved=approved_filter, from_=date_from, to=date_to,
                            sort=f"{field}:{direction}")
    return ReviewsOut(source="database", count=len(reviews), filters=filters, reviews=reviews,
                      summary=build_summary(reviews))


@app.post("/api/reviews/hostaway", response_model=IngestOut)
def ingest(req: Optional[IngestRequest] = Body(default=None), db: Session = Depends(get_db)):
    source = "api" if req is not None and req.source == "api" else "mock"
    try:
        result = ingest_reviews(db, source)
    except PayloadValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    rows = query_reviews(db)
    return IngestOut(count=count_reviews(db), summary=build_summary(rows), **result)


@app.post("/api/reviews/approve", response_model=ApproveOut)
def approve(req: ApproveRequest, db: Session = Depends(get_db)):
    try:
        rv = set_approval(db, req.ext_id, req.approved)
    except ReviewNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ApproveOut(ext_id=rv.ext_id, approved=rv.approved)


def _property_view(db: Session, slug: str) -> PropertyOut:
    listing = get_listing(db, slug)
    if listing is None:
        raise HTTPException(status_code=404, detail=f"Listing {slug} not found")
    reviews = query_reviews(db, listing_slug=slug, approved=True, sort="submittedAt:desc")
    return PropertyOut(slug=listing.slug, name=listing.name, channel=listing.channel,
                       review_count=len(reviews), average_rating=average_rating(reviews),
                       category_averages=category_averages(reviews), reviews=reviews)


@app.get("/api/properties/{slug}", response_model=PropertyOut)
def property_page(slug: str, db: Session = Depends(get_db)):
    return _property_view(db, slug)


@app.get("/properties/{slug}/report", response_class=HTMLResponse)
def property_report(slug: str, db: Session = Depends(get_db)):
    view = _property_view(db, slug)

    img = ""
    if view.category_averages:
        fig = plt.figure()
        plt.barh([c.label for c in view.category_averages], [c.average for c in view.category_averages])
        plt.title("Category Scores")
        plt.xlabel("Average")
        plt.xlim(0, 10)
        plt.gca().invert_yaxis()
        buf = io.BytesIO()
        fig.savefig(buf, format='png', bbox_inches='tight'); plt.close(fig)
        img = base64.b64encode(buf.getvalue()).decode()

    name = html.escape(view.name)
    channel = html.escape(view.channel)
    rating = f"{view.average_rating:.2f}" if view.average_rating is not None else "No ratings yet"
    items = ''.join(
        f"<li><b>{html.escape(r.author or 'Guest')}</b> ({r.submitted_at[:10]}, {r.rating if r.rating is not None else '-'})"
        f"<p>{html.escape(r.text or '')}</p></li>"
        for r in view.reviews
    )
    chart = f'<img src="data:image/png;base64,{img}" />' if img else ''
    page = f"""
    <html><head><meta charset='utf-8'><title>{name}</title>
    <style>body{{font-family:Arial,Helvetica,sans-serif; margin:24px}} li{{margin-bottom:16px}}</style>
    </head><body>
    <h1>{name}</h1>
    <p>{channel} &middot; Average rating: <b>{rating}</b> &middot; {view.review_count} approved reviews</p>
    {chart}
    <h2>Guest Reviews</h2>
    <ul>{items or '<li>Reviews will appear here once they have been approved.</li>'}</ul>
    </body></html>
    """
    return HTMLResponse(content=page)
