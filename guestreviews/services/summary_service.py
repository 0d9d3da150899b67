from collections import defaultdict
from typing import Dict, Iterable, List, Optional
from ..schemas import CategoryAverage, SummaryRow
from ..utils.dates import parse_instant


def build_summary(reviews: Iterable) -> List[SummaryRow]:
    """Group reviews by listing slug into per-listing summary rows.

    Each review needs listing_slug, listing_name, channel, rating, approved
    and submitted_at. Rows are ordered by listing name, case-insensitively.
    """
    groups: Dict[str, dict] = {}
    for r in reviews:
        g = groups.get(r.listing_slug)
        if g is None:
            g = groups[r.listing_slug] = {
                "listing_slug": r.listing_slug,
                "listing_name": r.listing_name,
                "channel": r.channel,
                "review_count": 0,
                "approved_count": 0,
                "ratings": [],
                "latest": None,
            }
        g["review_count"] += 1
        if r.approved:
            g["approved_count"] += 1
        if r.rating is not None:
            g["ratings"].append(r.rating)
        if g["latest"] is None or parse_instant(r.submitted_at) > parse_instant(g["latest"]):
            g["latest"] = r.submitted_at

    rows = []
    for g in groups.values():
        ratings = g["ratings"]
        rows.append(SummaryRow(
            listing_slug=g["listing_slug"],
            listing_name=g["listing_name"],
            channel=g["channel"],
            review_count=g["review_count"],
            approved_count=g["approved_count"],
            pending_count=g["review_count"] - g["approved_count"],
            average_rating=round(sum(ratings) / len(ratings), 2) if ratings else None,
            latest_review_at=g["latest"],
        ))
    rows.sort(key=lambda row: row.listing_name.casefold())
    return rows


def average_rating(reviews: Iterable) -> Optional[float]:
    ratings = [r.rating for r in reviews if r.rating is not None]
    if not ratings:
        return None
    return round(sum(ratings) / len(ratings), 2)


def category_averages(reviews: Iterable) -> List[CategoryAverage]:
    totals = defaultdict(lambda: [0.0, 0])
    for r in reviews:
        if not r.categories:
            continue
        for key, value in r.categories.items():
            if value is None:
                continue
            totals[key][0] += value
            totals[key][1] += 1
    out = [
        CategoryAverage(key=k, label=k.replace("_", " "), average=round(total / n, 1))
        for k, (total, n) in totals.items()
    ]
    out.sort(key=lambda c: c.average, reverse=True)
    return out
