import logging
from typing import Any, List, Optional
from pydantic import ValidationError
from ..schemas import NormalizedReview, Provider, RawReview
from ..utils.dates import parse_instant, to_iso
from ..utils.text import slugify

logger = logging.getLogger(__name__)

HOSTAWAY_CHANNEL = "Hostaway"


class PayloadValidationError(ValueError):
    """A record in the batch failed validation; `index` is its position in `result`."""

    def __init__(self, index: Optional[int], detail: str):
        self.index = index
        self.detail = detail
        where = f"record {index}" if index is not None else "payload"
        super().__init__(f"Invalid Hostaway review at {where}: {detail}")


class TimestampParseError(PayloadValidationError):
    def __init__(self, index: int, value: str):
        self.value = value
        super().__init__(index, f"unparseable submittedAt {value!r}")


def extract_records(payload: Any) -> List[Any]:
    if not isinstance(payload, dict):
        return []
    result = payload.get('result')
    if result is None:
        return []
    if not isinstance(result, list):
        logger.warning("Hostaway payload 'result' is %s, treating as empty", type(result).__name__)
        return []
    return result


def validate_payload(payload: Any) -> List[RawReview]:
    out = []
    for i, record in enumerate(extract_records(payload)):
        try:
            out.append(RawReview.model_validate(record))
        except ValidationError as e:
            errors = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or '<record>'}: {err['msg']}" for err in e.errors()
            )
            logger.warning("Rejecting Hostaway batch, record %d invalid: %s", i, errors)
            raise PayloadValidationError(i, errors) from e
    return out


def normalize_review(raw: RawReview, index: int = 0) -> NormalizedReview:
    categories = None
    if raw.review_category:
        categories = {c.category: c.rating for c in raw.review_category}
    try:
        submitted = parse_instant(raw.submitted_at)
    except ValueError as e:
        logger.warning("Rejecting Hostaway batch, record %d has bad submittedAt %r", index, raw.submitted_at)
        raise TimestampParseError(index, raw.submitted_at) from e
    return NormalizedReview(
        ext_id=str(raw.id),
        provider=Provider.HOSTAWAY,
        channel=HOSTAWAY_CHANNEL,
        type=raw.type or "",
        status=raw.status or "",
        rating=raw.rating,
        categories=categories,
        submitted_at=to_iso(submitted),
        author=raw.guest_name or None,
        text=raw.public_review or None,
        listing_name=raw.listing_name,
        listing_slug=slugify(raw.listing_name),
    )


def normalize_hostaway(payload: Any) -> List[NormalizedReview]:
    """Validate a raw Hostaway payload and normalize every record.

    The whole batch is rejected if any record is malformed.
    """
    return [normalize_review(raw, i) for i, raw in enumerate(validate_payload(payload))]
