from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, StrictStr
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict, Union

Number = Union[StrictInt, StrictFloat]


class Provider(str, Enum):
    HOSTAWAY = "hostaway"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Raw Hostaway payload. Unknown fields are ignored, known ones are not coerced.

class RawCategory(CamelModel):
    category: str
    rating: Optional[Number] = None


class RawReview(CamelModel):
    id: Union[StrictStr, StrictInt]
    type: Optional[str] = None
    status: Optional[str] = None
    rating: Optional[Number] = None
    public_review: Optional[str] = None
    review_category: Optional[List[RawCategory]] = None
    submitted_at: str
    guest_name: Optional[str] = None
    listing_name: str


class NormalizedReview(CamelModel):
    ext_id: str
    provider: Provider = Provider.HOSTAWAY
    channel: str
    type: str = ""
    status: str = ""
    rating: Optional[Number] = None
    categories: Optional[Dict[str, Optional[Number]]] = None
    submitted_at: str
    author: Optional[str] = None
    text: Optional[str] = None
    listing_name: str
    listing_slug: str


class ReviewOut(NormalizedReview):
    approved: bool = False


class SummaryRow(CamelModel):
    listing_slug: str
    listing_name: str
    channel: str
    review_count: int
    approved_count: int
    pending_count: int
    average_rating: Optional[float] = None
    latest_review_at: Optional[str] = None


class ReviewFilters(CamelModel):
    listing_slug: Optional[str] = None
    approved: Optional[bool] = None
    from_: Optional[str] = Field(default=None, alias="from")
    to: Optional[str] = None
    sort: str = "submittedAt:desc"


class ReviewsOut(CamelModel):
    provider: Provider = Provider.HOSTAWAY
    source: str
    fallback: Optional[str] = None
    error: Optional[str] = None
    count: int
    filters: Optional[ReviewFilters] = None
    reviews: List[ReviewOut]
    summary: List[SummaryRow]


class IngestRequest(BaseModel):
    source: Optional[str] = Field(default=None, description="api|mock")


class IngestOut(CamelModel):
    ok: bool = True
    provider: Provider = Provider.HOSTAWAY
    requested_source: str
    source: str
    error: Optional[str] = None
    ingested: int
    count: int
    summary: List[SummaryRow]


class ApproveRequest(CamelModel):
    ext_id: str = Field(..., min_length=1)
    approved: StrictBool


class ApproveOut(CamelModel):
    ok: bool = True
    ext_id: str
    approved: bool


class CategoryAverage(BaseModel):
    key: str
    label: str
    average: float


class PropertyOut(CamelModel):
    slug: str
    name: str
    channel: str
    review_count: int
    average_rating: Optional[float] = None
    category_averages: List[CategoryAverage]
    reviews: List[ReviewOut]
