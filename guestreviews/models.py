from sqlalchemy import Column, Integer, String, DateTime, Float, Text, Boolean, JSON, ForeignKey
from sqlalchemy.orm import relationship
from .database import Base


class Listing(Base):
    __tablename__ = "listings"
    id = Column(Integer, primary_key=True, index=True)
    slug = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    channel = Column(String, default="")
    reviews = relationship("Review", back_populates="listing")


class Review(Base):
    __tablename__ = "reviews"
    id = Column(Integer, primary_key=True, index=True)
    ext_id = Column(String, unique=True, index=True, nullable=False)
    provider = Column(String, nullable=False)
    type = Column(String, default="")
    status = Column(String, default="")
    rating = Column(Float, nullable=True)
    categories = Column(JSON(none_as_null=True), nullable=True)
    submitted_at = Column(DateTime, index=True, nullable=False)
    author = Column(String, nullable=True)
    text = Column(Text, nullable=True)
    approved = Column(Boolean, default=False, nullable=False)
    listing_id = Column(Integer, ForeignKey("listings.id"), index=True, nullable=False)
    listing = relationship("Listing", back_populates="reviews")
