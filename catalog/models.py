"""
Pydantic models for stored records and the fields accepted when writing them.

Documents are kept in MongoDB with camelCase keys; the models expose
snake_case attributes and serialize back to the stored key names.
"""

from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class RecordFields(BaseModel):
    """Base for writable record fields. Every field is an optional string."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True, extra="ignore")

    def to_document(self) -> Dict[str, Any]:
        """Return the provided, non-null fields keyed by their stored names."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ReviewFields(RecordFields):
    """Fields a client may set on a review."""
    username: Optional[str] = Field(None, description="Author of the review")
    isbn13: Optional[str] = Field(None, description="ISBN-13 of the reviewed book")
    book_title: Optional[str] = Field(None, alias="bookTitle", description="Title of the reviewed book")
    review_text: Optional[str] = Field(None, alias="reviewText", description="Review body")
    image: Optional[str] = Field(None, description="Cover image URL")
    price: Optional[str] = Field(None, description="Book price as entered")
    subtitle: Optional[str] = Field(None, description="Book subtitle")


class BookFields(RecordFields):
    """Fields a client may set on a book."""
    title: Optional[str] = Field(None, description="Book title")
    subtitle: Optional[str] = Field(None, description="Book subtitle")
    isbn13: Optional[str] = Field(None, description="ISBN-13")
    price: Optional[str] = Field(None, description="Book price as entered")
    url: Optional[str] = Field(None, description="Link to the book")

    REQUIRED: ClassVar[Tuple[str, ...]] = ("title", "price", "url")

    def missing_required(self) -> List[str]:
        """Names of required fields that are absent or empty."""
        return [name for name in self.REQUIRED if not getattr(self, name)]


class Record(BaseModel):
    """A stored document, identified by the hex string of its ObjectId."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True, extra="ignore")

    id: str = Field(..., alias="_id", description="Unique record identifier")

    @classmethod
    def from_document(cls, document: Dict[str, Any], **extra: Any):
        """Build a record from a raw MongoDB document."""
        data = dict(document)
        data["_id"] = str(data["_id"])
        data.update(extra)
        return cls.model_validate(data)


class User(Record):
    """A registered user. The password hash is never loaded into this model."""
    email: str = Field(..., description="Unique e-mail address")
    username: str = Field(..., description="Display and login name")
    signup_date: Optional[datetime] = Field(None, alias="signupDate", description="Signup timestamp (UTC)")


class Review(Record):
    """A stored book review."""
    username: Optional[str] = None
    isbn13: Optional[str] = None
    book_title: Optional[str] = Field(None, alias="bookTitle")
    review_text: Optional[str] = Field(None, alias="reviewText")
    image: Optional[str] = None
    price: Optional[str] = None
    subtitle: Optional[str] = None
    audio: Optional[str] = Field(None, description="Filename of the uploaded audio clip")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")


class ReviewWithUrl(Review):
    """A review enriched with the URL of the book sharing its ISBN-13."""
    url: str = Field("", description="URL of the matching book, empty when there is none")


class Book(Record):
    """A catalog book."""
    title: Optional[str] = None
    subtitle: Optional[str] = None
    isbn13: Optional[str] = None
    price: Optional[str] = None
    url: Optional[str] = None
    image: Optional[str] = Field(None, description="Filename of the uploaded cover image")


class DailyReviewCount(BaseModel):
    """Number of reviews created on one UTC calendar day."""
    date: Optional[str] = Field(..., description="Day in YYYY-MM-DD form, null without a timestamp")
    count: int = Field(..., ge=1, description="Reviews created that day")


class PopularBook(BaseModel):
    """A book title and how many reviews it has."""

    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = Field(None, description="Book title as written in the reviews")
    review_count: int = Field(..., alias="reviewCount", description="Number of reviews")
