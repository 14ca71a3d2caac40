"""
Request and response schemas for the HTTP API.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from catalog.models import Book, Review


class SignupRequest(BaseModel):
    """Signup body."""
    email: str = Field(..., description="E-mail address")
    username: str = Field(..., description="Login name")
    password: str = Field(..., description="Plain text password")


class LoginRequest(BaseModel):
    """Login body."""
    username: str = Field(..., description="Login name")
    password: str = Field(..., description="Plain text password")


class MessageResponse(BaseModel):
    """Plain acknowledgement."""
    message: str = Field(..., description="Human-readable outcome")


class CountResponse(BaseModel):
    """Collection size."""
    count: int = Field(..., ge=0, description="Number of records")


class ReviewUpdatedResponse(BaseModel):
    """Acknowledgement carrying the updated review."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field("Review updated")
    updated_review: Review = Field(..., alias="updatedReview")


class AudioUploadedResponse(BaseModel):
    """Acknowledgement carrying the review the audio was attached to."""
    message: str = Field("Audio uploaded successfully")
    review: Review


class BookCreatedResponse(BaseModel):
    """Acknowledgement carrying the created book."""
    message: str = Field("Book added successfully")
    book: Book


class ErrorResponse(BaseModel):
    """Error response model."""
    message: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    status_code: int = Field(..., description="HTTP status code")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")
