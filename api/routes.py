"""
HTTP routes for users, reviews, books and statistics.

Handlers translate requests into data access calls. Failures are raised as
``CatalogError`` subclasses and turned into responses by the handlers
registered in ``api.main``.
"""

from typing import List

from fastapi import APIRouter, Depends, Request, status
from starlette.concurrency import run_in_threadpool

from api.config import config as api_config
from api.dependencies import get_store, get_upload_resolver
from api.models import (
    AudioUploadedResponse, BookCreatedResponse, CountResponse, LoginRequest,
    MessageResponse, ReviewUpdatedResponse, SignupRequest
)
from api.payloads import read_record_payload, read_upload
from api.uploads import UploadResolver
from catalog.database import CatalogStore
from catalog.errors import BadRequestError
from catalog.models import (
    Book, BookFields, DailyReviewCount, PopularBook,
    Review, ReviewFields, ReviewWithUrl, User
)
from catalog.security import hash_password
from utilities.config import config

router = APIRouter()


# Users

@router.post("/add", response_model=MessageResponse, status_code=status.HTTP_201_CREATED, tags=["Users"])
async def signup(payload: SignupRequest, store: CatalogStore = Depends(get_store)):
    """Register a user. Fails with 409 when the e-mail or username is taken."""
    password_hash = await run_in_threadpool(hash_password, payload.password, config.bcrypt_rounds)
    await store.create_user(payload.email, payload.username, password_hash)
    return MessageResponse(message="Signup successful!")


@router.post("/view", response_model=MessageResponse, tags=["Users"])
async def login(payload: LoginRequest, store: CatalogStore = Depends(get_store)):
    """Check credentials. There is no session; every call is independent."""
    await store.authenticate_user(payload.username, payload.password)
    return MessageResponse(message="Login successful!")


@router.get("/users", response_model=List[User], tags=["Users"])
async def list_users(store: CatalogStore = Depends(get_store)):
    """All users except the first one registered."""
    return await store.list_users()


@router.delete("/user/{user_id}", response_model=MessageResponse, tags=["Users"])
async def delete_user(user_id: str, store: CatalogStore = Depends(get_store)):
    await store.delete_user(user_id)
    return MessageResponse(message="User deleted")


# Reviews

@router.post("/reviews", response_model=Review, status_code=status.HTTP_201_CREATED, tags=["Reviews"])
async def create_review(
    request: Request,
    store: CatalogStore = Depends(get_store),
    uploads: UploadResolver = Depends(get_upload_resolver)
):
    """
    Create a review.

    Accepts a JSON body or a form. A form may carry an ``audio`` file.
    """
    fields, audio = await read_record_payload(request, "audio", uploads)
    return await store.create_review(ReviewFields.model_validate(fields), audio)


@router.get("/reviews", response_model=List[Review], tags=["Reviews"])
async def list_reviews(store: CatalogStore = Depends(get_store)):
    return await store.list_reviews()


@router.get("/review/{review_id}", response_model=ReviewWithUrl, tags=["Reviews"])
async def get_review(review_id: str, store: CatalogStore = Depends(get_store)):
    """A review plus the URL of the book with the same ISBN-13 (empty if none)."""
    return await store.get_review(review_id)


@router.put("/review/{review_id}", response_model=ReviewUpdatedResponse, tags=["Reviews"])
async def update_review(
    review_id: str,
    request: Request,
    store: CatalogStore = Depends(get_store),
    uploads: UploadResolver = Depends(get_upload_resolver)
):
    """
    Update a review.

    Only submitted fields change. The stored audio is replaced only when a
    new ``audio`` file is sent.
    """
    fields, audio = await read_record_payload(request, "audio", uploads)
    review = await store.update_review(review_id, ReviewFields.model_validate(fields), audio)
    return ReviewUpdatedResponse(updated_review=review)


@router.delete("/review/{review_id}", response_model=MessageResponse, tags=["Reviews"])
async def delete_review(review_id: str, store: CatalogStore = Depends(get_store)):
    await store.delete_review(review_id)
    return MessageResponse(message="Review deleted")


@router.post("/upload-audio/{review_id}", response_model=AudioUploadedResponse, tags=["Reviews"])
async def upload_audio(
    review_id: str,
    request: Request,
    store: CatalogStore = Depends(get_store),
    uploads: UploadResolver = Depends(get_upload_resolver)
):
    """Attach an ``audio`` file to an existing review, replacing any previous one."""
    audio = await read_upload(request, "audio", uploads)
    if not audio:
        raise BadRequestError("No audio file uploaded")
    review = await store.attach_audio(review_id, audio)
    return AudioUploadedResponse(review=review)


# Books

@router.post("/addbook", response_model=BookCreatedResponse, status_code=status.HTTP_201_CREATED, tags=["Books"])
async def create_book(
    request: Request,
    store: CatalogStore = Depends(get_store),
    uploads: UploadResolver = Depends(get_upload_resolver)
):
    """
    Add a book. ``title``, ``price`` and ``url`` are required.

    A form may carry an ``image`` file.
    """
    fields, image = await read_record_payload(request, "image", uploads)
    book = await store.create_book(BookFields.model_validate(fields), image)
    return BookCreatedResponse(book=book)


@router.get("/books", response_model=List[Book], tags=["Books"])
async def list_books(store: CatalogStore = Depends(get_store)):
    return await store.list_books()


@router.get("/books/{isbn13}", response_model=Book, tags=["Books"])
async def get_book(isbn13: str, store: CatalogStore = Depends(get_store)):
    return await store.get_book(isbn13)


# Statistics

@router.get("/usercount", response_model=CountResponse, tags=["Statistics"])
async def user_count(store: CatalogStore = Depends(get_store)):
    return CountResponse(count=await store.count_users())


@router.get("/reviewcount", response_model=CountResponse, tags=["Statistics"])
async def review_count(store: CatalogStore = Depends(get_store)):
    return CountResponse(count=await store.count_reviews())


@router.get("/bookcount", response_model=CountResponse, tags=["Statistics"])
async def book_count(store: CatalogStore = Depends(get_store)):
    """Number of books in the local catalog."""
    return CountResponse(count=await store.count_books())


@router.get("/reviews-over-time", response_model=List[DailyReviewCount], tags=["Statistics"])
async def reviews_over_time(store: CatalogStore = Depends(get_store)):
    """Reviews created per UTC day, oldest first. Days without reviews are left out."""
    return await store.reviews_per_day()


@router.get("/most-popular-books", response_model=List[PopularBook], tags=["Statistics"])
async def most_popular_books(store: CatalogStore = Depends(get_store)):
    """The most reviewed titles, ties broken by title."""
    return await store.top_books_by_review_count(limit=api_config.popular_books_limit)
