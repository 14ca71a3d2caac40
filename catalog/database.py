"""
MongoDB data access layer for users, reviews and books.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from catalog import aggregation
from catalog.errors import BadRequestError, ConflictError, NotFoundError, UnauthorizedError
from catalog.models import (
    Book, BookFields, DailyReviewCount, PopularBook,
    Review, ReviewFields, ReviewWithUrl, User
)
from catalog.security import verify_password

logger = structlog.get_logger(__name__)


def _object_id(record_id: str) -> Optional[ObjectId]:
    """Parse a record id; ids that are not ObjectIds match nothing."""
    if ObjectId.is_valid(record_id):
        return ObjectId(record_id)
    return None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CatalogStore:
    """
    Async data access for the three record collections.

    The store wraps a database handle owned by the caller; it opens and
    closes nothing itself.
    """

    def __init__(self, database: AsyncIOMotorDatabase):
        self.database = database
        self.users_collection = database.users
        self.reviews_collection = database.reviews
        self.books_collection = database.books

    async def create_indexes(self) -> None:
        """Create the unique e-mail index and lookup indexes."""
        try:
            await self.users_collection.create_index("email", unique=True)
            await self.users_collection.create_index("username")
            await self.books_collection.create_index("isbn13")
            await self.reviews_collection.create_index("createdAt")
            await self.reviews_collection.create_index("bookTitle")
            logger.info("Successfully created MongoDB indexes")
        except Exception as e:
            logger.error("Failed to create indexes", error=str(e))
            raise

    # Users

    async def create_user(self, email: str, username: str, password_hash: str) -> User:
        """
        Register a user.

        Args:
            email: E-mail address, unique across users
            username: Login name
            password_hash: Salted hash of the password

        Returns:
            The stored user

        Raises:
            ConflictError: If the e-mail or the username is already taken
        """
        existing = await self.users_collection.find_one(
            {"$or": [{"email": email}, {"username": username}]}
        )
        if existing:
            logger.warning("Signup rejected, user exists", email=email, username=username)
            raise ConflictError("Email or username already exists.")

        document = {
            "email": email,
            "username": username,
            "password": password_hash,
            "signupDate": _utcnow(),
        }
        try:
            result = await self.users_collection.insert_one(document)
        except DuplicateKeyError:
            logger.warning("Signup lost a race on the unique e-mail index", email=email)
            raise ConflictError("Email or username already exists.")
        except Exception as e:
            logger.error("Failed to create user", username=username, error=str(e))
            raise

        document["_id"] = result.inserted_id
        logger.info("User created", user_id=str(result.inserted_id), username=username)
        return User.from_document(document)

    async def authenticate_user(self, username: str, password: str) -> User:
        """
        Check a username and password pair.

        Raises:
            UnauthorizedError: If the user is unknown or the password is wrong
        """
        document = await self.users_collection.find_one({"username": username})
        if not document:
            logger.info("Login failed, unknown user", username=username)
            raise UnauthorizedError("Invalid credentials.")

        matches = await asyncio.to_thread(verify_password, password, document.get("password") or "")
        if not matches:
            logger.info("Login failed, wrong password", username=username)
            raise UnauthorizedError("Invalid credentials.")

        return User.from_document(document)

    async def list_users(self) -> List[User]:
        """All users in insertion order, except the earliest one."""
        try:
            cursor = self.users_collection.find({}).sort("_id", 1).skip(1)
            return [User.from_document(document) async for document in cursor]
        except Exception as e:
            logger.error("Failed to list users", error=str(e))
            raise

    async def delete_user(self, user_id: str) -> None:
        """Delete a user; unknown ids are not an error."""
        object_id = _object_id(user_id)
        if object_id is None:
            return
        result = await self.users_collection.delete_one({"_id": object_id})
        logger.info("User delete", user_id=user_id, deleted=result.deleted_count)

    # Reviews

    async def create_review(self, fields: ReviewFields, audio: Optional[str] = None) -> Review:
        """
        Store a new review.

        Args:
            fields: Review content
            audio: Filename of an uploaded audio clip, if any

        Returns:
            The stored review
        """
        now = _utcnow()
        document = fields.to_document()
        document.update({"audio": audio, "createdAt": now, "updatedAt": now})
        try:
            result = await self.reviews_collection.insert_one(document)
        except Exception as e:
            logger.error("Failed to create review", error=str(e))
            raise

        document["_id"] = result.inserted_id
        logger.info("Review created", review_id=str(result.inserted_id), has_audio=audio is not None)
        return Review.from_document(document)

    async def get_review(self, review_id: str) -> ReviewWithUrl:
        """
        Fetch a review together with the URL of the book sharing its ISBN-13.

        Raises:
            NotFoundError: If no review has that id
        """
        object_id = _object_id(review_id)
        document = None
        if object_id is not None:
            document = await self.reviews_collection.find_one({"_id": object_id})
        if not document:
            raise NotFoundError("Review not found")

        url = ""
        isbn13 = document.get("isbn13")
        if isbn13 is not None:
            book = await self.books_collection.find_one({"isbn13": isbn13})
            url = (book or {}).get("url") or ""
        return ReviewWithUrl.from_document(document, url=url)

    async def list_reviews(self) -> List[Review]:
        """All reviews in storage order."""
        try:
            cursor = self.reviews_collection.find({})
            return [Review.from_document(document) async for document in cursor]
        except Exception as e:
            logger.error("Failed to list reviews", error=str(e))
            raise

    async def _update_review_document(self, review_id: str, changes: Dict[str, Any]) -> Review:
        object_id = _object_id(review_id)
        document = None
        if object_id is not None:
            changes["updatedAt"] = _utcnow()
            document = await self.reviews_collection.find_one_and_update(
                {"_id": object_id},
                {"$set": changes},
                return_document=ReturnDocument.AFTER
            )
        if not document:
            logger.warning("Review not found for update", review_id=review_id)
            raise NotFoundError("Review not found")
        return Review.from_document(document)

    async def update_review(
        self,
        review_id: str,
        fields: ReviewFields,
        audio: Optional[str] = None
    ) -> Review:
        """
        Overwrite the provided fields of a review.

        Fields missing from ``fields`` keep their stored value, and so does
        ``audio`` unless a new filename is given.

        Raises:
            NotFoundError: If no review has that id
        """
        changes = fields.to_document()
        if audio:
            changes["audio"] = audio
        review = await self._update_review_document(review_id, changes)
        logger.info("Review updated", review_id=review_id, fields=sorted(changes))
        return review

    async def attach_audio(self, review_id: str, audio: str) -> Review:
        """
        Replace the audio clip of an existing review.

        Raises:
            NotFoundError: If no review has that id
        """
        review = await self._update_review_document(review_id, {"audio": audio})
        logger.info("Review audio attached", review_id=review_id, audio=audio)
        return review

    async def delete_review(self, review_id: str) -> None:
        """Delete a review; unknown ids are not an error."""
        object_id = _object_id(review_id)
        if object_id is None:
            return
        result = await self.reviews_collection.delete_one({"_id": object_id})
        logger.info("Review delete", review_id=review_id, deleted=result.deleted_count)

    # Books

    async def create_book(self, fields: BookFields, image: Optional[str] = None) -> Book:
        """
        Add a book to the catalog.

        Raises:
            BadRequestError: If title, price or url is missing
        """
        missing = fields.missing_required()
        if missing:
            logger.warning("Book rejected, required fields missing", missing=missing)
            raise BadRequestError("Required fields missing")

        document = fields.to_document()
        document["image"] = image
        try:
            result = await self.books_collection.insert_one(document)
        except Exception as e:
            logger.error("Failed to create book", title=fields.title, error=str(e))
            raise

        document["_id"] = result.inserted_id
        logger.info("Book created", book_id=str(result.inserted_id), isbn13=fields.isbn13)
        return Book.from_document(document)

    async def get_book(self, isbn13: str) -> Book:
        """
        Fetch a book by ISBN-13.

        Raises:
            NotFoundError: If no book has that ISBN-13
        """
        document = await self.books_collection.find_one({"isbn13": isbn13})
        if not document:
            raise NotFoundError("Book not found")
        return Book.from_document(document)

    async def list_books(self) -> List[Book]:
        """All books in storage order."""
        try:
            cursor = self.books_collection.find({})
            return [Book.from_document(document) async for document in cursor]
        except Exception as e:
            logger.error("Failed to list books", error=str(e))
            raise

    # Statistics

    async def count_users(self) -> int:
        return await self.users_collection.count_documents({})

    async def count_reviews(self) -> int:
        return await self.reviews_collection.count_documents({})

    async def count_books(self) -> int:
        return await self.books_collection.count_documents({})

    async def reviews_per_day(self) -> List[DailyReviewCount]:
        """Review counts per UTC day, oldest first, days without reviews omitted."""
        try:
            cursor = self.reviews_collection.find({}, {"createdAt": 1})
            return aggregation.reviews_per_day([document async for document in cursor])
        except Exception as e:
            logger.error("Failed to compute reviews per day", error=str(e))
            raise

    async def top_books_by_review_count(
        self,
        limit: int = aggregation.DEFAULT_POPULAR_BOOKS_LIMIT
    ) -> List[PopularBook]:
        """The most reviewed book titles, most reviewed first."""
        try:
            cursor = self.reviews_collection.find({}, {"bookTitle": 1})
            documents = [document async for document in cursor]
            return aggregation.top_books_by_review_count(documents, limit=limit)
        except Exception as e:
            logger.error("Failed to compute most popular books", limit=limit, error=str(e))
            raise

    async def health_check(self) -> Dict[str, Any]:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        try:
            await self.database.command("ping")
            return {
                "status": "healthy",
                "users_count": await self.count_users(),
                "reviews_count": await self.count_reviews(),
                "books_count": await self.count_books(),
            }
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e)
            }
