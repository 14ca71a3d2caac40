"""
FastAPI dependencies resolving application-scoped services.
"""

from fastapi import HTTPException, Request, status

from api.uploads import UploadResolver
from catalog.database import CatalogStore


def get_store(request: Request) -> CatalogStore:
    """The data access layer opened by the application lifespan."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database service not available"
        )
    return store


def get_upload_resolver(request: Request) -> UploadResolver:
    """The upload resolver configured for this application."""
    return request.app.state.uploads
