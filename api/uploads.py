"""
Storage of uploaded files (review audio, book cover images).
"""

import shutil
import uuid
from pathlib import Path
from typing import Optional, Union

import structlog
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

logger = structlog.get_logger(__name__)


class UploadResolver:
    """Names uploaded files and writes them to the uploads directory."""

    def __init__(self, uploads_dir: Union[str, Path]):
        self.uploads_dir = Path(uploads_dir)

    @staticmethod
    def generate_filename(original_filename: str) -> str:
        """Random token plus the original file extension."""
        return f"{uuid.uuid4().hex}{Path(original_filename).suffix}"

    def ensure_directory(self) -> None:
        """Create the uploads directory if it does not exist yet."""
        self.uploads_dir.mkdir(parents=True, exist_ok=True)

    def _write(self, upload: UploadFile, destination: Path) -> None:
        self.ensure_directory()
        upload.file.seek(0)
        with open(destination, "wb") as buffer:
            shutil.copyfileobj(upload.file, buffer)

    async def save(self, upload: Optional[UploadFile]) -> Optional[str]:
        """
        Store an uploaded file.

        Args:
            upload: The uploaded file, or None when the request carried none

        Returns:
            The generated filename, or None if there was nothing to store
        """
        if upload is None or not upload.filename:
            return None

        filename = self.generate_filename(upload.filename)
        destination = self.uploads_dir / filename
        try:
            await run_in_threadpool(self._write, upload, destination)
        except OSError as e:
            logger.error("Failed to store upload", original_filename=upload.filename, error=str(e))
            raise

        logger.info(
            "Upload stored",
            original_filename=upload.filename,
            filename=filename,
            content_type=upload.content_type
        )
        return filename
