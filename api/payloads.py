"""
Reading record fields and an optional file from JSON or form requests.
"""

import json
from typing import Any, Dict, Optional, Tuple

from fastapi import Request
from starlette.datastructures import UploadFile

from api.uploads import UploadResolver
from catalog.errors import BadRequestError


def _is_json(request: Request) -> bool:
    return request.headers.get("content-type", "").lower().startswith("application/json")


async def read_json_object(request: Request) -> Dict[str, Any]:
    """Parse the body as a JSON object."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise BadRequestError("Request body is not valid JSON")
    if not isinstance(body, dict):
        raise BadRequestError("Request body must be a JSON object")
    return body


async def read_record_payload(
    request: Request,
    file_field: str,
    uploads: UploadResolver
) -> Tuple[Dict[str, Any], Optional[str]]:
    """
    Extract record fields and store the file sent under ``file_field``.

    JSON bodies carry fields only. Multipart and urlencoded forms may also
    carry the file; other file parts are ignored.

    Returns:
        The submitted fields and the stored filename (None when no file was sent)
    """
    if _is_json(request):
        return await read_json_object(request), None

    async with request.form() as form:
        fields = {key: value for key, value in form.items() if isinstance(value, str)}
        upload = form.get(file_field)
        filename = await uploads.save(upload if isinstance(upload, UploadFile) else None)
    return fields, filename


async def read_upload(
    request: Request,
    file_field: str,
    uploads: UploadResolver
) -> Optional[str]:
    """Store the file sent under ``file_field`` and return its filename."""
    _, filename = await read_record_payload(request, file_field, uploads)
    return filename
