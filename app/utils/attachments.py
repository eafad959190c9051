"""
Attachment Codec - resume / cover-letter uploads stored as database blobs.

encode: UploadFile -> Attachment(data, filename, mimetype), size-capped
decode: Attachment -> HTTP response, as a download or rendered inline

Max file size: 5MB by default (MAX_UPLOAD_MB)
"""

import mimetypes
from typing import Optional
from urllib.parse import quote

from fastapi import Response
from pydantic import BaseModel
from starlette.datastructures import UploadFile

from app.core.exceptions import PayloadTooLargeError, ValidationError

MAX_FILE_SIZE_MB = 5
MAX_FILE_SIZE_BYTES = MAX_FILE_SIZE_MB * 1024 * 1024
DEFAULT_MIMETYPE = "application/octet-stream"

DISPOSITIONS = {"attachment", "inline"}


class Attachment(BaseModel):
    data: bytes
    filename: str
    mimetype: str

    @property
    def size(self) -> int:
        return len(self.data)


def guess_mimetype(filename: str, declared: Optional[str] = None) -> str:
    """Prefer the client's declared type, then the extension."""
    if declared and declared != DEFAULT_MIMETYPE:
        return declared
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or declared or DEFAULT_MIMETYPE


async def encode_upload(upload: Optional[UploadFile], max_bytes: int = MAX_FILE_SIZE_BYTES,
                        field: str = "file") -> Optional[Attachment]:
    """
    Read an uploaded file into an Attachment.

    Returns None when no file was sent. Raises ValidationError for a named
    but empty file and PayloadTooLargeError when the file is bigger than
    `max_bytes`; at most max_bytes + 1 bytes are read.
    """
    if upload is None or not upload.filename:
        return None

    content = await upload.read(max_bytes + 1)
    if len(content) > max_bytes:
        raise PayloadTooLargeError(
            f"{field} is too large. Maximum size: {max_bytes // (1024 * 1024)}MB"
        )
    if not content:
        raise ValidationError(f"{field} is empty")

    return Attachment(
        data=content,
        filename=upload.filename,
        mimetype=guess_mimetype(upload.filename, upload.content_type),
    )


def content_disposition(disposition: str, filename: str) -> str:
    """Content-Disposition value with an ASCII fallback and RFC 5987 filename*."""
    if disposition not in DISPOSITIONS:
        raise ValueError(f"Unknown disposition: {disposition}")
    ascii_name = filename.encode("ascii", "replace").decode("ascii").replace("?", "_")
    ascii_name = ascii_name.replace("\\", "_").replace('"', "_")
    quoted = quote(filename, safe="")
    if quoted == filename:
        return f'{disposition}; filename="{filename}"'
    return f"{disposition}; filename=\"{ascii_name}\"; filename*=UTF-8''{quoted}"


def attachment_response(attachment: Attachment, disposition: str = "attachment") -> Response:
    """Serve stored bytes back; only the disposition differs between modes."""
    return Response(
        content=attachment.data,
        media_type=attachment.mimetype,
        headers={"Content-Disposition": content_disposition(disposition, attachment.filename)},
    )
