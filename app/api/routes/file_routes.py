"""
File Routes (admin)

GET /files - List stored attachments (file browser)
GET /files/{kind}/{id} - Download a CV or cover letter
GET /files/{kind}/{id}/view - Same bytes, rendered inline (PDF preview)

kind is "cv" or "cover-letter".
"""

from typing import List

from fastapi import APIRouter, Depends

from app.api.deps import get_repository
from app.core.auth import require_admin
from app.schemas.schemas import AttachmentKind, StoredFile
from app.services.application_repository import ApplicationRepository
from app.utils.attachments import attachment_response

router = APIRouter(prefix="/files", tags=["Files"], dependencies=[Depends(require_admin)])


@router.get("", response_model=List[StoredFile])
def list_files(repo: ApplicationRepository = Depends(get_repository)):
    """Applications that carry at least one attachment, newest first."""
    return repo.list_attachments()


@router.get("/{kind}/{app_id}")
def download_file(kind: AttachmentKind, app_id: int, repo: ApplicationRepository = Depends(get_repository)):
    return attachment_response(repo.get_attachment(app_id, kind), disposition="attachment")


@router.get("/{kind}/{app_id}/view")
def view_file(kind: AttachmentKind, app_id: int, repo: ApplicationRepository = Depends(get_repository)):
    return attachment_response(repo.get_attachment(app_id, kind), disposition="inline")
