"""
Application Routes

POST /applications - Submit an application (public, multipart/form or JSON)
GET /applications - List applications (admin)
GET /applications/{id} - Get application details (admin)
PUT /applications/{id} - Update status and notes (admin)
PUT /applications/{id}/status - Same as above, admin console path
DELETE /applications/{id} - Delete an application (admin)
"""

import json
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.deps import get_app_settings, get_db, get_repository
from app.core.auth import require_admin
from app.core.config import Settings
from app.core.exceptions import AppError, SchemaError, ValidationError
from app.db.postgres import Database
from app.schemas.schemas import (
    ApplicationCreate, ApplicationDetail, ApplicationStatusUpdate,
    ApplicationSummary, MessageResponse, SubmissionResponse
)
from app.services.application_repository import ApplicationRepository
from app.utils.attachments import encode_upload
from app.utils.normalize import (
    normalize_consent, normalize_optional_text, normalize_skills, normalize_text
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/applications", tags=["Applications"])

SUBMISSION_FAILED = "Application submission failed."

# column -> accepted client keys, first match wins
TEXT_FIELDS = {
    "full_name": ("fullName", "full_name"),
    "email": ("email",),
    "phone": ("phone",),
    "location": ("location",),
    "position": ("position",),
    "education": ("education",),
    "current_role_text": ("currentRole", "current_role", "current_role_text"),
    "experience": ("experience",),
    "technical_skills": ("technicalSkills", "technical_skills"),
    "domain_knowledge": ("domainKnowledge", "domain_knowledge"),
    "portfolio_link": ("portfolioLink", "portfolio_link"),
    "motivation": ("motivation",),
}
ALX_STATUS_KEYS = ("alxStatus", "alx_status")
CV_KEYS = ("cv",)
COVER_LETTER_KEYS = ("coverLetter", "cover_letter")


class SubmissionPayload:
    """Uniform view over a form body (repeatable keys) or a JSON object."""

    def __init__(self, values: Dict[str, List[Any]]):
        self.values = values

    @classmethod
    def from_json(cls, body: Any) -> "SubmissionPayload":
        if isinstance(body, dict) and isinstance(body.get("application"), dict):
            body = body["application"]
        if not isinstance(body, dict):
            raise ValidationError("Request body must be a JSON object")
        return cls({k: v if isinstance(v, list) else [v] for k, v in body.items()})

    @classmethod
    def from_form(cls, form) -> "SubmissionPayload":
        return cls({k: form.getlist(k) for k in form.keys()})

    def get(self, *keys: str) -> Any:
        """Single value for text fields, or the list when the key repeats."""
        for key in keys:
            items = self.values.get(key)
            if items:
                return items[0] if len(items) == 1 else items
        return None

    def get_file(self, *keys: str) -> Optional[UploadFile]:
        for key in keys:
            for item in self.values.get(key, []):
                if isinstance(item, UploadFile):
                    return item
        return None


async def build_submission(payload: SubmissionPayload, max_upload_bytes: int) -> ApplicationCreate:
    """Normalize every field; uploads over the size cap fail here."""
    fields = {column: normalize_text(payload.get(*keys)) for column, keys in TEXT_FIELDS.items()}
    return ApplicationCreate(
        **fields,
        alx_status=normalize_text(payload.get(*ALX_STATUS_KEYS), default="Not specified"),
        skills=normalize_skills(payload.get("skills")),
        consent=normalize_consent(payload.get("consent")),
        cv=await encode_upload(payload.get_file(*CV_KEYS), max_upload_bytes, field="cv"),
        cover_letter=await encode_upload(
            payload.get_file(*COVER_LETTER_KEYS), max_upload_bytes, field="coverLetter"
        ),
    )


async def read_submission(request: Request, max_upload_bytes: int) -> ApplicationCreate:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise ValidationError("Malformed JSON body")
        return await build_submission(SubmissionPayload.from_json(body), max_upload_bytes)

    form = await request.form()
    try:
        return await build_submission(SubmissionPayload.from_form(form), max_upload_bytes)
    finally:
        await form.close()


def submission_error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message, **extra})


async def read_status_update(
    request: Request,
    admin: str = Depends(require_admin),
) -> ApplicationStatusUpdate:
    """Parse the status body only once the caller is authenticated."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Malformed JSON body")
    try:
        return ApplicationStatusUpdate.model_validate(body)
    except PydanticValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"]) or "body"
        raise ValidationError(f"{location}: {first['msg']}")


@router.post("", response_model=SubmissionResponse)
async def submit_application(
    request: Request,
    repo: ApplicationRepository = Depends(get_repository),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """
    Submit a job application.

    Accepts multipart/form-data (with optional `cv` and `coverLetter` files),
    urlencoded forms, or JSON. Skills may be a list, a repeated field or a
    comma-separated string; consent must be true, "true" or "on".
    """
    try:
        record = await read_submission(request, settings.max_upload_bytes)
        created = await run_in_threadpool(repo.insert, record)
    except SchemaError as e:
        # One repair pass; the client retries, we do not
        logger.warning("Submission hit a schema mismatch, reconciling once")
        report = await run_in_threadpool(db.reconcile)
        logger.info("Reconciliation after failed submission: %s", report.as_dict())
        return submission_error(500, SUBMISSION_FAILED, details=e.message, suggestion=e.suggestion)
    except AppError as e:
        if e.status_code >= 500:
            return submission_error(e.status_code, SUBMISSION_FAILED)
        return submission_error(e.status_code, e.message)
    except StarletteHTTPException as e:
        # malformed multipart bodies
        return submission_error(e.status_code, str(e.detail))
    except Exception:
        logger.exception("Unexpected error while submitting application")
        return submission_error(500, SUBMISSION_FAILED)

    return SubmissionResponse(applicationId=created["id"], submittedAt=created["submitted_at"])


@router.get("", response_model=List[ApplicationSummary])
def list_applications(
    status: Optional[str] = Query(None),
    position: Optional[str] = Query(None),
    repo: ApplicationRepository = Depends(get_repository),
    admin: str = Depends(require_admin),
):
    """List applications, newest first. Attachment bytes are not included."""
    return repo.list_summaries(status=status, position=position)


@router.get("/{app_id}", response_model=ApplicationDetail)
def get_application(
    app_id: int,
    repo: ApplicationRepository = Depends(get_repository),
    admin: str = Depends(require_admin),
):
    return repo.get_by_id(app_id)


@router.put("/{app_id}", response_model=ApplicationDetail)
def update_application(
    app_id: int,
    data: ApplicationStatusUpdate = Depends(read_status_update),
    repo: ApplicationRepository = Depends(get_repository),
    admin: str = Depends(require_admin),
):
    """Set status (pending, reviewed, accepted, rejected) and notes."""
    return repo.update_status(app_id, data.status, normalize_optional_text(data.notes))


@router.put("/{app_id}/status", response_model=ApplicationDetail, include_in_schema=False)
def update_application_status(
    app_id: int,
    data: ApplicationStatusUpdate = Depends(read_status_update),
    repo: ApplicationRepository = Depends(get_repository),
    admin: str = Depends(require_admin),
):
    return repo.update_status(app_id, data.status, normalize_optional_text(data.notes))


@router.delete("/{app_id}", response_model=MessageResponse)
def delete_application(
    app_id: int,
    repo: ApplicationRepository = Depends(get_repository),
    admin: str = Depends(require_admin),
):
    """Remove an application and its attachments (GDPR erasure)."""
    repo.delete(app_id)
    return MessageResponse(message="Application deleted successfully")
