"""
Application Repository - CRUD over the `applications` table.

Blob columns are never selected by the list/detail projections; they are
read only by `get_attachment`. Presence is exposed as has_cv /
has_cover_letter flags instead.

Database errors are translated into the app's error taxonomy:
- missing column (schema drift)  -> SchemaError
- connection problems            -> StorageError
"""

import logging
from contextlib import contextmanager
from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, OperationalError, ProgrammingError

from app.core.exceptions import NotFoundError, SchemaError, StorageError, ValidationError
from app.db.postgres import Database
from app.schemas.schemas import STATUS_VALUES, ApplicationCreate, AttachmentKind
from app.utils.attachments import Attachment

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("full_name", "email", "phone", "position")

UNDEFINED_COLUMN = "42703"

# SERIAL is a 4-byte integer; larger ids cannot exist
MAX_ID = 2 ** 31 - 1

SUMMARY_COLUMNS = """
    id, full_name, email, phone, location, alx_status, position, education,
    current_role_text, experience, technical_skills, domain_knowledge,
    portfolio_link, motivation, skills, consent, submitted_at, status, notes,
    (cv_data IS NOT NULL) AS has_cv,
    (cover_letter_data IS NOT NULL) AS has_cover_letter
"""

DETAIL_COLUMNS = SUMMARY_COLUMNS + """,
    cv_filename, cv_mimetype, cover_letter_filename, cover_letter_mimetype
"""


def is_missing_column_error(exc: Exception) -> bool:
    orig = getattr(exc, "orig", None)
    if getattr(orig, "pgcode", None) == UNDEFINED_COLUMN:
        return True
    message = str(exc).lower()
    return "column" in message and "does not exist" in message


@contextmanager
def translate_db_errors(operation: str):
    """Map SQLAlchemy errors raised inside the block onto app errors."""
    try:
        yield
    except ProgrammingError as e:
        if is_missing_column_error(e):
            logger.error("%s failed, schema mismatch: %s", operation, str(e).splitlines()[0])
            raise SchemaError() from e
        logger.error("%s failed: %s", operation, str(e).splitlines()[0])
        raise StorageError(f"{operation} failed") from e
    except OperationalError as e:
        logger.error("%s failed, database unreachable: %s", operation, str(e).splitlines()[0])
        raise StorageError("Database unavailable") from e
    except DBAPIError as e:
        logger.error("%s failed: %s", operation, str(e).splitlines()[0])
        raise StorageError(f"{operation} failed") from e


def _row_to_dict(row) -> dict:
    data = dict(row._mapping)
    # Rows written before skills became NOT NULL may hold NULL
    data["skills"] = list(data.get("skills") or [])
    data["consent"] = bool(data.get("consent"))
    for flag in ("has_cv", "has_cover_letter"):
        if flag in data:
            data[flag] = bool(data[flag])
    return data


def validate_submission(record: ApplicationCreate) -> None:
    missing = [f for f in REQUIRED_FIELDS if not getattr(record, f).strip()]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    if record.consent is not True:
        raise ValidationError("Consent is required to submit an application")


def ensure_id(app_id: int) -> int:
    if not 1 <= app_id <= MAX_ID:
        raise NotFoundError("Application not found")
    return app_id


def validate_status(status: Optional[str]) -> str:
    if not status or status not in STATUS_VALUES:
        raise ValidationError(f"Invalid status. Allowed: {', '.join(STATUS_VALUES)}")
    return status


class ApplicationRepository:
    """Typed operations over the applications entity."""

    def __init__(self, db: Database):
        self.db = db

    def insert(self, record: ApplicationCreate) -> dict:
        """Persist one submission. Returns {"id", "submitted_at"}."""
        validate_submission(record)

        params = record.model_dump(exclude={"cv", "cover_letter"})
        params["skills"] = list(record.skills)
        for prefix, attachment in (("cv", record.cv), ("cover_letter", record.cover_letter)):
            params[f"{prefix}_data"] = attachment.data if attachment else None
            params[f"{prefix}_filename"] = attachment.filename if attachment else None
            params[f"{prefix}_mimetype"] = attachment.mimetype if attachment else None

        with translate_db_errors("Insert application"), self.db.session() as s:
            result = s.execute(
                text("""
                    INSERT INTO applications (
                        full_name, email, phone, location, alx_status, position,
                        education, current_role_text, experience, technical_skills,
                        domain_knowledge, portfolio_link, motivation, skills,
                        cv_data, cv_filename, cv_mimetype,
                        cover_letter_data, cover_letter_filename, cover_letter_mimetype,
                        consent
                    ) VALUES (
                        :full_name, :email, :phone, :location, :alx_status, :position,
                        :education, :current_role_text, :experience, :technical_skills,
                        :domain_knowledge, :portfolio_link, :motivation, :skills,
                        :cv_data, :cv_filename, :cv_mimetype,
                        :cover_letter_data, :cover_letter_filename, :cover_letter_mimetype,
                        :consent
                    )
                    RETURNING id, submitted_at
                """),
                params
            )
            app_id, submitted_at = result.fetchone()

        logger.info("Application %s saved (position=%s)", app_id, record.position)
        return {"id": app_id, "submitted_at": submitted_at}

    def list_summaries(self, status: Optional[str] = None, position: Optional[str] = None) -> List[dict]:
        """All applications, newest first, optionally filtered."""
        sql = f"SELECT {SUMMARY_COLUMNS} FROM applications WHERE 1=1"
        params = {}

        if status:
            sql += " AND status = :status"
            params["status"] = validate_status(status)
        if position:
            sql += " AND position = :position"
            params["position"] = position

        sql += " ORDER BY submitted_at DESC, id DESC"
        with translate_db_errors("List applications"), self.db.session() as s:
            rows = s.execute(text(sql), params).fetchall()
        return [_row_to_dict(r) for r in rows]

    def get_by_id(self, app_id: int) -> dict:
        ensure_id(app_id)
        with translate_db_errors("Fetch application"), self.db.session() as s:
            row = s.execute(
                text(f"SELECT {DETAIL_COLUMNS} FROM applications WHERE id = :id"),
                {"id": app_id}
            ).fetchone()
        if row is None:
            raise NotFoundError("Application not found")
        return _row_to_dict(row)

    def update_status(self, app_id: int, status: str, notes: Optional[str] = None) -> dict:
        """Set status and notes. Any status may follow any other."""
        validate_status(status)
        ensure_id(app_id)
        with translate_db_errors("Update application status"), self.db.session() as s:
            row = s.execute(
                text(f"""
                    UPDATE applications SET status = :status, notes = :notes
                    WHERE id = :id
                    RETURNING {DETAIL_COLUMNS}
                """),
                {"status": status, "notes": notes, "id": app_id}
            ).fetchone()
        if row is None:
            raise NotFoundError("Application not found")
        logger.info("Application %s status set to %s", app_id, status)
        return _row_to_dict(row)

    def delete(self, app_id: int) -> None:
        ensure_id(app_id)
        with translate_db_errors("Delete application"), self.db.session() as s:
            result = s.execute(
                text("DELETE FROM applications WHERE id = :id RETURNING id"),
                {"id": app_id}
            )
            deleted = result.fetchone()
        if deleted is None:
            raise NotFoundError("Application not found")
        logger.info("Application %s deleted", app_id)

    def get_attachment(self, app_id: int, kind: AttachmentKind) -> Attachment:
        ensure_id(app_id)
        prefix = kind.column_prefix
        with translate_db_errors("Fetch attachment"), self.db.session() as s:
            row = s.execute(
                text(f"""
                    SELECT {prefix}_data AS data, {prefix}_filename AS filename,
                           {prefix}_mimetype AS mimetype
                    FROM applications WHERE id = :id
                """),
                {"id": app_id}
            ).fetchone()
        if row is None:
            raise NotFoundError("Application not found")
        if row.data is None or not row.filename:
            raise NotFoundError("File not found")
        return Attachment(
            data=bytes(row.data),
            filename=row.filename,
            mimetype=row.mimetype or "application/octet-stream",
        )

    def list_attachments(self) -> List[dict]:
        """File browser listing: metadata for rows that carry any blob."""
        with translate_db_errors("List files"), self.db.session() as s:
            rows = s.execute(text("""
                SELECT id AS application_id, full_name,
                       cv_filename, cv_mimetype, octet_length(cv_data) AS cv_size,
                       cover_letter_filename, cover_letter_mimetype,
                       octet_length(cover_letter_data) AS cover_letter_size,
                       submitted_at
                FROM applications
                WHERE cv_data IS NOT NULL OR cover_letter_data IS NOT NULL
                ORDER BY submitted_at DESC, id DESC
            """)).fetchall()
        return [dict(r._mapping) for r in rows]
