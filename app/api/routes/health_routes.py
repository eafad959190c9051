"""
Health Routes

GET /health - Liveness, no database access
GET /db-check - Database reachability and server time
POST /fix-db - Run schema reconciliation on demand (admin)
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.api.deps import get_db
from app.core.auth import require_admin
from app.db.postgres import Database
from app.schemas.schemas import DbCheckResponse, HealthResponse, ReconcileResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health_check():
    return HealthResponse(status="OK", timestamp=datetime.now(timezone.utc))


@router.get("/db-check", response_model=DbCheckResponse)
def db_check(db: Database = Depends(get_db)):
    """Always answers with a structured status, 503 when the database is down."""
    try:
        db_time = db.server_time()
    except Exception as e:
        logger.warning("Database check failed: %s", e)
        body = DbCheckResponse(status="ERROR", database="Disconnected", error="Database unreachable")
        return JSONResponse(status_code=503, content=body.model_dump(mode="json"))
    return DbCheckResponse(status="OK", database="Connected", db_time=db_time)


@router.post("/fix-db", response_model=ReconcileResponse)
def fix_db(db: Database = Depends(get_db), admin: str = Depends(require_admin)):
    """Reconcile the applications table with the expected columns and indexes."""
    report = db.reconcile()
    logger.info("Schema reconciliation requested by %s: %s", admin, report.as_dict())
    body = ReconcileResponse(
        success=report.ok,
        created_table=report.created_table,
        added_columns=report.added_columns,
        failed_columns=report.failed_columns,
        indexes_ok=report.indexes_ok,
        error=report.error,
    )
    if not report.ok:
        return JSONResponse(status_code=500, content=body.model_dump(mode="json"))
    return body
