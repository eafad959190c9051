"""
Shared fixtures: in-memory store, fake database handle, fake SQLAlchemy
engine for reconciler / migration tests, and a TestClient wired to them.
"""
import base64
import re
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_app_settings, get_db, get_repository
from app.core.auth import AdminGate, LoginThrottle, get_admin_gate
from app.core.config import Settings
from app.db.schema import COLUMNS, ReconcileReport
from app.main import app
from app.schemas.schemas import ApplicationCreate, AttachmentKind
from app.services.application_repository import (
    ensure_id, validate_status, validate_submission
)
from app.core.exceptions import NotFoundError

ADMIN_LOGIN = "admin"
ADMIN_PASSWORD = "correct horse battery staple"


def basic_auth(login: str, password: str) -> dict:
    token = base64.b64encode(f"{login}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


# ============================================================
# In-memory application store
# ============================================================

class InMemoryRepository:
    """Same contract as ApplicationRepository, backed by a dict."""

    def __init__(self):
        self.rows = {}
        self.blobs = {}
        self.insert_error = None
        self._next_id = 1
        self._clock = datetime(2025, 1, 1, tzinfo=timezone.utc)

    def insert(self, record: ApplicationCreate) -> dict:
        validate_submission(record)
        if self.insert_error is not None:
            raise self.insert_error

        app_id = self._next_id
        self._next_id += 1
        self._clock += timedelta(minutes=1)

        row = record.model_dump(exclude={"cv", "cover_letter"})
        row.update(id=app_id, submitted_at=self._clock, status="pending", notes=None)
        for prefix, attachment in (("cv", record.cv), ("cover_letter", record.cover_letter)):
            row[f"has_{prefix}"] = attachment is not None
            row[f"{prefix}_filename"] = attachment.filename if attachment else None
            row[f"{prefix}_mimetype"] = attachment.mimetype if attachment else None
            self.blobs[(app_id, prefix)] = attachment
        self.rows[app_id] = row
        return {"id": app_id, "submitted_at": self._clock}

    def list_summaries(self, status=None, position=None):
        if status:
            validate_status(status)
        rows = sorted(self.rows.values(), key=lambda r: (r["submitted_at"], r["id"]), reverse=True)
        return [
            dict(r) for r in rows
            if (not status or r["status"] == status) and (not position or r["position"] == position)
        ]

    def get_by_id(self, app_id):
        ensure_id(app_id)
        if app_id not in self.rows:
            raise NotFoundError("Application not found")
        return dict(self.rows[app_id])

    def update_status(self, app_id, status, notes=None):
        validate_status(status)
        row = self.get_by_id(app_id)
        self.rows[app_id].update(status=status, notes=notes)
        row.update(status=status, notes=notes)
        return row

    def delete(self, app_id):
        self.get_by_id(app_id)
        del self.rows[app_id]
        self.blobs.pop((app_id, "cv"), None)
        self.blobs.pop((app_id, "cover_letter"), None)

    def get_attachment(self, app_id, kind: AttachmentKind):
        self.get_by_id(app_id)
        attachment = self.blobs.get((app_id, kind.column_prefix))
        if attachment is None:
            raise NotFoundError("File not found")
        return attachment

    def list_attachments(self):
        listing = []
        for row in self.list_summaries():
            cv = self.blobs.get((row["id"], "cv"))
            letter = self.blobs.get((row["id"], "cover_letter"))
            if cv is None and letter is None:
                continue
            listing.append({
                "application_id": row["id"],
                "full_name": row["full_name"],
                "cv_filename": cv.filename if cv else None,
                "cv_mimetype": cv.mimetype if cv else None,
                "cv_size": cv.size if cv else None,
                "cover_letter_filename": letter.filename if letter else None,
                "cover_letter_mimetype": letter.mimetype if letter else None,
                "cover_letter_size": letter.size if letter else None,
                "submitted_at": row["submitted_at"],
            })
        return listing


class FakeDatabase:
    def __init__(self):
        self.reconcile_calls = 0
        self.down = False

    def server_time(self):
        if self.down:
            raise ConnectionError("could not connect to server")
        return datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    def reconcile(self):
        self.reconcile_calls += 1
        return ReconcileReport(indexes_ok=True)


# ============================================================
# Fake SQLAlchemy engine (records statements, simulates schema)
# ============================================================

class FakeResult:
    def __init__(self, scalar=None, rows=None):
        self._scalar = scalar
        self._rows = rows or []

    def scalar(self):
        return self._scalar

    def fetchall(self):
        return list(self._rows)


class FakeConnection:
    ADD_COLUMN = re.compile(r"ADD COLUMN IF NOT EXISTS (\w+)")
    DROP_COLUMN = re.compile(r"DROP COLUMN IF EXISTS (\w+)")
    CREATE_INDEX = re.compile(r"CREATE INDEX IF NOT EXISTS (\w+)")

    def __init__(self, engine):
        self.engine = engine

    def execute(self, statement, params=None):
        sql = str(statement)
        engine = self.engine
        engine.executed.append(sql)

        if "information_schema.tables" in sql:
            return FakeResult(scalar=engine.table_exists)
        if "information_schema.columns" in sql:
            return FakeResult(rows=[(c,) for c in engine.columns])
        if "SELECT version FROM schema_migrations" in sql:
            return FakeResult(rows=[(v,) for v in sorted(engine.migrations)])
        if "INSERT INTO schema_migrations" in sql:
            engine.migrations.add(params["version"])
            return FakeResult()
        if "CREATE TABLE IF NOT EXISTS applications" in sql:
            if not engine.table_exists:
                engine.table_exists = True
                engine.columns = [c.name for c in COLUMNS]
            return FakeResult()

        match = self.ADD_COLUMN.search(sql)
        if match:
            name = match.group(1)
            if name in engine.fail_on:
                raise RuntimeError(f'permission denied to add column "{name}"')
            if name not in engine.columns:
                engine.columns.append(name)
            return FakeResult()

        match = self.DROP_COLUMN.search(sql)
        if match and match.group(1) in engine.columns:
            engine.columns.remove(match.group(1))
            return FakeResult()

        match = self.CREATE_INDEX.search(sql)
        if match:
            engine.indexes.add(match.group(1))
        return FakeResult()


class FakeEngine:
    def __init__(self, table_exists=False, columns=None, fail_on=(), unreachable=False):
        self.table_exists = table_exists
        self.columns = list(columns or [])
        self.fail_on = set(fail_on)
        self.unreachable = unreachable
        self.indexes = set()
        self.migrations = set()
        self.executed = []

    @contextmanager
    def connect(self):
        if self.unreachable:
            raise ConnectionError("could not connect to server: Connection refused")
        yield FakeConnection(self)

    # engine.begin() behaves like connect() for the fake
    begin = connect


@pytest.fixture
def fake_engine():
    return FakeEngine()


# ============================================================
# HTTP client
# ============================================================

@pytest.fixture
def repository():
    return InMemoryRepository()


@pytest.fixture
def database():
    return FakeDatabase()


@pytest.fixture
def admin_gate():
    return AdminGate(ADMIN_LOGIN, password=ADMIN_PASSWORD, throttle=LoginThrottle(max_attempts=100))


@pytest.fixture
def settings():
    return Settings(max_upload_mb=5, admin_login="", admin_password="", admin_password_hash="")


@pytest.fixture
def client(repository, database, admin_gate, settings):
    app.dependency_overrides[get_repository] = lambda: repository
    app.dependency_overrides[get_db] = lambda: database
    app.dependency_overrides[get_admin_gate] = lambda: admin_gate
    app.dependency_overrides[get_app_settings] = lambda: settings
    # No context manager: the lifespan (real database) is not started
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return basic_auth(ADMIN_LOGIN, ADMIN_PASSWORD)
