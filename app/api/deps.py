"""
Request-scoped dependencies.

The store handle and repository are created once in the app lifespan and
kept on `app.state`; routes reach them only through these functions, so
tests can swap them with `app.dependency_overrides`.
"""

from fastapi import Request

from app.core.config import Settings, get_settings
from app.db.postgres import Database
from app.services.application_repository import ApplicationRepository


def get_db(request: Request) -> Database:
    return request.app.state.db


def get_repository(request: Request) -> ApplicationRepository:
    return request.app.state.repository


def get_app_settings() -> Settings:
    return get_settings()
