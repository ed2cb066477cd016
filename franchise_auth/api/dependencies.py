"""
FastAPI dependencies resolving app-scoped services.

Everything is built once in the app lifespan and stored on app.state.
"""

from __future__ import annotations

from fastapi import Request

from franchise_auth.config import Settings
from franchise_auth.services.admin import AdminService
from franchise_auth.services.auth import AuthService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_admin_service(request: Request) -> AdminService:
    return request.app.state.admin_service
