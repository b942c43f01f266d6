"""
GeoPatrol Backend — FastAPI Dependencies
==========================================

What:  Per-request wiring: services built from the handles on app.state,
       and the bearer-token gate for protected routes.

Session Token Verifier:
    get_current_courier is the only way into the report routes. It runs
    before the handler body, so a request without a valid token never
    reaches the Report Store or the Blob Store.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from geopatrol.config import Settings
from geopatrol.database import get_db_session
from geopatrol.exceptions import InvalidTokenError, MissingTokenError
from geopatrol.schemas.auth import TokenPayload
from geopatrol.services.auth_service import AuthService
from geopatrol.services.blob_base import BlobStore
from geopatrol.services.report_service import ReportService
from geopatrol.services.token_service import TokenService

# auto_error=False: we raise our own 403s with the app's messages
bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_blob_store(request: Request) -> BlobStore:
    return request.app.state.blob_store


async def get_current_courier(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    token_service: TokenService = Depends(get_token_service),
) -> TokenPayload:
    """
    Resolve the courier behind `Authorization: Bearer <token>`.

    Raises:
        MissingTokenError: no Authorization header at all
        InvalidTokenError: header present but not a bearer credential,
                           or the token fails verification
    """
    if credentials is None:
        if request.headers.get("Authorization") is None:
            raise MissingTokenError()
        raise InvalidTokenError(context={"reason": "not a bearer credential"})

    return token_service.verify(credentials.credentials)


def get_auth_service(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    token_service: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(
        db=db,
        token_service=token_service,
        hasher=request.app.state.password_hasher,
        uniform_login_error=settings.uniform_login_error,
    )


def get_report_service(
    db: AsyncSession = Depends(get_db_session),
    blob_store: BlobStore = Depends(get_blob_store),
    settings: Settings = Depends(get_settings),
) -> ReportService:
    return ReportService(db=db, blob_store=blob_store, max_upload_size=settings.max_upload_size)
