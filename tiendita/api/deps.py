"""FastAPI dependencies resolving services and session credentials."""

from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..domain.catalog import CatalogService
from ..domain.errors import TokenExpiredError, TokenInvalidError
from ..domain.service import AccountService, AddressMutator, AuthenticationService
from ..security.tokens import SessionClaims, SessionTokenIssuer

logger = logging.getLogger(__name__)

TOKEN_EXPIRED_MESSAGE = "Token expirado"
TOKEN_INVALID_MESSAGE = "Token inválido"

bearer_scheme = HTTPBearer(auto_error=False)


def get_authentication_service(request: Request) -> AuthenticationService:
    """Resolve the `AuthenticationService` stored on the FastAPI application state."""
    service: AuthenticationService = request.app.state.authentication_service
    return service


def get_address_mutator(request: Request) -> AddressMutator:
    mutator: AddressMutator = request.app.state.address_mutator
    return mutator


def get_account_service(request: Request) -> AccountService:
    service: AccountService = request.app.state.account_service
    return service


def get_catalog_service(request: Request) -> CatalogService:
    service: CatalogService = request.app.state.catalog_service
    return service


def get_token_issuer(request: Request) -> SessionTokenIssuer:
    issuer: SessionTokenIssuer = request.app.state.token_issuer
    return issuer


def require_session(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    issuer: SessionTokenIssuer = Depends(get_token_issuer),
) -> SessionClaims:
    """Validate the bearer token of a protected route from its signature alone."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=TOKEN_INVALID_MESSAGE,
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return issuer.verify(credentials.credentials)
    except TokenExpiredError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=TOKEN_EXPIRED_MESSAGE,
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc
    except TokenInvalidError as exc:
        logger.info("rejected session token: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=TOKEN_INVALID_MESSAGE,
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc
