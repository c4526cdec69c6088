"""HTTP route definitions for accounts, login and sessions."""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from prometheus_client import Counter
from pydantic import BaseModel, ConfigDict, Field

from ..domain.account import Account
from ..domain.errors import ErrorKind, PersistenceError
from ..domain.service import (
    AccountService,
    AddressAdded,
    AddressMutator,
    AuthenticationService,
    LoginSuccess,
    RegistrationRejected,
)
from ..security.tokens import SessionClaims
from .deps import (
    get_account_service,
    get_address_mutator,
    get_authentication_service,
    require_session,
)
from .errors import internal_error

logger = logging.getLogger(__name__)

router = APIRouter()

LOGIN_ATTEMPTS = Counter(
    "tiendita_login_attempts_total",
    "Login attempts by outcome",
    ["outcome"],
)

LOGIN_OK_MESSAGE = "Inicio de sesión exitoso"
MISSING_CREDENTIALS_MESSAGE = "Email y password son obligatorios"
INVALID_CREDENTIALS_MESSAGE = "Credenciales inválidas"
REQUIRED_FIELDS_MESSAGE = "Todos los campos son obligatorios"
USER_NOT_FOUND_MESSAGE = "Usuario no encontrado"
ADDRESS_ADDED_MESSAGE = "Dirección agregada correctamente"
USER_REGISTERED_MESSAGE = "Usuario registrado correctamente"


class MessageResponse(BaseModel):
    message: str


class LoginRequest(BaseModel):
    """Credentials posted to ``/login``; presence is checked by the service."""

    email: str | None = None
    password: str | None = None


class LoginResponse(BaseModel):
    message: str
    token: str


class AddressRequest(BaseModel):
    street: str | None = None
    city: str | None = None
    country: str | None = None


class AddressResponse(BaseModel):
    street: str
    city: str
    country: str


class AccountResponse(BaseModel):
    """Serialised account; the password hash is deliberately not a field."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str
    email: str
    is_admin: bool = Field(alias="isAdmin")
    addresses: list[AddressResponse]

    @classmethod
    def from_domain(cls, account: Account) -> "AccountResponse":
        """Build a response model from the domain record."""
        return cls(
            id=account.id,
            name=account.name,
            email=account.email,
            is_admin=account.is_admin,
            addresses=[
                AddressResponse(street=a.street, city=a.city, country=a.country)
                for a in account.addresses
            ],
        )


class RegisterRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None


class SessionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    account_id: int = Field(alias="accountId")
    email: str
    issued_at: datetime = Field(alias="issuedAt")
    expires_at: datetime = Field(alias="expiresAt")


@router.post("/login", response_model=LoginResponse, tags=["auth"])
async def login(
    payload: LoginRequest,
    service: AuthenticationService = Depends(get_authentication_service),
):
    """Verify credentials and return a one-hour session token."""
    result = await service.login(payload.email, payload.password)
    LOGIN_ATTEMPTS.labels(
        outcome="success" if isinstance(result, LoginSuccess) else result.reason.value
    ).inc()
    if isinstance(result, LoginSuccess):
        return LoginResponse(message=LOGIN_OK_MESSAGE, token=result.token)
    if result.reason is ErrorKind.missing_credentials:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=MISSING_CREDENTIALS_MESSAGE)
    if result.reason is ErrorKind.invalid_credentials:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_CREDENTIALS_MESSAGE)
    return internal_error()


@router.put("/users/{user_id}/addresses", response_model=MessageResponse, tags=["users"])
async def add_address(
    user_id: int,
    payload: AddressRequest,
    mutator: AddressMutator = Depends(get_address_mutator),
):
    """Append an address to the end of the user's address list."""
    result = await mutator.add_address(user_id, payload.street, payload.city, payload.country)
    if isinstance(result, AddressAdded):
        return MessageResponse(message=ADDRESS_ADDED_MESSAGE)
    if result.reason is ErrorKind.validation_error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=REQUIRED_FIELDS_MESSAGE)
    if result.reason is ErrorKind.not_found:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND_MESSAGE)
    return internal_error()


@router.get("/users", response_model=list[AccountResponse], tags=["users"])
async def list_users(service: AccountService = Depends(get_account_service)):
    try:
        accounts = await service.list_accounts()
    except PersistenceError:
        logger.exception("listing accounts failed")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Error al obtener los usuarios"},
        )
    return [AccountResponse.from_domain(account) for account in accounts]


@router.get("/users/{user_id}", response_model=AccountResponse, tags=["users"])
async def get_user(user_id: int, service: AccountService = Depends(get_account_service)):
    try:
        account = await service.get_account(user_id)
    except PersistenceError:
        logger.exception("fetching account %s failed", user_id)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Error al obtener el usuario"},
        )
    if account is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND_MESSAGE)
    return AccountResponse.from_domain(account)


@router.post(
    "/users",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["users"],
)
async def register_user(
    payload: RegisterRequest,
    service: AccountService = Depends(get_account_service),
):
    """Register an account; the password is stored only as a bcrypt digest."""
    result = await service.register(payload.name, payload.email, payload.password)
    if isinstance(result, RegistrationRejected):
        if result.reason is ErrorKind.validation_error:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=REQUIRED_FIELDS_MESSAGE)
        return internal_error()
    return MessageResponse(message=USER_REGISTERED_MESSAGE)


@router.get("/session", response_model=SessionResponse, tags=["auth"])
async def read_session(claims: SessionClaims = Depends(require_session)) -> SessionResponse:
    """Return the claims carried by the caller's bearer token."""
    return SessionResponse(
        account_id=claims.account_id,
        email=claims.email,
        issued_at=claims.issued_at,
        expires_at=claims.expires_at,
    )
