"""Account workflows: login, address mutation and registration."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Union

from .account import Account, Address
from .contracts import CreateAccountInput
from .errors import ErrorKind, InvalidInputError, PersistenceError
from ..repository import AccountRepository
from ..security.passwords import CredentialHasher
from ..security.tokens import SessionTokenIssuer

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LoginSuccess:
    """Terminal ``Issued`` state of a login attempt."""

    token: str
    expires_in: int
    account_id: int
    email: str


@dataclass(slots=True)
class LoginRejected:
    """Terminal ``Rejected`` state of a login attempt."""

    reason: ErrorKind


LoginResult = Union[LoginSuccess, LoginRejected]


@dataclass(slots=True)
class AddressAdded:
    account_id: int
    addresses: list[Address]


@dataclass(slots=True)
class AddressRejected:
    reason: ErrorKind


AddressResult = Union[AddressAdded, AddressRejected]


@dataclass(slots=True)
class AccountRegistered:
    account_id: int


@dataclass(slots=True)
class RegistrationRejected:
    reason: ErrorKind


RegistrationResult = Union[AccountRegistered, RegistrationRejected]


def _is_blank(value: object) -> bool:
    return not isinstance(value, str) or not value.strip()


class AuthenticationService:
    """Credential verification and session issuance.

    A login moves through ``Received -> Looked Up -> Verified -> Issued`` and may
    leave for ``Rejected`` at any step. An unknown email and a wrong password
    produce the same rejection so callers cannot tell which emails are
    registered.
    """

    def __init__(
        self,
        repository: AccountRepository,
        hasher: CredentialHasher,
        issuer: SessionTokenIssuer,
    ) -> None:
        """Store dependencies used to look up accounts and mint session tokens."""
        self._repository = repository
        self._hasher = hasher
        self._issuer = issuer

    async def login(self, email: str | None, password: str | None) -> LoginResult:
        if not email or not password:
            return LoginRejected(ErrorKind.missing_credentials)

        try:
            account = await self._repository.find_by_email(email)
        except PersistenceError:
            logger.exception("account lookup failed during login")
            return LoginRejected(ErrorKind.persistence_error)
        if account is None:
            logger.info("login rejected: invalid credentials")
            return LoginRejected(ErrorKind.invalid_credentials)

        if not await self._hasher.verify(password, account.password_hash):
            logger.info("login rejected: invalid credentials")
            return LoginRejected(ErrorKind.invalid_credentials)

        session = self._issuer.issue(account.id, account.email)
        logger.info("session issued for account %s", account.id)
        return LoginSuccess(
            token=session.token,
            expires_in=session.expires_in,
            account_id=account.id,
            email=account.email,
        )


class AddressMutator:
    """Appends addresses to an account's stored list.

    The list is read, extended in memory and written back whole. The sequence
    is not atomic: two concurrent appends for the same account can both read
    the same prior list, and the later write drops the earlier entry.
    """

    def __init__(self, repository: AccountRepository) -> None:
        self._repository = repository

    async def add_address(
        self,
        account_id: int,
        street: str | None,
        city: str | None,
        country: str | None,
    ) -> AddressResult:
        """Append one address to the end of the account's list."""
        if _is_blank(street) or _is_blank(city) or _is_blank(country):
            return AddressRejected(ErrorKind.validation_error)

        try:
            account = await self._repository.find_by_id(account_id)
            if account is None:
                return AddressRejected(ErrorKind.not_found)

            addresses = [*account.addresses, Address(street=street, city=city, country=country)]
            if not await self._repository.update_addresses(account_id, addresses):
                # row deleted between read and write
                return AddressRejected(ErrorKind.not_found)
        except PersistenceError:
            logger.exception("address update failed for account %s", account_id)
            return AddressRejected(ErrorKind.persistence_error)

        logger.info("address appended for account %s (%d total)", account_id, len(addresses))
        return AddressAdded(account_id=account_id, addresses=addresses)


class AccountService:
    """Registration and read access to account records."""

    def __init__(self, repository: AccountRepository, hasher: CredentialHasher) -> None:
        self._repository = repository
        self._hasher = hasher

    async def register(
        self, name: str | None, email: str | None, password: str | None
    ) -> RegistrationResult:
        """Hash the password once and persist a new account."""
        if _is_blank(name) or _is_blank(email) or not password:
            return RegistrationRejected(ErrorKind.validation_error)
        try:
            password_hash = await self._hasher.hash(password)
        except InvalidInputError:
            return RegistrationRejected(ErrorKind.validation_error)

        try:
            account = await self._repository.create_account(
                CreateAccountInput(name=name, email=email, password_hash=password_hash)
            )
        except PersistenceError:
            logger.exception("account registration failed")
            return RegistrationRejected(ErrorKind.persistence_error)
        logger.info("account %s registered", account.id)
        return AccountRegistered(account.id)

    async def list_accounts(self) -> list[Account]:
        return await self._repository.list_accounts()

    async def get_account(self, account_id: int) -> Account | None:
        return await self._repository.find_by_id(account_id)
