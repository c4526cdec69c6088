from __future__ import annotations

import asyncio

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from tiendita.api import items, routes
from tiendita.api.errors import register_exception_handlers
from tiendita.config import Settings
from tiendita.domain.account import Account, Address, decode_addresses, encode_addresses
from tiendita.domain.catalog import Item
from tiendita.domain.contracts import CreateAccountInput, ItemInput
from tiendita.domain.errors import PersistenceError
from tiendita.main import wire_services
from tiendita.security.passwords import CredentialHasher
from tiendita.security.tokens import SessionTokenIssuer

TEST_SECRET = "test-signing-secret-for-the-suite-0001"
TEST_ISSUER = "tiendita.tests"


class FakeAccountRepository:
    """In-memory repository mimicking the Postgres ``users`` table.

    Addresses are kept as serialised text, exactly as the real column stores them.
    """

    def __init__(self) -> None:
        self._rows: dict[int, dict] = {}
        self._seq = 0
        self.fail = False
        self.yield_after_read = False
        self.lookups = 0

    def seed(
        self,
        *,
        email: str,
        password_hash: str,
        name: str = "Cliente",
        addresses_raw: str | None = None,
        account_id: int | None = None,
    ) -> int:
        if account_id is None:
            self._seq += 1
            account_id = self._seq
        else:
            self._seq = max(self._seq, account_id)
        self._rows[account_id] = {
            "id": account_id,
            "name": name,
            "email": email,
            "password": password_hash,
            "isAdmin": False,
            "addresses": addresses_raw,
        }
        return account_id

    def raw_addresses(self, account_id: int) -> str | None:
        return self._rows[account_id]["addresses"]

    def stored_addresses(self, account_id: int) -> list[Address]:
        return decode_addresses(self.raw_addresses(account_id))

    def delete(self, account_id: int) -> None:
        del self._rows[account_id]

    def _check(self) -> None:
        if self.fail:
            raise PersistenceError("database unavailable")

    def _to_account(self, row: dict) -> Account:
        return Account(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            password_hash=row["password"],
            is_admin=row["isAdmin"],
            addresses=decode_addresses(row["addresses"]),
        )

    async def find_by_email(self, email: str):
        self._check()
        self.lookups += 1
        for row in sorted(self._rows.values(), key=lambda r: r["id"]):
            if row["email"] == email:
                return self._to_account(row)
        return None

    async def find_by_id(self, account_id: int):
        self._check()
        self.lookups += 1
        row = self._rows.get(account_id)
        if row is None:
            return None
        account = self._to_account(row)
        if self.yield_after_read:
            await asyncio.sleep(0)
        return account

    async def update_addresses(self, account_id: int, addresses: list[Address]) -> bool:
        self._check()
        row = self._rows.get(account_id)
        if row is None:
            return False
        row["addresses"] = encode_addresses(addresses)
        return True

    async def create_account(self, payload: CreateAccountInput) -> Account:
        self._check()
        account_id = self.seed(
            name=payload.name, email=payload.email, password_hash=payload.password_hash
        )
        return self._to_account(self._rows[account_id])

    async def list_accounts(self) -> list[Account]:
        self._check()
        return [self._to_account(row) for _, row in sorted(self._rows.items())]


class FakeItemRepository:
    """In-memory stand-in for the ``items`` table."""

    def __init__(self) -> None:
        self.items: dict[int, Item] = {}
        self._seq = 0
        self.fail = False

    def _check(self) -> None:
        if self.fail:
            raise PersistenceError("database unavailable")

    async def list_items(self) -> list[Item]:
        self._check()
        return [self.items[key] for key in sorted(self.items)]

    async def search_items(self, name: str) -> list[Item]:
        self._check()
        return [item for item in await self.list_items() if name in item.default_name]

    async def create_item(self, payload: ItemInput) -> Item:
        self._check()
        self._seq += 1
        item = Item(
            id=self._seq,
            available_items=payload.available_items,
            brand=payload.brand,
            default_image_url=payload.default_image_url,
            default_name=payload.default_name,
            price=payload.price,
        )
        self.items[item.id] = item
        return item

    async def update_item(self, item_id: int, payload: ItemInput) -> bool:
        self._check()
        if item_id not in self.items:
            return False
        self.items[item_id] = Item(
            id=item_id,
            available_items=payload.available_items,
            brand=payload.brand,
            default_image_url=payload.default_image_url,
            default_name=payload.default_name,
            price=payload.price,
        )
        return True


@pytest.fixture
def hasher() -> CredentialHasher:
    # minimum bcrypt cost keeps the suite fast
    return CredentialHasher(rounds=4)


@pytest.fixture
def issuer() -> SessionTokenIssuer:
    return SessionTokenIssuer(TEST_SECRET, ttl_seconds=3600, issuer=TEST_ISSUER)


@pytest.fixture
def account_repository() -> FakeAccountRepository:
    return FakeAccountRepository()


@pytest.fixture
def item_repository() -> FakeItemRepository:
    return FakeItemRepository()


@pytest.fixture
def seed_account(account_repository, hasher):
    """Register an account with a real bcrypt hash of ``password``."""

    def _seed(email: str, password: str, **kwargs) -> int:
        digest = asyncio.run(hasher.hash(password))
        return account_repository.seed(email=email, password_hash=digest, **kwargs)

    return _seed


@pytest.fixture
def api_client(account_repository, item_repository):
    """Provide a FastAPI test client wired to in-memory repositories."""
    settings = Settings(jwt_secret=TEST_SECRET, jwt_issuer=TEST_ISSUER, bcrypt_rounds=4)

    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(routes.router)
    app.include_router(items.router)
    wire_services(app, account_repository, item_repository, settings)

    with TestClient(app) as client:
        yield client
