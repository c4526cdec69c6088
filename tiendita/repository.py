"""Database repositories for account and catalog data."""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncIterator

import psycopg
from psycopg.rows import tuple_row
from psycopg_pool import AsyncConnectionPool

from .domain.account import Account, Address, decode_addresses, encode_addresses
from .domain.catalog import Item
from .domain.contracts import CreateAccountInput, ItemInput
from .domain.errors import PersistenceError

logger = logging.getLogger(__name__)

SCHEMA_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS items (
        id SERIAL PRIMARY KEY,
        "availableItems" INTEGER NOT NULL,
        brand VARCHAR(255) NOT NULL,
        "defaultImageURL" VARCHAR(255) NOT NULL,
        "defaultName" VARCHAR(255) NOT NULL,
        price DOUBLE PRECISION NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS users (
        id SERIAL PRIMARY KEY,
        name VARCHAR(255) NOT NULL,
        email VARCHAR(255) NOT NULL,
        password VARCHAR(255) NOT NULL,
        "isAdmin" BOOLEAN NOT NULL DEFAULT FALSE,
        addresses TEXT
    )
    """,
)

_ACCOUNT_COLUMNS = 'id, name, email, password, "isAdmin", addresses'
_ITEM_COLUMNS = 'id, "availableItems", brand, "defaultImageURL", "defaultName", price'


async def ensure_schema(pool: AsyncConnectionPool) -> None:
    """Create the ``items`` and ``users`` tables when they do not exist yet."""
    async with pool.connection() as conn:
        async with conn.cursor() as cur:
            for statement in SCHEMA_STATEMENTS:
                await cur.execute(statement)
        await conn.commit()
    logger.info("database schema ensured")


class _PoolRepository:
    """Shared connection handling; storage failures surface as ``PersistenceError``."""

    def __init__(self, pool: AsyncConnectionPool) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool

    @asynccontextmanager
    async def _cursor(self) -> AsyncIterator[psycopg.AsyncCursor]:
        try:
            async with self._pool.connection() as conn:
                async with conn.cursor(row_factory=tuple_row) as cur:
                    yield cur
                await conn.commit()
        except psycopg.Error as exc:
            raise PersistenceError(f"{type(self).__name__}: {exc.__class__.__name__}") from exc


class AccountRepository(_PoolRepository):
    """Postgres-backed persistence for user accounts and their address lists."""

    async def find_by_email(self, email: str) -> Account | None:
        """Return the first account registered with ``email`` or ``None``."""
        async with self._cursor() as cur:
            await cur.execute(
                f"SELECT {_ACCOUNT_COLUMNS} FROM users WHERE email = %s ORDER BY id LIMIT 1",
                (email,),
            )
            row = await cur.fetchone()
        return self._map_record(row) if row else None

    async def find_by_id(self, account_id: int) -> Account | None:
        """Fetch an account by identifier or return ``None``."""
        async with self._cursor() as cur:
            await cur.execute(f"SELECT {_ACCOUNT_COLUMNS} FROM users WHERE id = %s", (account_id,))
            row = await cur.fetchone()
        return self._map_record(row) if row else None

    async def update_addresses(self, account_id: int, addresses: list[Address]) -> bool:
        """Replace the stored address list in one statement; ``False`` when the account is gone."""
        async with self._cursor() as cur:
            await cur.execute(
                "UPDATE users SET addresses = %s WHERE id = %s",
                (encode_addresses(addresses), account_id),
            )
            updated = cur.rowcount
        return updated > 0

    async def create_account(self, payload: CreateAccountInput) -> Account:
        """Insert a new account and return it with its assigned id."""
        async with self._cursor() as cur:
            await cur.execute(
                f"""
                INSERT INTO users (name, email, password)
                VALUES (%s, %s, %s)
                RETURNING {_ACCOUNT_COLUMNS}
                """,
                (payload.name, payload.email, payload.password_hash),
            )
            row = await cur.fetchone()
        return self._map_record(row)

    async def list_accounts(self) -> list[Account]:
        async with self._cursor() as cur:
            await cur.execute(f"SELECT {_ACCOUNT_COLUMNS} FROM users ORDER BY id")
            rows = await cur.fetchall()
        return [self._map_record(row) for row in rows]

    def _map_record(self, row: tuple) -> Account:
        """Convert a raw database tuple into the domain ``Account`` dataclass."""
        try:
            addresses = decode_addresses(row[5])
        except (ValueError, KeyError, TypeError) as exc:
            raise PersistenceError(f"undecodable address payload for account {row[0]}") from exc
        return Account(
            id=row[0],
            name=row[1],
            email=row[2],
            password_hash=row[3],
            is_admin=bool(row[4]),
            addresses=addresses,
        )


class ItemRepository(_PoolRepository):
    """Postgres-backed persistence for catalog items."""

    async def list_items(self) -> list[Item]:
        async with self._cursor() as cur:
            await cur.execute(f"SELECT {_ITEM_COLUMNS} FROM items ORDER BY id")
            rows = await cur.fetchall()
        return [Item(*row) for row in rows]

    async def search_items(self, name: str) -> list[Item]:
        """Return items whose default name contains ``name``."""
        async with self._cursor() as cur:
            await cur.execute(
                f'SELECT {_ITEM_COLUMNS} FROM items WHERE "defaultName" LIKE %s ORDER BY id',
                (f"%{name}%",),
            )
            rows = await cur.fetchall()
        return [Item(*row) for row in rows]

    async def create_item(self, payload: ItemInput) -> Item:
        async with self._cursor() as cur:
            await cur.execute(
                f"""
                INSERT INTO items ("availableItems", brand, "defaultImageURL", "defaultName", price)
                VALUES (%s, %s, %s, %s, %s)
                RETURNING {_ITEM_COLUMNS}
                """,
                (
                    payload.available_items,
                    payload.brand,
                    payload.default_image_url,
                    payload.default_name,
                    payload.price,
                ),
            )
            row = await cur.fetchone()
        return Item(*row)

    async def update_item(self, item_id: int, payload: ItemInput) -> bool:
        """Overwrite every field of an item; ``False`` when no row matched."""
        async with self._cursor() as cur:
            await cur.execute(
                """
                UPDATE items
                SET "availableItems" = %s, brand = %s, "defaultImageURL" = %s, "defaultName" = %s, price = %s
                WHERE id = %s
                """,
                (
                    payload.available_items,
                    payload.brand,
                    payload.default_image_url,
                    payload.default_name,
                    payload.price,
                    item_id,
                ),
            )
            updated = cur.rowcount
        return updated > 0
