from __future__ import annotations

from dataclasses import asdict, dataclass, field
import json
from typing import Any


@dataclass(slots=True, frozen=True)
class Address:
    """Postal address; identified only by its position in the owner's list."""

    street: str
    city: str
    country: str


@dataclass(slots=True)
class Account:
    """User record as stored in the ``users`` table."""

    id: int
    name: str
    email: str
    password_hash: str = field(repr=False)
    is_admin: bool = False
    addresses: list[Address] = field(default_factory=list)


def decode_addresses(raw: str | None) -> list[Address]:
    """Parse the persisted address payload; ``None`` or blank means no addresses yet."""
    if raw is None or not raw.strip():
        return []
    data: Any = json.loads(raw)
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValueError("address payload must be a JSON array")
    return [Address(street=item["street"], city=item["city"], country=item["country"]) for item in data]


def encode_addresses(addresses: list[Address]) -> str:
    """Serialise the whole address list into the single text column."""
    return json.dumps([asdict(address) for address in addresses], ensure_ascii=False)
