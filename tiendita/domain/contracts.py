"""Domain-level request contracts shared by multiple layers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class CreateAccountInput:
    """Validated inputs required to register an account."""

    name: str
    email: str
    password_hash: str


@dataclass(slots=True)
class ItemInput:
    """Catalog item fields accepted on create and update."""

    available_items: int
    brand: str
    default_image_url: str
    default_name: str
    price: float
