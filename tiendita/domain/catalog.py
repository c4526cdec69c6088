"""Catalog item records and their pass-through workflows."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, Any, Mapping, Union

from .contracts import ItemInput
from .errors import ErrorKind, PersistenceError

if TYPE_CHECKING:
    from ..repository import ItemRepository

logger = logging.getLogger(__name__)

ITEM_FIELDS = ("available_items", "brand", "default_image_url", "default_name", "price")


@dataclass(slots=True)
class Item:
    id: int
    available_items: int
    brand: str
    default_image_url: str
    default_name: str
    price: float


@dataclass(slots=True)
class ItemSaved:
    item_id: int


@dataclass(slots=True)
class ItemRejected:
    reason: ErrorKind


ItemResult = Union[ItemSaved, ItemRejected]


def _build_item_input(fields: Mapping[str, Any]) -> ItemInput | None:
    """Return an ``ItemInput`` when every field is present, otherwise ``None``."""
    for name in ITEM_FIELDS:
        value = fields.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
    return ItemInput(**{name: fields[name] for name in ITEM_FIELDS})


class CatalogService:
    """Item CRUD with required-field checks and no further invariants."""

    def __init__(self, repository: "ItemRepository") -> None:
        self._repository = repository

    async def list_items(self) -> list[Item]:
        return await self._repository.list_items()

    async def search_items(self, name: str) -> list[Item]:
        return await self._repository.search_items(name)

    async def create_item(self, fields: Mapping[str, Any]) -> ItemResult:
        payload = _build_item_input(fields)
        if payload is None:
            return ItemRejected(ErrorKind.validation_error)
        try:
            item = await self._repository.create_item(payload)
        except PersistenceError:
            logger.exception("item registration failed")
            return ItemRejected(ErrorKind.persistence_error)
        logger.info("item %s registered", item.id)
        return ItemSaved(item.id)

    async def update_item(self, item_id: int, fields: Mapping[str, Any]) -> ItemResult:
        payload = _build_item_input(fields)
        if payload is None:
            return ItemRejected(ErrorKind.validation_error)
        try:
            updated = await self._repository.update_item(item_id, payload)
        except PersistenceError:
            logger.exception("item %s update failed", item_id)
            return ItemRejected(ErrorKind.persistence_error)
        if not updated:
            return ItemRejected(ErrorKind.not_found)
        logger.info("item %s updated", item_id)
        return ItemSaved(item_id)
