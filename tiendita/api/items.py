"""HTTP route definitions for the item catalog."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from ..domain.catalog import CatalogService, Item, ItemRejected
from ..domain.errors import ErrorKind, PersistenceError
from .deps import get_catalog_service
from .errors import internal_error
from .routes import MessageResponse, REQUIRED_FIELDS_MESSAGE

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/items", tags=["items"])


class ItemRequest(BaseModel):
    """Item fields as posted by clients; presence is checked by the service."""

    model_config = ConfigDict(populate_by_name=True)

    available_items: int | None = Field(default=None, alias="availableItems")
    brand: str | None = None
    default_image_url: str | None = Field(default=None, alias="defaultImageURL")
    default_name: str | None = Field(default=None, alias="defaultName")
    price: float | None = None


class ItemResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    available_items: int = Field(alias="availableItems")
    brand: str
    default_image_url: str = Field(alias="defaultImageURL")
    default_name: str = Field(alias="defaultName")
    price: float

    @classmethod
    def from_domain(cls, item: Item) -> "ItemResponse":
        return cls(
            id=item.id,
            available_items=item.available_items,
            brand=item.brand,
            default_image_url=item.default_image_url,
            default_name=item.default_name,
            price=item.price,
        )


@router.get("", response_model=list[ItemResponse])
async def list_items(service: CatalogService = Depends(get_catalog_service)):
    try:
        items = await service.list_items()
    except PersistenceError:
        logger.exception("listing items failed")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Error al obtener los items"},
        )
    return [ItemResponse.from_domain(item) for item in items]


@router.get("/{name}", response_model=list[ItemResponse])
async def search_items(name: str, service: CatalogService = Depends(get_catalog_service)):
    """Return items whose default name contains ``name``."""
    try:
        items = await service.search_items(name)
    except PersistenceError:
        logger.exception("item search failed")
        return internal_error()
    return [ItemResponse.from_domain(item) for item in items]


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def create_item(payload: ItemRequest, service: CatalogService = Depends(get_catalog_service)):
    result = await service.create_item(payload.model_dump())
    if isinstance(result, ItemRejected):
        return _rejection(result)
    return MessageResponse(message="Item registrado correctamente")


@router.put("/{item_id}", response_model=MessageResponse)
async def update_item(
    item_id: int,
    payload: ItemRequest,
    service: CatalogService = Depends(get_catalog_service),
):
    result = await service.update_item(item_id, payload.model_dump())
    if isinstance(result, ItemRejected):
        return _rejection(result)
    return MessageResponse(message="Item actualizado correctamente")


def _rejection(result: ItemRejected) -> JSONResponse:
    if result.reason is ErrorKind.validation_error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=REQUIRED_FIELDS_MESSAGE)
    if result.reason is ErrorKind.not_found:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item no encontrado")
    return internal_error()
