# controller/item_controller.py
from typing import List
from fastapi import APIRouter, Depends, status
from controller.controller_dependencies import get_item_service, rate_limiter
from model.api import CreateItemRequest
from model.item import Item
from service.item_service import ItemService
from util.constants import InternalURIs

item_router = APIRouter(dependencies=[Depends(rate_limiter)])


@item_router.post(
    InternalURIs.ITEMS, response_model=Item, status_code=status.HTTP_201_CREATED
)
async def create_item(
    payload: CreateItemRequest, service: ItemService = Depends(get_item_service)
) -> Item:
    return await service.create(payload)


@item_router.get(InternalURIs.ITEMS, response_model=List[Item])
async def list_items(service: ItemService = Depends(get_item_service)) -> List[Item]:
    return await service.list()


@item_router.get(InternalURIs.ITEM, response_model=Item)
async def get_item(item_id: str, service: ItemService = Depends(get_item_service)) -> Item:
    return await service.get(item_id)


@item_router.delete(InternalURIs.ITEM, status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(item_id: str, service: ItemService = Depends(get_item_service)):
    await service.delete(item_id)
