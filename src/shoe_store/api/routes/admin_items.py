from typing import List

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from shoe_store.access import Action
from shoe_store.api.deps import require
from shoe_store.crud.replacement import (
    delete_replacement,
    list_replacements,
    propose_replacement,
    update_replacement,
)
from shoe_store.db.session import get_async_session
from shoe_store.models import User
from shoe_store.schemas.feedback import (
    ReplacementCreate,
    ReplacementDeleted,
    ReplacementRead,
    ReplacementUpdate,
)


router = APIRouter(prefix="/admin/order-items", tags=["admin"])


@router.get("/{item_id}/replacements", response_model=List[ReplacementRead])
async def get_replacements(
    item_id: int = Path(..., description="ID позиции заказа"),
    user: User = Depends(require(Action.manage_replacements)),
    db: AsyncSession = Depends(get_async_session),
):
    """
    История предложений замены по позиции, новые первыми.
    """
    replacements = await list_replacements(db, item_id)
    return [ReplacementRead.model_validate(r) for r in replacements]


@router.post("/{item_id}/replacements", response_model=ReplacementRead, status_code=201)
async def create_replacement(
    replacement_in: ReplacementCreate,
    item_id: int = Path(..., description="ID позиции заказа"),
    user: User = Depends(require(Action.manage_replacements)),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Предложить клиенту замену. Нужна ссылка на фото или ключ файла.
    """
    replacement = await propose_replacement(db, user, item_id, replacement_in)
    return ReplacementRead.model_validate(replacement)


@router.put("/{item_id}/replacements/{replacement_id}", response_model=ReplacementRead)
async def edit_replacement(
    replacement_in: ReplacementUpdate,
    item_id: int = Path(..., description="ID позиции заказа"),
    replacement_id: int = Path(..., description="ID предложения замены"),
    user: User = Depends(require(Action.manage_replacements)),
    db: AsyncSession = Depends(get_async_session),
):
    replacement = await update_replacement(db, user, item_id, replacement_id, replacement_in)
    return ReplacementRead.model_validate(replacement)


@router.delete("/{item_id}/replacements/{replacement_id}", response_model=ReplacementDeleted)
async def withdraw_replacement(
    item_id: int = Path(..., description="ID позиции заказа"),
    replacement_id: int = Path(..., description="ID предложения замены"),
    user: User = Depends(require(Action.manage_replacements)),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Отозвать своё предложение, пока клиент не ответил.
    """
    await delete_replacement(db, user, item_id, replacement_id)
    return ReplacementDeleted(id=replacement_id)
