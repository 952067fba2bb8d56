from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from shoe_store.access import Action
from shoe_store.api.deps import require
from shoe_store.crud.order import gruzchik_update_order, list_gruzchik_orders
from shoe_store.db.session import get_async_session
from shoe_store.models import User
from shoe_store.schemas.order import GruzchikOrderUpdate, GruzchikOrdersPage, OrderRead


router = APIRouter(prefix="/gruzchik/orders", tags=["gruzchik"])


@router.get("/", response_model=GruzchikOrdersPage)
async def list_assigned_orders(
    page: int = Query(1, ge=1, description="Номер страницы"),
    limit: Optional[int] = Query(None, ge=1, le=100, description="Размер страницы"),
    status: Optional[str] = Query(None, description="Фильтр по статусу"),
    user: User = Depends(require(Action.list_assigned_orders)),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Заказы, назначенные текущему грузчику.
    """
    orders, pagination = await list_gruzchik_orders(db, user, page=page, limit=limit, status=status)
    return {
        "orders": [OrderRead.from_orm_with_user(o) for o in orders],
        "pagination": pagination,
    }


@router.patch("/{order_id}", response_model=OrderRead)
async def patch_assigned_order(
    order_in: GruzchikOrderUpdate,
    order_id: int = Path(..., description="ID заказа"),
    user: User = Depends(require(Action.gruzchik_update_order)),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Частичное обновление назначенного заказа.
    Поддерживаемые поля: label, payment, status.
    """
    order = await gruzchik_update_order(db, user, order_id, order_in)
    return OrderRead.from_orm_with_user(order)
