from typing import List

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from shoe_store.access import Action
from shoe_store.api.deps import require
from shoe_store.crud.message import get_order_messages_data, get_order_unread_counts
from shoe_store.crud.order import approve_order, create_order, get_order_for_user, list_client_orders
from shoe_store.db.session import get_async_session
from shoe_store.models import OrderStatusEnum, STATUS_DESCRIPTIONS, User
from shoe_store.schemas.message import OrderMessagesData, OrderUnreadCounts, UnreadCount
from shoe_store.schemas.order import OrderCreate, OrderRead, StatusRead


router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("/statuses", response_model=List[StatusRead])
async def list_statuses(user: User = Depends(require(Action.view_statuses))):
    """
    Справочник статусов заказа в порядке жизненного цикла.
    """
    return [StatusRead(value=s.value, description=STATUS_DESCRIPTIONS[s]) for s in OrderStatusEnum]


@router.get("/", response_model=List[OrderRead])
async def list_my_orders(
    user: User = Depends(require(Action.list_own_orders)),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Заказы текущего клиента, новые первыми.
    """
    orders = await list_client_orders(db, user)
    return [OrderRead.from_orm_with_user(o) for o in orders]


@router.post("/", response_model=OrderRead, status_code=201)
async def create_order_endpoint(
    order_in: OrderCreate,
    user: User = Depends(require(Action.create_order)),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Оформление заказа клиентом.
    """
    order = await create_order(db, user, order_in)
    return OrderRead.from_orm_with_user(order)


@router.get("/{order_id}", response_model=OrderRead)
async def get_order(
    order_id: int = Path(..., description="ID заказа"),
    user: User = Depends(require(Action.view_order)),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Детализация заказа в пределах видимости пользователя.
    """
    order = await get_order_for_user(db, user, order_id)
    return OrderRead.from_orm_with_user(order)


@router.post("/{order_id}/approve", response_model=OrderRead)
async def approve_order_endpoint(
    order_id: int = Path(..., description="ID заказа"),
    user: User = Depends(require(Action.approve_order)),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Подтверждение заказа: «Согласование» → «Согласован».
    """
    order = await approve_order(db, user, order_id)
    return OrderRead.from_orm_with_user(order)


@router.get("/{order_id}/unread-counts", response_model=OrderUnreadCounts)
async def get_unread_counts(
    order_id: int = Path(..., description="ID заказа"),
    user: User = Depends(require(Action.view_order_unread)),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Непрочитанные сообщения по каждой позиции заказа.
    """
    counts = await get_order_unread_counts(db, user, order_id)
    return OrderUnreadCounts(
        unread_counts={
            item_id: UnreadCount(unread_count=unread, total_messages=total)
            for item_id, (unread, total) in counts.items()
        }
    )


@router.get("/{order_id}/order-data", response_model=OrderMessagesData)
async def get_order_data(
    order_id: int = Path(..., description="ID заказа"),
    user: User = Depends(require(Action.view_order_data)),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Сводка переписки по позициям заказа: сообщения, непрочитанные, одобрения.
    """
    return await get_order_messages_data(db, user, order_id)
