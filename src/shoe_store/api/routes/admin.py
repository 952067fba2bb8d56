from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from shoe_store.access import Action
from shoe_store.api.deps import require
from shoe_store.crud.order import (
    add_order_item,
    admin_update_order,
    bulk_delete_orders,
    delete_order_item,
    list_admin_orders,
)
from shoe_store.db.session import get_async_session
from shoe_store.models import User
from shoe_store.schemas.order import (
    AdminOrderRead,
    AdminOrdersList,
    AdminOrderUpdate,
    BulkDeleteRequest,
    BulkDeleteResult,
    OrderItemCreate,
    OrderItemWithRelations,
    OrderRead,
)
from shoe_store.schemas.user import UserShort


router = APIRouter(prefix="/admin/orders", tags=["admin"])


@router.get("/", response_model=AdminOrdersList)
async def list_orders(
    user: User = Depends(require(Action.admin_manage_orders)),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Последние заказы со счётчиком непрочитанных сообщений и список грузчиков.
    """
    orders, gruzchiks = await list_admin_orders(db, user)
    return AdminOrdersList(
        orders=[
            AdminOrderRead.from_orm_with_user(
                order,
                gruzchik=UserShort.model_validate(order.gruzchik) if order.gruzchik else None,
                unread_message_count=unread,
            )
            for order, unread in orders
        ],
        gruzchiks=[UserShort.model_validate(g) for g in gruzchiks],
    )


@router.post("/bulk-delete", response_model=BulkDeleteResult)
async def bulk_delete(
    payload: BulkDeleteRequest,
    user: User = Depends(require(Action.bulk_delete_orders)),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Удаляет заказы пачкой. Несуществующие id пропускаются.
    """
    deleted = await bulk_delete_orders(db, payload.ids)
    return BulkDeleteResult(deleted=deleted)


@router.patch("/{order_id}", response_model=OrderRead)
async def patch_order(
    order_in: AdminOrderUpdate,
    order_id: int = Path(..., description="ID заказа"),
    user: User = Depends(require(Action.admin_manage_orders)),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Частичное обновление заказа.
    Поддерживаемые поля: status, gruzchik_id, label, payment.
    """
    order = await admin_update_order(db, order_id, order_in)
    return OrderRead.from_orm_with_user(order)


@router.post("/{order_id}/items", response_model=OrderItemWithRelations, status_code=201)
async def add_item(
    item_in: OrderItemCreate,
    order_id: int = Path(..., description="ID заказа"),
    user: User = Depends(require(Action.admin_manage_orders)),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Добавляет товар в заказ и пересчитывает сумму.
    """
    item = await add_order_item(db, order_id, item_in)
    return OrderItemWithRelations.model_validate(item)


@router.delete("/{order_id}/items/{item_id}", response_model=OrderRead)
async def remove_item(
    order_id: int = Path(..., description="ID заказа"),
    item_id: int = Path(..., description="ID позиции"),
    user: User = Depends(require(Action.admin_manage_orders)),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Удаляет позицию и пересчитывает сумму заказа.
    """
    order = await delete_order_item(db, order_id, item_id)
    return OrderRead.from_orm_with_user(order)
