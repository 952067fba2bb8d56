import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from shoe_store.access import order_scope
from shoe_store.db.base import utcnow
from shoe_store.exceptions import ForbiddenError, NotFoundError, ORDER_ITEM_NOT_FOUND
from shoe_store.models import Order, OrderItem, User

logger = logging.getLogger(__name__)


async def get_item_for_user(db: AsyncSession, user: User, item_id: int) -> OrderItem:
    """
    Позиция заказа, видимая пользователю (через права на сам заказ).
    """
    stmt = (
        select(OrderItem)
        .join(Order, Order.id == OrderItem.order_id)
        .where(OrderItem.id == item_id, order_scope(user))
        .options(selectinload(OrderItem.order))
    )
    item = (await db.execute(stmt)).scalars().first()
    if not item:
        raise NotFoundError(ORDER_ITEM_NOT_FOUND)
    return item


async def _get_item_with_relations(db: AsyncSession, item_id: int) -> Optional[OrderItem]:
    stmt = (
        select(OrderItem)
        .where(OrderItem.id == item_id)
        .options(selectinload(OrderItem.order), selectinload(OrderItem.product))
    )
    return (await db.execute(stmt)).scalars().first()


async def set_availability(db: AsyncSession, user: User, item_id: int, is_available: Optional[bool]) -> OrderItem:
    """
    Отмечает наличие товара по позиции заказа.

    False снимает товар с витрины (Product.is_active = False), True возвращает.
    None только сбрасывает отметку позиции и товар не трогает.
    Товар общий для всех заказов: побеждает последняя запись.
    Позиция и товар пишутся одной транзакцией.
    """
    item = await _get_item_with_relations(db, item_id)
    if not item:
        raise NotFoundError(ORDER_ITEM_NOT_FOUND)

    item.is_available = is_available
    if is_available is not None:
        item.product.is_active = is_available
        item.product.active_updated_at = utcnow()

    await db.commit()
    logger.info(
        "Item %s availability=%s set by user %s (product %s is_active=%s)",
        item.id, is_available, user.id, item.product_id, item.product.is_active,
    )

    return await _get_item_with_relations(db, item.id)


async def set_purchase(db: AsyncSession, user: User, item_id: int, is_purchased: Optional[bool]) -> OrderItem:
    """
    Отмечает выкуп позиции. Менять может только грузчик, назначенный на заказ.
    """
    item = await _get_item_with_relations(db, item_id)
    if not item:
        raise NotFoundError(ORDER_ITEM_NOT_FOUND)
    if item.order.gruzchik_id != user.id:
        raise ForbiddenError("Заказ назначен другому грузчику")

    item.is_purchased = is_purchased
    await db.commit()
    logger.info("Item %s purchased=%s set by gruzchik %s", item.id, is_purchased, user.id)

    return await _get_item_with_relations(db, item.id)
