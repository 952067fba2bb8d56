import logging
from decimal import Decimal
from typing import List, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from shoe_store.crud.order import recalculate_order_totals
from shoe_store.exceptions import ConflictError, NotFoundError, ORDER_ITEM_NOT_FOUND
from shoe_store.models import Order, OrderItem, OrderItemFeedback, REFUSAL_TYPES, User
from shoe_store.schemas.feedback import FeedbackCreate

logger = logging.getLogger(__name__)


async def get_client_item(db: AsyncSession, user: User, item_id: int) -> OrderItem:
    """
    Позиция из заказа этого клиента, иначе 404.
    """
    stmt = (
        select(OrderItem)
        .join(Order, Order.id == OrderItem.order_id)
        .where(OrderItem.id == item_id, Order.user_id == user.id)
    )
    item = (await db.execute(stmt)).scalars().first()
    if not item:
        raise NotFoundError(ORDER_ITEM_NOT_FOUND)
    return item


async def _get_feedback(db: AsyncSession, feedback_id: int) -> OrderItemFeedback:
    stmt = (
        select(OrderItemFeedback)
        .where(OrderItemFeedback.id == feedback_id)
        .options(selectinload(OrderItemFeedback.user))
    )
    return (await db.execute(stmt)).scalar_one()


async def create_feedback(
    db: AsyncSession, user: User, item_id: int, feedback_in: FeedbackCreate
) -> Tuple[OrderItemFeedback, Decimal]:
    """
    Клиент оставляет отзыв по позиции: не тот размер, не тот товар
    или согласие на замену. Повтор того же типа даёт 409.

    Отказ (WRONG_SIZE / WRONG_ITEM) убирает позицию из суммы заказа:
    сумма пересчитывается в той же транзакции.
    Возвращает отзыв и итоговую сумму заказа.
    """
    item = await get_client_item(db, user, item_id)

    duplicate = await db.execute(
        select(OrderItemFeedback.id).where(
            OrderItemFeedback.order_item_id == item.id,
            OrderItemFeedback.user_id == user.id,
            OrderItemFeedback.feedback_type == feedback_in.feedback_type,
        )
    )
    if duplicate.first():
        raise ConflictError("Отзыв этого типа уже оставлен")

    feedback = OrderItemFeedback(
        order_item_id=item.id,
        user_id=user.id,
        feedback_type=feedback_in.feedback_type,
        refusal_reason=feedback_in.refusal_reason or None,
    )
    db.add(feedback)

    order = await db.get(Order, item.order_id)
    try:
        await db.flush()
        if feedback_in.feedback_type in REFUSAL_TYPES:
            await recalculate_order_totals(db, order)
        await db.commit()
    except IntegrityError:
        # параллельный запрос успел записать такой же отзыв
        await db.rollback()
        raise ConflictError("Отзыв этого типа уже оставлен")

    logger.info(
        "Feedback %s (%s) on item %s by client %s, order %s total=%s",
        feedback.id, feedback.feedback_type.value, item.id, user.id, order.id, order.total,
    )
    return await _get_feedback(db, feedback.id), order.total


async def list_feedbacks(db: AsyncSession, user: User, item_id: int) -> List[OrderItemFeedback]:
    """
    Отзывы по позиции, новые первыми.
    """
    item = await get_client_item(db, user, item_id)
    stmt = (
        select(OrderItemFeedback)
        .where(OrderItemFeedback.order_item_id == item.id)
        .options(selectinload(OrderItemFeedback.user))
        .order_by(OrderItemFeedback.created_at.desc(), OrderItemFeedback.id.desc())
    )
    return (await db.execute(stmt)).scalars().all()
