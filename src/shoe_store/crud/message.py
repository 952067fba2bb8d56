import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy import and_, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from shoe_store.crud.order import get_order_for_user
from shoe_store.crud.order_item import get_item_for_user
from shoe_store.db.base import utcnow
from shoe_store.exceptions import InvalidInputError, NotFoundError, ORDER_ITEM_NOT_FOUND
from shoe_store.models import (
    Order,
    OrderItem,
    OrderItemMessage,
    OrderItemMessageRead,
    OrderStatusEnum,
    RoleEnum,
    User,
)
from shoe_store.schemas.message import MessageCreate

logger = logging.getLogger(__name__)

# Служебное сообщение-отметка: клиент одобрил товар
APPROVAL_MESSAGE_TEXT = "Товар одобрен клиентом"

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _insert_ignoring_duplicates(db: AsyncSession, model, rows: List[dict], index_elements: List[str]):
    """INSERT ... ON CONFLICT DO NOTHING для текущего диалекта."""
    dialect = db.get_bind().dialect.name
    try:
        insert = _DIALECT_INSERTS[dialect]
    except KeyError:
        raise NotImplementedError(f"Dialect {dialect} is not supported") from None
    return insert(model).values(rows).on_conflict_do_nothing(index_elements=index_elements)


# ---------------------------------------------------------------------------
# Переписка
# ---------------------------------------------------------------------------

async def list_messages(db: AsyncSession, user: User, item_id: int) -> List[OrderItemMessage]:
    """
    Сообщения по позиции заказа в порядке создания.
    """
    await get_item_for_user(db, user, item_id)

    stmt = (
        select(OrderItemMessage)
        .where(OrderItemMessage.order_item_id == item_id)
        .options(selectinload(OrderItemMessage.user))
        .order_by(OrderItemMessage.created_at, OrderItemMessage.id)
    )
    result = await db.execute(stmt)
    return result.scalars().all()


async def create_message(db: AsyncSession, user: User, item_id: int, message_in: MessageCreate) -> OrderItemMessage:
    """
    Добавляет сообщение в переписку. Нужен текст или хотя бы одно вложение.
    """
    if not message_in.text and not message_in.attachments:
        raise InvalidInputError("Нужен текст сообщения или вложения")

    await get_item_for_user(db, user, item_id)

    message = OrderItemMessage(
        order_item_id=item_id,
        user_id=user.id,
        text=message_in.text or None,
        attachments=message_in.attachments or None,
        is_service=message_in.is_service,
    )
    db.add(message)
    await db.commit()
    logger.info("Message %s posted to item %s by user %s", message.id, item_id, user.id)

    result = await db.execute(
        select(OrderItemMessage)
        .where(OrderItemMessage.id == message.id)
        .options(selectinload(OrderItemMessage.user))
    )
    return result.scalar_one()


# ---------------------------------------------------------------------------
# Непрочитанные
# ---------------------------------------------------------------------------

async def unread_counts_for_items(
    db: AsyncSession, user_id: int, item_ids: Iterable[int]
) -> Dict[int, Tuple[int, int]]:
    """
    Для каждой позиции: (непрочитано, всего сообщений от других).

    Свои сообщения не считаются ни в «всего», ни в «непрочитано».
    Два сгруппированных запроса на весь набор позиций.
    """
    item_ids = list(item_ids)
    if not item_ids:
        return {}

    totals_stmt = (
        select(OrderItemMessage.order_item_id, func.count(OrderItemMessage.id).label("total"))
        .where(
            OrderItemMessage.order_item_id.in_(item_ids),
            OrderItemMessage.user_id != user_id,
        )
        .group_by(OrderItemMessage.order_item_id)
    )
    totals = {row.order_item_id: int(row.total) for row in (await db.execute(totals_stmt)).all()}

    read_stmt = (
        select(OrderItemMessage.order_item_id, func.count(OrderItemMessageRead.id).label("read"))
        .select_from(OrderItemMessageRead)
        .join(OrderItemMessage, OrderItemMessage.id == OrderItemMessageRead.message_id)
        .where(
            OrderItemMessage.order_item_id.in_(item_ids),
            OrderItemMessage.user_id != user_id,
            OrderItemMessageRead.user_id == user_id,
        )
        .group_by(OrderItemMessage.order_item_id)
    )
    read = {row.order_item_id: int(row.read) for row in (await db.execute(read_stmt)).all()}

    counts = {}
    for item_id in item_ids:
        total = totals.get(item_id, 0)
        counts[item_id] = (max(0, total - read.get(item_id, 0)), total)
    return counts


async def count_unread(db: AsyncSession, user_id: int, item_id: int) -> Tuple[int, int]:
    counts = await unread_counts_for_items(db, user_id, [item_id])
    return counts[item_id]


async def get_item_unread_count(db: AsyncSession, user: User, item_id: int) -> Tuple[int, int]:
    await get_item_for_user(db, user, item_id)
    return await count_unread(db, user.id, item_id)


async def get_order_unread_counts(db: AsyncSession, user: User, order_id: int) -> Dict[int, Tuple[int, int]]:
    order = await get_order_for_user(db, user, order_id)
    return await unread_counts_for_items(db, user.id, [item.id for item in order.items])


async def mark_as_read(db: AsyncSession, user_id: int, item_id: int) -> int:
    """
    Отмечает прочитанными все чужие сообщения позиции, которые пользователь
    ещё не читал. Повторная отметка той же пары (сообщение, пользователь)
    молча пропускается. Возвращает число новых отметок.
    """
    already_read = (
        select(OrderItemMessageRead.id)
        .where(
            OrderItemMessageRead.message_id == OrderItemMessage.id,
            OrderItemMessageRead.user_id == user_id,
        )
        .exists()
    )
    stmt = select(OrderItemMessage.id).where(
        OrderItemMessage.order_item_id == item_id,
        OrderItemMessage.user_id != user_id,
        ~already_read,
    )
    message_ids = (await db.execute(stmt)).scalars().all()
    if not message_ids:
        return 0

    now = utcnow()
    rows = [{"message_id": mid, "user_id": user_id, "created_at": now} for mid in message_ids]
    result = await db.execute(
        _insert_ignoring_duplicates(db, OrderItemMessageRead, rows, ["message_id", "user_id"])
    )
    await db.commit()

    marked = max(result.rowcount or 0, 0)
    logger.info("User %s marked %s messages read on item %s", user_id, marked, item_id)
    return marked


async def mark_item_read(db: AsyncSession, user: User, item_id: int) -> int:
    await get_item_for_user(db, user, item_id)
    return await mark_as_read(db, user.id, item_id)


# ---------------------------------------------------------------------------
# Согласование позиций
# ---------------------------------------------------------------------------

async def items_needing_approval(db: AsyncSession, item_ids: Iterable[int]) -> Set[int]:
    """
    Позиции, по которым писал не клиент (админ или грузчик).
    Служебные сообщения не учитываются: клиент их не видит.
    """
    item_ids = list(item_ids)
    if not item_ids:
        return set()

    stmt = (
        select(OrderItemMessage.order_item_id)
        .select_from(OrderItemMessage)
        .join(User, User.id == OrderItemMessage.user_id)
        .where(
            OrderItemMessage.order_item_id.in_(item_ids),
            OrderItemMessage.is_service.is_(False),
            User.role != RoleEnum.CLIENT,
        )
        .distinct()
    )
    return set((await db.execute(stmt)).scalars().all())


async def needs_approval(db: AsyncSession, item_id: int) -> bool:
    return item_id in await items_needing_approval(db, [item_id])


async def approval_times(db: AsyncSession, user_id: int, item_ids: Iterable[int]) -> Dict[int, datetime]:
    """
    Время первой отметки об одобрении пользователем по каждой позиции.
    Позиции без отметки в результат не попадают.
    """
    item_ids = list(item_ids)
    if not item_ids:
        return {}

    stmt = (
        select(OrderItemMessage.order_item_id, func.min(OrderItemMessage.created_at).label("approved_at"))
        .where(
            OrderItemMessage.order_item_id.in_(item_ids),
            OrderItemMessage.user_id == user_id,
            OrderItemMessage.is_service.is_(True),
            OrderItemMessage.text == APPROVAL_MESSAGE_TEXT,
        )
        .group_by(OrderItemMessage.order_item_id)
    )
    return {row.order_item_id: row.approved_at for row in (await db.execute(stmt)).all()}


async def _get_client_item(db: AsyncSession, user: User, item_id: int, only_on_approval: bool) -> OrderItem:
    conditions = [OrderItem.id == item_id, Order.user_id == user.id]
    if only_on_approval:
        conditions.append(Order.status == OrderStatusEnum.approval.value)

    stmt = select(OrderItem).join(Order, Order.id == OrderItem.order_id).where(and_(*conditions))
    item = (await db.execute(stmt)).scalars().first()
    if not item:
        raise NotFoundError(
            "Позиция не найдена или заказ не на согласовании" if only_on_approval else ORDER_ITEM_NOT_FOUND
        )
    return item


async def get_approval_status(db: AsyncSession, user: User, item_id: int) -> Tuple[bool, Optional[datetime]]:
    """
    Одобрена ли позиция клиентом: есть ли его служебная отметка.
    """
    item = await _get_client_item(db, user, item_id, only_on_approval=False)
    approved_at = (await approval_times(db, user.id, [item.id])).get(item.id)
    return approved_at is not None, approved_at


async def approve_item(db: AsyncSession, user: User, item_id: int) -> Tuple[bool, Optional[datetime]]:
    """
    Клиент одобряет позицию: в переписку добавляется служебная отметка.
    Статус заказа не меняется. Повторное одобрение отметку не дублирует.
    """
    item = await _get_client_item(db, user, item_id, only_on_approval=True)

    existing = (await approval_times(db, user.id, [item.id])).get(item.id)
    if existing is not None:
        return True, existing

    marker = OrderItemMessage(
        order_item_id=item.id,
        user_id=user.id,
        text=APPROVAL_MESSAGE_TEXT,
        is_service=True,
    )
    db.add(marker)
    await db.commit()
    logger.info("Item %s approved by client %s", item.id, user.id)
    return True, marker.created_at


# ---------------------------------------------------------------------------
# Сводка по заказу
# ---------------------------------------------------------------------------

async def get_order_messages_data(db: AsyncSession, user: User, order_id: int) -> dict:
    """
    Сводка переписки по всем позициям заказа: у каких позиций есть
    сообщения от других, счётчики, непрочитанные и статусы одобрения.
    """
    order = await get_order_for_user(db, user, order_id)
    item_ids = [item.id for item in order.items]

    unread = await unread_counts_for_items(db, user.id, item_ids)
    # одобряет всегда владелец заказа
    approved = await approval_times(db, order.user_id, item_ids)
    pending = await items_needing_approval(db, item_ids)

    items_with_messages = [item_id for item_id in item_ids if unread[item_id][1] > 0]

    return {
        "items_with_messages": items_with_messages,
        "total_items": len(item_ids),
        "items_with_messages_count": len(items_with_messages),
        "items_without_messages_count": len(item_ids) - len(items_with_messages),
        "message_counts": {
            item_id: {"total_messages": total, "has_messages": total > 0}
            for item_id, (_, total) in unread.items()
        },
        "unread_counts": {
            item_id: {"unread_count": count, "total_messages": total}
            for item_id, (count, total) in unread.items()
        },
        "approval_statuses": {
            item_id: {"is_approved": item_id in approved, "approved_at": approved.get(item_id)}
            for item_id in item_ids
        },
        "items_needing_approval": [item_id for item_id in item_ids if item_id in pending],
        "is_fully_approved": not pending,
    }
