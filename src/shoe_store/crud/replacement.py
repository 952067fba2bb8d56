import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from shoe_store.crud.feedback import get_client_item
from shoe_store.exceptions import ConflictError, InvalidInputError, NotFoundError, ORDER_ITEM_NOT_FOUND
from shoe_store.models import (
    OrderItem,
    OrderItemMessage,
    OrderItemReplacement,
    ReplacementStatusEnum,
    User,
)
from shoe_store.schemas.feedback import ReplacementAnswer, ReplacementCreate, ReplacementUpdate

logger = logging.getLogger(__name__)

REPLACEMENT_NOT_FOUND = "Предложение замены не найдено или уже закрыто"


def _replacement_options():
    return (
        selectinload(OrderItemReplacement.admin_user),
        selectinload(OrderItemReplacement.client_user),
    )


async def _get_replacement(db: AsyncSession, replacement_id: int) -> OrderItemReplacement:
    stmt = (
        select(OrderItemReplacement)
        .where(OrderItemReplacement.id == replacement_id)
        .options(*_replacement_options())
    )
    return (await db.execute(stmt)).scalar_one()


async def _get_own_pending(
    db: AsyncSession, admin: User, item_id: int, replacement_id: int
) -> OrderItemReplacement:
    # менять и удалять можно только своё предложение, пока клиент не ответил
    stmt = select(OrderItemReplacement).where(
        OrderItemReplacement.id == replacement_id,
        OrderItemReplacement.order_item_id == item_id,
        OrderItemReplacement.admin_user_id == admin.id,
        OrderItemReplacement.status == ReplacementStatusEnum.PENDING,
    )
    replacement = (await db.execute(stmt)).scalars().first()
    if not replacement:
        raise NotFoundError(REPLACEMENT_NOT_FOUND)
    return replacement


async def list_replacements(db: AsyncSession, item_id: int) -> List[OrderItemReplacement]:
    if not await db.get(OrderItem, item_id):
        raise NotFoundError(ORDER_ITEM_NOT_FOUND)

    stmt = (
        select(OrderItemReplacement)
        .where(OrderItemReplacement.order_item_id == item_id)
        .options(*_replacement_options())
        .order_by(OrderItemReplacement.created_at.desc(), OrderItemReplacement.id.desc())
    )
    return (await db.execute(stmt)).scalars().all()


async def propose_replacement(
    db: AsyncSession, admin: User, item_id: int, replacement_in: ReplacementCreate
) -> OrderItemReplacement:
    """
    Администратор предлагает клиенту замену товара по фото.

    На позицию может висеть только одно ожидающее предложение (иначе 409).
    Фото и комментарий дублируются в переписку позиции обычным сообщением,
    чтобы клиент увидел их в чате.
    """
    if not replacement_in.replacement_image_url and not replacement_in.replacement_image_key:
        raise InvalidInputError("Нужно фото замены")

    stmt = select(OrderItem).where(OrderItem.id == item_id).options(selectinload(OrderItem.order))
    item = (await db.execute(stmt)).scalars().first()
    if not item:
        raise NotFoundError(ORDER_ITEM_NOT_FOUND)

    pending = await db.execute(
        select(OrderItemReplacement.id).where(
            OrderItemReplacement.order_item_id == item.id,
            OrderItemReplacement.status == ReplacementStatusEnum.PENDING,
        )
    )
    if pending.first():
        raise ConflictError("По позиции уже есть ожидающее предложение замены")

    replacement = OrderItemReplacement(
        order_item_id=item.id,
        admin_user_id=admin.id,
        client_user_id=item.order.user_id,
        status=ReplacementStatusEnum.PENDING,
        replacement_image_url=replacement_in.replacement_image_url or None,
        replacement_image_key=replacement_in.replacement_image_key or None,
        admin_comment=replacement_in.admin_comment or None,
    )
    db.add(replacement)

    if replacement_in.admin_comment or replacement_in.replacement_image_url:
        db.add(
            OrderItemMessage(
                order_item_id=item.id,
                user_id=admin.id,
                text=replacement_in.admin_comment or None,
                attachments=[replacement_in.replacement_image_url] if replacement_in.replacement_image_url else None,
                is_service=False,
            )
        )

    await db.commit()
    logger.info("Replacement %s proposed on item %s by admin %s", replacement.id, item.id, admin.id)
    return await _get_replacement(db, replacement.id)


async def update_replacement(
    db: AsyncSession, admin: User, item_id: int, replacement_id: int, replacement_in: ReplacementUpdate
) -> OrderItemReplacement:
    replacement = await _get_own_pending(db, admin, item_id, replacement_id)

    replacement.replacement_image_url = replacement_in.replacement_image_url or None
    replacement.replacement_image_key = replacement_in.replacement_image_key or None
    replacement.admin_comment = replacement_in.admin_comment or None

    await db.commit()
    logger.info("Replacement %s updated by admin %s", replacement.id, admin.id)
    return await _get_replacement(db, replacement.id)


async def delete_replacement(db: AsyncSession, admin: User, item_id: int, replacement_id: int) -> None:
    replacement = await _get_own_pending(db, admin, item_id, replacement_id)
    await db.delete(replacement)
    await db.commit()
    logger.info("Replacement %s withdrawn by admin %s", replacement_id, admin.id)


async def answer_replacement(
    db: AsyncSession, user: User, item_id: int, answer: ReplacementAnswer
) -> OrderItemReplacement:
    """
    Клиент принимает или отклоняет ожидающее предложение замены.
    """
    item = await get_client_item(db, user, item_id)

    stmt = select(OrderItemReplacement).where(
        OrderItemReplacement.order_item_id == item.id,
        OrderItemReplacement.client_user_id == user.id,
        OrderItemReplacement.status == ReplacementStatusEnum.PENDING,
    )
    replacement = (await db.execute(stmt)).scalars().first()
    if not replacement:
        raise NotFoundError("Нет ожидающего предложения замены")

    replacement.status = ReplacementStatusEnum(answer.status)
    replacement.client_comment = answer.client_comment or None

    await db.commit()
    logger.info("Replacement %s %s by client %s", replacement.id, replacement.status.value, user.id)
    return await _get_replacement(db, replacement.id)
