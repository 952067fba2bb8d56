import logging
import math
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import Integer, cast, exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from shoe_store.access import order_scope, owner_or_assignee_scope
from shoe_store.config import settings
from shoe_store.db.base import utcnow
from shoe_store.exceptions import (
    InvalidInputError,
    NotFoundError,
    ORDER_ITEM_NOT_FOUND,
    ORDER_NOT_FOUND,
    PRODUCT_NOT_FOUND,
)
from shoe_store.models import (
    Order,
    OrderItem,
    OrderItemFeedback,
    OrderItemMessage,
    OrderItemMessageRead,
    OrderStatusEnum,
    Product,
    REFUSAL_TYPES,
    RoleEnum,
    STATUS_MAX_LENGTH,
    User,
    VALID_STATUSES,
)
from shoe_store.schemas.order import AdminOrderUpdate, GruzchikOrderUpdate, OrderCreate, OrderItemCreate

logger = logging.getLogger(__name__)


def _order_options():
    return (
        selectinload(Order.items),
        selectinload(Order.user),
        selectinload(Order.gruzchik),
    )


def box_price(product: Product) -> Decimal:
    """
    Цена коробки: цена пары × количество размеров в коробке.
    Если размеры не указаны, считаем одну пару.
    """
    pairs = len(product.sizes) if isinstance(product.sizes, list) else 0
    return Decimal(product.price_pair) * (pairs if pairs > 0 else 1)


def _check_status(order_id: int, status: Optional[str]) -> str:
    """
    Статус вне перехода «Согласование» → «Согласован» пишется как есть.
    Пустое значение и строка длиннее колонки отклоняются.
    """
    if not status or not status.strip():
        raise InvalidInputError("Статус не может быть пустым")
    if len(status) > STATUS_MAX_LENGTH:
        raise InvalidInputError(f"Статус длиннее {STATUS_MAX_LENGTH} символов")
    if status not in VALID_STATUSES:
        logger.warning("Order %s gets non-standard status %r", order_id, status)
    return status


async def get_order_by_id(db: AsyncSession, order_id: int) -> Optional[Order]:
    """
    Возвращает заказ по ID с подгруженными items, user и gruzchik.
    """
    stmt = (
        select(Order)
        .where(Order.id == order_id)
        .options(*_order_options())
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    return result.scalars().unique().first()


async def get_order_for_user(db: AsyncSession, user: User, order_id: int) -> Order:
    """
    Заказ, видимый пользователю. Чужой и несуществующий заказ неразличимы.
    """
    stmt = (
        select(Order)
        .where(Order.id == order_id, order_scope(user))
        .options(*_order_options())
    )
    result = await db.execute(stmt)
    order = result.scalars().unique().first()
    if not order:
        raise NotFoundError(ORDER_NOT_FOUND)
    return order


async def list_client_orders(db: AsyncSession, user: User) -> List[Order]:
    stmt = (
        select(Order)
        .where(Order.user_id == user.id)
        .options(*_order_options())
        .order_by(Order.created_at.desc(), Order.id.desc())
    )
    result = await db.execute(stmt)
    return result.scalars().unique().all()


async def list_gruzchik_orders(
    db: AsyncSession,
    user: User,
    page: int = 1,
    limit: Optional[int] = None,
    status: Optional[str] = None,
) -> Tuple[List[Order], dict]:
    """
    Заказы, назначенные грузчику, с пагинацией и фильтром по статусу.
    """
    limit = limit or settings.GRUZCHIK_ORDERS_PAGE_SIZE
    page = max(page, 1)

    conditions = [Order.gruzchik_id == user.id]
    if status:
        conditions.append(Order.status == status)

    stmt = (
        select(Order)
        .where(*conditions)
        .options(*_order_options())
        .order_by(Order.created_at.desc(), Order.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    result = await db.execute(stmt)
    orders = result.scalars().unique().all()

    total = (await db.execute(select(func.count(Order.id)).where(*conditions))).scalar_one()

    pagination = {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": math.ceil(total / limit) if total else 0,
    }
    return orders, pagination


async def count_unread_by_order(db: AsyncSession, user_id: int, order_ids: Iterable[int]) -> dict:
    """
    Непрочитанные пользователем сообщения (без служебных и без своих),
    сгруппированные по заказу.
    """
    order_ids = list(order_ids)
    if not order_ids:
        return {}

    already_read = exists().where(
        OrderItemMessageRead.message_id == OrderItemMessage.id,
        OrderItemMessageRead.user_id == user_id,
    )
    stmt = (
        select(OrderItem.order_id, func.count(OrderItemMessage.id).label("unread"))
        .join(OrderItemMessage, OrderItemMessage.order_item_id == OrderItem.id)
        .where(
            OrderItem.order_id.in_(order_ids),
            OrderItemMessage.is_service.is_(False),
            OrderItemMessage.user_id != user_id,
            ~already_read,
        )
        .group_by(OrderItem.order_id)
    )
    result = await db.execute(stmt)
    return {row.order_id: int(row.unread) for row in result.all()}


async def list_admin_orders(db: AsyncSession, admin: User, limit: Optional[int] = None):
    """
    Последние заказы для админки со счётчиком непрочитанных сообщений
    и список грузчиков для назначения.
    """
    stmt = (
        select(Order)
        .options(*_order_options())
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(limit or settings.ADMIN_ORDERS_LIMIT)
    )
    result = await db.execute(stmt)
    orders = result.scalars().unique().all()

    unread = await count_unread_by_order(db, admin.id, [o.id for o in orders])

    gruzchiks_result = await db.execute(
        select(User).where(User.role == RoleEnum.GRUZCHIK).order_by(User.name, User.id)
    )
    gruzchiks = gruzchiks_result.scalars().all()

    return [(order, unread.get(order.id, 0)) for order in orders], gruzchiks


async def next_order_number(db: AsyncSession) -> str:
    """
    Следующий последовательный номер заказа (10000, 10001, ...).
    """
    result = await db.execute(select(func.max(cast(Order.order_number, Integer))))
    last = result.scalar()
    start = settings.ORDER_NUMBER_START
    if last is None or last < start:
        return str(start)
    return str(last + 1)


def _next_item_code(order: Order, existing: Iterable[OrderItem]) -> str:
    suffixes = []
    for item in existing:
        if item.item_code and "-" in item.item_code:
            tail = item.item_code.rsplit("-", 1)[1]
            if tail.isdigit():
                suffixes.append(int(tail))
    return f"{order.order_number}-{max(suffixes, default=0) + 1}"


async def _load_products(db: AsyncSession, product_ids: Iterable[int]) -> dict:
    result = await db.execute(select(Product).where(Product.id.in_(set(product_ids))))
    return {p.id: p for p in result.scalars().all()}


def _make_item(product: Product, item_in: OrderItemCreate, item_code: str) -> OrderItem:
    return OrderItem(
        product_id=product.id,
        slug=product.slug,
        name=product.name,
        article=product.article,
        color=item_in.color,
        qty=item_in.qty,
        price_box=box_price(product),
        item_code=item_code,
    )


async def create_order(db: AsyncSession, user: User, order_in: OrderCreate) -> Order:
    """
    Оформляет заказ клиента: фиксирует цены коробок, номер заказа и коды позиций.
    """
    products = await _load_products(db, (i.product_id for i in order_in.items))
    missing = {i.product_id for i in order_in.items} - products.keys()
    if missing:
        raise InvalidInputError(PRODUCT_NOT_FOUND)

    order = Order(
        order_number=await next_order_number(db),
        user_id=user.id,
        status=OrderStatusEnum.new.value,
        full_name=order_in.full_name,
        phone=order_in.phone or user.phone,
        address=order_in.address,
        comment=order_in.comment,
    )

    items = []
    for item_in in order_in.items:
        items.append(_make_item(products[item_in.product_id], item_in, _next_item_code(order, items)))
    order.items = items
    order.subtotal = order.total = sum((i.line_total for i in items), Decimal("0"))

    db.add(order)
    await db.commit()
    logger.info("Order %s created by user %s, total=%s", order.order_number, user.id, order.total)

    return await get_order_by_id(db, order.id)


async def approve_order(db: AsyncSession, user: User, order_id: int) -> Order:
    """
    Подтверждение заказа клиентом (или назначенным грузчиком):
    «Согласование» → «Согласован». При любом несоответствии «Заказ не найден».
    """
    stmt = select(Order).where(
        Order.id == order_id,
        owner_or_assignee_scope(user),
        Order.status == OrderStatusEnum.approval.value,
    )
    order = (await db.execute(stmt)).scalars().first()
    if not order:
        raise NotFoundError(ORDER_NOT_FOUND)

    order.status = OrderStatusEnum.approved.value
    order.updated_at = utcnow()
    await db.commit()
    logger.info("Order %s approved by user %s", order.id, user.id)

    return await get_order_by_id(db, order.id)


async def gruzchik_update_order(
    db: AsyncSession, user: User, order_id: int, order_in: GruzchikOrderUpdate
) -> Order:
    """
    Грузчик меняет метку, оплату и статус назначенного ему заказа.
    Граф переходов не проверяется: статус пишется как есть.
    """
    update_data = order_in.model_dump(exclude_unset=True)
    if not update_data:
        raise InvalidInputError("Не переданы поля для обновления")

    stmt = select(Order).where(Order.id == order_id, Order.gruzchik_id == user.id)
    order = (await db.execute(stmt)).scalars().first()
    if not order:
        raise NotFoundError(ORDER_NOT_FOUND)

    if "status" in update_data:
        _check_status(order.id, update_data["status"])
    if "payment" in update_data and update_data["payment"] is None:
        update_data["payment"] = Decimal("0")

    for key, value in update_data.items():
        setattr(order, key, value)

    await db.commit()
    logger.info("Order %s updated by gruzchik %s: %s", order.id, user.id, sorted(update_data))

    return await get_order_by_id(db, order.id)


async def admin_update_order(db: AsyncSession, order_id: int, order_in: AdminOrderUpdate) -> Order:
    """
    Обновление заказа администратором: статус, грузчик, метка, оплата.
    """
    update_data = order_in.model_dump(exclude_unset=True)
    if not update_data:
        raise InvalidInputError("Не переданы поля для обновления")

    order = await db.get(Order, order_id)
    if not order:
        raise NotFoundError(ORDER_NOT_FOUND)

    if "status" in update_data:
        _check_status(order.id, update_data["status"])

    if update_data.get("gruzchik_id") is not None:
        gruzchik = await db.get(User, update_data["gruzchik_id"])
        if not gruzchik or gruzchik.role != RoleEnum.GRUZCHIK:
            raise InvalidInputError("Грузчик не найден")

    if "payment" in update_data and update_data["payment"] is None:
        update_data["payment"] = Decimal("0")

    for key, value in update_data.items():
        setattr(order, key, value)

    await db.commit()
    logger.info("Order %s updated by admin: %s", order.id, sorted(update_data))

    return await get_order_by_id(db, order.id)


async def bulk_delete_orders(db: AsyncSession, order_ids: List[int]) -> int:
    """
    Удаляет заказы пачкой вместе с позициями и всем, что к ним привязано.
    Несуществующие id пропускаются. Возвращает число удалённых заказов.
    """
    if not order_ids:
        raise InvalidInputError("Не передан список заказов")

    stmt = (
        select(Order)
        .where(Order.id.in_(set(order_ids)))
        .options(
            selectinload(Order.items).selectinload(OrderItem.messages).selectinload(OrderItemMessage.reads),
            selectinload(Order.items).selectinload(OrderItem.feedbacks),
            selectinload(Order.items).selectinload(OrderItem.replacements),
        )
    )
    orders = (await db.execute(stmt)).scalars().unique().all()
    for order in orders:
        await db.delete(order)
    await db.commit()

    logger.info("Bulk delete: requested=%s deleted=%s", len(order_ids), len(orders))
    return len(orders)


async def recalculate_order_totals(db: AsyncSession, order: Order) -> Decimal:
    """
    Пересчитывает subtotal и total заказа как сумму price_box × qty позиций,
    от которых клиент не отказался (нет отзыва WRONG_SIZE / WRONG_ITEM).
    Изменения не коммитит.
    """
    refused = exists().where(
        OrderItemFeedback.order_item_id == OrderItem.id,
        OrderItemFeedback.feedback_type.in_(REFUSAL_TYPES),
    )
    result = await db.execute(
        select(OrderItem.price_box, OrderItem.qty).where(OrderItem.order_id == order.id, ~refused)
    )
    total = sum((Decimal(row.price_box) * row.qty for row in result.all()), Decimal("0"))
    total = total.quantize(Decimal("0.01"))
    order.subtotal = total
    order.total = total
    return total


async def add_order_item(db: AsyncSession, order_id: int, item_in: OrderItemCreate) -> OrderItem:
    """
    Добавляет товар в заказ (админка) и пересчитывает сумму заказа.
    """
    order = await get_order_by_id(db, order_id)
    if not order:
        raise NotFoundError(ORDER_NOT_FOUND)

    product = await db.get(Product, item_in.product_id)
    if not product:
        raise NotFoundError(PRODUCT_NOT_FOUND)

    item = _make_item(product, item_in, _next_item_code(order, order.items))
    item.order_id = order.id
    db.add(item)
    await db.flush()

    total = await recalculate_order_totals(db, order)
    await db.commit()
    logger.info("Item %s added to order %s, new total=%s", item.id, order.id, total)

    result = await db.execute(
        select(OrderItem)
        .where(OrderItem.id == item.id)
        .options(selectinload(OrderItem.order), selectinload(OrderItem.product))
    )
    return result.scalar_one()


async def delete_order_item(db: AsyncSession, order_id: int, item_id: int) -> Order:
    """
    Удаляет позицию заказа вместе с перепиской и пересчитывает сумму заказа.
    """
    stmt = (
        select(OrderItem)
        .where(OrderItem.id == item_id, OrderItem.order_id == order_id)
        .options(
            selectinload(OrderItem.messages).selectinload(OrderItemMessage.reads),
            selectinload(OrderItem.feedbacks),
            selectinload(OrderItem.replacements),
        )
    )
    item = (await db.execute(stmt)).scalars().first()
    if not item:
        raise NotFoundError(ORDER_ITEM_NOT_FOUND)

    order = await db.get(Order, order_id)
    await db.delete(item)
    await db.flush()

    total = await recalculate_order_totals(db, order)
    await db.commit()
    logger.info("Item %s removed from order %s, new total=%s", item_id, order_id, total)

    return await get_order_by_id(db, order_id)
