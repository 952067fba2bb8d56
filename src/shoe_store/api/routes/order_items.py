from typing import List

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from shoe_store.access import Action
from shoe_store.api.deps import require
from shoe_store.crud.feedback import create_feedback, list_feedbacks
from shoe_store.crud.message import (
    approve_item,
    create_message,
    get_approval_status,
    get_item_unread_count,
    list_messages,
    mark_item_read,
)
from shoe_store.crud.order_item import set_availability, set_purchase
from shoe_store.crud.replacement import answer_replacement
from shoe_store.db.session import get_async_session
from shoe_store.models import User
from shoe_store.schemas.feedback import (
    FeedbackCreate,
    FeedbackCreated,
    FeedbackRead,
    ReplacementAnswer,
    ReplacementRead,
)
from shoe_store.schemas.message import (
    ApprovalStatus,
    ApproveItemResult,
    MarkReadResult,
    MessageCreate,
    MessageRead,
    UnreadCount,
)
from shoe_store.schemas.order import AvailabilityUpdate, OrderItemWithRelations, PurchaseUpdate


router = APIRouter(prefix="/order-items", tags=["order-items"])


@router.get("/{item_id}/messages", response_model=List[MessageRead])
async def get_messages(
    item_id: int = Path(..., description="ID позиции заказа"),
    user: User = Depends(require(Action.view_messages)),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Переписка по позиции заказа, старые сообщения первыми.
    """
    messages = await list_messages(db, user, item_id)
    return [MessageRead.from_orm_with_sender(m) for m in messages]


@router.post("/{item_id}/messages", response_model=MessageRead, status_code=201)
async def post_message(
    message_in: MessageCreate,
    item_id: int = Path(..., description="ID позиции заказа"),
    user: User = Depends(require(Action.post_message)),
    db: AsyncSession = Depends(get_async_session),
):
    message = await create_message(db, user, item_id, message_in)
    return MessageRead.from_orm_with_sender(message)


@router.post("/{item_id}/messages/read", response_model=MarkReadResult)
async def mark_messages_read(
    item_id: int = Path(..., description="ID позиции заказа"),
    user: User = Depends(require(Action.read_messages)),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Отмечает прочитанными все чужие сообщения позиции.
    Возвращает количество новых отметок.
    """
    marked = await mark_item_read(db, user, item_id)
    return MarkReadResult(marked=marked)


@router.get("/{item_id}/messages/unread-count", response_model=UnreadCount)
async def get_unread_count(
    item_id: int = Path(..., description="ID позиции заказа"),
    user: User = Depends(require(Action.read_messages)),
    db: AsyncSession = Depends(get_async_session),
):
    unread, total = await get_item_unread_count(db, user, item_id)
    return UnreadCount(unread_count=unread, total_messages=total)


@router.post("/{item_id}/approve", response_model=ApproveItemResult)
async def approve_item_endpoint(
    item_id: int = Path(..., description="ID позиции заказа"),
    user: User = Depends(require(Action.approve_item)),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Клиент одобряет позицию. Заказ должен быть в статусе «Согласование».
    """
    success, approved_at = await approve_item(db, user, item_id)
    return ApproveItemResult(success=success, approved_at=approved_at)


@router.get("/{item_id}/approval", response_model=ApprovalStatus)
async def get_item_approval(
    item_id: int = Path(..., description="ID позиции заказа"),
    user: User = Depends(require(Action.view_item_approval)),
    db: AsyncSession = Depends(get_async_session),
):
    is_approved, approved_at = await get_approval_status(db, user, item_id)
    return ApprovalStatus(is_approved=is_approved, approved_at=approved_at)


@router.patch("/{item_id}/availability", response_model=OrderItemWithRelations)
async def update_availability(
    payload: AvailabilityUpdate,
    item_id: int = Path(..., description="ID позиции заказа"),
    user: User = Depends(require(Action.set_availability)),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Наличие товара: true / false / null.
    false снимает товар с витрины, true возвращает, null только сбрасывает отметку.
    """
    item = await set_availability(db, user, item_id, payload.is_available)
    return OrderItemWithRelations.model_validate(item)


@router.patch("/{item_id}/purchase", response_model=OrderItemWithRelations)
async def update_purchase(
    payload: PurchaseUpdate,
    item_id: int = Path(..., description="ID позиции заказа"),
    user: User = Depends(require(Action.set_purchase)),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Выкуп позиции: true / false / null. Только назначенный грузчик.
    """
    item = await set_purchase(db, user, item_id, payload.is_purchased)
    return OrderItemWithRelations.model_validate(item)


@router.post("/{item_id}/feedback", response_model=FeedbackCreated, status_code=201)
async def post_feedback(
    feedback_in: FeedbackCreate,
    item_id: int = Path(..., description="ID позиции заказа"),
    user: User = Depends(require(Action.leave_feedback)),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Отзыв клиента: WRONG_SIZE / WRONG_ITEM (отказ, позиция уходит из суммы)
    или AGREE_REPLACEMENT. Повтор того же типа: 409.
    """
    feedback, order_total = await create_feedback(db, user, item_id, feedback_in)
    return FeedbackCreated(feedback=FeedbackRead.model_validate(feedback), order_total=order_total)


@router.get("/{item_id}/feedback", response_model=List[FeedbackRead])
async def get_feedback(
    item_id: int = Path(..., description="ID позиции заказа"),
    user: User = Depends(require(Action.view_feedback)),
    db: AsyncSession = Depends(get_async_session),
):
    feedbacks = await list_feedbacks(db, user, item_id)
    return [FeedbackRead.model_validate(f) for f in feedbacks]


@router.post("/{item_id}/replacement/response", response_model=ReplacementRead)
async def respond_to_replacement(
    answer: ReplacementAnswer,
    item_id: int = Path(..., description="ID позиции заказа"),
    user: User = Depends(require(Action.answer_replacement)),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Клиент принимает (ACCEPTED) или отклоняет (REJECTED) предложенную замену.
    """
    replacement = await answer_replacement(db, user, item_id, answer)
    return ReplacementRead.model_validate(replacement)
