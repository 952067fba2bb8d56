from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime
from decimal import Decimal

from shoe_store.models import FeedbackTypeEnum, ReplacementStatusEnum
from shoe_store.schemas.user import UserShort


class FeedbackCreate(BaseModel):
    feedback_type: FeedbackTypeEnum
    refusal_reason: Optional[str] = None


class FeedbackRead(BaseModel):
    id: int
    order_item_id: int
    feedback_type: FeedbackTypeEnum
    refusal_reason: Optional[str] = None
    created_at: datetime
    user: UserShort

    class Config:
        from_attributes = True


class FeedbackCreated(BaseModel):
    feedback: FeedbackRead
    # сумма заказа после пересчёта (отказ убирает позицию из суммы)
    order_total: Decimal


class ReplacementCreate(BaseModel):
    replacement_image_url: Optional[str] = Field(None, max_length=1024)
    replacement_image_key: Optional[str] = Field(None, max_length=512)
    admin_comment: Optional[str] = None


class ReplacementUpdate(ReplacementCreate):
    pass


class ReplacementAnswer(BaseModel):
    # клиент может только принять или отклонить
    status: Literal["ACCEPTED", "REJECTED"]
    client_comment: Optional[str] = None


class ReplacementRead(BaseModel):
    id: int
    order_item_id: int
    status: ReplacementStatusEnum
    replacement_image_url: Optional[str] = None
    replacement_image_key: Optional[str] = None
    admin_comment: Optional[str] = None
    client_comment: Optional[str] = None
    created_at: datetime
    admin_user: UserShort
    client_user: UserShort

    class Config:
        from_attributes = True


class ReplacementDeleted(BaseModel):
    id: int
