from pydantic import BaseModel, Field, StrictBool, conint, field_validator
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from shoe_store.schemas.user import UserShort


class ProductShort(BaseModel):
    id: int
    name: str
    slug: str
    article: Optional[str] = None
    is_active: bool
    active_updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OrderItemRead(BaseModel):
    id: int
    order_id: int
    product_id: int
    slug: Optional[str] = None
    name: Optional[str] = None
    article: Optional[str] = None
    color: Optional[str] = None
    qty: int
    price_box: Decimal
    item_code: Optional[str] = None
    is_available: Optional[bool] = None
    is_purchased: Optional[bool] = None
    line_total: Decimal

    class Config:
        from_attributes = True


class OrderShort(BaseModel):
    id: int
    order_number: str
    user_id: int
    gruzchik_id: Optional[int] = None
    status: str
    total: Decimal

    class Config:
        from_attributes = True


class OrderItemWithRelations(OrderItemRead):
    order: OrderShort
    product: ProductShort


class OrderRead(BaseModel):
    id: int
    order_number: str
    user_id: int
    gruzchik_id: Optional[int] = None
    status: str
    label: Optional[str] = None
    payment: Decimal
    subtotal: Decimal
    total: Decimal
    full_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    comment: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemRead] = []
    user: Optional[UserShort] = None
    count_items: int

    @classmethod
    def from_orm_with_user(cls, order, **extra):
        return cls(
            id=order.id,
            order_number=order.order_number,
            user_id=order.user_id,
            gruzchik_id=order.gruzchik_id,
            status=order.status,
            label=order.label,
            payment=order.payment,
            subtotal=order.subtotal,
            total=order.total,
            full_name=order.full_name,
            phone=order.phone,
            address=order.address,
            comment=order.comment,
            created_at=order.created_at,
            updated_at=order.updated_at,
            items=[OrderItemRead.model_validate(i) for i in order.items],
            user=UserShort.model_validate(order.user) if order.user else None,
            count_items=sum(item.qty for item in order.items),
            **extra,
        )


class AdminOrderRead(OrderRead):
    gruzchik: Optional[UserShort] = None
    unread_message_count: int = 0


class AdminOrdersList(BaseModel):
    orders: List[AdminOrderRead]
    gruzchiks: List[UserShort]


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class GruzchikOrdersPage(BaseModel):
    orders: List[OrderRead]
    pagination: Pagination


class StatusRead(BaseModel):
    value: str
    description: str


class OrderItemCreate(BaseModel):
    product_id: int
    qty: conint(ge=1) = 1
    color: Optional[str] = None


class OrderCreate(BaseModel):
    items: List[OrderItemCreate] = Field(..., min_length=1)
    full_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    comment: Optional[str] = None


class GruzchikOrderUpdate(BaseModel):
    label: Optional[str] = None
    payment: Optional[Decimal] = None
    status: Optional[str] = None

    class Config:
        extra = "forbid"


class AdminOrderUpdate(BaseModel):
    status: Optional[str] = None
    gruzchik_id: Optional[int] = None  # null снимает грузчика
    label: Optional[str] = None
    payment: Optional[Decimal] = None

    @field_validator("gruzchik_id", mode="before")
    @classmethod
    def empty_gruzchik_means_none(cls, value):
        if value == "":
            return None
        return value

    class Config:
        extra = "forbid"


class BulkDeleteRequest(BaseModel):
    ids: List[int]


class BulkDeleteResult(BaseModel):
    deleted: int


class AvailabilityUpdate(BaseModel):
    is_available: Optional[StrictBool]


class PurchaseUpdate(BaseModel):
    is_purchased: Optional[StrictBool]
