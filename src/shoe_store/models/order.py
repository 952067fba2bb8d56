import enum
from sqlalchemy import Column, Integer, String, Numeric, Text, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from ..db.base import Base, utcnow


class OrderStatusEnum(str, enum.Enum):
    new = "Новый"
    availability = "Наличие"
    checked = "Проверено"
    approval = "Согласование"
    approved = "Согласован"
    to_buy = "Купить"
    bought = "Куплен"
    to_send = "Отправить"
    ready_to_send = "Готов к отправке"
    sent = "Отправлен"
    completed = "Выполнен"
    cancelled = "Отменен"


STATUS_DESCRIPTIONS = {
    OrderStatusEnum.new: "New order",
    OrderStatusEnum.availability: "Checking availability",
    OrderStatusEnum.checked: "Verified/Checked",
    OrderStatusEnum.approval: "Approval/Coordination",
    OrderStatusEnum.approved: "Approved/Coordinated",
    OrderStatusEnum.to_buy: "To Buy",
    OrderStatusEnum.bought: "Bought/Purchased",
    OrderStatusEnum.to_send: "To Send/Dispatch",
    OrderStatusEnum.ready_to_send: "Ready for Dispatch",
    OrderStatusEnum.sent: "Sent/Dispatched",
    OrderStatusEnum.completed: "Completed/Fulfilled",
    OrderStatusEnum.cancelled: "Canceled",
}

VALID_STATUSES = {s.value for s in OrderStatusEnum}
STATUS_MAX_LENGTH = 32


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(32), nullable=False, unique=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    gruzchik_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    # статус хранится строкой: канонические значения в OrderStatusEnum
    status = Column(String(STATUS_MAX_LENGTH), nullable=False, default=OrderStatusEnum.new.value)
    label = Column(String(255), nullable=True)
    payment = Column(Numeric(12, 2), nullable=False, default=0)
    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    total = Column(Numeric(12, 2), nullable=False, default=0)
    full_name = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True)
    address = Column(Text, nullable=True)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), default=utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), default=utcnow, onupdate=utcnow, nullable=False
    )

    # связи
    user = relationship("User", back_populates="orders", foreign_keys=[user_id])
    gruzchik = relationship("User", foreign_keys=[gruzchik_id])
    items = relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id"
    )
