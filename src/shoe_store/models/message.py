from sqlalchemy import Column, Integer, Text, Boolean, DateTime, JSON, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship
from ..db.base import Base, utcnow


class OrderItemMessage(Base):
    """Сообщение в переписке по позиции заказа. Только добавляется."""

    __tablename__ = "order_item_messages"

    id = Column(Integer, primary_key=True, index=True)
    order_item_id = Column(Integer, ForeignKey("order_items.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    text = Column(Text, nullable=True)
    attachments = Column(JSON, nullable=True)  # список ссылок на файлы
    is_service = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), default=utcnow, nullable=False)

    # связи
    order_item = relationship("OrderItem", back_populates="messages")
    user = relationship("User")
    reads = relationship("OrderItemMessageRead", back_populates="message", cascade="all, delete-orphan")


class OrderItemMessageRead(Base):
    """Отметка о прочтении сообщения конкретным пользователем."""

    __tablename__ = "order_item_message_reads"
    __table_args__ = (
        UniqueConstraint("message_id", "user_id", name="uq_order_item_message_reads_message_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    message_id = Column(Integer, ForeignKey("order_item_messages.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), default=utcnow, nullable=False)

    message = relationship("OrderItemMessage", back_populates="reads")
