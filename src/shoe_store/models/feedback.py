import enum
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, Enum, UniqueConstraint, func
from sqlalchemy.orm import relationship
from ..db.base import Base, utcnow


class FeedbackTypeEnum(str, enum.Enum):
    WRONG_SIZE = "WRONG_SIZE"
    WRONG_ITEM = "WRONG_ITEM"
    AGREE_REPLACEMENT = "AGREE_REPLACEMENT"


# отказ клиента от позиции: такие позиции не входят в сумму заказа
REFUSAL_TYPES = (FeedbackTypeEnum.WRONG_SIZE, FeedbackTypeEnum.WRONG_ITEM)


class OrderItemFeedback(Base):
    """Отзыв клиента по позиции. Один отзыв каждого типа от пользователя."""

    __tablename__ = "order_item_feedbacks"
    __table_args__ = (
        UniqueConstraint("order_item_id", "user_id", "feedback_type", name="uq_order_item_feedbacks_item_user_type"),
    )

    id = Column(Integer, primary_key=True, index=True)
    order_item_id = Column(Integer, ForeignKey("order_items.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    feedback_type = Column(Enum(FeedbackTypeEnum, name="feedback_type"), nullable=False)
    refusal_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), default=utcnow, nullable=False)

    order_item = relationship("OrderItem", back_populates="feedbacks")
    user = relationship("User")
