from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from ..db.base import Base, utcnow


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    slug = Column(String(255), nullable=True)
    name = Column(String(255), nullable=True)
    article = Column(String(64), nullable=True)
    color = Column(String(64), nullable=True)
    qty = Column(Integer, nullable=False, default=1)
    price_box = Column(Numeric(12, 2), nullable=False)  # фиксируется на момент заказа
    item_code = Column(String(64), nullable=True, index=True)
    # None: ещё не проверяли
    is_available = Column(Boolean, nullable=True)
    is_purchased = Column(Boolean, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), default=utcnow, nullable=False)

    # связи
    order = relationship("Order", back_populates="items")
    product = relationship("Product", back_populates="order_items")
    messages = relationship(
        "OrderItemMessage",
        back_populates="order_item",
        cascade="all, delete-orphan",
        order_by="OrderItemMessage.created_at",
    )
    feedbacks = relationship(
        "OrderItemFeedback",
        back_populates="order_item",
        cascade="all, delete-orphan",
    )
    replacements = relationship(
        "OrderItemReplacement",
        back_populates="order_item",
        cascade="all, delete-orphan",
    )

    @property
    def line_total(self):
        return self.price_box * self.qty
