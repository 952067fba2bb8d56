from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, JSON, func
from sqlalchemy.orm import relationship
from ..db.base import Base, utcnow


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    article = Column(String(64), nullable=True)
    price_pair = Column(Numeric(12, 2), nullable=False)  # цена за пару
    sizes = Column(JSON, nullable=True)  # размерный ряд коробки
    is_active = Column(Boolean, default=True, nullable=False)
    active_updated_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), default=utcnow, nullable=False)

    # связь с OrderItem
    order_items = relationship("OrderItem", back_populates="product")
