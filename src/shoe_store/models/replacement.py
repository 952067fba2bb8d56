import enum
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum, func
from sqlalchemy.orm import relationship
from ..db.base import Base, utcnow


class ReplacementStatusEnum(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class OrderItemReplacement(Base):
    """
    Предложение замены товара от администратора.
    Хранится только ссылка на фото замены, сам файл лежит во внешнем хранилище.
    """

    __tablename__ = "order_item_replacements"

    id = Column(Integer, primary_key=True, index=True)
    order_item_id = Column(Integer, ForeignKey("order_items.id", ondelete="CASCADE"), nullable=False, index=True)
    admin_user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    client_user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    status = Column(
        Enum(ReplacementStatusEnum, name="replacement_status"),
        nullable=False,
        default=ReplacementStatusEnum.PENDING,
    )
    replacement_image_url = Column(String(1024), nullable=True)
    replacement_image_key = Column(String(512), nullable=True)
    admin_comment = Column(Text, nullable=True)
    client_comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), default=utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), default=utcnow, onupdate=utcnow, nullable=False
    )

    order_item = relationship("OrderItem", back_populates="replacements")
    admin_user = relationship("User", foreign_keys=[admin_user_id])
    client_user = relationship("User", foreign_keys=[client_user_id])
