import enum
from sqlalchemy import Column, Integer, String, DateTime, func, Enum
from sqlalchemy.orm import relationship
from ..db.base import Base, utcnow


class RoleEnum(str, enum.Enum):
    ADMIN = "ADMIN"
    CLIENT = "CLIENT"
    PROVIDER = "PROVIDER"
    GRUZCHIK = "GRUZCHIK"
    EXPORT_MANAGER = "EXPORT_MANAGER"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(128), nullable=True)
    phone = Column(String(32), nullable=False, unique=True, index=True)
    role = Column(Enum(RoleEnum, name="user_role"), nullable=False, default=RoleEnum.CLIENT)
    label = Column(String(128), nullable=True)  # пометка администратора
    created_at = Column(DateTime(timezone=True), server_default=func.now(), default=utcnow, nullable=False)

    # связь с заказами
    orders = relationship("Order", back_populates="user", foreign_keys="Order.user_id")

    @property
    def display_name(self) -> str:
        return self.name or self.phone
