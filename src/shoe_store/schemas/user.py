from pydantic import BaseModel
from typing import Optional

from shoe_store.models import RoleEnum


class UserShort(BaseModel):
    id: int
    name: Optional[str] = None
    phone: str
    role: RoleEnum
    label: Optional[str] = None

    class Config:
        from_attributes = True
