from pydantic import BaseModel
from typing import Dict, List, Optional
from datetime import datetime

from shoe_store.models import RoleEnum


SENDER_KINDS = {
    RoleEnum.GRUZCHIK: "gruzchik",
    RoleEnum.ADMIN: "admin",
}


class MessageCreate(BaseModel):
    text: Optional[str] = None
    attachments: Optional[List[str]] = None
    is_service: bool = False


class MessageRead(BaseModel):
    id: int
    text: Optional[str] = None
    sender: str
    sender_name: str
    sender_id: int
    timestamp: datetime
    is_service: bool
    attachments: Optional[List[str]] = None

    @classmethod
    def from_orm_with_sender(cls, message):
        return cls(
            id=message.id,
            text=message.text,
            sender=SENDER_KINDS.get(message.user.role, "client"),
            sender_name=message.user.display_name,
            sender_id=message.user.id,
            timestamp=message.created_at,
            is_service=message.is_service,
            attachments=message.attachments,
        )


class UnreadCount(BaseModel):
    unread_count: int
    total_messages: int


class OrderUnreadCounts(BaseModel):
    unread_counts: Dict[int, UnreadCount]


class MarkReadResult(BaseModel):
    marked: int


class ApprovalStatus(BaseModel):
    is_approved: bool
    approved_at: Optional[datetime] = None


class ApproveItemResult(BaseModel):
    success: bool
    approved_at: Optional[datetime] = None


class MessageCount(BaseModel):
    total_messages: int
    has_messages: bool


class OrderMessagesData(BaseModel):
    items_with_messages: List[int]
    total_items: int
    items_with_messages_count: int
    items_without_messages_count: int
    message_counts: Dict[int, MessageCount]
    unread_counts: Dict[int, UnreadCount]
    approval_statuses: Dict[int, ApprovalStatus]
    items_needing_approval: List[int]
    is_fully_approved: bool
