from .user import User, RoleEnum
from .product import Product
from .order import Order, OrderStatusEnum, STATUS_DESCRIPTIONS, STATUS_MAX_LENGTH, VALID_STATUSES
from .order_item import OrderItem
from .message import OrderItemMessage, OrderItemMessageRead
from .feedback import OrderItemFeedback, FeedbackTypeEnum, REFUSAL_TYPES
from .replacement import OrderItemReplacement, ReplacementStatusEnum

__all__ = [
    "User",
    "RoleEnum",
    "Product",
    "Order",
    "OrderStatusEnum",
    "STATUS_DESCRIPTIONS",
    "STATUS_MAX_LENGTH",
    "VALID_STATUSES",
    "OrderItem",
    "OrderItemMessage",
    "OrderItemMessageRead",
    "OrderItemFeedback",
    "FeedbackTypeEnum",
    "REFUSAL_TYPES",
    "OrderItemReplacement",
    "ReplacementStatusEnum",
]
