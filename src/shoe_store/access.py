"""
Единая таблица прав: какие роли могут выполнять действие
и какие заказы пользователь вообще «видит».
"""
import enum

from sqlalchemy import false, or_, true

from shoe_store.models import Order, RoleEnum, User


class Action(str, enum.Enum):
    view_statuses = "view_statuses"
    create_order = "create_order"
    list_own_orders = "list_own_orders"
    view_order = "view_order"
    approve_order = "approve_order"
    list_assigned_orders = "list_assigned_orders"
    gruzchik_update_order = "gruzchik_update_order"
    admin_manage_orders = "admin_manage_orders"
    bulk_delete_orders = "bulk_delete_orders"
    view_order_unread = "view_order_unread"
    view_order_data = "view_order_data"
    view_messages = "view_messages"
    post_message = "post_message"
    read_messages = "read_messages"
    approve_item = "approve_item"
    view_item_approval = "view_item_approval"
    set_availability = "set_availability"
    set_purchase = "set_purchase"
    leave_feedback = "leave_feedback"
    view_feedback = "view_feedback"
    answer_replacement = "answer_replacement"
    manage_replacements = "manage_replacements"


PERMISSIONS: dict[Action, frozenset[RoleEnum]] = {
    Action.view_statuses: frozenset(RoleEnum),
    Action.create_order: frozenset({RoleEnum.CLIENT}),
    Action.list_own_orders: frozenset({RoleEnum.CLIENT}),
    Action.view_order: frozenset({RoleEnum.CLIENT, RoleEnum.GRUZCHIK, RoleEnum.ADMIN}),
    Action.approve_order: frozenset({RoleEnum.CLIENT, RoleEnum.GRUZCHIK}),
    Action.list_assigned_orders: frozenset({RoleEnum.GRUZCHIK}),
    Action.gruzchik_update_order: frozenset({RoleEnum.GRUZCHIK}),
    Action.admin_manage_orders: frozenset({RoleEnum.ADMIN}),
    Action.bulk_delete_orders: frozenset({RoleEnum.ADMIN}),
    Action.view_order_unread: frozenset({RoleEnum.ADMIN, RoleEnum.CLIENT}),
    Action.view_order_data: frozenset({RoleEnum.CLIENT, RoleEnum.GRUZCHIK}),
    Action.view_messages: frozenset({RoleEnum.CLIENT, RoleEnum.GRUZCHIK, RoleEnum.ADMIN}),
    Action.post_message: frozenset({RoleEnum.CLIENT, RoleEnum.GRUZCHIK, RoleEnum.ADMIN}),
    Action.read_messages: frozenset({RoleEnum.CLIENT, RoleEnum.ADMIN}),
    Action.approve_item: frozenset({RoleEnum.CLIENT}),
    Action.view_item_approval: frozenset({RoleEnum.CLIENT}),
    Action.set_availability: frozenset({RoleEnum.GRUZCHIK, RoleEnum.ADMIN}),
    Action.set_purchase: frozenset({RoleEnum.GRUZCHIK}),
    Action.leave_feedback: frozenset({RoleEnum.CLIENT}),
    Action.view_feedback: frozenset({RoleEnum.CLIENT}),
    Action.answer_replacement: frozenset({RoleEnum.CLIENT}),
    Action.manage_replacements: frozenset({RoleEnum.ADMIN}),
}


def is_allowed(user: User, action: Action) -> bool:
    return user.role in PERMISSIONS[action]


def order_scope(user: User):
    """
    Условие WHERE по заказам, доступным пользователю.
    Админ видит все заказы. Клиент видит свои, грузчик видит назначенные ему.
    """
    if user.role == RoleEnum.ADMIN:
        return true()
    if user.role == RoleEnum.CLIENT:
        return Order.user_id == user.id
    if user.role == RoleEnum.GRUZCHIK:
        return Order.gruzchik_id == user.id
    return false()


def owner_or_assignee_scope(user: User):
    # для подтверждения заказа: владелец или назначенный грузчик
    return or_(Order.user_id == user.id, Order.gruzchik_id == user.id)
