"""
Тесты переписки по позициям: непрочитанные, отметки о прочтении,
одобрение позиций клиентом и сводка по заказу.
"""
from __future__ import annotations

import pytest
from sqlalchemy import func, select

from shoe_store import models as m
from shoe_store.crud import message as crud
from shoe_store.exceptions import InvalidInputError, NotFoundError
from shoe_store.schemas.message import MessageCreate


@pytest.mark.asyncio
async def test_unread_ignores_own_messages(
    async_session, make_order, client_user, admin, product, add_message
) -> None:
    order = await make_order(client_user, [(product, 1)])
    item = order.items[0]
    await add_message(item, admin)
    await add_message(item, admin)
    await add_message(item, client_user)

    assert await crud.count_unread(async_session, client_user.id, item.id) == (2, 2)
    assert await crud.count_unread(async_session, admin.id, item.id) == (1, 1)


@pytest.mark.asyncio
async def test_unread_equals_total_minus_read(
    async_session, make_order, client_user, admin, gruzchik, product, add_message
) -> None:
    order = await make_order(client_user, [(product, 1)], gruzchik=gruzchik)
    item = order.items[0]
    messages = [await add_message(item, author) for author in (admin, gruzchik, admin, client_user)]
    async_session.add(m.OrderItemMessageRead(message_id=messages[0].id, user_id=client_user.id))
    # отметка на собственное сообщение не должна уводить счётчик в минус
    async_session.add(m.OrderItemMessageRead(message_id=messages[3].id, user_id=client_user.id))
    await async_session.commit()

    unread, total = await crud.count_unread(async_session, client_user.id, item.id)

    assert (unread, total) == (2, 3)


@pytest.mark.asyncio
async def test_mark_as_read_is_idempotent(
    async_session, make_order, client_user, admin, gruzchik, product, add_message
) -> None:
    order = await make_order(client_user, [(product, 1)], gruzchik=gruzchik)
    item = order.items[0]
    await add_message(item, admin)
    await add_message(item, gruzchik)
    await add_message(item, client_user)

    assert await crud.mark_as_read(async_session, client_user.id, item.id) == 2
    after_first = await crud.count_unread(async_session, client_user.id, item.id)

    assert await crud.mark_as_read(async_session, client_user.id, item.id) == 0
    assert await crud.count_unread(async_session, client_user.id, item.id) == after_first == (0, 2)


@pytest.mark.asyncio
async def test_read_state_is_per_user(
    async_session, make_order, client_user, admin, gruzchik, product, add_message
) -> None:
    """Админ и грузчик читают одно и то же сообщение клиента независимо."""
    order = await make_order(client_user, [(product, 1)], gruzchik=gruzchik)
    item = order.items[0]
    await add_message(item, client_user)

    await crud.mark_as_read(async_session, admin.id, item.id)

    assert await crud.count_unread(async_session, admin.id, item.id) == (0, 1)
    assert await crud.count_unread(async_session, gruzchik.id, item.id) == (1, 1)


@pytest.mark.asyncio
async def test_mark_item_read_requires_access(
    async_session, make_order, client_user, other_client, admin, product, add_message
) -> None:
    order = await make_order(client_user, [(product, 1)])
    await add_message(order.items[0], admin)

    with pytest.raises(NotFoundError):
        await crud.mark_item_read(async_session, other_client, order.items[0].id)

    reads = (await async_session.execute(select(func.count(m.OrderItemMessageRead.id)))).scalar_one()
    assert reads == 0


@pytest.mark.asyncio
async def test_item_without_messages(async_session, make_order, client_user, admin, product) -> None:
    order = await make_order(client_user, [(product, 1)])
    item = order.items[0]

    assert await crud.needs_approval(async_session, item.id) is False
    for user in (client_user, admin):
        assert await crud.count_unread(async_session, user.id, item.id) == (0, 0)
    assert await crud.mark_as_read(async_session, client_user.id, item.id) == 0


@pytest.mark.asyncio
async def test_needs_approval_ignores_client_and_service_messages(
    async_session, make_order, client_user, admin, gruzchik, product, add_message
) -> None:
    order = await make_order(client_user, [(product, 1)] * 4, gruzchik=gruzchik)
    by_client, by_service, by_admin, by_gruzchik = order.items
    await add_message(by_client, client_user)
    await add_message(by_service, admin, text="Цена изменена", is_service=True)
    await add_message(by_admin, admin)
    await add_message(by_gruzchik, gruzchik)

    pending = await crud.items_needing_approval(async_session, [i.id for i in order.items])

    assert pending == {by_admin.id, by_gruzchik.id}


@pytest.mark.asyncio
async def test_approve_item_appends_single_service_marker(
    async_session, make_order, client_user, product
) -> None:
    order = await make_order(client_user, [(product, 1)])
    item = order.items[0]

    assert await crud.get_approval_status(async_session, client_user, item.id) == (False, None)

    success, approved_at = await crud.approve_item(async_session, client_user, item.id)
    assert success is True
    assert approved_at is not None

    again, _ = await crud.approve_item(async_session, client_user, item.id)
    assert again is True

    markers = (
        await async_session.execute(
            select(m.OrderItemMessage).where(m.OrderItemMessage.order_item_id == item.id)
        )
    ).scalars().all()
    assert len(markers) == 1
    assert markers[0].is_service is True
    assert markers[0].text == "Товар одобрен клиентом"
    assert markers[0].user_id == client_user.id

    is_approved, _ = await crud.get_approval_status(async_session, client_user, item.id)
    assert is_approved is True
    # повторное чтение не меняет результат
    assert (await crud.get_approval_status(async_session, client_user, item.id))[0] is True


@pytest.mark.asyncio
async def test_approve_item_does_not_change_order_status(
    async_session, make_order, client_user, product
) -> None:
    order = await make_order(client_user, [(product, 1)])

    await crud.approve_item(async_session, client_user, order.items[0].id)

    await async_session.refresh(order)
    assert order.status == m.OrderStatusEnum.approval.value


@pytest.mark.asyncio
async def test_approve_item_rules(
    async_session, make_order, client_user, other_client, product
) -> None:
    order = await make_order(client_user, [(product, 1)])
    closed = await make_order(client_user, [(product, 1)], status=m.OrderStatusEnum.bought.value)

    with pytest.raises(NotFoundError):
        await crud.approve_item(async_session, other_client, order.items[0].id)
    with pytest.raises(NotFoundError):
        await crud.approve_item(async_session, client_user, closed.items[0].id)
    with pytest.raises(NotFoundError):
        await crud.get_approval_status(async_session, other_client, order.items[0].id)

    # статус одобрения читается и вне согласования
    assert (await crud.get_approval_status(async_session, client_user, closed.items[0].id))[0] is False


@pytest.mark.asyncio
async def test_order_data_scenario(
    async_session, make_order, client_user, admin, product, add_message
) -> None:
    """I1 без сообщений, I2 с непрочитанным сообщением админа."""
    order = await make_order(client_user, [(product, 1), (product, 1)])
    first, second = order.items
    await add_message(second, admin, text="Такого цвета нет, берём чёрные?")

    data = await crud.get_order_messages_data(async_session, client_user, order.id)

    assert data["items_with_messages"] == [second.id]
    assert data["total_items"] == 2
    assert data["items_without_messages_count"] == 1
    assert data["unread_counts"][second.id] == {"unread_count": 1, "total_messages": 1}
    assert data["unread_counts"][first.id] == {"unread_count": 0, "total_messages": 0}
    assert data["items_needing_approval"] == [second.id]
    assert data["is_fully_approved"] is False

    await crud.approve_item(async_session, client_user, second.id)
    data = await crud.get_order_messages_data(async_session, client_user, order.id)

    assert data["approval_statuses"][second.id]["is_approved"] is True
    assert data["approval_statuses"][first.id] == {"is_approved": False, "approved_at": None}
    await async_session.refresh(order)
    assert order.status == m.OrderStatusEnum.approval.value


@pytest.mark.asyncio
async def test_order_unread_counts_cover_every_item(
    async_session, make_order, client_user, admin, product, add_message
) -> None:
    order = await make_order(client_user, [(product, 1), (product, 1), (product, 1)])
    await add_message(order.items[2], client_user)
    await add_message(order.items[2], client_user)

    counts = await crud.get_order_unread_counts(async_session, admin, order.id)

    assert counts == {
        order.items[0].id: (0, 0),
        order.items[1].id: (0, 0),
        order.items[2].id: (2, 2),
    }


@pytest.mark.asyncio
async def test_create_and_list_messages(
    async_session, make_order, client_user, gruzchik, other_gruzchik, product
) -> None:
    order = await make_order(client_user, [(product, 1)], gruzchik=gruzchik)
    item = order.items[0]

    await crud.create_message(async_session, gruzchik, item.id, MessageCreate(text="Нашёл только 40-й"))
    await crud.create_message(
        async_session, client_user, item.id, MessageCreate(attachments=["https://cdn.example/photo.jpg"])
    )

    messages = await crud.list_messages(async_session, client_user, item.id)
    assert [msg.user_id for msg in messages] == [gruzchik.id, client_user.id]
    assert messages[1].text is None

    with pytest.raises(InvalidInputError):
        await crud.create_message(async_session, client_user, item.id, MessageCreate(text=""))
    with pytest.raises(NotFoundError):
        await crud.list_messages(async_session, other_gruzchik, item.id)
