"""
Наличие и выкуп позиций: отметка наличия управляет витриной товара.
"""
from __future__ import annotations

import pytest

from shoe_store.crud import order_item as crud
from shoe_store.exceptions import ForbiddenError, NotFoundError


@pytest.mark.asyncio
async def test_unavailable_hides_product(async_session, make_order, client_user, gruzchik, product) -> None:
    order = await make_order(client_user, [(product, 1)], gruzchik=gruzchik)
    item_id = order.items[0].id

    item = await crud.set_availability(async_session, gruzchik, item_id, False)

    assert item.is_available is False
    assert item.product.is_active is False
    assert item.product.active_updated_at is not None


@pytest.mark.asyncio
async def test_available_restores_product(async_session, make_order, client_user, gruzchik, product) -> None:
    product.is_active = False
    await async_session.commit()
    order = await make_order(client_user, [(product, 1)], gruzchik=gruzchik)
    item_id = order.items[0].id

    item = await crud.set_availability(async_session, gruzchik, item_id, True)

    assert item.is_available is True
    assert item.product.is_active is True


@pytest.mark.asyncio
async def test_null_resets_item_only(async_session, make_order, client_user, admin, product) -> None:
    order = await make_order(client_user, [(product, 1)])
    item_id = order.items[0].id
    await crud.set_availability(async_session, admin, item_id, False)

    item = await crud.set_availability(async_session, admin, item_id, None)

    assert item.is_available is None
    # товар остаётся снятым с витрины
    await async_session.refresh(product, ["is_active"])
    assert product.is_active is False


@pytest.mark.asyncio
async def test_toggle_keeps_loaded_order_items(async_session, make_order, client_user, gruzchik, product) -> None:
    order = await make_order(client_user, [(product, 1), (product, 2)], gruzchik=gruzchik)

    await crud.set_availability(async_session, gruzchik, order.items[0].id, False)
    await crud.set_purchase(async_session, gruzchik, order.items[1].id, True)

    assert [i.is_available for i in order.items] == [False, None]
    assert [i.is_purchased for i in order.items] == [None, True]


@pytest.mark.asyncio
async def test_last_write_wins_across_orders(
    async_session, make_order, client_user, other_client, gruzchik, other_gruzchik, product
) -> None:
    """Два грузчика на разных заказах с одним товаром: витрину определяет последний."""
    first = await make_order(client_user, [(product, 1)], gruzchik=gruzchik)
    second = await make_order(other_client, [(product, 2)], gruzchik=other_gruzchik)
    first_item, second_item = first.items[0], second.items[0]

    await crud.set_availability(async_session, gruzchik, first_item.id, False)
    item = await crud.set_availability(async_session, other_gruzchik, second_item.id, True)

    assert item.id == second_item.id
    assert item.product.is_active is True
    await async_session.refresh(first_item, ["is_available"])
    assert first_item.is_available is False

    await crud.set_availability(async_session, gruzchik, first_item.id, False)
    await async_session.refresh(product, ["is_active"])
    assert product.is_active is False


@pytest.mark.asyncio
async def test_availability_unknown_item(async_session, gruzchik) -> None:
    with pytest.raises(NotFoundError):
        await crud.set_availability(async_session, gruzchik, 31337, False)


@pytest.mark.asyncio
async def test_purchase_by_assigned_gruzchik(async_session, make_order, client_user, gruzchik, product) -> None:
    order = await make_order(client_user, [(product, 1)], gruzchik=gruzchik)
    item_id = order.items[0].id

    item = await crud.set_purchase(async_session, gruzchik, item_id, True)
    assert item.is_purchased is True

    item = await crud.set_purchase(async_session, gruzchik, item_id, None)
    assert item.is_purchased is None
    assert item.product.is_active is True


@pytest.mark.asyncio
async def test_purchase_rules(
    async_session, make_order, client_user, gruzchik, other_gruzchik, product
) -> None:
    assigned = await make_order(client_user, [(product, 1)], gruzchik=gruzchik)
    unassigned = await make_order(client_user, [(product, 1)])
    assigned_item, unassigned_item = assigned.items[0], unassigned.items[0]

    with pytest.raises(ForbiddenError):
        await crud.set_purchase(async_session, other_gruzchik, assigned_item.id, True)
    with pytest.raises(ForbiddenError):
        await crud.set_purchase(async_session, gruzchik, unassigned_item.id, True)
    with pytest.raises(NotFoundError):
        await crud.set_purchase(async_session, gruzchik, 31337, True)

    await async_session.refresh(assigned_item, ["is_purchased"])
    assert assigned_item.is_purchased is None
