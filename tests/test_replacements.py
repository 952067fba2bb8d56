"""
Предложения замены от администратора и ответ клиента.
"""
from __future__ import annotations

import pytest
from sqlalchemy import select

from shoe_store import models as m
from shoe_store.crud import message as message_crud
from shoe_store.crud import replacement as crud
from shoe_store.exceptions import ConflictError, InvalidInputError, NotFoundError
from shoe_store.schemas.feedback import ReplacementAnswer, ReplacementCreate, ReplacementUpdate

PHOTO = "https://cdn.example/replacements/boots-black.jpg"


def _proposal(url=PHOTO, key=None, comment="Есть такие же, только чёрные") -> ReplacementCreate:
    return ReplacementCreate(replacement_image_url=url, replacement_image_key=key, admin_comment=comment)


@pytest.mark.asyncio
async def test_proposal_needs_photo(async_session, make_order, client_user, admin, product) -> None:
    order = await make_order(client_user, [(product, 1)])
    item_id = order.items[0].id

    with pytest.raises(InvalidInputError):
        await crud.propose_replacement(async_session, admin, item_id, _proposal(url=None, key=""))
    with pytest.raises(NotFoundError):
        await crud.propose_replacement(async_session, admin, 999999, _proposal())


@pytest.mark.asyncio
async def test_proposal_is_posted_to_item_chat(async_session, make_order, client_user, admin, product) -> None:
    order = await make_order(client_user, [(product, 1)])
    item_id = order.items[0].id

    replacement = await crud.propose_replacement(async_session, admin, item_id, _proposal())

    assert replacement.status == m.ReplacementStatusEnum.PENDING
    assert replacement.admin_user.id == admin.id
    assert replacement.client_user.id == client_user.id
    assert replacement.replacement_image_url == PHOTO

    messages = (
        await async_session.execute(
            select(m.OrderItemMessage).where(m.OrderItemMessage.order_item_id == item_id)
        )
    ).scalars().all()
    assert len(messages) == 1
    assert messages[0].user_id == admin.id
    assert messages[0].is_service is False
    assert messages[0].attachments == [PHOTO]
    assert await message_crud.needs_approval(async_session, item_id) is True


@pytest.mark.asyncio
async def test_key_only_proposal_skips_chat(async_session, make_order, client_user, admin, product) -> None:
    order = await make_order(client_user, [(product, 1)])
    item_id = order.items[0].id

    replacement = await crud.propose_replacement(
        async_session, admin, item_id, _proposal(url=None, key="replacements/1.jpg", comment=None)
    )

    assert replacement.replacement_image_key == "replacements/1.jpg"
    assert await message_crud.needs_approval(async_session, item_id) is False


@pytest.mark.asyncio
async def test_one_pending_proposal_per_item(async_session, make_order, client_user, admin, product) -> None:
    order = await make_order(client_user, [(product, 1)])
    item_id = order.items[0].id
    await crud.propose_replacement(async_session, admin, item_id, _proposal())

    with pytest.raises(ConflictError):
        await crud.propose_replacement(async_session, admin, item_id, _proposal())

    await crud.answer_replacement(async_session, client_user, item_id, ReplacementAnswer(status="REJECTED"))
    second = await crud.propose_replacement(async_session, admin, item_id, _proposal(comment="А эти?"))

    history = await crud.list_replacements(async_session, item_id)
    assert [r.id for r in history][0] == second.id
    assert [r.status for r in history] == [m.ReplacementStatusEnum.PENDING, m.ReplacementStatusEnum.REJECTED]


@pytest.mark.asyncio
async def test_client_answers_once(
    async_session, make_order, client_user, other_client, admin, product
) -> None:
    order = await make_order(client_user, [(product, 1)])
    item_id = order.items[0].id
    await crud.propose_replacement(async_session, admin, item_id, _proposal())

    with pytest.raises(NotFoundError):
        await crud.answer_replacement(async_session, other_client, item_id, ReplacementAnswer(status="ACCEPTED"))

    replacement = await crud.answer_replacement(
        async_session, client_user, item_id, ReplacementAnswer(status="ACCEPTED", client_comment="Беру")
    )
    assert replacement.status == m.ReplacementStatusEnum.ACCEPTED
    assert replacement.client_comment == "Беру"

    with pytest.raises(NotFoundError):
        await crud.answer_replacement(async_session, client_user, item_id, ReplacementAnswer(status="REJECTED"))


@pytest.mark.asyncio
async def test_only_author_edits_pending_proposal(
    async_session, make_order, client_user, admin, product
) -> None:
    other_admin = m.User(role=m.RoleEnum.ADMIN, phone="+79990000099")
    async_session.add(other_admin)
    await async_session.commit()
    order = await make_order(client_user, [(product, 1)])
    item_id = order.items[0].id
    replacement = await crud.propose_replacement(async_session, admin, item_id, _proposal())
    replacement_id = replacement.id

    with pytest.raises(NotFoundError):
        await crud.update_replacement(async_session, other_admin, item_id, replacement_id, ReplacementUpdate())
    with pytest.raises(NotFoundError):
        await crud.delete_replacement(async_session, other_admin, item_id, replacement_id)

    updated = await crud.update_replacement(
        async_session,
        admin,
        item_id,
        replacement_id,
        ReplacementUpdate(replacement_image_url=PHOTO, admin_comment="Уточнил модель"),
    )
    assert updated.admin_comment == "Уточнил модель"

    await crud.answer_replacement(async_session, client_user, item_id, ReplacementAnswer(status="ACCEPTED"))
    with pytest.raises(NotFoundError):
        await crud.delete_replacement(async_session, admin, item_id, replacement_id)


@pytest.mark.asyncio
async def test_withdrawn_proposal_is_gone(async_session, make_order, client_user, admin, product) -> None:
    order = await make_order(client_user, [(product, 1)])
    item_id = order.items[0].id
    replacement = await crud.propose_replacement(async_session, admin, item_id, _proposal())

    await crud.delete_replacement(async_session, admin, item_id, replacement.id)

    assert await crud.list_replacements(async_session, item_id) == []
    with pytest.raises(NotFoundError):
        await crud.list_replacements(async_session, 999999)


@pytest.mark.asyncio
async def test_replacement_api(client, make_order, client_user, admin, product, auth) -> None:
    order = await make_order(client_user, [(product, 1)])
    item_id = order.items[0].id
    base = f"/admin/order-items/{item_id}/replacements"

    resp = await client.post(base, json={"replacement_image_url": PHOTO}, headers=auth(client_user))
    assert resp.status_code == 403

    resp = await client.post(base, json={"admin_comment": "Без фото"}, headers=auth(admin))
    assert resp.status_code == 400

    resp = await client.post(base, json={"replacement_image_url": PHOTO}, headers=auth(admin))
    assert resp.status_code == 201
    replacement_id = resp.json()["id"]
    assert resp.json()["status"] == "PENDING"

    resp = await client.post(base, json={"replacement_image_url": PHOTO}, headers=auth(admin))
    assert resp.status_code == 409

    resp = await client.post(
        f"/order-items/{item_id}/replacement/response", json={"status": "MAYBE"}, headers=auth(client_user)
    )
    assert resp.status_code == 400

    resp = await client.delete(f"{base}/{replacement_id}", headers=auth(admin))
    assert resp.status_code == 200
    assert resp.json() == {"id": replacement_id}

    resp = await client.get(base, headers=auth(admin))
    assert resp.status_code == 200
    assert resp.json() == []


@pytest.mark.asyncio
async def test_client_response_api(client, make_order, client_user, admin, product, auth) -> None:
    order = await make_order(client_user, [(product, 1)])
    item_id = order.items[0].id
    await client.post(
        f"/admin/order-items/{item_id}/replacements", json={"replacement_image_url": PHOTO}, headers=auth(admin)
    )

    resp = await client.post(
        f"/order-items/{item_id}/replacement/response",
        json={"status": "REJECTED", "client_comment": "Не подходит"},
        headers=auth(client_user),
    )

    assert resp.status_code == 200
    assert resp.json()["status"] == "REJECTED"
    assert resp.json()["client_comment"] == "Не подходит"
    assert resp.json()["client_user"]["id"] == client_user.id
