from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from shoe_store.access import Action, is_allowed
from shoe_store.db.session import get_async_session
from shoe_store.exceptions import ForbiddenError, UnauthorizedError
from shoe_store.models import User


async def get_current_user(
    x_user_id: Optional[int] = Header(None, description="ID текущего пользователя"),
    db: AsyncSession = Depends(get_async_session),
) -> User:
    """
    Текущий пользователь по заголовку X-User-Id.
    Сессии и вход по OTP живут во внешнем сервисе.
    """
    if x_user_id is None:
        raise UnauthorizedError()
    user = await db.get(User, x_user_id)
    if not user:
        raise UnauthorizedError()
    return user


def require(action: Action):
    """
    Зависимость: текущий пользователь, которому разрешено действие.
    Пример: user: User = Depends(require(Action.approve_order))
    """
    async def dependency(user: User = Depends(get_current_user)) -> User:
        if not is_allowed(user, action):
            raise ForbiddenError()
        return user

    return dependency
