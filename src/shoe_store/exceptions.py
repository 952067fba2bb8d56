class AppError(Exception):
    """Базовая ошибка приложения. Обработчик в main.py превращает её в {"error": ...}."""

    status_code = 500
    default_message = "Внутренняя ошибка сервера"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(AppError):
    status_code = 404
    default_message = "Не найдено"


class InvalidInputError(AppError):
    status_code = 400
    default_message = "Некорректные данные"


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Доступ запрещен"


class UnauthorizedError(AppError):
    status_code = 401
    default_message = "Требуется авторизация"


class ConflictError(AppError):
    status_code = 409
    default_message = "Конфликт данных"


ORDER_NOT_FOUND = "Заказ не найден"
ORDER_ITEM_NOT_FOUND = "Позиция заказа не найдена"
PRODUCT_NOT_FOUND = "Товар не найден"
