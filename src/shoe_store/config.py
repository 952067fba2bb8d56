from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str
    SQL_ECHO: bool = False
    LOG_LEVEL: str = "INFO"

    # пул соединений PostgreSQL
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10

    # лимиты выдачи списков
    GRUZCHIK_ORDERS_PAGE_SIZE: int = 10
    ADMIN_ORDERS_LIMIT: int = 200

    # первый номер заказа в последовательности
    ORDER_NUMBER_START: int = 10000

    class Config:
        env_file = ".env"

settings = Settings()
