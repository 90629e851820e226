from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_ENV: str = "development"
    APP_DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = "sqlite+aiosqlite:///./campusbuzz.db"
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_AUTO_CREATE: bool = True  # crear tablas al iniciar (sin migraciones)

    JWT_SECRET_KEY: str = "dev-secret-key-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    JWT_REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # Secret HMAC para los tokens de verificación de tickets
    TICKET_SIGNING_SECRET: str = "dev-ticket-secret-change-in-production"

    ACCESS_COOKIE_NAME: str = "token"
    REFRESH_COOKIE_NAME: str = "refreshToken"
    COOKIE_SECURE: bool = False
    COOKIE_SAMESITE: str = "strict"

    BCRYPT_ROUNDS: int = 12

    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URI: str = "memory://"  # o redis://host:6379/0 para varias instancias

    NOTIFICATIONS_PAGE_SIZE: int = 20
    CLEANUP_DEFAULT_DAYS_OLD: int = 30

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignorar campos extra en .env que no están en el modelo


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
