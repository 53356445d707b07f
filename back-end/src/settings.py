from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    SECRET_KEY: str
    DATABASE_URL: str = "sqlite+aiosqlite:///./ticket_system.db"
    SQL_ECHO: bool = False

    # Tokens
    JWT_ALGORITHM: str = "HS512"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_MINUTES: int = 10080  # 7 days

    # Passwords
    PBKDF2_ROUNDS: int = 300_000
    PASSWORD_MIN_LENGTH: int = 8

    # Persistence calls slower than this surface as a retryable 503
    PERSISTENCE_TIMEOUT_SECONDS: float = 5.0

    # Report denied ticket access as 404 instead of 403
    CONCEAL_FORBIDDEN_TICKETS: bool = False

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
