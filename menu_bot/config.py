from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    BOT_TOKEN: str = ""
    DEV_DRY_RUN: bool = False

    # Витрина магазина (upstream API)
    API_BASE_URL: str = "https://menuqrcode.onrender.com/api"
    STORE_SLUG: str = "ysg"
    STORE_TITLE: str = "YSG Store"

    # HTTP клиенты
    HTTP_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0)
    HTTP_USER_AGENT: str = "YSGTelegramBot/1.0"
    HTTP_PROXY_URL: str | None = None
    FETCH_RETRIES: int = Field(default=3, ge=1)
    RATE_LIMIT_BACKOFF_BASE: float = Field(default=1.0, ge=0)
    RATE_LIMIT_BACKOFF_MAX: float = Field(default=10.0, ge=0)
    RETRY_DELAY_SECONDS: float = Field(default=1.0, ge=0)

    # Кэш и доставка
    CACHE_TTL_SECONDS: float = Field(default=60.0, ge=0)
    DELIVERY_DELAY_SECONDS: float = Field(default=1.0, ge=0)

    # Логи
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # Сервисные эндпоинты
    SERVICE_HOST: str = "0.0.0.0"
    PORT: int = 3000
    POLLING_TIMEOUT: int = 10

    ENVIRONMENT: str = Field(default="local")

    # Мониторинг
    SENTRY_DSN: str | None = None
    SENTRY_TRACES_SAMPLE_RATE: float = Field(default=0.0, ge=0.0, le=1.0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("API_BASE_URL", mode="after")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("STORE_SLUG", mode="after")
    @classmethod
    def _require_slug(cls, v: str) -> str:
        slug = v.strip()
        if not slug:
            raise ValueError("STORE_SLUG must not be empty")
        return slug

    @property
    def store_path(self) -> str:
        return f"/stores/public/slug/{self.STORE_SLUG}"

    @property
    def categories_path(self) -> str:
        return f"/categories/store/slug/{self.STORE_SLUG}"

    @property
    def products_path(self) -> str:
        return f"/products/public-store/slug/{self.STORE_SLUG}"


settings = Settings()
