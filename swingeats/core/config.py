"""
SwingEats — Configuration
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Service ──────────────────────────────────────────────
    SERVICE_NAME: str = "swingeats"
    SERVICE_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 5000
    LOG_LEVEL: str = "INFO"

    # ── PostgreSQL ────────────────────────────────────────────
    POSTGRES_HOST: str = "swingeats-db"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "swingeats"
    POSTGRES_USER: str = "swingeats"
    POSTGRES_PASSWORD: str = "swingeats"
    DATABASE_URL: str | None = None  # full URL overrides the POSTGRES_* parts

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    # ── Redis (idempotency cache) ─────────────────────────────
    REDIS_HOST: str = "redis"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""

    @property
    def redis_url(self) -> str:
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    IDEMPOTENCY_ENABLED: bool = True
    IDEMPOTENCY_KEY_TTL_SECONDS: int = 86400
    IDEMPOTENCY_PENDING_TTL_SECONDS: int = 30

    # ── Kitchen Timing ──────────────────────────────────────
    PREP_BUFFER_SEC: int = 60
    EXPO_BUFFER_SEC: int = 60
    DELAY_GRACE_SEC: int = 120
    DEFAULT_COOK_SECONDS: int = 300
    ORDER_DELAY_THRESHOLD_MINUTES: int = 20  # only for orders without an estimate

    # ── Background Scheduler ──────────────────────────────────
    SCHEDULER_ENABLED: bool = True
    COOKING_SWEEP_INTERVAL_SECONDS: float = 5.0
    DINING_SWEEP_INTERVAL_SECONDS: float = 30.0
    DINING_DWELL_SECONDS: int = 120

    # ── Store Retry ────────────────────────────────────────────
    STORE_MAX_RETRIES: int = 3
    STORE_RETRY_BASE_DELAY_MS: int = 50
    STORE_RETRY_MAX_DELAY_MS: int = 1000
    STORE_RETRY_JITTER_MS: int = 50

    # ── WebSocket ─────────────────────────────────────────────
    WS_SEND_QUEUE_SIZE: int = 256

    # ── Seed Data ─────────────────────────────────────────────
    SEED_ON_STARTUP: bool = True
    BAY_FLOORS: int = 3
    BAYS_PER_FLOOR: int = 33

    # ── Observability ─────────────────────────────────────────
    METRICS_ENABLED: bool = True
    HEALTH_CHECK_TIMEOUT: float = 5.0


@lru_cache()
def get_settings() -> Settings:
    return Settings()
