from pathlib import Path
from typing import Annotated, List

import orjson
from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_ENV_PATH = _PROJECT_ROOT / '.env'
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (_PROJECT_ROOT / '.env.example')


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra='ignore',
    )

    PROJECT_NAME: str = 'Ticket Resale Marketplace'
    VERSION: str = '0.1.0'
    DEBUG: bool = True  # Set to False in production

    # CORS: comma separated or a JSON list
    BACKEND_CORS_ORIGINS: Annotated[List[str], NoDecode] = []

    @field_validator('BACKEND_CORS_ORIGINS', mode='before')
    @classmethod
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str) and v.strip().startswith('['):
            return [str(origin) for origin in orjson.loads(v)]
        if isinstance(v, str):
            return [i.strip() for i in v.split(',') if i.strip()]
        elif isinstance(v, list):
            return v
        return []

    # Database
    POSTGRES_SERVER: str = 'localhost'
    POSTGRES_USER: str = 'postgres'
    POSTGRES_PASSWORD: SecretStr = SecretStr('postgres')
    POSTGRES_DB: str = 'resale_marketplace'
    POSTGRES_PORT: int = 5432
    POSTGRES_REPLICA_SERVER: str | None = None
    POSTGRES_REPLICA_PORT: int | None = None

    # Connection pool
    DB_POOL_SIZE_WRITE: int = 10
    DB_POOL_SIZE_READ: int = 20
    DB_POOL_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 3600
    DB_POOL_PRE_PING: bool = True
    DB_LOCK_TIMEOUT_MS: int = 5000

    @property
    def DATABASE_URL_ASYNC(self) -> str:
        password = self.POSTGRES_PASSWORD.get_secret_value()
        return f'postgresql+asyncpg://{self.POSTGRES_USER}:{password}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}'

    @property
    def DATABASE_READ_URL_ASYNC(self) -> str:
        if not self.POSTGRES_REPLICA_SERVER:
            return self.DATABASE_URL_ASYNC
        password = self.POSTGRES_PASSWORD.get_secret_value()
        port = self.POSTGRES_REPLICA_PORT or self.POSTGRES_PORT
        return f'postgresql+asyncpg://{self.POSTGRES_USER}:{password}@{self.POSTGRES_REPLICA_SERVER}:{port}/{self.POSTGRES_DB}'

    @property
    def DATABASE_URL_SYNC(self) -> str:
        password = self.POSTGRES_PASSWORD.get_secret_value()
        return f'postgresql://{self.POSTGRES_USER}:{password}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}'

    # Fees
    PLATFORM_COMMISSION_RATE: float = 0.06  # 6%
    VAT_RATE: float = 0.22  # 22%, applied on the commission
    DEFAULT_CURRENCY: str = 'UYU'

    # Orders and reservations
    ORDER_RESERVATION_MINUTES: int = 10
    PAYMENT_LINK_RESERVATION_MINUTES: int = 5
    MAX_TICKETS_PER_ORDER: int = 10
    ALLOCATION_MAX_RETRIES: int = 3

    # Seller earnings and payouts
    PAYOUT_HOLD_PERIOD_HOURS: int = 48
    PAYOUT_MINIMUM_UYU: float = 1000.0
    PAYOUT_MINIMUM_USD: float = 25.0

    # dLocal
    DLOCAL_BASE_URL: str = 'https://api-sbx.dlocalgo.com'
    DLOCAL_API_KEY: str = 'test_dlocal_api_key'
    DLOCAL_SECRET_KEY: SecretStr = SecretStr('test_dlocal_secret_key')
    PAYMENT_PROVIDER_TIMEOUT_SECONDS: float = 10.0
    PAYMENT_NOTIFICATION_URL: str = 'http://localhost:8000/api/webhooks/dlocal'
    PAYMENT_SUCCESS_URL: str = 'http://localhost:3000/checkout/success'
    PAYMENT_BACK_URL: str = 'http://localhost:3000/checkout'

    # Background jobs
    JOBS_ENABLED: bool = False
    JOB_TRIGGER_TOKEN: SecretStr = SecretStr('test_job_trigger_token')
    EXPIRED_ORDERS_INTERVAL_SECONDS: int = 60
    PAYMENT_SYNC_INTERVAL_SECONDS: int = 300
    PAYMENT_SYNC_MIN_AGE_MINUTES: int = 5
    PAYMENT_SYNC_LIMIT: int = 500
    PAYMENT_SYNC_BATCH_SIZE: int = 25
    HOLD_CHECK_INTERVAL_SECONDS: int = 3600
    HOLD_CHECK_BATCH_SIZE: int = 100
    NOTIFICATION_DISPATCH_INTERVAL_SECONDS: int = 300
    NOTIFICATION_DISPATCH_BATCH_SIZE: int = 100
    NOTIFICATION_MAX_ATTEMPTS: int = 3

    # Observability
    SERVICE_NAME: str = 'resale-marketplace'
    ENVIRONMENT: str = 'development'
    OTEL_EXPORTER_OTLP_ENDPOINT: str | None = None
    OTEL_CONSOLE_EXPORT: bool = False
    OTEL_SAMPLE_RATIO: float = 1.0
    LOG_JSON: bool = False


settings = Settings()  # type: ignore
