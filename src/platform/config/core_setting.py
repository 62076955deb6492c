from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import List

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_ENV_PATH = _PROJECT_ROOT / '.env'
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (_PROJECT_ROOT / '.env.example')


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra='ignore',
    )

    PROJECT_NAME: str = 'Hostel Bed Booking'
    VERSION: str = '0.1.0'
    DEBUG: bool = True  # Set to False in production
    PROPERTY_TIMEZONE: str = 'America/Sao_Paulo'

    # PostgreSQL (durable booking store)
    POSTGRES_SERVER: str = 'localhost'
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = 'postgres'
    POSTGRES_PASSWORD: SecretStr = SecretStr('postgres')
    POSTGRES_DB: str = 'hostel_booking'

    ASYNCPG_POOL_MIN_SIZE: int = 2
    ASYNCPG_POOL_MAX_SIZE: int = 10
    ASYNCPG_POOL_COMMAND_TIMEOUT: float = 10.0
    ASYNCPG_POOL_TIMEOUT: float = 10.0
    ASYNCPG_POOL_MAX_INACTIVE_LIFETIME: float = 300.0

    @property
    def DATABASE_DSN(self) -> str:
        return (
            f'postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD.get_secret_value()}'
            f'@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}'
        )

    # Kvrocks Configuration (Redis protocol, advisory-lock store for holds)
    KVROCKS_HOST: str = 'localhost'
    KVROCKS_PORT: int = 6666
    KVROCKS_DB: int = 0
    KVROCKS_PASSWORD: str = ''
    KVROCKS_KEY_PREFIX: str = ''
    REDIS_DECODE_RESPONSES: bool = True

    KVROCKS_POOL_MAX_CONNECTIONS: int = 50
    KVROCKS_POOL_SOCKET_TIMEOUT: int = 5
    KVROCKS_POOL_SOCKET_CONNECT_TIMEOUT: int = 5
    KVROCKS_POOL_SOCKET_KEEPALIVE: bool = True
    KVROCKS_POOL_HEALTH_CHECK_INTERVAL: int = 30

    # Holds
    HOLD_TTL_MINUTES: int = 10
    HOLD_RECORD_GRACE_SECONDS: int = 300  # keeps expired records visible to the sweep
    HOLD_CONFIRMED_RETENTION_HOURS: int = 24
    HOLD_KEY_NAMESPACE: str = 'hold'
    HOLD_SWEEP_INTERVAL_SECONDS: int = 60
    BOOKING_EVENT_CHANNEL: str = 'hostel_booking_events'
    EXTERNAL_BLOCKS_KEY: str = 'ical:blocks'

    # Allocation rules
    GENDER_GROUP_THRESHOLD: int = 31

    # Stay rules
    MIN_STAY_NIGHTS: int = 1
    MAX_STAY_NIGHTS: int = 30
    MAX_ADVANCE_BOOKING_DAYS: int = 365
    CARNIVAL_MIN_NIGHTS: int = 5
    CARNIVAL_PERIODS: List[str] = [
        '2025-02-28:2025-03-05',
        '2026-02-13:2026-02-18',
        '2027-02-05:2027-02-10',
    ]

    @field_validator('CARNIVAL_PERIODS', mode='before')
    @classmethod
    def assemble_carnival_periods(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str) and not v.startswith('['):
            return [i.strip() for i in v.split(',') if i.strip()]
        elif isinstance(v, list):
            return v
        return []

    @property
    def CARNIVAL_DATE_RANGES(self) -> list[tuple[date, date]]:
        ranges = []
        for period in self.CARNIVAL_PERIODS:
            start, end = period.split(':')
            ranges.append((date.fromisoformat(start), date.fromisoformat(end)))
        return ranges

    # Deposit and cancellation
    LARGE_GROUP_DEPOSIT_THRESHOLD: int = 15
    LARGE_GROUP_DEPOSIT_RATE: Decimal = Decimal('0.50')
    STANDARD_DEPOSIT_RATE: Decimal = Decimal('0.30')
    BALANCE_CHARGE_DAYS_BEFORE: int = 7
    CANCELLATION_PROCESSING_FEE: Decimal = Decimal('10.00')

    # Post-commit side effects (notifications, external sync)
    SIDE_EFFECT_MAX_ATTEMPTS: int = 3
    SIDE_EFFECT_BACKOFF_SECONDS: float = 0.5


settings = Settings()  # type: ignore
