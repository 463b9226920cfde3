"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./wallet.db"
    log_level: str = "INFO"

    jwt_secret: str = "mock-gateway-dev-secret"
    jwt_algorithm: str = "HS256"
    token_expiry_hours: int = 24
    password_hash_iterations: int = 120_000

    currency: str = "INR"
    default_wallet_balance: float = 10_000.0
    max_transfer_amount: float = 200_000.0
    max_deposit_amount: float = 50_000.0
    low_balance_threshold: float = 1_000.0

    settlement_min_delay_ms: int = 2000
    settlement_max_delay_ms: int = 5000
    settlement_success_rate: float = 0.9  # 10% of transfers fail
    settlement_max_retries: int = 3

    timezone_offset_minutes: int = 330  # IST, UTC+05:30

    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:3001"]

    create_default_user: bool = True
    default_user_email: str = "user@example.com"
    default_user_password: str = "password123"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
