"""Environment-driven settings for the mock engine and its HTTP binding.

Loaded once per process; tests build their own `MockSettings` when they need
different limits or fees (see `.env.example`).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class MockSettings(BaseSettings):
    """Typed view of runtime configuration from `MOCKPAY_*` variables."""

    service_name: str = "mockpay"
    log_level: str = "INFO"
    id_prefix: str = "test_"
    default_list_limit: int = 10
    max_list_limit: int = 100
    flat_fee_cents: int = 20
    default_card_number: str = "4242424242424242"
    default_card_exp_month: int = 12
    default_card_exp_year: int = 2030
    model_config = SettingsConfigDict(env_prefix="MOCKPAY_", env_file=".env", extra="ignore")


settings = MockSettings()
