"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine configuration loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_prefix="BOOKING_STATS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Service
    service_name: str = "booking-stats"
    log_level: str = "INFO"

    # Result cache
    cache_max_entries: int = 20

    # Payment-channel totals vs Total Paid drift allowed before warning (currency units)
    reconciliation_tolerance: float = 10.0

    # Aggregation
    top_customers_limit: int = 5
    peak_start_hour: int = 18  # 6 PM
    peak_end_hour: int = 23  # 11 PM, exclusive
    currency_symbol: str = "₹"

    # Batch category computations
    stats_max_workers: int = 4


settings = Settings()
