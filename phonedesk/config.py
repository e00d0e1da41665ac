"""Application configuration using Pydantic settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./phonedesk.db"

    # App Settings
    debug: bool = False
    log_level: str = "INFO"
    app_host: str = "0.0.0.0"
    app_port: int = 8001

    # Business day is anchored to midnight in a fixed UTC offset (Addis Ababa)
    business_utc_offset_hours: int = 3

    # ==========================================================================
    # Reply Time Settings
    # ==========================================================================
    reply_sample_cap_minutes: int = 60  # Latency samples are capped at this value
    reply_tier_good_minutes: int = 10   # <= good
    reply_tier_caution_minutes: int = 30  # <= caution, else poor

    # ==========================================================================
    # Alert Thresholds
    # ==========================================================================
    waiting_reply_minutes: int = 15       # Replies-waiting cutoff
    follow_up_hours: int = 12             # Follow-up pending cutoff
    alert_waiting_minutes: int = 30
    alert_quote_stale_hours: int = 48
    alert_reply_slow_ratio: float = 1.3
    alert_spike_min_pct: int = 50         # Strictly greater than
    alert_spike_min_delta: int = 5        # Greater than or equal

    # ==========================================================================
    # Engagement Classification
    # ==========================================================================
    hot_recent_hours: int = 2
    hot_value_etb: int = 50_000
    cold_age_hours: int = 24

    # ==========================================================================
    # Demand Signals
    # ==========================================================================
    demand_window_days: int = 7
    # "events" (default), "exchanges" for data predating demand events, or "both";
    # "both" skips exchanges already covered by a "select" event
    demand_signal_source: str = "events"
    demand_top_count: int = 3
    restock_count: int = 5
    restock_high_signals: int = 8
    restock_medium_signals: int = 4
    stock_snapshot_count: int = 8
    content_plan_slots: int = 7

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
