# /oracle_bot/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import SecretStr

from oracle_bot.core.types import ThresholdConfig

# Loaded once at process start. Every key can come from the environment or
# from the .env key/value file next to the process.
class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Chain access
    RPC_URL: SecretStr | None = None
    ORACLE_PRIVATE_KEY: SecretStr | None = None
    AI_ORACLE_ADDRESS: str | None = None
    CHAIN_ID: int = 84532  # Base Sepolia
    RPC_TIMEOUT_SECONDS: float = 10.0
    SUBMIT_TIMEOUT_SECONDS: float = 120.0
    ESTIMATED_GAS_UNITS: int = 200_000

    # Schedules
    UPDATE_INTERVAL_CRON: str = "*/5 * * * *"
    STATUS_REPORT_INTERVAL: str = "0 * * * *"

    # Decision thresholds
    MIN_UPDATE_INTERVAL_SEC: float = 15 * 60
    MAX_STALENESS_HOURS: float = 2.0
    STATIC_MAX_GAS_GWEI: float = 0.01
    PERCENTILE_MULTIPLIER: float = 2.0
    GAS_HISTORY_SIZE: int = 100
    PRICE_CHANGE_MIN_PCT: float = 2.0
    PRICE_CHANGE_MAX_PCT: float = 20.0
    VOLATILITY_FACTOR: float = 10.0
    EMERGENCY_PRICE_JUMP_PCT: float = 10.0
    MAX_CONSECUTIVE_ERRORS: int = 5

    # Monitoring
    MAX_SKIPS_BEFORE_ALERT: int = 10
    ETH_PRICE_USD: float = 2000.0

    # Operational Settings
    SEED_CONFIRMED_FROM_CHAIN: bool = True
    DRY_RUN: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_SIGNING_KEY: SecretStr | None = None
    SENTRY_DSN: SecretStr | None = None
    SESSION_DIR: str = "/tmp/oracle_bot_session"  # audit log lives here
    HEALTH_PORT: int = 8080

    def threshold_config(self) -> ThresholdConfig:
        """Builds the immutable decision bounds. Raises pydantic.ValidationError on bad bounds."""
        return ThresholdConfig(
            static_max_gas_gwei=self.STATIC_MAX_GAS_GWEI,
            percentile_multiplier=self.PERCENTILE_MULTIPLIER,
            price_change_min_pct=self.PRICE_CHANGE_MIN_PCT,
            price_change_max_pct=self.PRICE_CHANGE_MAX_PCT,
            volatility_factor=self.VOLATILITY_FACTOR,
            min_update_interval_sec=self.MIN_UPDATE_INTERVAL_SEC,
            max_staleness_hours=self.MAX_STALENESS_HOURS,
            emergency_price_jump_pct=self.EMERGENCY_PRICE_JUMP_PCT,
            max_consecutive_errors=self.MAX_CONSECUTIVE_ERRORS,
        )

try:
    settings = Settings()
except Exception as e:
    # Late import to avoid circular dependency only for logging the failure
    try:
        from oracle_bot.core.logger import get_logger
        log = get_logger("OracleBot.Config")
        log.critical("FAILED_TO_LOAD_SETTINGS", error=str(e))
    except Exception:
        print("FAILED_TO_LOAD_SETTINGS", e)
    # In a container, a hard exit is often appropriate if config fails.
    raise SystemExit(1)
