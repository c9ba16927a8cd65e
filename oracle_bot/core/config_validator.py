# /oracle_bot/core/config_validator.py
# Run at startup, before the scheduler, to validate all configs and secrets.
from pydantic import ValidationError

from oracle_bot.core.config import Settings, settings as default_settings
from oracle_bot.core.intervals import IntervalParseError, interval_seconds
from oracle_bot.core.logger import log

def validate(settings: Settings = default_settings):
    log.info("--- CONFIG VALIDATION START ---")
    errors = []

    # Dry runs read the real chain but never sign anything.
    required_vars = ['RPC_URL', 'AI_ORACLE_ADDRESS'] if settings.DRY_RUN else ['RPC_URL', 'ORACLE_PRIVATE_KEY', 'AI_ORACLE_ADDRESS']
    for var in required_vars:
        if not getattr(settings, var, None):
            errors.append(f"Missing required configuration: {var}")

    try:
        settings.threshold_config()
    except ValidationError as e:
        for err in e.errors():
            loc = ".".join(str(part) for part in err["loc"]) or "threshold_config"
            errors.append(f"Invalid threshold configuration: {loc}: {err['msg']}")

    for var in ('UPDATE_INTERVAL_CRON', 'STATUS_REPORT_INTERVAL'):
        try:
            interval_seconds(getattr(settings, var))
        except IntervalParseError as e:
            errors.append(f"Invalid schedule {var}: {e}")

    if settings.GAS_HISTORY_SIZE < 1:
        errors.append("GAS_HISTORY_SIZE must be at least 1")
    if settings.MAX_SKIPS_BEFORE_ALERT < 1:
        errors.append("MAX_SKIPS_BEFORE_ALERT must be at least 1")
    if settings.RPC_TIMEOUT_SECONDS <= 0 or settings.SUBMIT_TIMEOUT_SECONDS <= 0:
        errors.append("RPC_TIMEOUT_SECONDS and SUBMIT_TIMEOUT_SECONDS must be positive")

    if errors:
        for error in errors:
            log.critical(error)
        raise ValueError("System configuration is incomplete. Halting.")

    log.info("--- CONFIG VALIDATION PASSED ---")

if __name__ == "__main__":
    validate()
