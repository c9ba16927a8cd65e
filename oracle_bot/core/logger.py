# /oracle_bot/core/logger.py
import logging
import structlog
from structlog.contextvars import bind_contextvars
import sentry_sdk
from prometheus_client import Counter, Gauge
from oracle_bot.core.config import settings
import json
import hmac
import hashlib
import os

# --- Prometheus Metrics ---
UPDATES_SUBMITTED = Counter("oracle_updates_submitted_total", "Oracle updates confirmed on-chain", ["reason"])
UPDATES_SKIPPED = Counter("oracle_updates_skipped_total", "Evaluation cycles that decided to skip", ["reason"])
CYCLE_FAILURES = Counter("oracle_cycle_failures_total", "Evaluation cycles counted as failures", ["stage"])
GUARD_TRIPPED = Counter("oracle_guard_tripped_total", "Times the error guard has halted the bot")
STATUS_REPORTS = Counter("oracle_status_reports_total", "Status reports emitted")
GAS_PRICE_GWEI = Gauge("oracle_gas_price_gwei", "Most recent observed gas price")
GAS_THRESHOLD_GWEI = Gauge("oracle_gas_threshold_gwei", "Dynamic gas ceiling of the last cycle")
PRICE_THRESHOLD_PCT = Gauge("oracle_price_threshold_pct", "Dynamic price-change trigger of the last cycle")

SIGNING_KEY = (
    settings.LOG_SIGNING_KEY.get_secret_value().encode()
    if settings.LOG_SIGNING_KEY
    else b"insecure"
)

# Tests monkeypatch this to redirect the audit trail.
AUDIT_FILE = os.path.join(settings.SESSION_DIR, "audit.log")

def sign_and_append(logger, method_name: str, event_dict: dict) -> dict:
    """Structlog processor that signs each event and appends it to the audit log.

    Every decision the bot takes ends up here, so an operator can later prove
    why an update was (or was not) pushed on-chain. Signature is HMAC-SHA256
    over the JSON payload with sorted keys.
    """
    payload = json.dumps(event_dict, sort_keys=True, default=str)
    sig = hmac.new(SIGNING_KEY, payload.encode(), hashlib.sha256).hexdigest()

    audit_file = str(AUDIT_FILE)
    try:
        with open(audit_file, "a", encoding="utf-8") as f:
            f.write(payload + "|" + sig + "\n")
    except FileNotFoundError:
        os.makedirs(os.path.dirname(audit_file), exist_ok=True)
        with open(audit_file, "a", encoding="utf-8") as f:
            f.write(payload + "|" + sig + "\n")

    event_dict["signature"] = sig
    return event_dict

def configure_logging():
    if settings.SENTRY_DSN:
        sentry_sdk.init(dsn=settings.SENTRY_DSN.get_secret_value(), traces_sample_rate=1.0)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            sign_and_append,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(settings.LOG_LEVEL)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

def get_logger(name: str):
    return structlog.get_logger(name)

def set_cycle_counter(counter: int):
    bind_contextvars(cycle_counter=counter)

configure_logging()
log = get_logger("OracleBot.System")
