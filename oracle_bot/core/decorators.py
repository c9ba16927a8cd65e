# /oracle_bot/core/decorators.py
# Reusable decorators for operational resilience.
from tenacity import retry, stop_after_attempt, wait_exponential, before_sleep_log
from oracle_bot.core.logger import get_logger
import logging

log = get_logger(__name__)

# Startup-only: per-cycle calls are never retried in place, a failed cycle
# waits for the next tick.
retriable_network_call = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=5),
    before_sleep=before_sleep_log(log, logging.WARNING),
    reraise=True # Re-raise the last exception after retries are exhausted
)
