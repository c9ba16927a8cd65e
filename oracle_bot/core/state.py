# /oracle_bot/core/state.py
from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from oracle_bot.core.logger import get_logger

log = get_logger(__name__)

class BotRuntimeState(BaseModel):
    """
    Runtime counters of one bot process.
    Frozen: every transition returns a new instance, so a reader holding a
    reference always sees a consistent record.
    """
    model_config = ConfigDict(frozen=True)

    is_running: bool = False
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_confirmed_update_at: Optional[datetime] = None
    update_count: int = 0
    skipped_count: int = 0
    consecutive_error_count: int = 0
    consecutive_skip_count: int = 0
    cycle_count: int = 0
    gas_spent_eth: float = 0.0

    def start(self) -> 'BotRuntimeState':
        log.info("BOT_STATE_RUNNING")
        return self.model_copy(update={"is_running": True})

    def stop(self) -> 'BotRuntimeState':
        log.warning("BOT_STATE_STOPPED", update_count=self.update_count, skipped_count=self.skipped_count)
        return self.model_copy(update={"is_running": False})

    def begin_cycle(self) -> 'BotRuntimeState':
        return self.model_copy(update={"cycle_count": self.cycle_count + 1})

    def record_update(self, at: datetime, cost_eth: float = 0.0) -> 'BotRuntimeState':
        return self.model_copy(update={
            "last_confirmed_update_at": at,
            "update_count": self.update_count + 1,
            "consecutive_error_count": 0,
            "consecutive_skip_count": 0,
            "gas_spent_eth": self.gas_spent_eth + cost_eth,
        })

    def record_skip(self) -> 'BotRuntimeState':
        return self.model_copy(update={
            "skipped_count": self.skipped_count + 1,
            "consecutive_skip_count": self.consecutive_skip_count + 1,
        })

    def record_error(self, consecutive_errors: int) -> 'BotRuntimeState':
        """The error guard owns the count; the state mirrors it."""
        return self.model_copy(update={"consecutive_error_count": consecutive_errors})

    def seed_confirmed(self, at: datetime) -> 'BotRuntimeState':
        return self.model_copy(update={"last_confirmed_update_at": at})
