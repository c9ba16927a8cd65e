# /oracle_bot/core/snapshot_cache.py
from datetime import datetime
from typing import Optional

from oracle_bot.core.logger import get_logger
from oracle_bot.core.types import MarketSnapshot

log = get_logger(__name__)


class MarketSnapshotCache:
    """
    Last observed snapshot vs last confirmed one.

    `last_observed` moves on every successful read. `last_confirmed` only moves
    after the snapshot made it on-chain, and is the baseline price changes are
    measured against.
    """
    def __init__(self):
        self.last_observed: Optional[MarketSnapshot] = None
        self.last_confirmed: Optional[MarketSnapshot] = None
        self.confirmed_at: Optional[datetime] = None

    def observe(self, snapshot: MarketSnapshot) -> None:
        self.last_observed = snapshot

    def confirm(self, snapshot: MarketSnapshot, at: datetime) -> None:
        self.last_confirmed = snapshot
        self.confirmed_at = at
        log.info("SNAPSHOT_CONFIRMED", btc_price=snapshot.btc_price, eth_price=snapshot.eth_price, confirmed_at=at.isoformat())

    def has_baseline(self) -> bool:
        """A zero price cannot serve as a baseline for percentage changes."""
        snap = self.last_confirmed
        return snap is not None and snap.btc_price > 0 and snap.eth_price > 0
