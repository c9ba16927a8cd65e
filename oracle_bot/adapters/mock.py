# /oracle_bot/adapters/mock.py
# - In-memory ChainGateway for tests and DRY_RUN mode.
# - Nothing leaves the process; "transactions" are recorded in `submitted`.

import asyncio
from collections import deque
from typing import Deque, List, Optional

from oracle_bot.adapters.base import ChainGateway, GatewayError
from oracle_bot.core.logger import get_logger
from oracle_bot.core.types import MarketSnapshot, TransactionHandle

log = get_logger(__name__)

class MockChainGateway(ChainGateway):
    """
    Scripted gateway. Gas prices and snapshots are served from queues; the
    last value is repeated once a queue runs dry.
    """
    def __init__(self, gas_prices: Optional[List[float]] = None, snapshots: Optional[List[MarketSnapshot]] = None,
                 gas_used: int = 200_000):
        self.gas_prices: Deque[float] = deque(gas_prices or [0.005])
        self.snapshots: Deque[MarketSnapshot] = deque(snapshots or [])
        self.gas_used = gas_used
        self.submitted: List[MarketSnapshot] = []
        self.last_gas_price: Optional[float] = None
        self.submit_delay = 0.0
        self.fetch_delay = 0.0
        # What the "contract" stores once an update is mined; None echoes nothing back.
        self.stored_after_update: Optional[MarketSnapshot] = None
        self._submit_failures = 0
        self._gas_failures = 0
        self._snapshot_failures = 0
        self.nonce = 0
        log.info("MOCK_CHAIN_GATEWAY_INITIALIZED")

    def set_next_submissions_to_fail(self, count: int = 1):
        """Configure the mock to raise on the next `count` submissions."""
        self._submit_failures = count

    def set_next_gas_fetches_to_fail(self, count: int = 1):
        self._gas_failures = count

    def set_next_snapshot_fetches_to_fail(self, count: int = 1):
        self._snapshot_failures = count

    @staticmethod
    def _next(queue: deque):
        return queue.popleft() if len(queue) > 1 else queue[0]

    async def fetch_gas_price(self) -> float:
        if self.fetch_delay:
            await asyncio.sleep(self.fetch_delay)
        if self._gas_failures:
            self._gas_failures -= 1
            log.error("MOCK_FETCH_FORCED_FAILURE", call="fetch_gas_price")
            raise GatewayError("Forced gas price failure for testing.")
        self.last_gas_price = self._next(self.gas_prices)
        return self.last_gas_price

    async def fetch_market_snapshot(self) -> MarketSnapshot:
        if self.fetch_delay:
            await asyncio.sleep(self.fetch_delay)
        if self._snapshot_failures:
            self._snapshot_failures -= 1
            log.error("MOCK_FETCH_FORCED_FAILURE", call="fetch_market_snapshot")
            raise GatewayError("Forced snapshot failure for testing.")
        if not self.snapshots:
            raise GatewayError("No mock snapshot configured.")
        return self._next(self.snapshots)

    async def submit_update(self, snapshot: MarketSnapshot) -> TransactionHandle:
        if self.submit_delay:
            await asyncio.sleep(self.submit_delay)
        if self._submit_failures:
            self._submit_failures -= 1
            log.error("MOCK_SUBMIT_FORCED_FAILURE", btc_price=snapshot.btc_price, eth_price=snapshot.eth_price)
            raise GatewayError("Forced submission failure for testing.")

        handle = TransactionHandle(
            tx_hash=f"0xfake_tx_hash_{self.nonce}",
            block_number=self.nonce + 1,
            gas_used=self.gas_used,
            effective_gas_price_gwei=self.last_gas_price or 0.0,
            confirmed_snapshot=self.stored_after_update,
        )
        self.submitted.append(snapshot)
        self.nonce += 1
        log.info("MOCK_UPDATE_SUBMITTED", tx_hash=handle.tx_hash)
        return handle
