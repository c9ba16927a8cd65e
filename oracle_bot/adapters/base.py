# /oracle_bot/adapters/base.py
# - Defines the ChainGateway interface the decision engine talks to.
# - The engine never touches web3 directly; it only sees these four calls.

from oracle_bot.core.types import MarketSnapshot, TransactionHandle

class GatewayError(Exception):
    """Any failure talking to the chain. Counted by the error guard."""

class InsufficientBalanceError(GatewayError):
    pass

class ChainGateway:
    """
    This is the interface every chain backend must implement.
    Implementations raise on failure; timeouts are applied by the caller.
    """
    async def initialize(self):
        """Open connections, verify the contract is reachable."""

    async def fetch_market_snapshot(self) -> MarketSnapshot:
        """Both asset prices and volatility from a single read."""
        raise NotImplementedError

    async def fetch_gas_price(self) -> float:
        """Current network gas price in gwei."""
        raise NotImplementedError

    async def submit_update(self, snapshot: MarketSnapshot) -> TransactionHandle:
        """Send the update and wait until it is mined."""
        raise NotImplementedError

    async def close(self):
        """Release connections."""
