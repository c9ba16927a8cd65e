"""ABI fragments for the contracts the bot talks to."""

from oracle_bot.abis.ai_oracle import AI_ORACLE_ABI, MARKET_CONDITIONS

__all__ = ["AI_ORACLE_ABI", "MARKET_CONDITIONS"]
