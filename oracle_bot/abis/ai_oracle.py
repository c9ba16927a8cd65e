# /oracle_bot/abis/ai_oracle.py
AI_ORACLE_ABI = [
    {"inputs": [], "name": "updateMarketDataFromFeeds", "outputs": [], "stateMutability": "nonpayable", "type": "function"},
    {"inputs": [], "name": "currentMarketCondition", "outputs": [{"internalType": "uint8", "name": "", "type": "uint8"}], "stateMutability": "view", "type": "function"},
    {"inputs": [], "name": "getMarketData", "outputs": [{"internalType": "uint256", "name": "btcPrice", "type": "uint256"}, {"internalType": "uint256", "name": "ethPrice", "type": "uint256"}, {"internalType": "uint256", "name": "marketCap", "type": "uint256"}, {"internalType": "uint256", "name": "volatility", "type": "uint256"}, {"internalType": "uint256", "name": "timestamp", "type": "uint256"}], "stateMutability": "view", "type": "function"},
    {"inputs": [], "name": "getActiveUsersCount", "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}], "stateMutability": "view", "type": "function"},
]

# Index -> name of the contract's MarketCondition enum.
MARKET_CONDITIONS = {0: "BULLISH", 1: "BEARISH", 2: "NEUTRAL"}

# Prices are stored with 8 decimals.
PRICE_SCALE = 10**8
