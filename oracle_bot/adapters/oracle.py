# /oracle_bot/adapters/oracle.py
# ChainGateway backed by an async web3 provider and the AI oracle contract.
from datetime import datetime, timezone

from eth_account import Account
from web3 import AsyncWeb3, Web3

from oracle_bot.abis.ai_oracle import AI_ORACLE_ABI, MARKET_CONDITIONS, PRICE_SCALE
from oracle_bot.adapters.base import ChainGateway, GatewayError, InsufficientBalanceError
from oracle_bot.core.costs import update_cost_eth
from oracle_bot.core.decorators import retriable_network_call
from oracle_bot.core.logger import get_logger
from oracle_bot.core.types import MarketSnapshot, TransactionHandle

log = get_logger(__name__)

def wei_to_gwei(wei: int) -> float:
    return float(Web3.from_wei(wei, "gwei"))

class Web3OracleGateway(ChainGateway):
    """
    Reads market data and gas from the chain and pushes oracle updates.

    Per-cycle calls do not retry; the engine bounds them with a timeout and a
    failure simply waits for the next tick. Only the startup connection is
    retried.
    """
    def __init__(self, rpc_url: str, private_key: str | None, oracle_address: str, chain_id: int,
                 gas_units: int = 200_000, request_timeout: float = 10.0, receipt_timeout: float = 120.0,
                 dry_run: bool = False):
        if private_key is None and not dry_run:
            raise ValueError("A private key is required unless running in dry-run mode.")
        self.w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": request_timeout}))
        self.account = Account.from_key(private_key) if private_key else None
        self.address = self.account.address if self.account else None
        self.dry_run = dry_run
        self._dry_run_count = 0
        self.chain_id = chain_id
        self.gas_units = gas_units
        self.receipt_timeout = receipt_timeout
        self.contract = self.w3.eth.contract(address=Web3.to_checksum_address(oracle_address), abi=AI_ORACLE_ABI)

    @retriable_network_call
    async def initialize(self):
        if not await self.w3.is_connected():
            raise GatewayError("RPC endpoint is unreachable.")
        chain_id = await self.w3.eth.chain_id
        if chain_id != self.chain_id:
            raise GatewayError(f"Connected to chain {chain_id}, expected {self.chain_id}.")
        balance = await self.w3.eth.get_balance(self.address) if self.address else 0
        condition = await self.contract.functions.currentMarketCondition().call()
        log.info(
            "WEB3_ORACLE_GATEWAY_INITIALIZED",
            chain_id=chain_id,
            wallet=self.address,
            dry_run=self.dry_run,
            balance_eth=float(Web3.from_wei(balance, "ether")),
            market_condition=MARKET_CONDITIONS.get(condition, "UNKNOWN"),
        )

    async def fetch_gas_price(self) -> float:
        return wei_to_gwei(await self.w3.eth.gas_price)

    async def fetch_market_snapshot(self) -> MarketSnapshot:
        btc, eth, market_cap, volatility, timestamp = await self.contract.functions.getMarketData().call()
        observed_at = (
            datetime.fromtimestamp(timestamp, tz=timezone.utc) if timestamp else datetime.now(timezone.utc)
        )
        return MarketSnapshot(
            btc_price=btc / PRICE_SCALE,
            eth_price=eth / PRICE_SCALE,
            market_cap_usd=float(market_cap),
            volatility_pct=float(volatility),
            observed_at=observed_at,
        )

    async def submit_update(self, snapshot: MarketSnapshot) -> TransactionHandle:
        # The contract pulls its own feeds; the snapshot is what we expect it to land near.
        if self.dry_run:
            self._dry_run_count += 1
            log.warning("DRY_RUN_UPDATE_NOT_BROADCAST", btc_price=snapshot.btc_price, eth_price=snapshot.eth_price)
            return TransactionHandle(tx_hash=f"dry-run-{self._dry_run_count}")

        gas_price_wei = await self.w3.eth.gas_price
        balance = await self.w3.eth.get_balance(self.address)
        required = gas_price_wei * self.gas_units
        if balance < required:
            raise InsufficientBalanceError(
                f"Insufficient balance. Need {Web3.from_wei(required, 'ether')} ETH, "
                f"have {Web3.from_wei(balance, 'ether')} ETH"
            )

        nonce = await self.w3.eth.get_transaction_count(self.address, "pending")
        tx = await self.contract.functions.updateMarketDataFromFeeds().build_transaction({
            "from": self.address,
            "nonce": nonce,
            "chainId": self.chain_id,
            "gasPrice": gas_price_wei,
        })
        signed = self.account.sign_transaction(tx)
        tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
        log.info("ORACLE_UPDATE_BROADCASTED", tx_hash=Web3.to_hex(tx_hash), nonce=nonce, gas_price_gwei=wei_to_gwei(gas_price_wei))

        receipt = await self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        if receipt["status"] != 1:
            raise GatewayError(f"Oracle update {Web3.to_hex(tx_hash)} reverted in block {receipt['blockNumber']}.")

        effective_gwei = wei_to_gwei(receipt.get("effectiveGasPrice", gas_price_wei))
        # The update is already mined; a failed read-back must not turn it into a failure.
        try:
            stored = await self.fetch_market_snapshot()
        except Exception as e:
            log.warning("POST_UPDATE_MARKET_DATA_READ_FAILED", tx_hash=Web3.to_hex(tx_hash), error=str(e))
            stored = None
        try:
            condition = await self.contract.functions.currentMarketCondition().call()
            active_users = await self.contract.functions.getActiveUsersCount().call()
        except Exception as e:
            log.warning("MARKET_CONDITION_READ_FAILED", error=str(e))
            condition, active_users = None, None
        log.info(
            "ORACLE_UPDATE_MINED",
            tx_hash=Web3.to_hex(tx_hash),
            block_number=receipt["blockNumber"],
            gas_used=receipt["gasUsed"],
            cost_eth=update_cost_eth(receipt["gasUsed"], effective_gwei),
            expected_btc_price=snapshot.btc_price,
            expected_eth_price=snapshot.eth_price,
            stored_btc_price=stored.btc_price if stored else None,
            stored_eth_price=stored.eth_price if stored else None,
            market_condition=MARKET_CONDITIONS.get(condition, "UNKNOWN"),
            active_users=active_users,
        )
        return TransactionHandle(
            tx_hash=Web3.to_hex(tx_hash),
            block_number=receipt["blockNumber"],
            gas_used=receipt["gasUsed"],
            effective_gas_price_gwei=effective_gwei,
            confirmed_snapshot=stored,
        )

    async def close(self):
        await self.w3.provider.disconnect()
        log.info("WEB3_ORACLE_GATEWAY_CLOSED")
