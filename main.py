# /main.py
# Oracle update bot entry point: validate config, wire the engine to the
# chain, run the scheduler until a shutdown signal or a tripped error guard.
import asyncio
import signal

from oracle_bot.core.config import settings
from oracle_bot.core.config_validator import validate as validate_config
from oracle_bot.core.costs import monthly_cost_usd, updates_per_month
from oracle_bot.core.logger import get_logger
from oracle_bot.core.engine import UpdateDecisionEngine
from oracle_bot.core.gas_history import GasPriceHistory
from oracle_bot.core.guard import ErrorGuard
from oracle_bot.core.health import start_health_server
from oracle_bot.core.intervals import interval_seconds
from oracle_bot.core.scheduler import Scheduler
from oracle_bot.core.snapshot_cache import MarketSnapshotCache
from oracle_bot.adapters.oracle import Web3OracleGateway

def build_scheduler(gateway) -> Scheduler:
    cfg = settings.threshold_config()
    engine = UpdateDecisionEngine(
        cfg=cfg,
        gateway=gateway,
        history=GasPriceHistory(settings.GAS_HISTORY_SIZE),
        cache=MarketSnapshotCache(),
        guard=ErrorGuard(cfg.max_consecutive_errors),
        fetch_timeout=settings.RPC_TIMEOUT_SECONDS,
        submit_timeout=settings.SUBMIT_TIMEOUT_SECONDS,
        gas_units=settings.ESTIMATED_GAS_UNITS,
    )
    return Scheduler(
        engine,
        evaluation_interval=interval_seconds(settings.UPDATE_INTERVAL_CRON),
        report_interval=interval_seconds(settings.STATUS_REPORT_INTERVAL),
        max_skips_before_alert=settings.MAX_SKIPS_BEFORE_ALERT,
    )

async def main():
    log = get_logger("OracleBot.System")
    # Bad configuration must stop us here, before any timer starts.
    validate_config()
    log.info("ORACLE_BOT_STARTING", dry_run=settings.DRY_RUN)

    gateway = Web3OracleGateway(
        rpc_url=settings.RPC_URL.get_secret_value(),
        private_key=settings.ORACLE_PRIVATE_KEY.get_secret_value() if settings.ORACLE_PRIVATE_KEY else None,
        oracle_address=settings.AI_ORACLE_ADDRESS,
        chain_id=settings.CHAIN_ID,
        gas_units=settings.ESTIMATED_GAS_UNITS,
        request_timeout=settings.RPC_TIMEOUT_SECONDS,
        receipt_timeout=settings.SUBMIT_TIMEOUT_SECONDS,
        dry_run=settings.DRY_RUN,
    )
    await gateway.initialize()

    scheduler = build_scheduler(gateway)
    # Worst case: every tick submits at the static gas ceiling.
    log.info(
        "MONTHLY_COST_CEILING",
        updates_per_month=updates_per_month(scheduler.evaluation_interval),
        cost_usd=monthly_cost_usd(
            settings.ESTIMATED_GAS_UNITS,
            settings.STATIC_MAX_GAS_GWEI,
            scheduler.evaluation_interval,
            settings.ETH_PRICE_USD,
        ),
    )
    if settings.SEED_CONFIRMED_FROM_CHAIN:
        await scheduler.seed_from_chain()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, scheduler.stop)

    runner = await start_health_server(scheduler, settings.HEALTH_PORT)
    try:
        final_state = await scheduler.run()
    finally:
        await runner.cleanup()
        await gateway.close()

    if scheduler.guard.is_tripped():
        log.critical("ORACLE_BOT_HALTED_OPERATOR_ACTION_REQUIRED", reason=scheduler.guard.trip_reason)
        return 1
    log.warning("SYSTEM_SHUTDOWN_COMPLETE", update_count=final_state.update_count, skipped_count=final_state.skipped_count)
    return 0

if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
