import pytest
from aiohttp import test_utils

from oracle_bot.adapters.mock import MockChainGateway
from oracle_bot.core.health import build_app
from oracle_bot.core.scheduler import Scheduler

from conftest import make_config, make_engine, snapshot

def client_for(scheduler: Scheduler) -> test_utils.TestClient:
    return test_utils.TestClient(test_utils.TestServer(build_app(scheduler)))

@pytest.mark.asyncio
async def test_healthz_and_status(clock):
    gateway = MockChainGateway(snapshots=[snapshot()])
    scheduler = Scheduler(make_engine(gateway, clock), 300, 3600, clock=clock)
    await scheduler.run_cycle()

    async with client_for(scheduler) as client:
        r = await client.get("/healthz")
        assert r.status == 200
        assert (await r.json())["status"] == "ok"

        r = await client.get("/status")
        assert r.status == 200
        body = await r.json()
        assert body["update_count"] == 1
        assert body["last_btc_price"] == 50000

        r = await client.get("/metrics")
        assert r.status == 200
        assert "oracle_updates_submitted_total" in await r.text()

@pytest.mark.asyncio
async def test_healthz_reports_halt(clock):
    gateway = MockChainGateway(snapshots=[snapshot()])
    gateway.set_next_submissions_to_fail(1)
    scheduler = Scheduler(make_engine(gateway, clock, make_config(max_consecutive_errors=1)), 300, 3600, clock=clock)
    await scheduler.run_cycle()

    async with client_for(scheduler) as client:
        r = await client.get("/healthz")
        assert r.status == 503
        body = await r.json()
        assert body["status"] == "halted"
        assert body["consecutive_errors"] == 1
