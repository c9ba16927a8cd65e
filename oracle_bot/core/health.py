# /oracle_bot/core/health.py
# Read-only HTTP surface for operators: liveness, last status, Prometheus.
from aiohttp import web
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from oracle_bot.core.logger import get_logger
from oracle_bot.core.scheduler import Scheduler

log = get_logger(__name__)

SCHEDULER_KEY = web.AppKey("scheduler", Scheduler)

async def healthz(request: web.Request) -> web.Response:
    """JSON health status. A tripped guard is reported as halted with HTTP 503."""
    scheduler = request.app[SCHEDULER_KEY]
    halted = scheduler.guard.is_tripped()
    body = {
        "status": "halted" if halted else "ok",
        "is_running": scheduler.state.is_running,
        "consecutive_errors": scheduler.guard.count,
    }
    return web.json_response(body, status=503 if halted else 200)

async def status(request: web.Request) -> web.Response:
    scheduler = request.app[SCHEDULER_KEY]
    report = scheduler.status_report()
    return web.json_response(report.model_dump(mode="json"))

async def metrics(request: web.Request) -> web.Response:
    resp = web.Response(body=generate_latest())
    resp.content_type = CONTENT_TYPE_LATEST.split(";")[0]
    return resp

def build_app(scheduler: Scheduler) -> web.Application:
    app = web.Application()
    app[SCHEDULER_KEY] = scheduler
    app.add_routes([
        web.get("/healthz", healthz),
        web.get("/status", status),
        web.get("/metrics", metrics),
    ])
    return app

async def start_health_server(scheduler: Scheduler, port: int) -> web.AppRunner:
    runner = web.AppRunner(build_app(scheduler))
    await runner.setup()
    site = web.TCPSite(runner, "0.0.0.0", port)
    await site.start()
    log.info("HEALTHCHECK_SERVER_STARTED", port=port)
    return runner
