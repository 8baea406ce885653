"""FastAPI application - Asset Validation Service.

Start with:
    PYTHONPATH=src uvicorn validation_svc.main:app --port 8060

Set VALIDATION_CONFIG to a YAML config file to seed the ledger, choose
validators and enable request persistence.
"""

from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from pydantic import BaseModel

from .config import Config
from .ledger.memory import InMemoryLedger
from .requests import routes as validation_routes
from .requests.loader import load_logs_from_yaml
from .requests.policy import AllowAnyPolicy, AllowListPolicy, ValidatorPolicy
from .service import ValidationService
from .telemetry.batcher import NotificationBatcher
from .telemetry.emitter import EventEmitter
from .telemetry.sinks.base import EventSink
from .telemetry.sinks.console import ConsoleSink
from .telemetry.sinks.file import FileSink


logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    status: str
    requests: dict[str, Any]
    telemetry: dict[str, Any]
    ledger: dict[str, Any]


# Global service instance (initialized in lifespan)
_service: ValidationService | None = None
_telemetry_task: asyncio.Task | None = None
_batcher_task: asyncio.Task | None = None


def load_config() -> Config:
    """Load config from VALIDATION_CONFIG, or defaults."""
    path = os.environ.get("VALIDATION_CONFIG")
    if not path:
        return Config()
    logger.info(f"Loading config from {path}")
    if path.endswith(".json"):
        return Config.from_json(path)
    return Config.from_yaml(path)


def create_ledger(config: Config) -> InMemoryLedger:
    """Create the in-memory ledger seeded from config."""
    ledger = InMemoryLedger()
    for asset_id, owner in config.ledger.assets.items():
        ledger.mint(owner, asset_id)
    logger.info(f"Ledger seeded with {len(config.ledger.assets)} assets")
    return ledger


def create_policy(config: Config) -> ValidatorPolicy:
    """Create the validator policy."""
    if config.validation.allow_any_validator:
        logger.warning("Any caller may confirm requests (allow_any_validator=true)")
        return AllowAnyPolicy()
    if not config.validation.validators:
        logger.warning("No validators configured; pending requests cannot be confirmed")
    return AllowListPolicy.of(config.validation.validators)


def create_sink(config: Config) -> EventSink:
    sink_type = config.telemetry.sink_type
    sink_config = config.telemetry.sink_config

    if sink_type == "file":
        return FileSink(**sink_config)
    if sink_type != "console":
        logger.warning(f"Unknown sink type {sink_type!r}, using console")
        return ConsoleSink()
    return ConsoleSink(**sink_config)


def create_telemetry(config: Config) -> tuple[EventEmitter, NotificationBatcher, EventSink]:
    """Create the event emitter and the batcher feeding the sink."""
    emitter = EventEmitter(max_queue_size=config.telemetry.max_queue_size)
    sink = create_sink(config)

    batcher = NotificationBatcher(
        sink=sink,
        batch_size=config.telemetry.batch_size,
        flush_interval_seconds=config.telemetry.flush_interval_seconds,
        flush_on_confirm=config.telemetry.flush_on_confirm,
        max_buffered=config.telemetry.max_queue_size,
    )
    emitter.add_consumer(batcher)

    return emitter, batcher, sink


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    global _service, _telemetry_task, _batcher_task

    logger.info("Starting asset validation service...")

    config = load_config()
    app.state.config = config

    ledger = create_ledger(config)
    policy = create_policy(config)

    emitter = batcher = sink = None
    if config.telemetry.enabled:
        emitter, batcher, sink = create_telemetry(config)
        await sink.start()
        await emitter.start()
        _telemetry_task = asyncio.create_task(emitter.process_loop())
        _batcher_task = asyncio.create_task(batcher.run())

    _service = ValidationService(ledger=ledger, policy=policy, emitter=emitter)

    requests_file = config.validation.requests_file
    if requests_file:
        load_logs_from_yaml(requests_file, _service.transfers, _service.approvals, ledger=ledger)

    validation_routes.configure(
        service=_service,
        yaml_path=requests_file,
        auto_save=config.validation.auto_save,
    )

    logger.info("Asset validation service started")

    yield

    logger.info("Shutting down asset validation service...")

    for task in (_telemetry_task, _batcher_task):
        if task:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    if emitter:
        await emitter.stop()
    if batcher:
        await batcher.stop()
    if sink:
        await sink.stop()

    logger.info("Asset validation service stopped")


app = FastAPI(
    title="Asset Validation Service",
    description="Two-phase validation of asset transfers and approvals.",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(validation_routes.router)


@app.get("/health", response_model=HealthResponse)
async def health():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy" if _service else "starting",
        requests=_service.stats if _service else {},
        telemetry=_service.emitter.stats if _service and _service.emitter else {},
        ledger=_service.ledger.stats() if _service else {},
    )


@app.get("/")
async def root():
    """Root endpoint with service info."""
    return {
        "service": "Asset Validation Service",
        "version": "0.1.0",
        "endpoints": {
            "/validation/transfers": "POST - submit a transfer; GET - list transfer requests",
            "/validation/transfers/{id}/confirm": "POST - confirm a pending transfer",
            "/validation/approvals": "POST - request a single-asset approval; GET - list approvals",
            "/validation/approvals/operators": "POST - grant or revoke an operator",
            "/validation/approvals/{id}/confirm": "POST - confirm a pending approval",
            "/validation/capabilities": "Feature probe and request totals",
            "/validation/assets/{asset_id}": "Current owner and approval",
            "/health": "Health check",
        },
    }


def run():
    """Run the service with uvicorn."""
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config()
    uvicorn.run(
        "validation_svc.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=config.server.reload,
    )


if __name__ == "__main__":
    run()
