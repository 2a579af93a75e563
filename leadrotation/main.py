"""Application entrypoint for both FastAPI and foreground scheduler mode."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from leadrotation.api.v1 import distribution
from leadrotation.api.v1.router import get_api_router
from leadrotation.core.config import get_config
from leadrotation.core.startup import bootstrap, start_scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    # The trigger belongs to this process; starting it here runs one cycle immediately.
    trigger = start_scheduler() if bootstrap() else None
    distribution.set_trigger(trigger)
    app.state.trigger = trigger
    try:
        yield
    finally:
        if trigger is not None:
            trigger.stop()
        distribution.set_trigger(None)


def create_app(with_scheduler: bool = True) -> FastAPI:
    """Create the FastAPI application; the scheduler starts with the app lifespan."""
    cfg = get_config()
    app = FastAPI(
        title=cfg.APP_NAME,
        version=cfg.APP_VERSION,
        lifespan=_lifespan if with_scheduler else None,
    )
    app.include_router(get_api_router())

    @app.get("/")
    def root() -> dict:
        return {"service": cfg.APP_NAME, "version": cfg.APP_VERSION, "api_prefix": cfg.API_PREFIX}

    return app


# Expose ASGI app for `uvicorn leadrotation.main:app`.
app = create_app()


def run_foreground() -> int:
    """Run the scheduler without the HTTP surface until interrupted."""
    if not bootstrap():
        return 1
    trigger = start_scheduler()
    if trigger is None:
        return 1
    try:
        trigger.join()
    except KeyboardInterrupt:
        logger.info("scheduler.interrupted", extra={"event": "scheduler.interrupted"})
    finally:
        trigger.stop()
    return 0


if __name__ == "__main__":
    raise SystemExit(run_foreground())
