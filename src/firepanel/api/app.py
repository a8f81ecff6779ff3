"""
Fire Panel API application

create_app() builds the FastAPI app around a FirePanel. With realtime=True a
background task advances panel time from the monotonic clock so lighting
timers run without external tick calls.
"""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .. import __version__
from ..config import PanelConfig
from ..services.panel import FirePanel
from .panel_api import (
    auth_router,
    lighting_router,
    panel_router,
    set_panel,
    suppression_router,
)


logger = logging.getLogger(__name__)


async def run_ticker(panel: FirePanel, interval_sec: float = 1.0):
    """Advance panel time by the real elapsed time every interval_sec.

    A failing tick is logged and the loop keeps running.
    """
    last = time.monotonic()
    while True:
        await asyncio.sleep(interval_sec)
        now = time.monotonic()
        try:
            panel.tick(now - last)
        except Exception:
            logger.exception("[API] tick failed")
        last = now


def create_app(
    panel: Optional[FirePanel] = None,
    realtime: bool = True,
    tick_interval_sec: float = 1.0,
) -> FastAPI:
    """Build the API app. Reads FIREPANEL_* env vars if no panel is given."""
    if panel is None:
        panel = FirePanel(PanelConfig.from_env())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        set_panel(panel)
        ticker = None
        if realtime:
            ticker = asyncio.create_task(run_ticker(panel, tick_interval_sec))
            logger.info("[API] Realtime ticker started (%.1fs)", tick_interval_sec)
        try:
            yield
        finally:
            if ticker is not None:
                ticker.cancel()
                try:
                    await ticker
                except asyncio.CancelledError:
                    pass
            set_panel(None)

    app = FastAPI(
        title="Fire Panel",
        version=__version__,
        description="Suppression & emergency lighting control plane",
        lifespan=lifespan,
    )
    app.include_router(suppression_router)
    app.include_router(auth_router)
    app.include_router(lighting_router)
    app.include_router(panel_router)
    app.state.panel = panel

    # Routes are usable without the lifespan (e.g. TestClient without `with`)
    set_panel(panel)
    return app
