import logging
import os
from pathlib import Path

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from ecoin_link.settings import Settings, settings as default_settings

# Configure logging level - suppress INFO logs by default, show WARNING and above
# Can be overridden with ECOIN_LOG_LEVEL env var (DEBUG, INFO, WARNING, ERROR)
log_level = os.getenv("ECOIN_LOG_LEVEL", "WARNING").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.WARNING),
    format='%(levelname)s: %(message)s'
)

from ecoin_link.core.bus.event_bus import EventBus
from ecoin_link.core.link.session import LinkSession
from ecoin_link.core.link.transcript import SessionLog
from ecoin_link.core.link.transport import SerialHost
from ecoin_link.core.store.detections import DetectionStore
from ecoin_link.core.store.operator import OperatorSession
from ecoin_link.core.notify.notifier import Notifier
from ecoin_link.core.insight.gemini import GeminiInsightClient

from ecoin_link.api.http.routes_health import router as health_router
from ecoin_link.api.http.routes_link import bind as bind_link
from ecoin_link.api.http.routes_detections import bind as bind_detections
from ecoin_link.api.http.routes_insight import bind as bind_insight
from ecoin_link.api.http.routes_session import bind as bind_session

from ecoin_link.api.ws.events_ws import events_ws

from ecoin_link.core import state


# ------------------------------------------------------------
# App factory
# ------------------------------------------------------------
def create_app(cfg: Settings = default_settings, host=None, insight=None) -> FastAPI:
    app = FastAPI(title=cfg.APP_NAME)

    # --------------------------------------------------------
    # Middleware
    # --------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --------------------------------------------------------
    # Core runtime objects (SINGLE SOURCE OF TRUTH)
    # --------------------------------------------------------
    data_dir = Path(cfg.DATA_DIR)
    bus = EventBus()
    notifier = Notifier(bus=bus)

    detections = DetectionStore(
        path=data_dir / "detections.json",
        max_history=cfg.HISTORY_MAX,
        notifier=notifier,
        bus=bus,
    )
    detections.load()

    operator = OperatorSession(path=data_dir / "session.json")
    operator.load()

    if host is None:
        host = SerialHost(default_port=cfg.SERIAL_PORT, idle_timeout_s=cfg.IDLE_TIMEOUT_S)

    link = LinkSession(
        host,
        detections,
        transcript=SessionLog(maxlen=cfg.TRANSCRIPT_MAX, bus=bus),
        bus=bus,
    )

    if insight is None:
        insight = GeminiInsightClient(api_key=cfg.GEMINI_API_KEY, model=cfg.INSIGHT_MODEL)

    app.state.bus = bus
    app.state.link = link
    app.state.detections = detections
    app.state.operator = operator
    app.state.insight = insight

    state.link = link
    state.detections = detections

    # --------------------------------------------------------
    # HTTP API ROUTES
    # --------------------------------------------------------
    app.include_router(health_router)
    app.include_router(bind_link(link))
    app.include_router(bind_detections(detections))
    app.include_router(bind_insight(detections, insight))
    app.include_router(bind_session(operator, link))

    # --------------------------------------------------------
    # WEBSOCKET ROUTES
    # --------------------------------------------------------
    @app.websocket("/ws/notify")
    async def ws_notify(websocket: WebSocket):
        await events_ws(websocket, bus)

    # --------------------------------------------------------
    # Lifecycle hooks
    # --------------------------------------------------------
    @app.on_event("shutdown")
    async def _shutdown():
        await link.disconnect()

    return app


# ------------------------------------------------------------
# Entrypoint
# ------------------------------------------------------------
def main():
    import uvicorn

    uvicorn.run(create_app(), host=default_settings.HOST, port=default_settings.PORT)


if __name__ == "__main__":
    main()
