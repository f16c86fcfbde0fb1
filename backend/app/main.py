"""
FastAPI application entry point.

Run with:
    zenith-crisis-alert                      (HOST, PORT, RELOAD from settings)
    uvicorn backend.app.main:app --port 3001

Startup fails (and uvicorn exits) when the messaging credentials,
sender addresses or emergency recipients are not configured.
"""

from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# ── Core infrastructure ──
from backend.app.core.config import AlertConfig, Settings, get_settings, load_alert_config
from backend.app.core.cors import OriginAllowList
from backend.app.core.errors import ConfigurationError, register_error_handlers
from backend.app.core.health import HealthStatus, run_health_check
from backend.app.core.logging_config import get_logger, setup_logging
from backend.app.core.middleware import OriginGuardMiddleware, RequestLoggingMiddleware

# ── Crisis pipeline ──
from backend.app.crisis.alert_service import AlertDispatcher
from backend.app.crisis.messaging import MessageSender, TwilioMessagingClient
from backend.app.crisis.orchestrator import CrisisOrchestrator

# ── API routers ──
from backend.app.api.v1.crisis import router as crisis_router

logger = get_logger(__name__)


def create_app(
    cfg: Optional[Settings] = None,
    *,
    alert_config: Optional[AlertConfig] = None,
    sender: Optional[MessageSender] = None,
) -> FastAPI:
    """
    Build the application.

    ``alert_config`` and ``sender`` are injected by tests; in production
    both are derived from settings inside the lifespan.
    """
    cfg = cfg or get_settings()
    allow_list = OriginAllowList(cfg.CORS_ORIGINS)

    # ── Application lifespan (startup / shutdown) ──

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Load alert config, open the messaging client, wire the pipeline."""
        logger.info(
            "Starting %s v%s [%s]",
            cfg.APP_NAME, cfg.APP_VERSION, cfg.ENVIRONMENT,
        )
        try:
            config = alert_config or load_alert_config(cfg)
        except ConfigurationError as exc:
            logger.critical("Refusing to start: %s", exc.message)
            raise

        owned_client: Optional[TwilioMessagingClient] = None
        msg_sender = sender
        if msg_sender is None:
            owned_client = TwilioMessagingClient(config)
            msg_sender = owned_client

        dispatcher = AlertDispatcher(msg_sender, config)
        app.state.alert_config = config
        app.state.sender = msg_sender
        app.state.dispatcher = dispatcher
        app.state.orchestrator = CrisisOrchestrator.from_config(dispatcher, config)
        logger.info(
            "Alert pipeline ready: %d emergency recipient(s)",
            len(config.recipients),
            extra={"recipient_count": len(config.recipients)},
        )

        try:
            yield
        finally:
            if owned_client is not None:
                await owned_client.close()
            logger.info("Shutting down %s", cfg.APP_NAME)

    # ── Create application ──

    app = FastAPI(
        title=cfg.APP_NAME,
        description=(
            "Crisis detection and emergency alerting for the Zenith "
            "mental-health companion: keyword crisis classification, "
            "location resolution with fallback, and SMS + WhatsApp "
            "fan-out to emergency contacts."
        ),
        version=cfg.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = cfg

    # ── Middleware stack (last added is outermost) ──
    # Origin guard wraps CORS: a disallowed preflight gets the JSON 403 too.

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(allow_list.exact),
        allow_origin_regex=allow_list.as_regex(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With", "Accept", "Origin"],
        expose_headers=["Content-Length", "X-Request-ID"],
        max_age=86400,
    )
    app.add_middleware(OriginGuardMiddleware, allow_list=allow_list)
    app.add_middleware(RequestLoggingMiddleware)

    # ── Error handlers ──
    register_error_handlers(app)

    # ── Register routers ──
    app.include_router(crisis_router)

    # ── Root & health endpoints ──

    @app.get("/", tags=["root"])
    async def root():
        return {
            "success": True,
            "message": cfg.APP_NAME,
            "version": cfg.APP_VERSION,
            "endpoints": {
                "crisisAlert": "POST /api/crisis-alert",
                "crisisMessage": "POST /api/crisis/message",
                "emergency": "POST /api/emergency",
                "health": "GET /api/health",
            },
        }

    @app.get("/health/live", tags=["health"])
    async def liveness():
        """Is the process alive?"""
        return {"status": "alive"}

    @app.get("/health/ready", tags=["health"])
    async def readiness(request: Request):
        """Can we send alerts?"""
        report = await run_health_check(request.app.state)
        if report.status == HealthStatus.UNHEALTHY:
            return JSONResponse(status_code=503, content=report.to_dict())
        return report.to_dict()

    return app


# ── Initialise logging ──
setup_logging()

app = create_app()


def run() -> None:
    """Serve ``app`` with uvicorn; reload only applies in development."""
    cfg = get_settings()
    uvicorn.run(
        "backend.app.main:app",
        host=cfg.HOST,
        port=cfg.PORT,
        reload=cfg.RELOAD and cfg.is_development,
        log_config=None,
    )


if __name__ == "__main__":
    run()
