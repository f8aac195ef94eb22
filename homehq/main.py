import logging
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from homehq.config.settings import Settings, settings as default_settings
from homehq.core.dependencies import rate_limit
from homehq.core.exceptions import INTERNAL_ERROR, RATE_LIMITED
from homehq.core.results import ApiError, Err
from homehq.database.memory_client import InMemorySupabase
from homehq.database.supabase_client import SupabaseGateway
from homehq.modules.auth import routes as auth_routes
from homehq.modules.events import routes as events_routes
from homehq.modules.families import routes as families_routes
from homehq.modules.family_members import routes as family_members_routes
from homehq.modules.suggestions import routes as suggestions_routes
from homehq.modules.tasks import routes as tasks_routes
from homehq.scripts.seed_demo_family import seed_demo_family

logging.basicConfig(
    level=getattr(logging, default_settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


def build_gateway(settings: Settings):
    """Persistence backend chosen by DATABASE_BACKEND"""
    if settings.uses_memory_backend:
        logger.warning("Using the in-memory backend; data is lost on restart")
        gateway = InMemorySupabase()
        if settings.seed_demo_data:
            seed_demo_family(gateway)
        return gateway
    return SupabaseGateway(settings)


def create_app(settings: Optional[Settings] = None, gateway=None) -> FastAPI:
    """Build the application.

    When ``gateway`` is not given it is built from ``settings`` at start-up,
    so a missing Supabase configuration fails the server start rather than
    the import.
    """
    settings = settings or default_settings

    limiter = Limiter(key_func=get_remote_address)
    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        redirect_slashes=False,
    )
    app.state.limiter = limiter
    app.state.gateway = gateway

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
        logger.warning("Rate limit exceeded for %s on %s", get_remote_address(request), request.url.path)
        error = ApiError(code=RATE_LIMITED, message=f"Rate limit exceeded: {exc.detail}")
        return JSONResponse(status_code=429, content=Err(error=error).to_dict())

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        details = None if settings.is_production else {"reason": str(exc)}
        error = ApiError(code=INTERNAL_ERROR, message="Internal server error", details=details)
        return JSONResponse(status_code=500, content=Err(error=error).to_dict())

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include module routes; one rate limit per client across the whole API
    api_dependencies = [Depends(rate_limit(limiter, settings.rate_limit))]
    for module_routes in (auth_routes, families_routes, family_members_routes, events_routes, tasks_routes,
                          suggestions_routes):
        app.include_router(module_routes.router, prefix="/api/v1", dependencies=api_dependencies)

    @app.on_event("startup")
    async def startup_event():
        if app.state.gateway is None:
            app.state.gateway = build_gateway(settings)
        logger.info("Application startup (%s backend)", settings.database_backend)

    @app.on_event("shutdown")
    async def shutdown_event():
        if app.state.gateway is not None:
            app.state.gateway.close()
        logger.info("Application shutdown")

    @app.get("/")
    async def root():
        return {"message": f"Welcome to {settings.app_name}", "status": "healthy"}

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    @app.get("/ready")
    async def ready():
        """Readiness check: ready once the persistence backend is built."""
        if app.state.gateway is None:
            return JSONResponse(status_code=503, content={"status": "starting"})
        return {"status": "ready"}

    return app


app = create_app()
