import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.exceptions import HTTPException as StarletteHTTPException

from progresspath import __version__
from progresspath.config import settings
from progresspath.core.errors import http_exception_handler, validation_exception_handler
from progresspath.modules.auth import routes as auth_routes
from progresspath.modules.dashboard import routes as dashboard_routes
from progresspath.modules.debug import routes as debug_routes
from progresspath.modules.embed import routes as embed_routes
from progresspath.modules.learning import routes as learning_routes
from progresspath.modules.quotes import routes as quotes_routes
from progresspath.modules.users import routes as users_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Application startup ({settings.environment})")
    if not settings.embed_secret:
        logger.warning("No JWT_EMBED_SECRET or Supabase service key configured; embed tokens are disabled")
    yield
    logger.info("Application shutdown")


limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
app = FastAPI(
    title=settings.app_name,
    version=__version__,
    debug=settings.debug,
    redirect_slashes=False,
    lifespan=lifespan,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"error": "Internal server error"})
    return JSONResponse(status_code=500, content={"error": "Internal server error", "message": str(exc)})


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
                    (b"Referrer-Policy", b"strict-origin-when-cross-origin"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


# Embed pages are framed by third-party sites, so no X-Frame-Options here
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include module routes
app.include_router(embed_routes.router, prefix="/api")
app.include_router(auth_routes.router, prefix="/api")
app.include_router(users_routes.router, prefix="/api")
app.include_router(dashboard_routes.router, prefix="/api")
app.include_router(learning_routes.router, prefix="/api")
app.include_router(quotes_routes.router, prefix="/api")
app.include_router(debug_routes.router, prefix="/api")


@app.get("/")
async def root():
    return {"message": "Welcome to progresspath-api", "status": "healthy", "version": __version__}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness probe: reports whether Supabase and embed signing are configured."""
    return {
        "status": "ready",
        "supabaseConfigured": bool(settings.supabase_url and (settings.supabase_key or settings.service_key)),
        "embedTokensEnabled": bool(settings.embed_secret),
    }
