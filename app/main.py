import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Iterable, List, Tuple
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.sessions import SessionMiddleware

from app.config import settings
from app.core.errors import RedirectRequired
from app.core.limiter import limiter
from app.database.supabase_client import SupabaseClient
from app.modules.auth import routes as auth_routes
from app.modules.pages import routes as pages_routes
from app.modules.profiles import routes as profiles_routes
from app.modules.visitors.registry import VisitorRegistry
from app.modules.visitors.scheduler import visitor_sweep_loop

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup")
    sweeper = asyncio.create_task(visitor_sweep_loop(app.state.visitors))
    logger.info(f"Visitor sweeper started - idle contexts released after {settings.visitor_idle_ttl}s")
    yield
    logger.info("Application shutdown")
    sweeper.cancel()
    app.state.visitors.clear()


app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
    lifespan=lifespan,
)
app.state.limiter = limiter
app.state.visitors = VisitorRegistry(client_factory=SupabaseClient.new_client)
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(RedirectRequired)
async def redirect_required_handler(request: Request, exc: RedirectRequired):
    return RedirectResponse(exc.location, status_code=303)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


Header = Tuple[bytes, bytes]


class SecurityHeadersMiddleware:
    """Adds fixed security headers to every response.

    Page responses (anything outside api_prefix) depend on the visitor's
    session, so they also get Cache-Control: no-store. A dashboard must not
    come back from the browser cache after sign-out.
    """

    def __init__(self, app, headers: Iterable[Header], api_prefix: str = "/api/"):
        self.app = app
        self.headers = list(headers)
        self.api_prefix = api_prefix

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        extra = list(self.headers)
        if not scope["path"].startswith(self.api_prefix):
            extra.append((b"cache-control", b"no-store"))

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                present = {name.lower() for name, _ in message.get("headers", [])}
                message.setdefault("headers", [])
                message["headers"].extend(h for h in extra if h[0] not in present)
            await send(message)

        await self.app(scope, receive, send_with_headers)


def security_headers() -> List[Header]:
    headers = [
        (b"x-content-type-options", b"nosniff"),
        (b"x-frame-options", b"DENY"),
        (b"referrer-policy", b"same-origin"),
    ]
    if settings.is_production:
        # Session cookie is https-only in production
        headers.append((b"strict-transport-security", b"max-age=31536000; includeSubDomains"))
    return headers


app.add_middleware(SecurityHeadersMiddleware, headers=security_headers())
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.secret_key,
    session_cookie=settings.session_cookie,
    max_age=settings.session_max_age,
    same_site="lax",
    https_only=settings.is_production,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include module routes
app.include_router(auth_routes.router, prefix="/api/v1")
app.include_router(profiles_routes.router, prefix="/api/v1")
app.include_router(pages_routes.router)


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness probe: extend here with Supabase checks if needed."""
    return {"status": "ready"}
