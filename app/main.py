import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.httpsredirect import HTTPSRedirectMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware

from app.api.router import api_router
from app.core.config import get_settings
from app.core.db import close_engine, create_schema, get_session_factory, init_engine
from app.core.logging import configure_logging, install_access_logging
from app.core.rate_limit import InMemoryRateLimiter
from app.infra.db.seed import seed_defaults
from app.infra.realtime import InMemoryRealtimeHub

settings = get_settings()
settings.validate_security_settings()
configure_logging(settings)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    engine = init_engine()
    app.state.db_engine = engine

    if settings.db_auto_create:
        await create_schema(engine)
    if settings.db_seed_defaults:
        session_factory = get_session_factory()
        async with session_factory() as session:
            await seed_defaults(session)
            await session.commit()

    logger.info("Merchant support chat API started (env=%s)", settings.app_env)
    yield

    await close_engine(engine)
    logger.info("Merchant support chat API stopped")


app = FastAPI(
    title="Merchant Support Chat API",
    version="0.1.0",
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
    lifespan=lifespan,
)
# Realtime hub and limiter are process-local and injected into services per request.
app.state.realtime_hub = InMemoryRealtimeHub()
app.state.rate_limiter = InMemoryRateLimiter()

if settings.trusted_hosts:
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.trusted_hosts,
    )

if settings.force_https:
    app.add_middleware(HTTPSRedirectMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-Id"],
)

install_access_logging(app)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault(
        "Referrer-Policy",
        "strict-origin-when-cross-origin",
    )
    if settings.force_https:
        response.headers.setdefault(
            "Strict-Transport-Security",
            "max-age=31536000; includeSubDomains",
        )
    return response


app.include_router(api_router, prefix="/api")


@app.get("/", tags=["meta"])
async def root() -> dict[str, str]:
    return {"service": "merchant-support-chat", "status": "ok"}
