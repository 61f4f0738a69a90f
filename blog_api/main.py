import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from blog_api.auth import SessionAuthenticator
from blog_api.cache import TokenStore
from blog_api.config import settings
from blog_api.database import engine, init_schema
from blog_api.errors import install_exception_handlers
from blog_api.logging_config import configure_logging
from blog_api.middleware import AccessLogMiddleware, RecoveryMiddleware
from blog_api.routers import comments, posts, users

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    configure_logging(settings)
    await init_schema()
    token_store = TokenStore()
    await token_store.connect(settings.redis_url)
    app.state.authenticator = SessionAuthenticator(token_store, settings)
    logger.info("blog api started", extra={"port": settings.APP_PORT})
    yield
    # Shutdown
    await token_store.disconnect()
    await engine.dispose()


app = FastAPI(
    title="Blog API",
    description="Blog backend with user registration/login, post management "
    "and comments. Mutating endpoints need `Authorization: Bearer {token}`.",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/api/v1/swagger",
    openapi_url="/api/v1/openapi.json",
    redoc_url=None,
)

install_exception_handlers(app)

# Middleware (last added runs outermost)
app.add_middleware(RecoveryMiddleware)
app.add_middleware(AccessLogMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(users.router)
app.include_router(posts.router)
app.include_router(comments.router)


@app.get("/api/v1/health", tags=["system"], summary="Health check")
async def health():
    return {"status": "ok", "message": "Blog API is running"}
