"""FastAPI application entry point for the realty platform API."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from realty_platform.app.config import get_settings
from realty_platform.infra.database import init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: initialize database on startup."""
    await init_db()
    yield


settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.debug else logging.WARNING,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)

app = FastAPI(
    title="Realty Platform API",
    lifespan=lifespan,
    debug=settings.debug,
)

_cors_origins = settings.cors_origins_list
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=("*" not in _cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies and params are a 400 with a generic message."""
    logger.warning("Validation error on %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"detail": "Invalid request data"})


app.add_exception_handler(RequestValidationError, validation_exception_handler)

# ---------------------------------------------------------------------------
# Route includes
# ---------------------------------------------------------------------------
from realty_platform.app.routes.users import router as users_router
from realty_platform.app.routes.developers import router as developers_router
from realty_platform.app.routes.properties import router as properties_router
from realty_platform.app.routes.buyer_profile import router as buyer_profile_router
from realty_platform.app.routes.property_matches import router as property_matches_router
from realty_platform.app.routes.ai_closer import router as ai_closer_router
from realty_platform.app.routes.behavior import router as behavior_router

app.include_router(users_router)
app.include_router(developers_router)
app.include_router(properties_router)
app.include_router(buyer_profile_router)
app.include_router(property_matches_router)
app.include_router(ai_closer_router)
app.include_router(behavior_router)


@app.get("/health", tags=["health"])
async def health_check():
    """Return service health status."""
    return {"status": "ok", "service": "realty-platform"}


def run() -> None:
    """Run the application with uvicorn (used by project.scripts entry point)."""
    uvicorn.run(
        "realty_platform.app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
